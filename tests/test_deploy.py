"""End-to-end tests for the deploy pipeline with a faked HTTP session."""

import pytest
import requests
from rich.console import Console

from conftest import FakeSession, make_response
from hockeydeploy.config import StepConfig
from hockeydeploy.envstore import MemorySink
from hockeydeploy.errors import ConfigurationError
from hockeydeploy.hockeyapp import HockeyAppClient
from hockeydeploy.models.upload import UploadResult
from hockeydeploy.pipeline import run_deploy
from hockeydeploy.pipeline._shared import RunOutcome


def deploy(env, responses, console=None):
    config = StepConfig.from_env(env)
    session = FakeSession(responses)
    sink = MemorySink()
    client = HockeyAppClient.from_config(config, session=session)
    outcome = run_deploy(config, sink, client=client, console=console or Console(quiet=True))
    return outcome, sink, session


class TestRunDeploy:
    """Tests for run_deploy()."""

    def test_single_package_to_anonymous_endpoint(self, step_env, apk):
        outcome, sink, session = deploy(
            {**step_env, "apk_path": str(apk)},
            [make_response(201, {"public_url": "https://x/pub"})],
        )

        (request,) = session.sent
        assert request.url == "https://rink.hockeyapp.net/api/2/apps/upload"
        assert b'name="ipa"' in request.body
        assert b'name="dsym"' not in request.body

        assert outcome.succeeded
        assert outcome.public_urls == ["https://x/pub"]
        assert outcome.build_urls == []
        assert outcome.config_urls == []
        assert sink.values["HOCKEYAPP_DEPLOY_STATUS"] == "success"
        assert sink.values["HOCKEYAPP_DEPLOY_PUBLIC_URL"] == "https://x/pub"
        assert sink.values["HOCKEYAPP_DEPLOY_PUBLIC_URL_LIST"] == "https://x/pub"
        assert sink.values["HOCKEYAPP_DEPLOY_BUILD_URL"] == ""

    def test_server_error_aborts_remaining_uploads(self, step_env, apk, second_apk, tmp_path):
        third = tmp_path / "third.apk"
        third.write_bytes(b"PK")
        outcome, sink, session = deploy(
            {**step_env, "apk_path_list": f"{apk}|{second_apk}|{third}"},
            [
                make_response(201, {"public_url": "https://x/first"}),
                make_response(500, "boom"),
                make_response(201, {"public_url": "https://x/third"}),
            ],
        )

        assert len(session.sent) == 2
        assert not outcome.succeeded
        assert "500" in outcome.error
        assert sink.values == {"HOCKEYAPP_DEPLOY_STATUS": "failed"}

    def test_app_id_selects_per_app_endpoint(self, step_env, apk):
        _, _, session = deploy(
            {**step_env, "apk_path": str(apk), "app_id": "42"},
            [make_response(201, {})],
        )
        assert session.sent[0].url == (
            "https://rink.hockeyapp.net/api/2/apps/42/app_versions/upload"
        )

    def test_urls_are_deduplicated_and_last_one_exported(self, step_env, apk, second_apk):
        outcome, sink, _ = deploy(
            {**step_env, "apk_path_list": f"{apk}|{second_apk}"},
            [
                make_response(201, {"public_url": "https://x/pub", "build_url": "https://x/b1"}),
                make_response(201, {"public_url": "https://x/pub", "build_url": "https://x/b2"}),
            ],
        )

        assert outcome.public_urls == ["https://x/pub"]
        assert outcome.build_urls == ["https://x/b1", "https://x/b2"]
        assert sink.values["HOCKEYAPP_DEPLOY_BUILD_URL"] == "https://x/b2"
        assert sink.values["HOCKEYAPP_DEPLOY_BUILD_URL_LIST"] == "https://x/b1|https://x/b2"

    def test_mapping_list_pairs_with_packages(self, step_env, apk, second_apk, mapping):
        _, _, session = deploy(
            {
                **step_env,
                "apk_path_list": f"{apk}|{second_apk}",
                "mapping_path_list": str(mapping),
            },
            [make_response(201, {}), make_response(201, {})],
        )
        assert b'name="dsym"' in session.sent[0].body
        assert b'name="dsym"' not in session.sent[1].body

    def test_unparseable_body_fails_run(self, step_env, apk):
        outcome, sink, _ = deploy({**step_env, "apk_path": str(apk)}, [make_response(201, "<html>")])
        assert not outcome.succeeded
        assert sink.values == {"HOCKEYAPP_DEPLOY_STATUS": "failed"}

    def test_transport_error_fails_run(self, step_env, apk, second_apk):
        outcome, sink, session = deploy(
            {**step_env, "apk_path_list": f"{apk}|{second_apk}"},
            [requests.ConnectionError("connection reset"), make_response(201, {})],
        )
        assert len(session.sent) == 1
        assert not outcome.succeeded
        assert "connection reset" in outcome.error
        assert sink.values == {"HOCKEYAPP_DEPLOY_STATUS": "failed"}

    def test_package_removed_after_validation_fails_run(self, step_env, apk, second_apk):
        """A file that vanishes mid-run stops the run before its request is sent."""

        class RemovingSession(FakeSession):
            def send(self, request, **kwargs):
                second_apk.unlink()
                return super().send(request, **kwargs)

        config = StepConfig.from_env({**step_env, "apk_path_list": f"{apk}|{second_apk}"})
        session = RemovingSession([make_response(201, {"public_url": "https://x/pub"})])
        sink = MemorySink()
        outcome = run_deploy(
            config,
            sink,
            client=HockeyAppClient.from_config(config, session=session),
            console=Console(quiet=True),
        )

        assert len(session.sent) == 1
        assert not outcome.succeeded
        assert "Failed to open upload file" in outcome.error
        assert sink.values == {"HOCKEYAPP_DEPLOY_STATUS": "failed"}

    def test_token_with_trailing_newline_is_usable(self, step_env, apk):
        _, sink, session = deploy(
            {**step_env, "api_token": "secret\n", "apk_path": str(apk)},
            [make_response(201, {})],
        )
        assert session.sent[0].headers["X-HockeyAppToken"] == "secret"
        assert sink.values["HOCKEYAPP_DEPLOY_STATUS"] == "success"

    def test_reconcile_warnings_are_printed(self, step_env, apk, mapping):
        console = Console(record=True, width=200)
        deploy(
            {**step_env, "apk_path_list": str(apk), "mapping_path_list": f"{mapping}|extra.txt"},
            [make_response(201, {})],
            console=console,
        )
        assert "ignoring: extra.txt" in console.export_text()


class TestConfigurationFailures:
    """Invalid inputs fail before any network activity or export."""

    def test_missing_package_fails_without_requests(self, step_env, tmp_path):
        with pytest.raises(ConfigurationError):
            deploy({**step_env, "apk_path": str(tmp_path / "missing.apk")}, [])

    def test_empty_package_list_fails(self, step_env):
        with pytest.raises(ConfigurationError, match="No package path"):
            deploy(step_env, [])

    def test_missing_token_fails(self, step_env, apk):
        with pytest.raises(ConfigurationError, match="api_token"):
            deploy({**step_env, "api_token": "", "apk_path": str(apk)}, [])

    def test_token_with_control_characters_fails_before_upload(self, step_env, apk):
        with pytest.raises(ConfigurationError, match="HTTP header"):
            deploy({**step_env, "api_token": "sec\nret", "apk_path": str(apk)}, [])

    def test_api_url_without_scheme_fails_before_upload(self, step_env, apk):
        with pytest.raises(ConfigurationError, match="API URL"):
            deploy(
                {**step_env, "apk_path": str(apk), "hockeyapp_api_url": "rink.hockeyapp.net/api/2"},
                [],
            )

    def test_dry_run_does_not_upload(self, step_env, apk):
        config = StepConfig.from_env({**step_env, "apk_path": str(apk)})
        session = FakeSession([])
        sink = MemorySink()
        outcome = run_deploy(
            config,
            sink,
            client=HockeyAppClient.from_config(config, session=session),
            console=Console(quiet=True),
            dry_run=True,
        )
        assert outcome.succeeded
        assert session.sent == []
        assert sink.values == {}


class TestRunOutcome:
    def test_empty_urls_are_skipped(self):
        outcome = RunOutcome()
        outcome.add(UploadResult(public_url="https://x/pub"))
        outcome.add(UploadResult())
        assert outcome.public_urls == ["https://x/pub"]
        assert outcome.config_urls == []
        assert outcome.uploaded == 2
