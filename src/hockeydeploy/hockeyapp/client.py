"""Upload packages to HockeyApp and interpret the response."""

import requests
from pydantic import ValidationError

from hockeydeploy.config import DEFAULT_API_URL, StepConfig, UploadMetadata
from hockeydeploy.errors import ResponseParseError, ServerError, TransportError
from hockeydeploy.hockeyapp.request import build_upload_request
from hockeydeploy.models.upload import UploadResult, UploadTarget

TOKEN_HEADER = "X-HockeyAppToken"
PACKAGE_PART = "ipa"
MAPPING_PART = "dsym"
SUCCESS_STATUS = 201


def upload_url(base_url: str = DEFAULT_API_URL, app_id: str = "") -> str:
    """Per-app upload endpoint when an app id is known, anonymous upload otherwise."""
    base_url = base_url.rstrip("/")
    if app_id:
        return f"{base_url}/apps/{app_id}/app_versions/upload"
    return f"{base_url}/apps/upload"


def parse_upload_response(body: str) -> UploadResult:
    """Parse the JSON body of a successful upload."""
    try:
        return UploadResult.model_validate_json(body)
    except ValidationError as e:
        raise ResponseParseError(f"Failed to parse response body: {body!r}") from e


class HockeyAppClient:
    """Sends one blocking upload request per target."""

    def __init__(
        self,
        api_token: str,
        base_url: str = DEFAULT_API_URL,
        app_id: str = "",
        session: requests.Session | None = None,
    ):
        self.api_token = api_token
        self.url = upload_url(base_url, app_id)
        self.session = session or requests.Session()

    @classmethod
    def from_config(
        cls, config: StepConfig, session: requests.Session | None = None
    ) -> "HockeyAppClient":
        return cls(config.api_token, config.api_url, config.app_id, session=session)

    def upload(self, target: UploadTarget, metadata: UploadMetadata) -> UploadResult:
        """
        Upload one package (and its mapping file, if any).

        Raises:
            RequestConstructionError: A file could not be read
            TransportError: The request could not be performed
            ServerError: The service answered with anything but 201 Created
            ResponseParseError: The body is not the expected JSON object
        """
        files = {PACKAGE_PART: target.package_path}
        if target.has_mapping:
            files[MAPPING_PART] = target.mapping_path

        request = build_upload_request(self.url, metadata.form_fields(), files)
        request.headers[TOKEN_HEADER] = self.api_token

        settings = self.session.merge_environment_settings(request.url, {}, None, None, None)
        try:
            response = self.session.send(request, **settings)
        except requests.RequestException as e:
            raise TransportError(f"Performing request failed: {e}") from e

        with response:
            try:
                body = response.text
            except requests.RequestException as e:
                raise TransportError(f"Failed to read response body: {e}") from e

            if response.status_code != SUCCESS_STATUS:
                raise ServerError(response.status_code, body)

            return parse_upload_response(body)
