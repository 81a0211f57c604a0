"""Upload every resolved package and export the resulting URLs."""

from rich.console import Console
from tqdm import tqdm

from hockeydeploy.config import StepConfig
from hockeydeploy.envstore import KeyValueSink, export_list_or_warn, export_or_warn
from hockeydeploy.errors import DeployError
from hockeydeploy.hockeyapp.client import HockeyAppClient
from hockeydeploy.models.upload import UploadResult, UploadTarget
from hockeydeploy.pipeline._shared import STATUS_FAILED, STATUS_SUCCESS, RunOutcome
from hockeydeploy.pipeline.reconcile import resolve_targets

STATUS_KEY = "HOCKEYAPP_DEPLOY_STATUS"
PUBLIC_URL_KEY = "HOCKEYAPP_DEPLOY_PUBLIC_URL"
BUILD_URL_KEY = "HOCKEYAPP_DEPLOY_BUILD_URL"
CONFIG_URL_KEY = "HOCKEYAPP_DEPLOY_CONFIG_URL"
PUBLIC_URL_LIST_KEY = "HOCKEYAPP_DEPLOY_PUBLIC_URL_LIST"
BUILD_URL_LIST_KEY = "HOCKEYAPP_DEPLOY_BUILD_URL_LIST"
CONFIG_URL_LIST_KEY = "HOCKEYAPP_DEPLOY_CONFIG_URL_LIST"


def print_result(target: UploadTarget, result: UploadResult, console: Console):
    console.print(f"[green]Uploaded {target.package_path}[/green]")
    if result.public_url:
        console.print(f"  Public URL: {result.public_url}")
    if result.build_url:
        console.print(f"  Build (direct download) URL: {result.build_url}")
    if result.config_url:
        console.print(f"  Config URL: {result.config_url}")


def export_outcome(outcome: RunOutcome, sink: KeyValueSink, console: Console):
    """Export status, the last URL of each kind, and the full URL lists."""
    export_or_warn(sink, STATUS_KEY, STATUS_SUCCESS, console)

    for key, urls in (
        (PUBLIC_URL_KEY, outcome.public_urls),
        (BUILD_URL_KEY, outcome.build_urls),
        (CONFIG_URL_KEY, outcome.config_urls),
    ):
        export_or_warn(sink, key, urls[-1] if urls else "", console)

    export_list_or_warn(sink, PUBLIC_URL_LIST_KEY, outcome.public_urls, console)
    export_list_or_warn(sink, BUILD_URL_LIST_KEY, outcome.build_urls, console)
    export_list_or_warn(sink, CONFIG_URL_LIST_KEY, outcome.config_urls, console)


def run_deploy(
    config: StepConfig,
    sink: KeyValueSink,
    client: HockeyAppClient | None = None,
    console: Console | None = None,
    dry_run: bool = False,
) -> RunOutcome:
    """
    Full pipeline: validate inputs -> reconcile paths -> upload -> export.

    Flow:
    1. Check required inputs and resolve the upload targets
    2. Upload targets one at a time, stopping at the first failure
    3. Export the status and URLs to the environment store

    Args:
        config: Step configuration
        sink: Environment store the outputs are exported to
        client: Upload client, built from the config if omitted
        console: Rich console for output
        dry_run: If True, validate and resolve targets only

    Returns:
        RunOutcome with the collected URLs and terminal status

    Raises:
        ConfigurationError: Inputs are missing or point at missing files.
            Nothing is uploaded or exported in that case.
    """
    if console is None:
        console = Console()

    config.validate_required()
    reconciliation = resolve_targets(config)
    for warning in reconciliation.warnings:
        console.print(f"[yellow]{warning}[/yellow]")

    targets = reconciliation.targets
    console.print(f"\n[bold]Packages to upload: {len(targets)}[/bold]")
    for i, target in enumerate(targets):
        mapping = f" (mapping: {target.mapping_path})" if target.has_mapping else ""
        console.print(f"  {i + 1}. {target.package_path}{mapping}")

    outcome = RunOutcome()
    if dry_run:
        console.print("\n[yellow]DRY RUN - no uploads performed[/yellow]")
        return outcome

    if client is None:
        client = HockeyAppClient.from_config(config)

    console.print(f"\n[bold]Uploading to {client.url}...[/bold]")
    for target in tqdm(targets, desc="Uploading packages"):
        try:
            result = client.upload(target, config.metadata)
        except DeployError as e:
            outcome.fail(e)
            console.print(f"\n[red]Upload of {target.package_path} failed: {e}[/red]")
            export_or_warn(sink, STATUS_KEY, STATUS_FAILED, console)
            return outcome

        outcome.add(result)
        print_result(target, result, console)

    export_outcome(outcome, sink, console)

    console.print("\n[green]Deploy complete![/green]")
    console.print(f"  Uploaded: {outcome.uploaded}")
    return outcome
