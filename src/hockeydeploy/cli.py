"""CLI entrypoint for the HockeyApp deploy step."""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from hockeydeploy.config import StepConfig, load_step_config
from hockeydeploy.errors import DeployError

app = typer.Typer(
    name="hockeydeploy",
    help="Upload Android packages to HockeyApp and export the resulting URLs",
    no_args_is_help=True,
)
console = Console()


@app.command()
def deploy(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            exists=True,
            dir_okay=False,
            help="YAML file with step inputs, overridden by env",
        ),
    ] = None,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", help="Validate inputs only, don't upload")
    ] = False,
):
    """Upload the configured packages. All inputs are read from the environment."""
    from hockeydeploy.envstore import EnvmanSink
    from hockeydeploy.pipeline import run_deploy

    try:
        step_config = load_step_config(config) if config else StepConfig.from_env()
        step_config.print(console)
        outcome = run_deploy(step_config, EnvmanSink(), console=console, dry_run=dry_run)
    except DeployError as e:
        console.print(f"\n[red]{type(e).__name__}: {e}[/red]")
        raise typer.Exit(code=1) from e

    if not outcome.succeeded:
        raise typer.Exit(code=1)


@app.command()
def version():
    """Show version information."""
    from hockeydeploy import __version__

    console.print(f"hockeydeploy version {__version__}")


if __name__ == "__main__":
    app()
