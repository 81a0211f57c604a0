"""Export step outputs to the pipeline's key/value environment store."""

import subprocess
from typing import Protocol

from rich.console import Console

from hockeydeploy.config import LIST_DELIMITER
from hockeydeploy.errors import SinkError


class KeyValueSink(Protocol):
    def export(self, key: str, value: str) -> None: ...


class EnvmanSink:
    """Writes each key with one `envman add` invocation, value on stdin."""

    def __init__(self, executable: str = "envman"):
        self.executable = executable

    def export(self, key: str, value: str) -> None:
        try:
            subprocess.run(
                [self.executable, "add", "--key", key],
                input=value,
                text=True,
                capture_output=True,
                check=True,
            )
        except FileNotFoundError as e:
            raise SinkError(f"{self.executable} not found") from e
        except subprocess.CalledProcessError as e:
            raise SinkError(
                f"{self.executable} add --key {key} exited with {e.returncode}: {e.stderr.strip()}"
            ) from e


class MemorySink:
    """Keeps exported values in a dict."""

    def __init__(self):
        self.values: dict[str, str] = {}

    def export(self, key: str, value: str) -> None:
        self.values[key] = value


def export_or_warn(sink: KeyValueSink, key: str, value: str, console: Console) -> bool:
    """Export a value; a failure is printed as a warning and reported as False."""
    try:
        sink.export(key, value)
    except SinkError as e:
        console.print(f"[yellow]Failed to export {key}: {e}[/yellow]")
        return False
    return True


def export_list_or_warn(
    sink: KeyValueSink, key: str, values: list[str], console: Console
) -> bool:
    """Export a list of values joined with the list delimiter."""
    return export_or_warn(sink, key, LIST_DELIMITER.join(values), console)
