"""Configuration loading and validation."""

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from rich.console import Console

from hockeydeploy.errors import ConfigurationError

DEFAULT_API_URL = "https://rink.hockeyapp.net/api/2"
LIST_DELIMITER = "|"

METADATA_KEYS = (
    "notes",
    "notes_type",
    "notify",
    "status",
    "mandatory",
    "tags",
    "commit_sha",
    "build_server_url",
    "repository_url",
)

STEP_KEYS = (
    "apk_path",
    "apk_path_list",
    "mapping_path",
    "mapping_path_list",
    "use_apk_path_list",
    "api_token",
    "app_id",
)

# Environment variable overriding the service base URL
API_URL_KEY = "hockeyapp_api_url"

REQUIRED_KEYS = ("api_token", "notes_type", "notify", "status", "mandatory")

# Control characters http.client rejects in header values
HEADER_UNSAFE = re.compile(r"[\x00-\x1f\x7f]")


def split_path_list(value: str) -> list[str]:
    """Split a pipe-delimited input into stripped entries.

    An empty input is an empty list. Empty entries between delimiters are
    kept so that positional pairing with another list is preserved.
    """
    if not value.strip():
        return []
    return [item.strip() for item in value.split(LIST_DELIMITER)]


def expand_path(value: str) -> str:
    """Expand environment variables and ~ in a path, leaving empty values alone."""
    if not value:
        return value
    return os.path.expandvars(os.path.expanduser(value))


def normalize_mandatory(value: str) -> str:
    """The service expects "1" for mandatory releases and "0" otherwise."""
    return "1" if value.strip().lower() in ("1", "true") else "0"


class UploadMetadata(BaseModel):
    """Release metadata sent as form fields with every upload in a run."""

    model_config = ConfigDict(frozen=True)

    notes: str = ""
    notes_type: str = ""
    notify: str = ""
    status: str = ""
    mandatory: str = ""
    tags: str = ""
    commit_sha: str = ""
    build_server_url: str = ""
    repository_url: str = ""

    def form_fields(self) -> dict[str, str]:
        fields = self.model_dump()
        fields["mandatory"] = normalize_mandatory(self.mandatory)
        return fields


class StepConfig(BaseModel):
    """All inputs of the deploy step."""

    model_config = ConfigDict(frozen=True)

    apk_path: str = ""
    apk_path_list: list[str] = Field(default_factory=list)
    mapping_path: str = ""
    mapping_path_list: list[str] = Field(default_factory=list)
    use_apk_path_list: bool | None = None
    api_token: str = ""
    app_id: str = ""
    api_url: str = DEFAULT_API_URL
    metadata: UploadMetadata = UploadMetadata()

    @field_validator("apk_path", "mapping_path", mode="before")
    @classmethod
    def _expand_single_path(cls, v: Any) -> str:
        return expand_path(str(v or "").strip())

    @field_validator("apk_path_list", "mapping_path_list", mode="before")
    @classmethod
    def _split_list(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            items = split_path_list(v)
        else:
            items = [str(item).strip() for item in v]
        return [expand_path(item) for item in items]

    @field_validator("use_apk_path_list", mode="before")
    @classmethod
    def _parse_toggle(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower()
            return v or None
        return v

    @field_validator("api_token", "app_id", mode="before")
    @classmethod
    def _strip_value(cls, v: Any) -> str:
        return str(v or "").strip()

    @field_validator("api_url", mode="before")
    @classmethod
    def _check_api_url(cls, v: Any) -> str:
        url = str(v or DEFAULT_API_URL).strip().rstrip("/")
        if not url.startswith(("https://", "http://")):
            raise ValueError(f"API URL must start with https:// or http://, got {url!r}")
        return url

    @classmethod
    def from_values(cls, values: Mapping[str, Any]) -> "StepConfig":
        """Build a config from flat step inputs keyed by their input names."""
        step: dict[str, Any] = {}
        for key in STEP_KEYS:
            if values.get(key) is not None:
                step[key] = _as_input(values[key])
        if values.get(API_URL_KEY):
            step["api_url"] = values[API_URL_KEY]

        metadata = {
            key: _as_input(values[key]) for key in METADATA_KEYS if values.get(key) is not None
        }

        try:
            return cls(**step, metadata=UploadMetadata(**metadata))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid step input: {e}") from e

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "StepConfig":
        """Read the step inputs from environment variables."""
        if environ is None:
            environ = os.environ
        keys = (*STEP_KEYS, *METADATA_KEYS, API_URL_KEY)
        return cls.from_values({key: environ[key] for key in keys if key in environ})

    def validate_required(self):
        """Raise ConfigurationError if a required input is empty or unusable."""
        values = {"api_token": self.api_token, **self.metadata.model_dump()}
        for key in REQUIRED_KEYS:
            if not values[key].strip():
                raise ConfigurationError(f"No {key} parameter specified")
        if HEADER_UNSAFE.search(self.api_token):
            raise ConfigurationError("api_token contains characters not allowed in an HTTP header")

    def print(self, console: Console):
        """Print a summary of the inputs with the API token masked."""
        console.print("[bold]Configs:[/bold]")
        console.print(f"  apk_path: {self.apk_path}")
        console.print(f"  apk_path_list: {LIST_DELIMITER.join(self.apk_path_list)}")
        console.print(f"  mapping_path: {self.mapping_path}")
        console.print(f"  mapping_path_list: {LIST_DELIMITER.join(self.mapping_path_list)}")
        if self.use_apk_path_list is not None:
            console.print(f"  use_apk_path_list: {self.use_apk_path_list}")
        console.print(f"  api_token: {'***' if self.api_token else ''}")
        console.print(f"  app_id: {self.app_id}")
        for key, value in self.metadata.model_dump().items():
            console.print(f"  {key}: {value}")


def _as_input(value: Any) -> Any:
    # YAML may give ints or bools where the environment always gives strings
    if isinstance(value, (list, tuple)):
        return list(value)
    return str(value)


def load_step_config(config_path: Path, environ: Mapping[str, str] | None = None) -> StepConfig:
    """Load step inputs from a YAML file, overlaid by non-empty environment values."""
    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")

    if environ is None:
        environ = os.environ
    keys = (*STEP_KEYS, *METADATA_KEYS, API_URL_KEY)
    overrides = {key: environ[key] for key in keys if environ.get(key)}

    return StepConfig.from_values({**data, **overrides})
