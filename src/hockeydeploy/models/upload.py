from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, field_validator


@dataclass(frozen=True)
class UploadTarget:
    """One package and its optional mapping file, uploaded in a single request."""

    package_path: str
    mapping_path: str = ""

    @property
    def has_mapping(self) -> bool:
        return bool(self.mapping_path)


class UploadResult(BaseModel):
    # Shareable URLs returned by the service for one uploaded package
    config_url: str = ""
    public_url: str = ""
    build_url: str = ""

    @field_validator("config_url", "public_url", "build_url", mode="before")
    @classmethod
    def _null_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v
