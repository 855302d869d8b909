"""Typed settings loaded from the TOML configuration file."""
from __future__ import annotations

import codecs
import os
from pathlib import Path
from typing import Dict, List

import tomllib
from pydantic import BaseModel, Field, ValidationError, field_validator

DISCOVERY_ROOT_ENV = "BLACKLIST_SYNC_DISCOVERY_ROOT"


class MergeSettings(BaseModel):
    """Which entries to add and how the exclusion list is encoded."""

    candidates: List[str] = Field(default_factory=list)
    target_filename: str = Field(min_length=1)
    discovery_root: Path
    encoding: str = "latin-1"
    newline: str = Field(default="\r\n", pattern=r"^(\r\n|\n)$")

    @field_validator("candidates", mode="before")
    @classmethod
    def _drop_blank(cls, value: List[str]) -> List[str]:
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]

    @field_validator("encoding")
    @classmethod
    def _known_encoding(cls, value: str) -> str:
        try:
            codecs.lookup(value)
        except LookupError as exc:
            raise ValueError(f"unknown encoding {value!r}") from exc
        return value


class ServiceSettings(BaseModel):
    names: List[str] = Field(default_factory=list)


class AdvisorySettings(BaseModel):
    device_name: str = ""
    broken_versions: List[str] = Field(default_factory=list)


class Settings(BaseModel):
    merge: MergeSettings
    services: ServiceSettings = Field(default_factory=ServiceSettings)
    advisory: AdvisorySettings = Field(default_factory=AdvisorySettings)


def _apply_env(payload: Dict[str, object]) -> Dict[str, object]:
    root = os.environ.get(DISCOVERY_ROOT_ENV)
    if root:
        merge = dict(payload.get("merge", {}))
        merge["discovery_root"] = root
        payload = {**payload, "merge": merge}
    return payload


def load_settings(path: Path) -> Settings:
    """Read and validate the TOML configuration file."""
    with path.open("rb") as handle:
        payload = tomllib.load(handle)
    try:
        return Settings.model_validate(_apply_env(payload))
    except ValidationError as exc:
        raise ValueError(f"Invalid settings in {path}: {exc}") from exc
