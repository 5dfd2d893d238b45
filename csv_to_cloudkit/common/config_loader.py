"""Configuration loading and validation."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from csv_to_cloudkit.common.constants import DEFAULT_SETTINGS
from csv_to_cloudkit.common.errors import ConfigError
from csv_to_cloudkit.common.fs import read_yaml
from csv_to_cloudkit.common.schema import validate_settings

DEFAULT_CONFIG_PATH = Path("config") / "cloudkit.yml"


@dataclass(frozen=True)
class Settings:
    base_url: str
    api_version: int
    container: str
    environment: str
    database: str
    connect_timeout: float
    read_timeout: float
    max_records: int
    fail_fast: bool

    @property
    def records_path(self) -> str:
        return (
            f"/database/{self.api_version}/{self.container}"
            f"/{self.environment}/{self.database}/records/modify"
        )

    @property
    def records_url(self) -> str:
        return self.base_url.rstrip("/") + self.records_path


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _read_overlay(path: Path) -> dict:
    try:
        payload = read_yaml(path)
    except OSError as exc:
        raise ConfigError(f"Unable to read settings file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Settings file {path} is not valid YAML: {exc}") from exc
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping")
    return payload


def settings_from_mapping(cfg: dict) -> Settings:
    validated = validate_settings(cfg)
    cloudkit = validated["cloudkit"]
    http = validated["http"]
    publish = validated["publish"]
    return Settings(
        base_url=cloudkit["base_url"],
        api_version=cloudkit["api_version"],
        container=cloudkit["container"],
        environment=cloudkit["environment"],
        database=cloudkit["database"],
        connect_timeout=float(http["connect_timeout"]),
        read_timeout=float(http["read_timeout"]),
        max_records=publish["max_records"],
        fail_fast=publish["fail_fast"],
    )


def load_settings(config_path: Path | None = None, *, overlay_path: Path | None = None) -> Settings:
    """Merge the settings file (and an optional overlay) over the built-in defaults.

    With no explicit path, ``config/cloudkit.yml`` is used when present.
    An explicit path that does not exist is an error.
    """
    merged = copy.deepcopy(DEFAULT_SETTINGS)

    if config_path is None:
        if DEFAULT_CONFIG_PATH.exists():
            merged = _deep_merge(merged, _read_overlay(DEFAULT_CONFIG_PATH))
    else:
        if not config_path.exists():
            raise ConfigError(f"Settings file not found: {config_path}")
        merged = _deep_merge(merged, _read_overlay(config_path))

    if overlay_path is not None and overlay_path.exists():
        merged = _deep_merge(merged, _read_overlay(overlay_path))

    return settings_from_mapping(merged)
