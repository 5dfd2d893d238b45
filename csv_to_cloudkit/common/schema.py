"""Minimal strict schemas for YAML settings validation."""

from __future__ import annotations

from csv_to_cloudkit.common.errors import ConfigError


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_mapping(obj, ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")


def _assert_non_empty_str(value, ctx: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{ctx} must be a non-empty string")


def _assert_positive_number(value, ctx: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"{ctx} must be a positive number")


def validate_settings(cfg: dict, *, allow_unknown: bool = False) -> dict:
    _assert_mapping(cfg, "settings")
    sections = {"cloudkit", "http", "publish"}
    _assert_required_keys(cfg, sections, "settings")
    _assert_no_unknown_keys(cfg, sections, "settings", allow_unknown)

    cloudkit = cfg["cloudkit"]
    _assert_mapping(cloudkit, "cloudkit")
    cloudkit_keys = {"base_url", "api_version", "container", "environment", "database"}
    _assert_required_keys(cloudkit, cloudkit_keys, "cloudkit")
    _assert_no_unknown_keys(cloudkit, cloudkit_keys, "cloudkit", allow_unknown)
    _assert_non_empty_str(cloudkit["base_url"], "cloudkit.base_url")
    if not cloudkit["base_url"].startswith(("https://", "http://")):
        raise ConfigError("cloudkit.base_url must be an http(s) URL")
    for key in ("container", "database"):
        _assert_non_empty_str(cloudkit[key], f"cloudkit.{key}")
    if cloudkit["environment"] not in ("development", "production"):
        raise ConfigError("cloudkit.environment must be 'development' or 'production'")
    if cloudkit["database"] not in ("public", "private", "shared"):
        raise ConfigError("cloudkit.database must be one of public, private, shared")
    if isinstance(cloudkit["api_version"], bool) or not isinstance(cloudkit["api_version"], int):
        raise ConfigError("cloudkit.api_version must be an integer")

    http = cfg["http"]
    _assert_mapping(http, "http")
    http_keys = {"connect_timeout", "read_timeout"}
    _assert_required_keys(http, http_keys, "http")
    _assert_no_unknown_keys(http, http_keys, "http", allow_unknown)
    for key in sorted(http_keys):
        _assert_positive_number(http[key], f"http.{key}")

    publish = cfg["publish"]
    _assert_mapping(publish, "publish")
    publish_keys = {"max_records", "fail_fast"}
    _assert_required_keys(publish, publish_keys, "publish")
    _assert_no_unknown_keys(publish, publish_keys, "publish", allow_unknown)
    if isinstance(publish["max_records"], bool) or not isinstance(publish["max_records"], int):
        raise ConfigError("publish.max_records must be an integer")
    if publish["max_records"] < 1:
        raise ConfigError("publish.max_records must be at least 1")
    if not isinstance(publish["fail_fast"], bool):
        raise ConfigError("publish.fail_fast must be a boolean")

    return cfg
