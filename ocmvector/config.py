"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from ocmvector.models.components import ComponentReference
from ocmvector.models.config import (
    LogConfig,
    OCMConfig,
    OCMVectorConfig,
    OutputConfig,
    WalkerConfig,
)


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"OCMVECTOR_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _env_list(key: str) -> list[str]:
    return [item.strip() for item in _env(key).split(",") if item.strip()]


def _validate_root_component(value: str) -> str:
    if value:
        ComponentReference.parse(value)
    return value


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def load_config() -> OCMVectorConfig:
    """Load configuration from OCMVECTOR_* environment variables."""
    return OCMVectorConfig(
        ocm=OCMConfig(
            repositories=_env_list("REPOSITORIES"),
            root_component=_validate_root_component(_env("ROOT_COMPONENT", "")),
            original_refs=_env_bool("ORIGINAL_REFS", False),
        ),
        walker=WalkerConfig(
            workers=_env_int("WORKERS", 10, min_val=1, max_val=64),
        ),
        output=OutputConfig(
            directory=_env("OUTPUT_DIR", "ocm-output"),
            debug=_env_bool("DEBUG", False),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
