"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class OCMConfig:
    """Component repositories and the root component to resolve."""

    repositories: list[str] = field(default_factory=list)
    root_component: str = ""  # name:version
    original_refs: bool = False


@dataclass
class WalkerConfig:
    """Concurrent graph walker configuration."""

    workers: int = 10


@dataclass
class OutputConfig:
    """Where and what to write after the walk."""

    directory: str = "ocm-output"
    debug: bool = False


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class OCMVectorConfig:
    """Top-level ocmvector configuration."""

    ocm: OCMConfig = field(default_factory=OCMConfig)
    walker: WalkerConfig = field(default_factory=WalkerConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    log: LogConfig = field(default_factory=LogConfig)
