"""Concurrent walk over the component graph."""

from ocmvector.walk.walker import (
    ComponentExpansionError,
    ComponentWalker,
    ExpandFunc,
    WalkCancelledError,
    WalkError,
)

__all__ = [
    "ComponentExpansionError",
    "ComponentWalker",
    "ExpandFunc",
    "WalkCancelledError",
    "WalkError",
]
