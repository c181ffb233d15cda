"""Access to component repositories."""

from ocmvector.registry.repository import (
    ComponentNotFoundError,
    ComponentRepository,
    DirectoryRepository,
    find_component_version,
)

__all__ = [
    "ComponentNotFoundError",
    "ComponentRepository",
    "DirectoryRepository",
    "find_component_version",
]
