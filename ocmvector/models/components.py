"""Component references, resources and graph edges."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from ocmvector.errors import InvalidComponentReferenceError

if TYPE_CHECKING:
    from ocmvector.models.imagevector import ExtendedImageSource


class ResourceType(StrEnum):
    """Resource types the graph extracts from descriptors."""

    OCI_IMAGE = "ociImage"
    HELM_CHART = "helmChart/v1"
    HELM_CHART_IMAGE_MAP = "helmchart-imagemap"


class RootMarker(StrEnum):
    """Synthetic dependent recorded for components merged as walk roots."""

    ROOT = "<ROOT>"


@dataclass(frozen=True)
class ComponentReference:
    """Immutable ``name:version`` identifier of a component version."""

    name: str
    version: str

    def __post_init__(self) -> None:
        if not self.name or not self.version:
            raise InvalidComponentReferenceError(f"{self.name}:{self.version}")

    @classmethod
    def parse(cls, value: str) -> ComponentReference:
        """Split *value* on the first ``:`` into name and version."""
        name, sep, version = value.partition(":")
        if not sep or not name or not version:
            raise InvalidComponentReferenceError(value)
        return cls(name=name, version=version)

    def __str__(self) -> str:
        return f"{self.name}:{self.version}"

    def to_filename(self, directory: str) -> str:
        """Return the flat JSON file name for this reference inside *directory*."""
        flat = str(self).replace("/", "_").replace(":", "-")
        return os.path.join(directory, f"{flat}.json")

    def has_name(self, name: str) -> bool:
        return self.name == name


def sort_references(refs: set[ComponentReference] | list[ComponentReference]) -> list[ComponentReference]:
    """Sort references by their canonical text form."""
    return sorted(refs, key=str)


@dataclass(frozen=True)
class Resource:
    """Normalized artifact shipped by a component."""

    name: str
    version: str
    type: ResourceType
    value: str  # image/chart reference, or the raw image map payload

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "version": self.version,
            "type": str(self.type),
            "value": self.value,
        }


@dataclass(frozen=True)
class Dependency:
    """Outgoing edge of the graph with the image sources attributed to it."""

    component: ComponentReference
    image_sources: tuple[ExtendedImageSource, ...] = field(default_factory=tuple)
