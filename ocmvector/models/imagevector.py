"""Image vector data structures.

``ImageSource`` is the entry emitted in a resolved image vector.
``ExtendedImageSource`` carries the extra metadata that is only needed while
resolving: which resource declared it, whether it exists only to be looked up
by name, the pre-rewrite reference, and how it has to be resolved.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ocmvector.models.components import ComponentReference


@dataclass(frozen=True)
class ImageLabel:
    """Descriptor label passed through to the image vector."""

    name: str
    value: object


@dataclass(frozen=True)
class ImageSource:
    """One deployable image of a component."""

    name: str
    ref: str | None = None
    repository: str | None = None
    tag: str | None = None
    version: str | None = None
    target_version: str | None = None
    labels: tuple[ImageLabel, ...] = field(default_factory=tuple)

    def sort_key(self) -> tuple[str, str]:
        return (self.name, self.target_version or "")

    def to_dict(self) -> dict[str, object]:
        """Serialise with camelCase keys, omitting unset fields."""
        data: dict[str, object] = {"name": self.name}
        if self.ref is not None:
            data["ref"] = self.ref
        if self.repository is not None:
            data["repository"] = self.repository
        if self.tag is not None:
            data["tag"] = self.tag
        if self.version is not None:
            data["version"] = self.version
        if self.target_version is not None:
            data["targetVersion"] = self.target_version
        if self.labels:
            data["labels"] = [{"name": label.name, "value": label.value} for label in self.labels]
        return data


@dataclass(frozen=True)
class DirectImage:
    """The image is used exactly as declared."""


@dataclass(frozen=True)
class ReferencedImage:
    """The image is resolved by name against another component's image sources."""

    component: ComponentReference
    lookup_name: str


@dataclass(frozen=True)
class MappedImage:
    """Re-export of an application image under a component-local name.

    ``repository`` is matched against the image names of the canonical
    application component.
    """

    repository: str
    name: str


ImageIndirection = DirectImage | ReferencedImage


@dataclass(frozen=True)
class ExtendedImageSource:
    """Image source plus resolution metadata."""

    image: ImageSource
    source: ImageIndirection = field(default_factory=DirectImage)
    resource_name: str = ""
    lookup_only: bool = False  # only findable by name, never emitted
    original_ref: str | None = None

    @property
    def effective_resource_name(self) -> str:
        return self.resource_name or self.image.name


def sort_image_sources(images: list[ImageSource]) -> list[ImageSource]:
    """Return *images* ordered by ``(name, target_version)``."""
    return sorted(images, key=ImageSource.sort_key)
