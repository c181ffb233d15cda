"""OCM component descriptor model.

Only the parts of an OCM v2 descriptor that the graph consumes are modelled:
component name/version/labels, resources (type, version, labels, access)
and component references.  Everything else in the document is
ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NamedTuple

from ocmvector.errors import DescriptorError

OCI_ACCESS_TYPES = frozenset(
    {
        "ociArtifact",
        "ociArtifact/v1",
        "ociRegistry",
        "ociRegistry/v1",
        "ociImage",
        "ociImage/v1",
        "OCIImage",
        "OCIImage/v1",
    }
)
LOCAL_BLOB_ACCESS_TYPES = frozenset({"localBlob", "localBlob/v1", "LocalBlob", "LocalBlob/v1"})


@dataclass(frozen=True)
class Label:
    """Descriptor label.  ``value`` is the decoded JSON value."""

    name: str
    value: Any = None


@dataclass(frozen=True)
class Access:
    """Access specification of a resource."""

    type: str
    spec: dict[str, Any] = field(default_factory=dict)

    def image_reference(self) -> str:
        """Return the OCI image reference of an OCI access."""
        if self.type not in OCI_ACCESS_TYPES:
            raise DescriptorError(f"access type {self.type!r} is not an OCI image access")
        ref = self.spec.get("imageReference")
        if not isinstance(ref, str) or not ref:
            raise DescriptorError(f"access of type {self.type!r} has no imageReference")
        return ref

    def ensure_local_blob(self) -> None:
        if self.type not in LOCAL_BLOB_ACCESS_TYPES:
            raise DescriptorError(f"access type {self.type!r} is not a local blob access")


@dataclass(frozen=True)
class DescriptorResource:
    name: str
    version: str
    type: str
    access: Access
    labels: tuple[Label, ...] = ()

    def blob_key(self) -> BlobKey:
        return BlobKey(name=self.name, version=self.version, type=self.type)


@dataclass(frozen=True)
class DescriptorReference:
    """Reference from one component version to another."""

    name: str
    component_name: str
    version: str
    labels: tuple[Label, ...] = ()


@dataclass(frozen=True)
class Descriptor:
    """A fetched component descriptor."""

    name: str
    version: str
    labels: tuple[Label, ...] = ()
    resources: tuple[DescriptorResource, ...] = ()
    references: tuple[DescriptorReference, ...] = ()
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Descriptor:
        """Parse an OCM v2 descriptor document (``{"meta": ..., "component": ...}``)."""
        component = data.get("component")
        if not isinstance(component, dict):
            raise DescriptorError("descriptor has no component section")
        name = component.get("name")
        version = component.get("version")
        if not isinstance(name, str) or not name or not isinstance(version, str) or not version:
            raise DescriptorError("descriptor component must have a name and a version")

        return cls(
            name=name,
            version=version,
            labels=_parse_labels(component.get("labels")),
            resources=tuple(_parse_resource(r) for r in component.get("resources") or []),
            references=tuple(_parse_reference(r) for r in component.get("componentReferences") or []),
            raw=data,
        )


class BlobKey(NamedTuple):
    """Identity of a locally fetched resource blob."""

    name: str
    version: str
    type: str


Blobs = dict[BlobKey, bytes]


def _parse_labels(raw: object) -> tuple[Label, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise DescriptorError(f"labels must be a list, got {type(raw).__name__}")
    labels = []
    for item in raw:
        if not isinstance(item, dict) or not isinstance(item.get("name"), str):
            raise DescriptorError(f"malformed label: {item!r}")
        labels.append(Label(name=item["name"], value=item.get("value")))
    return tuple(labels)


def _parse_resource(raw: object) -> DescriptorResource:
    if not isinstance(raw, dict):
        raise DescriptorError(f"malformed resource: {raw!r}")
    access = raw.get("access") or {}
    if not isinstance(access, dict):
        raise DescriptorError(f"malformed access of resource {raw.get('name')!r}")
    return DescriptorResource(
        name=str(raw.get("name", "")),
        version=str(raw.get("version", "")),
        type=str(raw.get("type", "")),
        access=Access(type=str(access.get("type", "")), spec=access),
        labels=_parse_labels(raw.get("labels")),
    )


def _parse_reference(raw: object) -> DescriptorReference:
    if not isinstance(raw, dict):
        raise DescriptorError(f"malformed component reference: {raw!r}")
    component_name = raw.get("componentName")
    version = raw.get("version")
    if not isinstance(component_name, str) or not isinstance(version, str):
        raise DescriptorError(f"component reference {raw.get('name')!r} needs componentName and version")
    return DescriptorReference(
        name=str(raw.get("name", "")),
        component_name=component_name,
        version=version,
        labels=_parse_labels(raw.get("labels")),
    )
