"""Descriptor-to-model extraction.

Pure functions turning a fetched component descriptor (plus any locally
fetched blobs) into graph edges, resources and image sources.  Nothing here
touches graph state; malformed input raises immediately instead of being
skipped.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ocmvector.errors import DescriptorError, MissingLocalBlobError
from ocmvector.models.components import ComponentReference, Dependency, Resource, ResourceType
from ocmvector.models.descriptor import Blobs, Descriptor, DescriptorReference, DescriptorResource, Label
from ocmvector.models.imagevector import (
    ExtendedImageSource,
    ImageLabel,
    ImageSource,
    MappedImage,
    ReferencedImage,
)

LABEL_IMAGE_VECTOR_IMAGES = "imagevector.gardener.cloud/images"
LABEL_IMAGE_VECTOR_APPLICATION = "imagevector.gardener.cloud/application"
APPLICATION_KUBERNETES = "kubernetes"

LABEL_IMAGE_VECTOR_NAME = "imagevector.gardener.cloud/name"
LABEL_IMAGE_VECTOR_REPOSITORY = "imagevector.gardener.cloud/repository"
LABEL_IMAGE_VECTOR_SOURCE_REPOSITORY = "imagevector.gardener.cloud/source-repository"
LABEL_IMAGE_VECTOR_TARGET_VERSION = "imagevector.gardener.cloud/target-version"
LABEL_CVE_CATEGORISATION = "gardener.cloud/cve-categorisation"
LABEL_ORIGINAL_REF = "cloud.gardener.cnudie/migration/original_ref"


@dataclass
class ComponentLabels:
    """Component-level label information relevant for the graph."""

    mapped_images: list[MappedImage] = field(default_factory=list)
    application: bool = False


def descriptor_reference(descriptor: Descriptor) -> ComponentReference:
    return ComponentReference(name=descriptor.name, version=descriptor.version)


def split_image_reference(ref: str) -> tuple[str, str]:
    """Split an OCI reference into repository and tag.

    The first ``:`` separates repository and tag unless splitting on the
    first ``@`` yields a longer tag (digest-only references such as
    ``repo@sha256:...``).
    """
    by_colon = ref.split(":", 1)
    by_at = ref.split("@", 1)
    parts: list[str] | None = by_colon if len(by_colon) == 2 else None
    if len(by_at) == 2 and parts is not None and len(by_at[1]) > len(parts[1]):
        parts = by_at
    if parts is None:
        raise DescriptorError(f"invalid reference format: {ref!r}")
    return parts[0], parts[1]


def _label_string(label: Label) -> str | None:
    if label.value is None:
        return None
    if not isinstance(label.value, str):
        raise DescriptorError(f"failed to convert label {label.name} to string: got {type(label.value).__name__}")
    return label.value


def resource_to_image_source(resource: DescriptorResource) -> ExtendedImageSource | None:
    """Derive the image source of an ``ociImage`` resource; other types yield None."""
    if resource.type != ResourceType.OCI_IMAGE:
        return None
    return _image_source(resource)


def _image_source(resource: DescriptorResource) -> ExtendedImageSource:
    name = ""
    resource_name = ""
    target_version: str | None = None
    original_ref: str | None = None
    labels: list[ImageLabel] = []
    for label in resource.labels:
        if label.name == LABEL_IMAGE_VECTOR_NAME:
            name = _label_string(label) or ""
            resource_name = resource.name
        elif label.name == LABEL_IMAGE_VECTOR_REPOSITORY:
            # validated only, the access reference below is authoritative
            _label_string(label)
        elif label.name == LABEL_IMAGE_VECTOR_TARGET_VERSION:
            target_version = _label_string(label)
        elif label.name == LABEL_CVE_CATEGORISATION:
            labels.append(ImageLabel(name=label.name, value=label.value))
        elif label.name == LABEL_ORIGINAL_REF:
            original_ref = _label_string(label)
        # LABEL_IMAGE_VECTOR_SOURCE_REPOSITORY and unknown labels are ignored

    lookup_only = False
    if not name:
        name = resource.name
        lookup_only = True

    try:
        ref = resource.access.image_reference()
    except DescriptorError as exc:
        raise DescriptorError(f"failed to convert resource {resource.name} to image source: {exc}") from exc
    repository, tag = split_image_reference(ref)

    image = ImageSource(
        name=name,
        ref=ref,
        repository=repository,
        tag=tag,
        version=resource.version or None,
        target_version=target_version,
        labels=tuple(labels),
    )
    return ExtendedImageSource(
        image=image,
        resource_name=resource_name,
        lookup_only=lookup_only,
        original_ref=original_ref,
    )


def extract_image_sources(descriptor: Descriptor) -> list[ExtendedImageSource]:
    """Return the component's own image sources, in resource order."""
    sources = []
    for resource in descriptor.resources:
        source = resource_to_image_source(resource)
        if source is not None:
            sources.append(source)
    return sources


def extract_resources(descriptor: Descriptor, blobs: Blobs | None = None) -> list[Resource]:
    """Normalize the descriptor's image, chart and image map resources."""
    blobs = blobs or {}
    resources: list[Resource] = []
    for res in descriptor.resources:
        match res.type:
            case ResourceType.OCI_IMAGE:
                image = _image_source(res).image
                if image.ref:
                    value = image.ref
                elif image.repository and image.tag:
                    value = f"{image.repository}:{image.tag}"
                else:
                    raise DescriptorError(f"could not determine reference for resource {res.name}")
                resources.append(
                    Resource(name=image.name, version=res.version, type=ResourceType.OCI_IMAGE, value=value)
                )
            case ResourceType.HELM_CHART:
                resources.append(
                    Resource(
                        name=res.name,
                        version=res.version,
                        type=ResourceType.HELM_CHART,
                        value=res.access.image_reference(),
                    )
                )
            case ResourceType.HELM_CHART_IMAGE_MAP:
                res.access.ensure_local_blob()
                blob = blobs.get(res.blob_key())
                if blob is None:
                    raise MissingLocalBlobError(res.name, res.version, res.type)
                resources.append(
                    Resource(
                        name=res.name,
                        version=res.version,
                        type=ResourceType.HELM_CHART_IMAGE_MAP,
                        value=blob.decode("utf-8"),
                    )
                )
            case _:
                pass
    return resources


def _parse_image_list(label: Label) -> list[dict[str, object]]:
    """Decode an ``imagevector.gardener.cloud/images`` label value."""
    if label.value is None:
        return []
    if not isinstance(label.value, dict):
        raise DescriptorError(f"label {label.name} must be an object with an images list")
    images = label.value.get("images") or []
    if not isinstance(images, list) or not all(isinstance(img, dict) for img in images):
        raise DescriptorError(f"label {label.name} has a malformed images list")
    return images


def _optional_str(entry: dict[str, object], key: str) -> str | None:
    value = entry.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise DescriptorError(f"image field {key!r} must be a string, got {type(value).__name__}")
    return value


def extract_component_labels(descriptor: Descriptor) -> ComponentLabels:
    """Read the mapped-image declaration and the application marker."""
    result = ComponentLabels()
    cref = descriptor_reference(descriptor)
    for label in descriptor.labels:
        if label.name == LABEL_IMAGE_VECTOR_IMAGES:
            for entry in _parse_image_list(label):
                repository = _optional_str(entry, "repository")
                if repository is not None:
                    result.mapped_images.append(MappedImage(repository=repository, name=_optional_str(entry, "name") or ""))
        elif label.name == LABEL_IMAGE_VECTOR_APPLICATION:
            if label.value is None:
                continue
            if not isinstance(label.value, str):
                raise DescriptorError(f"unexpected value for label {label.name!r} in component {cref}")
            if label.value == APPLICATION_KUBERNETES:
                result.application = True
    return result


def reference_to_dependency(ref: DescriptorReference) -> tuple[ComponentReference, ExtendedImageSource | None]:
    """Return the referenced component and the image source declared on the reference, if any."""
    cref = ComponentReference(name=ref.component_name, version=ref.version)
    for label in ref.labels:
        if label.name != LABEL_IMAGE_VECTOR_IMAGES:
            continue
        images = _parse_image_list(label)
        if not images:
            return cref, None
        if len(images) > 1:
            raise DescriptorError(f"expected 1 or 0 images on reference to {cref}, got {len(images)}")
        entry = images[0]
        name = _optional_str(entry, "name") or ""
        lookup_name = name
        resource_id = entry.get("resourceId")
        if isinstance(resource_id, dict) and isinstance(resource_id.get("name"), str):
            lookup_name = resource_id["name"]
        image = ImageSource(
            name=name,
            repository=_optional_str(entry, "repository"),
            tag=_optional_str(entry, "tag"),
            version=_optional_str(entry, "version"),
            target_version=_optional_str(entry, "targetVersion"),
        )
        return cref, ExtendedImageSource(
            image=image,
            source=ReferencedImage(component=cref, lookup_name=lookup_name),
        )
    return cref, None


def extract_dependencies(descriptor: Descriptor) -> list[Dependency]:
    """Group the descriptor's references into one edge per target component.

    Image sources of repeated references to the same target are concatenated
    in declaration order.
    """
    grouped: dict[ComponentReference, list[ExtendedImageSource]] = {}
    for ref in descriptor.references:
        cref, source = reference_to_dependency(ref)
        sources = grouped.setdefault(cref, [])
        if source is not None:
            sources.append(source)
    return [Dependency(component=cref, image_sources=tuple(sources)) for cref, sources in grouped.items()]
