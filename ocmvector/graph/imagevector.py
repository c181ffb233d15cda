"""Image vector resolution.

Read-only algorithm over a fully walked graph:

1. Collect the image sources of every outgoing edge of the component,
   skipping lookup-only sources and resolving ``ReferencedImage`` entries by
   name against the referenced component.
2. Fan out the canonical application component's images into the
   component's mapped-image declarations.
3. Sort by ``(name, target_version)``.

Every unresolved indirection is an ``ImageResolutionError``; a missing image
would otherwise silently produce an incomplete deployment downstream.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field

from ocmvector.errors import ImageResolutionError
from ocmvector.models.components import ComponentReference, Dependency
from ocmvector.models.imagevector import (
    DirectImage,
    ExtendedImageSource,
    ImageSource,
    MappedImage,
    ReferencedImage,
    sort_image_sources,
)
from ocmvector.observability.metrics import image_vector_resolutions_total


@dataclass(frozen=True)
class GraphView:
    """Immutable copy of the graph state needed for resolution."""

    dependencies: dict[ComponentReference, tuple[Dependency, ...]] = field(default_factory=dict)
    mapped_images: dict[ComponentReference, tuple[MappedImage, ...]] = field(default_factory=dict)
    application_component: ComponentReference | None = None


def _lookup_referenced(
    view: GraphView,
    source: ExtendedImageSource,
    ref: ReferencedImage,
) -> tuple[ImageSource, str | None]:
    """Find the image *ref* points at; keep the referencing name and target version."""
    candidates = [img for dep in view.dependencies.get(ref.component, ()) for img in dep.image_sources]
    for candidate in candidates:
        if candidate.effective_resource_name == ref.lookup_name:
            image = dataclasses.replace(
                candidate.image,
                name=source.image.name,
                target_version=source.image.target_version,
            )
            return image, candidate.original_ref
    names = ", ".join(c.effective_resource_name for c in candidates)
    raise ImageResolutionError(
        f"could not find image {ref.lookup_name!r} in referenced component {str(ref.component)!r}: [{names}]"
    )


def _resolve_source(view: GraphView, source: ExtendedImageSource, use_original_refs: bool) -> ImageSource:
    match source.source:
        case DirectImage():
            image, original_ref = source.image, source.original_ref
        case ReferencedImage() as ref:
            image, original_ref = _lookup_referenced(view, source, ref)

    if image.ref is not None and image.repository is not None and image.tag is not None:
        image = dataclasses.replace(image, ref=None)

    if use_original_refs and original_ref is not None:
        repository, sep, tag = original_ref.partition(":")
        if not sep:
            raise ImageResolutionError(f"could not split original reference {original_ref!r}")
        image = dataclasses.replace(image, repository=repository, tag=tag)
    return image


def _resolve_edges(view: GraphView, cref: ComponentReference, use_original_refs: bool) -> list[ImageSource]:
    images = []
    for dependency in view.dependencies.get(cref, ()):
        for source in dependency.image_sources:
            if source.lookup_only:
                continue
            images.append(_resolve_source(view, source, use_original_refs))
    return images


def _resolve_mapped(view: GraphView, cref: ComponentReference, use_original_refs: bool) -> list[ImageSource]:
    mapped = view.mapped_images.get(cref, ())
    if not mapped:
        return []
    mapped_names = {m.repository: m.name for m in mapped}
    if view.application_component is None:
        raise ImageResolutionError("could not determine kubernetes component reference")

    fanned_out = []
    for image in _resolve_edges(view, view.application_component, use_original_refs):
        name = mapped_names.get(image.name)
        if name is not None:
            fanned_out.append(dataclasses.replace(image, name=name, target_version=image.version))
    return fanned_out


def resolve_image_vector(
    view: GraphView,
    cref: ComponentReference,
    use_original_refs: bool = False,
) -> list[ImageSource]:
    """Compute the sorted, deployable image vector of *cref*.

    An empty list means the component has no images.
    """
    try:
        images = _resolve_edges(view, cref, use_original_refs)
        images.extend(_resolve_mapped(view, cref, use_original_refs))
    except ImageResolutionError:
        image_vector_resolutions_total.labels(outcome="error").inc()
        raise
    image_vector_resolutions_total.labels(outcome="success").inc()
    return sort_image_sources(images)
