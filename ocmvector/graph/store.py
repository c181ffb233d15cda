"""Thread-safe component dependency graph.

All state lives behind a single lock.  Every public operation, including the
merge-and-discover composite, runs under one acquisition of it; callers only
ever see copies, raw mappings are never handed out.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

import structlog

from ocmvector.errors import ConfigurationError
from ocmvector.graph.extraction import (
    ComponentLabels,
    descriptor_reference,
    extract_component_labels,
    extract_dependencies,
    extract_image_sources,
    extract_resources,
)
from ocmvector.graph.imagevector import GraphView, resolve_image_vector
from ocmvector.models.components import (
    ComponentReference,
    Dependency,
    Resource,
    RootMarker,
    sort_references,
)
from ocmvector.models.descriptor import Blobs, Descriptor
from ocmvector.models.imagevector import ExtendedImageSource, ImageSource, MappedImage

_log = structlog.get_logger(component="graph.store")

Dependent = ComponentReference | RootMarker


@dataclass(frozen=True)
class _Extracted:
    """Graph data extracted from one descriptor, computed outside the lock."""

    cref: ComponentReference
    image_sources: list[ExtendedImageSource]
    resources: list[Resource]
    labels: ComponentLabels


def _extract(descriptor: Descriptor, blobs: Blobs | None) -> _Extracted:
    return _Extracted(
        cref=descriptor_reference(descriptor),
        image_sources=extract_image_sources(descriptor),
        resources=extract_resources(descriptor, blobs),
        labels=extract_component_labels(descriptor),
    )


class ComponentGraph:
    """Directed graph of component versions discovered during a walk."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._dependents: dict[ComponentReference, set[Dependent]] = {}
        self._dependencies: dict[ComponentReference, list[Dependency]] = {}
        self._resources: dict[ComponentReference, list[Resource]] = {}
        self._mapped_images: dict[ComponentReference, list[MappedImage]] = {}
        self._roots: list[ComponentReference] = []
        self._application_component: ComponentReference | None = None

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def merge_descriptor(self, descriptor: Descriptor, blobs: Blobs | None = None) -> ComponentReference:
        """Merge a fetched descriptor into the graph and return its reference.

        Merging the same component again replaces its self-edge, resources and
        mapped images.  Raises ConfigurationError if another component already
        claimed the application role.
        """
        extracted = _extract(descriptor, blobs)
        with self._lock:
            self._merge_locked(extracted)
        return extracted.cref

    def add_edge(self, parent: ComponentReference, dependency: Dependency) -> bool:
        """Record that *parent* depends on ``dependency.component``.

        Returns True only the first time the target is discovered at all.
        Self-loops are dropped.
        """
        with self._lock:
            return self._add_edge_locked(parent, dependency)

    def merge_descriptor_and_discover_edges(
        self,
        descriptor: Descriptor,
        blobs: Blobs | None = None,
    ) -> list[ComponentReference]:
        """Merge *descriptor* and add one edge per referenced component.

        The merge and all of its edges are applied under one lock acquisition,
        so concurrent callers never observe a merged component without its
        edges.  Returns the referenced components seen for the first time, in
        declaration order.
        """
        dependencies = extract_dependencies(descriptor)
        extracted = _extract(descriptor, blobs)
        with self._lock:
            self._merge_locked(extracted)
            return [
                dependency.component for dependency in dependencies if self._add_edge_locked(extracted.cref, dependency)
            ]

    def _merge_locked(self, extracted: _Extracted) -> None:
        cref = extracted.cref
        if extracted.labels.application:
            current = self._application_component
            if current is not None and current != cref:
                raise ConfigurationError(f"non-unique kubernetes component: [{current},{cref}]")
            self._application_component = cref

        self_edge = Dependency(component=cref, image_sources=tuple(extracted.image_sources))
        edges = self._dependencies.setdefault(cref, [])
        for i, edge in enumerate(edges):
            if edge.component == cref:
                edges[i] = self_edge
                break
        else:
            edges.insert(0, self_edge)

        self._resources[cref] = extracted.resources
        if extracted.labels.mapped_images:
            self._mapped_images[cref] = extracted.labels.mapped_images
        else:
            self._mapped_images.pop(cref, None)

        if cref not in self._dependents:
            self._dependents[cref] = {RootMarker.ROOT}
            self._roots.append(cref)
            _log.debug("root component registered", component=str(cref))

    def _add_edge_locked(self, parent: ComponentReference, dependency: Dependency) -> bool:
        target = dependency.component
        if parent == target:
            return False
        dependents = self._dependents.get(target)
        newly_discovered = dependents is None
        if dependents is None:
            dependents = self._dependents[target] = set()
        dependents.add(parent)

        edges = self._dependencies.setdefault(parent, [])
        for i, edge in enumerate(edges):
            if edge.component == target:
                edges[i] = dependency
                break
        else:
            edges.append(dependency)
        return newly_discovered

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    def sorted_components(self) -> list[ComponentReference]:
        """All known components sorted by reference."""
        with self._lock:
            return sort_references(list(self._dependents))

    def resources(self, cref: ComponentReference) -> list[Resource]:
        with self._lock:
            return list(self._resources.get(cref, []))

    def dependents(self, cref: ComponentReference) -> list[Dependent]:
        """Direct dependents of *cref*, sorted; may include ``RootMarker.ROOT``."""
        with self._lock:
            return sorted(self._dependents.get(cref, set()), key=str)

    def dependencies(self, cref: ComponentReference) -> list[Dependency]:
        with self._lock:
            return list(self._dependencies.get(cref, []))

    def mapped_images(self, cref: ComponentReference) -> list[MappedImage]:
        with self._lock:
            return list(self._mapped_images.get(cref, []))

    def root_components(self) -> list[ComponentReference]:
        with self._lock:
            return list(self._roots)

    def component_count(self) -> int:
        with self._lock:
            return len(self._dependents)

    @property
    def application_component(self) -> ComponentReference | None:
        with self._lock:
            return self._application_component

    def component_inventory(self) -> dict[str, list[str]]:
        """Map each component name to its versions, both in reference order."""
        inventory: dict[str, list[str]] = {}
        for cref in self.sorted_components():
            inventory.setdefault(cref.name, []).append(cref.version)
        return inventory

    def snapshot(self) -> GraphView:
        with self._lock:
            return GraphView(
                dependencies={cref: tuple(edges) for cref, edges in self._dependencies.items()},
                mapped_images={cref: tuple(images) for cref, images in self._mapped_images.items()},
                application_component=self._application_component,
            )

    def image_vector(self, cref: ComponentReference, use_original_refs: bool = False) -> list[ImageSource]:
        """Resolve the deployable image vector of *cref*."""
        return resolve_image_vector(self.snapshot(), cref, use_original_refs)
