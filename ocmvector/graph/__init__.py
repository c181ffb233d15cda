"""Component dependency graph and image vector resolution.

Holds the in-memory graph built from OCM component descriptors while walking
a component tree (component references, own resources, image sources and
mapped-image declarations) and derives per-component image vectors from it.
"""

from ocmvector.graph.imagevector import GraphView, resolve_image_vector
from ocmvector.graph.store import ComponentGraph

__all__ = [
    "ComponentGraph",
    "GraphView",
    "resolve_image_vector",
]
