"""Prometheus metrics for the component walk and image vector resolution."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

component_expansions_total = Counter(
    "ocmvector_component_expansions_total",
    "Component expansions performed by the walker",
    ["outcome"],  # success | error | skipped
)

component_expansion_duration_seconds = Histogram(
    "ocmvector_component_expansion_duration_seconds",
    "Duration of a single component expansion (fetch and merge)",
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

walk_frontier_size = Gauge(
    "ocmvector_walk_frontier_size",
    "Component references waiting for expansion",
)

image_vector_resolutions_total = Counter(
    "ocmvector_image_vector_resolutions_total",
    "Image vector resolutions",
    ["outcome"],  # success | error
)
