"""Shared descriptor factories for ocmvector tests.

Descriptors are built as OCM v2 JSON documents and parsed through
``Descriptor.from_dict`` so every test also exercises the descriptor model.
"""

from __future__ import annotations

from typing import Any

from ocmvector.graph.extraction import (
    LABEL_IMAGE_VECTOR_APPLICATION,
    LABEL_IMAGE_VECTOR_IMAGES,
    LABEL_IMAGE_VECTOR_NAME,
    LABEL_IMAGE_VECTOR_TARGET_VERSION,
    LABEL_ORIGINAL_REF,
)
from ocmvector.models.components import ComponentReference
from ocmvector.models.descriptor import BlobKey, Blobs, Descriptor

REGISTRY = "registry.example.com/mirror"


def oci_resource(
    name: str,
    version: str,
    image_ref: str | None = None,
    *,
    image_name: str | None = None,
    target_version: str | None = None,
    original_ref: str | None = None,
    extra_labels: list[dict[str, Any]] | None = None,
    relation: str = "external",
) -> dict[str, Any]:
    resource_labels: list[dict[str, Any]] = []
    if image_name is not None:
        resource_labels.append({"name": LABEL_IMAGE_VECTOR_NAME, "value": image_name})
    if target_version is not None:
        resource_labels.append({"name": LABEL_IMAGE_VECTOR_TARGET_VERSION, "value": target_version})
    if original_ref is not None:
        resource_labels.append({"name": LABEL_ORIGINAL_REF, "value": original_ref})
    resource_labels.extend(extra_labels or [])
    return {
        "name": name,
        "version": version,
        "type": "ociImage",
        "relation": relation,
        "labels": resource_labels,
        "access": {
            "type": "ociArtifact",
            "imageReference": image_ref or f"{REGISTRY}/{name}:{version}",
        },
    }


def chart_resource(name: str, version: str, chart_ref: str | None = None) -> dict[str, Any]:
    return {
        "name": name,
        "version": version,
        "type": "helmChart/v1",
        "relation": "external",
        "access": {
            "type": "ociArtifact",
            "imageReference": chart_ref or f"{REGISTRY}/charts/{name}:{version}",
        },
    }


def image_map_resource(name: str, version: str) -> dict[str, Any]:
    return {
        "name": name,
        "version": version,
        "type": "helmchart-imagemap",
        "relation": "local",
        "access": {
            "type": "localBlob",
            "localReference": f"sha256:{name}",
            "mediaType": "application/json",
        },
    }


def image_map_blob(name: str, version: str, content: str | None = None) -> Blobs:
    payload = content or f'{{"helmchartResource": {{"name": "{name}"}}, "imageMapping": []}}'
    return {BlobKey(name=name, version=version, type="helmchart-imagemap"): payload.encode()}


def component_reference(
    component_name: str,
    version: str,
    *,
    name: str | None = None,
    images: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    ref: dict[str, Any] = {
        "name": name or component_name.rsplit("/", 1)[-1],
        "componentName": component_name,
        "version": version,
    }
    if images is not None:
        ref["labels"] = [{"name": LABEL_IMAGE_VECTOR_IMAGES, "value": {"images": images}}]
    return ref


def descriptor_dict(
    name: str,
    version: str,
    *,
    resources: list[dict[str, Any]] | None = None,
    references: list[dict[str, Any]] | None = None,
    component_labels: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    return {
        "meta": {"schemaVersion": "v2"},
        "component": {
            "name": name,
            "version": version,
            "provider": "test-resources",
            "labels": component_labels or [],
            "resources": resources or [],
            "componentReferences": references or [],
        },
    }


def make_descriptor(name: str, version: str, **kwargs: Any) -> Descriptor:
    return Descriptor.from_dict(descriptor_dict(name, version, **kwargs))


def application_label() -> list[dict[str, Any]]:
    return [{"name": LABEL_IMAGE_VECTOR_APPLICATION, "value": "kubernetes"}]


def mapped_images_label(*pairs: tuple[str, str]) -> list[dict[str, Any]]:
    """Component label re-exporting application images as ``(repository, name)``."""
    return [
        {
            "name": LABEL_IMAGE_VECTOR_IMAGES,
            "value": {"images": [{"name": name, "repository": repository} for repository, name in pairs]},
        }
    ]


def cref(text: str) -> ComponentReference:
    return ComponentReference.parse(text)
