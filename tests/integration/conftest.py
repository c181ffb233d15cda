"""Shared fixtures for integration tests.

``DescriptorStore`` lays out descriptors on disk the way
``DirectoryRepository`` expects them, so tests run the real fetch path.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import pytest

from ocmvector.models.components import ComponentReference
from ocmvector.models.config import OCMVectorConfig
from ocmvector.models.descriptor import Descriptor
from ocmvector.registry import DirectoryRepository

from ..conftest import (
    application_label,
    chart_resource,
    component_reference,
    descriptor_dict,
    image_map_resource,
    mapped_images_label,
    oci_resource,
)


class DescriptorStore:
    """A repository directory that tests fill with descriptors and blobs."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory
        self.directory.mkdir(parents=True, exist_ok=True)
        self.repository = DirectoryRepository(str(directory))

    def add(self, name: str, version: str, **kwargs: Any) -> ComponentReference:
        data = descriptor_dict(name, version, **kwargs)
        ref = ComponentReference(name=name, version=version)
        Path(ref.to_filename(str(self.directory))).write_text(json.dumps(data))
        return ref

    def add_blob(self, component: ComponentReference, resource: dict[str, Any], content: str) -> None:
        parsed = Descriptor.from_dict(descriptor_dict(component.name, component.version, resources=[resource]))
        path = Path(self.repository.blob_path(component, parsed.resources[0]))
        os.makedirs(path.parent, exist_ok=True)
        path.write_text(content)


def make_config(repositories: list[DescriptorStore], root: str, output_dir: Path, **overrides: Any) -> OCMVectorConfig:
    config = OCMVectorConfig()
    config.ocm.repositories = [str(store.directory) for store in repositories]
    config.ocm.root_component = root
    config.output.directory = str(output_dir)
    config.ocm.original_refs = overrides.pop("original_refs", False)
    config.output.debug = overrides.pop("debug", False)
    config.walker.workers = overrides.pop("workers", 4)
    assert not overrides, f"unknown overrides: {overrides}"
    return config


@pytest.fixture
def store(tmp_path: Path) -> DescriptorStore:
    return DescriptorStore(tmp_path / "repo")


@pytest.fixture
def landscape(store: DescriptorStore) -> DescriptorStore:
    """A small Gardener-like landscape.

    root -> gardener -> kubernetes (application)
         -> extension -> kubernetes
         -> etcd (referenced by gardener for its etcd image)
    """
    imagemap = image_map_resource("gardener-imagemap", "v1.0.0")
    gardener = store.add(
        "example.com/gardener",
        "v1.0.0",
        resources=[
            oci_resource("apiserver", "v1.0.0", image_name="gardener-apiserver"),
            chart_resource("gardener-chart", "v1.0.0"),
            imagemap,
        ],
        references=[
            component_reference("example.com/kubernetes", "v1.30.0"),
            component_reference(
                "example.com/etcd",
                "v3.5.0",
                images=[{"name": "etcd", "resourceId": {"name": "etcd-image"}, "targetVersion": ">= 1.29"}],
            ),
        ],
    )
    store.add_blob(gardener, imagemap, '{"imageMapping": [{"resource": {"name": "apiserver"}}]}')
    store.add(
        "example.com/kubernetes",
        "v1.30.0",
        component_labels=application_label(),
        resources=[
            oci_resource("hyperkube", "1.29.0", image_name="hyperkube"),
            oci_resource("hyperkube", "1.30.0", image_name="hyperkube"),
        ],
    )
    store.add("example.com/etcd", "v3.5.0", resources=[oci_resource("etcd-image", "v3.5.0")])
    store.add(
        "example.com/extension",
        "v0.9.0",
        component_labels=mapped_images_label(("hyperkube", "hyperkube-mapped")),
        resources=[oci_resource("provider", "v0.9.0", image_name="provider", relation="local")],
        references=[component_reference("example.com/kubernetes", "v1.30.0")],
    )
    store.add(
        "example.com/root",
        "v1.0.0",
        references=[
            component_reference("example.com/gardener", "v1.0.0"),
            component_reference("example.com/extension", "v0.9.0"),
        ],
    )
    return store
