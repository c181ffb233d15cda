"""Component repository access.

The OCI transport itself (authentication, manifest and blob fetch) is not part
of ocmvector.  Anything able to return a component descriptor and the bytes of
a local resource satisfies ``ComponentRepository``.  ``DirectoryRepository``
serves descriptors that were previously archived to disk, one JSON document
per component version named by ``ComponentReference.to_filename``.
"""

from __future__ import annotations

import asyncio
import json
import os
from typing import Protocol

import structlog

from ocmvector.errors import DescriptorError, OCMVectorError
from ocmvector.models.components import ComponentReference
from ocmvector.models.descriptor import Blobs, Descriptor, DescriptorResource

_log = structlog.get_logger(component="registry.repository")

_BLOB_DIR = "blobs"


class ComponentNotFoundError(OCMVectorError):
    """A component version is not available in a repository."""

    def __init__(self, name: str, version: str, detail: str = "") -> None:
        message = f"component version {name}:{version} not found"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.name = name
        self.version = version


class ComponentRepository(Protocol):
    """Source of component descriptors and their local resource blobs."""

    @property
    def url(self) -> str: ...

    async def get_component_version(self, name: str, version: str) -> Descriptor: ...

    async def get_local_resource(self, name: str, version: str, resource: DescriptorResource) -> bytes: ...


class DirectoryRepository:
    """Repository backed by a directory of OCM v2 JSON descriptors.

    Local blobs live in ``blobs/`` as ``<component file stem>/<resource>-<version>-<type>``
    with ``/`` replaced by ``_``.
    """

    def __init__(self, directory: str) -> None:
        self._directory = directory

    @property
    def url(self) -> str:
        return f"file://{os.path.abspath(self._directory)}"

    async def get_component_version(self, name: str, version: str) -> Descriptor:
        filename = ComponentReference(name=name, version=version).to_filename(self._directory)
        try:
            data = await asyncio.to_thread(_read_json, filename)
        except FileNotFoundError as exc:
            raise ComponentNotFoundError(name, version, f"no descriptor at {filename}") from exc
        except json.JSONDecodeError as exc:
            raise DescriptorError(f"descriptor {filename} is not valid JSON: {exc}") from exc
        return Descriptor.from_dict(data)

    async def get_local_resource(self, name: str, version: str, resource: DescriptorResource) -> bytes:
        path = self.blob_path(ComponentReference(name=name, version=version), resource)
        try:
            return await asyncio.to_thread(_read_bytes, path)
        except FileNotFoundError as exc:
            raise DescriptorError(
                f"failed to get local resource {resource.name} of component version {name}:{version} from {self.url}"
            ) from exc

    def blob_path(self, cref: ComponentReference, resource: DescriptorResource) -> str:
        stem = os.path.splitext(os.path.basename(cref.to_filename(self._directory)))[0]
        flat = f"{resource.name}-{resource.version}-{resource.type}".replace("/", "_")
        return os.path.join(self._directory, _BLOB_DIR, stem, flat)


def _read_json(filename: str) -> dict[str, object]:
    with open(filename, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise DescriptorError(f"descriptor {filename} must be a JSON object")
    return data


def _read_bytes(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


async def _load_local_blobs(
    repo: ComponentRepository,
    descriptor: Descriptor,
    local_blob_types: tuple[str, ...],
) -> Blobs:
    blobs: Blobs = {}
    for resource in descriptor.resources:
        if resource.type not in local_blob_types:
            continue
        blobs[resource.blob_key()] = await repo.get_local_resource(descriptor.name, descriptor.version, resource)
    return blobs


async def find_component_version(
    repositories: list[ComponentRepository],
    name: str,
    version: str,
    *local_blob_types: str,
) -> tuple[Descriptor, Blobs]:
    """Look up a component version in *repositories*, first hit wins.

    Local blobs are loaded for every resource whose type is listed in
    *local_blob_types*.  A blob failure in the repository holding the
    descriptor is not retried elsewhere.
    """
    errors: list[str] = []
    for repo in repositories:
        try:
            descriptor = await repo.get_component_version(name, version)
        except OCMVectorError as exc:
            errors.append(f"repository {repo.url}: {exc}")
            continue
        try:
            blobs = await _load_local_blobs(repo, descriptor, local_blob_types)
        except OCMVectorError as exc:
            raise DescriptorError(
                f"failed to load local blobs for component version {name}:{version} from repository {repo.url}: {exc}"
            ) from exc
        return descriptor, blobs

    _log.info("component version not found in any repository", component=f"{name}:{version}", details=errors)
    raise ComponentNotFoundError(name, version, "; ".join(errors) or "no repositories configured")
