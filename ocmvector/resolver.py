"""Resolve an OCM component tree and write its derived artifacts.

Drives one run end to end:

    repositories → walk (fetch + merge) → image vectors / resources
                 → component-list.yaml

Each run starts from an empty graph.  A walk with failed expansions still
produces output for every component that could be merged; the failures are
re-raised after the output has been written.
"""

from __future__ import annotations

import asyncio
import json
import os

import structlog

from ocmvector.errors import ConfigurationError, ImageResolutionError, OCMVectorError
from ocmvector.graph import ComponentGraph
from ocmvector.models.components import ComponentReference, ResourceType
from ocmvector.models.config import OCMVectorConfig
from ocmvector.output import write_component_list, write_image_vector, write_resources
from ocmvector.registry import ComponentRepository, DirectoryRepository, find_component_version
from ocmvector.walk import ComponentWalker, WalkError

_log = structlog.get_logger(component="resolver")

_DESCRIPTORS_DIR = "descriptors"
_IMAGEVECTORS_DIR = "imagevectors"
_RESOURCES_DIR = "resources"
_COMPONENT_LIST = "component-list.yaml"


class ResolveError(OCMVectorError):
    """The run finished but some artifacts could not be produced."""

    def __init__(self, errors: list[OCMVectorError]) -> None:
        super().__init__("; ".join(str(err) for err in errors))
        self.errors = errors


def build_repositories(urls: list[str]) -> list[ComponentRepository]:
    """Create repository accessors for the configured repository locations."""
    repos: list[ComponentRepository] = []
    for url in urls:
        path = url.removeprefix("file://")
        if not os.path.isdir(path):
            raise ConfigurationError(f"repository {url!r} is not a local descriptor directory")
        repos.append(DirectoryRepository(path))
    return repos


class ComponentResolver:
    """Walks the component tree of one root and writes the results."""

    def __init__(
        self,
        config: OCMVectorConfig,
        repositories: list[ComponentRepository],
        graph: ComponentGraph | None = None,
    ) -> None:
        self.config = config
        self.repositories = repositories
        self.graph = graph or ComponentGraph()
        self._output_dir = config.output.directory
        self._walker = ComponentWalker(self._expand, workers=config.walker.workers)

    def stop(self) -> None:
        self._walker.stop()

    async def resolve(self) -> None:
        """Run the walk and write all outputs.

        Raises:
            ConfigurationError: invalid root or inconsistent component data.
            WalkError: some components could not be fetched or merged.
            ResolveError: some image vectors could not be resolved.
        """
        root = ComponentReference.parse(self.config.ocm.root_component)
        for repo in self.repositories:
            _log.info("using repository", url=repo.url)
        os.makedirs(os.path.join(self._output_dir, _DESCRIPTORS_DIR), mode=0o700, exist_ok=True)

        walk_error: WalkError | None = None
        try:
            await self._walker.walk(root)
            _log.info("finished walking components", count=self.graph.component_count())
        except WalkError as exc:
            _log.error("walk incomplete", count=self.graph.component_count(), failed=len(exc.errors))
            walk_error = exc

        errors: list[OCMVectorError] = []
        if self.config.output.debug:
            _log.info("debug mode is enabled, writing image vectors and resources")
            errors.extend(self.write_image_vectors())
            self.write_component_resources()
        self.write_component_list()

        if walk_error is not None:
            raise walk_error
        if errors:
            raise ResolveError(errors)

    async def _expand(self, cref: ComponentReference) -> list[ComponentReference]:
        descriptor, blobs = await find_component_version(
            self.repositories,
            cref.name,
            cref.version,
            ResourceType.HELM_CHART_IMAGE_MAP,
        )
        _log.info("processing component", component=str(cref))
        if descriptor.raw:
            filename = cref.to_filename(os.path.join(self._output_dir, _DESCRIPTORS_DIR))
            await asyncio.to_thread(_write_json, filename, descriptor.raw)
        return self.graph.merge_descriptor_and_discover_edges(descriptor, blobs)

    def write_image_vectors(self) -> list[OCMVectorError]:
        """Write every non-empty image vector; return the resolution failures."""
        directory = os.path.join(self._output_dir, _IMAGEVECTORS_DIR)
        failures: list[OCMVectorError] = []
        for cref in self.graph.sorted_components():
            try:
                images = self.graph.image_vector(cref, self.config.ocm.original_refs)
            except ImageResolutionError as exc:
                _log.error("failed to get image vector", component=str(cref), error=str(exc))
                failures.append(ImageResolutionError(f"component {cref}: {exc}"))
                continue
            if write_image_vector(directory, cref, images):
                _log.info("wrote image vector", component=str(cref), image_count=len(images))
        return failures

    def write_component_resources(self) -> None:
        directory = os.path.join(self._output_dir, _RESOURCES_DIR)
        for cref in self.graph.sorted_components():
            resources = self.graph.resources(cref)
            if write_resources(directory, cref, resources):
                _log.info("wrote resources", component=str(cref), resource_count=len(resources))

    def write_component_list(self) -> str:
        filename = os.path.join(self._output_dir, _COMPONENT_LIST)
        write_component_list(filename, self.graph.component_inventory())
        _log.info("wrote component list", file=filename)
        return filename


def _write_json(filename: str, data: object) -> None:
    with open(filename, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
