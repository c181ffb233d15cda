"""Exception hierarchy for ocmvector.

Configuration errors are fatal: the input data is inconsistent and no useful
partial result exists.  Descriptor errors are raised while merging a single
component and are recoverable at the walk level.  Resolution errors concern
one requested component and leave the graph usable for every other one.
"""

from __future__ import annotations


class OCMVectorError(Exception):
    """Base class for all errors raised by ocmvector."""


class ConfigurationError(OCMVectorError):
    """Input data is internally inconsistent (e.g. two application components)."""


class InvalidComponentReferenceError(ConfigurationError, ValueError):
    """A component reference is not of the form ``name:version``."""

    def __init__(self, value: str) -> None:
        super().__init__(f"invalid component reference format: {value!r}")
        self.value = value


class DescriptorError(OCMVectorError):
    """A fetched component descriptor cannot be converted into the graph model."""


class MissingLocalBlobError(DescriptorError):
    """A resource requires a pre-fetched local blob that was not supplied."""

    def __init__(self, name: str, version: str, resource_type: str) -> None:
        super().__init__(f"could not find local blob for resource {name}:{version} of type {resource_type}")
        self.name = name
        self.version = version
        self.resource_type = resource_type


class ImageResolutionError(OCMVectorError):
    """An image vector indirection could not be resolved."""
