"""Core data structures for ocmvector."""

from ocmvector.models.components import (
    ComponentReference,
    Dependency,
    Resource,
    ResourceType,
    RootMarker,
)
from ocmvector.models.config import OCMVectorConfig
from ocmvector.models.descriptor import (
    Access,
    BlobKey,
    Blobs,
    Descriptor,
    DescriptorReference,
    DescriptorResource,
    Label,
)
from ocmvector.models.imagevector import (
    DirectImage,
    ExtendedImageSource,
    ImageLabel,
    ImageSource,
    MappedImage,
    ReferencedImage,
)

__all__ = [
    "Access",
    "BlobKey",
    "Blobs",
    "ComponentReference",
    "Dependency",
    "Descriptor",
    "DescriptorReference",
    "DescriptorResource",
    "DirectImage",
    "ExtendedImageSource",
    "ImageLabel",
    "ImageSource",
    "Label",
    "MappedImage",
    "OCMVectorConfig",
    "ReferencedImage",
    "Resource",
    "ResourceType",
    "RootMarker",
]
