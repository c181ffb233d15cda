"""Writers for image vectors, resource lists and the component inventory."""

from ocmvector.output.writer import (
    dump_component_list_yaml,
    write_component_list,
    write_image_vector,
    write_object,
    write_resources,
)

__all__ = [
    "dump_component_list_yaml",
    "write_component_list",
    "write_image_vector",
    "write_object",
    "write_resources",
]
