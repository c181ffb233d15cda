"""Output artifacts written after a walk.

Per component: image vector and resource list as indented JSON files named by
``ComponentReference.to_filename``.  For the whole graph: the component
inventory as ``component-list.yaml``.
"""

from __future__ import annotations

import json
import os
from typing import Any

import yaml

from ocmvector.models.components import ComponentReference, Resource
from ocmvector.models.imagevector import ImageSource

_FILE_MODE = 0o600
_DIR_MODE = 0o700


class _ComponentListDumper(yaml.SafeDumper):
    """Dumper that writes every scalar as a plain string where YAML allows it.

    Without implicit resolvers a version such as ``1.30`` no longer looks like
    a float, so it is emitted unquoted.
    """

    yaml_implicit_resolvers: dict[str | None, list[tuple[str, object]]] = {}


def dump_component_list_yaml(inventory: dict[str, list[str]]) -> str:
    """Render ``{name: [versions]}`` as a ``components:`` YAML list.

    Versions are written in flow style, e.g. ``versions: [1.30, v1.1.0]``.
    """
    document = {"components": [{"name": name, "versions": versions} for name, versions in inventory.items()]}
    return yaml.dump(document, Dumper=_ComponentListDumper, default_flow_style=None, sort_keys=False)


def write_object(directory: str, cref: ComponentReference, obj: dict[str, Any]) -> str:
    """Write *obj* as JSON to *directory* and return the file name."""
    os.makedirs(directory, mode=_DIR_MODE, exist_ok=True)
    filename = cref.to_filename(directory)
    _write_file(filename, json.dumps(obj, indent=2))
    return filename


def write_image_vector(directory: str, cref: ComponentReference, images: list[ImageSource]) -> str | None:
    if not images:
        return None
    return write_object(directory, cref, {"images": [img.to_dict() for img in images]})


def write_resources(directory: str, cref: ComponentReference, resources: list[Resource]) -> str | None:
    if not resources:
        return None
    return write_object(directory, cref, {"resources": [res.to_dict() for res in resources]})


def write_component_list(filename: str, inventory: dict[str, list[str]]) -> None:
    _write_file(filename, dump_component_list_yaml(inventory))


def _write_file(filename: str, content: str) -> None:
    fd = os.open(filename, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, _FILE_MODE)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(content)
