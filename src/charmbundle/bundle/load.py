"""Top-level functions to load bundles."""

import hashlib
import logging
import os
from pathlib import Path
from typing import IO, Any

import yaml
from voluptuous import All
from voluptuous import Any as AnyOf
from voluptuous import Invalid, Required, Schema

from charmbundle.bundle.data import BundleData, MachineSpec, ServiceSpec
from charmbundle.common.config import MAX_BUNDLE_SIZE

__author__ = "ft"

logger = logging.getLogger(__name__)


class BundleFormatError(Exception):
    """The bundle document could not be decoded."""

    pass


def _scalar_to_str(value: Any) -> str:
    """Annotation values are strings, even if they were decoded as something else."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


_STR_TAG = "tag:yaml.org,2002:str"
_RETAGGED = (
    "tag:yaml.org,2002:bool",
    "tag:yaml.org,2002:float",
    "tag:yaml.org,2002:int",
)


class BundleLoader(yaml.SafeLoader):
    """
    Safe YAML loader keeping the source text of machine ids, placements and annotations.

    YAML 1.1 resolves unquoted scalars such as 010, 0x10 or yes to 8, 16 and True.
    Those fields are strings in a bundle, so they are constructed from the text the
    author wrote. Otherwise the machine id 010 would silently become the valid "8".
    """

    def construct_document(self, node: yaml.Node) -> Any:
        if isinstance(node, yaml.MappingNode):
            _keep_source_text(node)
        return super().construct_document(node)


def _mapping_items(node: yaml.Node) -> list[tuple[yaml.Node, yaml.Node]]:
    if isinstance(node, yaml.MappingNode):
        return node.value
    return []


def _retag(node: yaml.Node) -> None:
    if isinstance(node, yaml.ScalarNode) and node.tag in _RETAGGED:
        node.tag = _STR_TAG


def _retag_annotations(node: yaml.Node) -> None:
    for key, value in _mapping_items(node):
        if key.value == "annotations":
            for _name, this in _mapping_items(value):
                _retag(this)


def _keep_source_text(root: yaml.MappingNode) -> None:
    for section, body in _mapping_items(root):
        if section.value == "machines":
            for machine_id, machine in _mapping_items(body):
                _retag(machine_id)
                _retag_annotations(machine)
        elif section.value == "services":
            for _name, service in _mapping_items(body):
                _retag_annotations(service)
                for key, value in _mapping_items(service):
                    if key.value == "to" and isinstance(value, yaml.SequenceNode):
                        for this in value.value:
                            _retag(this)


SCALAR = AnyOf(str, int, float, bool)
ANNOTATIONS_SCHEMA = Schema({str: All(SCALAR, _scalar_to_str)})

MACHINE_SCHEMA = Schema(
    AnyOf(
        None,
        {
            "constraints": str,
            "annotations": ANNOTATIONS_SCHEMA,
        },
    )
)

SERVICE_SCHEMA = Schema(
    {
        Required("charm"): str,
        "num_units": int,
        "to": [All(AnyOf(str, int), _scalar_to_str)],
        "options": AnyOf(None, {str: AnyOf(None, SCALAR)}),
        "annotations": ANNOTATIONS_SCHEMA,
        "constraints": str,
    }
)

BUNDLE_SCHEMA = Schema(
    {
        "series": str,
        "services": AnyOf(None, {str: SERVICE_SCHEMA}),
        "machines": AnyOf(None, {AnyOf(str, int): MACHINE_SCHEMA}),
        "relations": AnyOf(None, [[str]]),
    }
)


def load_bundle(filename: Path | str, max_size: int = MAX_BUNDLE_SIZE) -> BundleData:
    """Load a bundle from a YAML (or JSON) file."""
    with open(filename, "rb") as fd:
        file_size = os.fstat(fd.fileno()).st_size
        if file_size > max_size:
            raise BundleFormatError(
                f"Bundle {filename} exceeds maximum size of {max_size} bytes"
            )
        # impose upper limit on how much memory/CPU can be spent loading a file
        data = fd.read(max_size)
    logger.info(
        "Loaded bundle from file %s SHA-256 %s", filename, hashlib.sha256(data).hexdigest()
    )
    try:
        return bundle_from_yaml(data.decode())
    except UnicodeDecodeError as exc:
        raise BundleFormatError(f"Bundle {filename} is not valid UTF-8: {exc}") from exc


def bundle_from_yaml(stream: str | IO[str]) -> BundleData:
    """Parse a YAML document into a BundleData instance. JSON is valid YAML too."""
    try:
        data = yaml.load(stream, Loader=BundleLoader)
    except yaml.YAMLError as exc:
        raise BundleFormatError(f"Failed parsing bundle: {exc}") from exc
    if data is None:
        # empty document
        data = {}
    return bundle_from_dict(data)


def bundle_from_dict(data: dict[str, Any]) -> BundleData:
    """
    Validate the structure of a decoded bundle and return a BundleData instance.

    Machine ids and unit placements given as integers by the caller (e.g. "to": [0])
    are turned into strings, as are all annotation values. Documents parsed with
    bundle_from_yaml already carry their source text for these.
    """
    try:
        _data = BUNDLE_SCHEMA(data)
    except Invalid as exc:
        raise BundleFormatError(f"Invalid bundle: {exc}") from exc

    services = {
        name: ServiceSpec(**{k: v for k, v in spec.items() if v is not None})
        for name, spec in (_data.get("services") or {}).items()
    }
    machines = {
        str(machine_id): MachineSpec(**(spec or {}))
        for machine_id, spec in (_data.get("machines") or {}).items()
    }
    return BundleData(
        series=_data.get("series", ""),
        services=services,
        machines=machines,
        relations=_data.get("relations") or [],
    )
