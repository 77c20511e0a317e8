"""String attributes handed to the scene export step.

The exporter stores these on the root of the converted scene and declares
them through the ``VrmAPI`` applied schema, so VRM data survives conversion
and can be read back later.
"""
import json
from typing import Any, Dict, Iterable, Mapping

from .vrm_errors import VrmAttributeError
from .vrm_types import VrmParseResult

VRM_API_SCHEMA = "VrmAPI"
SOURCE_FORMAT = "VRM"

ATTR_VERSION = "vrm:version"
ATTR_EXTENSIONS = "vrm:extensions"
ATTR_METADATA = "vrm:metadata"
ATTR_SOURCE_FORMAT = "vrm:sourceFormat"


def _dumps(data: Any) -> str:
    return json.dumps(data, sort_keys=True, ensure_ascii=False)


def to_vrm_attributes(result: VrmParseResult) -> Dict[str, str]:
    """Build the four ``vrm:*`` attribute values for a parse result."""
    return {
        ATTR_VERSION: result.version,
        ATTR_EXTENSIONS: _dumps(result.vrm_extensions.to_dict()),
        ATTR_METADATA: _dumps(result.metadata.to_dict()),
        ATTR_SOURCE_FORMAT: SOURCE_FORMAT,
    }


def from_vrm_attributes(attributes: Mapping[str, Any], api_schemas: Iterable[str]) -> Dict[str, Any]:
    """Read VRM data back from exported attributes.

    Args:
        attributes: Attribute name to value mapping from the scene root
        api_schemas: Applied schema names on the scene root

    Returns:
        Dict with version, vrm_extensions, metadata and has_vrm_data

    Raises:
        VrmAttributeError: If the schema or attributes are missing, or the
            JSON payloads cannot be decoded
    """
    if isinstance(api_schemas, str):
        api_schemas = [api_schemas]
    if VRM_API_SCHEMA not in list(api_schemas or []):
        raise VrmAttributeError("Scene does not contain VRM schema data")

    missing = [
        name for name in (ATTR_VERSION, ATTR_EXTENSIONS, ATTR_METADATA)
        if attributes.get(name) is None
    ]
    if missing:
        raise VrmAttributeError(f"VRM schema attributes not found on root: {', '.join(missing)}")

    try:
        extensions = json.loads(attributes[ATTR_EXTENSIONS]) if attributes[ATTR_EXTENSIONS] else {}
        metadata = json.loads(attributes[ATTR_METADATA]) if attributes[ATTR_METADATA] else {}
    except ValueError as e:
        raise VrmAttributeError(f"Failed to parse VRM JSON data: {e}") from e

    return {
        "version": attributes[ATTR_VERSION] or "unknown",
        "vrm_extensions": extensions,
        "metadata": metadata,
        "has_vrm_data": True,
    }
