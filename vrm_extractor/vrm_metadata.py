"""Normalize VRM 0.0 and 1.0 extension data into one metadata record."""
from collections.abc import Mapping
from typing import Any, Dict, Optional

from .vrm_extensions import get_or_default
from .vrm_types import (
    USAGE_PERMISSION_KEYS,
    Vrm0Extension,
    Vrm1Extension,
    VrmExtensionData,
    VrmMetadata,
)

VRM_FORMAT = "VRM"


def gltf_version(gltf_json: Optional[Dict[str, Any]]) -> str:
    """Return ``asset.version`` from glTF JSON, or "unknown"."""
    asset = (gltf_json or {}).get("asset")
    if not isinstance(asset, Mapping) or asset.get("version") is None:
        return "unknown"
    return str(asset["version"])


def _humanoid_bones(humanoid: Dict[str, Any]) -> Dict[str, Any]:
    return get_or_default(humanoid, "humanBones", {})


def _first_author(meta: Dict[str, Any]) -> Optional[str]:
    authors = get_or_default(meta, "authors", [])
    if not authors:
        return None
    first = authors[0]
    return first.get("name") if isinstance(first, dict) else None


def _vrm0_metadata(ext: Vrm0Extension, version: str) -> VrmMetadata:
    meta = ext.meta
    # 0.0 has a single blend shape structure serving as both blend shapes and expressions
    groups = get_or_default(ext.blend_shape_master, "blendShapeGroups", [])
    return VrmMetadata(
        format=VRM_FORMAT,
        version="0.0",
        gltf_version=version,
        title=meta.get("title"),
        author=meta.get("author"),
        usage={key: meta.get(key) for key in USAGE_PERMISSION_KEYS},
        humanoid_bones=_humanoid_bones(ext.humanoid),
        blend_shapes=groups,
        expressions=groups,
    )


def _vrm1_metadata(ext: Vrm1Extension, version: str) -> VrmMetadata:
    meta = ext.meta
    return VrmMetadata(
        format=VRM_FORMAT,
        version="1.0",
        gltf_version=version,
        title=meta.get("title"),
        author=_first_author(meta),
        usage={key: None for key in USAGE_PERMISSION_KEYS},
        humanoid_bones=_humanoid_bones(ext.humanoid),
        expressions=get_or_default(ext.expressions, "preset", {}),
    )


def extract_vrm_metadata(
    extension_data: Optional[VrmExtensionData],
    gltf_json: Optional[Dict[str, Any]] = None,
) -> VrmMetadata:
    """Build unified metadata from parsed VRM extension data.

    Args:
        extension_data: Result of parse_vrm_extensions, or None
        gltf_json: Source glTF JSON, used for ``asset.version``

    Returns:
        VrmMetadata; only base fields are set when the version is unknown
    """
    version = gltf_version(gltf_json)

    if isinstance(extension_data, Vrm0Extension):
        return _vrm0_metadata(extension_data, version)
    if isinstance(extension_data, Vrm1Extension):
        return _vrm1_metadata(extension_data, version)

    return VrmMetadata(format=VRM_FORMAT, version="unknown", gltf_version=version)
