"""VRM avatar parser."""
from .glb_parser import GlbContainer, GlbParser
from .gltf_loader import DEFAULT_PROFILES, GltfLoader, decode_with_pygltflib
from .extension_reconciler import reconcile_extensions
from .vrm_extensions import detect_vrm_version, parse_vrm_extensions
from .vrm_metadata import extract_vrm_metadata
from .vrm_parser import VrmParser, extract_to_temp, extracted_copy
from .vrm_types import (
    DecodeProfile,
    SceneDocument,
    Vrm0Extension,
    Vrm1Extension,
    VrmMetadata,
    VrmParseResult,
)

__all__ = [
    "GlbContainer",
    "GlbParser",
    "DEFAULT_PROFILES",
    "GltfLoader",
    "decode_with_pygltflib",
    "reconcile_extensions",
    "detect_vrm_version",
    "parse_vrm_extensions",
    "extract_vrm_metadata",
    "VrmParser",
    "extract_to_temp",
    "extracted_copy",
    "DecodeProfile",
    "SceneDocument",
    "Vrm0Extension",
    "Vrm1Extension",
    "VrmMetadata",
    "VrmParseResult",
]
