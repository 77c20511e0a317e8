"""Type definitions for VRM/GLB parsing."""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union


@dataclass(frozen=True)
class GlbHeader:
    """GLB file header."""

    magic: int
    version: int
    length: int


@dataclass(frozen=True)
class GlbChunk:
    """GLB chunk record."""

    length: int
    type: int
    data: bytes = b""


@dataclass(frozen=True)
class DecodeProfile:
    """Parameter set handed to the scene document decoder."""

    name: str
    validate: bool = False
    load_buffers: bool = True
    load_images: bool = False


@dataclass(frozen=True)
class DecodeAttempt:
    """Outcome of one decoder attempt, kept for diagnostics."""

    profile: str
    ok: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class SceneDocument:
    """Decoded glTF scene graph.

    Structured results keep the decoder's document in ``document``; degraded
    results are built from the raw JSON chunk and keep it in ``json``.
    """

    nodes: List[Any] = field(default_factory=list)
    meshes: List[Any] = field(default_factory=list)
    materials: List[Any] = field(default_factory=list)
    textures: List[Any] = field(default_factory=list)
    images: List[Any] = field(default_factory=list)
    buffers: List[Any] = field(default_factory=list)
    scenes: List[Any] = field(default_factory=list)
    animations: List[Any] = field(default_factory=list)
    extensions: Dict[str, Any] = field(default_factory=dict)
    document: Any = None
    json: Optional[Dict[str, Any]] = None
    degraded: bool = False
    profile: Optional[str] = None
    attempts: Tuple[DecodeAttempt, ...] = ()


@dataclass(frozen=True)
class Vrm0Extension:
    """Payload of the VRM 0.0 ``VRM`` extension."""

    meta: Dict[str, Any] = field(default_factory=dict)
    humanoid: Dict[str, Any] = field(default_factory=dict)
    first_person: Dict[str, Any] = field(default_factory=dict)
    blend_shape_master: Dict[str, Any] = field(default_factory=dict)
    secondary_animation: Dict[str, Any] = field(default_factory=dict)
    material_properties: List[Any] = field(default_factory=list)

    version = "0.0"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "meta": self.meta,
            "humanoid": self.humanoid,
            "firstPerson": self.first_person,
            "blendShapeMaster": self.blend_shape_master,
            "secondaryAnimation": self.secondary_animation,
            "materialProperties": self.material_properties,
        }


@dataclass(frozen=True)
class Vrm1Extension:
    """Payload of the VRM 1.0 ``VRMC_vrm`` extension."""

    spec_version: str = "1.0"
    meta: Dict[str, Any] = field(default_factory=dict)
    humanoid: Dict[str, Any] = field(default_factory=dict)
    first_person: Dict[str, Any] = field(default_factory=dict)
    expressions: Dict[str, Any] = field(default_factory=dict)
    look_at: Dict[str, Any] = field(default_factory=dict)
    spring_bone: Dict[str, Any] = field(default_factory=dict)
    material_properties: List[Any] = field(default_factory=list)

    version = "1.0"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "specVersion": self.spec_version,
            "meta": self.meta,
            "humanoid": self.humanoid,
            "firstPerson": self.first_person,
            "expressions": self.expressions,
            "lookAt": self.look_at,
            "springBone": self.spring_bone,
            "materialProperties": self.material_properties,
        }


VrmExtensionData = Union[Vrm0Extension, Vrm1Extension]


# Usage permission keys read from VRM 0.0 meta. The misspelling is part of the schema.
USAGE_PERMISSION_KEYS = (
    "allowedUserName",
    "violentUssageName",
    "sexualUssageName",
    "commercialUssageName",
)


@dataclass(frozen=True)
class VrmMetadata:
    """Unified VRM metadata.

    ``blend_shapes`` is only populated for VRM 0.0. ``expressions`` is a list
    of blend shape groups for 0.0 and a preset mapping for 1.0; consumers
    branch on ``version``.
    """

    version: str
    gltf_version: str = "unknown"
    format: str = "VRM"
    title: Optional[str] = None
    author: Optional[str] = None
    usage: Dict[str, Optional[str]] = field(default_factory=dict)
    humanoid_bones: Dict[str, Any] = field(default_factory=dict)
    blend_shapes: Optional[List[Any]] = None
    expressions: Union[List[Any], Dict[str, Any], None] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dict holding only the keys this version defines."""
        data = {
            "format": self.format,
            "version": self.version,
            "gltf_version": self.gltf_version,
        }
        if self.version not in ("0.0", "1.0"):
            return data

        data["title"] = self.title
        data["author"] = self.author
        for key in USAGE_PERMISSION_KEYS:
            data[key] = self.usage.get(key)
        data["humanoid_bones"] = self.humanoid_bones
        if self.version == "0.0":
            data["blend_shapes"] = self.blend_shapes
        data["expressions"] = self.expressions
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, ensure_ascii=False)


@dataclass(frozen=True)
class VrmParseResult:
    """Everything extracted from one VRM file."""

    gltf: SceneDocument
    vrm_extensions: VrmExtensionData
    metadata: VrmMetadata
    version: str
