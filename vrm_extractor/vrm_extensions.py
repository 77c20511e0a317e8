"""VRM extension detection and parsing.

VRM files carry their avatar data in glTF root extensions:
- VRM 0.0: ``extensions.VRM``
- VRM 1.0: ``extensions.VRMC_vrm``

When both are present the 1.0 extension wins.
"""
from collections.abc import Mapping
from typing import Any, Optional

from .vrm_errors import NoVrmExtensionError
from .vrm_types import Vrm0Extension, Vrm1Extension, VrmExtensionData

VRM0_EXTENSION = "VRM"
VRM1_EXTENSION = "VRMC_vrm"


def _root_extensions(extensions: Any) -> Mapping:
    return extensions if isinstance(extensions, Mapping) else {}


def get_or_default(mapping: Mapping, key: str, default: Any) -> Any:
    """Return ``mapping[key]``, or ``default`` when it is absent or null."""
    value = mapping.get(key)
    return default if value is None else value


def detect_vrm_version(extensions: Optional[Mapping]) -> str:
    """Return "1.0", "0.0" or "unknown" for a root extensions mapping."""
    extensions = _root_extensions(extensions)
    if VRM1_EXTENSION in extensions:
        return "1.0"
    if VRM0_EXTENSION in extensions:
        return "0.0"
    return "unknown"


def _expect_mapping(value: Any, name: str) -> Mapping:
    if not isinstance(value, Mapping):
        raise TypeError(f"{name} extension must be an object, got {type(value).__name__}")
    return value


def parse_vrm_0_0_extension(vrm_ext: Mapping) -> Vrm0Extension:
    """Extract the VRM 0.0 fields, defaulting absent ones to empty."""
    vrm_ext = _expect_mapping(vrm_ext, VRM0_EXTENSION)
    return Vrm0Extension(
        meta=get_or_default(vrm_ext, "meta", {}),
        humanoid=get_or_default(vrm_ext, "humanoid", {}),
        first_person=get_or_default(vrm_ext, "firstPerson", {}),
        blend_shape_master=get_or_default(vrm_ext, "blendShapeMaster", {}),
        secondary_animation=get_or_default(vrm_ext, "secondaryAnimation", {}),
        material_properties=get_or_default(vrm_ext, "materialProperties", []),
    )


def parse_vrm_1_0_extension(vrmc_ext: Mapping) -> Vrm1Extension:
    """Extract the VRM 1.0 fields, defaulting absent ones to empty."""
    vrmc_ext = _expect_mapping(vrmc_ext, VRM1_EXTENSION)
    return Vrm1Extension(
        spec_version=get_or_default(vrmc_ext, "specVersion", "1.0"),
        meta=get_or_default(vrmc_ext, "meta", {}),
        humanoid=get_or_default(vrmc_ext, "humanoid", {}),
        first_person=get_or_default(vrmc_ext, "firstPerson", {}),
        expressions=get_or_default(vrmc_ext, "expressions", {}),
        look_at=get_or_default(vrmc_ext, "lookAt", {}),
        spring_bone=get_or_default(vrmc_ext, "springBone", {}),
        material_properties=get_or_default(vrmc_ext, "materialProperties", []),
    )


def parse_vrm_extensions(extensions: Optional[Mapping]) -> VrmExtensionData:
    """Classify and parse the VRM extension in a root extensions mapping.

    Args:
        extensions: ``extensions`` object from the glTF JSON; anything that
            is not an object is treated as empty

    Returns:
        Vrm1Extension or Vrm0Extension, tagged by ``version``

    Raises:
        NoVrmExtensionError: If neither VRM extension is present
    """
    extensions = _root_extensions(extensions)
    version = detect_vrm_version(extensions)

    if version == "1.0":
        return parse_vrm_1_0_extension(extensions[VRM1_EXTENSION])
    if version == "0.0":
        return parse_vrm_0_0_extension(extensions[VRM0_EXTENSION])

    raise NoVrmExtensionError(
        f"No VRM extensions found in glTF (keys: {sorted(extensions)})"
    )
