"""VRM file parser.

VRM files are GLB (binary glTF) files whose JSON chunk carries VRM
extensions at the root:
- VRM 0.0: ``extensions.VRM``
- VRM 1.0: ``extensions.VRMC_vrm``

Usage:
    parser = VrmParser()
    result = parser.parse_vrm("model.vrm")
    result.version            # "0.0" or "1.0"
    result.metadata.title
    result.gltf.nodes

    with extracted_copy("model.vrm") as glb_path:
        ...  # hand glb_path to a converter; the copy is removed afterwards
"""
import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Tuple, Union

from .glb_parser import GlbParser
from .gltf_loader import GltfLoader
from .vrm_errors import VrmIOError
from .vrm_extensions import detect_vrm_version, parse_vrm_extensions
from .vrm_metadata import extract_vrm_metadata
from .vrm_types import SceneDocument, VrmParseResult

logger = logging.getLogger(__name__)


class VrmParser:
    """Parses VRM files into scene data, extension data and metadata."""

    def __init__(self, loader: Optional[GltfLoader] = None, parser: Optional[GlbParser] = None):
        self.parser = parser or GlbParser()
        self.loader = loader or GltfLoader(parser=self.parser)

    def parse_vrm(self, vrm_path: Union[str, Path]) -> VrmParseResult:
        """Parse a VRM file.

        Args:
            vrm_path: Path to VRM file

        Returns:
            VrmParseResult with gltf, vrm_extensions, metadata and version

        Raises:
            VrmIOError: If the file cannot be read
            MalformedContainerError: If the GLB container is invalid
            VrmJsonDecodeError: If the JSON chunk is not valid JSON
            DecodeAttemptsExhaustedError: If the scene document cannot be loaded
            NoVrmExtensionError: If the file has no VRM extension
        """
        logger.info("Starting VRM parse for: %s", vrm_path)

        container = self.parser.parse_file(vrm_path)
        gltf_json = container.json_chunk()
        logger.info("GLB JSON chunk extracted (%d top-level keys)", len(gltf_json))

        gltf = self.loader.load(vrm_path, container=container)
        logger.info(
            "glTF loaded%s: %d nodes, %d meshes, %d materials",
            " (degraded)" if gltf.degraded else "",
            len(gltf.nodes),
            len(gltf.meshes),
            len(gltf.materials),
        )

        extensions = gltf_json.get("extensions")
        vrm_extensions = parse_vrm_extensions(extensions)
        metadata = extract_vrm_metadata(vrm_extensions, gltf_json)
        version = detect_vrm_version(extensions)

        logger.info("VRM metadata extracted: version %s", version)
        logger.debug("  Humanoid bones: %d", len(metadata.humanoid_bones))
        if metadata.blend_shapes is not None:
            logger.debug("  Blend shapes: %d", len(metadata.blend_shapes))
        if metadata.expressions is not None:
            logger.debug("  Expressions: %d", len(metadata.expressions))

        return VrmParseResult(
            gltf=gltf,
            vrm_extensions=vrm_extensions,
            metadata=metadata,
            version=version,
        )

    def extract_gltf(self, vrm_path: Union[str, Path]) -> SceneDocument:
        """Load the scene document without parsing VRM extensions."""
        return self.loader.load(vrm_path)


def extract_to_temp(vrm_path: Union[str, Path]) -> Tuple[str, str]:
    """Copy a VRM file into a fresh temporary directory.

    The caller is responsible for removing the directory.

    Args:
        vrm_path: Path to VRM file

    Returns:
        (tmpdir, glb_path) tuple

    Raises:
        VrmIOError: If the source is missing or the copy fails
    """
    vrm_path = Path(vrm_path)
    if not vrm_path.is_file():
        raise VrmIOError(f"VRM file not found: {vrm_path}")

    tmpdir = tempfile.mkdtemp(prefix="vrm_extract_")
    glb_path = os.path.join(tmpdir, vrm_path.name)
    try:
        shutil.copyfile(vrm_path, glb_path)
    except OSError as e:
        shutil.rmtree(tmpdir, ignore_errors=True)
        raise VrmIOError(f"Failed to copy VRM GLB file: {e}") from e

    logger.debug("Copied %s to %s", vrm_path, glb_path)
    return tmpdir, glb_path


@contextmanager
def extracted_copy(vrm_path: Union[str, Path]) -> Iterator[str]:
    """Yield a temporary copy of a VRM file, removing it on exit."""
    tmpdir, glb_path = extract_to_temp(vrm_path)
    try:
        yield glb_path
    finally:
        shutil.rmtree(tmpdir, ignore_errors=True)
