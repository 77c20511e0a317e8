"""Scene document loading for VRM files.

Decoding goes through pygltflib with an ordered list of parameter profiles.
The first profile that decodes wins. When every profile fails, the JSON
chunk of the validated container is decoded and a degraded SceneDocument is
built from its top-level arrays only; buffers, scenes, animations and
cross-references are not resolved in that mode.
"""
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, Union

from pygltflib import GLTF2, ImageFormat
from pygltflib.validator import validate as validate_gltf

from .extension_reconciler import reconcile_extensions
from .glb_parser import GlbContainer, GlbParser
from .vrm_errors import DecodeAttemptsExhaustedError, VrmError
from .vrm_types import DecodeAttempt, DecodeProfile, SceneDocument

logger = logging.getLogger(__name__)

DEFAULT_PROFILES = (
    DecodeProfile("standard", validate=False, load_buffers=True, load_images=False),
    DecodeProfile("no_buffers", validate=False, load_buffers=False, load_images=False),
    DecodeProfile("with_validation", validate=True, load_buffers=True, load_images=False),
)

Decoder = Callable[[str, DecodeProfile], Any]


def decode_with_pygltflib(path: str, profile: DecodeProfile) -> GLTF2:
    """Decode a GLB file with pygltflib under the given profile.

    Args:
        path: Path to .vrm/.glb file
        profile: Decode parameters

    Returns:
        Loaded GLTF2 document

    Raises:
        ValueError: If buffers are required but the binary chunk is missing
        Exception: Whatever pygltflib raises for unreadable or invalid data
    """
    gltf = GLTF2().load_binary(path)
    if gltf is None:
        raise ValueError(f"pygltflib returned no document for {path}")

    if profile.load_buffers:
        embedded = [b for b in gltf.buffers if b.uri is None]
        if embedded and not gltf.binary_blob():
            raise ValueError(
                f"{len(embedded)} buffer(s) reference the binary chunk but none was loaded"
            )

    if profile.load_images and gltf.images:
        gltf.convert_images(ImageFormat.DATAURI)

    if profile.validate:
        validate_gltf(gltf)

    return gltf


def _as_list(value: Any) -> List[Any]:
    """Return a list or tuple as a list; anything else becomes an empty list."""
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


class GltfLoader:
    """Loads a SceneDocument from a VRM/GLB file with retries and a JSON fallback."""

    def __init__(
        self,
        decoder: Optional[Decoder] = None,
        profiles: Sequence[DecodeProfile] = DEFAULT_PROFILES,
        parser: Optional[GlbParser] = None,
    ):
        """Initialize loader.

        Args:
            decoder: Callable decoding (path, profile) into a document;
                defaults to pygltflib
            profiles: Profiles to try, in order
            parser: Container parser used for pre-validation and fallback
        """
        self.decoder = decoder or decode_with_pygltflib
        self.profiles = tuple(profiles)
        self.parser = parser or GlbParser()

    def load(
        self, path: Union[str, Path], container: Optional[GlbContainer] = None
    ) -> SceneDocument:
        """Load the scene document for a VRM file.

        Args:
            path: Path to .vrm/.glb file
            container: Already validated container for ``path``; read and
                validated here when omitted

        Returns:
            Structured SceneDocument, or a degraded one if every profile failed

        Raises:
            VrmIOError: If the file cannot be read
            MalformedContainerError: If GLB pre-validation fails
            DecodeAttemptsExhaustedError: If decoding and the JSON fallback
                both failed
        """
        path = os.fspath(path)
        if container is None:
            container = self.parser.validate_file(path)

        attempts: List[DecodeAttempt] = []
        last_error: Optional[BaseException] = None

        for profile in self.profiles:
            logger.debug("Attempting glTF decode (%s): %s", profile.name, profile)
            try:
                document = self.decoder(path, profile)
            except Exception as e:
                logger.warning("glTF decode failed with %s: %s", profile.name, e)
                attempts.append(DecodeAttempt(profile=profile.name, ok=False, error=str(e)))
                last_error = e
                continue

            logger.info("glTF decode succeeded with %s parameters", profile.name)
            attempts.append(DecodeAttempt(profile=profile.name, ok=True))
            return self._from_document(document, profile.name, tuple(attempts))

        self._log_failure(path, last_error)
        return self._fallback(container, last_error, tuple(attempts))

    def _from_document(self, document: Any, profile: str, attempts) -> SceneDocument:
        """Build a structured SceneDocument from a decoded document."""
        extensions = reconcile_extensions(document)
        scene = SceneDocument(
            nodes=_as_list(getattr(document, "nodes", None)),
            meshes=_as_list(getattr(document, "meshes", None)),
            materials=_as_list(getattr(document, "materials", None)),
            textures=_as_list(getattr(document, "textures", None)),
            images=_as_list(getattr(document, "images", None)),
            buffers=_as_list(getattr(document, "buffers", None)),
            scenes=_as_list(getattr(document, "scenes", None)),
            animations=_as_list(getattr(document, "animations", None)),
            extensions=extensions,
            document=document,
            profile=profile,
            attempts=attempts,
        )
        logger.debug("Extensions: %s", sorted(extensions))
        return scene

    def _log_failure(self, path: str, error: Optional[BaseException]):
        logger.error("glTF decoding failed for: %s", path)
        logger.error("  Error: %s", error)
        try:
            logger.error("  File size: %d bytes", os.path.getsize(path))
        except OSError as e:
            logger.error("  Could not stat file: %s", e)

    def _fallback(
        self, container: GlbContainer, error: Optional[BaseException], attempts
    ) -> SceneDocument:
        """Build a degraded SceneDocument from the raw JSON chunk.

        Top-level collections that are not JSON arrays come back empty, and a
        non-object ``extensions`` comes back as ``{}``.
        """
        logger.warning("Falling back to basic JSON parsing")
        logger.warning("This is a degraded mode - VRM extensions may not be fully parsed")

        try:
            gltf_json = container.json_chunk()
        except VrmError as e:
            logger.error("Fallback JSON parsing also failed: %s", e)
            raise DecodeAttemptsExhaustedError(
                f"Both glTF decoding and JSON parsing failed. Decoder error: {error!r}",
                last_error=error,
            ) from e

        logger.info("Basic JSON parsing succeeded")
        extensions = gltf_json.get("extensions")
        if not isinstance(extensions, Mapping):
            if extensions is not None:
                logger.warning(
                    "Ignoring top-level extensions of type %s", type(extensions).__name__
                )
            extensions = {}
        return SceneDocument(
            nodes=_as_list(gltf_json.get("nodes")),
            meshes=_as_list(gltf_json.get("meshes")),
            materials=_as_list(gltf_json.get("materials")),
            textures=_as_list(gltf_json.get("textures")),
            images=_as_list(gltf_json.get("images")),
            buffers=_as_list(gltf_json.get("buffers")),
            extensions=dict(extensions),
            json=gltf_json,
            degraded=True,
            attempts=attempts,
        )
