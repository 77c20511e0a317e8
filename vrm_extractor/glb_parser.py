"""Parser for GLB (binary glTF) containers."""
import json
import logging
import struct
from pathlib import Path
from typing import Any, Dict, Iterator, List, Union

from .vrm_errors import (
    BadMagicError,
    FirstChunkNotJsonError,
    LengthMismatchError,
    MalformedChunkStreamError,
    TooShortError,
    TruncatedChunkHeaderError,
    UnsupportedVersionError,
    VrmIOError,
    VrmJsonDecodeError,
)
from .vrm_types import GlbChunk, GlbHeader

logger = logging.getLogger(__name__)

GLB_MAGIC = 0x46546C67  # "glTF" little-endian
GLB_VERSION = 2
CHUNK_TYPE_JSON = 0x4E4F534A  # "JSON"
CHUNK_TYPE_BIN = 0x004E4942  # "BIN\0"

HEADER_SIZE = 12
CHUNK_HEADER_SIZE = 8


class GlbContainer:
    """Validated GLB buffer.

    The container owns the buffer; chunks handed out are copies of their
    slice.
    """

    def __init__(self, header: GlbHeader, data: bytes, json_length: int):
        self.header = header
        self.data = data
        self.json_length = json_length

    def chunks(self) -> Iterator[GlbChunk]:
        """Walk length-prefixed chunk records until the buffer is exhausted.

        Raises:
            MalformedChunkStreamError: If a chunk header or payload runs past
                the end of the buffer
        """
        offset = HEADER_SIZE
        end = len(self.data)
        while offset < end:
            if offset + CHUNK_HEADER_SIZE > end:
                raise MalformedChunkStreamError(
                    f"Chunk header at offset {offset} extends past end of buffer ({end} bytes)"
                )
            length, chunk_type = struct.unpack_from("<II", self.data, offset)
            start = offset + CHUNK_HEADER_SIZE
            if start + length > end:
                raise MalformedChunkStreamError(
                    f"Chunk at offset {offset} declares {length} bytes, "
                    f"only {end - start} available"
                )
            yield GlbChunk(length=length, type=chunk_type, data=self.data[start:start + length])
            offset = start + length

    def chunk_list(self) -> List[GlbChunk]:
        return list(self.chunks())

    def binary_chunks(self) -> List[GlbChunk]:
        """All chunks after the JSON chunk, in file order."""
        return self.chunk_list()[1:]

    def json_bytes(self) -> bytes:
        start = HEADER_SIZE + CHUNK_HEADER_SIZE
        if start + self.json_length > len(self.data):
            raise MalformedChunkStreamError(
                f"JSON chunk declares {self.json_length} bytes, "
                f"only {len(self.data) - start} available"
            )
        return self.data[start:start + self.json_length]

    def json_chunk(self) -> Dict[str, Any]:
        """Decode the JSON chunk.

        Returns:
            Parsed glTF JSON object

        Raises:
            VrmJsonDecodeError: If the payload is not a JSON object
        """
        raw = self.json_bytes()
        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise VrmJsonDecodeError(f"Failed to parse GLB JSON: {e}") from e

        if not isinstance(payload, dict):
            raise VrmJsonDecodeError(
                f"GLB JSON root must be an object, got {type(payload).__name__}"
            )
        return payload


class GlbParser:
    """Validates GLB containers and slices them into chunks."""

    def parse_file(self, path: Union[str, Path]) -> GlbContainer:
        """Read and validate a GLB file.

        Args:
            path: Path to .vrm/.glb file

        Returns:
            Validated GlbContainer

        Raises:
            VrmIOError: If the file cannot be read
            MalformedContainerError: If the container is invalid
        """
        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise VrmIOError(f"Failed to read GLB file {path}: {e}") from e

        logger.debug("Read %d bytes from %s", len(data), path)
        return self.parse_bytes(data)

    def parse_bytes(self, data: bytes) -> GlbContainer:
        """Validate the GLB header and first chunk header.

        Args:
            data: Whole GLB buffer

        Returns:
            GlbContainer over ``data``

        Raises:
            MalformedContainerError: Subclass naming the violated invariant
        """
        if len(data) < HEADER_SIZE:
            raise TooShortError(
                f"File too short to be a valid GLB: {len(data)} bytes, "
                f"need at least {HEADER_SIZE} for the header"
            )

        magic, version, length = struct.unpack_from("<III", data, 0)

        if magic != GLB_MAGIC:
            raise BadMagicError(
                f"Invalid GLB magic: expected {GLB_MAGIC:#x} (glTF), got {magic:#x}"
            )
        if version != GLB_VERSION:
            raise UnsupportedVersionError(
                f"Unsupported GLB version: expected {GLB_VERSION}, got {version}"
            )
        if length != len(data):
            raise LengthMismatchError(
                f"GLB length mismatch: header says {length} bytes, file is {len(data)} bytes"
            )
        if len(data) - HEADER_SIZE < CHUNK_HEADER_SIZE:
            raise TruncatedChunkHeaderError(
                f"GLB too short: no room for first chunk header (need {CHUNK_HEADER_SIZE} bytes)"
            )

        json_length, chunk_type = struct.unpack_from("<II", data, HEADER_SIZE)
        if chunk_type != CHUNK_TYPE_JSON:
            raise FirstChunkNotJsonError(
                f"Invalid first chunk type: expected {CHUNK_TYPE_JSON:#x} (JSON), got {chunk_type:#x}"
            )

        return GlbContainer(
            header=GlbHeader(magic=magic, version=version, length=length),
            data=bytes(data),
            json_length=json_length,
        )

    def load_json(self, path: Union[str, Path]) -> Dict[str, Any]:
        """Read a GLB file and return its parsed JSON chunk."""
        return self.parse_file(path).json_chunk()

    def validate_file(self, path: Union[str, Path]) -> GlbContainer:
        """Check container structure without decoding the JSON.

        Returns the validated container so callers can reuse the buffer.
        """
        return self.parse_file(path)
