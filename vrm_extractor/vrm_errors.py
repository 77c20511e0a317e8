"""Exceptions raised while reading VRM files."""
from typing import Optional


class VrmError(Exception):
    """Base class for VRM parsing failures."""


class VrmIOError(VrmError, OSError):
    """VRM file is missing or unreadable."""


class MalformedContainerError(VrmError, ValueError):
    """GLB container breaks a structural invariant."""


class TooShortError(MalformedContainerError):
    pass


class BadMagicError(MalformedContainerError):
    pass


class UnsupportedVersionError(MalformedContainerError):
    pass


class LengthMismatchError(MalformedContainerError):
    pass


class TruncatedChunkHeaderError(MalformedContainerError):
    pass


class FirstChunkNotJsonError(MalformedContainerError):
    pass


class MalformedChunkStreamError(MalformedContainerError):
    pass


class VrmJsonDecodeError(VrmError, ValueError):
    """JSON chunk payload is not a valid JSON object."""


class NoVrmExtensionError(VrmError, ValueError):
    """Neither ``VRMC_vrm`` nor ``VRM`` is present in the extensions."""


class DecodeAttemptsExhaustedError(VrmError):
    """Every decode profile failed and the JSON fallback failed too."""

    def __init__(self, message: str, last_error: Optional[BaseException] = None):
        super().__init__(message)
        self.last_error = last_error


class VrmAttributeError(VrmError, ValueError):
    """Exported ``vrm:*`` attributes are missing or unreadable."""
