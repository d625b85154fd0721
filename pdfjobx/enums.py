"""Enumerations shared by the option registry and the wire encoder.

Member values are the exact tokens the engine expects in the wire document.
"""

from __future__ import annotations

from enum import Enum


class PasswordMode(str, Enum):
    """How the engine interprets password strings."""

    AUTO = "auto"
    UNICODE = "unicode"
    BYTES = "bytes"
    HEX_BYTES = "hex-bytes"


class DecodeLevel(str, Enum):
    """Which stream filters the engine decodes when rewriting."""

    NONE = "none"
    GENERALIZED = "generalized"
    SPECIALIZED = "specialized"
    ALL = "all"


class StreamData(str, Enum):
    COMPRESS = "compress"
    PRESERVE = "preserve"
    UNCOMPRESS = "uncompress"


class ObjectStreams(str, Enum):
    PRESERVE = "preserve"
    DISABLE = "disable"
    GENERATE = "generate"


class FlattenAnnotations(str, Enum):
    ALL = "all"
    PRINT = "print"
    SCREEN = "screen"


class AutoYesNo(str, Enum):
    AUTO = "auto"
    YES = "y"
    NO = "n"


class JsonStreamData(str, Enum):
    NONE = "none"
    INLINE = "inline"
    FILE = "file"


class JsonVersion(str, Enum):
    V1 = "1"
    V2 = "2"
    LATEST = "latest"


class Modify(str, Enum):
    """Modification level granted by an encryption policy."""

    NONE = "none"
    ASSEMBLY = "assembly"
    FORM = "form"
    ANNOTATE = "annotate"
    ALL = "all"


class Print(str, Enum):
    """Printing level granted by an encryption policy."""

    NONE = "none"
    LOW = "low"
    FULL = "full"


class Rotation(str, Enum):
    """Page rotation, clockwise for positive angles."""

    ROTATE_0 = "+0"
    ROTATE_90 = "+90"
    ROTATE_MINUS_90 = "-90"
    ROTATE_180 = "+180"
    ROTATE_MINUS_180 = "-180"
    ROTATE_270 = "+270"
    ROTATE_MINUS_270 = "-270"

    @property
    def degrees(self) -> int:
        return int(self.value)

    @classmethod
    def from_degrees(cls, angle: int) -> "Rotation":
        token = f"{angle:+d}"
        for member in cls:
            if member.value == token:
                return member
        raise ValueError(f"Unsupported rotation angle: {angle}")


class EncryptionTier(str, Enum):
    """Key length selector for :func:`pdfjobx.encryption.build_tier`."""

    BITS_40 = "40bit"
    BITS_128 = "128bit"
    BITS_256 = "256bit"


class ExitCode(str, Enum):
    """Outcome of a generic job execution."""

    SUCCESS = "success"
    WARNINGS_FOUND_FILE_PROCESSED = "warnings-found-file-processed"
    ERRORS_FOUND_FILE_NOT_PROCESSED = "errors-found-file-not-processed"


class IsEncryptedExitCode(str, Enum):
    """Outcome of an "is encrypted" inspection."""

    ENCRYPTED = "encrypted"
    NOT_ENCRYPTED = "not-encrypted"


class RequiresPasswordExitCode(str, Enum):
    """Outcome of a "requires password" inspection."""

    PASSWORD_REQUIRED = "password-required"
    NOT_ENCRYPTED = "not-encrypted"
    ENCRYPTED_NO_PASSWORD_REQUIRED = "encrypted-no-password-required"


__all__ = [
    "PasswordMode",
    "DecodeLevel",
    "StreamData",
    "ObjectStreams",
    "FlattenAnnotations",
    "AutoYesNo",
    "JsonStreamData",
    "JsonVersion",
    "Modify",
    "Print",
    "Rotation",
    "EncryptionTier",
    "ExitCode",
    "IsEncryptedExitCode",
    "RequiresPasswordExitCode",
]
