"""
pdfjobx - fluent, validated PDF jobs for qpdf style engines.

Example:
    >>> from pdfjobx import Job, Tier128
    >>> job = Job().input_file("in.pdf").output_file("out.pdf")
    >>> job.encrypt("user", "owner", Tier128.create(use_aes=True)).to_document()["encrypt"]["128bit"]["useAes"]
    'y'
"""

__version__ = "1.0.0"

from .decoders import parse_attachments, parse_check, parse_encryption, parse_json, parse_xref
from .encoder import encode_options, to_json
from .encryption import Capabilities, EncryptionPolicy, Tier40, Tier128, Tier256, build_tier
from .engines import Engine, EngineResult, ExitCodeTable, PypdfEngine, QpdfEngine, detect_engine
from .enums import (
    AutoYesNo,
    DecodeLevel,
    EncryptionTier,
    ExitCode,
    FlattenAnnotations,
    IsEncryptedExitCode,
    JsonStreamData,
    JsonVersion,
    Modify,
    ObjectStreams,
    PasswordMode,
    Print,
    RequiresPasswordExitCode,
    Rotation,
    StreamData,
)
from .exceptions import (
    ConfigurationConflictError,
    EngineUnavailableError,
    MissingResourceError,
    PdfJobError,
    ValidationError,
)
from .job import Job, LoggingObserver
from .options import OPTIONS, OptionKind, OptionSpec
from .selections import AddAttachment, CopyAttachment, Layer, PageSelection
from .types import (
    AttachmentListing,
    CheckInfo,
    EncryptionInfo,
    IsEncryptedResult,
    JobResult,
    PageDetails,
    PageImage,
    PdfInfo,
    RequiresPasswordResult,
    XrefEntry,
    XrefInfo,
)

__all__ = [
    "__version__",
    "Job",
    "LoggingObserver",
    "OPTIONS",
    "OptionKind",
    "OptionSpec",
    "Capabilities",
    "EncryptionPolicy",
    "Tier40",
    "Tier128",
    "Tier256",
    "build_tier",
    "PageSelection",
    "Layer",
    "AddAttachment",
    "CopyAttachment",
    "encode_options",
    "to_json",
    "parse_check",
    "parse_encryption",
    "parse_xref",
    "parse_attachments",
    "parse_json",
    "CheckInfo",
    "EncryptionInfo",
    "XrefEntry",
    "XrefInfo",
    "AttachmentListing",
    "PdfInfo",
    "PageDetails",
    "PageImage",
    "JobResult",
    "IsEncryptedResult",
    "RequiresPasswordResult",
    "Engine",
    "EngineResult",
    "ExitCodeTable",
    "QpdfEngine",
    "PypdfEngine",
    "detect_engine",
    "AutoYesNo",
    "DecodeLevel",
    "EncryptionTier",
    "ExitCode",
    "FlattenAnnotations",
    "IsEncryptedExitCode",
    "JsonStreamData",
    "JsonVersion",
    "Modify",
    "ObjectStreams",
    "PasswordMode",
    "Print",
    "RequiresPasswordExitCode",
    "Rotation",
    "StreamData",
    "PdfJobError",
    "ValidationError",
    "ConfigurationConflictError",
    "MissingResourceError",
    "EngineUnavailableError",
]
