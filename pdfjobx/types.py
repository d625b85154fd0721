"""
Result types returned by job execution and by the output decoders.

All result objects are immutable snapshots built once from engine output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping

from .enums import ExitCode, IsEncryptedExitCode, RequiresPasswordExitCode


@dataclass(frozen=True)
class CheckInfo:
    """
    Structural check summary.

    Attributes:
        pdf_version: Version from the file header, ``"Unknown"`` when not reported
        is_encrypted: Whether the engine reported the file as encrypted
        is_linearized: Whether the engine reported the file as linearized
        warnings: Warning messages in the order they were reported
    """

    pdf_version: str = "Unknown"
    is_encrypted: bool = False
    is_linearized: bool = False
    warnings: tuple[str, ...] = ()

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0


@dataclass(frozen=True)
class EncryptionInfo:
    """
    Encryption parameters and effective permissions of a document.

    Attributes:
        r: Security handler revision (``R``)
        p: Permission bits (``P``)
        user_password: User password as reported by the engine
        encryption_key: Encryption key, only reported on request
        supplied_password_is_owner_password: The supplied password matched the owner password
        supplied_password_is_user_password: The supplied password matched the user password
        stream_encryption_method: Method used for streams (e.g. ``AESv3``)
        string_encryption_method: Method used for strings
        file_encryption_method: Method used for embedded files
    """

    r: int | None = None
    p: int | None = None
    user_password: str | None = None
    encryption_key: str | None = None
    supplied_password_is_owner_password: bool = False
    supplied_password_is_user_password: bool = False
    extract_for_accessibility: bool = False
    extract_for_any_purpose: bool = False
    print_low_resolution: bool = False
    print_high_resolution: bool = False
    modify_document_assembly: bool = False
    modify_forms: bool = False
    modify_annotations: bool = False
    modify_other: bool = False
    modify_anything: bool = False
    stream_encryption_method: str | None = None
    string_encryption_method: str | None = None
    file_encryption_method: str | None = None


@dataclass(frozen=True)
class XrefEntry:
    """One cross-reference table entry.

    For compressed objects ``offset`` is the number of the object stream and
    ``index`` the position inside it.
    """

    id: str
    state: str
    offset: int
    index: int | None = None


@dataclass(frozen=True)
class XrefInfo:
    """Cross-reference entries in the order the engine listed them."""

    entries: tuple[XrefEntry, ...] = ()

    def __iter__(self) -> Iterator[XrefEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> XrefEntry:
        return self.entries[index]


@dataclass(frozen=True)
class AttachmentListing:
    """Attachment keys in the order the engine listed them."""

    keys: tuple[str, ...] = ()

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys)

    def __len__(self) -> int:
        return len(self.keys)

    def __getitem__(self, index: int) -> str:
        return self.keys[index]

    def __contains__(self, key: object) -> bool:
        return key in self.keys


@dataclass(frozen=True)
class PageImage:
    """An image drawn on a page, as listed in the JSON ``pages`` section."""

    object: str | None = None
    name: str | None = None
    width: int | None = None
    height: int | None = None
    bits_per_component: int | None = None
    colorspace: str | None = None
    filters: tuple[str, ...] = ()
    decode_parms: tuple[Any, ...] = ()
    filterable: bool = False


@dataclass(frozen=True)
class PageOutline:
    object: str | None = None
    title: str | None = None
    dest: tuple[Any, ...] = ()


@dataclass(frozen=True)
class PageDetails:
    """
    One page of the JSON ``pages`` section.

    Attributes:
        page_number: One-based position of the page (``pageposfrom1``)
        object: Page object reference such as ``"3 0 R"``
        contents: Content stream references
        images: Images used by the page
        label: Page label object, when the document has labels
        outlines: Outline items pointing at the page
    """

    page_number: int = 0
    object: str | None = None
    contents: tuple[str, ...] = ()
    images: tuple[PageImage, ...] = ()
    label: Any = None
    outlines: tuple[PageOutline, ...] = ()


@dataclass(frozen=True)
class EncryptCapabilities:
    """Effective permissions, as the JSON ``encrypt.capabilities`` object reports them."""

    accessibility: bool = False
    extract: bool = False
    modify: bool = False
    modify_annotations: bool = False
    modify_assembly: bool = False
    modify_forms: bool = False
    modify_other: bool = False
    print_high: bool = False
    print_low: bool = False


@dataclass(frozen=True)
class EncryptParameters:
    p: int = 0
    r: int = 0
    v: int = 0
    bits: int = 0
    key: str | None = None
    method: str | None = None
    stream_method: str | None = None
    string_method: str | None = None
    file_method: str | None = None


@dataclass(frozen=True)
class EncryptDetails:
    encrypted: bool = False
    user_password_matched: bool = False
    owner_password_matched: bool = False
    capabilities: EncryptCapabilities = field(default_factory=EncryptCapabilities)
    parameters: EncryptParameters = field(default_factory=EncryptParameters)


@dataclass(frozen=True)
class AttachmentDetails:
    filespec: str | None = None
    preferred_name: str | None = None
    preferred_contents: str | None = None


@dataclass(frozen=True)
class AcroformDetails:
    has_acroform: bool = False
    need_appearances: bool = False
    fields: tuple[Mapping[str, Any], ...] = ()


@dataclass(frozen=True)
class PageLabelEntry:
    index: int = 0
    label: Any = None


@dataclass(frozen=True)
class PdfInfo:
    """
    Document description decoded from the engine's JSON output.

    Sections the engine did not include (for example when ``json_key``
    restricted the output) keep their empty defaults.

    Attributes:
        version: JSON format version reported by the engine
        parameters: The ``parameters`` object, e.g. ``{"decodelevel": "generalized"}``
        pages: Pages in document order
        page_labels: Page label ranges
        outlines: Raw outline items
        acroform: Interactive form summary
        attachments: Embedded files by key
        encrypt: Encryption summary
    """

    version: int | None = None
    parameters: Mapping[str, Any] = field(default_factory=dict)
    pages: tuple[PageDetails, ...] = ()
    page_labels: tuple[PageLabelEntry, ...] = ()
    outlines: tuple[Any, ...] = ()
    acroform: AcroformDetails = field(default_factory=AcroformDetails)
    attachments: Mapping[str, AttachmentDetails] = field(default_factory=dict)
    encrypt: EncryptDetails = field(default_factory=EncryptDetails)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def images(self) -> tuple[PageImage, ...]:
        """Every image of every page, in page order."""

        return tuple(image for page in self.pages for image in page.images)


@dataclass(frozen=True)
class JobResult:
    """
    Outcome of a generic job execution.

    Attributes:
        exit_code: Symbolic outcome
        output: Diagnostic text (info, then warnings, then errors)
        data: In-memory output such as JSON or an attachment, if requested
        raw_exit_code: The engine's own exit status
    """

    exit_code: ExitCode
    output: str = ""
    data: bytes | None = None
    raw_exit_code: int | None = None

    @property
    def succeeded(self) -> bool:
        return self.exit_code is ExitCode.SUCCESS

    @property
    def has_warnings(self) -> bool:
        return self.exit_code is ExitCode.WARNINGS_FOUND_FILE_PROCESSED

    def check_info(self) -> CheckInfo:
        from .decoders import parse_check

        return parse_check(self.output)

    def encryption_info(self) -> EncryptionInfo:
        from .decoders import parse_encryption

        return parse_encryption(self.output)

    def xref_info(self) -> XrefInfo:
        from .decoders import parse_xref

        return parse_xref(self.output)

    def attachment_listing(self) -> AttachmentListing:
        from .decoders import parse_attachments

        return parse_attachments(self.output)

    def pdf_info(self) -> PdfInfo:
        from .decoders import parse_json

        return parse_json(self.data)

    def __str__(self) -> str:
        return f"JobResult(exit_code={self.exit_code.value}, output_lines={len(self.output.splitlines())})"


@dataclass(frozen=True)
class IsEncryptedResult:
    """Outcome of an "is encrypted" inspection."""

    exit_code: IsEncryptedExitCode
    output: str = ""
    raw_exit_code: int | None = None

    @property
    def is_encrypted(self) -> bool:
        return self.exit_code is IsEncryptedExitCode.ENCRYPTED


@dataclass(frozen=True)
class RequiresPasswordResult:
    """Outcome of a "requires password" inspection."""

    exit_code: RequiresPasswordExitCode
    output: str = ""
    raw_exit_code: int | None = None

    @property
    def requires_password(self) -> bool:
        return self.exit_code is RequiresPasswordExitCode.PASSWORD_REQUIRED

    @property
    def is_encrypted(self) -> bool:
        return self.exit_code is not RequiresPasswordExitCode.NOT_ENCRYPTED


__all__ = [
    "CheckInfo",
    "EncryptionInfo",
    "XrefEntry",
    "XrefInfo",
    "AttachmentListing",
    "PageImage",
    "PageOutline",
    "PageDetails",
    "EncryptCapabilities",
    "EncryptParameters",
    "EncryptDetails",
    "AttachmentDetails",
    "AcroformDetails",
    "PageLabelEntry",
    "PdfInfo",
    "JobResult",
    "IsEncryptedResult",
    "RequiresPasswordResult",
]
