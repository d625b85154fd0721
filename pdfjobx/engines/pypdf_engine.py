"""pypdf engine implementation for pdfjobx.

Covers the subset of the wire schema that pypdf can honour and prints the
same diagnostic shapes as qpdf so the decoders work unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from pypdf import PasswordType, PdfReader, PdfWriter
from pypdf.constants import UserAccessPermissions
from pypdf.errors import PdfReadError
from pypdf.generic import ArrayObject

from ..enums import ExitCode, IsEncryptedExitCode, RequiresPasswordExitCode
from ..utils import get_logger
from .base import EngineResult, ExitCodeTable, combine_output

logger = get_logger("pdfjobx.engines.pypdf")

EXIT_SUCCESS = 0
EXIT_ERROR = 2
EXIT_WARNING = 3

PYPDF_EXIT_CODES = ExitCodeTable(
    generic={
        EXIT_SUCCESS: ExitCode.SUCCESS,
        EXIT_ERROR: ExitCode.ERRORS_FOUND_FILE_NOT_PROCESSED,
        EXIT_WARNING: ExitCode.WARNINGS_FOUND_FILE_PROCESSED,
    },
    is_encrypted={
        EXIT_SUCCESS: IsEncryptedExitCode.ENCRYPTED,
        EXIT_ERROR: IsEncryptedExitCode.NOT_ENCRYPTED,
    },
    requires_password={
        EXIT_SUCCESS: RequiresPasswordExitCode.PASSWORD_REQUIRED,
        EXIT_ERROR: RequiresPasswordExitCode.NOT_ENCRYPTED,
        EXIT_WARNING: RequiresPasswordExitCode.ENCRYPTED_NO_PASSWORD_REQUIRED,
    },
)

SUPPORTED_KEYS = frozenset(
    {
        "inputFile",
        "password",
        "outputFile",
        "check",
        "isEncrypted",
        "requiresPassword",
        "showNpages",
        "showEncryption",
        "listAttachments",
        "showAttachment",
        "pages",
        "rotate",
        "addAttachment",
        "removeAttachment",
        "encrypt",
        "decrypt",
    }
)

# Accepted without any effect on the result.
SILENT_KEYS = frozenset(
    {
        "verbose",
        "noWarn",
        "quiet",
        "progress",
        "warningExit0",
        "keepFilesOpen",
        "keepFilesOpenThreshold",
        "passwordMode",
        "suppressPasswordRecovery",
        "allowWeakCrypto",
    }
)

# Output tuning that pypdf cannot reproduce; ignored with a warning.
APPROXIMATED_KEYS = frozenset(
    {
        "linearize",
        "qdf",
        "preserveUnreferenced",
        "newlineBeforeEndstream",
        "normalizeContent",
        "streamData",
        "compressStreams",
        "recompressFlate",
        "compressionLevel",
        "decodeLevel",
        "objectStreams",
        "minVersion",
        "forceVersion",
        "deterministicId",
        "staticId",
        "staticAesIv",
        "noOriginalObjectIds",
    }
)

INSPECTION_KEYS = ("check", "showNpages", "showEncryption", "listAttachments", "showAttachment")
TRANSFORMATION_KEYS = ("pages", "rotate", "addAttachment", "removeAttachment", "encrypt", "decrypt")

_ALGORITHMS = {
    "40bit": "RC4-40",
    "128bit": "RC4-128",
    "256bit": "AES-256",
}

_CFM_NAMES = {"/AESV2": "AESv2", "/AESV3": "AESv3", "/V2": "RC4", "/None": "none"}

# bits 1-2 must be clear, the unassigned bits set
_RESERVED_BITS = (2**31 - 1) & ~0xF3F


def _resolve(value: Any) -> Any:
    return value.get_object() if hasattr(value, "get_object") else value


class EngineError(Exception):
    """Internal signal that aborts one execution with an error diagnostic."""


@dataclass
class _Diagnostics:
    info: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class _WarningCollector(logging.Handler):
    """Collects pypdf warnings emitted during one execution."""

    def __init__(self, source: str, sink: list[str]) -> None:
        super().__init__(level=logging.WARNING)
        self.source = source
        self.sink = sink

    def emit(self, record: logging.LogRecord) -> None:
        self.sink.append(f"WARNING: {self.source}: {record.getMessage()}")


def parse_page_range(spec: str | None, page_count: int) -> list[int]:
    """
    Translate a qpdf style page range into zero-based page indexes.

    Supports ``n``, ``a-b`` (descending when ``a > b``), ``z`` for the last
    page, ``rN`` for the N-th page from the end and an ``:odd`` or ``:even``
    suffix.

    Raises:
        ValueError: If the range is malformed or refers to missing pages
    """

    if spec is None or not spec.strip():
        return list(range(page_count))

    body, _, parity = spec.partition(":")
    if parity and parity not in ("odd", "even"):
        raise ValueError(f"invalid page range modifier ':{parity}'")

    def number(token: str) -> int:
        token = token.strip()
        if token == "z":
            value = page_count
        elif token.startswith("r"):
            value = page_count - int(token[1:]) + 1
        else:
            value = int(token)
        if not 1 <= value <= page_count:
            raise ValueError(f"page {token} does not exist (document has {page_count} pages)")
        return value

    pages: list[int] = []
    for item in (body or "1-z").split(","):
        start, dash, end = item.partition("-")
        if not dash:
            pages.append(number(start))
            continue
        first, last = number(start), number(end)
        step = 1 if first <= last else -1
        pages.extend(range(first, last + step, step))

    if parity:
        pages = [page for position, page in enumerate(pages, 1) if (position % 2 == 1) == (parity == "odd")]
    return [page - 1 for page in pages]


def permissions_for(tier: Mapping[str, Any]) -> int:
    """Compute the ``/P`` permission bits for an encryption tier document.

    Capability tokens are applied first, then the ``modify`` and ``print``
    levels, matching the order in which qpdf evaluates them.
    """

    allowed = {
        "extract": tier.get("extract") != "n",
        "accessibility": tier.get("accessibility") != "n",
        "annotate": tier.get("annotate") != "n",
        "form": tier.get("form") != "n",
        "assemble": tier.get("assemble") != "n",
        "modifyOther": tier.get("modifyOther") != "n",
    }

    modify = tier.get("modify")
    if modify is not None:
        level = ("none", "assembly", "form", "annotate", "all").index(modify)
        allowed["assemble"] = level >= 1
        allowed["form"] = level >= 2
        allowed["annotate"] = level >= 3
        allowed["modifyOther"] = level >= 4

    flags = UserAccessPermissions(0)
    if allowed["extract"]:
        flags |= UserAccessPermissions.EXTRACT
    if allowed["accessibility"]:
        flags |= UserAccessPermissions.EXTRACT_TEXT_AND_GRAPHICS
    if allowed["annotate"]:
        flags |= UserAccessPermissions.ADD_OR_MODIFY
    if allowed["form"]:
        flags |= UserAccessPermissions.FILL_FORM_FIELDS
    if allowed["assemble"]:
        flags |= UserAccessPermissions.ASSEMBLE_DOC
    if allowed["modifyOther"]:
        flags |= UserAccessPermissions.MODIFY

    printing = tier.get("print", "full")
    if printing in ("low", "full"):
        flags |= UserAccessPermissions.PRINT
    if printing == "full":
        flags |= UserAccessPermissions.PRINT_TO_REPRESENTATION
    return int(flags) | _RESERVED_BITS


def algorithm_for(encrypt: Mapping[str, Any]) -> tuple[str, Mapping[str, Any]]:
    """Return the pypdf algorithm name and tier document of an ``encrypt`` value."""

    for wire_key, algorithm in _ALGORITHMS.items():
        if wire_key in encrypt:
            tier = encrypt[wire_key]
            if wire_key == "128bit" and tier.get("useAes") == "y":
                algorithm = "AES-128"
            elif wire_key == "256bit" and "forceR5" in tier:
                algorithm = "AES-256-R5"
            return algorithm, tier
    raise EngineError("encrypt: no key length given")


def _allowed(flag: bool) -> str:
    return "allowed" if flag else "not allowed"


class PypdfEngine:
    """
    Execute wire documents in-process with pypdf.

    Args:
        strict: Open files in pypdf's strict mode and treat unsupported
            output-tuning options as errors instead of warnings
    """

    name = "pypdf"
    exit_codes = PYPDF_EXIT_CODES

    def __init__(self, strict: bool = False) -> None:
        self.strict = strict

    def execute(self, document: Mapping[str, Any]) -> EngineResult:
        diagnostics = _Diagnostics()
        source = str(document.get("inputFile", ""))
        collector = _WarningCollector(source, diagnostics.warnings)
        pypdf_logger = logging.getLogger("pypdf")
        pypdf_logger.addHandler(collector)
        logger.info("Running pypdf job with %d option(s)", len(document))

        data: bytes | None = None
        exit_code: int | None = None
        try:
            self._screen_keys(document, diagnostics)
            if not diagnostics.errors:
                data, exit_code = self._dispatch(document, diagnostics)
        except EngineError as exc:
            diagnostics.errors.append(f"pdfjobx: {exc}")
        finally:
            pypdf_logger.removeHandler(collector)

        if exit_code is None:
            exit_code = self._exit_code(document, diagnostics)
        logger.debug("pypdf job finished with status %s", exit_code)
        return EngineResult(
            exit_code=exit_code,
            output=combine_output(
                "\n".join(diagnostics.info),
                "\n".join(diagnostics.warnings),
                "\n".join(diagnostics.errors),
            ),
            data=data,
        )

    # -- helpers -------------------------------------------------------------

    def _screen_keys(self, document: Mapping[str, Any], diagnostics: _Diagnostics) -> None:
        unknown = [
            key
            for key in document
            if key not in SUPPORTED_KEYS and key not in SILENT_KEYS and key not in APPROXIMATED_KEYS
        ]
        if unknown:
            diagnostics.errors.append(
                f"pdfjobx: unsupported by the pypdf engine: {', '.join(unknown)}"
            )
        for key in document:
            if key in APPROXIMATED_KEYS:
                if self.strict:
                    diagnostics.errors.append(f"pdfjobx: {key} is not supported by the pypdf engine")
                else:
                    diagnostics.warnings.append(
                        f"WARNING: {key} is not supported by the pypdf engine and was ignored"
                    )

    @staticmethod
    def _exit_code(document: Mapping[str, Any], diagnostics: _Diagnostics) -> int:
        if diagnostics.errors:
            return EXIT_ERROR
        if diagnostics.warnings and "warningExit0" not in document:
            return EXIT_WARNING
        return EXIT_SUCCESS

    def _open(self, file: str, password: str | None) -> tuple[PdfReader, PasswordType | None]:
        try:
            reader = PdfReader(file, strict=self.strict)
        except FileNotFoundError as exc:
            raise EngineError(f"open {file}: No such file or directory") from exc
        except (PdfReadError, OSError) as exc:
            raise EngineError(f"{file}: {exc}") from exc

        if not reader.is_encrypted:
            return reader, None
        outcome = reader.decrypt(password or "")
        return reader, outcome

    def _open_decrypted(self, file: str, password: str | None) -> tuple[PdfReader, PasswordType | None]:
        reader, outcome = self._open(file, password)
        if outcome == PasswordType.NOT_DECRYPTED:
            raise EngineError(f"{file}: invalid password")
        return reader, outcome

    def _dispatch(
        self, document: Mapping[str, Any], diagnostics: _Diagnostics
    ) -> tuple[bytes | None, int | None]:
        file = document.get("inputFile")
        if not file:
            raise EngineError("an input file name is required")
        password = document.get("password")

        if "isEncrypted" in document:
            reader, _ = self._open(file, password)
            return None, EXIT_SUCCESS if reader.is_encrypted else EXIT_ERROR
        if "requiresPassword" in document:
            reader, outcome = self._open(file, password)
            if not reader.is_encrypted:
                return None, EXIT_ERROR
            return None, EXIT_SUCCESS if outcome == PasswordType.NOT_DECRYPTED else EXIT_WARNING

        if any(key in document for key in INSPECTION_KEYS):
            return self._inspect(file, password, document, diagnostics), None

        if "outputFile" not in document:
            if any(key in document for key in TRANSFORMATION_KEYS):
                raise EngineError("an output file name is required")
            diagnostics.info.append(f"{file}: nothing to do")
            return None, None

        self._transform(file, password, document, diagnostics)
        return None, None

    # -- inspection ----------------------------------------------------------

    def _inspect(
        self,
        file: str,
        password: str | None,
        document: Mapping[str, Any],
        diagnostics: _Diagnostics,
    ) -> bytes | None:
        reader, outcome = self._open(file, password)
        encrypted = reader.is_encrypted
        data: bytes | None = None

        if "showEncryption" in document:
            self._show_encryption(reader, outcome, password, diagnostics)
        if outcome == PasswordType.NOT_DECRYPTED:
            raise EngineError(f"{file}: invalid password")

        if "check" in document:
            diagnostics.info.append(f"checking {file}")
            diagnostics.info.append(f"PDF Version: {reader.pdf_header.replace('%PDF-', '')}")
            diagnostics.info.append("File is encrypted" if encrypted else "File is not encrypted")
            linearized = self._is_linearized(file)
            diagnostics.info.append("File is linearized" if linearized else "File is not linearized")
            before = len(diagnostics.warnings)
            for page in reader.pages:
                page.get_contents()
            if len(diagnostics.warnings) == before:
                diagnostics.info.append("No syntax or stream encoding errors found")
        if "showNpages" in document:
            diagnostics.info.append(str(len(reader.pages)))
        if "listAttachments" in document:
            attachments = reader.attachments
            if not attachments:
                diagnostics.info.append(f"{file} has no embedded files")
            for key in attachments:
                diagnostics.info.append(f"{key} -> {key}")
        if "showAttachment" in document:
            key = document["showAttachment"]
            contents = reader.attachments.get(key)
            if not contents:
                raise EngineError(f"{file}: attachment {key} not found")
            data = contents[0]
        return data

    @staticmethod
    def _is_linearized(file: str) -> bool:
        with open(file, "rb") as handle:
            return b"/Linearized" in handle.read(1024)

    @staticmethod
    def _show_encryption(
        reader: PdfReader,
        outcome: PasswordType | None,
        password: str | None,
        diagnostics: _Diagnostics,
    ) -> None:
        if not reader.is_encrypted:
            diagnostics.info.append("File is not encrypted")
            return

        encrypt = reader.trailer["/Encrypt"].get_object()
        revision = int(encrypt.get("/R", 0))
        bits = int(encrypt.get("/P", 0))
        diagnostics.info.append(f"R = {revision}")
        diagnostics.info.append(f"P = {bits}")
        if outcome == PasswordType.USER_PASSWORD:
            diagnostics.info.append(f"User password = {password or ''}")
            diagnostics.info.append("Supplied password is user password")
        elif outcome == PasswordType.OWNER_PASSWORD:
            diagnostics.info.append("Supplied password is owner password")

        def bit(position: int) -> bool:
            return bool(bits & (1 << (position - 1)))

        modern = revision >= 3
        permissions = (
            ("extract for accessibility", bit(10) or not modern),
            ("extract for any purpose", bit(5)),
            ("print low resolution", bit(3)),
            ("print high resolution", bit(12) if modern else bit(3)),
            ("modify document assembly", bit(11) if modern else bit(4)),
            ("modify forms", bit(9) if modern else bit(6)),
            ("modify annotations", bit(6)),
            ("modify other", bit(4)),
            ("modify anything", bit(4) and bit(6) and (not modern or (bit(9) and bit(11)))),
        )
        for label, flag in permissions:
            diagnostics.info.append(f"{label}: {_allowed(flag)}")

        if int(encrypt.get("/V", 0)) >= 4:
            filters = _resolve(encrypt.get("/CF", {}))

            def method(name: str) -> str:
                crypt_filter = _resolve(filters.get(encrypt.get(name, "/Identity"), {}))
                return _CFM_NAMES.get(str(crypt_filter.get("/CFM", "/None")), "unknown")

            stream_method = method("/StmF")
            string_method = method("/StrF")
            file_method = method("/EFF") if "/EFF" in encrypt else stream_method
        else:
            stream_method = string_method = file_method = "RC4"
        diagnostics.info.append(f"stream encryption method: {stream_method}")
        diagnostics.info.append(f"string encryption method: {string_method}")
        diagnostics.info.append(f"file encryption method: {file_method}")

    # -- transformation ------------------------------------------------------

    def _transform(
        self,
        file: str,
        password: str | None,
        document: Mapping[str, Any],
        diagnostics: _Diagnostics,
    ) -> None:
        reader, _ = self._open_decrypted(file, password)
        writer = PdfWriter()

        try:
            if "pages" in document:
                for selection in document["pages"]:
                    self._append_selection(writer, reader, file, selection)
            else:
                writer.clone_reader_document_root(reader)

            if "rotate" in document:
                self._rotate(writer, document["rotate"])
            if "removeAttachment" in document:
                self._remove_attachments(writer, document["removeAttachment"])
            if "addAttachment" in document:
                for attachment in document["addAttachment"]:
                    self._add_attachment(writer, attachment)
        except ValueError as exc:
            raise EngineError(str(exc)) from exc

        if "encrypt" in document:
            encrypt = document["encrypt"]
            algorithm, tier = algorithm_for(encrypt)
            logger.debug("Encrypting output with %s", algorithm)
            writer.encrypt(
                user_password=encrypt["userPassword"],
                owner_password=encrypt["ownerPassword"],
                permissions_flag=permissions_for(tier),
                algorithm=algorithm,
            )
        elif reader.is_encrypted and "decrypt" not in document:
            diagnostics.warnings.append(
                f"WARNING: {file}: input encryption is not preserved by the pypdf engine"
            )

        destination = Path(document["outputFile"])
        destination.parent.mkdir(parents=True, exist_ok=True)
        with destination.open("wb") as handle:
            writer.write(handle)
        logger.info("Wrote %s", destination)

    def _append_selection(
        self,
        writer: PdfWriter,
        primary: PdfReader,
        primary_file: str,
        selection: Mapping[str, Any],
    ) -> None:
        source = selection["file"]
        if source in (".", primary_file):
            reader = primary
        else:
            reader, _ = self._open_decrypted(source, selection.get("password"))
        for index in parse_page_range(selection.get("range"), len(reader.pages)):
            writer.add_page(reader.pages[index])

    @staticmethod
    def _rotate(writer: PdfWriter, spec: str) -> None:
        angle, _, page_range = spec.partition(":")
        degrees = int(angle)
        for index in parse_page_range(page_range or None, len(writer.pages)):
            writer.pages[index].rotate(degrees)

    @staticmethod
    def _attachment_table(writer: PdfWriter) -> ArrayObject | None:
        """Return the flat ``[key, filespec, ...]`` array of embedded files, if any."""

        names = _resolve(writer._root_object.get("/Names"))  # type: ignore[attr-defined]
        embedded = _resolve(names.get("/EmbeddedFiles")) if names else None
        return _resolve(embedded.get("/Names")) if embedded else None

    @classmethod
    def _attachment_keys(cls, writer: PdfWriter) -> set[str]:
        table = cls._attachment_table(writer)
        return {str(table[i]) for i in range(0, len(table), 2)} if table else set()

    @classmethod
    def _remove_attachments(cls, writer: PdfWriter, keys: list[str]) -> None:
        missing = [key for key in keys if key not in cls._attachment_keys(writer)]
        if missing:
            raise EngineError(f"attachment key not found: {', '.join(missing)}")

        table = cls._attachment_table(writer)
        kept = ArrayObject()
        for i in range(0, len(table), 2):
            if str(table[i]) not in keys:
                kept.extend((table[i], table[i + 1]))
        table.clear()
        table.extend(kept)

    @classmethod
    def _add_attachment(cls, writer: PdfWriter, attachment: Mapping[str, Any]) -> None:
        path = Path(attachment["file"])
        key = attachment.get("key") or attachment.get("filename") or path.name
        try:
            payload = path.read_bytes()
        except OSError as exc:
            raise EngineError(f"{path}: {exc}") from exc
        if key in cls._attachment_keys(writer):
            if "replace" not in attachment:
                raise EngineError(f"attachment key {key} already exists")
            cls._remove_attachments(writer, [key])
        writer.add_attachment(key, payload)


__all__ = [
    "PypdfEngine",
    "PYPDF_EXIT_CODES",
    "SUPPORTED_KEYS",
    "parse_page_range",
    "permissions_for",
    "algorithm_for",
]
