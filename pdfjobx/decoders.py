"""
Decoders for engine output.

The text decoders read line-oriented diagnostics and :func:`parse_json` reads
the JSON document an engine returns as data. Every decoder accepts ``None``
and unexpected input, falling back to the result type's defaults. The only
exception is :func:`parse_xref`, which expects well-formed output and raises
``ValueError`` otherwise.
"""

from __future__ import annotations

import json
import re
from typing import Any

from .types import (
    AcroformDetails,
    AttachmentDetails,
    AttachmentListing,
    CheckInfo,
    EncryptCapabilities,
    EncryptDetails,
    EncryptionInfo,
    EncryptParameters,
    PageDetails,
    PageImage,
    PageLabelEntry,
    PageOutline,
    PdfInfo,
    XrefEntry,
    XrefInfo,
)

_WARNING_PREFIX = "WARNING: "

# (line prefix, EncryptionInfo field) for "<permission>: allowed|not allowed" lines
_PERMISSIONS = (
    ("extract for accessibility", "extract_for_accessibility"),
    ("extract for any purpose", "extract_for_any_purpose"),
    ("print low resolution", "print_low_resolution"),
    ("print high resolution", "print_high_resolution"),
    ("modify document assembly", "modify_document_assembly"),
    ("modify forms", "modify_forms"),
    ("modify annotations", "modify_annotations"),
    ("modify other", "modify_other"),
    ("modify anything", "modify_anything"),
)

_METHODS = (
    ("stream encryption method", "stream_encryption_method"),
    ("string encryption method", "string_encryption_method"),
    ("file encryption method", "file_encryption_method"),
)

_ATTACHMENT_SEPARATOR = re.compile(r"\s+-")


def _lines(text: str | None) -> list[str]:
    if not text:
        return []
    return [line for line in text.splitlines() if line.strip()]


def _value(line: str, delimiter: str) -> str:
    """Return the trimmed text after the first *delimiter*, or ``""``."""

    _, found, rest = line.partition(delimiter)
    return rest.strip() if found else ""


def _to_int(value: str) -> int | None:
    try:
        return int(value)
    except ValueError:
        return None


def parse_check(text: str | None) -> CheckInfo:
    """Decode the output of a structural check."""

    version = "Unknown"
    encrypted = False
    linearized = False
    warnings: list[str] = []

    for line in _lines(text):
        if line.startswith("PDF Version"):
            version = _value(line, ":") or version
        elif line.startswith("File is encrypted"):
            encrypted = True
        elif line.startswith("File is linearized"):
            linearized = True
        elif line.startswith(_WARNING_PREFIX):
            warnings.append(line[len(_WARNING_PREFIX):])

    return CheckInfo(
        pdf_version=version,
        is_encrypted=encrypted,
        is_linearized=linearized,
        warnings=tuple(warnings),
    )


def parse_encryption(text: str | None) -> EncryptionInfo:
    """Decode the output of an encryption display."""

    values: dict[str, object] = {}

    for raw in _lines(text):
        line = raw.strip()
        lowered = line.lower()
        if lowered.startswith("r ="):
            values["r"] = _to_int(_value(line, "="))
        elif lowered.startswith("p ="):
            values["p"] = _to_int(_value(line, "="))
        elif lowered.startswith("user password"):
            values["user_password"] = _value(line, "=")
        elif lowered.startswith("encryption key"):
            values["encryption_key"] = _value(line, "=")
        elif lowered.startswith("supplied password is owner password"):
            values["supplied_password_is_owner_password"] = True
        elif lowered.startswith("supplied password is user password"):
            values["supplied_password_is_user_password"] = True
        else:
            for prefix, name in _PERMISSIONS:
                if lowered.startswith(prefix):
                    values[name] = "not allowed" not in _value(line, ":")
                    break
            else:
                for prefix, name in _METHODS:
                    if lowered.startswith(prefix):
                        values[name] = _value(line, ":")
                        break

    return EncryptionInfo(**values)


def _xref_location(location: str, line: str) -> tuple[int, int | None]:
    pairs: dict[str, str] = {}
    for item in location.split(","):
        key, found, value = item.partition("=")
        if not found:
            raise ValueError(f"Malformed xref line: {line!r}")
        pairs[key.strip().lower()] = value.strip()

    if "stream" in pairs:
        index = pairs.get("index")
        return int(pairs["stream"]), int(index) if index is not None else None
    if "offset" in pairs:
        return int(pairs["offset"]), None
    return int(next(iter(pairs.values()))), None


def parse_xref(text: str | None) -> XrefInfo:
    """
    Decode a cross-reference listing.

    Lines look like ``1/0: uncompressed; offset = 15`` or
    ``5/0: compressed; stream = 3, index = 0``.

    Raises:
        ValueError: If a non-empty line lacks the ``:``, ``;`` or ``=``
            delimiters or carries a non-numeric offset
    """

    entries: list[XrefEntry] = []

    for raw in _lines(text):
        line = raw.strip()
        head, found, location = line.partition(";")
        if not found:
            raise ValueError(f"Malformed xref line: {line!r}")
        object_id, found, state = head.partition(":")
        if not found:
            raise ValueError(f"Malformed xref line: {line!r}")
        offset, index = _xref_location(location, line)
        entries.append(XrefEntry(object_id.strip(), state.strip(), offset, index))

    return XrefInfo(tuple(entries))


def parse_attachments(text: str | None) -> AttachmentListing:
    """Decode an attachment listing into its keys."""

    keys: list[str] = []

    for line in _lines(text):
        # indented lines are per-attachment details
        if line[0].isspace() or line.rstrip().endswith("has no embedded files"):
            continue
        parts = _ATTACHMENT_SEPARATOR.split(line, maxsplit=1)
        if len(parts) == 1:
            parts = line.split("-", 1)
        key = parts[0].strip()
        if key:
            keys.append(key)

    return AttachmentListing(tuple(keys))


# -- JSON ---------------------------------------------------------------------


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _items(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _number(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        return _to_int(value.strip())
    return None


def _switch(value: Any) -> bool:
    return value is True


def _image(raw: dict[str, Any]) -> PageImage:
    return PageImage(
        object=_text(raw.get("object")),
        name=_text(raw.get("name")),
        width=_number(raw.get("width")),
        height=_number(raw.get("height")),
        bits_per_component=_number(raw.get("bitspercomponent")),
        colorspace=_text(raw.get("colorspace")),
        filters=tuple(item for item in _items(raw.get("filter")) if isinstance(item, str)),
        decode_parms=tuple(_items(raw.get("decodeparms"))),
        filterable=_switch(raw.get("filterable")),
    )


def _outline(raw: dict[str, Any]) -> PageOutline:
    return PageOutline(
        object=_text(raw.get("object")),
        title=_text(raw.get("title")),
        dest=tuple(_items(raw.get("dest"))),
    )


def _page(raw: dict[str, Any]) -> PageDetails:
    return PageDetails(
        page_number=_number(raw.get("pageposfrom1")) or 0,
        object=_text(raw.get("object")),
        contents=tuple(item for item in _items(raw.get("contents")) if isinstance(item, str)),
        images=tuple(_image(item) for item in _items(raw.get("images")) if isinstance(item, dict)),
        label=raw.get("label"),
        outlines=tuple(_outline(item) for item in _items(raw.get("outlines")) if isinstance(item, dict)),
    )


def _encrypt(raw: dict[str, Any]) -> EncryptDetails:
    capabilities = _mapping(raw.get("capabilities"))
    parameters = _mapping(raw.get("parameters"))
    # older qpdf releases spell the annotation capability "moddifyannotations"
    annotations = capabilities.get("modifyannotations", capabilities.get("moddifyannotations"))
    return EncryptDetails(
        encrypted=_switch(raw.get("encrypted")),
        user_password_matched=_switch(raw.get("userpasswordmatched")),
        owner_password_matched=_switch(raw.get("ownerpasswordmatched")),
        capabilities=EncryptCapabilities(
            accessibility=_switch(capabilities.get("accessibility")),
            extract=_switch(capabilities.get("extract")),
            modify=_switch(capabilities.get("modify")),
            modify_annotations=_switch(annotations),
            modify_assembly=_switch(capabilities.get("modifyassembly")),
            modify_forms=_switch(capabilities.get("modifyforms")),
            modify_other=_switch(capabilities.get("modifyother")),
            print_high=_switch(capabilities.get("printhigh")),
            print_low=_switch(capabilities.get("printlow")),
        ),
        parameters=EncryptParameters(
            p=_number(parameters.get("P")) or 0,
            r=_number(parameters.get("R")) or 0,
            v=_number(parameters.get("V")) or 0,
            bits=_number(parameters.get("bits")) or 0,
            key=_text(parameters.get("key")),
            method=_text(parameters.get("method")),
            stream_method=_text(parameters.get("streammethod")),
            string_method=_text(parameters.get("stringmethod")),
            file_method=_text(parameters.get("filemethod")),
        ),
    )


def _acroform(raw: dict[str, Any]) -> AcroformDetails:
    return AcroformDetails(
        has_acroform=_switch(raw.get("hasacroform")),
        need_appearances=_switch(raw.get("needappearances")),
        fields=tuple(item for item in _items(raw.get("fields")) if isinstance(item, dict)),
    )


def parse_json(data: bytes | str | None) -> PdfInfo:
    """
    Decode the JSON document produced by a ``json`` job.

    Accepts the raw bytes an engine returned as data. Missing sections,
    values of the wrong type and payloads that are not a JSON object all
    decode to the defaults of :class:`PdfInfo`.
    """

    if not data:
        return PdfInfo()
    try:
        document = json.loads(data)
    except ValueError:
        return PdfInfo()
    if not isinstance(document, dict):
        return PdfInfo()

    attachments = {
        key: AttachmentDetails(
            filespec=_text(value.get("filespec")),
            preferred_name=_text(value.get("preferredname")),
            preferred_contents=_text(value.get("preferredcontents")),
        )
        for key, value in _mapping(document.get("attachments")).items()
        if isinstance(value, dict)
    }
    labels = tuple(
        PageLabelEntry(index=_number(item.get("index")) or 0, label=item.get("label"))
        for item in _items(document.get("pagelabels"))
        if isinstance(item, dict)
    )

    return PdfInfo(
        version=_number(document.get("version")),
        parameters=_mapping(document.get("parameters")),
        pages=tuple(_page(item) for item in _items(document.get("pages")) if isinstance(item, dict)),
        page_labels=labels,
        outlines=tuple(_items(document.get("outlines"))),
        acroform=_acroform(_mapping(document.get("acroform"))),
        attachments=attachments,
        encrypt=_encrypt(_mapping(document.get("encrypt"))),
    )


__all__ = ["parse_check", "parse_encryption", "parse_xref", "parse_attachments", "parse_json"]
