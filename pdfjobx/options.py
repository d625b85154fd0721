"""Declarative registry of every job option.

Each :class:`OptionSpec` names the option, its wire key, how the value is
validated and how it is encoded. The registry is pure data plus pure
functions: validators raise :class:`~pdfjobx.exceptions.ValidationError`
and never touch the filesystem.

Declaration order is the canonical order of keys in the wire document.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Iterator, Mapping

from .encryption import SWITCH, EncryptionPolicy
from .enums import (
    AutoYesNo,
    DecodeLevel,
    FlattenAnnotations,
    JsonStreamData,
    JsonVersion,
    ObjectStreams,
    PasswordMode,
    StreamData,
)
from .exceptions import ValidationError
from .selections import AddAttachment, CopyAttachment, Layer, PageSelection

Validator = Callable[[str, Any], Any]

_ROTATION_PATTERN = re.compile(r"^[+-]?(0|90|180|270)(:.+)?$")


class OptionKind(str, Enum):
    """How a validated value is rendered into the wire document."""

    FLAG = "flag"
    YES_NO = "yes-no"
    TEXT = "text"
    NUMBER = "number"
    CHOICE = "choice"
    DOCUMENT = "document"


# Validators -----------------------------------------------------------------


def flag(option: str, raw: Any) -> bool:
    if raw is not True:
        raise ValidationError(option, "switch options can only be set to True")
    return True


def boolean(option: str, raw: Any) -> bool:
    if not isinstance(raw, bool):
        raise ValidationError(option, "must be a boolean")
    return raw


def text(option: str, raw: Any) -> str:
    if not isinstance(raw, str):
        raise ValidationError(option, "must be a string")
    return raw


def non_blank(option: str, raw: Any) -> str:
    if isinstance(raw, os.PathLike):
        raw = os.fspath(raw)
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError(option, "must be a non-blank string")
    return raw


def _integer(option: str, raw: Any) -> int:
    if isinstance(raw, bool):
        raise ValidationError(option, "must be an integer")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and re.fullmatch(r"\s*[+-]?\d+\s*", raw):
        return int(raw)
    raise ValidationError(option, "must be an integer")


def at_least(minimum: int) -> Validator:
    def validate(option: str, raw: Any) -> int:
        value = _integer(option, raw)
        if value < minimum:
            raise ValidationError(option, f"must be >= {minimum}, got {value}")
        return value

    return validate


def between(low: int, high: int) -> Validator:
    def validate(option: str, raw: Any) -> int:
        value = _integer(option, raw)
        if not low <= value <= high:
            raise ValidationError(option, f"must be between {low} and {high}, got {value}")
        return value

    return validate


def choice(enum_cls: type[Enum]) -> Validator:
    def validate(option: str, raw: Any) -> Enum:
        try:
            return enum_cls(raw)
        except ValueError:
            allowed = ", ".join(str(member.value) for member in enum_cls)
            raise ValidationError(option, f"must be one of: {allowed}") from None

    return validate


def instance_of(*types: type) -> Validator:
    names = " or ".join(kind.__name__ for kind in types)

    def validate(option: str, raw: Any) -> Any:
        if not isinstance(raw, types):
            raise ValidationError(option, f"must be a {names}")
        return raw

    return validate


def rotation(option: str, raw: Any) -> str:
    value = non_blank(option, raw)
    if not _ROTATION_PATTERN.match(value):
        raise ValidationError(option, "must look like [+|-]angle[:page-range] with angle 0/90/180/270")
    if value[0] not in "+-":
        value = f"+{value}"
    return value


# Encoders -------------------------------------------------------------------

_ENCODERS: dict[OptionKind, Callable[[Any], Any]] = {
    OptionKind.FLAG: lambda value: SWITCH,
    OptionKind.YES_NO: lambda value: "y" if value else "n",
    OptionKind.TEXT: str,
    OptionKind.NUMBER: lambda value: str(int(value)),
    OptionKind.CHOICE: lambda value: value.value,
    OptionKind.DOCUMENT: lambda value: value.to_wire(),
}


@dataclass(frozen=True, slots=True)
class OptionSpec:
    """Registry entry for one option."""

    name: str
    wire_key: str
    kind: OptionKind
    validator: Validator
    repeatable: bool = False

    def validate(self, raw: Any) -> Any:
        return self.validator(self.name, raw)

    def encode(self, value: Any) -> Any:
        encoder = _ENCODERS[self.kind]
        if self.repeatable:
            return [encoder(item) for item in value]
        return encoder(value)


def _flag(name: str, wire_key: str) -> OptionSpec:
    return OptionSpec(name, wire_key, OptionKind.FLAG, flag)


def _yes_no(name: str, wire_key: str) -> OptionSpec:
    return OptionSpec(name, wire_key, OptionKind.YES_NO, boolean)


def _text(name: str, wire_key: str, validator: Validator = non_blank, repeatable: bool = False) -> OptionSpec:
    return OptionSpec(name, wire_key, OptionKind.TEXT, validator, repeatable)


def _number(name: str, wire_key: str, validator: Validator) -> OptionSpec:
    return OptionSpec(name, wire_key, OptionKind.NUMBER, validator)


def _choice(name: str, wire_key: str, enum_cls: type[Enum]) -> OptionSpec:
    return OptionSpec(name, wire_key, OptionKind.CHOICE, choice(enum_cls))


def _document(name: str, wire_key: str, *types: type, repeatable: bool = False) -> OptionSpec:
    return OptionSpec(name, wire_key, OptionKind.DOCUMENT, instance_of(*types), repeatable)


_SPECS: tuple[OptionSpec, ...] = (
    # input, output and passwords
    _text("input_file", "inputFile"),
    _text("password", "password", text),
    _text("password_file", "passwordFile"),
    _flag("empty", "empty"),
    _text("output_file", "outputFile"),
    _flag("replace_input", "replaceInput"),
    _choice("password_mode", "passwordMode", PasswordMode),
    _flag("password_is_hex_key", "passwordIsHexKey"),
    _flag("suppress_password_recovery", "suppressPasswordRecovery"),
    _flag("allow_weak_crypto", "allowWeakCrypto"),
    # global behaviour
    _flag("verbose", "verbose"),
    _flag("no_warn", "noWarn"),
    _flag("quiet", "quiet"),
    _flag("progress", "progress"),
    _flag("warning_exit_0", "warningExit0"),
    _yes_no("keep_files_open", "keepFilesOpen"),
    _number("keep_files_open_threshold", "keepFilesOpenThreshold", at_least(1)),
    _flag("ignore_xref_streams", "ignoreXrefStreams"),
    _flag("suppress_recovery", "suppressRecovery"),
    # output writing
    _flag("linearize", "linearize"),
    _text("linearize_pass1", "linearizePass1"),
    _flag("qdf", "qdf"),
    _flag("preserve_unreferenced", "preserveUnreferenced"),
    _flag("newline_before_endstream", "newlineBeforeEndstream"),
    _yes_no("normalize_content", "normalizeContent"),
    _choice("stream_data", "streamData", StreamData),
    _yes_no("compress_streams", "compressStreams"),
    _flag("recompress_flate", "recompressFlate"),
    _number("compression_level", "compressionLevel", between(1, 9)),
    _choice("decode_level", "decodeLevel", DecodeLevel),
    _choice("object_streams", "objectStreams", ObjectStreams),
    _text("min_version", "minVersion"),
    _text("force_version", "forceVersion"),
    _flag("deterministic_id", "deterministicId"),
    _flag("static_id", "staticId"),
    _flag("static_aes_iv", "staticAesIv"),
    _flag("no_original_object_ids", "noOriginalObjectIds"),
    _number("split_pages", "splitPages", at_least(1)),
    # encryption
    _flag("decrypt", "decrypt"),
    _flag("remove_restrictions", "removeRestrictions"),
    _text("copy_encryption", "copyEncryption"),
    _text("encryption_file_password", "encryptionFilePassword", text),
    _document("encrypt", "encrypt", EncryptionPolicy),
    # transformations
    _flag("coalesce_contents", "coalesceContents"),
    _choice("flatten_annotations", "flattenAnnotations", FlattenAnnotations),
    _flag("flatten_rotation", "flattenRotation"),
    _flag("generate_appearances", "generateAppearances"),
    _flag("optimize_images", "optimizeImages"),
    _number("oi_min_width", "oiMinWidth", at_least(0)),
    _number("oi_min_height", "oiMinHeight", at_least(0)),
    _number("oi_min_area", "oiMinArea", at_least(0)),
    _flag("keep_inline_images", "keepInlineImages"),
    _flag("externalize_inline_images", "externalizeInlineImages"),
    _number("ii_min_bytes", "iiMinBytes", at_least(0)),
    _choice("remove_unreferenced_resources", "removeUnreferencedResources", AutoYesNo),
    _flag("remove_page_labels", "removePageLabels"),
    _text("set_page_labels", "setPageLabels", repeatable=True),
    _text("rotate", "rotate", rotation),
    # page selection and layering
    _document("pages", "pages", PageSelection, repeatable=True),
    _number("collate", "collate", at_least(1)),
    _document("overlay", "overlay", Layer),
    _document("underlay", "underlay", Layer),
    # attachments
    _document("add_attachment", "addAttachment", AddAttachment, repeatable=True),
    _document("copy_attachments_from", "copyAttachmentsFrom", CopyAttachment, repeatable=True),
    _text("remove_attachment", "removeAttachment", repeatable=True),
    _flag("list_attachments", "listAttachments"),
    _text("show_attachment", "showAttachment"),
    # inspection
    _flag("check", "check"),
    _flag("check_linearization", "checkLinearization"),
    _flag("show_linearization", "showLinearization"),
    _flag("show_encryption", "showEncryption"),
    _flag("show_encryption_key", "showEncryptionKey"),
    _flag("show_xref", "showXref"),
    _text("show_object", "showObject"),
    _flag("raw_stream_data", "rawStreamData"),
    _flag("filtered_stream_data", "filteredStreamData"),
    _flag("show_npages", "showNpages"),
    _flag("show_pages", "showPages"),
    _flag("with_images", "withImages"),
    _flag("is_encrypted", "isEncrypted"),
    _flag("requires_password", "requiresPassword"),
    # json export
    _choice("json", "json", JsonVersion),
    _text("json_key", "jsonKey", repeatable=True),
    _text("json_object", "jsonObject", repeatable=True),
    _choice("json_stream_data", "jsonStreamData", JsonStreamData),
    _text("json_stream_prefix", "jsonStreamPrefix"),
    _choice("json_output", "jsonOutput", JsonVersion),
    _text("update_from_json", "updateFromJson"),
)

OPTIONS: Mapping[str, OptionSpec] = MappingProxyType({spec.name: spec for spec in _SPECS})


def get_option(name: str) -> OptionSpec:
    try:
        return OPTIONS[name]
    except KeyError:
        raise KeyError(f"Option '{name}' is not registered") from None


def iter_options() -> Iterator[OptionSpec]:
    return iter(_SPECS)


__all__ = [
    "OptionKind",
    "OptionSpec",
    "OPTIONS",
    "Validator",
    "get_option",
    "iter_options",
    "flag",
    "boolean",
    "text",
    "non_blank",
    "at_least",
    "between",
    "choice",
    "instance_of",
    "rotation",
]
