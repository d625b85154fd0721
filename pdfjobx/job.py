"""
Fluent job configuration and execution.

A :class:`Job` collects validated options through chaining setters, encodes
them into a wire document and hands it to an engine. After every engine call
the job is reset so the instance can be reused.

Example:
    >>> result = (
    ...     Job()
    ...     .input_file("in.pdf")
    ...     .output_file("out.pdf")
    ...     .encrypt("user", "owner")
    ...     .run()
    ... )
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from types import MappingProxyType
from typing import Any, Callable, Mapping

from .encoder import encode_options, to_json
from .encryption import EncryptionPolicy, Tier, Tier40, Tier128, Tier256, build_tier
from .enums import (
    AutoYesNo,
    DecodeLevel,
    EncryptionTier,
    FlattenAnnotations,
    JsonStreamData,
    JsonVersion,
    ObjectStreams,
    PasswordMode,
    Rotation,
    StreamData,
)
from .engines import Engine, EngineResult, detect_engine
from .exceptions import ConfigurationConflictError, ValidationError
from .options import get_option
from .selections import AddAttachment, CopyAttachment, Layer, PageSelection
from .types import IsEncryptedResult, JobResult, RequiresPasswordResult
from .utils import PathLike, ensure_exists, mask_secret

_LOGGER = logging.getLogger("pdfjobx.job")

Observer = Callable[[str, Any], None]

_GENERIC = "run"
_IS_ENCRYPTED = "is_encrypted"
_REQUIRES_PASSWORD = "requires_password"

# options whose values are passwords
SECRET_OPTIONS = frozenset({"password", "encryption_file_password"})


class LoggingObserver:
    """Observer that logs every option change at debug level with secrets masked."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or _LOGGER

    def __call__(self, option: str, value: Any) -> None:
        self.logger.debug("Option '%s' set to %s", option, self._render(option, value))

    @staticmethod
    def _render(option: str, value: Any) -> str:
        if option in SECRET_OPTIONS:
            return mask_secret(value)
        if hasattr(value, "to_wire"):
            wire = value.to_wire()
            return repr(
                {key: mask_secret(item) if "assword" in key else item for key, item in wire.items()}
            )
        return repr(value)


class Job:
    """
    Builder for one engine job.

    Args:
        engine: Engine used when an entry point is called without one
        observer: Callable receiving ``(option, value)`` after every change
    """

    def __init__(self, *, engine: Engine | None = None, observer: Observer | None = None) -> None:
        self._engine = engine
        self._observer = observer
        self._options: dict[str, Any] = {}

    # -- state ---------------------------------------------------------------

    @property
    def options(self) -> Mapping[str, Any]:
        """Read-only snapshot of the configured options."""

        return MappingProxyType(
            {name: tuple(value) if isinstance(value, list) else value for name, value in self._options.items()}
        )

    def is_set(self, name: str) -> bool:
        get_option(name)
        return name in self._options

    def reset(self) -> "Job":
        """Remove every configured option."""

        self._options.clear()
        return self

    def _set(self, name: str, raw: Any) -> "Job":
        return self._set_many((name, raw))

    def _set_many(self, *pairs: tuple[str, Any], optional: tuple[str, ...] = ()) -> "Job":
        """Validate every pair before storing any; ``None`` skips *optional* names."""

        validated = []
        for name, raw in pairs:
            if raw is None and name in optional:
                continue
            spec = get_option(name)
            validated.append((spec, spec.validate(raw)))

        for spec, value in validated:
            if spec.repeatable:
                self._options.setdefault(spec.name, []).append(value)
            else:
                self._options[spec.name] = value
            if self._observer is not None:
                self._observer(spec.name, value)
        return self

    def _switch(self, name: str) -> "Job":
        return self._set(name, True)

    # -- input, output and passwords ----------------------------------------

    def input_file(self, file: PathLike, password: str | None = None) -> "Job":
        """Set the input file; a ``None`` password clears any earlier one."""

        self._set_many(("input_file", file), ("password", password), optional=("password",))
        if password is None:
            self._options.pop("password", None)
        return self

    def password(self, password: str) -> "Job":
        return self._set("password", password)

    def password_file(self, file: PathLike) -> "Job":
        """Read the password from the first line of *file* (``"-"`` for stdin)."""

        return self._set("password_file", file)

    def empty(self) -> "Job":
        """Start from an empty PDF instead of an input file."""

        return self._switch("empty")

    def output_file(self, file: PathLike) -> "Job":
        return self._set("output_file", file)

    def replace_input(self) -> "Job":
        return self._switch("replace_input")

    def password_mode(self, mode: PasswordMode | str) -> "Job":
        return self._set("password_mode", mode)

    def password_is_hex_key(self) -> "Job":
        return self._switch("password_is_hex_key")

    def suppress_password_recovery(self) -> "Job":
        return self._switch("suppress_password_recovery")

    def allow_weak_crypto(self) -> "Job":
        return self._switch("allow_weak_crypto")

    # -- global behaviour ----------------------------------------------------

    def verbose(self) -> "Job":
        return self._switch("verbose")

    def no_warn(self) -> "Job":
        return self._switch("no_warn")

    def quiet(self) -> "Job":
        return self._switch("quiet")

    def progress(self) -> "Job":
        return self._switch("progress")

    def warning_exit_0(self) -> "Job":
        """Report success instead of warnings when the file was processed."""

        return self._switch("warning_exit_0")

    def keep_files_open(self, keep: bool) -> "Job":
        return self._set("keep_files_open", keep)

    def keep_files_open_threshold(self, count: int) -> "Job":
        return self._set("keep_files_open_threshold", count)

    def ignore_xref_streams(self) -> "Job":
        return self._switch("ignore_xref_streams")

    def suppress_recovery(self) -> "Job":
        return self._switch("suppress_recovery")

    # -- output writing ------------------------------------------------------

    def linearize(self) -> "Job":
        return self._switch("linearize")

    def linearize_pass1(self, file: PathLike) -> "Job":
        return self._set("linearize_pass1", file)

    def qdf(self) -> "Job":
        return self._switch("qdf")

    def preserve_unreferenced(self) -> "Job":
        return self._switch("preserve_unreferenced")

    def newline_before_endstream(self) -> "Job":
        return self._switch("newline_before_endstream")

    def normalize_content(self, normalize: bool) -> "Job":
        return self._set("normalize_content", normalize)

    def stream_data(self, mode: StreamData | str) -> "Job":
        return self._set("stream_data", mode)

    def compress_streams(self, compress: bool) -> "Job":
        return self._set("compress_streams", compress)

    def recompress_flate(self) -> "Job":
        return self._switch("recompress_flate")

    def compression_level(self, level: int) -> "Job":
        """Deflate level between 1 and 9."""

        return self._set("compression_level", level)

    def decode_level(self, level: DecodeLevel | str) -> "Job":
        return self._set("decode_level", level)

    def object_streams(self, mode: ObjectStreams | str) -> "Job":
        return self._set("object_streams", mode)

    def min_version(self, version: str) -> "Job":
        return self._set("min_version", version)

    def force_version(self, version: str) -> "Job":
        return self._set("force_version", version)

    def deterministic_id(self) -> "Job":
        return self._switch("deterministic_id")

    def static_id(self) -> "Job":
        return self._switch("static_id")

    def static_aes_iv(self) -> "Job":
        return self._switch("static_aes_iv")

    def no_original_object_ids(self) -> "Job":
        return self._switch("no_original_object_ids")

    def split_pages(self, group_size: int = 1) -> "Job":
        return self._set("split_pages", group_size)

    # -- encryption ----------------------------------------------------------

    def decrypt(self) -> "Job":
        return self._switch("decrypt")

    def remove_restrictions(self) -> "Job":
        return self._switch("remove_restrictions")

    def copy_encryption(self, file: PathLike, password: str | None = None) -> "Job":
        """Encrypt the output like *file*, opened with *password*."""

        get_option("copy_encryption").validate(file)
        ensure_exists(file, "copy_encryption")
        return self._set_many(
            ("copy_encryption", file),
            ("encryption_file_password", password),
            optional=("encryption_file_password",),
        )

    def encrypt(
        self,
        user_password: str,
        owner_password: str,
        tier: Tier | EncryptionTier | str | None = None,
    ) -> "Job":
        """
        Encrypt the output.

        Args:
            user_password: Password needed to open the document
            owner_password: Password that lifts the restrictions
            tier: A tier value, or a tier selector for default permissions.
                256-bit AES is used when omitted.
        """

        if tier is None:
            tier = Tier256()
        elif not isinstance(tier, (Tier40, Tier128, Tier256)):
            tier = build_tier(tier)
        policy = EncryptionPolicy(user_password, owner_password, tier)
        _LOGGER.debug("Encrypting with %s", policy.bits.value)
        return self._set("encrypt", policy)

    # -- transformations -----------------------------------------------------

    def coalesce_contents(self) -> "Job":
        return self._switch("coalesce_contents")

    def flatten_annotations(self, mode: FlattenAnnotations | str) -> "Job":
        return self._set("flatten_annotations", mode)

    def flatten_rotation(self) -> "Job":
        return self._switch("flatten_rotation")

    def generate_appearances(self) -> "Job":
        return self._switch("generate_appearances")

    def optimize_images(self) -> "Job":
        return self._switch("optimize_images")

    def oi_min_width(self, width: int) -> "Job":
        return self._set("oi_min_width", width)

    def oi_min_height(self, height: int) -> "Job":
        return self._set("oi_min_height", height)

    def oi_min_area(self, area: int) -> "Job":
        return self._set("oi_min_area", area)

    def keep_inline_images(self) -> "Job":
        return self._switch("keep_inline_images")

    def externalize_inline_images(self) -> "Job":
        return self._switch("externalize_inline_images")

    def ii_min_bytes(self, size: int) -> "Job":
        return self._set("ii_min_bytes", size)

    def remove_unreferenced_resources(self, mode: AutoYesNo | str) -> "Job":
        return self._set("remove_unreferenced_resources", mode)

    def remove_page_labels(self) -> "Job":
        return self._switch("remove_page_labels")

    def set_page_labels(self, *labels: str) -> "Job":
        """Append page label specifications such as ``"1:r"`` or ``"5:D/p3"``."""

        return self._set_many(*(("set_page_labels", label) for label in labels))

    def rotate(self, angle: Rotation | int | str, page_range: str | None = None) -> "Job":
        """Rotate pages by *angle*; all pages when *page_range* is omitted."""

        if isinstance(angle, Rotation):
            value = angle.value
        elif isinstance(angle, int) and not isinstance(angle, bool):
            try:
                value = Rotation.from_degrees(angle).value
            except ValueError as exc:
                raise ValidationError("rotate", str(exc)) from None
        else:
            value = angle
        if page_range is not None:
            value = f"{value}:{page_range}"
        return self._set("rotate", value)

    # -- page selection and layering ----------------------------------------

    def pages(self, file: PathLike, page_range: str | None = None, password: str | None = None) -> "Job":
        """Append pages of *file* (``"."`` for the input file) to the output."""

        selection = PageSelection(os.fspath(file), page_range, password)
        return self._set("pages", selection)

    def collate(self, group_size: int = 1) -> "Job":
        return self._set("collate", group_size)

    def overlay(
        self,
        file: PathLike | Layer,
        *,
        to: str | None = None,
        from_pages: str | None = None,
        repeat: str | None = None,
        password: str | None = None,
    ) -> "Job":
        return self._set("overlay", self._layer("overlay", file, to, from_pages, repeat, password))

    def underlay(
        self,
        file: PathLike | Layer,
        *,
        to: str | None = None,
        from_pages: str | None = None,
        repeat: str | None = None,
        password: str | None = None,
    ) -> "Job":
        return self._set("underlay", self._layer("underlay", file, to, from_pages, repeat, password))

    @staticmethod
    def _layer(option, file, to, from_pages, repeat, password) -> Layer:
        if isinstance(file, Layer):
            layer = file
        else:
            layer = Layer(os.fspath(file), to, from_pages, repeat, password)
        ensure_exists(layer.file, option)
        return layer

    # -- attachments ---------------------------------------------------------

    def add_attachment(
        self,
        file: PathLike | AddAttachment,
        *,
        key: str | None = None,
        filename: str | None = None,
        description: str | None = None,
        mime_type: str | None = None,
        creation_date: datetime | str | None = None,
        mod_date: datetime | str | None = None,
        replace: bool = False,
    ) -> "Job":
        """
        Embed a file in the output.

        Unset key, filename, dates and MIME type are derived from the file.

        Raises:
            MissingResourceError: If *file* does not exist
        """

        if isinstance(file, AddAttachment):
            attachment = file
        else:
            attachment = AddAttachment.from_file(
                file,
                key=key,
                filename=filename,
                description=description,
                mime_type=mime_type,
                creation_date=creation_date,
                mod_date=mod_date,
                replace=replace,
            )
        return self._set("add_attachment", attachment)

    def copy_attachments_from(
        self, file: PathLike | CopyAttachment, *, prefix: str | None = None, password: str | None = None
    ) -> "Job":
        if not isinstance(file, CopyAttachment):
            file = CopyAttachment(os.fspath(file), prefix, password)
        return self._set("copy_attachments_from", file)

    def remove_attachment(self, key: str) -> "Job":
        return self._set("remove_attachment", key)

    def list_attachments(self) -> "Job":
        return self._switch("list_attachments")

    def show_attachment(self, key: str) -> "Job":
        """Write the attachment *key* to the result's ``data``."""

        return self._set("show_attachment", key)

    # -- inspection ----------------------------------------------------------

    def check(self) -> "Job":
        return self._switch("check")

    def check_linearization(self) -> "Job":
        return self._switch("check_linearization")

    def show_linearization(self) -> "Job":
        return self._switch("show_linearization")

    def show_encryption(self) -> "Job":
        return self._switch("show_encryption")

    def show_encryption_key(self) -> "Job":
        return self._switch("show_encryption_key")

    def show_xref(self) -> "Job":
        return self._switch("show_xref")

    def show_object(self, reference: str) -> "Job":
        """Show one object, e.g. ``"trailer"`` or ``"3,0"``."""

        return self._set("show_object", reference)

    def raw_stream_data(self) -> "Job":
        return self._switch("raw_stream_data")

    def filtered_stream_data(self) -> "Job":
        return self._switch("filtered_stream_data")

    def show_npages(self) -> "Job":
        return self._switch("show_npages")

    def show_pages(self) -> "Job":
        return self._switch("show_pages")

    def with_images(self) -> "Job":
        return self._switch("with_images")

    def is_encrypted(self) -> "Job":
        """Select the encryption query; execute with :meth:`run_is_encrypted`."""

        return self._switch("is_encrypted")

    def requires_password(self) -> "Job":
        """Select the password query; execute with :meth:`run_requires_password`."""

        return self._switch("requires_password")

    # -- json export ---------------------------------------------------------

    def json(self, version: JsonVersion | str = JsonVersion.LATEST) -> "Job":
        return self._set("json", version)

    def json_key(self, key: str) -> "Job":
        return self._set("json_key", key)

    def json_object(self, reference: str) -> "Job":
        return self._set("json_object", reference)

    def json_stream_data(self, mode: JsonStreamData | str) -> "Job":
        return self._set("json_stream_data", mode)

    def json_stream_prefix(self, prefix: str) -> "Job":
        return self._set("json_stream_prefix", prefix)

    def json_output(self, version: JsonVersion | str = JsonVersion.LATEST) -> "Job":
        return self._set("json_output", version)

    def update_from_json(self, file: PathLike) -> "Job":
        return self._set("update_from_json", file)

    # -- encoding ------------------------------------------------------------

    def to_document(self) -> dict[str, Any]:
        """Return the sparse wire document for the current options."""

        return encode_options(self._options)

    def to_json(self, *, indent: int | None = None) -> str:
        return to_json(self.to_document(), indent=indent)

    # -- execution -----------------------------------------------------------

    def run(self, engine: Engine | None = None) -> JobResult:
        """
        Execute a generic job.

        Raises:
            ConfigurationConflictError: If ``is_encrypted`` or ``requires_password``
                is set; those queries have their own entry points
        """

        self._check_entry_point(_GENERIC)
        engine = self._resolve_engine(engine)
        raw = self._execute(engine)
        return JobResult(
            exit_code=engine.exit_codes.classify(raw.exit_code),
            output=raw.output,
            data=raw.data,
            raw_exit_code=raw.exit_code,
        )

    def run_is_encrypted(self, engine: Engine | None = None) -> IsEncryptedResult:
        self._check_entry_point(_IS_ENCRYPTED)
        engine = self._resolve_engine(engine)
        raw = self._execute(engine)
        return IsEncryptedResult(
            exit_code=engine.exit_codes.classify_is_encrypted(raw.exit_code),
            output=raw.output,
            raw_exit_code=raw.exit_code,
        )

    def run_requires_password(self, engine: Engine | None = None) -> RequiresPasswordResult:
        self._check_entry_point(_REQUIRES_PASSWORD)
        engine = self._resolve_engine(engine)
        raw = self._execute(engine)
        return RequiresPasswordResult(
            exit_code=engine.exit_codes.classify_requires_password(raw.exit_code),
            output=raw.output,
            raw_exit_code=raw.exit_code,
        )

    def _check_entry_point(self, entry_point: str) -> None:
        queries = [name for name in (_IS_ENCRYPTED, _REQUIRES_PASSWORD) if name in self._options]

        if len(queries) > 1:
            raise ConfigurationConflictError(
                "'is_encrypted' and 'requires_password' cannot be combined", queries
            )
        if entry_point == _GENERIC:
            if queries:
                raise ConfigurationConflictError(
                    f"'{queries[0]}' is set; use run_{queries[0]}() instead of run()", queries
                )
        elif entry_point not in queries:
            raise ConfigurationConflictError(
                f"run_{entry_point}() requires '{entry_point}' to be set", (entry_point,)
            )

    def _resolve_engine(self, engine: Engine | None) -> Engine:
        if engine is not None:
            return engine
        if self._engine is None:
            self._engine = detect_engine()
        return self._engine

    def _execute(self, engine: Engine) -> EngineResult:
        document = self.to_document()
        _LOGGER.info("Executing job on %s engine with %d option(s)", engine.name, len(document))
        try:
            return engine.execute(document)
        finally:
            self.reset()


__all__ = ["Job", "LoggingObserver", "Observer"]
