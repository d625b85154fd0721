"""Value objects for page selections, layers and attachments.

Each object renders its own nested wire fragment through ``to_wire``; unset
fields are omitted.
"""

from __future__ import annotations

import mimetypes
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from .encryption import SWITCH
from .exceptions import ValidationError
from .utils import PathLike, ensure_exists, pdf_date, resolve_path


def _require_text(option: str, field_name: str, value: Any) -> str:
    if isinstance(value, os.PathLike):
        value = os.fspath(value)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(option, f"'{field_name}' must be a non-blank string")
    return value


def _optional_text(option: str, field_name: str, value: Any) -> str | None:
    if value is None:
        return None
    return _require_text(option, field_name, value)


def _compact(fields: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


@dataclass(frozen=True)
class PageSelection:
    """Pages taken from one file, in the order given by *range*.

    ``file`` may be ``"."`` to refer to the primary input file.
    """

    file: str
    range: str | None = None
    password: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "file", _require_text("pages", "file", self.file))
        object.__setattr__(self, "range", _optional_text("pages", "range", self.range))

    def to_wire(self) -> dict[str, Any]:
        return _compact({"file": self.file, "range": self.range, "password": self.password})


@dataclass(frozen=True)
class Layer:
    """Overlay or underlay source.

    Attributes:
        file: File whose pages are drawn over or under the output pages
        to: Output pages that receive the layer (all pages when unset)
        from_pages: Pages of *file* used in order (all pages when unset)
        repeat: Pages of *file* repeated once *from_pages* are exhausted
        password: Password for *file*
    """

    file: str
    to: str | None = None
    from_pages: str | None = None
    repeat: str | None = None
    password: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "file", _require_text("layer", "file", self.file))

    def to_wire(self) -> dict[str, Any]:
        return _compact(
            {
                "file": self.file,
                "to": self.to,
                "from": self.from_pages,
                "repeat": self.repeat,
                "password": self.password,
            }
        )


@dataclass(frozen=True)
class AddAttachment:
    """An embedded file to add to the output.

    Attributes:
        file: Path of the file to embed
        key: Key in the embedded files table
        filename: Name shown by viewers and used when saving the attachment
        creation_date: Creation date in PDF format (``D:YYYYMMDDHHmmSSZ``)
        mod_date: Modification date in PDF format
        mime_type: MIME type such as ``text/plain``
        description: Descriptive text displayed by some viewers
        replace: Replace an existing attachment with the same key
    """

    file: str
    key: str | None = None
    filename: str | None = None
    creation_date: str | None = None
    mod_date: str | None = None
    mime_type: str | None = None
    description: str | None = None
    replace: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "file", _require_text("add_attachment", "file", self.file))
        object.__setattr__(self, "key", _optional_text("add_attachment", "key", self.key))
        if not isinstance(self.replace, bool):
            raise ValidationError("add_attachment", "'replace' must be a boolean")
        ensure_exists(self.file, "add_attachment")

    @classmethod
    def from_file(
        cls,
        file: PathLike,
        *,
        key: str | None = None,
        filename: str | None = None,
        description: str | None = None,
        mime_type: str | None = None,
        creation_date: datetime | str | None = None,
        mod_date: datetime | str | None = None,
        replace: bool = False,
    ) -> "AddAttachment":
        """Build an attachment, deriving unset fields from the file itself."""

        path = ensure_exists(file, "add_attachment")
        path = resolve_path(path)
        stamp = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
        if mime_type is None:
            mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return cls(
            file=str(path),
            key=key or path.name,
            filename=filename or path.name,
            creation_date=_date_token(creation_date, stamp),
            mod_date=_date_token(mod_date, stamp),
            mime_type=mime_type,
            description=description,
            replace=replace,
        )

    def to_wire(self) -> dict[str, Any]:
        return _compact(
            {
                "file": self.file,
                "key": self.key,
                "filename": self.filename,
                "creationdate": self.creation_date,
                "moddate": self.mod_date,
                "mimetype": self.mime_type,
                "description": self.description,
                "replace": SWITCH if self.replace else None,
            }
        )


@dataclass(frozen=True)
class CopyAttachment:
    """Copy every attachment of another PDF, optionally prefixing the keys."""

    file: str
    prefix: str | None = None
    password: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "file", _require_text("copy_attachments_from", "file", self.file)
        )
        object.__setattr__(
            self, "prefix", _optional_text("copy_attachments_from", "prefix", self.prefix)
        )
        ensure_exists(self.file, "copy_attachments_from")

    def to_wire(self) -> dict[str, Any]:
        return _compact({"file": self.file, "prefix": self.prefix, "password": self.password})


def _date_token(value: datetime | str | None, fallback: datetime) -> str:
    if value is None:
        return pdf_date(fallback)
    if isinstance(value, datetime):
        return pdf_date(value)
    return value


__all__ = ["PageSelection", "Layer", "AddAttachment", "CopyAttachment"]
