"""Render a validated option map into the sparse wire document."""

from __future__ import annotations

import json
from typing import Any, Mapping

from .options import iter_options


def encode_options(options: Mapping[str, Any]) -> dict[str, Any]:
    """
    Build the wire document for *options*.

    Keys follow registry declaration order and only set options are emitted.

    Args:
        options: Option name to validated value (lists for repeatable options)

    Returns:
        JSON-compatible dictionary
    """

    document: dict[str, Any] = {}
    for spec in iter_options():
        if spec.name in options:
            document[spec.wire_key] = spec.encode(options[spec.name])
    return document


def to_json(document: Mapping[str, Any], *, indent: int | None = None) -> str:
    """Serialize a wire document; compact unless *indent* is given."""

    if indent is None:
        return json.dumps(document, separators=(",", ":"), ensure_ascii=False)
    return json.dumps(document, indent=indent, ensure_ascii=False)


__all__ = ["encode_options", "to_json"]
