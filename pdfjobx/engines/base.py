"""Engine protocol and exit code classification."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol

from ..enums import ExitCode, IsEncryptedExitCode, RequiresPasswordExitCode


@dataclass(frozen=True)
class EngineResult:
    """Raw outcome of one engine call.

    ``output`` holds info, then warning, then error text with trailing
    whitespace removed. ``data`` is only set when in-memory output was
    requested.
    """

    exit_code: int
    output: str = ""
    data: bytes | None = None


@dataclass(frozen=True)
class ExitCodeTable:
    """Maps an engine's integer exit statuses to symbolic outcomes.

    Integers missing from a mapping classify as the failure kind of that
    mapping.
    """

    generic: Mapping[int, ExitCode] = field(default_factory=dict)
    is_encrypted: Mapping[int, IsEncryptedExitCode] = field(default_factory=dict)
    requires_password: Mapping[int, RequiresPasswordExitCode] = field(default_factory=dict)

    def classify(self, code: int) -> ExitCode:
        return self.generic.get(code, ExitCode.ERRORS_FOUND_FILE_NOT_PROCESSED)

    def classify_is_encrypted(self, code: int) -> IsEncryptedExitCode:
        return self.is_encrypted.get(code, IsEncryptedExitCode.NOT_ENCRYPTED)

    def classify_requires_password(self, code: int) -> RequiresPasswordExitCode:
        return self.requires_password.get(code, RequiresPasswordExitCode.NOT_ENCRYPTED)


class Engine(Protocol):
    """Protocol every engine implements."""

    name: str
    exit_codes: ExitCodeTable

    def execute(self, document: Mapping[str, Any]) -> EngineResult:
        """Run one wire document and return its raw result."""


def combine_output(info: str = "", warnings: str = "", errors: str = "") -> str:
    """Concatenate diagnostic channels in info, warning, error order."""

    parts = [part.rstrip() for part in (info, warnings, errors) if part and part.strip()]
    return "\n".join(parts).rstrip()


__all__ = ["EngineResult", "ExitCodeTable", "Engine", "combine_output"]
