"""
Custom exceptions for pdfjobx.

This module defines the exceptions raised while configuring and executing
jobs. Engine failures are not exceptions: a non-success exit code is returned
as part of :class:`pdfjobx.types.JobResult`.
"""

from __future__ import annotations

from typing import Iterable


class PdfJobError(Exception):
    """Base exception for all pdfjobx errors."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def default_message(self) -> str:
        return "An unknown pdfjobx error occurred."


class ValidationError(PdfJobError, ValueError):
    """Raised when an option value violates its registry constraint."""

    def __init__(self, option: str, constraint: str) -> None:
        self.option = option
        self.constraint = constraint
        super().__init__(f"Invalid value for option '{option}': {constraint}")

    @property
    def default_message(self) -> str:
        return "Invalid option value."


class ConfigurationConflictError(PdfJobError):
    """Raised when options that exclude each other are set together.

    Also raised when an execution entry point does not match the configured
    inspection mode.
    """

    def __init__(self, message: str = "", options: Iterable[str] = ()) -> None:
        self.options = tuple(options)
        super().__init__(message)

    @property
    def default_message(self) -> str:
        return "Conflicting job options."


class MissingResourceError(PdfJobError, FileNotFoundError):
    """Raised when a file referenced by an option does not exist."""

    def __init__(self, path: object, option: str | None = None) -> None:
        self.path = str(path)
        self.option = option
        if option:
            message = f"The file '{self.path}' referenced by '{option}' could not be found"
        else:
            message = f"The file '{self.path}' could not be found"
        super().__init__(message)

    @property
    def default_message(self) -> str:
        return "Referenced file could not be found."


class EngineUnavailableError(PdfJobError):
    """Raised when an engine cannot be started."""

    @property
    def default_message(self) -> str:
        return "The PDF engine is not available."


__all__ = [
    "PdfJobError",
    "ValidationError",
    "ConfigurationConflictError",
    "MissingResourceError",
    "EngineUnavailableError",
]
