"""Utility helpers shared by pdfjobx modules."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from .exceptions import MissingResourceError

_LOGGER = logging.getLogger("pdfjobx")

PathLike = str | os.PathLike[str]


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.propagate = False
    return logger


def resolve_path(path: PathLike | None) -> Path:
    if path is None:
        raise ValueError("Path must not be None")
    resolved = Path(path).expanduser().resolve()
    _LOGGER.debug("Resolved path '%s' to '%s'", path, resolved)
    return resolved


def ensure_exists(path: PathLike, option: str) -> Path:
    """Return *path* as a :class:`Path`, raising when it does not exist."""

    candidate = Path(path).expanduser()
    if not candidate.exists():
        raise MissingResourceError(path, option)
    return candidate


def which(executables: Sequence[str]) -> str | None:
    """Return the first executable from *executables* found on ``PATH``."""

    for candidate in executables:
        found = shutil.which(candidate)
        if found:
            _LOGGER.debug("Detected external tool: %s -> %s", candidate, found)
            return found
    return None


def run_subprocess(
    command: Sequence[str],
    *,
    timeout: float | None = None,
) -> subprocess.CompletedProcess[bytes]:
    """Run *command* capturing raw stdout and stderr.

    The exit status is returned to the caller untouched; a non-zero status is
    a normal engine outcome, not an error.
    """

    _LOGGER.debug("Executing command: %s", " ".join(command))
    completed = subprocess.run(
        command,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        check=False,
        timeout=timeout,
    )
    _LOGGER.debug(
        "Command finished with exit code %s (%d bytes stdout, %d bytes stderr)",
        completed.returncode,
        len(completed.stdout or b""),
        len(completed.stderr or b""),
    )
    return completed


def pdf_date(moment: datetime) -> str:
    """Format *moment* as a PDF date string in UTC (``D:YYYYMMDDHHmmSSZ``)."""

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime("D:%Y%m%d%H%M%SZ")


def mask_secret(value: object) -> str:
    return "<provided>" if value else "<empty>"


__all__ = [
    "PathLike",
    "get_logger",
    "resolve_path",
    "ensure_exists",
    "which",
    "run_subprocess",
    "pdf_date",
    "mask_secret",
]
