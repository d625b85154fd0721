"""Engine collaborators for pdfjobx."""

from __future__ import annotations

import logging

from ..exceptions import EngineUnavailableError
from .base import Engine, EngineResult, ExitCodeTable, combine_output
from .pypdf_engine import PYPDF_EXIT_CODES, PypdfEngine
from .qpdf_engine import QPDF_EXIT_CODES, QpdfEngine

_LOGGER = logging.getLogger("pdfjobx.engines")

ENGINE_NAMES = ("auto", "qpdf", "pypdf")


def create_engine(name: str) -> Engine:
    """Instantiate an engine by name (``qpdf`` or ``pypdf``)."""

    if name == "qpdf":
        if not QpdfEngine.available():
            raise EngineUnavailableError("qpdf executable not found on PATH")
        return QpdfEngine()
    if name == "pypdf":
        return PypdfEngine()
    raise ValueError(f"Unknown engine '{name}'. Choose from: qpdf, pypdf")


def detect_engine(preferred: str | None = None) -> Engine:
    """Return the preferred engine, or qpdf when installed and pypdf otherwise."""

    if preferred and preferred != "auto":
        return create_engine(preferred)
    if QpdfEngine.available():
        _LOGGER.debug("Using qpdf engine")
        return QpdfEngine()
    _LOGGER.debug("qpdf not found, falling back to the pypdf engine")
    return PypdfEngine()


__all__ = [
    "Engine",
    "EngineResult",
    "ExitCodeTable",
    "combine_output",
    "QpdfEngine",
    "QPDF_EXIT_CODES",
    "PypdfEngine",
    "PYPDF_EXIT_CODES",
    "ENGINE_NAMES",
    "create_engine",
    "detect_engine",
]
