from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping
import sys

import pytest
from pypdf import PdfWriter

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pdfjobx.engines import EngineResult  # noqa: E402
from pdfjobx.engines.qpdf_engine import QPDF_EXIT_CODES  # noqa: E402

USER_PASSWORD = "reader"
OWNER_PASSWORD = "admin"


def _write(writer: PdfWriter, path: Path) -> Path:
    with path.open("wb") as stream:
        writer.write(stream)
    return path


def _blank_writer(pages: int = 5) -> PdfWriter:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=200, height=200)
    writer.add_metadata({"/Producer": "pdfjobx-tests", "/Title": "Sample"})
    return writer


@pytest.fixture()
def sample_pdf(tmp_path: Path) -> Path:
    return _write(_blank_writer(), tmp_path / "sample.pdf")


@pytest.fixture()
def encrypted_pdf(tmp_path: Path) -> Path:
    writer = _blank_writer()
    writer.encrypt(user_password=USER_PASSWORD, owner_password=OWNER_PASSWORD, algorithm="AES-256")
    return _write(writer, tmp_path / "encrypted.pdf")


@pytest.fixture()
def owner_only_pdf(tmp_path: Path) -> Path:
    writer = _blank_writer()
    writer.encrypt(user_password="", owner_password=OWNER_PASSWORD, algorithm="AES-256")
    return _write(writer, tmp_path / "owner-only.pdf")


@pytest.fixture()
def attachment_pdf(tmp_path: Path) -> Path:
    writer = _blank_writer(pages=1)
    writer.add_attachment("notes.txt", b"Meeting notes")
    return _write(writer, tmp_path / "attachment.pdf")


@pytest.fixture()
def text_file(tmp_path: Path) -> Path:
    path = tmp_path / "notes.txt"
    path.write_text("Meeting notes", encoding="utf-8")
    return path


@dataclass
class RecordingEngine:
    """Engine double that records wire documents and replays a fixed result."""

    exit_code: int = 0
    output: str = ""
    data: bytes | None = None
    name: str = "recording"
    exit_codes: Any = QPDF_EXIT_CODES
    documents: list[dict[str, Any]] = field(default_factory=list)

    def execute(self, document: Mapping[str, Any]) -> EngineResult:
        self.documents.append(dict(document))
        return EngineResult(self.exit_code, self.output, self.data)


@pytest.fixture()
def recording_engine() -> RecordingEngine:
    return RecordingEngine()
