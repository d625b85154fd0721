from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner
from pypdf import PdfReader

from conftest import OWNER_PASSWORD, USER_PASSWORD
from pdfjobx import __version__
from pdfjobx.cli import cli


def _invoke(*args: str):
    return CliRunner().invoke(cli, ["--engine", "pypdf", *args])


def test_version_and_help() -> None:
    assert __version__ in CliRunner().invoke(cli, ["--version"]).output

    result = CliRunner().invoke(cli, ["--help"])
    assert result.exit_code == 0
    for command in ("check", "show-encryption", "attachments", "encrypt", "decrypt"):
        assert command in result.output


def test_check_command(sample_pdf: Path) -> None:
    result = _invoke("check", str(sample_pdf))

    assert result.exit_code == 0, result.output
    assert "PDF Version" in result.output
    assert "No problems found" in result.output


def test_is_encrypted_command(sample_pdf: Path, encrypted_pdf: Path) -> None:
    assert "Encrypted: Yes" in _invoke("is-encrypted", str(encrypted_pdf)).output
    assert "Encrypted: No" in _invoke("is-encrypted", str(sample_pdf)).output


def test_requires_password_command(encrypted_pdf: Path) -> None:
    result = _invoke("requires-password", str(encrypted_pdf))

    assert result.exit_code == 0
    assert "Password required: Yes" in result.output


def test_encrypt_dry_run_prints_job_document(sample_pdf: Path, tmp_path: Path) -> None:
    output = tmp_path / "secret.pdf"

    result = _invoke("encrypt", str(sample_pdf), str(output), "-u", "u", "-w", "o", "--print", "low", "--dry-run")

    assert result.exit_code == 0, result.output
    document = json.loads(result.output)
    assert document["encrypt"]["256bit"]["print"] == "low"
    assert document["outputFile"] == str(output)
    assert not output.exists()


def test_encrypt_rejects_aes_for_40_bit_keys(sample_pdf: Path, tmp_path: Path) -> None:
    result = _invoke("encrypt", str(sample_pdf), str(tmp_path / "out.pdf"), "-u", "u", "-w", "o", "-b", "40", "--aes")

    assert result.exit_code == 1
    assert "✗ Error" in result.output


def test_encrypt_then_decrypt(sample_pdf: Path, tmp_path: Path) -> None:
    secret = tmp_path / "secret.pdf"
    plain = tmp_path / "plain.pdf"

    result = _invoke("encrypt", str(sample_pdf), str(secret), "-u", USER_PASSWORD, "-w", OWNER_PASSWORD)
    assert result.exit_code == 0, result.output
    assert PdfReader(str(secret)).is_encrypted is True

    result = _invoke("show-encryption", str(secret), "-p", OWNER_PASSWORD)
    assert result.exit_code == 0, result.output
    assert "AESv3" in result.output

    result = _invoke("decrypt", str(secret), str(plain), "-p", OWNER_PASSWORD)
    assert result.exit_code == 0, result.output
    assert PdfReader(str(plain)).is_encrypted is False


def test_decrypt_with_wrong_password_fails(encrypted_pdf: Path, tmp_path: Path) -> None:
    result = _invoke("decrypt", str(encrypted_pdf), str(tmp_path / "plain.pdf"), "-p", "wrong")

    assert result.exit_code == 1
    assert "invalid" in result.output


def test_attachments_list_and_extract(attachment_pdf: Path, sample_pdf: Path, tmp_path: Path) -> None:
    result = _invoke("attachments", str(attachment_pdf))
    assert result.exit_code == 0, result.output
    assert "notes.txt" in result.output

    assert "No embedded files" in _invoke("attachments", str(sample_pdf)).output

    destination = tmp_path / "extracted.txt"
    result = _invoke("attachments", str(attachment_pdf), "-x", "notes.txt", "-o", str(destination))
    assert result.exit_code == 0, result.output
    assert destination.read_bytes() == b"Meeting notes"


def test_show_xref_is_unsupported_by_pypdf(sample_pdf: Path) -> None:
    result = _invoke("show-xref", str(sample_pdf))

    assert result.exit_code == 1
    assert "showXref" in result.output
