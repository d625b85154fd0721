from __future__ import annotations

import logging
from pathlib import Path

import pytest

from pdfjobx.encryption import Tier40
from pdfjobx.enums import (
    ExitCode,
    IsEncryptedExitCode,
    JsonVersion,
    RequiresPasswordExitCode,
    Rotation,
)
from pdfjobx.exceptions import (
    ConfigurationConflictError,
    MissingResourceError,
    ValidationError,
)
from pdfjobx.job import Job, LoggingObserver
from pdfjobx.selections import AddAttachment, PageSelection


def _configure(job: Job, source: Path) -> Job:
    return (
        job.input_file(source, "secret")
        .output_file("out.pdf")
        .compression_level(5)
        .pages(".", "1-3")
        .pages(".", "z")
        .encrypt("user", "owner")
    )


def test_job_is_empty_after_execution(sample_pdf: Path, recording_engine) -> None:
    job = _configure(Job(engine=recording_engine), sample_pdf)
    expected = job.to_document()

    job.run()

    assert dict(job.options) == {}
    assert recording_engine.documents == [expected]
    assert _configure(job, sample_pdf).to_document() == _configure(Job(), sample_pdf).to_document()


def test_pages_accumulate_in_call_order(recording_engine) -> None:
    job = Job().pages("a.pdf", "1").pages("b.pdf").pages(".", "2-z", password="pw")

    assert job.options["pages"] == (
        PageSelection("a.pdf", "1"),
        PageSelection("b.pdf"),
        PageSelection(".", "2-z", "pw"),
    )
    assert job.to_document()["pages"] == [
        {"file": "a.pdf", "range": "1"},
        {"file": "b.pdf"},
        {"file": ".", "range": "2-z", "password": "pw"},
    ]


def test_combined_queries_conflict_before_engine_call(recording_engine) -> None:
    job = Job(engine=recording_engine).input_file("in.pdf").is_encrypted().requires_password()

    with pytest.raises(ConfigurationConflictError) as excinfo:
        job.run()

    assert set(excinfo.value.options) == {"is_encrypted", "requires_password"}
    assert recording_engine.documents == []
    assert job.is_set("is_encrypted")
    assert job.is_set("requires_password")


@pytest.mark.parametrize("query", ["is_encrypted", "requires_password"])
def test_generic_entry_point_rejects_queries(query: str, recording_engine) -> None:
    job = getattr(Job().input_file("in.pdf"), query)()

    with pytest.raises(ConfigurationConflictError):
        job.run(recording_engine)
    assert recording_engine.documents == []


def test_query_entry_points_require_their_flag(recording_engine) -> None:
    with pytest.raises(ConfigurationConflictError):
        Job().input_file("in.pdf").run_is_encrypted(recording_engine)
    with pytest.raises(ConfigurationConflictError):
        Job().input_file("in.pdf").is_encrypted().run_requires_password(recording_engine)


def test_is_encrypted_entry_point_classifies_exit_code(recording_engine) -> None:
    recording_engine.exit_code = 2
    result = Job().input_file("in.pdf").is_encrypted().run_is_encrypted(recording_engine)

    assert result.exit_code is IsEncryptedExitCode.NOT_ENCRYPTED
    assert result.is_encrypted is False
    assert recording_engine.documents == [{"inputFile": "in.pdf", "isEncrypted": ""}]


def test_requires_password_entry_point_classifies_exit_code(recording_engine) -> None:
    recording_engine.exit_code = 3
    job = Job(engine=recording_engine).input_file("in.pdf").requires_password()

    result = job.run_requires_password()

    assert result.exit_code is RequiresPasswordExitCode.ENCRYPTED_NO_PASSWORD_REQUIRED
    assert result.requires_password is False
    assert result.is_encrypted is True


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (0, ExitCode.SUCCESS),
        (3, ExitCode.WARNINGS_FOUND_FILE_PROCESSED),
        (2, ExitCode.ERRORS_FOUND_FILE_NOT_PROCESSED),
        (42, ExitCode.ERRORS_FOUND_FILE_NOT_PROCESSED),
    ],
)
def test_generic_entry_point_classifies_exit_code(raw: int, expected: ExitCode, recording_engine) -> None:
    recording_engine.exit_code = raw
    recording_engine.output = "diagnostics"

    result = Job().input_file("in.pdf").check().run(recording_engine)

    assert result.exit_code is expected
    assert result.raw_exit_code == raw
    assert result.output == "diagnostics"


def test_engine_argument_wins_over_constructor_engine(recording_engine) -> None:
    from conftest import RecordingEngine

    fallback = RecordingEngine()
    Job(engine=fallback).input_file("in.pdf").check().run(recording_engine)

    assert len(recording_engine.documents) == 1
    assert fallback.documents == []


def test_job_is_reset_when_engine_raises() -> None:
    class BrokenEngine:
        name = "broken"
        exit_codes = None

        def execute(self, document):
            raise RuntimeError("engine crashed")

    job = Job().input_file("in.pdf").check()

    with pytest.raises(RuntimeError):
        job.run(BrokenEngine())
    assert dict(job.options) == {}


def test_validation_failure_stores_nothing() -> None:
    job = Job()

    with pytest.raises(ValidationError):
        job.input_file("in.pdf", 1234)  # type: ignore[arg-type]
    assert dict(job.options) == {}

    with pytest.raises(ValidationError):
        job.compression_level(10)
    assert not job.is_set("compression_level")


def test_input_file_sets_file_and_password(sample_pdf: Path) -> None:
    document = Job().input_file(sample_pdf, "pw").to_document()

    assert document == {"inputFile": str(sample_pdf), "password": "pw"}


def test_missing_referenced_files_fail_at_configuration(tmp_path: Path) -> None:
    missing = tmp_path / "missing.pdf"
    job = Job()

    with pytest.raises(MissingResourceError) as excinfo:
        job.add_attachment(missing)
    assert excinfo.value.path == str(missing)
    assert isinstance(excinfo.value, FileNotFoundError)

    with pytest.raises(MissingResourceError):
        job.overlay(missing)
    with pytest.raises(MissingResourceError):
        job.underlay(missing, to="1-z")
    with pytest.raises(MissingResourceError):
        job.copy_encryption(missing)
    with pytest.raises(MissingResourceError):
        job.copy_attachments_from(missing, prefix="x-")
    assert dict(job.options) == {}


def test_add_attachment_derives_metadata_from_file(text_file: Path) -> None:
    document = Job().add_attachment(text_file, description="Minutes").to_document()

    [attachment] = document["addAttachment"]
    assert attachment["key"] == "notes.txt"
    assert attachment["filename"] == "notes.txt"
    assert attachment["mimetype"] == "text/plain"
    assert attachment["description"] == "Minutes"
    assert attachment["creationdate"].startswith("D:")
    assert attachment["moddate"].endswith("Z")
    assert "replace" not in attachment


def test_add_attachment_accepts_explicit_value(text_file: Path) -> None:
    explicit = AddAttachment(str(text_file), key="minutes", replace=True)

    document = Job().add_attachment(explicit).to_document()

    assert document["addAttachment"] == [{"file": str(text_file), "key": "minutes", "replace": ""}]


def test_layers_and_copies_render_their_fields(sample_pdf: Path) -> None:
    document = (
        Job()
        .overlay(sample_pdf, to="1-3", from_pages="1", repeat="z")
        .underlay(sample_pdf, password="pw")
        .copy_attachments_from(sample_pdf, prefix="old-")
        .copy_encryption(sample_pdf, "pw")
        .to_document()
    )

    assert document["overlay"] == {"file": str(sample_pdf), "to": "1-3", "from": "1", "repeat": "z"}
    assert document["underlay"] == {"file": str(sample_pdf), "password": "pw"}
    assert document["copyAttachmentsFrom"] == [{"file": str(sample_pdf), "prefix": "old-"}]
    assert document["copyEncryption"] == str(sample_pdf)
    assert document["encryptionFilePassword"] == "pw"


def test_encrypt_defaults_to_256_bit_and_accepts_tiers() -> None:
    assert "256bit" in Job().encrypt("u", "o").to_document()["encrypt"]
    assert "40bit" in Job().encrypt("u", "o", Tier40()).to_document()["encrypt"]
    assert "128bit" in Job().encrypt("u", "o", "128bit").to_document()["encrypt"]


def test_rotate_accepts_enum_degrees_and_text() -> None:
    assert Job().rotate(Rotation.ROTATE_MINUS_90).to_document()["rotate"] == "-90"
    assert Job().rotate(90, "1-2").to_document()["rotate"] == "+90:1-2"
    assert Job().rotate("180:z").to_document()["rotate"] == "+180:z"
    with pytest.raises(ValueError):
        Job().rotate(45)


def test_json_defaults_to_latest_version() -> None:
    document = Job().json().json_key("pages").json_key("encrypt").json_output(JsonVersion.V2).to_document()

    assert document["json"] == "latest"
    assert document["jsonKey"] == ["pages", "encrypt"]
    assert document["jsonOutput"] == "2"


def test_set_page_labels_appends_every_label() -> None:
    job = Job().set_page_labels("1:r").set_page_labels("5:D", "9:A/p1")

    assert job.to_document()["setPageLabels"] == ["1:r", "5:D", "9:A/p1"]


def test_options_snapshot_is_read_only() -> None:
    job = Job().remove_attachment("a").remove_attachment("b")
    snapshot = job.options

    assert snapshot["remove_attachment"] == ("a", "b")
    with pytest.raises(TypeError):
        snapshot["check"] = True  # type: ignore[index]


def test_reset_is_idempotent() -> None:
    job = Job().check().verbose()

    job.reset().reset()

    assert job.to_document() == {}


def test_observer_receives_every_change() -> None:
    seen: list[tuple[str, object]] = []

    Job(observer=lambda name, value: seen.append((name, value))).input_file("in.pdf", "pw").check()

    assert seen == [("input_file", "in.pdf"), ("password", "pw"), ("check", True)]


def test_logging_observer_masks_secrets(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("tests.observer")
    job = Job(observer=LoggingObserver(logger))

    with caplog.at_level(logging.DEBUG, logger="tests.observer"):
        job.input_file("in.pdf", "hunter2").encrypt("user-secret", "owner-secret").pages("b.pdf", password="page-secret")

    assert "in.pdf" in caplog.text
    assert "<provided>" in caplog.text
    for secret in ("hunter2", "user-secret", "owner-secret", "page-secret"):
        assert secret not in caplog.text


def test_input_file_without_password_clears_earlier_password(sample_pdf: Path) -> None:
    job = Job().input_file(sample_pdf, "old").input_file("other.pdf")

    assert job.to_document() == {"inputFile": "other.pdf"}
    assert not job.is_set("password")


def test_logging_observer_only_masks_password_values(
    sample_pdf: Path, caplog: pytest.LogCaptureFixture
) -> None:
    logger = logging.getLogger("tests.observer")
    job = Job(observer=LoggingObserver(logger))

    with caplog.at_level(logging.DEBUG, logger="tests.observer"):
        job.password_mode("hex-bytes").password_is_hex_key().copy_encryption(sample_pdf, "copy-secret")

    assert "hex-bytes" in caplog.text
    assert "Option 'password_is_hex_key' set to True" in caplog.text
    assert "copy-secret" not in caplog.text
