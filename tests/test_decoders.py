from __future__ import annotations

import pytest

from pdfjobx.decoders import parse_attachments, parse_check, parse_encryption, parse_json, parse_xref
from pdfjobx.enums import ExitCode
from pdfjobx.types import (
    CheckInfo,
    EncryptDetails,
    EncryptionInfo,
    JobResult,
    PageDetails,
    PageImage,
    PageOutline,
    PdfInfo,
    XrefEntry,
)

ENCRYPTION_OUTPUT = """\
R = 6
P = -1028
User password = reader
Supplied password is owner password
extract for accessibility: allowed
extract for any purpose: allowed
print low resolution: allowed
print high resolution: not allowed
modify document assembly: allowed
modify forms: allowed
modify annotations: not allowed
modify other: not allowed
modify anything: not allowed
stream encryption method: AESv3
string encryption method: AESv3
file encryption method: AESv3
"""


def test_check_output() -> None:
    info = parse_check("PDF Version: 1.6\nFile is encrypted\nWARNING: bad xref\n")

    assert (info.pdf_version, info.is_encrypted, info.is_linearized, info.warnings) == (
        "1.6",
        True,
        False,
        ("bad xref",),
    )
    assert info.has_warnings is True


def test_check_output_negative_markers() -> None:
    info = parse_check(
        "checking in.pdf\nPDF Version: 1.7\nFile is not encrypted\nFile is linearized\n"
        "No syntax or stream encoding errors found\n"
    )

    assert info == CheckInfo(pdf_version="1.7", is_linearized=True)
    assert info.has_warnings is False


def test_check_warnings_keep_their_order() -> None:
    info = parse_check("WARNING: first\nWARNING: second\nPDF Version: 1.4")

    assert info.warnings == ("first", "second")


@pytest.mark.parametrize("text", [None, "", "garbage\nmore garbage"])
def test_decoders_fall_back_to_defaults(text: str | None) -> None:
    assert parse_check(text) == CheckInfo()
    assert parse_encryption(text) == EncryptionInfo()
    assert list(parse_attachments(None)) == []
    assert len(parse_xref(None)) == 0


def test_encryption_output() -> None:
    info = parse_encryption(ENCRYPTION_OUTPUT)

    assert info.r == 6
    assert info.p == -1028
    assert info.user_password == "reader"
    assert info.supplied_password_is_owner_password is True
    assert info.supplied_password_is_user_password is False
    assert info.extract_for_accessibility is True
    assert info.print_low_resolution is True
    assert info.print_high_resolution is False
    assert info.modify_document_assembly is True
    assert info.modify_annotations is False
    assert info.modify_anything is False
    assert info.stream_encryption_method == "AESv3"
    assert info.file_encryption_method == "AESv3"


def test_encryption_integers_that_do_not_parse_stay_unset() -> None:
    info = parse_encryption("R = six\nP =\nEncryption key = 00ff\n")

    assert info.r is None
    assert info.p is None
    assert info.encryption_key == "00ff"


def test_xref_output() -> None:
    info = parse_xref("3,0: uncompressed; offset = 4321\n")

    assert list(info) == [XrefEntry("3,0", "uncompressed", 4321)]


def test_xref_compressed_entries_record_stream_and_index() -> None:
    info = parse_xref("1/0: uncompressed; offset = 15\n\n5/0: compressed; stream = 3, index = 2\n")

    assert len(info) == 2
    assert info[1] == XrefEntry("5/0", "compressed", 3, 2)


@pytest.mark.parametrize(
    "line",
    ["3,0 uncompressed; offset = 1", "3,0: uncompressed offset = 1", "3,0: x; offset 1", "3,0: x; offset = abc"],
)
def test_xref_rejects_malformed_lines(line: str) -> None:
    with pytest.raises(ValueError):
        parse_xref(line)


def test_attachment_listing() -> None:
    assert list(parse_attachments("notes.txt - Meeting notes\n")) == ["notes.txt"]


def test_attachment_listing_qpdf_shape() -> None:
    listing = parse_attachments(
        "first-draft.txt -> first-draft.txt\n"
        "  preferred name: first-draft.txt\n"
        "report.pdf -> report.pdf\n"
    )

    assert listing.keys == ("first-draft.txt", "report.pdf")
    assert "report.pdf" in listing


def test_attachment_listing_skips_empty_notice_and_blank_keys() -> None:
    assert len(parse_attachments("in.pdf has no embedded files\n")) == 0
    assert len(parse_attachments("- orphan description\n")) == 0


def test_job_result_shortcuts_decode_output() -> None:
    result = JobResult(
        exit_code=ExitCode.WARNINGS_FOUND_FILE_PROCESSED,
        output="PDF Version: 1.5\nWARNING: odd\n",
    )

    assert result.has_warnings is True
    assert result.succeeded is False
    assert result.check_info().warnings == ("odd",)
    assert result.encryption_info() == EncryptionInfo()


PDF_JSON = b"""{
  "version": 2,
  "parameters": {"decodelevel": "generalized"},
  "pages": [
    {
      "contents": ["4 0 R"],
      "images": [
        {
          "bitspercomponent": 8,
          "colorspace": "/DeviceRGB",
          "decodeparms": [null],
          "filter": ["/DCTDecode"],
          "filterable": false,
          "height": 480,
          "name": "/Im1",
          "object": "7 0 R",
          "width": 640
        }
      ],
      "label": null,
      "object": "3 0 R",
      "outlines": [{"dest": ["3 0 R", "/XYZ"], "object": "9 0 R", "title": "Intro"}],
      "pageposfrom1": 1
    },
    {"contents": [], "images": [], "label": null, "object": "5 0 R", "outlines": [], "pageposfrom1": 2}
  ],
  "pagelabels": [{"index": 0, "label": {"/S": "/r"}}],
  "acroform": {"fields": [{"fullname": "name", "value": "Ada"}], "hasacroform": true, "needappearances": false},
  "attachments": {
    "notes.txt": {"filespec": "11 0 R", "preferredcontents": "12 0 R", "preferredname": "notes.txt"}
  },
  "encrypt": {
    "capabilities": {
      "accessibility": true, "extract": false, "modify": false, "modifyannotations": true,
      "modifyassembly": false, "modifyforms": true, "modifyother": false,
      "printhigh": false, "printlow": true
    },
    "encrypted": true,
    "ownerpasswordmatched": false,
    "parameters": {
      "P": -1028, "R": 6, "V": 5, "bits": 256, "filemethod": "AESv3", "key": null,
      "method": "AESv3", "streammethod": "AESv3", "stringmethod": "AESv3"
    },
    "userpasswordmatched": true
  }
}"""


def test_json_document() -> None:
    info = parse_json(PDF_JSON)

    assert info.version == 2
    assert info.parameters == {"decodelevel": "generalized"}
    assert info.page_count == 2
    first = info.pages[0]
    assert (first.page_number, first.object, first.contents) == (1, "3 0 R", ("4 0 R",))
    assert first.outlines == (PageOutline("9 0 R", "Intro", ("3 0 R", "/XYZ")),)
    assert info.images == (
        PageImage(
            object="7 0 R",
            name="/Im1",
            width=640,
            height=480,
            bits_per_component=8,
            colorspace="/DeviceRGB",
            filters=("/DCTDecode",),
            decode_parms=(None,),
            filterable=False,
        ),
    )
    assert info.page_labels[0].label == {"/S": "/r"}
    assert info.acroform.has_acroform is True
    assert info.acroform.fields[0]["value"] == "Ada"
    assert info.attachments["notes.txt"].preferred_name == "notes.txt"


def test_json_encrypt_section() -> None:
    encrypt = parse_json(PDF_JSON).encrypt

    assert encrypt.encrypted is True
    assert encrypt.user_password_matched is True
    assert encrypt.owner_password_matched is False
    assert encrypt.capabilities.print_low is True
    assert encrypt.capabilities.print_high is False
    assert encrypt.capabilities.modify_annotations is True
    assert encrypt.parameters.r == 6
    assert encrypt.parameters.p == -1028
    assert encrypt.parameters.bits == 256
    assert encrypt.parameters.stream_method == "AESv3"
    assert encrypt.parameters.key is None


def test_json_partial_document_keeps_defaults() -> None:
    info = parse_json('{"version": 2, "pages": [{"pageposfrom1": "3", "images": "none"}, "junk"]}')

    assert info.version == 2
    assert info.pages == (PageDetails(page_number=3),)
    assert info.attachments == {}
    assert info.encrypt == EncryptDetails()
    assert info.acroform.has_acroform is False


@pytest.mark.parametrize("data", [None, b"", b"not json", b"\xff\xfe\x00", b"[1, 2]", b'"text"'])
def test_json_garbage_decodes_to_defaults(data: bytes | None) -> None:
    assert parse_json(data) == PdfInfo()


def test_job_result_decodes_json_payload() -> None:
    result = JobResult(exit_code=ExitCode.SUCCESS, data=PDF_JSON)

    assert result.pdf_info().page_count == 2
    assert JobResult(exit_code=ExitCode.SUCCESS).pdf_info() == PdfInfo()
