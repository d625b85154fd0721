from __future__ import annotations

import pytest

from pdfjobx.enums import DecodeLevel, ObjectStreams
from pdfjobx.exceptions import ValidationError
from pdfjobx.options import OPTIONS, OptionKind, get_option, iter_options


@pytest.mark.parametrize("level", [0, 10, -1])
def test_compression_level_outside_range_is_rejected(level: int) -> None:
    with pytest.raises(ValidationError) as excinfo:
        get_option("compression_level").validate(level)

    assert excinfo.value.option == "compression_level"
    assert "between 1 and 9" in excinfo.value.constraint


def test_compression_level_encodes_as_decimal_string() -> None:
    spec = get_option("compression_level")

    assert spec.encode(spec.validate(5)) == "5"
    assert spec.encode(spec.validate("7")) == "7"


def test_integers_reject_booleans_and_fractions() -> None:
    spec = get_option("keep_files_open_threshold")

    with pytest.raises(ValidationError):
        spec.validate(True)
    with pytest.raises(ValidationError):
        spec.validate(2.5)
    with pytest.raises(ValidationError):
        spec.validate(0)


def test_lower_bounds_allow_zero_where_documented() -> None:
    assert get_option("ii_min_bytes").validate(0) == 0
    assert get_option("oi_min_area").validate(0) == 0
    with pytest.raises(ValidationError):
        get_option("collate").validate(0)
    with pytest.raises(ValidationError):
        get_option("split_pages").validate(0)


def test_choice_accepts_member_or_wire_value() -> None:
    spec = get_option("decode_level")

    assert spec.validate(DecodeLevel.SPECIALIZED) is DecodeLevel.SPECIALIZED
    assert spec.validate("all") is DecodeLevel.ALL
    assert spec.encode(ObjectStreams.GENERATE) == "generate"


def test_choice_rejects_unknown_value() -> None:
    with pytest.raises(ValidationError) as excinfo:
        get_option("object_streams").validate("sometimes")

    assert "preserve, disable, generate" in str(excinfo.value)


@pytest.mark.parametrize("value", ["", "   ", None, 3])
def test_text_options_require_non_blank_strings(value: object) -> None:
    with pytest.raises(ValidationError):
        get_option("min_version").validate(value)


def test_yes_no_options_require_real_booleans() -> None:
    spec = get_option("compress_streams")

    assert spec.encode(spec.validate(True)) == "y"
    assert spec.encode(spec.validate(False)) == "n"
    with pytest.raises(ValidationError):
        spec.validate("y")


def test_switches_only_accept_true_and_encode_as_presence_marker() -> None:
    spec = get_option("linearize")

    assert spec.kind is OptionKind.FLAG
    assert spec.encode(spec.validate(True)) == ""
    with pytest.raises(ValidationError):
        spec.validate(False)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("90", "+90"), ("-90", "-90"), ("+180:1-3", "+180:1-3"), ("270:z", "+270:z")],
)
def test_rotation_is_normalised(raw: str, expected: str) -> None:
    assert get_option("rotate").validate(raw) == expected


@pytest.mark.parametrize("raw", ["45", "+90:", "ninety", ""])
def test_rotation_rejects_invalid_specs(raw: str) -> None:
    with pytest.raises(ValidationError):
        get_option("rotate").validate(raw)


def test_password_may_be_empty() -> None:
    assert get_option("password").validate("") == ""


def test_registry_wire_keys_are_unique() -> None:
    keys = [spec.wire_key for spec in iter_options()]

    assert len(keys) == len(set(keys))
    assert list(OPTIONS) == [spec.name for spec in iter_options()]


def test_registry_is_read_only() -> None:
    with pytest.raises(TypeError):
        OPTIONS["made_up"] = OPTIONS["check"]  # type: ignore[index]


def test_unknown_option_lookup_fails() -> None:
    with pytest.raises(KeyError):
        get_option("made_up")


def test_list_options_are_marked_repeatable() -> None:
    repeatable = {spec.name for spec in iter_options() if spec.repeatable}

    assert repeatable == {
        "set_page_labels",
        "pages",
        "add_attachment",
        "copy_attachments_from",
        "remove_attachment",
        "json_key",
        "json_object",
    }
