import pytest

from lexforge.formatting import BYTE_MAX, fmt_char, format_string_class, format_table


@pytest.mark.parametrize(
    "ch, expected",
    [
        ("\n", "\\n"),
        ("\r", "\\r"),
        ("\t", "\\t"),
        ('"', '\\"'),
        ("\\", "\\\\"),
        ("-", "\\-"),
    ],
)
def test_fmt_char_escapes(ch, expected):
    assert fmt_char(ch) == expected


def test_fmt_char_printable_passes_through():
    for ch in "azAZ09_+*":
        assert fmt_char(ch) == ch


def test_fmt_char_accepts_int_and_str_alike():
    for value in range(BYTE_MAX):
        assert fmt_char(value) == fmt_char(chr(value))


def test_fmt_char_nonprintable_is_hex():
    assert fmt_char(0) == "\\x00"
    for value in (1, 0x7F, 0x80, 0xFF):
        out = fmt_char(value)
        assert out.startswith("\\x")
        assert int(out[2:], 16) == value


def test_fmt_char_rejects_out_of_range():
    with pytest.raises(ValueError):
        fmt_char(256)
    with pytest.raises(ValueError):
        fmt_char("ab")


def test_format_string_class_range():
    assert format_string_class(lambda c: ord("0") <= c <= ord("9")) == "[0-9]"


def test_format_string_class_single_char():
    target = ord("x")
    assert format_string_class(lambda c: c == target) == fmt_char(target)


def test_format_string_class_empty():
    assert format_string_class(lambda c: False) == ""


def test_format_string_class_two_runs():
    out = format_string_class(lambda c: c in (ord("a"), ord("c")))
    assert out == fmt_char("a") + fmt_char("c")


def test_format_string_class_full_range():
    assert format_string_class(lambda c: True) == f"[{fmt_char(0)}-{fmt_char(255)}]"


def test_format_table_round_trip():
    values = [3, -1, 0, 42]
    assert [int(part) for part in format_table(values).split(",")] == values


def test_format_table_bools_as_digits():
    flags = [True, False, True]
    assert [bool(int(part)) for part in format_table(flags).split(",")] == flags


def test_format_table_single():
    assert format_table([7]) == "7"