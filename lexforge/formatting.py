"""Helpers for rendering characters, character classes and numeric tables."""

from __future__ import annotations

from typing import Callable, Iterable, Union

BYTE_MAX = 256

_ESCAPES = {
    "\n": "\\n",
    "\r": "\\r",
    "\v": "\\v",
    "\t": "\\t",
    "\b": "\\b",
    "\a": "\\a",
    "\f": "\\f",
    '"': '\\"',
    "\\": "\\\\",
    "-": "\\-",
}


def _byte_value(ch: Union[int, str]) -> int:
    if isinstance(ch, str):
        if len(ch) != 1:
            raise ValueError(f"expected a single character, got {ch!r}")
        value = ord(ch)
    else:
        value = int(ch)
    if not 0 <= value < BYTE_MAX:
        raise ValueError(f"character value out of byte range: {value}")
    return value


def fmt_char(ch: Union[int, str]) -> str:
    """Render one byte as it would appear inside a quoted character class."""
    value = _byte_value(ch)
    text = chr(value)
    if text in _ESCAPES:
        return _ESCAPES[text]
    if not 0x20 <= value <= 0x7E:
        return f"\\x{value:02x}"
    return text


def format_string_class(check: Callable[[int], bool]) -> str:
    """Describe the set of bytes accepted by ``check`` as runs and ranges."""
    parts = []
    ch = 0
    while ch < BYTE_MAX:
        start = ch
        while ch < BYTE_MAX and check(ch):
            ch += 1
        end = ch
        if start == end:
            ch += 1
            continue
        if start + 1 == end:
            parts.append(fmt_char(start))
        else:
            parts.append(f"[{fmt_char(start)}-{fmt_char(end - 1)}]")
        ch += 1
    return "".join(parts)


def format_table(values: Iterable[Union[int, bool]]) -> str:
    """Join integer (or boolean) entries with commas."""
    return ",".join(str(int(value)) for value in values)