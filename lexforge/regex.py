"""Regular-expression building blocks that generate NFA fragments."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import FrozenSet, Tuple, Union

from .formatting import BYTE_MAX
from .nfa import NfaBuilder

CharSet = FrozenSet[int]
CharLike = Union[int, str]


def _byte(ch: CharLike) -> int:
    if isinstance(ch, str):
        if len(ch) != 1:
            raise ValueError(f"expected a single character, got {ch!r}")
        value = ord(ch)
    else:
        value = int(ch)
    if not 0 <= value < BYTE_MAX:
        raise ValueError(f"character value out of byte range: {value}")
    return value


class NodeAllocator:
    """Hands out consecutive NFA node ids."""

    def __init__(self, start: int = 0) -> None:
        self.value = start

    def allocate(self) -> int:
        """Return the next free node id."""
        node = self.value
        self.value += 1
        return node


class Regex(ABC):
    """A regular expression that can emit itself into an :class:`NfaBuilder`."""

    @abstractmethod
    def generate(self, builder: NfaBuilder, alloc: NodeAllocator) -> Tuple[int, int]:
        """Add this expression to ``builder``; return its (start, end) nodes."""

    def __add__(self, other: "Regex") -> "Regex":
        if not isinstance(other, Regex):
            return NotImplemented
        return concat_regex(self, other)

    def __or__(self, other: "Regex") -> "Regex":
        if not isinstance(other, Regex):
            return NotImplemented
        return alternation_regex(self, other)


@dataclass(frozen=True)
class _CharRegex(Regex):
    charset: CharSet

    def generate(self, builder: NfaBuilder, alloc: NodeAllocator) -> Tuple[int, int]:
        start = alloc.allocate()
        end = alloc.allocate()
        builder.transition(start, end, sorted(self.charset))
        return start, end


@dataclass(frozen=True)
class _StringRegex(Regex):
    data: bytes

    def generate(self, builder: NfaBuilder, alloc: NodeAllocator) -> Tuple[int, int]:
        start = alloc.allocate()
        current = start
        for byte in self.data:
            nxt = alloc.allocate()
            builder.transition(current, nxt, byte)
            current = nxt
        return start, current


@dataclass(frozen=True)
class _StarRegex(Regex):
    inner: Regex

    def generate(self, builder: NfaBuilder, alloc: NodeAllocator) -> Tuple[int, int]:
        start = alloc.allocate()
        end = alloc.allocate()
        inner_start, inner_end = self.inner.generate(builder, alloc)
        builder.epsilon(inner_start, inner_end)
        builder.epsilon(inner_end, inner_start)
        builder.epsilon(start, inner_start)
        builder.epsilon(inner_end, end)
        return start, end


@dataclass(frozen=True)
class _ConcatRegex(Regex):
    lhs: Regex
    rhs: Regex

    def generate(self, builder: NfaBuilder, alloc: NodeAllocator) -> Tuple[int, int]:
        rhs_start, rhs_end = self.rhs.generate(builder, alloc)
        lhs_start, lhs_end = self.lhs.generate(builder, alloc)
        builder.epsilon(lhs_end, rhs_start)
        return lhs_start, rhs_end


@dataclass(frozen=True)
class _OptionalRegex(Regex):
    inner: Regex

    def generate(self, builder: NfaBuilder, alloc: NodeAllocator) -> Tuple[int, int]:
        start = alloc.allocate()
        end = alloc.allocate()
        inner_start, inner_end = self.inner.generate(builder, alloc)
        builder.epsilon(start, end)
        builder.epsilon(start, inner_start)
        builder.epsilon(inner_end, end)
        return start, end


@dataclass(frozen=True)
class _AlternationRegex(Regex):
    lhs: Regex
    rhs: Regex

    def generate(self, builder: NfaBuilder, alloc: NodeAllocator) -> Tuple[int, int]:
        start = alloc.allocate()
        end = alloc.allocate()
        rhs_start, rhs_end = self.rhs.generate(builder, alloc)
        lhs_start, lhs_end = self.lhs.generate(builder, alloc)
        builder.epsilon(start, rhs_start)
        builder.epsilon(start, lhs_start)
        builder.epsilon(rhs_end, end)
        builder.epsilon(lhs_end, end)
        return start, end


def character(ch: CharLike) -> CharSet:
    """The set holding the single byte ``ch``."""
    return frozenset({_byte(ch)})


def character_range(ch_from: CharLike, ch_to: CharLike) -> CharSet:
    """All bytes from ``ch_from`` to ``ch_to`` inclusive; empty if reversed."""
    return frozenset(range(_byte(ch_from), _byte(ch_to) + 1))


def digit() -> CharSet:
    """ASCII decimal digits."""
    return character_range("0", "9")


def alphanumeric() -> CharSet:
    """ASCII letters, digits and the underscore."""
    return character_range("a", "z") | character_range("A", "Z") | digit() | character("_")


def whitespace() -> CharSet:
    """Space, tab, newline, vertical tab, form feed and carriage return."""
    return frozenset(ord(ch) for ch in " \t\n\v\f\r")


def empty() -> CharSet:
    """The empty character set."""
    return frozenset()


def xdigit() -> CharSet:
    """ASCII hexadecimal digits in either case."""
    return digit() | character_range("a", "f") | character_range("A", "F")


def char_regex(charset) -> Regex:
    """Match one byte from ``charset``, or the single character given."""
    if isinstance(charset, (str, int)):
        charset = character(charset)
    return _CharRegex(frozenset(_byte(ch) for ch in charset))


def string_regex(text: Union[str, bytes]) -> Regex:
    """Match ``text`` literally (strings are matched as their UTF-8 bytes)."""
    data = text.encode("utf-8") if isinstance(text, str) else bytes(text)
    return _StringRegex(data)


def star_regex(regexp: Regex) -> Regex:
    """Zero or more repetitions."""
    return _StarRegex(regexp)


def concat_regex(lhs: Regex, rhs: Regex) -> Regex:
    """``lhs`` followed by ``rhs``."""
    return _ConcatRegex(lhs, rhs)


def plus_regex(regexp: Regex) -> Regex:
    """One or more repetitions."""
    return concat_regex(regexp, star_regex(regexp))


def optional_regex(regexp: Regex) -> Regex:
    """Zero or one occurrence."""
    return _OptionalRegex(regexp)


def alternation_regex(lhs: Regex, rhs: Regex) -> Regex:
    """Either ``lhs`` or ``rhs``."""
    return _AlternationRegex(lhs, rhs)


def dot_regex() -> Regex:
    """Match any single byte."""
    return char_regex(frozenset(range(BYTE_MAX)))