"""Nondeterministic automata and their conversion to a DFA by subset construction."""

from __future__ import annotations

import sys
from collections import deque
from typing import Deque, Dict, FrozenSet, Iterable, Iterator, List, Set, TextIO, Tuple

from .dfa import Dfa
from .formatting import BYTE_MAX, format_string_class


def _checked_byte(value: int) -> int:
    if not 0 <= value < BYTE_MAX:
        raise ValueError(f"character value out of byte range: {value}")
    return value


def _bytes_of(item) -> Iterator[int]:
    """Expand a character, a string, bytes or a nested sequence into byte values."""
    if isinstance(item, int):
        yield _checked_byte(item)
    elif isinstance(item, str):
        for ch in item:
            yield _checked_byte(ord(ch))
    elif isinstance(item, (bytes, bytearray)):
        yield from item
    else:
        for sub in item:
            yield from _bytes_of(sub)


def _dot_label(chars: Set[int]) -> str:
    text = format_string_class(lambda ch: ch in chars)
    text = text.replace("\\", "\\\\")
    return text.replace('\\\\"', '\\"')


class NfaBuilder:
    """Collects NFA edges, epsilon edges, start and end nodes."""

    def __init__(self) -> None:
        self._edges: List[Tuple[int, int, int]] = []
        self._epsilon_edges: List[Tuple[int, int]] = []
        self._start: List[int] = []
        self._end: List[int] = []
        self._max_node = 0

    def transition(self, source: int, target: int, *args) -> "NfaBuilder":
        """Add an edge from ``source`` to ``target`` for every given character.

        Characters may be ints, one-character strings, strings, bytes, or
        sequences of these.
        """
        for ch in _bytes_of(args):
            self._max_node = max(self._max_node, source, target)
            self._edges.append((source, target, ch))
        return self

    def epsilon(self, source: int, target: int) -> "NfaBuilder":
        """Add an epsilon edge."""
        self._max_node = max(self._max_node, source, target)
        self._epsilon_edges.append((source, target))
        return self

    def add_start(self, name: int) -> "NfaBuilder":
        """Mark ``name`` as a start node."""
        self._max_node = max(self._max_node, name)
        self._start.append(name)
        return self

    def add_end(self, name: int) -> "NfaBuilder":
        """Mark ``name`` as an accepting node."""
        self._max_node = max(self._max_node, name)
        self._end.append(name)
        return self

    def build(self) -> Dfa:
        """Convert the NFA to a DFA whose state 0 is the start state.

        When a DFA state holds several accepting NFA nodes, the lowest node
        id wins and a conflict note is printed to standard error.
        """
        epsilon_table: Dict[int, List[int]] = {}
        for source, target in self._epsilon_edges:
            epsilon_table.setdefault(source, []).append(target)

        moves: Dict[int, Dict[int, Set[int]]] = {}
        for source, target, ch in self._edges:
            moves.setdefault(source, {}).setdefault(ch, set()).add(target)

        closures: Dict[int, FrozenSet[int]] = {}

        def closure(node: int) -> FrozenSet[int]:
            cached = closures.get(node)
            if cached is not None:
                return cached
            seen = {node}
            pending: Deque[int] = deque([node])
            while pending:
                current = pending.popleft()
                for nxt in epsilon_table.get(current, ()):
                    if nxt not in seen:
                        seen.add(nxt)
                        pending.append(nxt)
            result = frozenset(seen)
            closures[node] = result
            return result

        start_set = frozenset().union(*(closure(node) for node in self._start))
        subset_to_id: Dict[FrozenSet[int], int] = {start_set: 0}
        pending_subsets: Deque[FrozenSet[int]] = deque([start_set])
        output_edges: List[Tuple[int, int, int]] = []

        while pending_subsets:
            subset = pending_subsets.popleft()
            by_char: Dict[int, Set[int]] = {}
            for node in subset:
                for ch, targets in moves.get(node, {}).items():
                    reached = by_char.setdefault(ch, set())
                    for target in targets:
                        reached |= closure(target)

            for ch in sorted(by_char):
                target_set = frozenset(by_char[ch])
                if target_set not in subset_to_id:
                    subset_to_id[target_set] = len(subset_to_id)
                    pending_subsets.append(target_set)
                output_edges.append((subset_to_id[subset], subset_to_id[target_set], ch))

        dfa = Dfa(len(subset_to_id))
        dfa.start_state = 0

        for subset, state in subset_to_id.items():
            for end_node in self._end:
                if end_node not in subset:
                    continue
                if dfa.end_bitmask[state]:
                    previous = dfa.end_to_nfa_state[state]
                    print(
                        f"possible conflict between states {previous} and {end_node}",
                        file=sys.stderr,
                    )
                    end_node = min(previous, end_node)
                dfa.end_bitmask[state] = True
                dfa.end_to_nfa_state[state] = end_node

        for source, target, ch in output_edges:
            dfa.transition_table[source * BYTE_MAX + ch] = target

        return dfa

    def dump(self, ofs: TextIO) -> None:
        """Write the NFA as a Graphviz dot graph."""
        ofs.write("digraph G{")

        grouped: Dict[int, Dict[int, Set[int]]] = {}
        for source, target, ch in self._edges:
            grouped.setdefault(source, {}).setdefault(target, set()).add(ch)

        for source, targets in grouped.items():
            for target, chars in targets.items():
                ofs.write(f'{source} -> {target} [label="{_dot_label(chars)}"]\n')

        for node in self._start:
            ofs.write(f"{node} [shape=triangle]\n")

        for node in self._end:
            ofs.write(f"{node} [shape=box]\n")

        for source, target in self._epsilon_edges:
            ofs.write(f'{source} -> {target} [label="eps"]\n')

        ofs.write("}")

    def _iter_edges(self) -> Iterable[Tuple[int, int, int]]:
        return iter(self._edges)