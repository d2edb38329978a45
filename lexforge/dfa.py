"""Deterministic automata: minimisation, table generation and graph dumps."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterator, List, Optional, Sequence, Set, TextIO, Tuple

from .formatting import BYTE_MAX, format_string_class, format_table

StateSet = FrozenSet[int]

_HEADERS = ("deque", "istream", "vector", "cstdint", "string", "iostream")
# Position counters kept by the generated lexer context, in declaration order.
_POSITION_FIELDS = ("bytes", "col", "line")


class _CppWriter:
    """Collects lines of C++ source with four-space indentation."""

    def __init__(self) -> None:
        self._lines: List[str] = []
        self._depth = 0

    def line(self, text: str = "") -> None:
        self._lines.append("    " * self._depth + text if text else "")

    def insert(self, text: str) -> None:
        """Write user text at the current indentation, even when it is empty."""
        self._lines.append("    " * self._depth + text)

    @contextmanager
    def indented(self) -> Iterator[None]:
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1

    @contextmanager
    def block(self, header: str, indent: bool = True) -> Iterator[None]:
        self.line(header)
        self.line("{")
        if indent:
            with self.indented():
                yield
        else:
            yield
        self.line("}")

    def text(self) -> str:
        return "\n".join(self._lines)


def _write_helpers(w: _CppWriter) -> None:
    with w.block("static char peek(lex_context& ctx)"):
        w.line("if (ctx.peek_index < ctx.buffer.size())")
        with w.indented():
            w.line("return ctx.buffer[ctx.peek_index++];")
        w.line("char ch = 0;")
        w.line("ctx.in.get(ch);")
        w.line()
        w.line("ctx.pbytes++;")
        w.line("ctx.pcol++;")
        with w.block("if(ch == '\\n')"):
            w.line("ctx.pline++;")
            w.line("ctx.pcol = 1;")
        w.line()
        w.line("ctx.buffer.push_back(ch);")
        w.line("ctx.peek_index++;")
        w.line("return ch;")
    w.line()

    with w.block("static void reset(lex_context& ctx)"):
        w.line("ctx.peek_index = 0;")
        restores = [f"ctx.p{name} = ctx.{name};" for name in _POSITION_FIELDS]
        restores[0] = "/*" + restores[0]
        restores[-1] += "*/"
        for text in restores:
            w.line(text)
    w.line()

    with w.block("static void seek_up(lex_context& ctx)"):
        w.line("ctx.buffer.erase(ctx.buffer.begin(), ctx.buffer.begin() + ctx.peek_index);")
        w.line("ctx.peek_index = 0;")
        for name in _POSITION_FIELDS:
            w.line(f"ctx.{name} = ctx.p{name};")
    w.line()

    w.line("template <typename C>")
    with w.block("static void commit_to_buffer(C& output, lex_context& ctx)"):
        w.line("output.insert(output.end(), ctx.buffer.begin(), ctx.buffer.begin() + ctx.peek_index);")
        w.line("seek_up(ctx);")
    w.line()


def _write_lex_tok(
    w: _CppWriter,
    with_classes: bool,
    handle_error: str,
    switch_str: str,
    handle_internal_error: str,
) -> None:
    lookup = (
        "state * CLASS_COUNT + CLASSIFIER[(uint8_t) peek(ctx)]"
        if with_classes
        else "state * 256 + (uint8_t) peek(ctx)"
    )
    with w.block("auto lex_tok(lex_context& ctx)"):
        w.line("int64_t state = START_STATE;")
        w.line("int64_t latest_match = -1;")
        w.line("std::string buffer;")
        w.line()
        for name in reversed(_POSITION_FIELDS):
            w.line(f"size_t start_{name} = ctx.{name};")
        w.line()
        with w.block("while (true)"):
            w.line(f"state = TRANSITION_TABLE[{lookup}];")
            with w.block("if (state != -1 && END_BITMASK[state])"):
                w.line("latest_match = state;")
                w.line("commit_to_buffer(buffer, ctx);")
            w.line()
            with w.block("if (state == -1)"):
                with w.block("if (latest_match == -1)"):
                    w.line("// report error")
                    w.insert(handle_error)
                w.line()
                w.line("reset(ctx);")
                with w.block("switch(END_TO_NFA_STATE[latest_match])", indent=False):
                    w.insert(switch_str)
                    if with_classes:
                        w.line("default:")
                        with w.indented():
                            w.insert(handle_internal_error)
                    else:
                        w.line("default: {")
                        with w.indented():
                            w.insert(handle_internal_error)
                        w.line("}")
                w.line()
                w.line("latest_match = -1;")
                w.line("state = START_STATE;")
                w.line("buffer.clear();")
                w.line()
                for name in reversed(_POSITION_FIELDS):
                    w.line(f"start_{name} = ctx.{name};")
                if not with_classes:
                    w.line()
                    w.line("continue;")


def _render_lexer(
    *,
    inc: str,
    transition: str,
    start_state: int,
    end_bitmask: str,
    end_to_nfa_state: str,
    classes: Optional[Tuple[str, int]],
    handle_error: str,
    switch_str: str,
    handle_internal_error: str,
) -> str:
    w = _CppWriter()
    w.line()
    for header in _HEADERS:
        w.line(f"#include <{header}>")
    w.line()
    w.insert(inc)
    w.line()
    w.line("// transition state tables")
    w.line(f"static constexpr int64_t TRANSITION_TABLE[] = {{ {transition} }};")
    w.line(f"static constexpr int64_t START_STATE = {start_state};")
    w.line(f"static constexpr bool END_BITMASK[] = {{ {end_bitmask} }};")
    w.line(f"static constexpr int64_t END_TO_NFA_STATE[] = {{ {end_to_nfa_state} }};")
    if classes is not None:
        classifier, count = classes
        w.line(f"static constexpr uint8_t CLASSIFIER[256] = {{ {classifier} }};")
        w.line(f"static constexpr size_t CLASS_COUNT = {count};")
    w.line()
    _write_helpers(w)
    _write_lex_tok(w, classes is not None, handle_error, switch_str, handle_internal_error)
    return w.text()


@dataclass
class CodegenResult:
    """Tables that were emitted by :meth:`Dfa.codegen`."""

    classifier: List[int] = field(default_factory=list)
    transition: List[int] = field(default_factory=list)
    class_count: int = 0


def build_equivalence_class(transition: Sequence[int]) -> CodegenResult:
    """Group bytes whose transition columns are identical into classes.

    Class ids are handed out in order of the first byte that has each column.
    """
    transition = list(transition)
    classes: Dict[tuple, int] = {}
    representatives: List[int] = []
    classifier: List[int] = []

    for ch in range(BYTE_MAX):
        column = tuple(transition[ch::BYTE_MAX])
        class_id = classes.setdefault(column, len(classes))
        if class_id == len(representatives):
            representatives.append(ch)
        classifier.append(class_id)

    table: List[int] = []
    for row_start in range(0, len(transition), BYTE_MAX):
        row = transition[row_start:row_start + BYTE_MAX]
        table.extend(row[ch] for ch in representatives)

    return CodegenResult(classifier=classifier, transition=table, class_count=len(classes))


def _format_string_class_dot(check) -> str:
    text = format_string_class(check)
    text = text.replace("\\", "\\\\")
    return text.replace('\\\\"', '\\"')


class Dfa:
    """A table-driven DFA over bytes; ``-1`` marks a missing transition."""

    def __init__(self, states: int) -> None:
        self.transition_table: List[int] = [-1] * (states * BYTE_MAX)
        self.start_state: int = 0
        self.end_bitmask: List[bool] = [False] * states
        self.end_to_nfa_state: List[int] = [-1] * states
        self.handler_map: Dict[int, str] = {}

    def state_count(self) -> int:
        """Number of states in the transition table."""
        return len(self.transition_table) // BYTE_MAX

    def _rows(self) -> List[List[int]]:
        table = self.transition_table
        return [table[start:start + BYTE_MAX] for start in range(0, len(table), BYTE_MAX)]

    def _hopcroft(self, initial: Set[StateSet]) -> List[StateSet]:
        reverse: List[Dict[int, List[int]]] = [{} for _ in range(BYTE_MAX)]
        for state, row in enumerate(self._rows()):
            for ch, target in enumerate(row):
                if target != -1:
                    reverse[ch].setdefault(target, []).append(state)

        queue = set(initial)
        partitions = set(initial)

        while queue:
            current = queue.pop()
            for predecessors in reverse:
                split = {
                    source
                    for target in current
                    for source in predecessors.get(target, ())
                }
                if not split:
                    continue
                for partition in list(partitions):
                    inside = partition & split
                    outside = partition - split
                    if not inside or not outside:
                        continue
                    partitions.discard(partition)
                    partitions.add(inside)
                    partitions.add(outside)
                    if partition in queue:
                        queue.discard(partition)
                        queue.add(inside)
                        queue.add(outside)
                    else:
                        queue.add(inside if len(inside) <= len(outside) else outside)

        return sorted(partitions, key=min)

    def _reconstruct(self, partitions: Sequence[StateSet]) -> None:
        old_to_new = [0] * self.state_count()
        new_to_old: List[int] = []
        for new_state, partition in enumerate(partitions):
            new_to_old.append(min(partition))
            for state in partition:
                old_to_new[state] = new_state

        rows = self._rows()
        table: List[int] = []
        for old in new_to_old:
            table.extend(-1 if target == -1 else old_to_new[target] for target in rows[old])

        self.transition_table = table
        self.start_state = old_to_new[self.start_state]
        self.end_bitmask = [self.end_bitmask[old] for old in new_to_old]
        self.end_to_nfa_state = [self.end_to_nfa_state[old] for old in new_to_old]

    def optimize(self, debug: bool = False) -> None:
        """Minimise the DFA, keeping states of different rules apart."""
        nonfinal: Set[int] = set()
        by_rule: Dict[int, Set[int]] = {}
        for state, is_end in enumerate(self.end_bitmask):
            if is_end:
                by_rule.setdefault(self.end_to_nfa_state[state], set()).add(state)
            else:
                nonfinal.add(state)

        initial: Set[StateSet] = set()
        if nonfinal:
            initial.add(frozenset(nonfinal))
        initial.update(frozenset(states) for rule, states in by_rule.items() if rule != -1)

        partitions = self._hopcroft(initial)

        if debug:
            print("State equivalence classes:")
            for partition in partitions:
                print(format_table(sorted(partition)))

        self._reconstruct(partitions)

    def codegen(
        self,
        out: TextIO,
        inc: str,
        handle_error: str,
        handle_internal_error: str,
        equivalence_class: bool,
    ) -> CodegenResult:
        """Write the lexer source to ``out`` and return the emitted tables."""
        switch_str = "".join(
            f"case {state}: {handler}" for state, handler in self.handler_map.items()
        )

        if equivalence_class:
            result = build_equivalence_class(self.transition_table)
            print(f"found {result.class_count} equivalence classes:")
            for class_id in range(result.class_count):
                members = format_string_class(
                    lambda ch, cid=class_id: result.classifier[ch] == cid
                )
                print(f"class {class_id}: {members}")
            transition = result.transition
            classes: Optional[Tuple[str, int]] = (
                format_table(result.classifier),
                result.class_count,
            )
        else:
            result = CodegenResult(
                classifier=[], transition=list(self.transition_table), class_count=0
            )
            transition = self.transition_table
            classes = None

        out.write(
            _render_lexer(
                inc=inc,
                transition=format_table(transition),
                start_state=self.start_state,
                end_bitmask=format_table(self.end_bitmask),
                end_to_nfa_state=format_table(self.end_to_nfa_state),
                classes=classes,
                handle_error=handle_error,
                switch_str=switch_str,
                handle_internal_error=handle_internal_error,
            )
        )
        return result

    def dump(self, ofs: TextIO) -> None:
        """Write the DFA as a Graphviz dot graph."""
        ofs.write("digraph G{")
        for state, row in enumerate(self._rows()):
            for target in sorted({t for t in row if t != -1}):
                label = _format_string_class_dot(lambda ch, r=row, t=target: r[ch] == t)
                ofs.write(f'{state} -> {target} [label="{label}"]\n')
            if self.end_bitmask[state]:
                ofs.write(f"{state} [shape=box]\n")
        ofs.write("}")