"""Combine token rules into a single lexer automaton."""

from __future__ import annotations

from typing import Dict, Iterable, Tuple

from .dfa import Dfa
from .nfa import NfaBuilder
from .regex import NodeAllocator, Regex


def make_lexer(table: Iterable[Tuple[Regex, str]]) -> Tuple[Dfa, NfaBuilder]:
    """Build a DFA recognising every rule in ``table``.

    Each rule's end node maps to its handler in the DFA's ``handler_map``;
    earlier rules get lower node ids and win conflicts. The NFA the DFA was
    built from is returned alongside it.
    """
    nfa = NfaBuilder()
    alloc = NodeAllocator(0)
    start = alloc.allocate()
    handler_map: Dict[int, str] = {}

    for regexp, handler in table:
        rule_start, rule_end = regexp.generate(nfa, alloc)
        nfa.epsilon(start, rule_start)
        nfa.add_end(rule_end)
        handler_map[rule_end] = handler

    nfa.add_start(start)
    dfa = nfa.build()
    dfa.handler_map = handler_map
    return dfa, nfa