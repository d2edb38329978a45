"""Build byte-level lexer automata from regular-expression rules, minimise them, and emit C++ scanner tables or Graphviz graphs."""

__version__ = "1.0.0"

__all__ = ["cli_args", "dfa", "formatting", "lexergen", "nfa", "regex"]