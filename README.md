# lexforge

lexforge turns a list of regular expressions into a deterministic finite
automaton (DFA) and writes it out as a table-driven C++ scanner. You give it
rules as pairs of a regular expression and a snippet of handler code, and it
takes these steps:

1. It builds a Thompson-style NFA from the rules.
2. It converts the NFA to a DFA by subset construction.
3. It can minimise the DFA with Hopcroft's algorithm.
4. It can compress the byte alphabet into equivalence classes.
5. It writes the transition tables and a scanning loop around your handlers.

Both automata can also be written out as Graphviz `dot` graphs.

The package has no dependencies outside the standard library. Tests use
`pytest`, which is in the `test` extra.

## Building regular expressions

You build regular expressions in `lexforge.regex` by combining functions.
Every expression works on bytes.

Character sets are frozensets of byte values. These functions make them:

- `character(ch)`: one byte.
- `character_range(ch_from, ch_to)`: an inclusive range. It is empty if the
  range is reversed.
- `digit()`: `0` to `9`.
- `alphanumeric()`: ASCII letters, digits and `_`.
- `whitespace()`: space, `\t`, `\n`, `\v`, `\f` and `\r`.
- `xdigit()`: hexadecimal digits in either case.
- `empty()`: the empty set.

These functions turn sets and text into expressions:

- `char_regex(charset)` matches one byte from a set. You may also pass it a
  single character.
- `dot_regex()` matches any byte.
- `string_regex(text)` matches a literal. A `str` is matched as its UTF-8
  bytes.

These functions combine expressions:

- `concat_regex(lhs, rhs)`, or the `+` operator
- `alternation_regex(lhs, rhs)`, or the `|` operator
- `star_regex`
- `plus_regex`
- `optional_regex`

```python
from lexforge.regex import (
    char_regex, character, character_range, digit, alphanumeric,
    string_regex, star_regex, plus_regex, optional_regex,
)

number = optional_regex(char_regex(character("-"))) + plus_regex(char_regex(digit()))
identifier = char_regex(character_range("a", "z")) + star_regex(char_regex(alphanumeric()))
keyword = string_regex("if") | string_regex("else")
```

## Making a lexer

`lexforge.lexergen.make_lexer` takes an iterable of `(regex, handler)` pairs.
It returns a tuple of the `Dfa` and the `NfaBuilder` the DFA was built from.

Rules listed earlier get lower NFA node ids. When one DFA state accepts for
more than one rule, the rule with the lower id wins, so the earlier rule wins.
Each such conflict is noted on standard error.

```python
import io
from lexforge.lexergen import make_lexer

dfa, nfa = make_lexer([
    (keyword, "return TOKEN_KEYWORD;"),
    (identifier, "return TOKEN_IDENT;"),
    (number, "return TOKEN_NUMBER;"),
])

dfa.optimize(False)   # Hopcroft minimisation; True prints the state partitions
print(dfa.state_count())
```

`optimize` only merges accepting states that belong to the same rule.

A `Dfa` has these public attributes:

- `transition_table`: a flat list, `state * 256 + byte`, where `-1` means no
  transition.
- `start_state`
- `end_bitmask`
- `end_to_nfa_state`
- `handler_map`

## Emitting code

`Dfa.codegen(out, inc, handle_error, handle_internal_error, equivalence_class)`
writes C++ scanner code to the text stream `out`. Its arguments are:

- `inc`: a preamble, placed after the standard includes. It must define the
  type `lex_context`. The generated code uses these members of it:
  - `in`: an input stream.
  - `buffer`: a byte container.
  - `peek_index`
  - `bytes`, `col` and `line`.
  - `pbytes`, `pcol` and `pline`.
- `handle_error`: code that runs when no rule matches at the current position.
- `handle_internal_error`: the `default:` case of the handler switch.
- `equivalence_class`: when true, bytes with identical transition columns
  share a class. A `CLASSIFIER` table and `CLASS_COUNT` are emitted, and the
  classes found are printed to standard output.

The scanner is a function `lex_tok(lex_context&)`. The handler snippets run
inside it, in a `switch` on the matched rule. There they can use these locals:

- `buffer`: the matched text.
- `start_line`, `start_col` and `start_bytes`.

`codegen` returns a `CodegenResult`, which holds the emitted `transition`
table. When compression is on, it also holds the `classifier` and the
`class_count`. The compression step is available on its own as
`lexforge.dfa.build_equivalence_class`.

```python
out = io.StringIO()
result = dfa.codegen(
    out,
    "struct lex_context { /* ... */ };",
    "return TOKEN_ERROR;",
    "return TOKEN_INTERNAL_ERROR;",
    True,
)
print(result.class_count, len(result.transition))
source_text = out.getvalue()
```

## Visualising the automata

```python
with open("dfa.dot", "w") as fh:
    dfa.dump(fh)
with open("nfa.dot", "w") as fh:
    nfa.dump(fh)
```

In these graphs:

- Accepting states are drawn as boxes.
- NFA start states are drawn as triangles.
- NFA epsilon edges are labelled `eps`.
- Other edges carry a compact character-class label, such as `[a-z]_`.

## Lower-level pieces

- `lexforge.nfa.NfaBuilder` builds an NFA by hand:
  - `transition(source, target, *chars)` adds edges. Characters may be ints,
    strings, bytes, or sequences of these.
  - `epsilon` adds an epsilon edge.
  - `add_start` and `add_end` mark start and end states.
  - `build` returns a `Dfa` whose state 0 is the start state.
- `lexforge.regex.NodeAllocator` hands out fresh node ids when a `Regex`
  generates its NFA fragment with `generate(builder, alloc)`.
- `lexforge.formatting` holds the escaping and table helpers:
  - `fmt_char`
  - `format_string_class`
  - `format_table`
- `lexforge.cli_args` is a small option parser driven by a table of `Option`
  entries in an `ArgSpec`:
  - `parse_args` returns an `ArgData`. Its input values are the arguments that
    do not start with `-`. It has an `ArgumentValue` for every option.
  - `--help` and `--version` print to standard error and raise `SystemExit(0)`.
  - An unknown option or a missing required one raises `ArgumentError`.
  - `make_help_msg` prints the usage text.

## What lexforge does not do

- It installs no command. No program reads a rule file and writes a lexer;
  you drive the library from Python.
- It has no parser for regular expressions written as text. Rules are built
  only with the functions in `lexforge.regex`.
- The generated scanner is C++ only.