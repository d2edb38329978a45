"""A small command-line flag parser driven by a table of options."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence


class ArgumentError(Exception):
    """Raised when the command line names an unknown or omits a required option."""


@dataclass(frozen=True)
class Option:
    name: str
    long_flag: str
    short_flag: str
    description: str
    has_args: bool = False
    required: bool = False


@dataclass
class ArgumentValue:
    present: bool = False
    value: Optional[str] = None


@dataclass(frozen=True)
class ArgSpec:
    options: Sequence[Option]
    program_name: str
    version: str


@dataclass
class ArgData:
    input_values: List[str] = field(default_factory=list)
    values: Dict[str, ArgumentValue] = field(default_factory=dict)


def make_help_msg(spec: ArgSpec) -> None:
    """Print the usage text for ``spec`` to standard error."""
    lines = [f"usage: {spec.program_name} [files] [flags]"]
    lines.extend(
        f"    {opt.short_flag:<10} {opt.long_flag}: {opt.description}"
        for opt in spec.options
    )
    print("\n".join(lines), file=sys.stderr)


def _find_option(arg: str, spec: ArgSpec) -> Optional[Option]:
    return next(
        (opt for opt in spec.options if arg in (opt.long_flag, opt.short_flag)),
        None,
    )


def parse_args(args: Sequence[str], spec: ArgSpec) -> ArgData:
    """Parse ``args`` against ``spec``.

    ``--help`` and ``--version`` print to standard error and raise
    ``SystemExit(0)``. Unknown or missing required options raise
    ``ArgumentError``. Every option in the spec has an entry in the result.
    """
    values: Dict[str, ArgumentValue] = {opt.name: ArgumentValue() for opt in spec.options}
    inputs: List[str] = []
    awaiting: Optional[str] = None

    for arg in args:
        if awaiting is not None:
            values[awaiting].value = arg
            awaiting = None
            continue

        if arg == "--help":
            make_help_msg(spec)
            raise SystemExit(0)

        if arg == "--version":
            print(f"{spec.program_name}: {spec.version}", file=sys.stderr)
            raise SystemExit(0)

        if not arg.startswith("-"):
            inputs.append(arg)
            continue

        opt = _find_option(arg, spec)
        if opt is None:
            raise ArgumentError(f"unknown option: {arg}")
        values[opt.name].present = True
        if opt.has_args:
            awaiting = opt.name

    for opt in spec.options:
        if opt.required and not values[opt.name].present:
            raise ArgumentError(f"missing required option {opt.long_flag}")

    return ArgData(input_values=inputs, values=values)