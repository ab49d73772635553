"""Text patterns shared by the heuristic shell analyzers.

These are line-oriented regular expressions, not a shell grammar. Known
blind spots, accepted as the cost of staying heuristic:

- text inside heredocs, quoted strings and comments is matched like code,
  so ``# set -e`` counts as an errexit directive and ``echo "a|b"`` as a pipe;
- ``set`` options toggled through variables or ``shopt`` are not seen;
- assignments inside ``eval``, ``read``, ``for NAME in`` or ``printf -v`` are
  not recognised, so those variables may be reported as unguarded.
"""

import re
from typing import Optional


NAME = r"[A-Za-z_][A-Za-z0-9_]*"

# `function NAME ...` and `NAME() {`
FUNCTION_KEYWORD_PATTERN = re.compile(rf"^[ \t]*function[ \t]+({NAME})\b", re.MULTILINE)
FUNCTION_BRACE_PATTERN = re.compile(rf"^[ \t]*({NAME})[ \t]*\([ \t]*\)[ \t]*\{{", re.MULTILINE)

# Word tokens; hyphens allowed inside so `git-lfs` is not read as `git`.
WORD_PATTERN = re.compile(r"\b[A-Za-z_][A-Za-z0-9_-]*\b")

# `NAME=` at start of line, optionally behind a declaration builtin.
ASSIGNMENT_PATTERN = re.compile(
    rf"^\s*(?:(?:export|local|readonly|declare|typeset)\s+(?:-[A-Za-z]+\s+)*)?({NAME})(?:\[[^\]]*\])?\+?=",
    re.MULTILINE,
)

# ${NAME...} (also ${#NAME} and ${!NAME}) and $NAME. Positional and special
# parameters ($1, $*, $@, $$, $?, $!, $#, $-) never match NAME.
BRACED_REFERENCE_PATTERN = re.compile(rf"\$\{{[#!]?({NAME})")
UNBRACED_REFERENCE_PATTERN = re.compile(rf"\$({NAME})")

# Guard forms: ${NAME:-x} ${NAME-x} ${NAME:=x} ${NAME=x} ${NAME:?x} ${NAME?x}
GUARD_TEMPLATE = r"\$\{{{name}:?[-=?]"

SET_FLAGS_PATTERN = re.compile(r"^\s*set\s+([^#\n]*)", re.MULTILINE)
ERR_TRAP_PATTERN = re.compile(r"^\s*trap\s+.*\bERR\b", re.MULTILINE)

# A single `|` or `|&`, not the `||` operator.
PIPE_PATTERN = re.compile(r"(?<!\|)\|(?!\|)")


def _set_lines(text: str):
    for match in SET_FLAGS_PATTERN.finditer(text):
        yield match.group(1)


def _has_set_option(text: str, short_flag: str, long_name: str) -> bool:
    """Check for ``set -<flag>`` (possibly clustered) or ``set -o <long_name>``."""
    short = re.compile(rf"(?:^|\s)-[A-Za-z]*{short_flag}[A-Za-z]*\b")
    long = re.compile(rf"(?:^|\s)-[A-Za-z]*o\s+{long_name}\b")
    return any(short.search(flags) or long.search(flags) for flags in _set_lines(text))


def has_nounset(text: str) -> bool:
    return _has_set_option(text, "u", "nounset")


def has_errexit(text: str) -> bool:
    return _has_set_option(text, "e", "errexit")


def has_pipefail(text: str) -> bool:
    # `pipefail` has no short flag; `set -euo pipefail` is covered by the long form.
    return any(
        re.search(r"(?:^|\s)-[A-Za-z]*o\s+pipefail\b", flags) for flags in _set_lines(text)
    )


def has_err_trap(text: str) -> bool:
    return ERR_TRAP_PATTERN.search(text) is not None


def line_of(text: str, offset: int) -> int:
    """1-based line number of a character offset."""
    return text.count("\n", 0, offset) + 1


def first_line_matching(text: str, pattern: "re.Pattern[str]") -> Optional[int]:
    """Line of the first match of ``pattern``, if any."""
    match = pattern.search(text)
    if match is None:
        return None
    return line_of(text, match.start())
