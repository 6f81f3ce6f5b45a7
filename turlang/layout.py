"""turlang/layout.py – Line scanning and indentation tracking.

``.tur`` programs are line oriented: top-level directives sit at column 1,
``tapes:`` rows and state headers are indented below their header, and
transition lines are indented below their state.  This module turns raw
text into :class:`LogicalLine` records (comments removed, indentation
split off) and provides :class:`IndentStack`, the explicit stack the
parser uses to open and close blocks.

Indentation rules
-----------------
* The leading whitespace of the first line of a block becomes that
  block's indent unit; it may be any run of spaces and/or tabs.
* Every further line of the block must repeat the unit exactly.
* A line whose indentation is lesser than, or incomparable with, the
  current unit closes the block.  It must then match an enclosing level
  exactly, otherwise the indentation is inconsistent.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Tuple

_WHITESPACE = " \t"


class IndentError(ValueError):
    """Raised by :class:`IndentStack` on an inconsistent indentation."""

    def __init__(self, message: str, indent: str) -> None:
        super().__init__(message)
        self.indent = indent


@dataclass(frozen=True, slots=True)
class LogicalLine:
    """One non-empty source line after comment removal."""

    number: int
    indent: str
    content: str
    raw: str

    @property
    def column(self) -> int:
        """1-based column of the first content character."""
        return len(self.indent) + 1


def strip_comment(text: str) -> str:
    """Remove a trailing ``#`` comment from *text*.

    A ``#`` starts a comment when it is the first character or follows
    whitespace.  Quoted symbols (``'#'``) are skipped as a unit so they
    never start a comment.
    """
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "'" and i + 2 < n and text[i + 2] == "'":
            i += 3
            continue
        if ch == "#" and (i == 0 or text[i - 1] in _WHITESPACE):
            return text[:i]
        i += 1
    return text


def split_indent(raw: str) -> Tuple[str, str]:
    """Split *raw* into ``(indent, rest)``."""
    rest = raw.lstrip(_WHITESPACE)
    return raw[: len(raw) - len(rest)], rest


def scan_lines(text: str) -> Iterator[LogicalLine]:
    """Yield the logical lines of *text*, skipping blank and comment-only lines."""
    for number, raw in enumerate(text.splitlines(), start=1):
        indent, rest = split_indent(raw)
        content = strip_comment(rest).rstrip()
        if not content:
            continue
        yield LogicalLine(number=number, indent=indent, content=content, raw=raw)


def describe_indent(indent: str) -> str:
    """Human-readable form of an indentation string, for error messages."""
    if not indent:
        return "no indentation"
    spaces = indent.count(" ")
    tabs = indent.count("\t")
    parts = []
    if spaces:
        parts.append(f"{spaces} space{'s' if spaces != 1 else ''}")
    if tabs:
        parts.append(f"{tabs} tab{'s' if tabs != 1 else ''}")
    return " + ".join(parts)


class IndentStack:
    """Explicit stack of open indentation levels.

    The bottom level is the top-level indentation (normally ``""``) and
    is never popped.
    """

    def __init__(self, base: str = "") -> None:
        self._levels: List[str] = [base]

    @property
    def top(self) -> str:
        return self._levels[-1]

    @property
    def depth(self) -> int:
        """Number of open blocks above the base level."""
        return len(self._levels) - 1

    @property
    def levels(self) -> Tuple[str, ...]:
        return tuple(self._levels)

    def is_deeper(self, indent: str) -> bool:
        """True if *indent* nests strictly inside the current level."""
        top = self.top
        return len(indent) > len(top) and indent.startswith(top)

    def push(self, indent: str) -> None:
        """Open a block whose unit is *indent*."""
        if not self.is_deeper(indent):
            raise IndentError(
                f"expected indentation deeper than {describe_indent(self.top)}, "
                f"got {describe_indent(indent)}",
                indent,
            )
        self._levels.append(indent)

    def pop(self) -> str:
        if self.depth == 0:
            raise IndentError("cannot close the top-level block", self.top)
        return self._levels.pop()

    def dedent_to(self, indent: str) -> int:
        """Close blocks until *indent* is the current level.

        Returns the number of blocks closed (``0`` if *indent* already is
        the current level).  Raises :class:`IndentError` without modifying
        the stack when *indent* matches no open level.
        """
        if indent == self.top:
            return 0
        for i in range(len(self._levels) - 2, -1, -1):
            if self._levels[i] == indent:
                closed = len(self._levels) - 1 - i
                del self._levels[i + 1:]
                return closed
        raise IndentError(
            f"{describe_indent(indent)} does not match any enclosing block",
            indent,
        )
