"""turlang/parser.py – ``.tur`` source text → :mod:`turlang.ast` tree.

The parser is a small state machine over the logical lines produced by
:func:`turlang.layout.scan_lines`.  Block structure is tracked with an
explicit :class:`~turlang.layout.IndentStack`; the content of every line
is matched against one rule of the PEG in :mod:`turlang.grammar`.

Contexts
--------
``TOP``    directives at column 1 (``name:``, ``tape:``, ``rules:``, ...)
``TAPES``  bracketed rows below ``tapes:``
``RULES``  state headers below ``rules:``
``STATE``  transition lines below a state header

A header line (``tapes:``, ``rules:`` or ``state:``) leaves its block
*pending*; the next line opens the block if it is indented deeper.

Public API
----------
``parse(text, filename="<string>") -> ProgramNode``
``parse_file(path) -> ProgramNode``

Failure policy: the first violation raises :class:`TurParseError`.
"""

from __future__ import annotations

import enum
import logging
from pathlib import Path
from typing import Any, Dict, Final, List, Optional, Tuple, Union

from parsimonious.exceptions import ParseError

from turlang import ast as A
from turlang.errors import ErrorCode, TurErrorCodes, TurParseError
from turlang.grammar import GRAMMAR, RULE_DESCRIPTIONS, TurLineVisitor
from turlang.layout import IndentError, IndentStack, LogicalLine, scan_lines

logger = logging.getLogger(__name__)

#: Sources longer than this many characters are rejected.
MAX_PROGRAM_SIZE: Final[int] = 65536

DIRECTIVES: Final[Tuple[str, ...]] = ("name", "tape", "tapes", "head", "heads", "blank", "rules")

_EXCLUSIVE: Final[Dict[str, Tuple[str, str]]] = {
    "tape": ("tape", "tapes"),
    "tapes": ("tape", "tapes"),
    "head": ("head", "heads"),
    "heads": ("head", "heads"),
}


class _Block(enum.Enum):
    TOP = "top"
    TAPES = "tapes"
    RULES = "rules"
    STATE = "state"


class TurParser:
    """Single-use parser for one source text."""

    def __init__(self, text: str, filename: str = "<string>") -> None:
        self.text = text
        self.filename = filename
        self._visitor = TurLineVisitor(filename)
        self._indent = IndentStack()
        self._contexts: List[_Block] = [_Block.TOP]
        self._pending: Optional[_Block] = None
        self._pending_line: Optional[LogicalLine] = None
        self._seen: Dict[str, LogicalLine] = {}

        self._name: Optional[A.NameDecl] = None
        self._tape: Optional[A.TapeDecl] = None
        self._tape_rows: List[Tuple[A.SymbolNode, ...]] = []
        self._head: Optional[A.HeadDecl] = None
        self._blank: Optional[A.BlankDecl] = None

        self._states: List[A.StateNode] = []
        self._state_lines: Dict[str, int] = {}
        self._current: Optional[Tuple[str, A.SourceLoc, List[A.TransitionNode]]] = None

    # -----------------------------------------------------------------
    # Driver
    # -----------------------------------------------------------------

    def parse(self) -> A.ProgramNode:
        if len(self.text) > MAX_PROGRAM_SIZE:
            raise TurParseError(
                f"Program is too large ({len(self.text)} characters, "
                f"the limit is {MAX_PROGRAM_SIZE})",
                line=1,
                code=TurErrorCodes.PROGRAM_TOO_LARGE,
                file=self.filename,
            )

        for line in scan_lines(self.text):
            self._feed(line)
        self._finish_pending()
        self._flush_state()

        program = self._assemble()
        logger.debug(
            "Parsed %s: %d tape(s), %d state(s)",
            self.filename, program.tape.arity, len(program.states),
        )
        return program

    def _feed(self, line: LogicalLine) -> None:
        if self._pending is not None and self._indent.is_deeper(line.indent):
            self._indent.push(line.indent)
            self._contexts.append(self._pending)
            self._pending = None
            self._pending_line = None
        else:
            self._finish_pending()
            if self._indent.is_deeper(line.indent):
                raise self._error(
                    line, "Unexpected indentation",
                    code=TurErrorCodes.BAD_INDENTATION, column=1,
                )
            try:
                closed = self._indent.dedent_to(line.indent)
            except IndentError as exc:
                raise self._error(
                    line, f"Inconsistent indentation: {exc}",
                    code=TurErrorCodes.BAD_INDENTATION, column=1,
                ) from exc
            if closed:
                del self._contexts[-closed:]

        context = self._contexts[-1]
        if context is _Block.TOP:
            self._top_line(line)
        elif context is _Block.TAPES:
            self._tape_row(line)
        elif context is _Block.RULES:
            self._state_header(line)
        else:
            self._transition_line(line)

    def _open_pending(self, block: _Block, line: LogicalLine) -> None:
        self._pending = block
        self._pending_line = line

    def _finish_pending(self) -> None:
        """Close a header whose block received no indented line."""
        pending, header = self._pending, self._pending_line
        self._pending = None
        self._pending_line = None
        if pending is None or header is None:
            return
        if pending is _Block.TAPES:
            raise self._error(
                header, "'tapes:' must be followed by at least one indented tape row",
                code=TurErrorCodes.EMPTY_BLOCK,
            )
        if pending is _Block.RULES:
            raise self._error(
                header, "'rules:' must contain at least one indented state",
                code=TurErrorCodes.EMPTY_BLOCK,
            )
        # A state header without transitions is a halting state.

    # -----------------------------------------------------------------
    # Top-level directives
    # -----------------------------------------------------------------

    def _top_line(self, line: LogicalLine) -> None:
        key, sep, rest = line.content.partition(":")
        key = key.strip()
        if not sep:
            raise self._error(line, "Expected a directive such as 'tape:' or 'rules:'")
        if key not in DIRECTIVES:
            raise self._error(line, f"Unknown directive '{key}:'")
        if key in self._seen:
            raise self._error(
                line,
                f'Duplicate "{key}:" declaration (first declared on line {self._seen[key].number})',
                code=TurErrorCodes.DUPLICATE_DIRECTIVE,
            )
        pair = _EXCLUSIVE.get(key)
        if pair is not None and any(other in self._seen for other in pair):
            raise self._error(
                line,
                f"Only one of '{pair[0]}' or '{pair[1]}' is allowed",
                code=TurErrorCodes.EXCLUSIVE_DIRECTIVES,
            )
        self._seen[key] = line

        offset = len(line.indent) + line.content.index(":") + 1
        loc = A.SourceLoc(self.filename, line.number, line.column)

        if key == "name":
            text = rest.strip()
            if not text:
                raise self._error(line, "'name:' requires a value")
            self._name = A.NameDecl(text=text, loc=loc)
        elif key == "tape":
            row = self._match("tape_value", rest, line, offset)
            self._tape = A.TapeDecl(rows=(tuple(row),), multi=False, loc=loc)
        elif key == "tapes":
            self._expect_bare_header(line, key, rest, offset)
            self._open_pending(_Block.TAPES, line)
        elif key == "head":
            position = self._match("head_value", rest, line, offset)
            self._head = A.HeadDecl(positions=(position,), multi=False, loc=loc)
        elif key == "heads":
            positions = self._match("heads_value", rest, line, offset)
            self._head = A.HeadDecl(positions=tuple(positions), multi=True, loc=loc)
        elif key == "blank":
            # An unquoted "_" here is the literal underscore, not the alias.
            symbol = self._match("blank_value", rest, line, offset)
            self._blank = A.BlankDecl(symbol=symbol.value, loc=loc)
        else:
            self._expect_bare_header(line, key, rest, offset)
            self._open_pending(_Block.RULES, line)

    def _expect_bare_header(self, line: LogicalLine, key: str, rest: str, offset: int) -> None:
        if rest.strip():
            column = offset + len(rest) - len(rest.lstrip()) + 1
            raise self._error(
                line,
                f"Nothing may follow '{key}:' on the same line; put its entries on indented lines below",
                column=column,
            )

    # -----------------------------------------------------------------
    # Blocks
    # -----------------------------------------------------------------

    def _tape_row(self, line: LogicalLine) -> None:
        row = self._match("tape_row", line.content, line, len(line.indent))
        self._tape_rows.append(tuple(row))

    def _state_header(self, line: LogicalLine) -> None:
        try:
            tree = GRAMMAR["state_header"].parse(line.content)
        except ParseError as exc:
            if "," in line.content:
                raise self._error(
                    line,
                    "Expected a state header 'name:'; transitions must be "
                    "indented below their state",
                ) from exc
            raise self._syntax_error("state_header", line.content, exc.pos, line, len(line.indent)) from exc
        name = self._visitor.at(line.number, len(line.indent), line.raw).visit(tree)

        if name in self._state_lines:
            raise self._error(
                line,
                f"State '{name}' is already declared on line {self._state_lines[name]}",
                code=TurErrorCodes.DUPLICATE_STATE,
            )
        self._flush_state()
        self._state_lines[name] = line.number
        self._current = (name, A.SourceLoc(self.filename, line.number, line.column), [])
        self._open_pending(_Block.STATE, line)

    def _transition_line(self, line: LogicalLine) -> None:
        try:
            tree = GRAMMAR["transition"].parse(line.content)
        except ParseError as exc:
            if line.content.endswith(":") and "," not in line.content:
                raise self._error(
                    line,
                    "Unexpected state header inside a state block; state "
                    "headers must be indented at the same level as the other states",
                    code=TurErrorCodes.BAD_INDENTATION,
                ) from exc
            raise self._syntax_error("transition", line.content, exc.pos, line, len(line.indent)) from exc
        transition = self._visitor.at(line.number, len(line.indent), line.raw).visit(tree)
        assert self._current is not None
        self._current[2].append(transition)

    def _flush_state(self) -> None:
        if self._current is None:
            return
        name, loc, transitions = self._current
        self._states.append(A.StateNode(name=name, transitions=tuple(transitions), loc=loc))
        self._current = None

    # -----------------------------------------------------------------
    # Assembly
    # -----------------------------------------------------------------

    def _assemble(self) -> A.ProgramNode:
        if "tapes" in self._seen:
            header = self._seen["tapes"]
            self._tape = A.TapeDecl(
                rows=tuple(self._tape_rows),
                multi=True,
                loc=A.SourceLoc(self.filename, header.number, header.column),
            )
        if self._tape is None:
            raise TurParseError(
                "Missing 'tape' or 'tapes' section",
                line=1,
                code=TurErrorCodes.MISSING_SECTION,
                file=self.filename,
            )
        if "rules" not in self._seen:
            raise TurParseError(
                "Missing 'rules' section",
                line=1,
                code=TurErrorCodes.MISSING_SECTION,
                file=self.filename,
            )
        if self._head is not None and len(self._head.positions) != self._tape.arity:
            head_line = self._seen["heads" if self._head.multi else "head"]
            raise self._error(
                head_line,
                f"Expected {self._tape.arity} head position(s), one per tape, "
                f"but found {len(self._head.positions)}",
                code=TurErrorCodes.HEAD_COUNT,
            )

        return A.ProgramNode(
            tape=self._tape,
            states=tuple(self._states),
            name=self._name,
            head=self._head,
            blank=self._blank,
            source_path=self.filename,
        )

    # -----------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------

    def _match(self, rule: str, text: str, line: LogicalLine, offset: int) -> Any:
        """Parse *text* (starting at 0-based column *offset*) with *rule*."""
        try:
            tree = GRAMMAR[rule].parse(text)
        except ParseError as exc:
            raise self._syntax_error(rule, text, exc.pos, line, offset) from exc
        return self._visitor.at(line.number, offset, line.raw).visit(tree)

    def _syntax_error(
        self, rule: str, text: str, pos: int, line: LogicalLine, offset: int
    ) -> TurParseError:
        pos = max(pos, 0)
        near = repr(text[pos]) if pos < len(text) else "end of line"
        return self._error(
            line,
            f"Invalid {RULE_DESCRIPTIONS.get(rule, rule)}: unexpected {near}",
            column=offset + pos + 1,
        )

    def _error(
        self,
        line: LogicalLine,
        message: str,
        *,
        code: Optional[ErrorCode] = None,
        column: Optional[int] = None,
    ) -> TurParseError:
        return TurParseError(
            message,
            line=line.number,
            column=column if column is not None else line.column,
            snippet=line.raw,
            code=code,
            file=self.filename,
        )


# ═══════════════════════════════════════════════════════════════════════
#  Public API
# ═══════════════════════════════════════════════════════════════════════


def parse(text: str, filename: str = "<string>") -> A.ProgramNode:
    """Parse a complete ``.tur`` source string."""
    return TurParser(text, filename).parse()


def parse_file(path: Union[str, Path]) -> A.ProgramNode:
    """Read *path* as UTF-8 and parse it."""
    path = Path(path)
    return parse(path.read_text(encoding="utf-8"), filename=str(path))
