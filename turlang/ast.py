"""turlang/ast.py – Abstract syntax for ``.tur`` programs.

The parser produces a tree of frozen dataclasses that mirrors the
structure of the source text, before any defaults are resolved.  The
builder (:mod:`turlang.builder`) consumes it and produces a
:class:`turlang.program.Program`.

Design invariants
-----------------
* Every AST node is a frozen dataclass (immutable after construction).
* Nodes that carry children use tuples, never lists.
* Every node records its source location (``SourceLoc``) for diagnostics.
* Symbols keep track of whether they were written as the blank alias
  ``_``; the alias is only resolved by the builder, once the blank symbol
  is known.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


# ════════════════════════════════════════════════════════════════════════
# §1  Source location
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class SourceLoc:
    """Points back to a position in a ``.tur`` source file."""

    file: str = "<unknown>"
    line: int = 0
    col: int = 0

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.col}"


#: Sentinel for nodes synthesised in code (no source position).
NO_LOC = SourceLoc()


# ════════════════════════════════════════════════════════════════════════
# §2  Leaves
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class SymbolNode:
    """One tape symbol as written in the source.

    ``is_blank_alias`` is true for an unquoted ``_``; ``value`` is then
    ``"_"`` and must not be used as a literal.
    """

    value: str
    is_blank_alias: bool = False
    quoted: bool = False
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)

    def resolve(self, blank: str) -> str:
        return blank if self.is_blank_alias else self.value


# ════════════════════════════════════════════════════════════════════════
# §3  Directives
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class NameDecl:
    text: str
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class TapeDecl:
    """``tape:`` (one row, ``multi=False``) or ``tapes:`` (one row per line)."""

    rows: Tuple[Tuple[SymbolNode, ...], ...]
    multi: bool = False
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)

    @property
    def arity(self) -> int:
        return len(self.rows)


@dataclass(frozen=True, slots=True)
class HeadDecl:
    """``head:`` (one position) or ``heads:`` (bracketed list)."""

    positions: Tuple[int, ...]
    multi: bool = False
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class BlankDecl:
    symbol: str
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


# ════════════════════════════════════════════════════════════════════════
# §4  Rules
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class TransitionNode:
    """One transition line.

    ``write`` is ``None`` when the source omitted the ``-> ...`` clause.
    ``moves`` holds the raw direction spellings (``"R"``, ``">"``, ...).
    """

    read: Tuple[SymbolNode, ...]
    write: Optional[Tuple[SymbolNode, ...]]
    moves: Tuple[str, ...]
    next_state: str
    multi: bool = False
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class StateNode:
    name: str
    transitions: Tuple[TransitionNode, ...] = ()
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class ProgramNode:
    """Root of the tree.  ``states`` keeps source order."""

    tape: TapeDecl
    states: Tuple[StateNode, ...]
    name: Optional[NameDecl] = None
    head: Optional[HeadDecl] = None
    blank: Optional[BlankDecl] = None
    source_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Summary suitable for JSON dumps (used by ``turlang parse``)."""

        def sym(s: SymbolNode) -> str:
            return "_" if s.is_blank_alias else repr(s.value)

        return {
            "name": self.name.text if self.name else None,
            "tapes": [[sym(s) for s in row] for row in self.tape.rows],
            "multi_tape": self.tape.multi,
            "heads": list(self.head.positions) if self.head else None,
            "blank": self.blank.symbol if self.blank else None,
            "states": [
                {
                    "name": st.name,
                    "line": st.loc.line,
                    "transitions": [
                        {
                            "read": [sym(s) for s in t.read],
                            "write": [sym(s) for s in t.write] if t.write is not None else None,
                            "moves": list(t.moves),
                            "next": t.next_state,
                            "line": t.loc.line,
                        }
                        for t in st.transitions
                    ],
                }
                for st in self.states
            ],
        }
