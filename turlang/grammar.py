"""
grammar.py - line grammar for ``.tur`` programs
===============================================

The block structure of a ``.tur`` file (directives, ``tapes:`` rows,
state blocks, transition lines) is tracked by :mod:`turlang.layout`.
What each line *contains* is described by the Parsimonious PEG below and
lowered into :mod:`turlang.ast` nodes by :class:`TurLineVisitor`.

Each entry point rule matches one whole logical line (comments and
indentation already removed):

* ``transition``   - ``a -> b, R, next`` / ``[a, b] -> [c, d], [R, S], next``
* ``state_header`` - ``name:``
* ``tape_value``   - the part after ``tape:``
* ``tape_row``     - one ``[a, b, c]`` row below ``tapes:``
* ``head_value`` / ``heads_value`` / ``blank_value``

Depends on:
    - parsimonious (PEG parser)
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, Tuple

from parsimonious.grammar import Grammar
from parsimonious.nodes import Node, NodeVisitor

from turlang import ast as A
from turlang.errors import TurErrorCodes, TurParseError

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  PART 1 - LINE GRAMMAR (Parsimonious PEG)
# ═══════════════════════════════════════════════════════════════════

TUR_GRAMMAR = r"""
    # ─────────────────────────────────────────────────────────────
    # Transition lines (inside a state block)
    # ─────────────────────────────────────────────────────────────

    transition          = multi_transition / single_transition
    single_transition   = symbol write_clause? _ "," _ direction _ "," _ state_name _
    write_clause        = _ "->" _ symbol
    multi_transition    = symbol_vector multi_write? _ "," _ direction_vector _ "," _ state_name _
    multi_write         = _ "->" _ symbol_vector

    # ─────────────────────────────────────────────────────────────
    # State headers (inside the rules block)
    # ─────────────────────────────────────────────────────────────

    state_header        = state_name _ ":" _

    # ─────────────────────────────────────────────────────────────
    # Directive values
    # ─────────────────────────────────────────────────────────────

    tape_value          = _ symbol_list? _
    tape_row            = symbol_vector _
    head_value          = _ index _
    heads_value         = _ "[" _ index_list? _ "]" _
    blank_value         = _ symbol _

    # ─────────────────────────────────────────────────────────────
    # Vectors & lists
    # ─────────────────────────────────────────────────────────────

    symbol_vector       = "[" _ symbol_list? _ "]"
    symbol_list         = symbol (_ "," _ symbol)*
    direction_vector    = "[" _ direction_list? _ "]"
    direction_list      = direction (_ "," _ direction)*
    index_list          = index (_ "," _ index)*

    # ─────────────────────────────────────────────────────────────
    # Atoms
    # ─────────────────────────────────────────────────────────────

    symbol              = quoted_symbol / blank_alias / bare_symbol
    quoted_symbol       = ~r"'.'"s
    blank_alias         = "_"
    bare_symbol         = ~r"[^#\s,<>\[\]']"
    direction           = ~r"[RLS<>-]"
    state_name          = ~r"\w[\w.\-]*"
    index               = ~r"\d+"
    _                   = ~r"[ \t]*"
"""

GRAMMAR = Grammar(TUR_GRAMMAR)

#: Rule name → phrase used in "invalid ..." error messages.
RULE_DESCRIPTIONS = {
    "transition": "transition",
    "state_header": "state header",
    "tape_value": "tape symbol list",
    "tape_row": "tape row",
    "head_value": "head position",
    "heads_value": "head position list",
    "blank_value": "blank symbol",
}


# ═══════════════════════════════════════════════════════════════════
#  PART 2 - VISITOR (Parse Tree → AST)
# ═══════════════════════════════════════════════════════════════════

def _optional(value: Any) -> Any:
    """Unwrap the result of a ``?`` quantifier (``None`` when unmatched)."""
    if isinstance(value, list) and value:
        return value[0]
    return None


def _repeated_tail(value: Any) -> List[Any]:
    """Collect the last element of each ``(_ "," _ x)*`` repetition."""
    if not isinstance(value, list):
        return []
    return [item[-1] for item in value]


class TurLineVisitor(NodeVisitor):
    """Transforms a Parsimonious parse tree for one line into AST pieces.

    The visitor is positioned on a source line with :meth:`at` before each
    visit so that every node gets a proper :class:`turlang.ast.SourceLoc`.
    """

    unwrapped_exceptions = (TurParseError,)

    def __init__(self, file: str = "<string>") -> None:
        self.file = file
        self.line = 0
        self.offset = 0
        self.snippet = ""

    def at(self, line: int, offset: int, snippet: str) -> "TurLineVisitor":
        """Position on *line*; *offset* is the 0-based column of the text start."""
        self.line = line
        self.offset = offset
        self.snippet = snippet
        return self

    def loc(self, node: Node) -> A.SourceLoc:
        return A.SourceLoc(file=self.file, line=self.line, col=self.offset + node.start + 1)

    def generic_visit(self, node, visited_children):
        return visited_children or node

    # ─────────────────────────────────────────────────────────────
    # Atoms
    # ─────────────────────────────────────────────────────────────

    def visit_symbol(self, node, visited_children):
        return visited_children[0]

    def visit_quoted_symbol(self, node, visited_children):
        return A.SymbolNode(value=node.text[1], quoted=True, loc=self.loc(node))

    def visit_blank_alias(self, node, visited_children):
        return A.SymbolNode(value="_", is_blank_alias=True, loc=self.loc(node))

    def visit_bare_symbol(self, node, visited_children):
        return A.SymbolNode(value=node.text, loc=self.loc(node))

    def visit_direction(self, node, visited_children):
        return node.text

    def visit_state_name(self, node, visited_children):
        return node.text

    def visit_index(self, node, visited_children):
        return int(node.text)

    # ─────────────────────────────────────────────────────────────
    # Lists
    # ─────────────────────────────────────────────────────────────

    def visit_symbol_list(self, node, visited_children):
        first, rest = visited_children
        return (first, *_repeated_tail(rest))

    visit_direction_list = visit_symbol_list
    visit_index_list = visit_symbol_list

    def visit_symbol_vector(self, node, visited_children):
        _, _, items, _, _ = visited_children
        return _optional(items) or ()

    visit_direction_vector = visit_symbol_vector

    # ─────────────────────────────────────────────────────────────
    # Transitions
    # ─────────────────────────────────────────────────────────────

    def visit_transition(self, node, visited_children):
        return visited_children[0]

    def visit_write_clause(self, node, visited_children):
        return visited_children[-1]

    visit_multi_write = visit_write_clause

    def visit_single_transition(self, node, visited_children):
        read, write, _, _, _, direction, _, _, _, next_state, _ = visited_children
        written = _optional(write)
        return A.TransitionNode(
            read=(read,),
            write=(written,) if written is not None else None,
            moves=(direction,),
            next_state=next_state,
            multi=False,
            loc=self.loc(node),
        )

    def visit_multi_transition(self, node, visited_children):
        read, write, _, _, _, moves, _, _, _, next_state, _ = visited_children
        written: Optional[Tuple[A.SymbolNode, ...]] = _optional(write)
        self._check_literal_arity(node, read, written, moves)
        return A.TransitionNode(
            read=tuple(read),
            write=tuple(written) if written is not None else None,
            moves=tuple(moves),
            next_state=next_state,
            multi=True,
            loc=self.loc(node),
        )

    def _check_literal_arity(
        self,
        node: Node,
        read: Sequence[Any],
        write: Optional[Sequence[Any]],
        moves: Sequence[str],
    ) -> None:
        lengths = [len(read), len(moves)] + ([len(write)] if write is not None else [])
        if not read:
            raise TurParseError(
                "Multi-tape transition must read at least one symbol",
                line=self.line,
                column=self.offset + node.start + 1,
                snippet=self.snippet,
                code=TurErrorCodes.LITERAL_ARITY,
                file=self.file,
            )
        if len(set(lengths)) != 1:
            write_len = len(write) if write is not None else len(read)
            raise TurParseError(
                "Inconsistent multi-tape action: "
                f"read={len(read)}, write={write_len}, directions={len(moves)}",
                line=self.line,
                column=self.offset + node.start + 1,
                snippet=self.snippet,
                code=TurErrorCodes.LITERAL_ARITY,
                file=self.file,
            )

    # ─────────────────────────────────────────────────────────────
    # Headers and directive values
    # ─────────────────────────────────────────────────────────────

    def visit_state_header(self, node, visited_children):
        return visited_children[0]

    def visit_tape_value(self, node, visited_children):
        _, items, _ = visited_children
        return _optional(items) or ()

    def visit_tape_row(self, node, visited_children):
        return visited_children[0]

    def visit_head_value(self, node, visited_children):
        return visited_children[1]

    def visit_heads_value(self, node, visited_children):
        _, _, _, items, _, _, _ = visited_children
        return _optional(items) or ()

    def visit_blank_value(self, node, visited_children):
        return visited_children[1]
