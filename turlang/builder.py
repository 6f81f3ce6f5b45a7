"""turlang/builder.py – :class:`~turlang.ast.ProgramNode` → :class:`~turlang.program.Program`.

Resolves the blank symbol and the ``_`` alias, fills in defaults (heads at
0, identity writes) and checks the structure the line grammar cannot see:
arity agreement across lines and unique read vectors per state.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, Tuple

from turlang import ast as A
from turlang.errors import SourceSpan, TurBuildError, TurErrorCodes
from turlang.program import DEFAULT_BLANK, Direction, Program, State, Transition

logger = logging.getLogger(__name__)


def _resolve(symbols: Tuple[A.SymbolNode, ...], blank: str) -> Tuple[str, ...]:
    return tuple(s.resolve(blank) for s in symbols)


def _build_transition(node: A.TransitionNode, blank: str, arity: int, state: str) -> Transition:
    read = _resolve(node.read, blank)
    write = _resolve(node.write, blank) if node.write is not None else read
    move = tuple(Direction.from_token(m) for m in node.moves)

    for label, vector in (("read", read), ("write", write), ("move", move)):
        if len(vector) != arity:
            raise TurBuildError(
                f"Transition in state '{state}' has {len(vector)} {label} "
                f"entr{'y' if len(vector) == 1 else 'ies'} but the program has "
                f"{arity} tape(s)",
                code=TurErrorCodes.ARITY_MISMATCH,
                span=SourceSpan.from_loc(node.loc),
            )
    return Transition(read=read, write=write, move=move, next_state=node.next_state, loc=node.loc)


def _build_state(node: A.StateNode, blank: str, arity: int) -> State:
    transitions: Dict[Tuple[str, ...], Transition] = {}
    for tnode in node.transitions:
        transition = _build_transition(tnode, blank, arity, node.name)
        previous = transitions.get(transition.read)
        if previous is not None:
            raise TurBuildError(
                f"State '{node.name}' has two transitions reading {list(transition.read)!r} "
                f"(lines {previous.loc.line} and {tnode.loc.line})",
                code=TurErrorCodes.DUPLICATE_TRANSITION,
                span=SourceSpan.from_loc(tnode.loc),
            )
        transitions[transition.read] = transition
    return State(name=node.name, transitions=MappingProxyType(transitions), loc=node.loc)


def build(node: A.ProgramNode) -> Program:
    """Lower a parsed program into an immutable :class:`Program`."""
    blank = node.blank.symbol if node.blank is not None else DEFAULT_BLANK
    arity = node.tape.arity
    if arity < 1:
        raise TurBuildError(
            "A program needs at least one tape",
            code=TurErrorCodes.ARITY_MISMATCH,
            span=SourceSpan.from_loc(node.tape.loc),
        )

    tapes = tuple(_resolve(row, blank) for row in node.tape.rows)
    heads = node.head.positions if node.head is not None else (0,) * arity
    if len(heads) != arity:
        raise TurBuildError(
            f"Expected {arity} head position(s) but found {len(heads)}",
            code=TurErrorCodes.ARITY_MISMATCH,
            span=SourceSpan.from_loc(node.head.loc if node.head else None),
        )

    if not node.states:
        raise TurBuildError(
            "A program needs at least one state",
            code=TurErrorCodes.NO_STATES,
            span=SourceSpan(file=node.source_path or ""),
        )

    states: Dict[str, State] = {}
    for snode in node.states:
        states[snode.name] = _build_state(snode, blank, arity)

    program = Program(
        name=node.name.text if node.name is not None else None,
        blank=blank,
        arity=arity,
        initial_tapes=tapes,
        initial_heads=tuple(heads),
        states=MappingProxyType(states),
        start_state=node.states[0].name,
        source_path=node.source_path,
    )
    logger.debug(
        "Built program %r: %d tape(s), %d state(s), %d transition(s), blank=%r",
        program.name, arity, len(states), program.transition_count, blank,
    )
    return program
