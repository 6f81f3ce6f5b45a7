"""turlang/program.py – The validated, immutable machine description.

A :class:`Program` is produced by :func:`turlang.builder.build` and shared,
read-only, by any number of :class:`turlang.machine.Machine` instances.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Sequence, Tuple

from turlang.ast import NO_LOC, SourceLoc

#: Blank symbol used when a program declares none.
DEFAULT_BLANK: str = " "

Symbol = str
ReadVector = Tuple[Symbol, ...]


class Direction(enum.Enum):
    """Head movement applied after a write."""

    LEFT = "L"
    RIGHT = "R"
    STAY = "S"

    @property
    def delta(self) -> int:
        return _DELTAS[self]

    @classmethod
    def from_token(cls, token: str) -> "Direction":
        """Map a source spelling (``L``/``<``, ``R``/``>``, ``S``/``-``)."""
        try:
            return _TOKENS[token]
        except KeyError:
            raise ValueError(f"Unknown direction {token!r}") from None


_DELTAS = {Direction.LEFT: -1, Direction.RIGHT: 1, Direction.STAY: 0}
_TOKENS = {
    "L": Direction.LEFT, "<": Direction.LEFT,
    "R": Direction.RIGHT, ">": Direction.RIGHT,
    "S": Direction.STAY, "-": Direction.STAY,
}


class ExecutionMode(enum.Enum):
    """What a machine does when no transition matches.

    ``NORMAL`` halts; ``STRICT`` stops with an :class:`UndefinedTransition`.
    """

    NORMAL = "normal"
    STRICT = "strict"


@dataclass(frozen=True, slots=True)
class Transition:
    read: ReadVector
    write: Tuple[Symbol, ...]
    move: Tuple[Direction, ...]
    next_state: str
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)

    @property
    def arity(self) -> int:
        return len(self.read)


@dataclass(frozen=True, slots=True)
class State:
    """A named state and its transitions, keyed by read vector.

    ``transitions`` keeps declaration order.  A state without transitions
    is a halt state.
    """

    name: str
    transitions: Mapping[ReadVector, Transition] = field(default_factory=lambda: MappingProxyType({}))
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)

    @property
    def is_halting(self) -> bool:
        return not self.transitions

    def lookup(self, read: ReadVector) -> Optional[Transition]:
        return self.transitions.get(read)

    def __iter__(self) -> Iterator[Transition]:
        return iter(self.transitions.values())


@dataclass(frozen=True, slots=True)
class Program:
    """A complete, validated Turing machine description.

    Invariants: ``start_state`` is the first declared state and
    ``len(initial_tapes) == len(initial_heads) == arity``.
    """

    name: Optional[str]
    blank: Symbol
    arity: int
    initial_tapes: Tuple[Tuple[Symbol, ...], ...]
    initial_heads: Tuple[int, ...]
    states: Mapping[str, State]
    start_state: str
    source_path: Optional[str] = field(default=None, compare=False)

    @property
    def transition_count(self) -> int:
        return sum(len(state.transitions) for state in self.states.values())

    @property
    def is_multi_tape(self) -> bool:
        return self.arity > 1

    def state(self, name: str) -> Optional[State]:
        return self.states.get(name)

    def transitions(self) -> Iterator[Tuple[State, Transition]]:
        """Every ``(state, transition)`` pair in declaration order."""
        for state in self.states.values():
            for transition in state:
                yield state, transition

    def with_tapes(self, contents: Sequence[Sequence[Symbol]]) -> "Program":
        """Return a copy whose initial tapes are replaced by *contents*.

        One row per tape is required.  Heads are kept.
        """
        rows = tuple(tuple(row) for row in contents)
        if len(rows) != self.arity:
            raise ValueError(f"expected {self.arity} tape(s), got {len(rows)}")
        for row in rows:
            for symbol in row:
                if len(symbol) != 1:
                    raise ValueError(f"tape symbols must be single characters, got {symbol!r}")
        return replace(self, initial_tapes=rows)
