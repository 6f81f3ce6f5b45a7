"""
turlang/machine.py
==================

Deterministic execution engine for :class:`turlang.program.Program`.

This module provides:

* ``Machine``              – one running instance: tapes, heads, state, counters
* ``MachineConfig``        – configuration dataclass (step cap, progress logging)
* ``MachineStatus``        – ``RUNNING`` / ``HALTED`` / ``ERRORED``
* ``StepOutcome``          – result of one :meth:`Machine.step`
* ``Snapshot``             – immutable view of a machine for renderers
* ``UndefinedTransition``  – error detail recorded by strict-mode machines

A :class:`Program` is never mutated; any number of machines may share one.
Failures at run time are reported through :attr:`Machine.status` and
:attr:`Machine.error`, never raised.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Tuple

from turlang.program import ExecutionMode, Program, ReadVector, Transition
from turlang.tape import Tape

logger = logging.getLogger(__name__)


# ===================================================================== #
#  Status and results                                                    #
# ===================================================================== #

class MachineStatus(enum.Enum):
    RUNNING = "running"
    HALTED = "halted"
    ERRORED = "errored"


@dataclass(frozen=True, slots=True)
class UndefinedTransition:
    """No transition of ``state`` matches ``read`` (strict mode only)."""

    state: str
    read: ReadVector

    def __str__(self) -> str:
        symbols = ", ".join(repr(s) for s in self.read)
        return f"no transition from state '{self.state}' reading [{symbols}]"


@dataclass(frozen=True, slots=True)
class StepOutcome:
    """What a call to :meth:`Machine.step` observed and did.

    ``read`` is ``None`` when the machine was already stopped; ``transition``
    is ``None`` when nothing fired.
    """

    status: MachineStatus
    step_count: int
    state: str
    read: Optional[ReadVector] = None
    transition: Optional[Transition] = None
    error: Optional[UndefinedTransition] = None

    @property
    def is_running(self) -> bool:
        return self.status is MachineStatus.RUNNING


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Immutable picture of a machine.

    ``tapes[i]`` holds the materialized cells of tape *i* left to right;
    ``offsets[i]`` is the absolute position of ``tapes[i][0]`` and
    ``heads[i]`` the absolute head position.
    """

    current_state: str
    tapes: Tuple[Tuple[str, ...], ...]
    offsets: Tuple[int, ...]
    heads: Tuple[int, ...]
    step_count: int
    status: MachineStatus
    error: Optional[UndefinedTransition] = None

    def tape_strings(self) -> Tuple[str, ...]:
        return tuple("".join(row) for row in self.tapes)

    def head_indices(self) -> Tuple[int, ...]:
        """Head positions relative to the start of each materialized row."""
        return tuple(head - offset for head, offset in zip(self.heads, self.offsets))


# ===================================================================== #
#  Machine Configuration                                                 #
# ===================================================================== #

@dataclass
class MachineConfig:
    """Tuning knobs for a :class:`Machine`."""
    max_steps: Optional[int] = None
    log_every: int = 0

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid)."""
        warnings: List[str] = []
        if self.max_steps is not None and self.max_steps <= 0:
            warnings.append("max_steps must be positive")
        if self.log_every < 0:
            warnings.append("log_every must be non-negative")
        return warnings


# ===================================================================== #
#  Machine                                                               #
# ===================================================================== #

class Machine:
    """
    A Turing machine executing a shared, immutable :class:`Program`.

    Usage::

        machine = Machine(program, ExecutionMode.STRICT)
        outcome = machine.run_to_halt()
        if outcome.status is MachineStatus.ERRORED:
            print(machine.error)
        print(machine.snapshot().tape_strings())
    """

    def __init__(
        self,
        program: Program,
        mode: ExecutionMode = ExecutionMode.NORMAL,
        *,
        config: Optional[MachineConfig] = None,
    ) -> None:
        self._program = program
        self._mode = mode
        self._config = config or MachineConfig()

        for w in self._config.validate():
            logger.warning("MachineConfig: %s", w)

        self._tapes: List[Tape] = []
        self._heads: List[int] = []
        self._state = program.start_state
        self._step_count = 0
        self._status = MachineStatus.RUNNING
        self._error: Optional[UndefinedTransition] = None
        self.reset()

    # -- Accessors -------------------------------------------------------
    @property
    def program(self) -> Program:
        return self._program

    @property
    def mode(self) -> ExecutionMode:
        return self._mode

    @property
    def config(self) -> MachineConfig:
        return self._config

    @property
    def state(self) -> str:
        return self._state

    @property
    def status(self) -> MachineStatus:
        return self._status

    @property
    def step_count(self) -> int:
        return self._step_count

    @property
    def error(self) -> Optional[UndefinedTransition]:
        return self._error

    @property
    def heads(self) -> Tuple[int, ...]:
        return tuple(self._heads)

    @property
    def tapes(self) -> Tuple[Tape, ...]:
        return tuple(self._tapes)

    @property
    def is_running(self) -> bool:
        return self._status is MachineStatus.RUNNING

    @property
    def is_halted(self) -> bool:
        return self._status is MachineStatus.HALTED

    # -- Lifecycle -------------------------------------------------------
    def reset(self) -> None:
        """Restore the initial configuration of the program."""
        program = self._program
        self._tapes = [Tape(row, program.blank) for row in program.initial_tapes]
        self._heads = list(program.initial_heads)
        self._state = program.start_state
        self._step_count = 0
        self._error = None

        start = program.state(program.start_state)
        if start is None or start.is_halting:
            self._status = MachineStatus.HALTED
            logger.debug("Start state %r has no transitions; machine is halted", self._state)
        else:
            self._status = MachineStatus.RUNNING

    # -- Execution -------------------------------------------------------
    def step(self) -> StepOutcome:
        """Execute at most one transition.

        A stopped machine is left untouched and its current status is
        returned.
        """
        if self._status is not MachineStatus.RUNNING:
            return self._outcome()

        read = tuple(tape[head] for tape, head in zip(self._tapes, self._heads))
        current = self._program.state(self._state)
        transition = current.lookup(read) if current is not None else None

        if transition is None:
            if self._mode is ExecutionMode.STRICT:
                self._error = UndefinedTransition(self._state, read)
                self._status = MachineStatus.ERRORED
                logger.debug("Machine errored after %d step(s): %s", self._step_count, self._error)
            else:
                self._status = MachineStatus.HALTED
                logger.debug(
                    "No transition from %r reading %r; halted after %d step(s)",
                    self._state, read, self._step_count,
                )
            return self._outcome(read)

        for i, tape in enumerate(self._tapes):
            tape[self._heads[i]] = transition.write[i]
            self._heads[i] += transition.move[i].delta
        self._state = transition.next_state
        self._step_count += 1

        target = self._program.state(self._state)
        if target is None or target.is_halting:
            self._status = MachineStatus.HALTED
            logger.debug("Reached halt state %r after %d step(s)", self._state, self._step_count)
        elif self._config.log_every and self._step_count % self._config.log_every == 0:
            logger.debug("Step %d: state=%r heads=%r", self._step_count, self._state, self._heads)

        return self._outcome(read, transition)

    def run_to_halt(
        self,
        max_steps: Optional[int] = None,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> StepOutcome:
        """Step until the machine stops running.

        ``max_steps`` (default ``config.max_steps``) caps the number of
        steps taken by this call; ``should_stop`` is polled before every
        step.  Without either, a non-halting program never returns.
        """
        cap = max_steps if max_steps is not None else self._config.max_steps
        outcome = self._outcome()
        taken = 0
        while self._status is MachineStatus.RUNNING:
            if cap is not None and taken >= cap:
                logger.debug("Step cap of %d reached in state %r", cap, self._state)
                break
            if should_stop is not None and should_stop():
                break
            outcome = self.step()
            taken += 1
        return outcome

    def trace(self, max_steps: Optional[int] = None) -> Iterator[Snapshot]:
        """Step until stopped, yielding a :class:`Snapshot` after every step."""
        taken = 0
        while self._status is MachineStatus.RUNNING:
            if max_steps is not None and taken >= max_steps:
                return
            self.step()
            taken += 1
            yield self.snapshot()

    # -- Inspection ------------------------------------------------------
    def snapshot(self) -> Snapshot:
        return Snapshot(
            current_state=self._state,
            tapes=tuple(tape.symbols() for tape in self._tapes),
            offsets=tuple(tape.offset for tape in self._tapes),
            heads=tuple(self._heads),
            step_count=self._step_count,
            status=self._status,
            error=self._error,
        )

    def current_symbols(self) -> ReadVector:
        """Symbols under the heads, without materializing any cell."""
        return tuple(tape.peek(head) for tape, head in zip(self._tapes, self._heads))

    def current_transition(self) -> Optional[Transition]:
        """The transition the next :meth:`step` would fire, if any."""
        if self._status is not MachineStatus.RUNNING:
            return None
        state = self._program.state(self._state)
        return state.lookup(self.current_symbols()) if state is not None else None

    def available_reads(self) -> Tuple[ReadVector, ...]:
        """Read vectors the current state has transitions for."""
        state = self._program.state(self._state)
        return tuple(state.transitions) if state is not None else ()

    def _outcome(
        self,
        read: Optional[ReadVector] = None,
        transition: Optional[Transition] = None,
    ) -> StepOutcome:
        return StepOutcome(
            status=self._status,
            step_count=self._step_count,
            state=self._state,
            read=read,
            transition=transition,
            error=self._error,
        )

    def __repr__(self) -> str:
        return (
            f"Machine(state={self._state!r}, status={self._status.value}, "
            f"steps={self._step_count}, mode={self._mode.value})"
        )
