"""
Static analysis of built ``.tur`` programs.

Implements:
- Diagnostic dataclass with severity and location
- SuppressionManager for global and inline (``# tur-suppress <id>``) suppressions
- DiagnosticCollector with severity filtering
- The pre-execution checks run by :func:`analyze`

Checks (error id → severity):

==========================  ===========  ==========================================
``missing-start-state``     error        no states, or the start state is undeclared
``undefined-state``         error        a transition targets an undeclared state
``unreachable-state``       warning      no path from the start state
``invalid-head``            error        head outside ``0 ≤ head ≤ len(tape)``
``arity-mismatch``          error        tape/head/vector counts disagree with arity
``uncovered-symbol``        warning      an input symbol no transition ever reads
``start-no-match``          information  the start state cannot fire on the input
==========================  ===========  ==========================================

Every check runs independently; the program is never mutated.
"""

from __future__ import annotations

import logging
import re
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from turlang.ast import SourceLoc
from turlang.program import Program

logger = logging.getLogger(__name__)


# ============================================================================
# PART 1 - DIAGNOSTIC TYPES
# ============================================================================


class DiagnosticSeverity(Enum):
    """Severity levels for analysis diagnostics."""
    ERROR = "error"              # The program must not be run
    WARNING = "warning"          # Likely a mistake in the program
    INFORMATION = "information"  # Advisory only


_SEVERITY_ORDER = {
    DiagnosticSeverity.ERROR: 0,
    DiagnosticSeverity.WARNING: 1,
    DiagnosticSeverity.INFORMATION: 2,
}


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """Immutable source location for diagnostics."""
    file: str
    line: int
    column: int = 0

    def __str__(self) -> str:
        if self.column > 0:
            return f"{self.file}:{self.line}:{self.column}"
        return f"{self.file}:{self.line}"

    @classmethod
    def from_ast_loc(
        cls, loc: Optional[SourceLoc], filename: Optional[str] = None
    ) -> Optional[SourceLocation]:
        """Convert an AST SourceLoc; ``None`` for synthesised nodes."""
        if loc is None or loc.line <= 0:
            return None
        return cls(file=filename or loc.file, line=loc.line, column=loc.col)


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """
    Structured finding from static analysis.

    Attributes:
        error_id: Identifier of the check (e.g. "undefined-state")
        message: Human-readable description of the issue
        severity: How serious the issue is
        location: Primary source location, if known
        state: Name of the state the finding is about, if any
        extra: Additional structured data as ``(key, value)`` pairs
    """
    error_id: str
    message: str
    severity: DiagnosticSeverity
    location: Optional[SourceLocation] = None
    state: Optional[str] = None
    extra: Tuple[Tuple[str, Any], ...] = ()

    @property
    def is_error(self) -> bool:
        return self.severity is DiagnosticSeverity.ERROR

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: Dict[str, Any] = {
            "errorId": self.error_id,
            "message": self.message,
            "severity": self.severity.value,
        }
        if self.location:
            result["location"] = {
                "file": self.location.file,
                "line": self.location.line,
                "column": self.location.column,
            }
        if self.state is not None:
            result["state"] = self.state
        if self.extra:
            result["extra"] = dict(self.extra)
        return result

    def to_gcc_format(self) -> str:
        """Format as GCC-style diagnostic string."""
        loc_str = str(self.location) if self.location else "<unknown>"
        return f"{loc_str}: {self.severity.value}: [{self.error_id}] {self.message}"


# ============================================================================
# PART 2 - SUPPRESSIONS AND COLLECTION
# ============================================================================


class SuppressionManager:
    """
    Suppressions by error id.

    Global suppressions apply everywhere.  Inline suppressions come from
    ``# tur-suppress <id> [<id> ...]`` comments and cover the comment's
    line and the line below it.
    """

    _INLINE = re.compile(r"#\s*tur-suppress\s+([\w-]+(?:\s+[\w-]+)*)", re.IGNORECASE)

    def __init__(self, global_ids: Iterable[str] = ()) -> None:
        self._global: Set[str] = set(global_ids)
        self._inline: Dict[int, Set[str]] = {}

    def add_global_suppression(self, error_id: str) -> None:
        self._global.add(error_id)

    def add_inline_suppression(self, line: int, error_id: str) -> None:
        self._inline.setdefault(line, set()).add(error_id)

    def load_inline_suppressions_from_source(self, source: str) -> None:
        for line_num, line in enumerate(source.splitlines(), start=1):
            match = self._INLINE.search(line)
            if match:
                for error_id in match.group(1).split():
                    self.add_inline_suppression(line_num, error_id)
                    self.add_inline_suppression(line_num + 1, error_id)

    def is_suppressed(self, diag: Diagnostic) -> bool:
        if diag.error_id in self._global or "*" in self._global:
            return True
        if diag.location is None:
            return False
        suppressed = self._inline.get(diag.location.line, ())
        return diag.error_id in suppressed or "*" in suppressed


class DiagnosticCollector:
    """Collects diagnostics, applying severity filtering and suppressions."""

    def __init__(
        self,
        *,
        suppressions: Optional[SuppressionManager] = None,
        min_severity: DiagnosticSeverity = DiagnosticSeverity.INFORMATION,
    ) -> None:
        self._diagnostics: List[Diagnostic] = []
        self._suppressions = suppressions or SuppressionManager()
        self._min_severity = min_severity

    def report(
        self,
        error_id: str,
        message: str,
        severity: DiagnosticSeverity = DiagnosticSeverity.ERROR,
        location: Optional[SourceLocation] = None,
        **kwargs: Any,
    ) -> None:
        if _SEVERITY_ORDER[severity] > _SEVERITY_ORDER[self._min_severity]:
            return
        diag = Diagnostic(error_id=error_id, message=message, severity=severity, location=location, **kwargs)
        if not self._suppressions.is_suppressed(diag):
            self._diagnostics.append(diag)

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return list(self._diagnostics)

    @property
    def errors(self) -> List[Diagnostic]:
        return errors(self._diagnostics)

    def has_errors(self) -> bool:
        return has_errors(self._diagnostics)

    def clear(self) -> None:
        self._diagnostics.clear()


def has_errors(diagnostics: Iterable[Diagnostic]) -> bool:
    """True if any diagnostic has ERROR severity."""
    return any(d.is_error for d in diagnostics)


def errors(diagnostics: Iterable[Diagnostic]) -> List[Diagnostic]:
    """Only the ERROR severity diagnostics."""
    return [d for d in diagnostics if d.is_error]


# ============================================================================
# PART 3 - CHECKS
# ============================================================================


def _fmt(vector: Sequence[str]) -> str:
    return "[" + ", ".join(repr(s) for s in vector) + "]"


class ProgramAnalyzer:
    """Runs every check over one program."""

    def __init__(
        self,
        program: Program,
        filename: Optional[str] = None,
        collector: Optional[DiagnosticCollector] = None,
    ) -> None:
        self.program = program
        self.filename = filename
        self.collector = collector or DiagnosticCollector()

    def _loc(self, loc: Optional[SourceLoc]) -> Optional[SourceLocation]:
        return SourceLocation.from_ast_loc(loc, self.filename)

    def run(self) -> List[Diagnostic]:
        self.check_start_state()
        self.check_undefined_states()
        self.check_reachability()
        self.check_heads()
        self.check_arity()
        self.check_symbol_coverage()
        self.check_start_match()
        return self.collector.diagnostics

    # -- errors --------------------------------------------------------------

    def check_start_state(self) -> None:
        program = self.program
        if not program.states:
            self.collector.report(
                "missing-start-state",
                "Program declares no states",
                DiagnosticSeverity.ERROR,
            )
        elif program.start_state not in program.states:
            self.collector.report(
                "missing-start-state",
                f"Start state '{program.start_state}' is not declared",
                DiagnosticSeverity.ERROR,
                state=program.start_state,
            )

    def check_undefined_states(self) -> None:
        states = self.program.states
        for state, transition in self.program.transitions():
            if transition.next_state in states:
                continue
            self.collector.report(
                "undefined-state",
                f"State '{state.name}' reading {_fmt(transition.read)} "
                f"transitions to undefined state '{transition.next_state}'",
                DiagnosticSeverity.ERROR,
                self._loc(transition.loc),
                state=state.name,
                extra=(("read", list(transition.read)), ("target", transition.next_state)),
            )

    def check_heads(self) -> None:
        program = self.program
        for index, (head, tape) in enumerate(zip(program.initial_heads, program.initial_tapes)):
            if 0 <= head <= len(tape):
                continue
            self.collector.report(
                "invalid-head",
                f"Head {index} starts at position {head}, outside tape {index} "
                f"(valid positions are 0 to {len(tape)})",
                DiagnosticSeverity.ERROR,
                extra=(("tape", index), ("head", head), ("length", len(tape))),
            )

    def check_arity(self) -> None:
        program = self.program
        arity = program.arity
        report = self.collector.report
        if arity < 1:
            report("arity-mismatch", f"Program arity must be at least 1, got {arity}")
        if len(program.initial_tapes) != arity:
            report(
                "arity-mismatch",
                f"Program declares {len(program.initial_tapes)} tape(s) but has arity {arity}",
            )
        if len(program.initial_heads) != arity:
            report(
                "arity-mismatch",
                f"Program declares {len(program.initial_heads)} head(s) but has arity {arity}",
            )
        for state, transition in program.transitions():
            lengths = {
                "read": len(transition.read),
                "write": len(transition.write),
                "move": len(transition.move),
            }
            bad = {label: n for label, n in lengths.items() if n != arity}
            if bad:
                detail = ", ".join(f"{label}={n}" for label, n in bad.items())
                report(
                    "arity-mismatch",
                    f"Transition in state '{state.name}' does not match arity {arity} ({detail})",
                    DiagnosticSeverity.ERROR,
                    self._loc(transition.loc),
                    state=state.name,
                )

    # -- warnings --------------------------------------------------------------

    def check_reachability(self) -> None:
        program = self.program
        if program.start_state not in program.states:
            return
        seen = {program.start_state}
        queue = deque([program.start_state])
        while queue:
            state = program.states[queue.popleft()]
            for transition in state:
                target = transition.next_state
                if target in program.states and target not in seen:
                    seen.add(target)
                    queue.append(target)
        for name, state in program.states.items():
            if name not in seen:
                self.collector.report(
                    "unreachable-state",
                    f"State '{name}' is unreachable from start state '{program.start_state}'",
                    DiagnosticSeverity.WARNING,
                    self._loc(state.loc),
                    state=name,
                )

    def check_symbol_coverage(self) -> None:
        program = self.program
        for index, tape in enumerate(program.initial_tapes):
            readable = {
                transition.read[index]
                for _, transition in program.transitions()
                if index < len(transition.read)
            }
            reported: Set[str] = set()
            for symbol in tape:
                if symbol == program.blank or symbol in readable or symbol in reported:
                    continue
                reported.add(symbol)
                self.collector.report(
                    "uncovered-symbol",
                    f"Symbol {symbol!r} on tape {index} is never read by any transition",
                    DiagnosticSeverity.WARNING,
                    extra=(("tape", index), ("symbol", symbol)),
                )

    def check_start_match(self) -> None:
        program = self.program
        start = program.states.get(program.start_state)
        if start is None or not start.transitions:
            return
        read = tuple(
            tape[head] if 0 <= head < len(tape) else program.blank
            for tape, head in zip(program.initial_tapes, program.initial_heads)
        )
        if read in start.transitions:
            return
        self.collector.report(
            "start-no-match",
            f"No transition of start state '{start.name}' matches the initial "
            f"symbols {_fmt(read)}; the machine stops before its first step",
            DiagnosticSeverity.INFORMATION,
            self._loc(start.loc),
            state=start.name,
            extra=(("read", list(read)),),
        )


def analyze(
    program: Program,
    filename: Optional[str] = None,
    *,
    suppressions: Optional[SuppressionManager] = None,
    min_severity: DiagnosticSeverity = DiagnosticSeverity.INFORMATION,
) -> List[Diagnostic]:
    """Run every static check over *program* and return the findings.

    An empty list means the program is safe to run.
    """
    collector = DiagnosticCollector(suppressions=suppressions, min_severity=min_severity)
    diagnostics = ProgramAnalyzer(program, filename, collector).run()
    logger.debug(
        "Analysis of %s: %d diagnostic(s), %d error(s)",
        filename or program.source_path or "<program>",
        len(diagnostics), len(errors(diagnostics)),
    )
    return diagnostics
