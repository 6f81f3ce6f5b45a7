# tests/test_analyzer.py
"""
Tests for the static analyzer: each check, suppressions, and helpers.
"""

import dataclasses
from types import MappingProxyType

import pytest

from turlang.analyzer import (
    Diagnostic,
    DiagnosticCollector,
    DiagnosticSeverity,
    SourceLocation,
    SuppressionManager,
    analyze,
    errors,
    has_errors,
)
from turlang.program import Direction, State, Transition
from tests.conftest import (
    BINARY_INCREMENT_TUR,
    BROKEN_REFERENCES_TUR,
    BUSY_BEAVER_3_TUR,
    MULTI_TAPE_COPY_TUR,
    NO_MATCH_TUR,
    compile_text,
)


def _ids(diagnostics):
    return [d.error_id for d in diagnostics]


class TestCleanPrograms:

    @pytest.mark.parametrize("text", [
        BUSY_BEAVER_3_TUR,
        BINARY_INCREMENT_TUR,
        MULTI_TAPE_COPY_TUR,
    ])
    def test_no_diagnostics(self, text):
        assert analyze(compile_text(text)) == []

    def test_program_not_mutated(self, busy_beaver_program):
        before = dataclasses.replace(busy_beaver_program)
        analyze(busy_beaver_program)
        assert busy_beaver_program == before


class TestReferenceChecks:

    def test_undefined_state(self):
        diags = analyze(compile_text(BROKEN_REFERENCES_TUR))
        (undefined,) = [d for d in diags if d.error_id == "undefined-state"]
        assert undefined.severity is DiagnosticSeverity.ERROR
        assert undefined.state == "start"
        assert "missing" in undefined.message
        assert undefined.location.line == 4
        assert dict(undefined.extra)["target"] == "missing"

    def test_one_diagnostic_per_transition(self):
        text = "tape: a, b\nrules:\n  s:\n    a, R, nowhere\n    b, R, nowhere\n"
        diags = analyze(compile_text(text))
        assert _ids(diags).count("undefined-state") == 2

    def test_unreachable_state(self):
        diags = analyze(compile_text(BROKEN_REFERENCES_TUR))
        (unreachable,) = [d for d in diags if d.error_id == "unreachable-state"]
        assert unreachable.severity is DiagnosticSeverity.WARNING
        assert unreachable.state == "orphan"
        assert unreachable.location.line == 7

    def test_state_without_incoming_edges_is_unreachable(self):
        text = "tape: a\nrules:\n  s:\n    a, R, s\n  lonely:\n"
        diags = analyze(compile_text(text))
        assert [d.state for d in diags if d.error_id == "unreachable-state"] == ["lonely"]

    def test_missing_start_state(self, single_step_program):
        program = dataclasses.replace(single_step_program, start_state="nope")
        diags = analyze(program)
        assert "missing-start-state" in _ids(diags)
        assert has_errors(diags)

    def test_no_states(self, single_step_program):
        program = dataclasses.replace(single_step_program, states=MappingProxyType({}))
        diags = analyze(program)
        (missing,) = [d for d in diags if d.error_id == "missing-start-state"]
        assert "no states" in missing.message


class TestConfigurationChecks:

    def test_head_may_sit_on_the_boundary(self):
        program = compile_text("tape: a, b\nhead: 2\nrules:\n  s:\n    _, L, s\n")
        assert "invalid-head" not in _ids(analyze(program))

    def test_head_beyond_the_boundary(self):
        program = compile_text("tape: a, b\nhead: 3\nrules:\n  s:\n    _, L, s\n")
        diags = analyze(program)
        (bad,) = [d for d in diags if d.error_id == "invalid-head"]
        assert bad.severity is DiagnosticSeverity.ERROR
        assert dict(bad.extra)["head"] == 3

    def test_negative_head(self, single_step_program):
        program = dataclasses.replace(single_step_program, initial_heads=(-1,))
        assert "invalid-head" in _ids(analyze(program))

    def test_arity_mismatch_in_program(self, single_step_program):
        program = dataclasses.replace(single_step_program, initial_heads=(0, 0))
        assert "arity-mismatch" in _ids(analyze(program))

    def test_arity_mismatch_in_transition(self, single_step_program):
        bad = Transition(
            read=("a", "a"),
            write=("a", "a"),
            move=(Direction.RIGHT, Direction.RIGHT),
            next_state="halt",
        )
        states = dict(single_step_program.states)
        states["start"] = State("start", MappingProxyType({bad.read: bad}))
        program = dataclasses.replace(single_step_program, states=MappingProxyType(states))
        diags = analyze(program)
        (mismatch,) = [d for d in diags if d.error_id == "arity-mismatch"]
        assert mismatch.state == "start"
        assert "read=2" in mismatch.message


class TestAdvisoryChecks:

    def test_uncovered_symbol(self):
        program = compile_text("tape: a, z, z\nrules:\n  s:\n    a, R, s\n")
        diags = analyze(program)
        uncovered = [d for d in diags if d.error_id == "uncovered-symbol"]
        assert len(uncovered) == 1
        assert uncovered[0].severity is DiagnosticSeverity.WARNING
        assert dict(uncovered[0].extra)["symbol"] == "z"

    def test_blank_is_never_uncovered(self):
        program = compile_text("tape: a, _\nrules:\n  s:\n    a, R, s\n")
        assert "uncovered-symbol" not in _ids(analyze(program))

    def test_start_no_match(self):
        diags = analyze(compile_text(NO_MATCH_TUR))
        assert "start-no-match" in _ids(diags)
        (info,) = [d for d in diags if d.error_id == "start-no-match"]
        assert info.severity is DiagnosticSeverity.INFORMATION
        assert not has_errors(diags)

    def test_start_halting_state_is_not_reported(self):
        program = compile_text("tape: _\nrules:\n  s:\n")
        assert analyze(program) == []


class TestSuppression:

    def test_global_suppression(self):
        program = compile_text(BROKEN_REFERENCES_TUR)
        diags = analyze(program, suppressions=SuppressionManager(["unreachable-state"]))
        assert "unreachable-state" not in _ids(diags)
        assert "undefined-state" in _ids(diags)

    def test_wildcard_suppression(self):
        program = compile_text(BROKEN_REFERENCES_TUR)
        assert analyze(program, suppressions=SuppressionManager(["*"])) == []

    def test_inline_suppression(self):
        manager = SuppressionManager()
        manager.load_inline_suppressions_from_source(
            "line one\n# tur-suppress unreachable-state\nline three\n"
        )
        near = Diagnostic("unreachable-state", "m", DiagnosticSeverity.WARNING,
                          SourceLocation("f.tur", 3))
        far = Diagnostic("unreachable-state", "m", DiagnosticSeverity.WARNING,
                         SourceLocation("f.tur", 5))
        assert manager.is_suppressed(near)
        assert not manager.is_suppressed(far)

    def test_min_severity(self):
        program = compile_text(BROKEN_REFERENCES_TUR)
        diags = analyze(program, min_severity=DiagnosticSeverity.ERROR)
        assert _ids(diags) == ["undefined-state"]


class TestDiagnosticHelpers:

    def test_errors_filter(self):
        diags = analyze(compile_text(BROKEN_REFERENCES_TUR))
        assert _ids(errors(diags)) == ["undefined-state"]

    def test_to_dict(self):
        diag = Diagnostic(
            "undefined-state", "bad", DiagnosticSeverity.ERROR,
            SourceLocation("f.tur", 4, 5), state="s", extra=(("target", "t"),),
        )
        assert diag.to_dict() == {
            "errorId": "undefined-state",
            "message": "bad",
            "severity": "error",
            "location": {"file": "f.tur", "line": 4, "column": 5},
            "state": "s",
            "extra": {"target": "t"},
        }

    def test_to_gcc_format(self):
        diag = Diagnostic("unreachable-state", "nope", DiagnosticSeverity.WARNING,
                          SourceLocation("f.tur", 7, 3))
        assert diag.to_gcc_format() == "f.tur:7:3: warning: [unreachable-state] nope"
        bare = Diagnostic("invalid-head", "x", DiagnosticSeverity.ERROR)
        assert bare.to_gcc_format() == "<unknown>: error: [invalid-head] x"

    def test_collector(self):
        collector = DiagnosticCollector()
        collector.report("a", "first")
        collector.report("b", "second", DiagnosticSeverity.WARNING)
        assert collector.has_errors()
        assert _ids(collector.errors) == ["a"]
        collector.clear()
        assert collector.diagnostics == []

    def test_filename_overrides_location_file(self):
        diags = analyze(compile_text(BROKEN_REFERENCES_TUR), filename="broken.tur")
        assert all(d.location.file == "broken.tur" for d in diags if d.location)
