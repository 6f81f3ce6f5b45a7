# tests/test_compiler.py
"""
Tests for the parse → build → analyze pipeline helpers.
"""

import pytest

from turlang.compiler import check, compile_source, load_file
from turlang.errors import TurAnalysisError, TurBuildError, TurErrorCodes, TurParseError
from turlang.program import Program
from tests.conftest import (
    BROKEN_REFERENCES_TUR,
    BUSY_BEAVER_3_TUR,
    EXAMPLES_DIR,
)


class TestCompileSource:

    def test_returns_program_and_diagnostics(self):
        program, diagnostics = compile_source(BUSY_BEAVER_3_TUR, "bb.tur")
        assert isinstance(program, Program)
        assert program.source_path == "bb.tur"
        assert diagnostics == []

    def test_parse_errors_propagate(self):
        with pytest.raises(TurParseError):
            compile_source("tape: a\n")

    def test_build_errors_propagate(self):
        with pytest.raises(TurBuildError):
            compile_source("tape: a\nrules:\n  s:\n    a, R, s\n    a, L, s\n")

    def test_inline_suppression_comment(self):
        text = BROKEN_REFERENCES_TUR.replace(
            "  orphan:\n", "  # tur-suppress unreachable-state\n  orphan:\n"
        )
        _, diagnostics = compile_source(text)
        assert [d.error_id for d in diagnostics] == ["undefined-state"]

    def test_suppress_argument(self):
        _, diagnostics = compile_source(BROKEN_REFERENCES_TUR, suppress=["undefined-state"])
        assert [d.error_id for d in diagnostics] == ["unreachable-state"]


class TestLoadFile:

    def test_load_example(self):
        program, diagnostics = load_file(EXAMPLES_DIR / "multi-tape-copy.tur")
        assert program.arity == 2
        assert program.name == "Copy tape 1 to tape 2"
        assert diagnostics == []

    def test_load_utf8(self, tmp_path):
        path = tmp_path / "unicode.tur"
        path.write_text("tape: α, β\nrules:\n  s:\n    α -> β, R, s\n    β, R, s\n", encoding="utf-8")
        program, _ = load_file(path)
        assert program.initial_tapes == (("α", "β"),)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_file(tmp_path / "absent.tur")


class TestCheck:

    def test_clean_program_passes(self):
        program, diagnostics = compile_source(BUSY_BEAVER_3_TUR)
        assert check(program, diagnostics) is program

    def test_errors_raise(self):
        program, diagnostics = compile_source(BROKEN_REFERENCES_TUR, "broken.tur")
        with pytest.raises(TurAnalysisError) as exc_info:
            check(program, diagnostics)
        err = exc_info.value
        assert err.code == TurErrorCodes.ANALYSIS_FAILED
        assert [d.error_id for d in err.diagnostics] == ["undefined-state"]
        assert err.span.file == "broken.tur"
        assert err.span.line == 4
        assert "1 analysis error(s)" in err.message

    def test_warnings_do_not_raise(self):
        text = "tape: a\nrules:\n  s:\n    a, R, s\n  lonely:\n"
        program, diagnostics = compile_source(text)
        assert diagnostics
        check(program, diagnostics)
