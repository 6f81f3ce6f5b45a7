# tests/test_builder.py
"""
Tests for AST → Program lowering.
"""

import dataclasses

import pytest

from turlang import ast as A
from turlang.builder import build
from turlang.errors import TurBuildError, TurErrorCodes
from turlang.parser import parse
from turlang.program import DEFAULT_BLANK, Direction
from tests.conftest import (
    BUSY_BEAVER_3_TUR,
    MULTI_TAPE_COPY_TUR,
    compile_text,
)


class TestBuildBasics:

    def test_start_state_is_first_declared(self):
        program = compile_text(BUSY_BEAVER_3_TUR)
        assert program.start_state == "A"
        assert list(program.states) == ["A", "B", "C", "H"]

    def test_single_tape_arity(self, single_step_program):
        assert single_step_program.arity == 1
        assert single_step_program.initial_tapes == (("a",),)
        assert single_step_program.initial_heads == (0,)

    def test_declared_blank(self, single_step_program):
        assert single_step_program.blank == "_"

    def test_default_blank_is_space(self):
        program = compile_text(BUSY_BEAVER_3_TUR)
        assert program.blank == DEFAULT_BLANK == " "
        assert program.initial_tapes == ((" ",),)

    def test_blank_alias_resolved_in_transitions(self):
        program = compile_text(BUSY_BEAVER_3_TUR)
        b = program.states["B"]
        assert (" ",) in b.transitions
        assert b.transitions[(" ",)].write == (" ",)

    def test_omitted_write_is_identity(self):
        program = compile_text("tape: a\nrules:\n  s:\n    a, R, s\n")
        t = program.states["s"].transitions[("a",)]
        assert t.write == t.read == ("a",)

    def test_directions_mapped(self):
        program = compile_text(
            "tape: a\nrules:\n  s:\n    a, <, s\n    b, -, s\n    c, >, s\n"
        )
        moves = [t.move[0] for t in program.states["s"]]
        assert moves == [Direction.LEFT, Direction.STAY, Direction.RIGHT]
        assert [m.delta for m in moves] == [-1, 0, 1]

    def test_transitions_keep_declaration_order(self):
        program = compile_text(MULTI_TAPE_COPY_TUR)
        reads = list(program.states["copy"].transitions)
        assert reads == [("a", " "), ("b", " "), ("c", " "), (" ", " ")]

    def test_halt_state(self, copy_program):
        assert copy_program.states["done"].is_halting
        assert not copy_program.states["copy"].is_halting

    def test_transition_count(self):
        assert compile_text(BUSY_BEAVER_3_TUR).transition_count == 6

    def test_program_is_immutable(self, single_step_program):
        with pytest.raises(dataclasses.FrozenInstanceError):
            single_step_program.start_state = "halt"
        with pytest.raises(TypeError):
            single_step_program.states["x"] = None

    def test_name_and_source_path(self):
        program = build(parse("name: N\ntape: a\nrules:\n  s:\n", filename="n.tur"))
        assert program.name == "N"
        assert program.source_path == "n.tur"


class TestBuildHeads:

    def test_default_heads(self, copy_program):
        assert copy_program.initial_heads == (0, 0)

    def test_declared_heads(self):
        program = compile_text("tapes:\n  [a]\n  [b, c]\nheads: [1, 2]\nrules:\n  s:\n")
        assert program.initial_heads == (1, 2)

    def test_with_tapes_replaces_input(self, single_step_program):
        other = single_step_program.with_tapes(["xyz"])
        assert other.initial_tapes == (("x", "y", "z"),)
        assert other.states is single_step_program.states
        assert single_step_program.initial_tapes == (("a",),)

    def test_with_tapes_checks_arity(self, copy_program):
        with pytest.raises(ValueError):
            copy_program.with_tapes(["abc"])


class TestBuildErrors:

    def test_arity_mismatch(self):
        text = "tapes:\n  [a]\n  [b]\nrules:\n  s:\n    a -> b, R, s\n"
        with pytest.raises(TurBuildError) as exc_info:
            compile_text(text)
        err = exc_info.value
        assert err.code == TurErrorCodes.ARITY_MISMATCH
        assert err.span.line == 6

    def test_multi_tape_literal_on_single_tape(self):
        text = "tape: a\nrules:\n  s:\n    [a, b] -> [a, b], [R, R], s\n"
        with pytest.raises(TurBuildError):
            compile_text(text)

    def test_duplicate_read_vector(self):
        text = "tape: a\nrules:\n  s:\n    a -> b, R, s\n    a -> c, L, s\n"
        with pytest.raises(TurBuildError) as exc_info:
            compile_text(text)
        assert exc_info.value.code == TurErrorCodes.DUPLICATE_TRANSITION
        assert exc_info.value.span.line == 5

    def test_alias_collides_with_explicit_blank(self):
        text = (
            "tape: a\n"
            "blank: x\n"
            "rules:\n"
            "  s:\n"
            "    _ -> a, R, s\n"
            "    x -> b, R, s\n"
        )
        with pytest.raises(TurBuildError) as exc_info:
            compile_text(text)
        assert exc_info.value.code == TurErrorCodes.DUPLICATE_TRANSITION

    def test_no_states(self):
        node = A.ProgramNode(
            tape=A.TapeDecl(rows=((A.SymbolNode("a"),),)),
            states=(),
        )
        with pytest.raises(TurBuildError) as exc_info:
            build(node)
        assert exc_info.value.code == TurErrorCodes.NO_STATES

    def test_head_count_checked(self):
        node = A.ProgramNode(
            tape=A.TapeDecl(rows=((A.SymbolNode("a"),),)),
            states=(A.StateNode("s"),),
            head=A.HeadDecl(positions=(0, 0), multi=True),
        )
        with pytest.raises(TurBuildError) as exc_info:
            build(node)
        assert exc_info.value.code == TurErrorCodes.ARITY_MISMATCH
