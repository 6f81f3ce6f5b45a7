# tests/conftest.py
"""
Shared fixtures and program texts for the turlang test-suite.
"""

from pathlib import Path

import pytest

from turlang.builder import build
from turlang.parser import parse
from turlang.program import Program

EXAMPLES_DIR = Path(__file__).resolve().parent.parent / "examples"


# ═══════════════════════════════════════════════════════════════════
#  Program texts
# ═══════════════════════════════════════════════════════════════════

SINGLE_STEP_TUR = """\
tape: a
blank: '_'
rules:
  start:
    a -> b, R, halt
  halt:
"""

MULTI_TAPE_COPY_TUR = """\
tapes:
  [a, b, c]
  [_, _, _]
rules:
  copy:
    [a, _] -> [a, a], [R, R], copy
    [b, _] -> [b, b], [R, R], copy
    [c, _] -> [c, c], [R, R], copy
    [_, _] -> [_, _], [S, S], done
  done:
"""

NO_MATCH_TUR = """\
tape: x
rules:
  start:
    a -> b, R, halt
  halt:
"""

BUSY_BEAVER_3_TUR = """\
tape: _
rules:
  A:
    _ -> 1, R, B
    1 -> 1, R, H
  B:
    _ -> _, R, C
    1 -> 1, R, B
  C:
    _ -> 1, L, C
    1 -> 1, L, A
  H:
"""

BINARY_INCREMENT_TUR = """\
tape: 1, 0, 1, 1
rules:
  right:
    0 -> 0, R, right
    1 -> 1, R, right
    _ -> _, L, carry
  carry:
    1 -> 0, L, carry
    0 -> 1, S, done
    _ -> 1, S, done
  done:
"""

# Never halts: walks right forever.
RUN_FOREVER_TUR = """\
tape: _
rules:
  go:
    _ -> _, R, go
"""

# Reachability and reference problems for the analyzer.
BROKEN_REFERENCES_TUR = """\
tape: a, b
rules:
  start:
    a -> a, R, missing
    b -> b, R, end
  end:
  orphan:
    a -> a, L, end
"""


def compile_text(text: str) -> Program:
    """Parse and build *text* without analysis."""
    return build(parse(text))


@pytest.fixture
def single_step_program() -> Program:
    return compile_text(SINGLE_STEP_TUR)


@pytest.fixture
def copy_program() -> Program:
    return compile_text(MULTI_TAPE_COPY_TUR)


@pytest.fixture
def busy_beaver_program() -> Program:
    return compile_text(BUSY_BEAVER_3_TUR)
