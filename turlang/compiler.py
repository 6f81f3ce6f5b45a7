"""turlang/compiler.py – parse → build → analyze in one call."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Tuple, Union

from turlang.analyzer import Diagnostic, SuppressionManager, analyze, errors
from turlang.builder import build
from turlang.errors import SourceSpan, TurAnalysisError
from turlang.parser import parse
from turlang.program import Program

logger = logging.getLogger(__name__)


def compile_source(
    text: str,
    filename: str = "<string>",
    *,
    suppress: Iterable[str] = (),
) -> Tuple[Program, List[Diagnostic]]:
    """Compile *text* into a :class:`Program` plus its analysis diagnostics.

    ``# tur-suppress <id>`` comments in *text* and the error ids in
    *suppress* silence the matching diagnostics.  Raises
    :class:`~turlang.errors.TurParseError` or
    :class:`~turlang.errors.TurBuildError`.
    """
    program = build(parse(text, filename))
    suppressions = SuppressionManager(suppress)
    suppressions.load_inline_suppressions_from_source(text)
    return program, analyze(program, filename, suppressions=suppressions)


def load_file(
    path: Union[str, Path], *, suppress: Iterable[str] = ()
) -> Tuple[Program, List[Diagnostic]]:
    """Read *path* as UTF-8 and :func:`compile_source` it."""
    path = Path(path)
    logger.debug("Loading %s", path)
    return compile_source(path.read_text(encoding="utf-8"), str(path), suppress=suppress)


def check(program: Program, diagnostics: List[Diagnostic]) -> Program:
    """Return *program* unchanged, or raise if *diagnostics* contain errors."""
    found = errors(diagnostics)
    if found:
        location = found[0].location
        span = None
        if location is not None:
            span = SourceSpan(file=location.file, line=location.line, column=location.column)
        raise TurAnalysisError(found, span=span)
    return program
