"""turlang - a small declarative language for Turing machines.

This package parses ``.tur`` programs, lowers them to immutable
``Program`` values, checks them statically, and runs them on a
deterministic single- or multi-tape engine.

Submodules
----------
errors
    Exception hierarchy (``TurParseError``, ``TurBuildError``,
    ``TurAnalysisError``), structured error codes (``TUR-XXXX``) and
    ``SourceSpan`` / ``ErrorMessage`` for GCC-style reporting.

layout, grammar, parser
    Front end: line scanning and the explicit indentation stack, the
    Parsimonious PEG for line contents, and the block-structure state
    machine producing the ``ast`` tree.

builder, program
    AST → ``Program`` lowering (blank resolution, defaults, arity and
    duplicate checks) and the immutable data model.

analyzer
    Pre-execution checks returning ``Diagnostic`` values.

tape, machine
    Bi-infinite tapes and the step-based execution engine.

compiler
    ``compile_source`` / ``load_file`` / ``check`` pipeline helpers.

main
    CLI entry-point with subcommands: ``check``, ``parse``, ``run``.

Usage
-----
Command-line::

    python -m turlang run examples/busy-beaver-3.tur
    python -m turlang check examples/multi-tape-copy.tur --format json
    python -m turlang --help

Programmatic::

    from turlang.compiler import compile_source, check
    from turlang.machine import Machine
    from turlang.program import ExecutionMode

    program, diagnostics = compile_source(text)
    check(program, diagnostics)
    machine = Machine(program, ExecutionMode.STRICT)
    machine.run_to_halt()
    print(machine.snapshot().tape_strings())

"""

from __future__ import annotations

__version__: str = "0.1.0"
__all__: list[str] = [
    "__version__",
    "errors",
    "parser",
    "builder",
    "analyzer",
    "machine",
    "compiler",
    "__main__",
]
