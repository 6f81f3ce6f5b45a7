#!/usr/bin/env python3
"""turlang/main.py - CLI entry-point for the ``.tur`` toolchain.

Usage examples
--------------
    # Parse, build and statically check a program
    python -m turlang check examples/busy-beaver-3.tur

    # Same, machine-readable
    python -m turlang check examples/busy-beaver-3.tur --format json

    # Dump a JSON summary of the parsed program (debugging aid)
    python -m turlang parse examples/multi-tape-copy.tur

    # Run a program to completion and print the final tapes
    python -m turlang run examples/binary-increment.tur

    # Replace the input, stop on undefined transitions, print every step
    python -m turlang run examples/binary-increment.tur --input 111 --strict --trace

Exit codes
----------
    0   Success.
    1   Syntax/build errors, error diagnostics, or the machine errored.
    2   Infrastructure failure (missing file, bad arguments, etc.).
  130   Interrupted.

The module doubles as ``python -m turlang`` via the companion
``turlang/__main__.py``.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import textwrap
from pathlib import Path
from typing import List, Optional, Sequence, TextIO

from turlang import __version__
from turlang.analyzer import Diagnostic, has_errors
from turlang.compiler import load_file
from turlang.errors import TurError
from turlang.machine import Machine, MachineConfig, MachineStatus, Snapshot
from turlang.parser import parse_file
from turlang.program import ExecutionMode, Program

_log = logging.getLogger("turlang")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2
EXIT_INTERRUPTED: int = 130


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``turlang`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    root = logging.getLogger("turlang")
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        root.addHandler(handler)


def _resolve_path(raw: str, label: str = "file") -> Path:
    """Resolve *raw* to an absolute ``Path``, raising on missing files."""
    p = Path(raw).expanduser().resolve()
    if not p.is_file():
        _log.error("%s not found: %s", label, p)
        raise SystemExit(EXIT_INFRA)
    return p


def _open_output(dest: Optional[str]) -> TextIO:
    """Return a writable text stream.

    *dest* ``None`` or ``"-"`` → ``sys.stdout``; otherwise open the path
    for writing (creating parent directories as needed).
    """
    if dest is None or dest == "-":
        return sys.stdout
    p = Path(dest).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return open(p, "w", encoding="utf-8")


def _emit_diagnostics(diagnostics: List[Diagnostic], stream: TextIO) -> int:
    """Write *diagnostics* to *stream*, one GCC-style line each.

    Returns the count of ERROR-severity diagnostics.
    """
    error_count = 0
    for diag in diagnostics:
        if diag.is_error:
            error_count += 1
        stream.write(diag.to_gcc_format() + "\n")
    return error_count


def _report_error(err: TurError, fmt: str = "text") -> None:
    if fmt == "json":
        sys.stdout.write(json.dumps({"error": err.to_json()}, indent=2) + "\n")
    else:
        sys.stderr.write(err.to_gcc_format() + "\n")


def _format_step(snap: Snapshot, blank: str) -> str:
    tapes = " | ".join(
        _mark_head(row, index, blank)
        for row, index in zip(snap.tapes, snap.head_indices())
    )
    return f"{snap.step_count:>6}  {snap.current_state:<12} {tapes}"


def _mark_head(row: Sequence[str], index: int, blank: str) -> str:
    cells = list(row)
    while index >= len(cells):
        cells.append(blank)
    if index < 0:
        cells[:0] = [blank] * -index
        index = 0
    cells[index] = f"[{cells[index]}]"
    return "".join(cells)


# ===========================================================================
# Sub-commands
# ===========================================================================

# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------

def cmd_check(args: argparse.Namespace) -> int:
    """Parse, build and analyze a program; print its diagnostics."""
    src_path = _resolve_path(args.source_file, "source file")
    try:
        _program, diagnostics = load_file(src_path, suppress=args.suppress or ())
    except TurError as err:
        _report_error(err, args.format)
        return EXIT_ERROR

    out = _open_output(args.output)
    try:
        if args.format == "json":
            payload = {
                "file": str(src_path),
                "diagnostics": [d.to_dict() for d in diagnostics],
            }
            out.write(json.dumps(payload, indent=2) + "\n")
            error_count = sum(1 for d in diagnostics if d.is_error)
        else:
            error_count = _emit_diagnostics(diagnostics, out)
            out.write(
                f"--- {len(diagnostics)} diagnostic(s), {error_count} error(s) ---\n"
            )
    finally:
        if out is not sys.stdout:
            out.close()

    return EXIT_ERROR if error_count > 0 else EXIT_OK


# ---------------------------------------------------------------------------
# parse
# ---------------------------------------------------------------------------

def cmd_parse(args: argparse.Namespace) -> int:
    """Parse a program and print a JSON summary of its AST.

    Useful for debugging the front-end without building or running.
    """
    src_path = _resolve_path(args.source_file, "source file")
    try:
        ast = parse_file(src_path)
    except TurError as err:
        _report_error(err)
        return EXIT_ERROR

    out = _open_output(args.output)
    try:
        out.write(json.dumps(ast.to_dict(), indent=2) + "\n")
    finally:
        if out is not sys.stdout:
            out.close()
    return EXIT_OK


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------

def cmd_run(args: argparse.Namespace) -> int:
    """Run a program and print the final tape contents, one tape per line."""
    src_path = _resolve_path(args.source_file, "source file")
    try:
        program, diagnostics = load_file(src_path)
    except TurError as err:
        _report_error(err)
        return EXIT_ERROR

    _emit_diagnostics(diagnostics, sys.stderr)
    if has_errors(diagnostics):
        _log.error("Refusing to run %s: analysis reported errors", src_path)
        return EXIT_ERROR

    if args.input:
        try:
            program = program.with_tapes(args.input)
        except ValueError as exc:
            _log.error("Invalid --input: %s", exc)
            return EXIT_INFRA

    mode = ExecutionMode.STRICT if args.strict else ExecutionMode.NORMAL
    machine = Machine(program, mode, config=MachineConfig(max_steps=args.max_steps))
    _log.info("Running %s (%s mode)", program.name or src_path.name, mode.value)

    if args.trace:
        sys.stdout.write(_format_step(machine.snapshot(), program.blank) + "\n")
        for snap in machine.trace(args.max_steps):
            sys.stdout.write(_format_step(snap, program.blank) + "\n")
    else:
        machine.run_to_halt()

    return _finish(machine, program)


def _finish(machine: Machine, program: Program) -> int:
    snap = machine.snapshot()
    for text in snap.tape_strings():
        sys.stdout.write(text.strip(program.blank) + "\n")

    if snap.status is MachineStatus.ERRORED:
        sys.stderr.write(f"error: {snap.error} (after {snap.step_count} step(s))\n")
        return EXIT_ERROR
    if snap.status is MachineStatus.RUNNING:
        sys.stderr.write(
            f"stopped in state '{snap.current_state}' after {snap.step_count} step(s): "
            "step limit reached\n"
        )
    else:
        sys.stderr.write(
            f"halted in state '{snap.current_state}' after {snap.step_count} step(s)\n"
        )
    return EXIT_OK


# ===========================================================================
# Argument parser construction
# ===========================================================================

def _positive_int(raw: str) -> int:
    value = int(raw)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {raw}")
    return value


def _build_parser() -> argparse.ArgumentParser:
    """Construct the full CLI argument parser with subcommands."""

    # --- Top-level parser --------------------------------------------------
    parser = argparse.ArgumentParser(
        prog="turlang",
        description=(
            "turlang: parse, check and run Turing machine programs (.tur)."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              turlang check examples/busy-beaver-3.tur
              turlang parse examples/multi-tape-copy.tur
              turlang run   examples/binary-increment.tur --input 1011 --trace
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    def _add_output_args(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "-o", "--output",
            default=None,
            metavar="FILE",
            help='Output file ("-" or omit for stdout).',
        )

    # --- check -------------------------------------------------------------
    p_check = subparsers.add_parser(
        "check",
        help="Parse, build and statically analyze a program.",
    )
    p_check.add_argument("source_file", metavar="FILE", help="Path to a .tur program.")
    p_check.add_argument(
        "--format",
        choices=("text", "json"),
        default="text",
        help="Diagnostic output format (default: text).",
    )
    p_check.add_argument(
        "--suppress",
        action="append",
        metavar="ID",
        help="Suppress diagnostics with this error id (repeatable).",
    )
    _add_output_args(p_check)
    p_check.set_defaults(func=cmd_check)

    # --- parse -------------------------------------------------------------
    p_parse = subparsers.add_parser(
        "parse",
        help="Parse a program and print its AST as JSON.",
    )
    p_parse.add_argument("source_file", metavar="FILE", help="Path to a .tur program.")
    _add_output_args(p_parse)
    p_parse.set_defaults(func=cmd_parse)

    # --- run ---------------------------------------------------------------
    p_run = subparsers.add_parser(
        "run",
        help="Execute a program and print the final tapes.",
    )
    p_run.add_argument("source_file", metavar="FILE", help="Path to a .tur program.")
    p_run.add_argument(
        "--strict",
        action="store_true",
        help="Stop with an error when no transition matches (default: halt).",
    )
    p_run.add_argument(
        "--max-steps",
        type=_positive_int,
        default=None,
        metavar="N",
        help="Stop after N steps (default: run until the machine halts).",
    )
    p_run.add_argument(
        "--input",
        nargs="+",
        metavar="TAPE",
        help="Replace the initial tape contents, one string per tape.",
    )
    p_run.add_argument(
        "--trace",
        action="store_true",
        help="Print the configuration after every step.",
    )
    p_run.set_defaults(func=cmd_run)

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the turlang CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    # No subcommand given → print help.
    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return EXIT_INTERRUPTED
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())
