# turlang/errors.py
"""
Turing Language Error Types and Reporting Module

This module provides the error handling infrastructure for the ``.tur``
front end.  Every failure that aborts a pipeline phase is raised as a
subclass of :class:`TurError` and carries a structured error code, the
phase it came from, and a :class:`SourceSpan` pointing back at the source.

Architecture Overview:
─────────────────────
┌─────────────────────────────────────────────────────────────────────────────┐
│                          Error Hierarchy                                    │
├─────────────────────────────────────────────────────────────────────────────┤
│  TurError (base)                                                            │
│  ├── TurParseError     - Syntax / layout violations (line + column)         │
│  ├── TurBuildError     - Structural problems found while lowering the AST   │
│  └── TurAnalysisError  - Static analysis produced error diagnostics         │
└─────────────────────────────────────────────────────────────────────────────┘

Runtime failures are *not* exceptions: a machine running in strict mode
records an ``UndefinedTransition`` value on itself and stops (see
:mod:`turlang.machine`).

Error Codes:
────────────
Each error has a unique code following the pattern TUR-XXXX where XXXX is
a 4-digit number in ranges:
  - 1000-1999: Syntax errors
  - 2000-2999: Build errors
  - 3000-3999: Analysis errors
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Any, Dict, List, Optional, Sequence


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR SEVERITY AND CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════════════════

@unique
class ErrorPhase(Enum):
    """Pipeline phase where the error occurred."""

    SYNTAX = "syntax"          # Layout scanning and line grammar
    BUILD = "build"            # AST → Program lowering
    ANALYSIS = "analysis"      # Static checks over a built Program


class ErrorCode:
    """
    Structured error code of the form ``TUR-NNNN``.

    Codes compare equal to their string form so tests and callers can
    write ``err.code == "TUR-1004"``.
    """

    __slots__ = ("prefix", "number", "phase", "title")

    def __init__(self, number: int, phase: ErrorPhase, title: str, prefix: str = "TUR") -> None:
        self.prefix = prefix
        self.number = number
        self.phase = phase
        self.title = title

    @property
    def code(self) -> str:
        """Get the full error code string."""
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.title!r})"

    def __hash__(self) -> int:
        return hash((self.prefix, self.number))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.prefix == other.prefix and self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class TurErrorCodes:
    """Predefined error codes for the ``.tur`` language."""

    # SYNTAX ERRORS (1000-1999)
    INVALID_SYNTAX = ErrorCode(1001, ErrorPhase.SYNTAX, "invalid syntax")
    BAD_INDENTATION = ErrorCode(1002, ErrorPhase.SYNTAX, "inconsistent indentation")
    DUPLICATE_DIRECTIVE = ErrorCode(1003, ErrorPhase.SYNTAX, "duplicate directive")
    EXCLUSIVE_DIRECTIVES = ErrorCode(1004, ErrorPhase.SYNTAX, "mutually exclusive directives")
    MISSING_SECTION = ErrorCode(1005, ErrorPhase.SYNTAX, "missing section")
    LITERAL_ARITY = ErrorCode(1006, ErrorPhase.SYNTAX, "inconsistent multi-tape literal")
    HEAD_COUNT = ErrorCode(1007, ErrorPhase.SYNTAX, "head count mismatch")
    DUPLICATE_STATE = ErrorCode(1008, ErrorPhase.SYNTAX, "duplicate state")
    PROGRAM_TOO_LARGE = ErrorCode(1009, ErrorPhase.SYNTAX, "program too large")
    EMPTY_BLOCK = ErrorCode(1010, ErrorPhase.SYNTAX, "empty block")

    # BUILD ERRORS (2000-2999)
    ARITY_MISMATCH = ErrorCode(2001, ErrorPhase.BUILD, "arity mismatch")
    DUPLICATE_TRANSITION = ErrorCode(2002, ErrorPhase.BUILD, "duplicate transition")
    NO_STATES = ErrorCode(2003, ErrorPhase.BUILD, "no states")

    # ANALYSIS ERRORS (3000-3999)
    ANALYSIS_FAILED = ErrorCode(3001, ErrorPhase.ANALYSIS, "analysis failed")


# ═══════════════════════════════════════════════════════════════════════════════
# SOURCE LOCATION TYPES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SourceSpan:
    """
    A span of source code with start and end positions.

    Lines and columns are 1-based; ``0`` means "unknown".
    """

    file: str = ""
    line: int = 0
    column: int = 0
    end_line: int = 0
    end_column: int = 0

    def __post_init__(self) -> None:
        # Normalize: if end not specified, use start
        if self.end_line == 0:
            object.__setattr__(self, "end_line", self.line)
        if self.end_column == 0:
            object.__setattr__(self, "end_column", self.column)

    @classmethod
    def from_loc(cls, loc: Any) -> "SourceSpan":
        """Create a SourceSpan from an AST ``SourceLoc``."""
        if loc is None:
            return cls()
        return cls(
            file=getattr(loc, "file", ""),
            line=getattr(loc, "line", 0),
            column=getattr(loc, "col", 0),
        )

    def __str__(self) -> str:
        if not self.file and self.line == 0:
            return "<unknown location>"

        parts = []
        if self.file:
            parts.append(self.file)
        if self.line > 0:
            parts.append(str(self.line))
            if self.column > 0:
                parts.append(str(self.column))

        return ":".join(parts)


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR MESSAGE FORMATTING
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class ErrorMessage:
    """
    A complete error message with all context.

    This is the internal representation of an error before it is printed.
    """

    code: ErrorCode
    message: str
    span: SourceSpan = field(default_factory=SourceSpan)
    hint: str = ""
    source_line: str = ""  # The actual source code line, if available

    def to_gcc_format(self) -> str:
        """Format as a GCC-style error message."""
        main = f"{self.span}: error: {self.message} [{self.code}]"

        lines = [main]

        # Add source line with caret if available
        if self.source_line:
            lines.append(f"    {self.source_line}")
            if self.span.column > 0:
                caret_pos = self.span.column - 1
                caret_len = max(1, self.span.end_column - self.span.column)
                lines.append(f"    {' ' * caret_pos}{'^' * caret_len}")

        if self.hint:
            lines.append(f"hint: {self.hint}")

        return "\n".join(lines)

    def to_json(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "code": self.code.code,
            "message": self.message,
            "phase": self.code.phase.value,
            "location": {
                "file": self.span.file,
                "line": self.span.line,
                "column": self.span.column,
            },
            "snippet": self.source_line,
            "hint": self.hint,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class TurError(Exception):
    """
    Base exception for all ``.tur`` pipeline errors.

    Carries structured error information that can be pretty-printed or
    serialized.
    """

    default_code: ErrorCode = TurErrorCodes.INVALID_SYNTAX

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        span: Optional[SourceSpan] = None,
        source_line: str = "",
        hint: str = "",
    ) -> None:
        super().__init__(message)
        self.error_message = ErrorMessage(
            code=code or self.default_code,
            message=message,
            span=span or SourceSpan(),
            hint=hint,
            source_line=source_line,
        )

    @property
    def message(self) -> str:
        return self.error_message.message

    @property
    def code(self) -> ErrorCode:
        return self.error_message.code

    @property
    def span(self) -> SourceSpan:
        return self.error_message.span

    def with_hint(self, hint: str) -> "TurError":
        """Add a hint to this error."""
        self.error_message.hint = hint
        return self

    def to_gcc_format(self) -> str:
        """Format as a GCC-style error message."""
        return self.error_message.to_gcc_format()

    def to_json(self) -> Dict[str, Any]:
        return self.error_message.to_json()

    def __str__(self) -> str:
        return self.to_gcc_format()


class TurParseError(TurError):
    """Syntactic error: malformed structure, indentation, or literal.

    Always pinpoints the offending line; ``snippet`` is that line's text.
    """

    default_code = TurErrorCodes.INVALID_SYNTAX

    def __init__(
        self,
        message: str,
        line: int,
        column: int = 1,
        snippet: str = "",
        code: Optional[ErrorCode] = None,
        file: str = "",
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message=message,
            code=code,
            span=SourceSpan(file=file, line=line, column=column),
            source_line=snippet,
            **kwargs,
        )

    @property
    def line(self) -> int:
        return self.span.line

    @property
    def column(self) -> int:
        return self.span.column

    @property
    def snippet(self) -> str:
        return self.error_message.source_line


class TurBuildError(TurError):
    """Internal inconsistency the line grammar cannot detect by itself."""

    default_code = TurErrorCodes.ARITY_MISMATCH


class TurAnalysisError(TurError):
    """Raised by :func:`turlang.compiler.check` when analysis found errors."""

    default_code = TurErrorCodes.ANALYSIS_FAILED

    def __init__(self, diagnostics: Sequence[Any], **kwargs: Any) -> None:
        self.diagnostics: List[Any] = list(diagnostics)
        count = len(self.diagnostics)
        first = self.diagnostics[0].message if self.diagnostics else "no diagnostics"
        super().__init__(
            message=f"{count} analysis error(s); first: {first}",
            **kwargs,
        )
