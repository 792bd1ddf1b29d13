"""
Transform-specific exceptions and diagnostics.

Error code ranges:
- E1xx: Matching errors
- E2xx: Rewrite driver errors
- E3xx: Configuration errors
- I0xx/W0xx: Informational reports emitted by the passes
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List
from .tokens import SourceSpan, SourceLocation


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    HINT = "hint"


@dataclass
class Diagnostic:
    """A single diagnostic message (error, warning, etc.)."""
    code: str                       # E101, W001, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity
    span: Optional[SourceSpan] = None
    source_line: Optional[str] = None   # The actual line of source code
    hints: List[str] = field(default_factory=list)
    data: dict = field(default_factory=dict)  # Structured payload for tooling

    def format(self, show_source: bool = True) -> str:
        """Format the diagnostic for display."""
        parts = []

        if self.span is not None:
            parts.append(f"{self.span.start}: {self.severity.value}[{self.code}]: {self.message}")
        else:
            parts.append(f"{self.severity.value}[{self.code}]: {self.message}")

        # Source line with caret
        if show_source and self.span is not None and self.source_line is not None:
            parts.append("  |")
            line_num = str(self.span.start.line)
            parts.append(f"{line_num:>3} | {self.source_line}")

            col = self.span.start.column
            end_col = self.span.end.column if self.span.start.line == self.span.end.line else len(self.source_line) + 1
            underline_len = max(1, end_col - col)
            parts.append(f"    | {' ' * (col - 1)}{'^' * underline_len}")

        for hint in self.hints:
            parts.append(f"    = hint: {hint}")

        return "\n".join(parts)

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict for tooling integration."""
        result = {
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "hints": self.hints,
            "data": self.data,
        }
        if self.span is not None:
            result["range"] = {
                "start": _location_json(self.span.start),
                "end": _location_json(self.span.end),
            }
        return result


def _location_json(loc: SourceLocation) -> dict:
    return {"line": loc.line, "column": loc.column, "offset": loc.offset}


class TransformError(Exception):
    """Base exception for transform failures."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    def __str__(self) -> str:
        return self.diagnostic.format()


class InvalidBoundsError(TransformError):
    """A matched loop bound is not a parseable integer (E101)."""

    @property
    def match_text(self) -> str:
        return self.diagnostic.data.get("match_text", "")


class TransformDivergenceError(TransformError):
    """The fixpoint driver exceeded its pass cap (E201)."""

    @property
    def passes(self) -> int:
        return self.diagnostic.data.get("passes", 0)


class ConfigError(TransformError):
    """Invalid configuration value or file (E301)."""
    pass


# --- Matching error codes ---

def error_invalid_bounds(bound: str, match_text: str, span: SourceSpan,
                         source_line: str = None) -> InvalidBoundsError:
    """E101: Loop bound could not be parsed as an integer."""
    diag = Diagnostic(
        code="E101",
        message=f"invalid loop bound '{bound}' in '{match_text}'",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=["loop bounds must be plain decimal integers"],
        data={"bound": bound, "match_text": match_text},
    )
    return InvalidBoundsError(diag)


# --- Driver error codes ---

def error_divergence(transform: str, passes: int) -> TransformDivergenceError:
    """E201: Rewriting did not reach a fixpoint."""
    diag = Diagnostic(
        code="E201",
        message=f"{transform} did not converge after {passes} rewriting passes",
        severity=ErrorSeverity.ERROR,
        hints=["the input rebuilds a matching construct on every pass; raise max_passes or fix the input"],
        data={"transform": transform, "passes": passes},
    )
    return TransformDivergenceError(diag)


# --- Configuration error codes ---

def error_config(message: str, source: Optional[str] = None) -> ConfigError:
    """E301: Invalid configuration."""
    diag = Diagnostic(
        code="E301",
        message=message if source is None else f"{source}: {message}",
        severity=ErrorSeverity.ERROR,
    )
    return ConfigError(diag)


# --- Reports ---

def info_loop_unrolled(variable: str, start: int, end: int, span: SourceSpan,
                       source_line: str = None) -> Diagnostic:
    """I001: Loop unrolled."""
    return Diagnostic(
        code="I001",
        message=f"unrolled loop over '{variable}' in [{start}, {end})",
        severity=ErrorSeverity.INFO,
        span=span,
        source_line=source_line,
        data={"variable": variable, "start": start, "end": end, "decision": "unrolled"},
    )


def warning_loop_skipped(variable: str, start: int, end: int, threshold: int,
                         span: SourceSpan, source_line: str = None) -> Diagnostic:
    """W001: Loop left rolled because its trip count exceeds the threshold."""
    return Diagnostic(
        code="W001",
        message=(f"loop over '{variable}' in [{start}, {end}) has {end - start} iterations, "
                 f"more than the threshold of {threshold}; left rolled"),
        severity=ErrorSeverity.WARNING,
        span=span,
        source_line=source_line,
        hints=["raise the unroll threshold to unroll this loop"],
        data={"variable": variable, "start": start, "end": end,
              "threshold": threshold, "decision": "skipped"},
    )


def info_conditional_simplified(condition: bool, has_else: bool, span: SourceSpan,
                                source_line: str = None) -> Diagnostic:
    """I002: Literal-guarded conditional reduced to its taken branch."""
    guard = "true" if condition else "false"
    shape = f"if ({guard}) {{...}} else {{...}}" if has_else else f"if ({guard}) {{...}}"
    taken = "then branch" if condition else ("else branch" if has_else else "nothing")
    return Diagnostic(
        code="I002",
        message=f"simplified '{shape}' to {taken}",
        severity=ErrorSeverity.INFO,
        span=span,
        source_line=source_line,
        data={"condition": condition, "has_else": has_else},
    )


class DiagnosticCollector:
    """Collects diagnostics reported by the passes."""

    def __init__(self):
        self.diagnostics: List[Diagnostic] = []

    def add(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)

    def add_error(self, error: TransformError) -> None:
        """Add an error exception as a diagnostic."""
        self.add(error.diagnostic)

    def by_code(self, code: str) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.code == code]

    @property
    def error_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity == ErrorSeverity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity == ErrorSeverity.WARNING)

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0

    @property
    def has_warnings(self) -> bool:
        return self.warning_count > 0

    def __len__(self) -> int:
        return len(self.diagnostics)

    def format_all(self, show_source: bool = True) -> str:
        """Format all diagnostics for display."""
        parts = [d.format(show_source) for d in self.diagnostics]
        if self.error_count > 0:
            parts.append(f"\n{self.error_count} error(s), {self.warning_count} warning(s)")
        elif self.warning_count > 0:
            parts.append(f"\n{self.warning_count} warning(s)")
        return "\n\n".join(parts)

    def to_json(self) -> dict:
        """Convert all diagnostics to JSON format."""
        return {
            "diagnostics": [d.to_json() for d in self.diagnostics],
            "error_count": self.error_count,
            "warning_count": self.warning_count,
        }
