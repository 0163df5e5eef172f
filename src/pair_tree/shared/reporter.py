"""Severity-ordered error accumulation for pair-tree builds.

Recoverable rule violations found while building are folded into an
immutable ``ErrorReport`` that only ever moves toward more severe codes.
``INVALID_INPUT`` is never folded: the tokenizer reports it through
``ErrorReport.report``, which raises ``InvalidInputError`` and ends the build.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Optional, Tuple

from .exceptions import InvalidInputError
from .result import DiagnosticEntry, DiagnosticSeverity


class ErrorCode(IntEnum):
    """Build error classes; a lower value is more severe."""

    INVALID_INPUT = 1
    DUPLICATE_PAIR = 2
    TOO_MANY_CHILDREN = 3
    CYCLE_DETECTED = 4
    MULTIPLE_ROOTS = 5

    NO_ERROR = 999

    @property
    def code(self) -> str:
        """Output code such as ``E3``; empty for ``NO_ERROR``."""
        if self is ErrorCode.NO_ERROR:
            return ""
        return f"E{self.value}"

    @property
    def is_fatal(self) -> bool:
        return self is ErrorCode.INVALID_INPUT

    def outranks(self, other: "ErrorCode") -> bool:
        """True when this code is strictly more severe than ``other``."""
        return self < other

    @classmethod
    def from_code(cls, code: str) -> "ErrorCode":
        """Look up an error class by its output code."""
        for member in cls:
            if member.code == code:
                return member
        raise ValueError(f"Unknown error code: {code!r}")


_MESSAGES = {
    ErrorCode.DUPLICATE_PAIR: "Pair already registered",
    ErrorCode.TOO_MANY_CHILDREN: "Node already has two children",
    ErrorCode.CYCLE_DETECTED: "Assignment would create a cycle",
    ErrorCode.MULTIPLE_ROOTS: "More than one root node",
}


@dataclass(frozen=True)
class ErrorReport:
    """Worst error seen so far plus the diagnostics that led to it."""

    worst: ErrorCode = ErrorCode.NO_ERROR
    diagnostics: Tuple[DiagnosticEntry, ...] = field(default_factory=tuple)

    @property
    def occurred(self) -> bool:
        return self.worst is not ErrorCode.NO_ERROR

    @property
    def code(self) -> str:
        return self.worst.code

    def merge(
        self,
        error: ErrorCode,
        *,
        correlation_id: Optional[str] = None,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None,
        keep_diagnostic: bool = True
    ) -> "ErrorReport":
        """Return a report that also accounts for ``error``.

        The worst code only changes when ``error`` outranks it; merging a
        milder error still records its diagnostic.
        """
        if error is ErrorCode.NO_ERROR:
            return self

        worst = error if error.outranks(self.worst) else self.worst
        diagnostics = self.diagnostics
        if keep_diagnostic:
            entry = DiagnosticEntry(
                severity=DiagnosticSeverity.WARNING,
                message=f"{error.code}: {_MESSAGES.get(error, error.name)}",
                component="error_reporter",
                position=position,
                details=details,
                correlation_id=correlation_id,
            )
            diagnostics = diagnostics + (entry,)
        return ErrorReport(worst=worst, diagnostics=diagnostics)

    def report(
        self,
        error: ErrorCode,
        *,
        message: Optional[str] = None,
        token: Optional[str] = None,
        index: Optional[int] = None,
        correlation_id: Optional[str] = None,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None,
        keep_diagnostic: bool = True
    ) -> "ErrorReport":
        """Merge a recoverable error; raise for the fatal one.

        Raises:
            InvalidInputError: for ``INVALID_INPUT``, carrying ``message``,
                ``token`` and ``index``
        """
        if error.is_fatal:
            raise InvalidInputError(message or "Invalid input", token=token, index=index)
        return self.merge(
            error,
            correlation_id=correlation_id,
            position=position,
            details=details,
            keep_diagnostic=keep_diagnostic,
        )
