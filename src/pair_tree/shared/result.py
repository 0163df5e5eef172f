"""Diagnostic and metric types shared by all build stages.

Diagnostics record what happened to individual pairs (rejections, fatal
input) and metrics record how much work one build did.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()      # Trace-level information
    INFO = auto()       # Informational messages
    WARNING = auto()    # Recoverable rule violations
    ERROR = auto()      # Fatal input problems
    CRITICAL = auto()   # Internal failures


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    position: Optional[Dict[str, int]] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        """Convert the entry to a JSON friendly dictionary."""
        return {
            "severity": self.severity.name,
            "message": self.message,
            "component": self.component,
            "position": self.position,
            "details": self.details,
        }


@dataclass
class PerformanceMetrics:
    """Work counters and timing for one build."""

    processing_time_ms: float = 0.0
    characters_processed: int = 0
    pairs_processed: int = 0
    pairs_rejected: int = 0
    nodes_created: int = 0
    ancestor_steps: int = 0

    @property
    def pairs_per_second(self) -> float:
        """Calculate pairs processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.pairs_processed * 1000.0) / self.processing_time_ms

    @property
    def rejection_rate(self) -> float:
        """Share of processed pairs that were not attached."""
        if self.pairs_processed == 0:
            return 0.0
        return self.pairs_rejected / self.pairs_processed
