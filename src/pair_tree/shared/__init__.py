"""Shared utilities for pair-tree building.

This module provides configuration objects, diagnostic types, the
severity-ordered error report, exceptions and logging helpers used across all
build stages.
"""

from .config import (
    ApiConfig,
    BuilderConfig,
    ConfigError,
    ConfigValidationError,
    ExtractionConfig,
    GlobalConfig,
    TreeConfig,
)
from .exceptions import (
    InvalidInputError,
    PairTreeError,
    SerializationError,
)
from .logging import (
    CorrelationLogger,
    configure_logging,
    get_logger,
    new_correlation_id,
)
from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
)
from .reporter import (
    ErrorCode,
    ErrorReport,
)

__all__ = [
    "ApiConfig",
    "BuilderConfig",
    "ConfigError",
    "ConfigValidationError",
    "ExtractionConfig",
    "GlobalConfig",
    "TreeConfig",
    "InvalidInputError",
    "PairTreeError",
    "SerializationError",
    "CorrelationLogger",
    "configure_logging",
    "get_logger",
    "new_correlation_id",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "PerformanceMetrics",
    "ErrorCode",
    "ErrorReport",
]
