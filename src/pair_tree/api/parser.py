"""Build API for pair-tree.

Module level functions cover one-off builds; ``PairTreeBuilder`` keeps a
configuration and usage statistics across many builds. Every entry point
returns a result instead of raising: malformed input becomes ``E1`` and
unexpected failures become an unsuccessful result with a CRITICAL diagnostic.
"""

import time
from collections import Counter
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pair_tree.shared import (
    BuilderConfig,
    DiagnosticSeverity,
    InvalidInputError,
    get_logger,
    new_correlation_id,
)
from pair_tree.tokenization import PairTokenizer
from pair_tree.tree import BinaryTreeBuilder, BuildResult, ErrorCode, ErrorReport, serialize

PREVIEW_LENGTH = 60  # Max length for input preview in logs
MS_PER_SECOND = 1000


def build_tree(
    text: str,
    config: Optional[BuilderConfig] = None,
    correlation_id: Optional[str] = None
) -> BuildResult:
    """Build a tree from one line of pair tokens.

    Args:
        text: Input such as ``"(A,B) (A,C)"``
        config: Optional builder configuration
        correlation_id: Optional correlation ID for build tracking

    Returns:
        BuildResult whose ``output`` is the error code or the serialized tree

    Examples:
        >>> build_tree("(A,B) (A,C)").output
        '(A(B)(C))'
        >>> build_tree("(A,B) (A,B)").output
        'E2'
    """
    config = config or BuilderConfig()
    correlation_id = _effective_correlation_id(config, correlation_id)
    start_time = time.time()
    logger = get_logger(__name__, correlation_id, "build_tree")

    logger.info(
        "Starting build",
        extra={
            "content_length": len(text),
            "preview": (
                text[:PREVIEW_LENGTH] + "..." if len(text) > PREVIEW_LENGTH else text
            ),
        }
    )

    try:
        result = _build_content(text, config, correlation_id)
    except Exception as e:
        processing_time = (time.time() - start_time) * MS_PER_SECOND
        logger.exception("Build failed", extra={"processing_time_ms": processing_time})
        return _create_error_result(f"Build failed: {e}", correlation_id, processing_time)

    result.performance.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND
    logger.info(
        "Build completed",
        extra={
            "output": result.output,
            "node_count": result.node_count,
            "processing_time_ms": result.performance.processing_time_ms,
        }
    )
    return result


def build_string(text: str, config: Optional[BuilderConfig] = None) -> str:
    """Build a tree and return only the output line."""
    return build_tree(text, config).output


def build_file(
    file_path: Union[str, Path],
    encoding: str = "utf-8",
    config: Optional[BuilderConfig] = None,
    correlation_id: Optional[str] = None
) -> BuildResult:
    """Build a tree from the first line of a text file.

    A missing or unreadable file gives an unsuccessful result rather than
    an exception.
    """
    path_obj = Path(file_path)
    logger = get_logger(__name__, correlation_id, "build_file")

    if not path_obj.is_file():
        message = (
            f"File not found: {path_obj}" if not path_obj.exists()
            else f"Path is not a file: {path_obj}"
        )
        logger.warning(message)
        return _create_error_result(message, correlation_id, 0.0)

    try:
        with path_obj.open(encoding=encoding) as file:
            line = file.readline()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read input file", extra={"file_path": str(path_obj)})
        return _create_error_result(f"Could not read {path_obj}: {e}", correlation_id, 0.0)

    result = build_tree(line.rstrip("\r\n"), config, correlation_id)
    result.add_diagnostic(
        DiagnosticSeverity.INFO,
        f"Input read from file: {path_obj}",
        "file_reader",
        details={"file_path": str(path_obj), "encoding": encoding}
    )
    return result


def _effective_correlation_id(
    config: BuilderConfig, correlation_id: Optional[str]
) -> Optional[str]:
    if correlation_id is None and config.global_.enable_correlation_tracking:
        return new_correlation_id()
    return correlation_id


def _build_content(
    text: str, config: BuilderConfig, correlation_id: Optional[str]
) -> BuildResult:
    """Run extraction, building, serialization and output selection."""
    tokenizer = PairTokenizer(config.extraction, correlation_id)
    try:
        tokens = tokenizer.extract(text)
    except InvalidInputError as e:
        return _create_invalid_input_result(e, text, config, correlation_id)

    builder = BinaryTreeBuilder(
        correlation_id=correlation_id,
        include_diagnostics=config.api.include_diagnostic_info,
    )
    result = builder.build(tokens)
    result.performance.characters_processed = len(text)
    if not result.success:
        return result

    if result.root is not None:
        result.serialization = serialize(result.root, config.tree.serialization_strategy)

    # An error code always wins over the tree
    result.output = result.error_code if result.has_errors else (result.serialization or "")
    return result


def _create_invalid_input_result(
    error: InvalidInputError,
    text: str,
    config: BuilderConfig,
    correlation_id: Optional[str]
) -> BuildResult:
    """Short-circuit result for fatal input problems."""
    result = BuildResult(
        output=ErrorCode.INVALID_INPUT.code,
        report=ErrorReport(worst=ErrorCode.INVALID_INPUT),
        correlation_id=correlation_id,
    )
    result.performance.characters_processed = len(text)
    if config.api.include_diagnostic_info:
        result.add_diagnostic(
            DiagnosticSeverity.ERROR,
            f"{ErrorCode.INVALID_INPUT.code}: {error}",
            "pair_tokenizer",
            position={"index": error.index} if error.index is not None else None,
            details={"token": error.token},
        )
    return result


def _create_error_result(
    error_message: str,
    correlation_id: Optional[str],
    processing_time: float
) -> BuildResult:
    """Unsuccessful result for failures outside the build rules."""
    result = BuildResult(success=False, correlation_id=correlation_id)
    result.performance.processing_time_ms = processing_time
    result.add_diagnostic(DiagnosticSeverity.CRITICAL, error_message, "api_builder")
    return result


class PairTreeBuilder:
    """Reusable builder with a fixed configuration and usage statistics.

    Examples:
        >>> builder = PairTreeBuilder()
        >>> builder.build("(A,B)").output
        '(A(B))'
        >>> builder.statistics["total_builds"]
        1
    """

    def __init__(
        self,
        config: Optional[BuilderConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or BuilderConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "pair_tree_builder")

        self._build_count = 0
        self._tree_count = 0
        self._total_processing_time = 0.0
        self._error_counts: Counter = Counter()

    def build(
        self,
        text: str,
        config_override: Optional[BuilderConfig] = None,
        correlation_id_override: Optional[str] = None
    ) -> BuildResult:
        """Build one input line and update statistics."""
        result = build_tree(
            text,
            config_override or self.config,
            correlation_id_override or self.correlation_id,
        )

        self._build_count += 1
        self._total_processing_time += result.performance.processing_time_ms
        if result.is_tree:
            self._tree_count += 1
        if result.has_errors:
            self._error_counts[result.error_code] += 1
        elif not result.success:
            self._error_counts["internal"] += 1

        return result

    def build_string(self, text: str) -> str:
        return self.build(text).output

    def reconfigure(self, config: BuilderConfig) -> None:
        """Replace the configuration used by later builds."""
        self.config = config
        self.logger.info("Builder reconfigured", extra={"preset": config.name})

    @property
    def statistics(self) -> Dict[str, Any]:
        """Usage statistics since creation or the last reset."""
        return {
            "total_builds": self._build_count,
            "successful_trees": self._tree_count,
            "tree_rate": (
                self._tree_count / self._build_count if self._build_count else 0.0
            ),
            "error_counts": dict(self._error_counts),
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / self._build_count
                if self._build_count else 0.0
            ),
        }

    def reset_statistics(self) -> None:
        self._build_count = 0
        self._tree_count = 0
        self._total_processing_time = 0.0
        self._error_counts.clear()
        self.logger.info("Builder statistics reset")
