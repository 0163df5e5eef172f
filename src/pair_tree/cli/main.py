"""Main CLI entry point for the pair-tree command-line tool.

``pair-tree build`` reads one line of pair tokens (argument or stdin) and
prints exactly one line: an error code or the serialized tree.
``pair-tree batch`` runs every line of one or more files and prints a report.
"""

import argparse
import json
import sys
import time
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pair_tree import __version__
from pair_tree.api import PairTreeBuilder
from pair_tree.shared.config import BuilderConfig, ConfigError
from pair_tree.shared.logging import configure_logging, get_logger


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self) -> None:
        self.builder_config = BuilderConfig.default()
        self.output_format = "text"
        self.from_file = False

    @classmethod
    def load(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a JSON file.

        The file holds an optional ``output_format`` and an optional
        ``builder`` object in ``BuilderConfig.to_dict`` layout. A missing file
        keeps the defaults; an invalid one raises ``ConfigError``.
        """
        config = cls()
        if not config_path.exists():
            return config

        try:
            data = json.loads(config_path.read_text())
        except (OSError, ValueError) as e:
            raise ConfigError(f"Could not load config file {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {config_path} must contain a JSON object")

        if "builder" in data:
            config.builder_config = BuilderConfig.from_dict(data["builder"])
        config.output_format = data.get("output_format", config.output_format)
        config.from_file = True
        return config


class ProgressTracker:
    """Progress display on stderr for long batch runs."""

    def __init__(self, total: int, description: str = "Building") -> None:
        self.total = total
        self.completed = 0
        self.description = description
        self.last_update = 0.0

    def update(self, increment: int = 1) -> None:
        self.completed += increment
        current_time = time.time()

        # Redraw at most once per second, and always on completion
        if current_time - self.last_update >= 1.0 or self.completed >= self.total:
            self._display_progress()
            self.last_update = current_time

    def _display_progress(self) -> None:
        if self.total == 0:
            return

        percentage = (self.completed / self.total) * 100
        progress_bar = "=" * int(percentage // 2)
        progress_bar += " " * (50 - len(progress_bar))
        print(f"\r{self.description}: [{progress_bar}] "
              f"{percentage:.1f}% ({self.completed}/{self.total})",
              end="", file=sys.stderr)

        if self.completed >= self.total:
            print(file=sys.stderr)


class BatchProcessor:
    """Runs many input lines through one ``PairTreeBuilder``."""

    def __init__(self, config: CLIConfig) -> None:
        self.config = config
        self.builder = PairTreeBuilder(config=config.builder_config)
        self.logger = get_logger(__name__, None, "cli_batch")

    def process_line(self, text: str, source: str = "<input>", line: int = 1) -> Dict[str, Any]:
        result = self.builder.build(text)
        record: Dict[str, Any] = {"source": source, "line": line, "input": text}
        record.update(result.summary())
        return record

    def iter_lines(self, paths: List[Path]) -> Iterator[Tuple[str, int, str]]:
        """Yield (source, line number, text) for every non-empty line."""
        for path in paths:
            if not path.is_file():
                self.logger.warning("Input file not found", extra={"file_path": str(path)})
                continue
            with path.open(encoding="utf-8") as file:
                for number, raw in enumerate(file, start=1):
                    text = raw.rstrip("\r\n")
                    if text:
                        yield str(path), number, text

    def batch_process(self, paths: List[Path], show_progress: bool = False) -> List[Dict[str, Any]]:
        lines = list(self.iter_lines(paths))
        progress = ProgressTracker(len(lines)) if show_progress else None

        results = []
        for source, number, text in lines:
            results.append(self.process_line(text, source, number))
            if progress:
                progress.update()
        return results


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="pair-tree",
        description="Build a binary tree from (parent,child) pairs and print it or its error code"
    )

    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    parser.add_argument("--quiet", "-q", action="store_true", help="Errors only")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    build_parser = subparsers.add_parser("build", help="Build one input line")
    build_parser.add_argument(
        "text",
        nargs="?",
        help="Pair tokens such as \"(A,B) (A,C)\" (default: one line from stdin)"
    )
    build_parser.add_argument("--config", "-c", type=Path, help="Configuration file path")
    build_parser.add_argument(
        "--iterative",
        action="store_true",
        help="Serialize with an explicit stack instead of recursion"
    )

    batch_parser = subparsers.add_parser("batch", help="Build every line of input files")
    batch_parser.add_argument("paths", nargs="+", type=Path, help="Input files")
    batch_parser.add_argument(
        "--format", "-f",
        choices=["json", "csv", "text"],
        help="Report format (default: text, or the config file's output_format)"
    )
    batch_parser.add_argument("--output", "-o", type=Path, help="Output file (default: stdout)")
    batch_parser.add_argument("--config", "-c", type=Path, help="Configuration file path")
    batch_parser.add_argument("--progress", action="store_true", help="Show progress on stderr")

    return parser


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format batch results for output."""
    if format_type == "json":
        return json.dumps(results, indent=2)

    if format_type == "csv":
        if not results:
            return ""
        lines = ["source,line,output,is_tree,nodes,time_ms"]
        for result in results:
            lines.append(
                f"{result['source']},{result['line']},{result['output']},"
                f"{result['is_tree']},{result.get('node_count', 0)},"
                f"{result.get('processing_time_ms', 0):.3f}"
            )
        return "\n".join(lines)

    if not results:
        return "No results to display."

    trees = sum(1 for r in results if r.get("is_tree", False))
    lines = [f"Built {len(results)} inputs, {trees} trees", "-" * 60]
    for result in results:
        lines.append(f"{result['source']}:{result['line']}  {result['input']}")
        lines.append(f"   -> {result['output']}")
    return "\n".join(lines)


def _log_level(args: argparse.Namespace, config: CLIConfig) -> str:
    if args.verbose:
        return "DEBUG"
    if args.quiet:
        return "ERROR"
    if config.from_file:
        return config.builder_config.global_.logging_level
    return "WARNING"


def _load_config(args: argparse.Namespace) -> CLIConfig:
    return CLIConfig.load(args.config) if args.config else CLIConfig()


def cmd_build(args: argparse.Namespace) -> int:
    """Handle build command."""
    config = _load_config(args)
    configure_logging(_log_level(args, config))

    if args.iterative:
        config.builder_config = config.builder_config.override(
            tree__serialization_strategy="iterative"
        )

    text = args.text if args.text is not None else sys.stdin.readline().rstrip("\r\n")
    result = PairTreeBuilder(config=config.builder_config).build(text)

    print(result.output)
    return 0 if result.success else 1


def cmd_batch(args: argparse.Namespace) -> int:
    """Handle batch command."""
    config = _load_config(args)
    configure_logging(_log_level(args, config))

    format_type = args.format or config.output_format
    processor = BatchProcessor(config)
    results = processor.batch_process(args.paths, show_progress=args.progress)
    formatted_output = format_results(results, format_type)

    if args.output:
        try:
            args.output.write_text(formatted_output)
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
        print(f"Results written to {args.output}", file=sys.stderr)
    else:
        print(formatted_output)

    if not results:
        return 1
    return 0 if all(r["is_tree"] for r in results) else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == "build":
            return cmd_build(args)
        if args.command == "batch":
            return cmd_batch(args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130

    print(f"Unknown command: {args.command}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
