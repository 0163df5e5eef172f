"""Core tree building implementation for pair-tree.

This module turns an ordered sequence of pair tokens into a binary tree while
enforcing the structural rules: no duplicate pairs, at most two children per
node, a single parent per node, no cycles and a unique root. Violations are
folded into an ``ErrorReport``; building always continues to the last pair so
that the most severe violation wins.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from pair_tree.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
    get_logger,
)
from pair_tree.tokenization import PairToken
from pair_tree.shared.reporter import ErrorCode, ErrorReport


@dataclass(eq=False)
class TreeNode:
    """A node of the binary tree, identified by its symbol ``value``.

    The node owns its two children. It holds no reference to its parent;
    parent links live in the ``NodeRegistry`` side table.
    """

    value: str
    left: Optional["TreeNode"] = None
    right: Optional["TreeNode"] = None

    def __post_init__(self) -> None:
        """Validate node value."""
        if len(self.value) != 1:
            raise ValueError("Node value must be a single symbol")

    @property
    def children(self) -> Tuple["TreeNode", ...]:
        """Present children in slot order."""
        return tuple(child for child in (self.left, self.right) if child is not None)

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    @property
    def is_full(self) -> bool:
        return self.left is not None and self.right is not None

    def has_child(self, value: str) -> bool:
        """Check whether ``value`` already occupies one of the child slots."""
        return any(child.value == value for child in self.children)

    def attach(self, child: "TreeNode") -> bool:
        """Place ``child`` into the first free slot and keep slots ordered.

        An occupied right slot is never overwritten.

        Returns:
            False when both slots were already taken
        """
        if self.left is None:
            self.left = child
        elif self.right is None:
            self.right = child
        else:
            return False

        if self.right is not None and self.left.value > self.right.value:
            self.left, self.right = self.right, self.left
        return True

    def iter_nodes(self) -> Iterator["TreeNode"]:
        """Yield this node and its descendants in pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def height(self) -> int:
        """Number of nodes on the longest downward path from this node."""
        deepest = 0
        stack = [(self, 1)]
        while stack:
            node, depth = stack.pop()
            deepest = max(deepest, depth)
            stack.extend((child, depth + 1) for child in node.children)
        return deepest

    def to_dict(self) -> Dict[str, Any]:
        """Convert subtree to nested dictionaries."""
        return {
            "value": self.value,
            "left": self.left.to_dict() if self.left else None,
            "right": self.right.to_dict() if self.right else None,
        }


class NodeRegistry:
    """Symbol to node mapping plus the child to parent side table."""

    def __init__(self) -> None:
        self._nodes: Dict[str, TreeNode] = {}
        self._parents: Dict[str, str] = {}

    def __contains__(self, value: object) -> bool:
        return value in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[TreeNode]:
        return iter(self._nodes.values())

    def get(self, value: str) -> Optional[TreeNode]:
        return self._nodes.get(value)

    def register(self, node: TreeNode) -> None:
        """Add ``node`` unless its symbol is already known."""
        self._nodes.setdefault(node.value, node)

    def parent_of(self, value: str) -> Optional[str]:
        return self._parents.get(value)

    def has_parent(self, value: str) -> bool:
        return value in self._parents

    def set_parent(self, child: str, parent: Optional[str]) -> None:
        """Link ``child`` to ``parent``; ``None`` removes the link."""
        if parent is None:
            self._parents.pop(child, None)
        else:
            self._parents[child] = parent

    def ancestors(self, value: str) -> Iterator[str]:
        """Walk parent links upward from ``value``, excluding ``value`` itself."""
        current = self._parents.get(value)
        while current is not None:
            yield current
            current = self._parents.get(current)

    def roots(self) -> List[TreeNode]:
        """All registered nodes without a parent."""
        return [node for value, node in self._nodes.items() if value not in self._parents]

    def edges(self) -> List[Tuple[str, str]]:
        """Registered (parent, child) links, sorted by child symbol."""
        return sorted(
            ((parent, child) for child, parent in self._parents.items()),
            key=lambda edge: edge[1],
        )


@dataclass
class BuildResult:
    """Outcome of one build: output line, tree, errors and metadata.

    ``output`` is the single line the caller prints: the error code when any
    rule was violated, otherwise the serialized tree.
    """

    output: str = ""
    report: ErrorReport = field(default_factory=ErrorReport)
    root: Optional[TreeNode] = None
    registry: NodeRegistry = field(default_factory=NodeRegistry)
    serialization: Optional[str] = None
    success: bool = True
    pair_count: int = 0

    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    correlation_id: Optional[str] = None

    @property
    def error(self) -> ErrorCode:
        return self.report.worst

    @property
    def error_code(self) -> str:
        return self.report.code

    @property
    def has_errors(self) -> bool:
        return self.report.occurred

    @property
    def is_tree(self) -> bool:
        """True when the output is a serialized tree rather than a code."""
        return self.success and not self.has_errors and self.root is not None

    @property
    def node_count(self) -> int:
        return len(self.registry)

    @property
    def height(self) -> int:
        return self.root.height() if self.root else 0

    @property
    def processing_time_ms(self) -> float:
        return self.performance.processing_time_ms

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add diagnostic entry to result."""
        self.diagnostics.append(DiagnosticEntry(
            severity=severity,
            message=message,
            component=component,
            position=position,
            details=details,
            correlation_id=self.correlation_id,
        ))

    def summary(self) -> Dict[str, Any]:
        """Compact, JSON friendly description of the build."""
        return {
            "output": self.output,
            "success": self.success,
            "is_tree": self.is_tree,
            "error_code": self.error_code or None,
            "error": self.error.name if self.has_errors else None,
            "pair_count": self.pair_count,
            "node_count": self.node_count,
            "height": self.height,
            "pairs_rejected": self.performance.pairs_rejected,
            "processing_time_ms": self.performance.processing_time_ms,
            "diagnostics": [diag.to_dict() for diag in self.diagnostics],
        }


class BinaryTreeBuilder:
    """Builds a binary tree from pair tokens, one pair at a time.

    A builder can be reused; every call to ``build`` starts from a fresh
    registry and error report.
    """

    def __init__(
        self,
        correlation_id: Optional[str] = None,
        include_diagnostics: bool = True
    ) -> None:
        """Initialize tree builder.

        Args:
            correlation_id: Optional correlation ID for build tracking
            include_diagnostics: Record a diagnostic for each rejected pair
        """
        self.correlation_id = correlation_id
        self.include_diagnostics = include_diagnostics
        self.logger = get_logger(__name__, correlation_id, "binary_tree_builder")

        self._registry = NodeRegistry()
        self._metrics = PerformanceMetrics()
        self._pair_rejected = False

    def build(self, tokens: Sequence[PairToken]) -> BuildResult:
        """Build the tree for ``tokens`` and determine its root.

        Serialization and output selection are left to the caller; the
        returned result carries the tree, registry and error report.
        """
        start_time = time.time()
        self._reset_state()

        self.logger.info("Starting tree building", extra={"pair_count": len(tokens)})

        result = BuildResult(correlation_id=self.correlation_id, pair_count=len(tokens))
        report = ErrorReport()

        try:
            for token in tokens:
                report = self._process_pair(token, report)

            root, report = self._determine_root(report)

            result.root = root
            result.registry = self._registry
            result.report = report
            result.diagnostics.extend(report.diagnostics)

            self.logger.info(
                "Tree building completed",
                extra={
                    "node_count": len(self._registry),
                    "error_code": report.code or None,
                    "pairs_rejected": self._metrics.pairs_rejected,
                }
            )

        except Exception as e:
            self.logger.exception("Tree building failed")

            result.success = False
            result.report = report
            result.registry = self._registry
            result.add_diagnostic(
                DiagnosticSeverity.CRITICAL,
                f"Tree building failed: {e}",
                "binary_tree_builder",
                details={"exception_type": type(e).__name__}
            )

        self._metrics.processing_time_ms = (time.time() - start_time) * 1000
        result.performance = self._metrics
        return result

    def _reset_state(self) -> None:
        self._registry = NodeRegistry()
        self._metrics = PerformanceMetrics()
        self._pair_rejected = False

    def _process_pair(self, token: PairToken, report: ErrorReport) -> ErrorReport:
        self._pair_rejected = False
        self._metrics.pairs_processed += 1

        parent, report = self._resolve_parent(token, report)
        report = self._connect(parent, token, report)

        if self._pair_rejected:
            self._metrics.pairs_rejected += 1
        return report

    def _resolve_parent(
        self, token: PairToken, report: ErrorReport
    ) -> Tuple[TreeNode, ErrorReport]:
        """Return the parent node, creating it on first sight.

        Produces ``DUPLICATE_PAIR`` and ``TOO_MANY_CHILDREN``. The duplicate
        check comes first so a duplicate is never also a fan-out violation.
        """
        existing = self._registry.get(token.parent)
        if existing is None:
            node = TreeNode(token.parent)
            self._registry.register(node)
            self._metrics.nodes_created += 1
            return node, report

        if existing.has_child(token.child):
            report = self._reject(report, ErrorCode.DUPLICATE_PAIR, token, "duplicate")
        elif existing.is_full:
            report = self._reject(report, ErrorCode.TOO_MANY_CHILDREN, token, "fan_out")

        return existing, report

    def _connect(
        self, parent: TreeNode, token: PairToken, report: ErrorReport
    ) -> ErrorReport:
        """Attach the child to ``parent``. Produces ``CYCLE_DETECTED``."""
        child_value = token.child

        if child_value in self._registry and self._registry.has_parent(child_value):
            return self._reject(report, ErrorCode.CYCLE_DETECTED, token, "reparent")

        child = self._registry.get(child_value) or TreeNode(child_value)

        # Link first so the ancestor walk sees the new edge; self pairs
        # are only caught through it.
        previous_parent = self._registry.parent_of(child_value)
        self._registry.set_parent(child_value, parent.value)

        if self._closes_cycle(parent.value, child_value):
            self._registry.set_parent(child_value, previous_parent)
            return self._reject(report, ErrorCode.CYCLE_DETECTED, token, "back_edge")

        if not parent.attach(child):
            self.logger.debug(
                "Child linked but not placed, parent is full",
                extra={"parent": parent.value, "child": child_value}
            )

        if child_value not in self._registry:
            self._registry.register(child)
            self._metrics.nodes_created += 1

        return report

    def _closes_cycle(self, parent_value: str, child_value: str) -> bool:
        """Check whether ``child_value`` is already an ancestor of the parent."""
        for ancestor in self._registry.ancestors(parent_value):
            self._metrics.ancestor_steps += 1
            if ancestor == child_value:
                return True
        return False

    def _determine_root(
        self, report: ErrorReport
    ) -> Tuple[Optional[TreeNode], ErrorReport]:
        """Pick the unique parentless node. Produces ``MULTIPLE_ROOTS``."""
        roots = self._registry.roots()

        if len(roots) > 1:
            self.logger.debug(
                "Multiple roots found",
                extra={"roots": [node.value for node in roots]}
            )
            report = report.report(
                ErrorCode.MULTIPLE_ROOTS,
                correlation_id=self.correlation_id,
                details={"roots": [node.value for node in roots]},
                keep_diagnostic=self.include_diagnostics,
            )
            return None, report

        return (roots[0] if roots else None), report

    def _reject(
        self,
        report: ErrorReport,
        error: ErrorCode,
        token: PairToken,
        reason: str
    ) -> ErrorReport:
        self._pair_rejected = True
        self.logger.debug(
            "Pair rejected",
            extra={"pair": token.raw, "index": token.index, "error_code": error.code}
        )
        return report.report(
            error,
            correlation_id=self.correlation_id,
            position={"index": token.index, "offset": token.offset},
            details={"parent": token.parent, "child": token.child, "reason": reason},
            keep_diagnostic=self.include_diagnostics,
        )
