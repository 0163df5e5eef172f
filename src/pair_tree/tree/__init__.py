"""Tree building engine for pair-tree.

This module assembles binary trees from pair tokens, accumulates rule
violations by severity and serializes finished trees.

Key Components:
    BinaryTreeBuilder: Processes pair tokens into a tree
    NodeRegistry: Symbol lookup and child to parent side table
    TreeNode: One node with ordered left/right children
    BuildResult: Output line, tree, error report and metrics
    ErrorReport: Immutable worst-error accumulator (re-exported from shared)
"""

from pair_tree.shared.reporter import (
    ErrorCode,
    ErrorReport,
)

from .builder import (
    BinaryTreeBuilder,
    BuildResult,
    NodeRegistry,
    TreeNode,
)
from .serializer import (
    count_nodes,
    deserialize,
    serialize,
    shape_signature,
)

__all__ = [
    "BinaryTreeBuilder",
    "BuildResult",
    "NodeRegistry",
    "TreeNode",
    "ErrorCode",
    "ErrorReport",
    "count_nodes",
    "deserialize",
    "serialize",
    "shape_signature",
]
