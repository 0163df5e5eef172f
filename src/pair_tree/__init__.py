"""Pair Tree.

Builds a binary tree from parent-child pair tokens such as ``(A,B) (A,C)``,
checks the pairs against structural rules and returns either the most
severe violation code (``E1`` to ``E5``) or the nested-bracket form of the
tree, e.g. ``(A(B)(C))``.

Progressive API Disclosure:
- Level 1: Simple functions - build_tree(), build_string(), build_file()
- Level 2: Configured builder - PairTreeBuilder class with BuilderConfig
"""

__version__ = "0.1.0"
__author__ = "Pair Tree Team"

from .api import PairTreeBuilder, build_file, build_string, build_tree
from .shared.config import BuilderConfig
from .tree import BuildResult, ErrorCode, TreeNode

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple build functions
    "build_tree",
    "build_string",
    "build_file",

    # Level 2: Configured builder
    "PairTreeBuilder",
    "BuilderConfig",

    # Result objects and data structures
    "BuildResult",
    "ErrorCode",
    "TreeNode",
]
