"""Public build API and integration adapters for pair-tree."""

from .parser import PairTreeBuilder, build_file, build_string, build_tree

__all__ = [
    "PairTreeBuilder",
    "build_file",
    "build_string",
    "build_tree",
]
