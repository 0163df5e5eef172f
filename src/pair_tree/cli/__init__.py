"""Command-line interface for pair-tree.

Provides the ``pair-tree`` tool: single line builds from an argument or stdin,
and batch reports over input files.
"""

from .main import main

__all__ = ["main"]
