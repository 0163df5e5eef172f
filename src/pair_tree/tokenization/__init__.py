"""Token extraction for pair-tree building.

Key Components:
    PairTokenizer: Splits an input line into validated pair tokens
    PairToken: One parent to child relation with its input position
"""

from .tokenizer import (
    PairToken,
    PairTokenizer,
    compile_token_pattern,
)

__all__ = [
    "PairToken",
    "PairTokenizer",
    "compile_token_pattern",
]
