"""Exception types for pair-tree building."""

from typing import Optional


class PairTreeError(Exception):
    """Base exception for pair-tree errors."""


class InvalidInputError(PairTreeError):
    """Raised when the input or one of its pair tokens is malformed.

    This is the only fatal condition: it aborts the whole build and is
    reported as ``E1``.
    """

    def __init__(
        self,
        message: str,
        token: Optional[str] = None,
        index: Optional[int] = None
    ) -> None:
        super().__init__(message)
        self.token = token
        self.index = index


class SerializationError(PairTreeError):
    """Raised when a nested-bracket serialization cannot be parsed."""

    def __init__(self, message: str, offset: Optional[int] = None) -> None:
        super().__init__(message)
        self.offset = offset
