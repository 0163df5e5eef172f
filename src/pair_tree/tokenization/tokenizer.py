"""Pair token extraction.

Turns one raw input line into an ordered list of ``PairToken`` objects.
Every token must have the exact shape ``(P,C)`` where ``P`` and ``C`` are
single symbols of the configured alphabet; anything else is fatal.
"""

import re
from dataclasses import dataclass
from typing import List, NoReturn, Optional, Pattern

from pair_tree.shared import (
    ErrorCode,
    ErrorReport,
    ExtractionConfig,
    get_logger,
)

# Symbol positions inside a token: ( P , C )
PARENT_OFFSET = 1
CHILD_OFFSET = 3


@dataclass(frozen=True)
class PairToken:
    """One parent to child relation extracted from the input."""

    parent: str
    child: str
    index: int
    offset: int = 0

    def __post_init__(self) -> None:
        """Validate token values."""
        if len(self.parent) != 1 or len(self.child) != 1:
            raise ValueError("Pair symbols must be single characters")
        if self.index < 0:
            raise ValueError("Token index must be >= 0")

    @property
    def raw(self) -> str:
        """Canonical text form of the token."""
        return f"({self.parent},{self.child})"

    @property
    def is_self_pair(self) -> bool:
        """True when a node is paired with itself."""
        return self.parent == self.child


def compile_token_pattern(alphabet: str) -> Pattern[str]:
    """Build the full-match pattern for one pair token over ``alphabet``."""
    symbol = "[" + "".join(re.escape(char) for char in alphabet) + "]"
    return re.compile(rf"\({symbol},{symbol}\)")


class PairTokenizer:
    """Splits raw input into validated pair tokens.

    Raises ``InvalidInputError`` on the first malformed token; no partial
    token list is ever returned.
    """

    def __init__(
        self,
        config: Optional[ExtractionConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or ExtractionConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "pair_tokenizer")
        self._pattern = compile_token_pattern(self.config.alphabet)

    def guard_input(self, text: str) -> None:
        """Reject input that is empty or begins/ends with the separator."""
        separator = self.config.pair_separator

        if not text:
            self._fail("Input is empty", text)
        if text[0] == separator or text[-1] == separator:
            self._fail("Input starts or ends with the pair separator", text)

    def extract(self, text: str) -> List[PairToken]:
        """Validate ``text`` and return its pair tokens in input order."""
        self.guard_input(text)

        tokens: List[PairToken] = []
        offset = 0
        for index, raw in enumerate(text.split(self.config.pair_separator)):
            tokens.append(self.extract_token(raw, index, offset))
            offset += len(raw) + 1

        self.logger.debug(
            "Pair tokens extracted",
            extra={"token_count": len(tokens), "characters": len(text)}
        )
        return tokens

    def extract_token(self, raw: str, index: int = 0, offset: int = 0) -> PairToken:
        """Validate one raw token and return its two symbols."""
        if not raw or raw.isspace() or not self._pattern.fullmatch(raw):
            self.logger.warning(
                "Malformed pair token",
                extra={"token": raw, "index": index, "offset": offset}
            )
            self._fail(f"Malformed pair token at index {index}: {raw!r}", raw, index)

        return PairToken(
            parent=raw[PARENT_OFFSET],
            child=raw[CHILD_OFFSET],
            index=index,
            offset=offset,
        )

    def _fail(self, message: str, token: str, index: Optional[int] = None) -> NoReturn:
        """Report fatal input; ``ErrorReport.report`` always raises for it."""
        ErrorReport().report(
            ErrorCode.INVALID_INPUT, message=message, token=token, index=index
        )
        raise AssertionError("INVALID_INPUT must raise")  # pragma: no cover
