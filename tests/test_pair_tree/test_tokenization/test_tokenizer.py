"""Tests for pair token extraction."""

import pytest

from pair_tree.shared import ErrorCode, ErrorReport, ExtractionConfig, InvalidInputError
from pair_tree.tokenization import PairToken, PairTokenizer, compile_token_pattern


class TestPairToken:
    """Test PairToken values."""

    def test_raw_and_self_pair(self):
        """Test derived properties."""
        token = PairToken("A", "B", index=0)

        assert token.raw == "(A,B)"
        assert not token.is_self_pair
        assert PairToken("C", "C", index=2).is_self_pair

    def test_invalid_symbols_raise(self):
        """Test multi-character symbols are rejected."""
        with pytest.raises(ValueError, match="single characters"):
            PairToken("AB", "C", index=0)

    def test_negative_index_raises(self):
        """Test index validation."""
        with pytest.raises(ValueError, match="Token index must be >= 0"):
            PairToken("A", "B", index=-1)


class TestPairTokenizerExtraction:
    """Test successful extraction."""

    def test_extract_in_input_order(self):
        """Test tokens keep input order, index and offset."""
        tokens = PairTokenizer().extract("(A,B) (A,C) (B,D)")

        assert [(t.parent, t.child) for t in tokens] == [("A", "B"), ("A", "C"), ("B", "D")]
        assert [t.index for t in tokens] == [0, 1, 2]
        assert [t.offset for t in tokens] == [0, 6, 12]

    def test_single_token(self):
        """Test an input with one pair."""
        tokens = PairTokenizer().extract("(Z,Y)")

        assert tokens == [PairToken("Z", "Y", index=0, offset=0)]

    def test_self_pair_is_structurally_valid(self):
        """Test the extractor does not judge tree rules."""
        tokens = PairTokenizer().extract("(A,A)")

        assert tokens[0].is_self_pair

    def test_custom_alphabet_and_separator(self):
        """Test extraction follows the configured grammar."""
        tokenizer = PairTokenizer(ExtractionConfig(alphabet="abc", pair_separator=";"))

        tokens = tokenizer.extract("(a,b);(b,c)")

        assert [t.raw for t in tokens] == ["(a,b)", "(b,c)"]

    def test_custom_alphabet_rejects_default_symbols(self):
        """Test uppercase letters are invalid outside the alphabet."""
        tokenizer = PairTokenizer(ExtractionConfig(alphabet="abc"))

        with pytest.raises(InvalidInputError):
            tokenizer.extract("(A,B)")


class TestPairTokenizerFailures:
    """Test fatal input detection."""

    @pytest.mark.parametrize("raw", [
        "(A,1)",
        "(a,B)",
        "(A,B",
        "A,B)",
        "(AB)",
        "(A;B)",
        "(A,B))",
        "((A,B)",
        "(A,BC)",
        "[A,B]",
    ])
    def test_malformed_token(self, raw):
        """Test every shape violation is fatal."""
        with pytest.raises(InvalidInputError) as exc_info:
            PairTokenizer().extract_token(raw, index=4)

        assert exc_info.value.token == raw
        assert exc_info.value.index == 4

    @pytest.mark.parametrize("raw", ["", "   ", "\t"])
    def test_empty_or_whitespace_token(self, raw):
        """Test blank tokens are fatal."""
        with pytest.raises(InvalidInputError, match="Malformed pair token"):
            PairTokenizer().extract_token(raw)

    def test_empty_input(self):
        """Test empty input is rejected."""
        with pytest.raises(InvalidInputError, match="Input is empty"):
            PairTokenizer().extract("")

    @pytest.mark.parametrize("text", [" (A,B)", "(A,B) ", " "])
    def test_leading_or_trailing_separator(self, text):
        """Test separator at either end is rejected."""
        with pytest.raises(InvalidInputError, match="pair separator"):
            PairTokenizer().extract(text)

    def test_double_separator_gives_empty_token(self):
        """Test two separators in a row produce an empty, fatal token."""
        with pytest.raises(InvalidInputError) as exc_info:
            PairTokenizer().extract("(A,B)  (C,D)")

        assert exc_info.value.index == 1
        assert exc_info.value.token == ""

    def test_missing_separator(self):
        """Test adjacent tokens without a separator are one malformed token."""
        with pytest.raises(InvalidInputError):
            PairTokenizer().extract("(A,B)(C,D)")

    def test_first_bad_token_aborts(self):
        """Test extraction stops at the first malformed token."""
        with pytest.raises(InvalidInputError) as exc_info:
            PairTokenizer().extract("(A,B) (A,1) (B,?)")

        assert exc_info.value.token == "(A,1)"


def test_pattern_escapes_special_characters():
    """Test regex metacharacters in the alphabet are matched literally."""
    pattern = compile_token_pattern("^-]")

    assert pattern.fullmatch("(^,-)")
    assert pattern.fullmatch("(],^)")
    assert not pattern.fullmatch("(A,-)")


@pytest.mark.parametrize("text, token, index", [
    ("", "", None),
    ("(A,B) ", "(A,B) ", None),
    ("(A,B) (A,1)", "(A,1)", 1),
])
def test_fatal_input_is_reported_through_error_report(monkeypatch, text, token, index):
    """Test every fatal condition is raised by ErrorReport.report."""
    calls = []
    original_report = ErrorReport.report

    def recording_report(self, error, **kwargs):
        calls.append((error, kwargs))
        return original_report(self, error, **kwargs)

    monkeypatch.setattr(ErrorReport, "report", recording_report)

    with pytest.raises(InvalidInputError):
        PairTokenizer().extract(text)

    assert len(calls) == 1
    error, kwargs = calls[0]
    assert error is ErrorCode.INVALID_INPUT
    assert kwargs["token"] == token
    assert kwargs["index"] == index
