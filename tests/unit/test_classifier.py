"""Tests for diagnostic keyword classification."""

from kql_assist.generation.classifier import (
    HINT_RULES,
    PROGRESSIVE_EMPHASIS,
    PROGRESSIVE_EXAMPLE,
    KeywordRule,
    error_examples,
    error_hints,
    progressive_emphasis,
)
from kql_assist.models.generation import Diagnostic


def diag(message: str) -> Diagnostic:
    return Diagnostic(line=1, column=1, message=message)


class TestErrorHints:
    """Hints derived from diagnostic messages."""

    def test_parenthesis_hint(self) -> None:
        assert error_hints([diag("expected ')'")]) == [
            "Ensure all parentheses are balanced"
        ]

    def test_case_insensitive(self) -> None:
        assert "Ensure all parentheses are balanced" in error_hints(
            [diag("UNCLOSED group")]
        )

    def test_deduplicated_across_diagnostics(self) -> None:
        hints = error_hints([diag("expected ')'"), diag("unmatched '('")])
        assert hints.count("Ensure all parentheses are balanced") == 1

    def test_multiple_rules(self) -> None:
        hints = error_hints([diag("expected ','"), diag("invalid datetime literal")])
        assert "Multiple arguments should be separated by commas" in hints
        assert "Use datetime() for date values, e.g., datetime(2024-01-01)" in hints

    def test_by_matches_whole_word_only(self) -> None:
        assert error_hints([diag("unexpected byte sequence")]) == []
        assert error_hints([diag("expected expression after by")]) == [
            "The 'by' clause is used with summarize, top, and order operators"
        ]

    def test_backtick_wrapping(self) -> None:
        assert error_hints([diag("illegal character")]) == [
            "Do NOT wrap output in backticks - output raw KQL only"
        ]

    def test_unknown_message_contributes_nothing(self) -> None:
        assert error_hints([diag("something novel happened")]) == []

    def test_empty_input(self) -> None:
        assert error_hints([]) == []

    def test_table_order(self) -> None:
        hints = error_hints([diag("ago expects a timespan"), diag("expected '|'")])
        expected_order = [h for rule in HINT_RULES for h in rule.outputs if h in hints]
        assert hints == expected_order


class TestErrorExamples:
    """Syntax examples derived from diagnostic messages."""

    def test_summarize_examples(self) -> None:
        examples = error_examples([diag("bad summarize clause")], 1, False)
        assert examples == [
            "T | summarize count() by Column",
            "T | summarize Total=sum(Value) by Category",
        ]

    def test_parenthesis_example(self) -> None:
        assert error_examples([diag("expected ')'")], 2, False) == [
            "Function calls: func(arg1, arg2)"
        ]

    def test_progressive_adds_structural_example(self) -> None:
        examples = error_examples([diag("novel")], 3, True)
        assert examples == [PROGRESSIVE_EXAMPLE]

    def test_progressive_needs_third_attempt(self) -> None:
        assert error_examples([diag("novel")], 2, True) == []

    def test_progressive_disabled(self) -> None:
        assert error_examples([diag("novel")], 5, False) == []

    def test_structural_example_added_once(self) -> None:
        examples = error_examples([diag("join"), diag("where")], 4, True)
        assert examples.count(PROGRESSIVE_EXAMPLE) == 1


class TestProgressiveEmphasis:
    """Emphasis sentence for later attempts."""

    def test_on_third_attempt(self) -> None:
        assert progressive_emphasis(3, True) == PROGRESSIVE_EMPHASIS

    def test_off_before_third_attempt(self) -> None:
        assert progressive_emphasis(2, True) is None

    def test_off_when_disabled(self) -> None:
        assert progressive_emphasis(7, False) is None


class TestKeywordRule:
    """Rule matching."""

    def test_substring(self) -> None:
        rule = KeywordRule(("pipe",), ("x",))
        assert rule.matches("missing pipeline")

    def test_whole_word(self) -> None:
        rule = KeywordRule(("by",), ("x",), whole_word=True)
        assert rule.matches("group by")
        assert not rule.matches("nearby")
