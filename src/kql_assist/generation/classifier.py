"""Keyword rules that turn validator diagnostics into retry hints and examples.

Each rule is matched against the lower-cased diagnostic message. A rule that
fires contributes all of its outputs; outputs are deduplicated and returned in
table order. Messages that match nothing contribute nothing.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from kql_assist.models.generation import Diagnostic

PROGRESSIVE_MIN_ATTEMPT = 3

PROGRESSIVE_EMPHASIS = (
    "IMPORTANT: Please carefully check all parentheses, pipes, and operator syntax."
)

PROGRESSIVE_EXAMPLE = (
    "// Multi-line query structure:\n"
    "Table\n"
    "| where Condition\n"
    "| summarize count() by Column"
)


@dataclass(frozen=True)
class KeywordRule:
    """Outputs emitted when any keyword occurs in a diagnostic message."""

    keywords: tuple[str, ...]
    outputs: tuple[str, ...]
    whole_word: bool = False

    def matches(self, message: str) -> bool:
        if self.whole_word:
            return any(
                re.search(rf"\b{re.escape(keyword)}\b", message)
                for keyword in self.keywords
            )
        return any(keyword in message for keyword in self.keywords)


HINT_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(
        ("expected ')'", "expected '('", "unclosed", "unmatched"),
        ("Ensure all parentheses are balanced",),
    ),
    KeywordRule(
        ("expected '|'", "pipe"),
        ("Each operator should be on a new line starting with |",),
    ),
    KeywordRule(
        ("expected ','",),
        ("Multiple arguments should be separated by commas",),
    ),
    KeywordRule(
        ("expected operator", "unknown operator"),
        ("Common operators: where, project, summarize, extend, join, take, top, sort",),
    ),
    KeywordRule(
        ("by",),
        ("The 'by' clause is used with summarize, top, and order operators",),
        whole_word=True,
    ),
    KeywordRule(
        ("string", "quote"),
        ("Use single or double quotes for string literals",),
    ),
    KeywordRule(
        ("triple delimiter", "multi-line string", "illegal", "backtick"),
        ("Do NOT wrap output in backticks - output raw KQL only",),
    ),
    KeywordRule(
        ("datetime", "date"),
        ("Use datetime() for date values, e.g., datetime(2024-01-01)",),
    ),
    KeywordRule(
        ("timespan", "ago"),
        ("Use timespan literals like 1h, 7d, 30m or the ago() function",),
    ),
)

EXAMPLE_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(
        ("summarize", "count", "sum", "avg"),
        (
            "T | summarize count() by Column",
            "T | summarize Total=sum(Value) by Category",
        ),
    ),
    KeywordRule(
        ("where", "filter"),
        ("T | where Column > 10", "T | where Name == 'value'"),
    ),
    KeywordRule(
        ("project",),
        ("T | project Column1, Column2", "T | project NewName = OldName"),
    ),
    KeywordRule(
        ("join",),
        ("T1 | join kind=inner T2 on CommonColumn",),
    ),
    KeywordRule(
        ("extend",),
        ("T | extend NewColumn = Expression",),
    ),
    KeywordRule(
        ("expected ')'", "expected '('"),
        ("Function calls: func(arg1, arg2)",),
    ),
)


def _apply(rules: Iterable[KeywordRule], errors: Iterable[Diagnostic]) -> list[str]:
    messages = [error.message.lower() for error in errors]
    found: dict[str, None] = {}
    for rule in rules:
        if any(rule.matches(message) for message in messages):
            found.update(dict.fromkeys(rule.outputs))
    return list(found)


def is_progressive(attempt: int, progressive: bool) -> bool:
    return progressive and attempt >= PROGRESSIVE_MIN_ATTEMPT


def error_hints(errors: Iterable[Diagnostic]) -> list[str]:
    """Deduplicated hints for the given diagnostics."""
    return _apply(HINT_RULES, errors)


def error_examples(
    errors: Iterable[Diagnostic], attempt: int, progressive: bool
) -> list[str]:
    """Deduplicated syntax examples, plus a structural one on later attempts."""
    examples = _apply(EXAMPLE_RULES, errors)
    if is_progressive(attempt, progressive) and PROGRESSIVE_EXAMPLE not in examples:
        examples.append(PROGRESSIVE_EXAMPLE)
    return examples


def progressive_emphasis(attempt: int, progressive: bool) -> str | None:
    """Emphasis sentence for later attempts, or ``None``."""
    if is_progressive(attempt, progressive):
        return PROGRESSIVE_EMPHASIS
    return None
