"""Heuristics that isolate a candidate query from raw model output."""

from __future__ import annotations

import re

QUERY_LANGUAGE_TAGS = ("kql", "kusto")

# Lines that open a query even when they do not start with a letter.
QUERY_START_PREFIXES = ("let ", "declare ", "//", "/*")

# Lines that start explanatory prose; capture stops at the first one.
EXPLANATION_PREFIXES = (
    "this query",
    "the query",
    "this will",
    "explanation:",
    "note:",
    "here's",
    "here is",
    "the above",
)

INLINE_DELIMITER = "`"

_TAGGED_FENCE = re.compile(
    r"```(?:" + "|".join(QUERY_LANGUAGE_TAGS) + r")\b[ \t]*(?P<body>.*?)```",
    re.DOTALL | re.IGNORECASE,
)

_FENCE = re.compile(
    r"```(?:[A-Za-z0-9_+.-]+[ \t]*(?=\n))?(?P<body>.*?)```",
    re.DOTALL,
)


def looks_like_query_start(line: str) -> bool:
    lower = line.lower()
    if lower.startswith(QUERY_START_PREFIXES):
        return True
    return bool(line) and line[0].isascii() and line[0].isalpha()


def looks_like_explanation(line: str) -> bool:
    return line.lower().startswith(EXPLANATION_PREFIXES)


def strip_inline_delimiters(text: str) -> str:
    """Remove one surrounding pair of backticks, then any lone leading/trailing one."""
    text = text.strip()
    if (
        len(text) >= 2
        and text.startswith(INLINE_DELIMITER)
        and text.endswith(INLINE_DELIMITER)
    ):
        text = text[1:-1]
    text = text.removeprefix(INLINE_DELIMITER).removesuffix(INLINE_DELIMITER)
    return text.strip()


def _fenced_query(response: str) -> str | None:
    # Tagged openers are matched directly, not by pairing fences left to right.
    for pattern in (_TAGGED_FENCE, _FENCE):
        for match in pattern.finditer(response):
            body = match.group("body").strip()
            if body:
                return body
    return None


def _scanned_query(response: str) -> str | None:
    captured: list[str] = []
    in_query = False

    for line in response.splitlines():
        trimmed = line.strip()
        if not in_query:
            if not trimmed or looks_like_explanation(trimmed):
                continue
            if not looks_like_query_start(trimmed):
                continue
            in_query = True
        if looks_like_explanation(trimmed):
            break
        captured.append(line)

    query = "\n".join(captured).strip()
    return query or None


def extract_query(response: str) -> str:
    """Best-effort candidate query from a provider response.

    Order: a ``kql``/``kusto`` fenced block, then the first non-empty fenced
    block, then a line scan from the first query-looking line up to the first
    line of prose, then the whole response. Never raises.
    """
    response = response.strip()
    selected = _fenced_query(response) if "```" in response else None
    if selected is None:
        selected = _scanned_query(response)
    if selected is None:
        selected = response
    return strip_inline_delimiters(selected)
