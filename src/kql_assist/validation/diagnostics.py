"""Conversion of raw validator output into positioned diagnostics."""

from __future__ import annotations

import re

from kql_assist.models.generation import Diagnostic

_POSITIONED = re.compile(r"^[^:]+:(\d+):(\d+): (.+)$", re.DOTALL)


def parse_diagnostic(raw: str) -> Diagnostic:
    """Parse ``"<source>:<line>:<col>: <message>"``.

    Anything else is kept whole as the message at line 1, column 1.
    """
    match = _POSITIONED.match(raw)
    if match:
        return Diagnostic(
            line=int(match.group(1)),
            column=int(match.group(2)),
            message=match.group(3),
        )
    return Diagnostic(line=1, column=1, message=raw)


def parse_diagnostics(raw_items: list[str]) -> list[Diagnostic]:
    return [parse_diagnostic(item) for item in raw_items]
