"""Typed generation request and result passed through the retry controller."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class GenerationRequest:
    """Immutable input for one generate or repair invocation.

    ``prompt`` is a natural-language description for generation, or the broken
    query text for repair.
    """

    prompt: str
    table: str = ""
    schema: str = ""


@dataclass(frozen=True)
class Diagnostic:
    """One positioned validator message (1-based line and column)."""

    line: int
    column: int
    message: str

    def __str__(self) -> str:
        return f"Line {self.line}, Column {self.column}: {self.message}"


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of a controller run."""

    query: str
    valid: bool
    attempts: int
    errors: list[Diagnostic] = field(default_factory=list)
