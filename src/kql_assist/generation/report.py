"""Caller-facing messages for results that failed validation."""

from __future__ import annotations

from kql_assist.models.generation import GenerationResult


def _diagnostic_lines(result: GenerationResult) -> str:
    return "".join(f"  {error}\n" for error in result.errors)


def format_validation_warning(result: GenerationResult) -> str:
    """Lenient-mode warning; the candidate is still printed afterwards."""
    return (
        "⚠ Warning: generated query has syntax errors "
        f"(after {result.attempts} attempt(s))\n" + _diagnostic_lines(result)
    )


def format_validation_error(result: GenerationResult, subject: str = "query") -> str:
    """Strict-mode error; the candidate is not emitted as a result.

    ``subject`` names what was being produced, e.g. ``"fix"`` for repairs.
    """
    return (
        f"Error: failed to generate valid {subject} "
        f"after {result.attempts} attempt(s)\n" + _diagnostic_lines(result)
    )
