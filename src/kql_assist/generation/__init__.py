"""Retry controller and the heuristics it relies on."""

from kql_assist.generation.classifier import error_examples, error_hints
from kql_assist.generation.controller import generate_with_validation
from kql_assist.generation.extract import extract_query
from kql_assist.generation.report import (
    format_validation_error,
    format_validation_warning,
)
from kql_assist.generation.temperature import attempt_temperature

__all__ = [
    "attempt_temperature",
    "error_examples",
    "error_hints",
    "extract_query",
    "format_validation_error",
    "format_validation_warning",
    "generate_with_validation",
]
