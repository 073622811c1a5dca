"""Query validation boundary and diagnostic parsing."""

from kql_assist.validation.diagnostics import parse_diagnostic, parse_diagnostics
from kql_assist.validation.validator import (
    CommandValidator,
    LintRecord,
    ValidationMode,
    Validator,
    ValidatorError,
)

__all__ = [
    "CommandValidator",
    "LintRecord",
    "ValidationMode",
    "Validator",
    "ValidatorError",
    "parse_diagnostic",
    "parse_diagnostics",
]
