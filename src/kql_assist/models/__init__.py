"""Typed request and result models for query generation."""

from kql_assist.models.generation import Diagnostic, GenerationRequest, GenerationResult

__all__ = [
    "Diagnostic",
    "GenerationRequest",
    "GenerationResult",
]
