"""Prompt builders for query generation, repair, and retry feedback."""

from __future__ import annotations

from collections.abc import Sequence

from kql_assist.config import FeedbackConfig
from kql_assist.generation.classifier import (
    error_examples,
    error_hints,
    progressive_emphasis,
)
from kql_assist.models.generation import Diagnostic, GenerationRequest

RETRY_SEPARATOR = "\n\n---\n\n"

CLOSING_INSTRUCTION = "Please fix these errors and provide a corrected query."

_GENERATE_PREAMBLE = """\
You are a Kusto Query Language (KQL) expert. Generate a KQL query based on the user's natural language description.

Rules:
1. Output ONLY the raw KQL query, no explanations
2. Do NOT wrap the query in backticks or code blocks
3. Use proper KQL syntax and operators
4. Include comments only if the query is complex
5. Prefer efficient query patterns
"""

_REPAIR_PREAMBLE = """\
You are a Kusto Query Language (KQL) expert. Fix the syntax errors in the following query.

Rules:
1. Output ONLY the corrected KQL query
2. Do NOT wrap the query in backticks or code blocks
3. Preserve the original intent of the query
4. Make minimal changes to fix the errors
5. Do not add features or optimizations, only fix errors
"""


def fenced(query: str) -> str:
    return f"```kql\n{query}\n```"


def _section(title: str, lines: Sequence[str]) -> str:
    return title + "\n" + "".join(f"{line}\n" for line in lines) + "\n"


class PromptBuilder:
    """Builds the first-attempt prompt and the feedback prompts for retries."""

    def initial(self, request: GenerationRequest) -> str:
        parts = [_GENERATE_PREAMBLE]
        if request.table:
            parts.append(f"\nTarget table: {request.table}\n")
        if request.schema:
            parts.append(f"Available columns: {request.schema}\n")
        parts.append(f"\nDescription: {request.prompt}\n")
        parts.append("\nGenerate the KQL query:")
        return "".join(parts)

    def retry(
        self,
        request: GenerationRequest,
        failed_query: str,
        errors: Sequence[Diagnostic],
        attempt: int,
        feedback: FeedbackConfig,
    ) -> str:
        """Initial prompt plus the failed candidate and the feedback sections.

        Sections appear in the order errors, hints, examples, emphasis; empty
        ones are left out.
        """
        parts = [
            self.initial(request),
            RETRY_SEPARATOR,
            "Your previous attempt had syntax errors:\n\n",
            fenced(failed_query),
            "\n\n",
        ]

        if feedback.errors and errors:
            parts.append(_section("Errors:", [f"- {error}" for error in errors]))

        if feedback.hints:
            hints = error_hints(errors)
            if hints:
                parts.append(_section("Hints:", [f"- {hint}" for hint in hints]))

        if feedback.examples:
            examples = error_examples(errors, attempt, feedback.progressive)
            if examples:
                parts.append(_section("Correct syntax examples:", examples))

        emphasis = progressive_emphasis(attempt, feedback.progressive)
        if emphasis:
            parts.append(emphasis + "\n\n")

        parts.append(CLOSING_INSTRUCTION)
        return "".join(parts)


class RepairPromptBuilder(PromptBuilder):
    """Prompt builder whose first attempt asks to fix ``request.prompt``.

    ``diagnostics`` are the validator errors of the original broken query.
    """

    def __init__(self, diagnostics: Sequence[Diagnostic]) -> None:
        self.diagnostics = list(diagnostics)

    def initial(self, request: GenerationRequest) -> str:
        parts = [_REPAIR_PREAMBLE]
        if request.table:
            parts.append(f"\nTarget table: {request.table}\n")
        if request.schema:
            parts.append(f"Available columns: {request.schema}\n")
        if self.diagnostics:
            parts.append("\nErrors found:\n")
            parts.extend(
                f"{index}. {error}\n"
                for index, error in enumerate(self.diagnostics, start=1)
            )
        parts.append(f"\nOriginal query with errors:\n{fenced(request.prompt)}\n")
        parts.append("\nOutput the corrected query:")
        return "".join(parts)
