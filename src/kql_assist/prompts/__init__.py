"""Prompt builders for kql-assist."""

from kql_assist.prompts.analysis import build_explain_prompt, build_suggest_prompt
from kql_assist.prompts.generation import PromptBuilder, RepairPromptBuilder

__all__ = [
    "PromptBuilder",
    "RepairPromptBuilder",
    "build_explain_prompt",
    "build_suggest_prompt",
]
