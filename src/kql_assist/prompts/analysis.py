"""Prompts for explaining and reviewing existing queries."""

from __future__ import annotations

from kql_assist.prompts.generation import fenced

FOCUS_AREAS = ("performance", "readability", "correctness", "all")

KNOWN_OPERATORS = (
    "where", "project", "extend", "summarize", "join", "union",
    "take", "top", "sort", "order", "distinct", "count", "limit",
    "mv-expand", "mv-apply", "parse", "evaluate", "render",
    "make-series", "lookup", "fork", "facet", "find", "search",
)

_FOCUS_INSTRUCTIONS = {
    "performance": """\
Focus specifically on PERFORMANCE optimizations:
- Query execution efficiency
- Reducing data scanned (filter early)
- Join strategies and hints
- Aggregation optimizations
- Avoiding expensive operations""",
    "readability": """\
Focus specifically on READABILITY improvements:
- Code clarity and structure
- Naming conventions
- Comments where helpful
- Breaking complex queries into steps
- Using let statements for reusability""",
    "correctness": """\
Focus specifically on CORRECTNESS issues:
- Potential logic errors
- Edge cases not handled
- Type mismatches
- Null handling
- Time zone considerations
- Off-by-one errors in ranges""",
    "all": """\
Analyze the query for:
1. PERFORMANCE - efficiency and speed improvements
2. READABILITY - clarity and maintainability
3. CORRECTNESS - potential bugs or logic issues""",
}


def operators_used(query: str) -> list[str]:
    lowered = query.lower()
    return [
        op for op in KNOWN_OPERATORS if f"| {op}" in lowered or f"|{op}" in lowered
    ]


def query_analysis(query: str, diagnostics: list[str]) -> str:
    """Short validator verdict and operator summary used as prompt context."""
    lines = ["Query analysis:"]
    if diagnostics:
        lines.append(f"- Syntax errors: {len(diagnostics)}")
        lines.extend(f"  - {item}" for item in diagnostics)
    else:
        lines.append("- Syntax: valid")
    operators = operators_used(query)
    if operators:
        lines.append(f"- Operators used: {', '.join(operators)}")
    return "\n".join(lines)


def build_explain_prompt(query: str, context: str = "") -> str:
    prompt = (
        "You are a Kusto Query Language (KQL) expert. Explain the following KQL "
        "query in clear, concise terms.\n\n"
        "Describe:\n"
        "1. What data sources the query uses\n"
        "2. Any filtering or transformations applied\n"
        "3. The aggregations or computations performed\n"
        "4. What the output will look like\n\n"
        "Keep the explanation accessible to someone familiar with SQL but new to KQL."
    )
    if context:
        prompt += "\n\n" + context
    return prompt + "\n\nQuery:\n" + fenced(query)


def build_suggest_prompt(query: str, context: str, focus: str = "all") -> str:
    if focus not in _FOCUS_INSTRUCTIONS:
        raise ValueError(
            f"Unknown focus {focus!r} (available: {', '.join(FOCUS_AREAS)})."
        )
    return (
        "You are a Kusto Query Language (KQL) expert. Analyze the following query "
        "and provide specific, actionable suggestions for improvement.\n\n"
        f"{_FOCUS_INSTRUCTIONS[focus]}\n\n"
        "For each suggestion:\n"
        "1. Explain the issue or opportunity\n"
        "2. Show the specific change (before -> after)\n"
        "3. Explain the benefit\n\n"
        "If the query is already well-optimized, say so and explain why.\n\n"
        f"{context}\n\n"
        f"Query:\n{fenced(query)}"
    )
