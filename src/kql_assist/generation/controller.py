"""Generate, validate, and repair loop around a text-generation provider."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, TextIO

from kql_assist.config import ValidationConfig
from kql_assist.generation.extract import extract_query
from kql_assist.generation.temperature import attempt_temperature
from kql_assist.llm.base import Deadline, GenerationCancelled, Provider, ProviderError
from kql_assist.models.generation import Diagnostic, GenerationRequest, GenerationResult
from kql_assist.validation.diagnostics import parse_diagnostics
from kql_assist.validation.validator import Validator

if TYPE_CHECKING:
    from kql_assist.prompts.generation import PromptBuilder

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_NAME = "generated.kql"


def _call_provider(
    provider: Provider,
    prompt: str,
    temperature: float,
    deadline: Deadline,
    attempt: int,
) -> str:
    deadline.check()
    try:
        response = provider.complete(
            prompt, temperature, timeout=deadline.remaining()
        )
    except ProviderError as exc:
        if deadline.cancelled or deadline.remaining() == 0:
            raise GenerationCancelled(
                f"generating query (attempt {attempt}): deadline exceeded"
            ) from exc
        raise ProviderError(f"generating query (attempt {attempt}): {exc}") from exc
    deadline.check()
    return response


def generate_with_validation(
    provider: Provider,
    validator: Validator,
    request: GenerationRequest,
    config: ValidationConfig,
    *,
    base_temperature: float,
    prompt_builder: PromptBuilder,
    extractor: Callable[[str], str] = extract_query,
    deadline: Deadline | None = None,
    source_name: str = DEFAULT_SOURCE_NAME,
    verbose: TextIO | None = None,
    debug: TextIO | None = None,
) -> GenerationResult:
    """Generate a query and retry with validator feedback until it is valid.

    Makes at most ``config.retries + 1`` provider calls and stops at the first
    candidate with no diagnostics. An exhausted budget is returned as
    ``valid=False`` with the last attempt's candidate and diagnostics.

    Provider failures and deadline expiry are raised, never retried.
    ``verbose`` and ``debug`` only receive progress text.
    """
    deadline = deadline or Deadline()

    if not config.enabled:
        response = _call_provider(
            provider, prompt_builder.initial(request), base_temperature, deadline, 1
        )
        logger.info("Validation disabled; returning first candidate unchecked")
        return GenerationResult(query=extractor(response), valid=True, attempts=1)

    max_attempts = config.retries + 1
    last_query = ""
    last_errors: list[Diagnostic] = []

    for attempt in range(1, max_attempts + 1):
        if attempt == 1:
            prompt = prompt_builder.initial(request)
        else:
            prompt = prompt_builder.retry(
                request, last_query, last_errors, attempt, config.feedback
            )

        temperature = attempt_temperature(base_temperature, attempt, config.temperature)

        if verbose is not None:
            if attempt == 1:
                print(f"Attempt {attempt}/{max_attempts}: generating...", file=verbose)
            else:
                print(
                    f"Attempt {attempt}/{max_attempts}: retrying with error "
                    f"feedback (temp={temperature:.2f})...",
                    file=verbose,
                )
        logger.debug(
            "Attempt %d/%d at temperature %.2f", attempt, max_attempts, temperature
        )

        response = _call_provider(provider, prompt, temperature, deadline, attempt)
        if debug is not None:
            print(
                f"--- Raw LLM Response (attempt {attempt}) ---\n{response}\n"
                "--- End Raw Response ---",
                file=debug,
            )

        last_query = extractor(response)
        if debug is not None:
            print(
                f"--- Extracted KQL ---\n{last_query}\n--- End Extracted ---\n",
                file=debug,
            )

        last_errors = parse_diagnostics(validator.validate(source_name, last_query))
        if not last_errors:
            if verbose is not None:
                print("  ✓ Valid KQL", file=verbose)
            logger.info("Valid query after %d attempt(s)", attempt)
            return GenerationResult(query=last_query, valid=True, attempts=attempt)

        if verbose is not None:
            print(f"  ✗ {len(last_errors)} syntax error(s)", file=verbose)
            for error in last_errors:
                print(
                    f"    Line {error.line}, Col {error.column}: {error.message}",
                    file=verbose,
                )
        logger.info(
            "Attempt %d/%d produced %d diagnostic(s)",
            attempt,
            max_attempts,
            len(last_errors),
        )

    return GenerationResult(
        query=last_query,
        valid=False,
        attempts=max_attempts,
        errors=last_errors,
    )
