"""Shared fixtures and stubs for kql-assist tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from kql_assist.llm.base import Provider, ProviderError
from kql_assist.validation.validator import Validator


class StubProvider(Provider):
    """Returns canned responses in order and records every call."""

    def __init__(self, responses: list[str | BaseException]) -> None:
        self.responses = list(responses)
        self.calls: list[tuple[str, float, float | None]] = []

    @property
    def name(self) -> str:
        return "stub"

    @property
    def model(self) -> str:
        return "stub-model"

    def complete(
        self,
        prompt: str,
        temperature: float,
        *,
        timeout: float | None = None,
    ) -> str:
        self.calls.append((prompt, temperature, timeout))
        index = min(len(self.calls), len(self.responses)) - 1
        response = self.responses[index]
        if isinstance(response, BaseException):
            raise response
        return response

    @property
    def prompts(self) -> list[str]:
        return [call[0] for call in self.calls]

    @property
    def temperatures(self) -> list[float]:
        return [call[1] for call in self.calls]


class StubValidator(Validator):
    """Validator driven by a function from query text to raw diagnostics."""

    def __init__(self, rule: Callable[[str], list[str]]) -> None:
        self.rule = rule
        self.seen: list[tuple[str, str]] = []

    def validate(self, source_name: str, text: str) -> list[str]:
        self.seen.append((source_name, text))
        return self.rule(text)


@pytest.fixture
def transport_error() -> ProviderError:
    return ProviderError("Ollama request failed: connection refused")


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Keep tests away from the user's config file and KQL_* environment."""
    monkeypatch.setenv("KQL_CONFIG", str(tmp_path / "missing-config.yaml"))
    for name in (
        "KQL_AI_PROVIDER",
        "KQL_AI_MODEL",
        "KQL_AI_TEMPERATURE",
        "KQL_OLLAMA_ENDPOINT",
        "KQL_INSTRUCTLAB_ENDPOINT",
        "KQL_AZURE_ENDPOINT",
        "KQL_AZURE_DEPLOYMENT",
        "KQL_AZURE_API_KEY",
        "AZURE_OPENAI_ENDPOINT",
        "AZURE_OPENAI_DEPLOYMENT",
        "AZURE_OPENAI_API_KEY",
        "OPENAI_API_KEY",
        "KQL_LINT_COMMAND",
        "KQL_VALIDATE",
        "KQL_VALIDATE_STRICT",
        "KQL_VALIDATE_RETRIES",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_provider() -> type[StubProvider]:
    return StubProvider


@pytest.fixture
def make_validator() -> type[StubValidator]:
    return StubValidator
