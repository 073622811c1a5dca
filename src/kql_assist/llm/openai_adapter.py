"""OpenAI-style chat completion providers (OpenAI, InstructLab, Azure OpenAI)."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from kql_assist.llm.base import Provider, ProviderError
from kql_assist.llm.transport import post_json


def _extract_message_content(payload: dict[str, object], label: str) -> str:
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        raise ProviderError(f"{label} response is missing choices.")

    first = choices[0]
    if not isinstance(first, dict):
        raise ProviderError(f"{label} response has invalid choice format.")

    message = first.get("message")
    if not isinstance(message, dict):
        raise ProviderError(f"{label} response is missing message content.")

    content = message.get("content")
    if not isinstance(content, str) or not content.strip():
        raise ProviderError(f"{label} message content is empty.")
    return content


@dataclass(frozen=True)
class OpenAICompatibleProvider(Provider):
    """Chat Completions API client for OpenAI and compatible local servers."""

    base_url: str
    model_name: str
    api_key: str = ""
    provider_name: str = "openai"
    timeout_seconds: int = 60

    @property
    def name(self) -> str:
        return self.provider_name

    @property
    def model(self) -> str:
        return self.model_name

    def complete(
        self,
        prompt: str,
        temperature: float,
        *,
        timeout: float | None = None,
    ) -> str:
        body = {
            "model": self.model_name,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        payload = post_json(
            self.base_url.rstrip("/") + "/chat/completions",
            body,
            headers=headers,
            timeout=self.timeout_seconds if timeout is None else timeout,
            label=self.provider_name,
        )
        return _extract_message_content(payload, self.provider_name)


@dataclass(frozen=True)
class AzureOpenAIProvider(Provider):
    """Azure OpenAI deployment client using key authentication."""

    endpoint: str
    deployment: str
    api_key: str
    api_version: str = "2024-06-01"
    model_name: str = "gpt-4o"
    timeout_seconds: int = 60

    @property
    def name(self) -> str:
        return "azure"

    @property
    def model(self) -> str:
        return self.model_name

    def complete(
        self,
        prompt: str,
        temperature: float,
        *,
        timeout: float | None = None,
    ) -> str:
        endpoint = (
            f"{self.endpoint.rstrip('/')}/openai/deployments/"
            f"{quote(self.deployment, safe='')}/chat/completions"
            f"?api-version={quote(self.api_version, safe='')}"
        )
        body = {
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        payload = post_json(
            endpoint,
            body,
            headers={"api-key": self.api_key},
            timeout=self.timeout_seconds if timeout is None else timeout,
            label="Azure OpenAI",
        )
        return _extract_message_content(payload, "Azure OpenAI")
