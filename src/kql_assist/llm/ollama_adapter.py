"""Ollama implementation of the provider interface."""

from __future__ import annotations

from dataclasses import dataclass

from kql_assist.llm.base import Provider, ProviderError
from kql_assist.llm.transport import post_json


@dataclass(frozen=True)
class OllamaProvider(Provider):
    """Generate text with a local Ollama server's chat endpoint."""

    endpoint: str
    model_name: str
    timeout_seconds: int = 60

    @property
    def name(self) -> str:
        return "ollama"

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
            "messages": [{"role": "user", "content": prompt}],
            "stream": False,
            "options": {"temperature": temperature},
        }
        payload = post_json(
            self.endpoint.rstrip("/") + "/api/chat",
            body,
            timeout=self.timeout_seconds if timeout is None else timeout,
            label="Ollama",
        )

        message = payload.get("message")
        if not isinstance(message, dict):
            raise ProviderError("Ollama response is missing message content.")
        content = message.get("content")
        if not isinstance(content, str):
            raise ProviderError("Ollama message content is not a string.")
        return content
