"""LLM providers and factory helpers."""

from kql_assist.config import SUPPORTED_PROVIDERS, ConfigError, Settings
from kql_assist.llm.base import (
    Deadline,
    GenerationCancelled,
    LLMError,
    Provider,
    ProviderError,
)
from kql_assist.llm.ollama_adapter import OllamaProvider
from kql_assist.llm.openai_adapter import AzureOpenAIProvider, OpenAICompatibleProvider


def create_provider(settings: Settings) -> Provider:
    """Create the provider selected by ``settings.provider``."""
    model = settings.resolved_model
    timeout = settings.timeout_seconds

    if settings.provider == "ollama":
        return OllamaProvider(
            endpoint=settings.ollama_endpoint,
            model_name=model,
            timeout_seconds=timeout,
        )
    if settings.provider == "instructlab":
        return OpenAICompatibleProvider(
            base_url=settings.instructlab_endpoint + "/v1",
            model_name=model,
            provider_name="instructlab",
            timeout_seconds=timeout,
        )
    if settings.provider == "openai":
        if not settings.openai_api_key:
            raise ConfigError("OPENAI_API_KEY is required for the openai provider.")
        return OpenAICompatibleProvider(
            base_url=settings.openai_base_url,
            model_name=model,
            api_key=settings.openai_api_key,
            timeout_seconds=timeout,
        )
    if settings.provider == "azure":
        missing = [
            name
            for name, value in (
                ("azure_endpoint", settings.azure_endpoint),
                ("azure_deployment", settings.azure_deployment),
                ("azure_api_key", settings.azure_api_key),
            )
            if not value
        ]
        if missing:
            raise ConfigError(
                "Azure OpenAI provider requires: " + ", ".join(missing) + "."
            )
        return AzureOpenAIProvider(
            endpoint=settings.azure_endpoint,
            deployment=settings.azure_deployment,
            api_key=settings.azure_api_key,
            api_version=settings.azure_api_version,
            model_name=model,
            timeout_seconds=timeout,
        )
    raise ConfigError(
        f"Unknown provider {settings.provider!r} "
        f"(supported: {', '.join(SUPPORTED_PROVIDERS)})."
    )


__all__ = [
    "AzureOpenAIProvider",
    "Deadline",
    "GenerationCancelled",
    "LLMError",
    "OllamaProvider",
    "OpenAICompatibleProvider",
    "Provider",
    "ProviderError",
    "create_provider",
]
