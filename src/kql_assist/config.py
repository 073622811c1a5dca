"""Application configuration loading and validation."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("ollama", "instructlab", "azure", "openai")

DEFAULT_MODELS = {
    "ollama": "llama3.2",
    "instructlab": "default",
    "azure": "gpt-4o",
    "openai": "gpt-4o-mini",
}

DEFAULT_CONFIG_PATH = Path("~/.kql/config.yaml")

# Per-provider sub-sections of the config file, e.g. ``ai.azure.endpoint``.
PROVIDER_BLOCKS = ("ollama", "instructlab", "azure", "openai")

# Provider sections this toolkit does not implement.
IGNORED_BLOCKS = ("vertex",)

PRESETS: dict[str, dict[str, Any]] = {
    "minimal": {"retries": 0, "feedback": {"hints": False, "examples": False}},
    "balanced": {},
    "thorough": {"retries": 5, "feedback": {"progressive": True}},
    "strict": {"strict": True, "retries": 3},
}


class ConfigError(ValueError):
    """Raised when configuration cannot be loaded safely."""


class FeedbackConfig(BaseModel):
    """Which kinds of feedback are injected into retry prompts."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    errors: bool = True
    hints: bool = True
    examples: bool = True
    progressive: bool = True


class TempAdjustConfig(BaseModel):
    """Per-attempt temperature increase policy."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    adjust: bool = True
    increment: float = Field(default=0.1, gt=0.0)
    max: float = Field(default=0.5, ge=0.0, le=2.0)


class ValidationConfig(BaseModel):
    """Retry and feedback policy for one controller run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = True
    strict: bool = False
    retries: int = Field(default=2, ge=0)
    feedback: FeedbackConfig = Field(default_factory=FeedbackConfig)
    temperature: TempAdjustConfig = Field(default_factory=TempAdjustConfig)


class Settings(BaseModel):
    """Provider and validator settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    provider: str = "ollama"
    model: str = ""
    temperature: float = Field(default=0.2, ge=0.0, le=1.0)
    ollama_endpoint: str = "http://localhost:11434"
    instructlab_endpoint: str = "http://localhost:8000"
    azure_endpoint: str = ""
    azure_deployment: str = ""
    azure_api_key: str = ""
    azure_api_version: str = "2024-06-01"
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    lint_command: str = "kql lint --format json"
    timeout_seconds: int = Field(default=60, gt=0)

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in SUPPORTED_PROVIDERS:
            raise ValueError(
                f"unknown provider {value!r} "
                f"(supported: {', '.join(SUPPORTED_PROVIDERS)})."
            )
        return normalized

    @field_validator("lint_command")
    @classmethod
    def validate_lint_command(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("value cannot be empty.")
        return normalized

    @field_validator("ollama_endpoint", "instructlab_endpoint", "azure_endpoint")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @property
    def resolved_model(self) -> str:
        return self.model.strip() or DEFAULT_MODELS[self.provider]

    def redacted(self) -> dict[str, object]:
        """Settings as a dict with secrets masked for display."""
        payload = self.model_dump()
        for key in ("azure_api_key", "openai_api_key"):
            payload[key] = "***" if payload[key] else "(not set)"
        payload["model"] = self.resolved_model
        return payload


def _env_value(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name, default)
    if value is None:
        return None
    return value.strip()


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        if isinstance(value, Mapping):
            current = merged.get(key)
            merged[key] = _deep_merge(
                dict(current) if isinstance(current, Mapping) else {}, value
            )
        else:
            merged[key] = value
    return merged


def _format_validation_error(exc: ValidationError) -> str:
    messages = []
    for err in exc.errors():
        field = ".".join(str(item) for item in err["loc"])
        messages.append(f"- {field}: {err['msg']}")
    return "Invalid configuration values:\n" + "\n".join(messages)


def config_file_path() -> Path:
    return Path(_env_value("KQL_CONFIG") or DEFAULT_CONFIG_PATH).expanduser()


def load_config_file(path: Path | None = None) -> dict[str, Any]:
    """Return the ``ai`` section of the YAML config file.

    A missing file yields an empty mapping.
    """
    config_path = path or config_file_path()
    try:
        raw = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug("No config file at %s", config_path)
        return {}
    except OSError as exc:
        raise ConfigError(f"Could not read config file {config_path}: {exc}") from exc

    try:
        document = yaml.safe_load(raw) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file {config_path} is not valid YAML: {exc}") from exc

    if not isinstance(document, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping.")
    section = document.get("ai") or {}
    if not isinstance(section, dict):
        raise ConfigError(f"Config file {config_path}: 'ai' must be a mapping.")
    logger.debug("Loaded config file %s", config_path)
    return section


def _first_env(*names: str) -> str | None:
    for name in names:
        value = _env_value(name)
        if value:
            return value
    return None


def _flatten_provider_blocks(section: Mapping[str, Any]) -> dict[str, Any]:
    """Map ``ollama: {endpoint: ...}`` style blocks onto flat setting names."""
    flat: dict[str, Any] = {}
    for key, value in section.items():
        if key in IGNORED_BLOCKS:
            logger.debug("Ignoring unsupported %r section in config file", key)
            continue
        if key in PROVIDER_BLOCKS and isinstance(value, Mapping):
            for name, item in value.items():
                flat[f"{key}_{name}"] = item
            continue
        flat[key] = value
    return flat


def _settings_from_env() -> dict[str, Any]:
    return {
        "provider": _env_value("KQL_AI_PROVIDER"),
        "model": _env_value("KQL_AI_MODEL"),
        "temperature": _env_value("KQL_AI_TEMPERATURE"),
        "ollama_endpoint": _env_value("KQL_OLLAMA_ENDPOINT"),
        "instructlab_endpoint": _env_value("KQL_INSTRUCTLAB_ENDPOINT"),
        "azure_endpoint": _first_env("AZURE_OPENAI_ENDPOINT", "KQL_AZURE_ENDPOINT"),
        "azure_deployment": _first_env(
            "AZURE_OPENAI_DEPLOYMENT", "KQL_AZURE_DEPLOYMENT"
        ),
        "azure_api_key": _first_env("AZURE_OPENAI_API_KEY", "KQL_AZURE_API_KEY"),
        "openai_api_key": _env_value("OPENAI_API_KEY"),
        "lint_command": _env_value("KQL_LINT_COMMAND"),
    }


def _validation_from_env() -> dict[str, Any]:
    payload: dict[str, Any] = {}
    validate = _env_value("KQL_VALIDATE")
    if validate in ("false", "0"):
        payload["enabled"] = False
    strict = _env_value("KQL_VALIDATE_STRICT")
    if strict in ("true", "1"):
        payload["strict"] = True
    retries = _env_value("KQL_VALIDATE_RETRIES")
    if retries:
        payload["retries"] = retries
    return payload


def load_settings(
    overrides: Mapping[str, Any] | None = None,
    *,
    file_config: Mapping[str, Any] | None = None,
    defaults: Mapping[str, Any] | None = None,
) -> Settings:
    """Load settings from defaults, config file, environment, then overrides.

    ``defaults`` replaces built-in field defaults for one command, below every
    other layer. ``None`` values in any layer mean "not set" and never mask a
    lower layer.
    """
    section = dict(load_config_file() if file_config is None else file_config)
    section.pop("validation", None)

    payload: dict[str, Any] = {}
    payload = _deep_merge(payload, defaults or {})
    payload = _deep_merge(payload, _flatten_provider_blocks(section))
    payload = _deep_merge(payload, _settings_from_env())
    payload = _deep_merge(payload, overrides or {})

    try:
        return Settings.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(_format_validation_error(exc)) from exc


def load_validation_config(
    overrides: Mapping[str, Any] | None = None,
    *,
    preset: str | None = None,
    no_feedback: bool = False,
    file_config: Mapping[str, Any] | None = None,
) -> ValidationConfig:
    """Build the retry policy for one run.

    Layers, lowest first: defaults, config file ``ai.validation``, environment,
    named preset, ``no_feedback``, explicit overrides.
    """
    section = load_config_file() if file_config is None else file_config
    file_validation = section.get("validation") or {}
    if not isinstance(file_validation, Mapping):
        raise ConfigError("Config file: 'ai.validation' must be a mapping.")

    payload: dict[str, Any] = {}
    payload = _deep_merge(payload, file_validation)
    payload = _deep_merge(payload, _validation_from_env())

    if preset:
        if preset not in PRESETS:
            raise ConfigError(
                f"Unknown preset {preset!r} (available: {', '.join(PRESETS)})."
            )
        payload = _deep_merge(payload, PRESETS[preset])

    if no_feedback:
        payload = _deep_merge(
            payload,
            {
                "feedback": {
                    "errors": False,
                    "hints": False,
                    "examples": False,
                    "progressive": False,
                }
            },
        )

    payload = _deep_merge(payload, overrides or {})

    try:
        return ValidationConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(_format_validation_error(exc)) from exc
