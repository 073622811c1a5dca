"""Tests for layered configuration loading."""

from pathlib import Path

import pytest

from kql_assist.config import (
    ConfigError,
    Settings,
    ValidationConfig,
    load_config_file,
    load_settings,
    load_validation_config,
)


class TestDefaults:
    """Built-in defaults."""

    def test_validation_defaults(self) -> None:
        config = load_validation_config(file_config={})
        assert config == ValidationConfig()
        assert config.enabled is True
        assert config.strict is False
        assert config.retries == 2
        assert config.feedback.errors and config.feedback.hints
        assert config.temperature.adjust is True

    def test_settings_defaults(self) -> None:
        settings = load_settings(file_config={})
        assert settings.provider == "ollama"
        assert settings.resolved_model == "llama3.2"
        assert settings.temperature == 0.2


class TestConfigFile:
    """YAML config file loading."""

    def test_missing_file(self, tmp_path: Path) -> None:
        assert load_config_file(tmp_path / "nope.yaml") == {}

    def test_reads_ai_section(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "ai:\n"
            "  provider: azure\n"
            "  model: gpt-4o-mini\n"
            "  validation:\n"
            "    retries: 4\n"
            "    feedback:\n"
            "      hints: false\n"
            "    temperature:\n"
            "      max: 0.8\n",
            encoding="utf-8",
        )
        section = load_config_file(path)
        settings = load_settings(file_config=section)
        validation = load_validation_config(file_config=section)

        assert settings.provider == "azure"
        assert settings.model == "gpt-4o-mini"
        assert validation.retries == 4
        assert validation.feedback.hints is False
        assert validation.feedback.errors is True
        assert validation.temperature.max == 0.8

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("ai: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigError, match="not valid YAML"):
            load_config_file(path)

    def test_non_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config_file(path)

    def test_default_path_from_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "custom.yaml"
        path.write_text("ai:\n  provider: openai\n", encoding="utf-8")
        monkeypatch.setenv("KQL_CONFIG", str(path))
        assert load_config_file() == {"provider": "openai"}

    def test_nested_provider_sections(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "ai:\n"
            "  provider: azure\n"
            "  temperature: 0.3\n"
            "  ollama:\n"
            "    endpoint: http://gpu-box:11434/\n"
            "  instructlab:\n"
            "    endpoint: http://lab:8000\n"
            "  azure:\n"
            "    endpoint: https://example.openai.azure.com\n"
            "    deployment: kql-gen\n"
            "    api_key: secret\n"
            "  vertex:\n"
            "    project: my-project\n"
            "    location: us-central1\n"
            "  validation:\n"
            "    strict: true\n",
            encoding="utf-8",
        )
        section = load_config_file(path)
        settings = load_settings(file_config=section)

        assert settings.provider == "azure"
        assert settings.temperature == 0.3
        assert settings.ollama_endpoint == "http://gpu-box:11434"
        assert settings.instructlab_endpoint == "http://lab:8000"
        assert settings.azure_endpoint == "https://example.openai.azure.com"
        assert settings.azure_deployment == "kql-gen"
        assert settings.azure_api_key == "secret"
        assert load_validation_config(file_config=section).strict is True

    def test_unknown_key_in_provider_section(self) -> None:
        with pytest.raises(ConfigError, match="ollama_port"):
            load_settings(file_config={"ollama": {"port": 11434}})


class TestLayering:
    """Override order: file, environment, preset, no-feedback, flags."""

    def test_env_over_file(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KQL_AI_PROVIDER", "instructlab")
        monkeypatch.setenv("KQL_VALIDATE_STRICT", "1")
        settings = load_settings(file_config={"provider": "azure"})
        validation = load_validation_config(file_config={"validation": {"strict": False}})
        assert settings.provider == "instructlab"
        assert validation.strict is True

    def test_azure_openai_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AZURE_OPENAI_ENDPOINT", "https://x.openai.azure.com")
        monkeypatch.setenv("AZURE_OPENAI_DEPLOYMENT", "gpt4o")
        monkeypatch.setenv("AZURE_OPENAI_API_KEY", "k")
        settings = load_settings(file_config={})
        assert settings.azure_endpoint == "https://x.openai.azure.com"
        assert settings.azure_deployment == "gpt4o"
        assert settings.azure_api_key == "k"

    def test_kql_azure_alias(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KQL_AZURE_DEPLOYMENT", "alias")
        assert load_settings(file_config={}).azure_deployment == "alias"

    def test_command_defaults_are_lowest_layer(self, monkeypatch: pytest.MonkeyPatch) -> None:
        assert load_settings(file_config={}, defaults={"temperature": 0.1}).temperature == 0.1
        assert load_settings(
            file_config={"temperature": 0.4}, defaults={"temperature": 0.1}
        ).temperature == 0.4
        monkeypatch.setenv("KQL_AI_TEMPERATURE", "0.6")
        assert load_settings(
            file_config={"temperature": 0.4}, defaults={"temperature": 0.1}
        ).temperature == 0.6

    def test_env_disables_validation(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KQL_VALIDATE", "false")
        assert load_validation_config(file_config={}).enabled is False

    def test_flags_over_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KQL_AI_MODEL", "from-env")
        settings = load_settings({"model": "from-flag", "provider": None}, file_config={})
        assert settings.model == "from-flag"

    def test_preset_then_flags(self) -> None:
        config = load_validation_config({"retries": 1}, preset="thorough", file_config={})
        assert config.retries == 1
        assert config.feedback.progressive is True

    def test_minimal_preset(self) -> None:
        config = load_validation_config(preset="minimal", file_config={})
        assert config.retries == 0
        assert config.feedback.hints is False
        assert config.feedback.examples is False
        assert config.feedback.errors is True

    def test_strict_preset(self) -> None:
        config = load_validation_config(preset="strict", file_config={})
        assert config.strict is True
        assert config.retries == 3

    def test_unknown_preset(self) -> None:
        with pytest.raises(ConfigError, match="Unknown preset"):
            load_validation_config(preset="turbo", file_config={})

    def test_no_feedback_then_individual_toggle(self) -> None:
        config = load_validation_config(
            {"feedback": {"errors": True, "hints": None}},
            no_feedback=True,
            file_config={},
        )
        assert config.feedback.errors is True
        assert config.feedback.hints is False
        assert config.feedback.examples is False
        assert config.feedback.progressive is False


class TestValidationErrors:
    """Invalid values surface as ConfigError."""

    def test_negative_retries(self) -> None:
        with pytest.raises(ConfigError, match="retries"):
            load_validation_config({"retries": -1}, file_config={})

    def test_non_positive_increment(self) -> None:
        with pytest.raises(ConfigError, match="increment"):
            load_validation_config({"temperature": {"increment": 0}}, file_config={})

    def test_unknown_provider(self) -> None:
        with pytest.raises(ConfigError, match="provider"):
            load_settings({"provider": "bard"}, file_config={})

    def test_unknown_file_key(self) -> None:
        with pytest.raises(ConfigError):
            load_validation_config(file_config={"validation": {"retry": 3}})

    def test_redacted(self) -> None:
        settings = Settings(provider="openai", openai_api_key="sk-secret")
        redacted = settings.redacted()
        assert redacted["openai_api_key"] == "***"
        assert redacted["azure_api_key"] == "(not set)"
        assert redacted["model"] == "gpt-4o-mini"
