"""Unit tests for provider config and the settings store."""
import json

import pytest
from hypothesis import given
from hypothesis import strategies as st

from wukan.llm import DEFAULT_CONFIG, AIConfig, ConfigurationError, ServiceProvider
from wukan.llm.models import BAILIAN_BASE_URL
from wukan.settings import SettingsStore, apply_env_overrides, default_settings_path


class TestAIConfig:
    """Tests for the AIConfig model."""

    def test_defaults(self):
        """Test the shipped default config."""
        assert DEFAULT_CONFIG.provider == ServiceProvider.BAILIAN
        assert DEFAULT_CONFIG.api_key == ""
        assert DEFAULT_CONFIG.model_name == "qwen3-max"
        assert DEFAULT_CONFIG.base_url == BAILIAN_BASE_URL

    def test_gemini_needs_no_base_url(self):
        """Test that Gemini only requires an API key."""
        AIConfig(provider=ServiceProvider.GEMINI, api_key="k").validate_for_request()

    @pytest.mark.parametrize("provider", [ServiceProvider.BAILIAN, ServiceProvider.CUSTOM])
    def test_sse_providers_need_base_url(self, provider):
        """Test that OpenAI-compatible providers require a base URL."""
        with pytest.raises(ConfigurationError, match="Base URL"):
            AIConfig(provider=provider, api_key="k").validate_for_request()

    @given(st.sampled_from(list(ServiceProvider)))
    def test_key_always_required(self, provider):
        """Property test: no provider accepts an empty key."""
        with pytest.raises(ConfigurationError, match="API Key"):
            AIConfig(provider=provider, base_url="https://x.example").validate_for_request()

    def test_provider_presets(self):
        """Test the fields each provider switch resets."""
        custom = AIConfig(
            provider=ServiceProvider.CUSTOM, api_key="k", model_name="m", base_url="https://x.example"
        )

        bailian = custom.with_provider(ServiceProvider.BAILIAN)
        assert bailian.base_url == BAILIAN_BASE_URL
        assert bailian.model_name == "qwen-plus"
        assert bailian.api_key == "k"

        gemini = custom.with_provider(ServiceProvider.GEMINI)
        assert gemini.model_name == "gemini-2.5-flash"
        assert gemini.base_url == "https://x.example"

        assert bailian.with_provider(ServiceProvider.CUSTOM).model_name == "qwen-plus"

    def test_config_is_frozen(self):
        """Test that edits must go through copies."""
        with pytest.raises(ValueError):
            DEFAULT_CONFIG.api_key = "changed"  # type: ignore

    def test_camel_case_blob(self):
        """Test that the persisted blob uses camelCase keys."""
        blob = json.loads(DEFAULT_CONFIG.model_dump_json(by_alias=True))
        assert set(blob) == {"provider", "apiKey", "modelName", "baseUrl"}
        assert AIConfig.model_validate(blob) == DEFAULT_CONFIG


class TestSettingsStore:
    """Tests for JSON persistence."""

    def test_missing_file_gives_defaults(self, tmp_path):
        """Test that a fresh install loads the defaults."""
        assert SettingsStore(tmp_path / "config.json").load() == DEFAULT_CONFIG

    def test_corrupt_file_gives_defaults(self, tmp_path):
        """Test that an unreadable blob is ignored."""
        path = tmp_path / "config.json"
        path.write_text("{not json", encoding="utf-8")
        assert SettingsStore(path).load() == DEFAULT_CONFIG

        path.write_text('{"provider": "NOPE"}', encoding="utf-8")
        assert SettingsStore(path).load() == DEFAULT_CONFIG

    def test_save_and_load(self, tmp_path):
        """Test that a saved config is read back unchanged."""
        store = SettingsStore(tmp_path / "nested" / "config.json")
        config = AIConfig(provider=ServiceProvider.GEMINI, api_key="secret", model_name="gemini-2.5-pro")

        store.save(config)

        assert store.load() == config
        assert json.loads(store.path.read_text(encoding="utf-8"))["apiKey"] == "secret"

    def test_reads_web_app_blob_format(self, tmp_path):
        """Test compatibility with the web app's stored settings."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "provider": "CUSTOM",
            "apiKey": "sk-1",
            "modelName": "deepseek-r1",
            "baseUrl": "https://api.example.com/v1",
        }), encoding="utf-8")

        config = SettingsStore(path).load()

        assert config.provider == ServiceProvider.CUSTOM
        assert config.model_name == "deepseek-r1"

    def test_update_applies_preset_then_changes(self, tmp_path):
        """Test that explicit values win over the provider preset."""
        store = SettingsStore(tmp_path / "config.json")

        config = store.update(provider=ServiceProvider.GEMINI, api_key="k", model_name="gemini-2.5-pro")

        assert config.provider == ServiceProvider.GEMINI
        assert config.model_name == "gemini-2.5-pro"
        assert store.load() == config

    def test_update_ignores_unset_fields(self, tmp_path):
        """Test that None values leave fields untouched."""
        store = SettingsStore(tmp_path / "config.json")
        store.update(api_key="first")

        config = store.update(api_key=None, model_name="qwen-max")

        assert config.api_key == "first"
        assert config.model_name == "qwen-max"

    def test_default_path_env_override(self, tmp_path, monkeypatch):
        """Test that WUKAN_CONFIG_PATH moves the settings file."""
        monkeypatch.setenv("WUKAN_CONFIG_PATH", str(tmp_path / "alt.json"))
        assert default_settings_path() == tmp_path / "alt.json"


class TestEnvOverrides:
    """Tests for environment overrides."""

    def test_overrides_apply(self):
        """Test that WUKAN_* variables replace fields."""
        config = apply_env_overrides(DEFAULT_CONFIG, {
            "WUKAN_PROVIDER": "gemini",
            "WUKAN_API_KEY": "env-key",
            "WUKAN_MODEL": "gemini-2.5-pro",
        })

        assert config.provider == ServiceProvider.GEMINI
        assert config.api_key == "env-key"
        assert config.model_name == "gemini-2.5-pro"
        assert config.base_url == DEFAULT_CONFIG.base_url

    def test_no_overrides_returns_same_config(self):
        """Test that an empty environment changes nothing."""
        assert apply_env_overrides(DEFAULT_CONFIG, {}) is DEFAULT_CONFIG

    def test_unknown_provider(self):
        """Test that a bad provider name is reported."""
        with pytest.raises(ValueError, match="Unknown provider"):
            apply_env_overrides(DEFAULT_CONFIG, {"WUKAN_PROVIDER": "openai"})
