"""Tests for configuration management."""

from __future__ import annotations

from pathlib import Path

import pytest

from dungeon_companion.core.config import (
    NarratorSettings,
    SessionSettings,
    Settings,
    StorageSettings,
    clear_settings_cache,
    get_settings,
)
from dungeon_companion.core.exceptions import ConfigurationError


class TestNarratorSettings:
    """Tests for NarratorSettings configuration."""

    def test_default_values(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Test default narrator settings."""
        monkeypatch.chdir(tmp_path)
        settings = NarratorSettings()

        assert settings.provider == "claude"
        assert settings.max_tokens == 2048
        assert settings.summary_max_tokens == 1024
        assert settings.max_retries == 2

    def test_keys_from_environment(self, mock_env_vars: dict[str, str]) -> None:
        """Test API keys are read from prefixed env vars."""
        settings = NarratorSettings()

        assert settings.api_key_for("claude") == "test-claude-key"
        assert settings.api_key_for("openai") == "test-openai-key"

    def test_api_key_defaults_to_selected_provider(self) -> None:
        """Test api_key_for uses the configured provider by default."""
        settings = NarratorSettings(provider="openai", openai_api_key="sk-test")

        assert settings.api_key_for() == "sk-test"

    def test_missing_key_is_empty_string(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Test an absent key is reported as empty, not None."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("DUNGEON_COMPANION_CLAUDE_API_KEY", raising=False)

        assert NarratorSettings().api_key_for("claude") == ""

    def test_keys_are_secret(self) -> None:
        """Test API keys are not exposed in repr."""
        settings = NarratorSettings(claude_api_key="super-secret")

        assert "super-secret" not in repr(settings)


class TestSessionSettings:
    """Tests for SessionSettings configuration."""

    def test_default_values(self) -> None:
        """Test default session limits."""
        settings = SessionSettings()

        assert settings.max_history == 30
        assert settings.max_undo == 10
        assert settings.autosave is True

    def test_odd_history_rejected(self) -> None:
        """Test the conversation window must hold whole message pairs."""
        with pytest.raises(ConfigurationError) as exc_info:
            SessionSettings(max_history=7)

        assert "max_history" in str(exc_info.value)


class TestStorageSettings:
    """Tests for StorageSettings configuration."""

    def test_custom_path(self, tmp_path: Path) -> None:
        """Test a custom database path is kept as given."""
        settings = StorageSettings(database_path=tmp_path / "custom.db")

        assert settings.database_path == tmp_path / "custom.db"


class TestSettings:
    """Tests for main Settings configuration."""

    def test_default_settings(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Test default settings initialization."""
        monkeypatch.chdir(tmp_path)

        settings = Settings()

        assert settings.app_name == "Dungeon Companion"
        assert settings.log_level == "INFO"
        assert settings.is_production is True
        assert isinstance(settings.narrator, NarratorSettings)
        assert isinstance(settings.session, SessionSettings)

    def test_debug_mode(self, mock_env_vars: dict[str, str]) -> None:
        """Test debug flag from the environment."""
        settings = Settings()

        assert settings.debug is True
        assert settings.is_production is False
        assert settings.log_level == "DEBUG"


class TestGetSettings:
    """Tests for the settings singleton."""

    def test_returns_cached_instance(self) -> None:
        """Test get_settings returns the same object until cleared."""
        first = get_settings()
        second = get_settings()

        assert first is second

    def test_clear_cache_reloads(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test clearing the cache picks up environment changes."""
        first = get_settings()
        monkeypatch.setenv("DUNGEON_COMPANION_APP_NAME", "Renamed")
        clear_settings_cache()

        second = get_settings()

        assert second is not first
        assert second.app_name == "Renamed"

    def test_invalid_settings_wrapped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test invalid configuration surfaces as ConfigurationError."""
        monkeypatch.setenv("DUNGEON_COMPANION_LOG_LEVEL", "LOUD")

        with pytest.raises(ConfigurationError):
            get_settings()
