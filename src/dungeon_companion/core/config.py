"""Configuration management for the Dungeon Companion.

This module provides centralized configuration management using pydantic-settings,
supporting environment variables, .env files, and runtime configuration overrides.
API keys are held as SecretStr.

Example:
    >>> from dungeon_companion.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.narrator.provider)
    'claude'

Environment Variables:
    DUNGEON_COMPANION_CLAUDE_API_KEY: Anthropic API key
    DUNGEON_COMPANION_OPENAI_API_KEY: OpenAI API key
    DUNGEON_COMPANION_PROVIDER: Narrator provider ('claude' or 'openai')
    DUNGEON_COMPANION_SESSION_MAX_HISTORY: Conversation window length
    DUNGEON_COMPANION_DATABASE_PATH: Path to the SQLite database
    DUNGEON_COMPANION_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dungeon_companion.core.exceptions import ConfigurationError


ProviderType = Literal["claude", "openai"]


class NarratorSettings(BaseSettings):
    """Configuration for the external narrator (LLM provider).

    Attributes:
        provider: Which narrator variant to construct.
        claude_api_key: Anthropic API key.
        openai_api_key: OpenAI API key.
        claude_model: Claude model identifier.
        openai_model: OpenAI model identifier.
        max_tokens: Token budget for a regular narration turn.
        summary_max_tokens: Token budget for campaign summaries.
        chronicle_max_tokens: Token budget for chronicle stories.
        max_retries: Retry attempts for non-streaming calls.
        timeout_seconds: Upper bound on a single narrator call.
    """

    model_config = SettingsConfigDict(
        env_prefix="DUNGEON_COMPANION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    provider: ProviderType = Field(
        default="claude",
        description="Narrator provider to use",
    )
    claude_api_key: SecretStr | None = Field(
        default=None,
        description="Anthropic API key",
    )
    openai_api_key: SecretStr | None = Field(
        default=None,
        description="OpenAI API key",
    )
    claude_model: str = Field(
        default="claude-sonnet-4-5-20250929",
        description="Default Claude model",
    )
    openai_model: str = Field(
        default="gpt-5.2",
        description="Default OpenAI model",
    )
    max_tokens: int = Field(
        default=2048,
        ge=64,
        le=16384,
        description="Token budget per narration turn",
    )
    summary_max_tokens: int = Field(
        default=1024,
        ge=64,
        le=16384,
        description="Token budget for campaign summaries",
    )
    chronicle_max_tokens: int = Field(
        default=4096,
        ge=64,
        le=16384,
        description="Token budget for chronicle stories",
    )
    max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Maximum API retry attempts",
    )
    timeout_seconds: float = Field(
        default=90.0,
        gt=0,
        le=600,
        description="Narrator request timeout",
    )

    def api_key_for(self, provider: ProviderType | None = None) -> str:
        """Return the plain API key for a provider, or an empty string.

        Args:
            provider: Provider tag; defaults to the configured provider.

        Returns:
            The secret value, or "" when no key is configured.
        """
        tag = provider or self.provider
        secret = self.claude_api_key if tag == "claude" else self.openai_api_key
        return secret.get_secret_value() if secret else ""


class SessionSettings(BaseSettings):
    """Configuration for the session orchestrator.

    Attributes:
        max_history: Conversation messages kept in the sliding window.
        max_undo: Depth of the undo stack.
        autosave: Save the current session after every committed turn.
    """

    model_config = SettingsConfigDict(
        env_prefix="DUNGEON_COMPANION_SESSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_history: int = Field(
        default=30,
        ge=2,
        le=500,
        description="Conversation window length",
    )
    max_undo: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Undo stack depth",
    )
    autosave: bool = Field(
        default=True,
        description="Auto-save after each turn",
    )

    @model_validator(mode="after")
    def validate_history_is_even(self) -> "SessionSettings":
        """Ensure the conversation window holds whole user/assistant pairs.

        Returns:
            Self if validation passes.

        Raises:
            ConfigurationError: If max_history is odd.
        """
        if self.max_history % 2:
            raise ConfigurationError(
                f"max_history ({self.max_history}) must be an even number",
                config_key="max_history",
            )
        return self


class StorageSettings(BaseSettings):
    """Configuration for the persistence collaborator.

    Attributes:
        database_path: Path to the SQLite database file.
    """

    model_config = SettingsConfigDict(
        env_prefix="DUNGEON_COMPANION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_path: Path = Field(
        default=Path.home() / ".dungeon_companion" / "companion.db",
        description="Path to SQLite database",
    )


class Settings(BaseSettings):
    """Main application settings aggregating all configuration domains.

    Attributes:
        app_name: Application name.
        debug: Enable debug mode.
        log_level: Application logging level.
        narrator: Narrator provider settings.
        session: Session orchestrator settings.
        storage: Persistence settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="DUNGEON_COMPANION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(
        default="Dungeon Companion",
        description="Application name",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    narrator: NarratorSettings = Field(default_factory=NarratorSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return not self.debug


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The application Settings instance.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "ProviderType",
    "NarratorSettings",
    "SessionSettings",
    "StorageSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
