"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        CompanionError: Base exception for all application errors.
        NarratorError: Narrator transport errors.
        ConfigurationError: Configuration-related errors.

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        clear_context: Clear logging context.
"""

from __future__ import annotations

from dungeon_companion.core.config import (
    NarratorSettings,
    ProviderType,
    SessionSettings,
    Settings,
    StorageSettings,
    clear_settings_cache,
    get_settings,
)
from dungeon_companion.core.exceptions import (
    CompanionError,
    ConfigurationError,
    DiceRollError,
    GameEngineError,
    NarratorConnectionError,
    NarratorError,
    NarratorNotConfiguredError,
    NarratorResponseError,
    StorageError,
)
from dungeon_companion.core.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


__all__ = [
    # Exceptions
    "CompanionError",
    "GameEngineError",
    "DiceRollError",
    "NarratorError",
    "NarratorNotConfiguredError",
    "NarratorConnectionError",
    "NarratorResponseError",
    "ConfigurationError",
    "StorageError",
    # Configuration
    "ProviderType",
    "Settings",
    "NarratorSettings",
    "SessionSettings",
    "StorageSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
