"""Custom exception hierarchy for the Dungeon Companion.

This module defines the exception hierarchy used across the game-state
core. All exceptions inherit from CompanionError, enabling unified error
handling at the session boundary while preserving domain-specific context.

The reducer itself never raises: invalid targets are no-ops. Exceptions
are reserved for dice notation misuse, narrator transport problems,
configuration and storage.

Example:
    >>> from dungeon_companion.core.exceptions import NarratorConnectionError
    >>> raise NarratorConnectionError("Connection refused", provider="claude")
"""

from __future__ import annotations

from typing import Any


class CompanionError(Exception):
    """Base exception for all Dungeon Companion errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        """Return a detailed string representation of the exception."""
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Game Engine Domain Exceptions
# =============================================================================


class GameEngineError(CompanionError):
    """Base exception for rules engine and dice errors."""


class DiceRollError(GameEngineError):
    """Raised when a dice roll cannot be performed.

    Parsing never raises (it returns None); this is raised when a roll
    expression given for rolling cannot be parsed.
    """

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize dice roll error with expression context.

        Args:
            message: Human-readable error description.
            expression: The dice expression that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if expression:
            combined_details["expression"] = expression
        super().__init__(message, details=combined_details)


# =============================================================================
# Narrator Domain Exceptions
# =============================================================================


class NarratorError(CompanionError):
    """Base exception for all narrator (LLM provider) errors.

    Raised when there are issues talking to the external narrator.
    These never escape the session orchestrator.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        model: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize narrator error with provider context.

        Args:
            message: Human-readable error description.
            provider: Name of the narrator provider (e.g., 'claude', 'openai').
            model: Name of the model involved.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if provider:
            combined_details["provider"] = provider
        if model:
            combined_details["model"] = model
        super().__init__(message, details=combined_details)


class NarratorNotConfiguredError(NarratorError):
    """Raised when a narrator is used without a credential."""


class NarratorConnectionError(NarratorError):
    """Raised when the narrator service cannot be reached."""


class NarratorResponseError(NarratorError):
    """Raised when the narrator answers with a non-success status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        provider: str | None = None,
        model: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize response error with status context.

        Args:
            message: Human-readable error description.
            status_code: HTTP status returned by the provider.
            provider: Name of the narrator provider.
            model: Name of the model involved.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if status_code is not None:
            combined_details["status_code"] = status_code
        super().__init__(message, provider=provider, model=model, details=combined_details)


# =============================================================================
# Configuration & Storage Exceptions
# =============================================================================


class ConfigurationError(CompanionError):
    """Raised when application configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with config key context.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


class StorageError(CompanionError):
    """Raised when a persisted blob cannot be read or written."""

    def __init__(
        self,
        message: str,
        *,
        key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize storage error with key context.

        Args:
            message: Human-readable error description.
            key: Logical storage key involved.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if key:
            combined_details["key"] = key
        super().__init__(message, details=combined_details)


__all__ = [
    "CompanionError",
    # Game engine exceptions
    "GameEngineError",
    "DiceRollError",
    # Narrator exceptions
    "NarratorError",
    "NarratorNotConfiguredError",
    "NarratorConnectionError",
    "NarratorResponseError",
    # Configuration & storage exceptions
    "ConfigurationError",
    "StorageError",
]
