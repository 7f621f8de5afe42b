"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the Dungeon Companion test suite.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest

from dungeon_companion.core.config import NarratorSettings, SessionSettings
from dungeon_companion.dm.providers import ConversationMessage
from dungeon_companion.models import (
    AbilityScores,
    Character,
    CharacterClass,
    CombatState,
    DeathSaves,
    Enemy,
    GamePhase,
    GameState,
    Race,
)
from dungeon_companion.storage.database import Database


if TYPE_CHECKING:
    from collections.abc import Generator


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from dungeon_companion.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "DUNGEON_COMPANION_CLAUDE_API_KEY": "test-claude-key",
        "DUNGEON_COMPANION_OPENAI_API_KEY": "test-openai-key",
        "DUNGEON_COMPANION_DEBUG": "true",
        "DUNGEON_COMPANION_LOG_LEVEL": "DEBUG",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def session_settings() -> SessionSettings:
    """Small limits so window and undo eviction are easy to observe."""
    return SessionSettings(max_history=4, max_undo=2, autosave=True)


@pytest.fixture
def narrator_settings() -> NarratorSettings:
    """Narrator settings with a short timeout."""
    return NarratorSettings(provider="claude", timeout_seconds=5.0)


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def sample_abilities() -> AbilityScores:
    """Provide sample ability scores (CON 14, DEX 12).

    Returns:
        AbilityScores instance.
    """
    return AbilityScores(
        strength=16,
        dexterity=12,
        constitution=14,
        intelligence=10,
        wisdom=11,
        charisma=13,
    )


@pytest.fixture
def sample_character(sample_abilities: AbilityScores) -> Character:
    """Create a level 1 human fighter.

    Returns:
        Character instance with 12/12 HP.
    """
    return Character(
        name="Aldric Stormwind",
        race=Race.HUMAN,
        character_class=CharacterClass.FIGHTER,
        level=1,
        xp=0,
        hp=12,
        max_hp=12,
        ac=16,
        abilities=sample_abilities,
        backstory="A former soldier.",
        inventory=("Longsword", "Shield"),
        gold=15,
    )


@pytest.fixture
def sample_wizard() -> Character:
    """Create a level 1 elf wizard with CON 12.

    Returns:
        Character instance with 7/7 HP.
    """
    return Character(
        name="Lyra Moonwhisper",
        race=Race.ELF,
        character_class=CharacterClass.WIZARD,
        hp=7,
        max_hp=7,
        ac=12,
        abilities=AbilityScores(
            strength=8,
            dexterity=14,
            constitution=12,
            intelligence=16,
            wisdom=13,
            charisma=10,
        ),
        inventory=("Quarterstaff", "Spellbook"),
        gold=15,
    )


@pytest.fixture
def playing_state(sample_character: Character) -> GameState:
    """A playing-phase state with the sample fighter."""
    return GameState(phase=GamePhase.PLAYING, character=sample_character)


@pytest.fixture
def combat_state(playing_state: GameState) -> GameState:
    """A combat-phase state against a single goblin."""
    return playing_state.model_copy(
        update={
            "phase": GamePhase.COMBAT,
            "combat": CombatState(
                enemies=(Enemy(name="Goblin", hp=12, max_hp=12, ac=13),),
                death_saves=DeathSaves(),
            ),
        }
    )


# =============================================================================
# Storage Fixtures
# =============================================================================


@pytest.fixture
def database(tmp_path: Path) -> Database:
    """A fresh SQLite database in a temporary directory."""
    return Database(tmp_path / "companion.db")


# =============================================================================
# Narrator Fixtures
# =============================================================================


class FakeNarrator:
    """Scripted narrator that replays canned replies in order.

    Each reply is streamed in small chunks. Calls are recorded so tests
    can inspect the conversation and system prompt the narrator received.
    """

    name = "fake"

    def __init__(
        self,
        replies: Sequence[str] = (),
        *,
        configured: bool = True,
        error: Exception | None = None,
        chunk_size: int = 7,
    ) -> None:
        self.replies = list(replies)
        self.configured = configured
        self.error = error
        self.chunk_size = chunk_size
        self.calls: list[dict[str, Any]] = []

    def is_configured(self) -> bool:
        return self.configured

    def _next_reply(self, messages: Sequence[ConversationMessage], system_prompt: str) -> str:
        self.calls.append({"messages": list(messages), "system_prompt": system_prompt})
        if self.error is not None:
            raise self.error
        if not self.replies:
            raise AssertionError("FakeNarrator ran out of scripted replies")
        return self.replies.pop(0)

    async def send_message(
        self,
        messages: Sequence[ConversationMessage],
        system_prompt: str,
        *,
        max_tokens: int | None = None,
    ) -> str:
        return self._next_reply(messages, system_prompt)

    async def stream_message(
        self,
        messages: Sequence[ConversationMessage],
        system_prompt: str,
        *,
        max_tokens: int | None = None,
    ) -> AsyncIterator[str]:
        reply = self._next_reply(messages, system_prompt)
        for start in range(0, len(reply), self.chunk_size):
            await asyncio.sleep(0)
            yield reply[start : start + self.chunk_size]


def narrator_reply(
    narrative: str,
    *,
    suggested_actions: list[str] | None = None,
    roll_request: dict[str, Any] | None = None,
    game_updates: dict[str, Any] | None = None,
) -> str:
    """Build a well-formed narrator JSON reply."""
    return json.dumps(
        {
            "narrative": narrative,
            "suggestedActions": suggested_actions or ["Look around"],
            "rollRequest": roll_request,
            "gameUpdates": game_updates,
        }
    )


@pytest.fixture
def fake_narrator() -> FakeNarrator:
    """An empty scripted narrator; tests append replies."""
    return FakeNarrator()
