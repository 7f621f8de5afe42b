"""Dungeon Companion - single-player D&D 5E-lite with an LLM narrator.

A small game core that keeps the rules in Python and hands the storytelling
to an external language model.

ARCHITECTURE:
- Python owns TRUTH (GameState, dice rolls via d20, the reducer)
- The narrator owns the STORY (prose, suggestions, roll requests)
- Narrator replies are interpreted into reducer actions and committed once

Example:
    >>> from dungeon_companion import (
    ...     CHARACTER_PRESETS, SessionOrchestrator, create_character_from_preset,
    ...     create_provider, get_settings,
    ... )
    >>>
    >>> settings = get_settings()
    >>> session = SessionOrchestrator(create_provider(settings.narrator))
    >>> session.choose_character(create_character_from_preset(CHARACTER_PRESETS[0]))
    >>> await session.begin_adventure()
    >>> await session.send_player_action("I search the room for traps")

Modules:
    core: Configuration, logging, constants and base exceptions.
    models: Pydantic V2 schemas for characters, rolls and game state.
    engine: Dice, rules, reducer actions and the game reducer.
    dm: Prompts, narrator providers, response interpreter, orchestrator, voice.
    storage: SQLite persistence for sessions, save slots and the roster.
"""

from __future__ import annotations

# Core
from dungeon_companion.core.config import Settings, get_settings
from dungeon_companion.core.exceptions import CompanionError
from dungeon_companion.core.logging import configure_logging, get_logger

# Models (The Source of Truth)
from dungeon_companion.models import (
    CHARACTER_PRESETS,
    Character,
    CampaignRecord,
    DiceResult,
    DiceRoll,
    GamePhase,
    GameState,
    RosterCharacter,
    StoryEntry,
    create_character_from_preset,
    create_custom_character,
    create_initial_state,
    generate_random_character,
)

# Engine
from dungeon_companion.engine import (
    apply_actions,
    game_reducer,
    parse_dice_string,
    roll_dice,
)

# DM
from dungeon_companion.dm import (
    SessionOrchestrator,
    TurnResult,
    create_provider,
    interpret_response,
)

# Storage
from dungeon_companion.storage import Database, get_database


__version__ = "0.1.0"
__all__ = [
    # Version info
    "__version__",
    # Core
    "CompanionError",
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    # Models
    "CHARACTER_PRESETS",
    "Character",
    "CampaignRecord",
    "DiceResult",
    "DiceRoll",
    "GamePhase",
    "GameState",
    "RosterCharacter",
    "StoryEntry",
    "create_character_from_preset",
    "create_custom_character",
    "create_initial_state",
    "generate_random_character",
    # Engine
    "apply_actions",
    "game_reducer",
    "parse_dice_string",
    "roll_dice",
    # DM
    "SessionOrchestrator",
    "TurnResult",
    "create_provider",
    "interpret_response",
    # Storage
    "Database",
    "get_database",
]
