"""Pydantic V2 schemas for the Dungeon Companion.

All session values are frozen models; sequences are tuples. State
transitions produce new values through ``model_copy`` and never mutate a
previous state in place.

Submodules:
    enums: Enumeration types (Race, CharacterClass, Ability, GamePhase, etc.)
    character: Character model, derived stats and character factories.
    rolls: Dice roll specifications and results.
    game_state: Enemy, CombatState, StoryEntry, roster archive, GameState.

Example:
    >>> from dungeon_companion.models import CHARACTER_PRESETS, create_character_from_preset
    >>> hero = create_character_from_preset(CHARACTER_PRESETS[0])
    >>> hero.max_hp
    12
"""

from __future__ import annotations

# =============================================================================
# Enumerations
# =============================================================================
from dungeon_companion.models.enums import (
    Ability,
    CharacterClass,
    DieType,
    GamePhase,
    Race,
    RollRequestType,
    StoryEntryType,
)

# =============================================================================
# Character
# =============================================================================
from dungeon_companion.models.character import (
    BACKSTORIES,
    CHARACTER_PRESETS,
    CLASS_INVENTORIES,
    FIRST_NAMES,
    LAST_NAMES,
    AbilityScores,
    Character,
    CharacterPreset,
    calculate_ac,
    calculate_hp,
    create_character_from_preset,
    create_custom_character,
    generate_random_character,
    get_modifier,
    get_modifier_string,
    roll_ability_score,
    should_level_up,
    xp_for_next_level,
)

# =============================================================================
# Rolls
# =============================================================================
from dungeon_companion.models.rolls import DiceResult, DiceRoll

# =============================================================================
# Session State
# =============================================================================
from dungeon_companion.models.game_state import (
    CampaignRecord,
    CombatState,
    DeathSaves,
    Enemy,
    GameState,
    RosterCharacter,
    StoryEntry,
    create_initial_state,
)


__all__ = [
    # Enums
    "Ability",
    "CharacterClass",
    "DieType",
    "GamePhase",
    "Race",
    "RollRequestType",
    "StoryEntryType",
    # Character
    "AbilityScores",
    "Character",
    "CharacterPreset",
    "CHARACTER_PRESETS",
    "CLASS_INVENTORIES",
    "FIRST_NAMES",
    "LAST_NAMES",
    "BACKSTORIES",
    "calculate_ac",
    "calculate_hp",
    "create_character_from_preset",
    "create_custom_character",
    "generate_random_character",
    "get_modifier",
    "get_modifier_string",
    "roll_ability_score",
    "should_level_up",
    "xp_for_next_level",
    # Rolls
    "DiceRoll",
    "DiceResult",
    # Session State
    "CampaignRecord",
    "CombatState",
    "DeathSaves",
    "Enemy",
    "GameState",
    "RosterCharacter",
    "StoryEntry",
    "create_initial_state",
]
