"""Rules engine for the Dungeon Companion.

Python owns the truth: dice are rolled here, rule formulas live here, and
every state change goes through the reducer. The narrator only proposes
changes.

Modules:
    dice: Die rolling, dice notation parsing and roll formatting.
    rules: Class-based roll specifications.
    actions: Typed reducer actions.
    reducer: The total, immutable game state reducer.
"""

from __future__ import annotations

from dungeon_companion.engine.actions import (
    AddGold,
    AddItem,
    AddNpc,
    AddQuest,
    AddStory,
    BaseAction,
    DeathSave,
    EndCombat,
    EnemyTakeDamage,
    GainXp,
    GameAction,
    Heal,
    LevelUp,
    LoadState,
    NewGame,
    NextRound,
    RemoveItem,
    SetCharacter,
    SetPhase,
    SetPlayerTurn,
    StartCombat,
    TakeDamage,
    UpdateLocation,
    game_action_adapter,
)
from dungeon_companion.engine.dice import (
    format_roll,
    parse_dice_string,
    roll_dice,
    roll_die,
    roll_notation,
)
from dungeon_companion.engine.reducer import apply_actions, game_reducer, level_up_character
from dungeon_companion.engine.rules import (
    CLASS_ATTACK_ABILITY,
    CLASS_DAMAGE_DIE,
    get_ability_check_roll,
    get_attack_roll,
    get_damage_roll,
    get_death_saving_throw,
    get_initiative_roll,
    get_saving_throw_roll,
    proficiency_bonus,
)


__all__ = [
    # Dice
    "roll_die",
    "roll_dice",
    "roll_notation",
    "parse_dice_string",
    "format_roll",
    # Rules
    "CLASS_ATTACK_ABILITY",
    "CLASS_DAMAGE_DIE",
    "proficiency_bonus",
    "get_attack_roll",
    "get_damage_roll",
    "get_ability_check_roll",
    "get_saving_throw_roll",
    "get_initiative_roll",
    "get_death_saving_throw",
    # Actions
    "BaseAction",
    "GameAction",
    "game_action_adapter",
    "SetPhase",
    "SetCharacter",
    "AddStory",
    "LoadState",
    "NewGame",
    "TakeDamage",
    "Heal",
    "GainXp",
    "LevelUp",
    "AddItem",
    "RemoveItem",
    "AddGold",
    "StartCombat",
    "EndCombat",
    "EnemyTakeDamage",
    "SetPlayerTurn",
    "NextRound",
    "DeathSave",
    "UpdateLocation",
    "AddNpc",
    "AddQuest",
    # Reducer
    "game_reducer",
    "apply_actions",
    "level_up_character",
]
