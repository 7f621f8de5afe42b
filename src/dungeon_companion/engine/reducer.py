"""Game state reducer.

``game_reducer`` is the only way a GameState changes. It is a total
function over its action set: unknown actions and invalid targets (an
absent character, an out-of-range enemy index, an item not carried)
return the state unchanged rather than raising. Every transition builds
a new value; the previous state is never modified.

Phases:
    setup -> character-select -> (character-create) -> playing <-> combat -> game-over

``game-over`` is terminal until NEW_GAME: combat cannot be started or
ended from it and further death saves are ignored.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from dungeon_companion.core.constants import MAX_DEATH_SAVES, STABILIZED_HIT_POINTS
from dungeon_companion.core.logging import get_logger
from dungeon_companion.engine.actions import (
    AddGold,
    AddItem,
    AddNpc,
    AddQuest,
    AddStory,
    DeathSave,
    EndCombat,
    EnemyTakeDamage,
    GainXp,
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
)
from dungeon_companion.models.character import Character, calculate_hp, should_level_up
from dungeon_companion.models.enums import GamePhase
from dungeon_companion.models.game_state import (
    CombatState,
    DeathSaves,
    GameState,
    create_initial_state,
)


logger = get_logger(__name__)

_Handler = Callable[[GameState, Any], GameState]
_HANDLERS: dict[type, _Handler] = {}


def _handles(action_type: type) -> Callable[[_Handler], _Handler]:
    def register(handler: _Handler) -> _Handler:
        _HANDLERS[action_type] = handler
        return handler

    return register


def _with_character(state: GameState, character: Character) -> GameState:
    return state.model_copy(update={"character": character})


def level_up_character(character: Character) -> Character:
    """Advance a character exactly one level.

    Maximum HP is recomputed for the new level and current HP grows by the
    HP gained, capped at the new maximum. Maximum HP never decreases.

    Args:
        character: Character below the level cap.

    Returns:
        The levelled character.
    """
    new_level = character.level + 1
    new_max_hp = max(
        character.max_hp,
        calculate_hp(character.character_class, character.abilities.constitution, new_level),
    )
    gained = new_max_hp - character.max_hp
    return character.model_copy(
        update={
            "level": new_level,
            "max_hp": new_max_hp,
            "hp": min(new_max_hp, character.hp + gained),
        }
    )


def _apply_pending_level(state: GameState, character: Character) -> GameState:
    if should_level_up(character.xp, character.level):
        levelled = level_up_character(character)
        logger.info(
            "Character leveled up",
            name=levelled.name,
            level=levelled.level,
            max_hp=levelled.max_hp,
        )
        character = levelled
    return _with_character(state, character)


# =============================================================================
# Session
# =============================================================================


@_handles(SetPhase)
def _set_phase(state: GameState, action: SetPhase) -> GameState:
    return state.model_copy(update={"phase": action.phase})


@_handles(SetCharacter)
def _set_character(state: GameState, action: SetCharacter) -> GameState:
    return state.model_copy(
        update={
            "character": action.character,
            "campaign_start_date": state.campaign_start_date or datetime.now(),
        }
    )


@_handles(AddStory)
def _add_story(state: GameState, action: AddStory) -> GameState:
    return state.model_copy(update={"story_log": (*state.story_log, action.entry)})


@_handles(LoadState)
def _load_state(state: GameState, action: LoadState) -> GameState:
    return action.state


@_handles(NewGame)
def _new_game(state: GameState, action: NewGame) -> GameState:
    return create_initial_state()


# =============================================================================
# Character
# =============================================================================


@_handles(TakeDamage)
def _take_damage(state: GameState, action: TakeDamage) -> GameState:
    character = state.character
    if character is None:
        return state

    new_hp = max(0, character.hp - action.amount)
    updated = state.model_copy(update={"character": character.model_copy(update={"hp": new_hp})})

    if new_hp == 0 and character.hp > 0 and state.combat is not None:
        logger.info("Character down", name=character.name)
        updated = updated.model_copy(
            update={"combat": state.combat.model_copy(update={"death_saves": DeathSaves()})}
        )
    return updated


@_handles(Heal)
def _heal(state: GameState, action: Heal) -> GameState:
    character = state.character
    if character is None:
        return state
    healed = min(character.max_hp, character.hp + action.amount)
    return _with_character(state, character.model_copy(update={"hp": healed}))


@_handles(GainXp)
def _gain_xp(state: GameState, action: GainXp) -> GameState:
    character = state.character
    if character is None:
        return state
    return _apply_pending_level(
        state, character.model_copy(update={"xp": character.xp + action.amount})
    )


@_handles(LevelUp)
def _level_up(state: GameState, action: LevelUp) -> GameState:
    character = state.character
    if character is None or not should_level_up(character.xp, character.level):
        return state
    return _apply_pending_level(state, character)


@_handles(AddItem)
def _add_item(state: GameState, action: AddItem) -> GameState:
    character = state.character
    if character is None:
        return state
    return _with_character(
        state, character.model_copy(update={"inventory": (*character.inventory, action.item)})
    )


@_handles(RemoveItem)
def _remove_item(state: GameState, action: RemoveItem) -> GameState:
    character = state.character
    if character is None or action.item not in character.inventory:
        return state
    inventory = list(character.inventory)
    inventory.remove(action.item)
    return _with_character(state, character.model_copy(update={"inventory": tuple(inventory)}))


@_handles(AddGold)
def _add_gold(state: GameState, action: AddGold) -> GameState:
    character = state.character
    if character is None:
        return state
    return _with_character(
        state, character.model_copy(update={"gold": max(0, character.gold + action.amount)})
    )


# =============================================================================
# Combat
# =============================================================================


@_handles(StartCombat)
def _start_combat(state: GameState, action: StartCombat) -> GameState:
    if state.is_game_over:
        return state
    logger.info("Combat started", enemies=len(action.enemies))
    return state.model_copy(
        update={
            "phase": GamePhase.COMBAT,
            "combat": CombatState(enemies=action.enemies),
        }
    )


@_handles(EndCombat)
def _end_combat(state: GameState, action: EndCombat) -> GameState:
    if state.is_game_over:
        return state
    return state.model_copy(update={"phase": GamePhase.PLAYING, "combat": None})


@_handles(EnemyTakeDamage)
def _enemy_take_damage(state: GameState, action: EnemyTakeDamage) -> GameState:
    combat = state.combat
    if combat is None or not 0 <= action.index < len(combat.enemies):
        return state

    enemy = combat.enemies[action.index]
    new_hp = max(0, min(enemy.max_hp, enemy.hp - action.amount))
    enemies = list(combat.enemies)
    enemies[action.index] = enemy.model_copy(update={"hp": new_hp})
    return state.model_copy(update={"combat": combat.model_copy(update={"enemies": tuple(enemies)})})


@_handles(SetPlayerTurn)
def _set_player_turn(state: GameState, action: SetPlayerTurn) -> GameState:
    if state.combat is None:
        return state
    return state.model_copy(
        update={"combat": state.combat.model_copy(update={"player_turn": action.is_player_turn})}
    )


@_handles(NextRound)
def _next_round(state: GameState, action: NextRound) -> GameState:
    combat = state.combat
    if combat is None:
        return state
    return state.model_copy(
        update={"combat": combat.model_copy(update={"round": combat.round + 1, "player_turn": True})}
    )


@_handles(DeathSave)
def _death_save(state: GameState, action: DeathSave) -> GameState:
    combat = state.combat
    if combat is None or state.is_game_over:
        return state

    saves = combat.death_saves
    if action.success:
        saves = saves.model_copy(update={"successes": min(MAX_DEATH_SAVES, saves.successes + 1)})
    else:
        saves = saves.model_copy(update={"failures": min(MAX_DEATH_SAVES, saves.failures + 1)})

    if saves.failures >= MAX_DEATH_SAVES:
        logger.info("Character died", failures=saves.failures)
        return state.model_copy(
            update={
                "phase": GamePhase.GAME_OVER,
                "combat": combat.model_copy(update={"death_saves": saves}),
            }
        )

    if saves.successes >= MAX_DEATH_SAVES:
        logger.info("Character stabilized")
        update: dict[str, Any] = {"combat": combat.model_copy(update={"death_saves": DeathSaves()})}
        if state.character is not None:
            update["character"] = state.character.model_copy(
                update={"hp": min(state.character.max_hp, STABILIZED_HIT_POINTS)}
            )
        return state.model_copy(update=update)

    return state.model_copy(update={"combat": combat.model_copy(update={"death_saves": saves})})


# =============================================================================
# World
# =============================================================================


@_handles(UpdateLocation)
def _update_location(state: GameState, action: UpdateLocation) -> GameState:
    return state.model_copy(update={"location": action.location})


@_handles(AddNpc)
def _add_npc(state: GameState, action: AddNpc) -> GameState:
    if action.name in state.npcs_met_names:
        return state
    return state.model_copy(update={"npcs_met_names": (*state.npcs_met_names, action.name)})


@_handles(AddQuest)
def _add_quest(state: GameState, action: AddQuest) -> GameState:
    return state.model_copy(update={"quest_log": (*state.quest_log, action.quest)})


# =============================================================================
# Public API
# =============================================================================


def game_reducer(state: GameState, action: object) -> GameState:
    """Apply one action to a state.

    Args:
        state: Current state.
        action: A reducer action. Anything else is ignored.

    Returns:
        The next state, or ``state`` itself when the action does not apply.
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        logger.debug("Ignoring unknown action", action=type(action).__name__)
        return state
    return handler(state, action)


def apply_actions(state: GameState, actions: Iterable[object]) -> GameState:
    """Fold a sequence of actions over a state, in order."""
    for action in actions:
        state = game_reducer(state, action)
    return state


__all__ = [
    "game_reducer",
    "apply_actions",
    "level_up_character",
]
