"""Reducer actions.

Each action is a frozen, typed instruction that the reducer turns into a
new GameState. The ``type`` tag doubles as the discriminator of the
``GameAction`` union so action sequences can be validated from plain
dictionaries.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from dungeon_companion.models.character import Character
from dungeon_companion.models.enums import GamePhase
from dungeon_companion.models.game_state import Enemy, GameState, StoryEntry


class BaseAction(BaseModel):
    """Common configuration for all reducer actions."""

    model_config = ConfigDict(frozen=True, extra="forbid")


# =============================================================================
# Session
# =============================================================================


class SetPhase(BaseAction):
    type: Literal["SET_PHASE"] = "SET_PHASE"
    phase: GamePhase


class SetCharacter(BaseAction):
    type: Literal["SET_CHARACTER"] = "SET_CHARACTER"
    character: Character


class AddStory(BaseAction):
    type: Literal["ADD_STORY"] = "ADD_STORY"
    entry: StoryEntry


class LoadState(BaseAction):
    type: Literal["LOAD_STATE"] = "LOAD_STATE"
    state: GameState


class NewGame(BaseAction):
    type: Literal["NEW_GAME"] = "NEW_GAME"


# =============================================================================
# Character
# =============================================================================


class TakeDamage(BaseAction):
    type: Literal["TAKE_DAMAGE"] = "TAKE_DAMAGE"
    amount: Annotated[int, Field(ge=0)]


class Heal(BaseAction):
    type: Literal["HEAL"] = "HEAL"
    amount: Annotated[int, Field(ge=0)]


class GainXp(BaseAction):
    type: Literal["GAIN_XP"] = "GAIN_XP"
    amount: Annotated[int, Field(ge=0)]


class LevelUp(BaseAction):
    """Apply one pending level-up, if the character's XP allows it."""

    type: Literal["LEVEL_UP"] = "LEVEL_UP"


class AddItem(BaseAction):
    type: Literal["ADD_ITEM"] = "ADD_ITEM"
    item: str


class RemoveItem(BaseAction):
    type: Literal["REMOVE_ITEM"] = "REMOVE_ITEM"
    item: str


class AddGold(BaseAction):
    """Add (or, with a negative amount, spend) gold."""

    type: Literal["ADD_GOLD"] = "ADD_GOLD"
    amount: int


# =============================================================================
# Combat
# =============================================================================


class StartCombat(BaseAction):
    type: Literal["START_COMBAT"] = "START_COMBAT"
    enemies: tuple[Enemy, ...]


class EndCombat(BaseAction):
    type: Literal["END_COMBAT"] = "END_COMBAT"


class EnemyTakeDamage(BaseAction):
    type: Literal["ENEMY_TAKE_DAMAGE"] = "ENEMY_TAKE_DAMAGE"
    index: int
    amount: int


class SetPlayerTurn(BaseAction):
    type: Literal["SET_PLAYER_TURN"] = "SET_PLAYER_TURN"
    is_player_turn: bool


class NextRound(BaseAction):
    type: Literal["NEXT_ROUND"] = "NEXT_ROUND"


class DeathSave(BaseAction):
    type: Literal["DEATH_SAVE"] = "DEATH_SAVE"
    success: bool


# =============================================================================
# World
# =============================================================================


class UpdateLocation(BaseAction):
    type: Literal["UPDATE_LOCATION"] = "UPDATE_LOCATION"
    location: str


class AddNpc(BaseAction):
    type: Literal["ADD_NPC"] = "ADD_NPC"
    name: str


class AddQuest(BaseAction):
    type: Literal["ADD_QUEST"] = "ADD_QUEST"
    quest: str


GameAction = Annotated[
    Union[
        SetPhase,
        SetCharacter,
        AddStory,
        LoadState,
        NewGame,
        TakeDamage,
        Heal,
        GainXp,
        LevelUp,
        AddItem,
        RemoveItem,
        AddGold,
        StartCombat,
        EndCombat,
        EnemyTakeDamage,
        SetPlayerTurn,
        NextRound,
        DeathSave,
        UpdateLocation,
        AddNpc,
        AddQuest,
    ],
    Field(discriminator="type"),
]

game_action_adapter: TypeAdapter[GameAction] = TypeAdapter(GameAction)
"""Validates a GameAction from a plain ``{"type": ..., ...}`` mapping."""


__all__ = [
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
]
