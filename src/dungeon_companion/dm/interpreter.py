"""Narrator response interpreter.

The narrator is asked for a single JSON object but is an untrusted,
semi-structured source: replies may be fenced in markdown, wrapped in
prose, truncated, or carry fields of the wrong type. This module

1. extracts the JSON object with a three-tier fallback,
2. decodes it into typed patch values where every invalid field degrades
   to "absent" instead of failing the turn, and
3. translates the ``gameUpdates`` patch into an ordered list of reducer
   actions.

Nothing in here raises on bad narrator output.
"""

from __future__ import annotations

import json
import re
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    field_validator,
)

from dungeon_companion.core.constants import CONTINUE_HINT, FALLBACK_SUGGESTED_ACTIONS
from dungeon_companion.core.logging import get_logger
from dungeon_companion.engine.actions import (
    AddGold,
    AddItem,
    AddNpc,
    AddQuest,
    BaseAction,
    DeathSave,
    EndCombat,
    EnemyTakeDamage,
    GainXp,
    Heal,
    RemoveItem,
    StartCombat,
    TakeDamage,
    UpdateLocation,
)
from dungeon_companion.engine.dice import parse_dice_string
from dungeon_companion.models.enums import DieType, RollRequestType
from dungeon_companion.models.game_state import Enemy
from dungeon_companion.models.rolls import DiceRoll


logger = get_logger(__name__)

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*\n?([\s\S]*?)\n?```", re.IGNORECASE)
_FENCE_MARKER_PATTERN = re.compile(r"```[A-Za-z]*")


# =============================================================================
# Patch Types
# =============================================================================


class _Patch(BaseModel):
    """Base for narrator payload types: invalid fields become None."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    @field_validator("*", mode="wrap")
    @classmethod
    def absent_when_invalid(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
        try:
            return handler(value)
        except ValidationError:
            return None


class EnemyDamage(BaseModel):
    """Damage dealt to one enemy, addressed by roster index."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    index: int
    amount: int


class GameUpdates(_Patch):
    """The ``gameUpdates`` patch.

    Every member is optional. A field with the wrong type is treated as
    absent; list members keep only their valid elements.
    """

    damage: Annotated[int, Field(ge=0)] | None = None
    healing: Annotated[int, Field(ge=0)] | None = None
    xp: Annotated[int, Field(ge=0)] | None = None
    gold: int | None = None
    add_items: tuple[str, ...] | None = Field(default=None, alias="addItems")
    remove_items: tuple[str, ...] | None = Field(default=None, alias="removeItems")
    location: str | None = None
    new_npc: str | None = Field(default=None, alias="newNPC")
    quest: str | None = None
    start_combat: tuple[Enemy, ...] | None = Field(default=None, alias="startCombat")
    end_combat: bool | None = Field(default=None, alias="endCombat")
    enemy_damage: EnemyDamage | None = Field(default=None, alias="enemyDamage")
    death_save: bool | None = Field(default=None, alias="deathSave")

    @field_validator("add_items", "remove_items", mode="before")
    @classmethod
    def keep_string_items(cls, value: Any) -> Any:
        if isinstance(value, list | tuple):
            return tuple(item for item in value if isinstance(item, str) and item)
        return value

    @field_validator("start_combat", mode="before")
    @classmethod
    def keep_valid_enemies(cls, value: Any) -> Any:
        if not isinstance(value, list | tuple):
            return value
        enemies: list[Enemy] = []
        for raw in value:
            try:
                enemies.append(Enemy.model_validate(raw))
            except ValidationError:
                logger.debug("Dropping invalid enemy", enemy=raw)
        return tuple(enemies)


class RollRequest(_Patch):
    """A narrator request for a dice roll.

    Attributes:
        type: Kind of roll, or None when unrecognized.
        dice: Dice notation such as ``d20`` or ``2d6``.
        modifier: Flat modifier the narrator wants applied.
        reason: Human-readable purpose.
        dc: Difficulty class, if the roll is a check against one.
    """

    type: RollRequestType | None = None
    dice: str = "d20"
    modifier: int = 0
    reason: str = "Roll"
    dc: int | None = None

    def to_dice_roll(self) -> DiceRoll:
        """Build the roll to resolve, folding the flat modifier into the notation.

        Unparseable notation falls back to a single d20.
        """
        parsed = parse_dice_string(self.dice or "") or DiceRoll(die=DieType.D20)
        return parsed.model_copy(
            update={
                "modifier": parsed.modifier + (self.modifier or 0),
                "reason": self.reason or "Roll",
            }
        )


class NarratorReply(BaseModel):
    """A fully interpreted narrator response.

    Attributes:
        narrative: Text to display and speak.
        suggested_actions: Player action suggestions.
        roll_request: Pending roll, if the narrator asked for one.
        game_updates: Decoded patch, if any.
        structured: Whether a JSON object was found in the reply.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    narrative: str
    suggested_actions: tuple[str, ...] = ()
    roll_request: RollRequest | None = None
    game_updates: GameUpdates | None = None
    structured: bool = True


# =============================================================================
# Extraction
# =============================================================================


def _loads_object(text: str) -> dict[str, Any] | None:
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, RecursionError):
        return None
    return value if isinstance(value, dict) else None


def _scan_balanced_objects(text: str) -> dict[str, Any] | None:
    depth = 0
    start = -1
    in_string = False
    escaped = False

    for position, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"' and depth > 0:
            in_string = True
        elif char == "{":
            if depth == 0:
                start = position
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                candidate = _loads_object(text[start : position + 1])
                if candidate is not None:
                    return candidate
    return None


def extract_json(text: str) -> dict[str, Any] | None:
    """Extract the first JSON object from a narrator reply.

    Tries, in order: the whole trimmed text, the first fenced code block,
    then each top-level balanced ``{...}`` span as it closes.

    Args:
        text: Raw narrator output.

    Returns:
        The decoded object, or None if no tier succeeds.
    """
    direct = _loads_object(text.strip())
    if direct is not None:
        return direct

    fence = _FENCE_PATTERN.search(text)
    if fence:
        fenced = _loads_object(fence.group(1).strip())
        if fenced is not None:
            return fenced

    return _scan_balanced_objects(text)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fence markers, keeping their contents."""
    return _FENCE_MARKER_PATTERN.sub("", text).strip()


# =============================================================================
# Interpretation
# =============================================================================


def _suggested_actions(value: Any) -> tuple[str, ...]:
    if value is None:
        return (CONTINUE_HINT,)
    if isinstance(value, list | tuple):
        return tuple(item for item in value if isinstance(item, str) and item.strip())
    return (CONTINUE_HINT,)


def _roll_request(value: Any) -> RollRequest | None:
    if not isinstance(value, dict):
        return None
    try:
        return RollRequest.model_validate(value)
    except ValidationError:
        return None


def interpret_response(text: str) -> NarratorReply:
    """Interpret a complete narrator reply.

    Args:
        text: The full response text, after streaming has finished.

    Returns:
        NarratorReply. When no JSON object can be extracted, the whole
        text (without fence markers) becomes the narrative and a fixed
        set of suggestions is offered.
    """
    data = extract_json(text)
    if data is None:
        logger.warning("Narrator reply was not JSON, using it as narrative", length=len(text))
        return NarratorReply(
            narrative=strip_code_fences(text),
            suggested_actions=FALLBACK_SUGGESTED_ACTIONS,
            structured=False,
        )

    narrative = data.get("narrative")
    if not isinstance(narrative, str) or not narrative:
        narrative = text

    raw_updates = data.get("gameUpdates")
    updates = GameUpdates.model_validate(raw_updates) if isinstance(raw_updates, dict) else None

    return NarratorReply(
        narrative=narrative,
        suggested_actions=_suggested_actions(data.get("suggestedActions")),
        roll_request=_roll_request(data.get("rollRequest")),
        game_updates=updates,
    )


def updates_to_actions(updates: GameUpdates | None) -> list[BaseAction]:
    """Translate a patch into reducer actions in a fixed order.

    Order: damage, healing, xp, gold, added items, removed items,
    location, new NPC, quest, start combat, end combat, enemy damage,
    death save. Numeric and text fields apply only when truthy, so
    ``damage: 0`` is the same as no damage field. ``deathSave`` applies
    whenever it is a boolean.

    Args:
        updates: Decoded patch, or None.

    Returns:
        Actions to fold over the current state.
    """
    if updates is None:
        return []

    actions: list[BaseAction] = []
    if updates.damage:
        actions.append(TakeDamage(amount=updates.damage))
    if updates.healing:
        actions.append(Heal(amount=updates.healing))
    if updates.xp:
        actions.append(GainXp(amount=updates.xp))
    if updates.gold:
        actions.append(AddGold(amount=updates.gold))
    for item in updates.add_items or ():
        actions.append(AddItem(item=item))
    for item in updates.remove_items or ():
        actions.append(RemoveItem(item=item))
    if updates.location:
        actions.append(UpdateLocation(location=updates.location))
    if updates.new_npc:
        actions.append(AddNpc(name=updates.new_npc))
    if updates.quest:
        actions.append(AddQuest(quest=updates.quest))
    if updates.start_combat:
        actions.append(StartCombat(enemies=updates.start_combat))
    if updates.end_combat:
        actions.append(EndCombat())
    if updates.enemy_damage is not None:
        actions.append(
            EnemyTakeDamage(index=updates.enemy_damage.index, amount=updates.enemy_damage.amount)
        )
    if updates.death_save is not None:
        actions.append(DeathSave(success=updates.death_save))
    return actions


__all__ = [
    "EnemyDamage",
    "GameUpdates",
    "RollRequest",
    "NarratorReply",
    "extract_json",
    "strip_code_fences",
    "interpret_response",
    "updates_to_actions",
]
