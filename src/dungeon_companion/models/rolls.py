"""Dice roll value types.

A DiceRoll is a specification (what to roll); a DiceResult is its
resolution (which faces came up). Rules builders produce DiceRoll values
and the dice engine, or a player entering physical dice, turns them into
DiceResult values.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from dungeon_companion.core.constants import MAX_DICE_PER_ROLL
from dungeon_companion.models.enums import DieType


class DiceRoll(BaseModel):
    """Specification of a roll: ``count`` dice of one type plus a flat modifier.

    Attributes:
        die: Die type to roll.
        count: Number of dice, at most MAX_DICE_PER_ROLL.
        modifier: Flat modifier added to the sum.
        reason: Human-readable purpose of the roll.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    die: DieType
    count: Annotated[int, Field(ge=1, le=MAX_DICE_PER_ROLL)] = 1
    modifier: int = 0
    reason: str = ""

    @property
    def notation(self) -> str:
        """Dice notation such as ``2d6+3`` or ``1d20``."""
        if self.modifier > 0:
            return f"{self.count}{self.die}+{self.modifier}"
        if self.modifier < 0:
            return f"{self.count}{self.die}{self.modifier}"
        return f"{self.count}{self.die}"


class DiceResult(BaseModel):
    """A resolved roll.

    Attributes:
        roll: The specification that was rolled.
        values: Individual die faces in roll order.
        total: Sum of values plus the modifier.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    roll: DiceRoll
    values: tuple[int, ...]
    total: int


__all__ = ["DiceRoll", "DiceResult"]
