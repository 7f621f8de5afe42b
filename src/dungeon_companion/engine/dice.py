"""Dice rolling for the Dungeon Companion.

Faces are produced by the d20 library's uniform roller; rolls are not
seeded and not reproducible. This module also parses the compact
``[count]d{sides}[+/-modifier]`` notation narrators use in roll requests
and formats resolved rolls for the story log.
"""

from __future__ import annotations

import re

import d20

from dungeon_companion.core.constants import MAX_DICE_PER_ROLL
from dungeon_companion.core.exceptions import DiceRollError
from dungeon_companion.core.logging import get_logger
from dungeon_companion.models.enums import DieType
from dungeon_companion.models.rolls import DiceResult, DiceRoll


logger = get_logger(__name__)

_DICE_PATTERN = re.compile(r"^(\d*)d(\d+)([+-]\d+)?$", re.IGNORECASE)


def roll_die(die: DieType) -> int:
    """Roll a single die.

    Args:
        die: Die type to roll.

    Returns:
        A uniformly distributed face in ``[1, die.max_value]``.
    """
    return d20.roll(f"1d{die.max_value}").total


def roll_dice(roll: DiceRoll) -> DiceResult:
    """Resolve a roll specification.

    Args:
        roll: What to roll.

    Returns:
        DiceResult with every face and the modified total.
    """
    values = tuple(roll_die(roll.die) for _ in range(roll.count))
    total = sum(values) + roll.modifier

    logger.debug(
        "Dice rolled",
        expression=roll.notation,
        values=values,
        total=total,
        reason=roll.reason,
    )
    return DiceResult(roll=roll, values=values, total=total)


def parse_dice_string(text: str) -> DiceRoll | None:
    """Parse compact dice notation.

    Accepts ``2d6+3``, ``d20``, ``1d8-1`` and similar. The count defaults
    to 1 and the modifier to 0.

    Args:
        text: Notation to parse.

    Returns:
        A DiceRoll with an empty reason, or None for any other shape or
        an unsupported number of sides, or a count above MAX_DICE_PER_ROLL.
    """
    match = _DICE_PATTERN.match(text.strip())
    if match is None:
        return None

    count = int(match.group(1)) if match.group(1) else 1
    die = DieType.from_sides(int(match.group(2)))
    modifier = int(match.group(3)) if match.group(3) else 0
    if die is None or not 1 <= count <= MAX_DICE_PER_ROLL:
        return None

    return DiceRoll(die=die, count=count, modifier=modifier)


def format_roll(result: DiceResult) -> str:
    """Format a resolved roll, e.g. ``2d6+3: [4, 5] +3 = 12``.

    A single die is shown bare (``1d20: 17 = 17``).
    """
    roll = result.roll
    modifier = ""
    if roll.modifier > 0:
        modifier = f"+{roll.modifier}"
    elif roll.modifier < 0:
        modifier = str(roll.modifier)

    if len(result.values) > 1:
        faces = f"[{', '.join(str(value) for value in result.values)}]"
    else:
        faces = str(result.values[0]) if result.values else "0"

    shown_modifier = f" {modifier}" if modifier else ""
    return f"{roll.count}{roll.die}{modifier}: {faces}{shown_modifier} = {result.total}"


def roll_notation(text: str, reason: str = "") -> DiceResult:
    """Parse and roll compact notation in one step.

    Args:
        text: Notation such as ``1d20+5``.
        reason: Purpose recorded on the roll.

    Returns:
        The resolved roll.

    Raises:
        DiceRollError: If the notation cannot be parsed.
    """
    roll = parse_dice_string(text)
    if roll is None:
        raise DiceRollError(f"Invalid dice expression: {text!r}", expression=text)
    return roll_dice(roll.model_copy(update={"reason": reason}))


__all__ = [
    "DieType",
    "DiceRoll",
    "DiceResult",
    "roll_die",
    "roll_dice",
    "parse_dice_string",
    "format_roll",
    "roll_notation",
]
