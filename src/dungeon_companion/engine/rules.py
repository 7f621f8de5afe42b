"""Class-based roll formulas.

The builders here never roll dice. They return DiceRoll specifications
that are resolved by the dice engine or by a player entering physical
dice results.
"""

from __future__ import annotations

from dungeon_companion.models.character import Character
from dungeon_companion.models.enums import Ability, CharacterClass, DieType
from dungeon_companion.models.rolls import DiceRoll


# =============================================================================
# Class Tables
# =============================================================================

CLASS_ATTACK_ABILITY: dict[CharacterClass, Ability] = {
    CharacterClass.FIGHTER: Ability.STR,
    CharacterClass.BARBARIAN: Ability.STR,
    CharacterClass.CLERIC: Ability.STR,
    CharacterClass.RANGER: Ability.DEX,
    CharacterClass.ROGUE: Ability.DEX,
    CharacterClass.WIZARD: Ability.INT,
}
"""Primary attack or casting ability per class."""

CLASS_DAMAGE_DIE: dict[CharacterClass, DieType] = {
    CharacterClass.FIGHTER: DieType.D10,
    CharacterClass.BARBARIAN: DieType.D12,
    CharacterClass.CLERIC: DieType.D8,
    CharacterClass.RANGER: DieType.D8,
    CharacterClass.ROGUE: DieType.D6,
    CharacterClass.WIZARD: DieType.D6,
}
"""Weapon or cantrip damage die per class (one die per hit)."""


def proficiency_bonus(level: int) -> int:
    """Proficiency bonus for a level: ``floor((level - 1) / 4) + 2``."""
    return (level - 1) // 4 + 2


# =============================================================================
# Roll Builders
# =============================================================================


def get_attack_roll(character: Character) -> DiceRoll:
    """Build an attack roll: d20 + attack ability modifier + proficiency.

    Args:
        character: The attacker.

    Returns:
        DiceRoll specification.
    """
    ability = CLASS_ATTACK_ABILITY[character.character_class]
    modifier = character.abilities.modifier(ability) + proficiency_bonus(character.level)
    return DiceRoll(die=DieType.D20, count=1, modifier=modifier, reason="Attack roll")


def get_damage_roll(character: Character) -> DiceRoll:
    """Build a damage roll: one class damage die + attack ability modifier.

    Args:
        character: The attacker.

    Returns:
        DiceRoll specification.
    """
    ability = CLASS_ATTACK_ABILITY[character.character_class]
    return DiceRoll(
        die=CLASS_DAMAGE_DIE[character.character_class],
        count=1,
        modifier=character.abilities.modifier(ability),
        reason="Damage roll",
    )


def get_ability_check_roll(
    character: Character,
    ability: Ability,
    *,
    proficient: bool = False,
) -> DiceRoll:
    """Build an ability check, optionally adding proficiency.

    Args:
        character: The character making the check.
        ability: Ability being tested.
        proficient: Whether the character is proficient.

    Returns:
        DiceRoll specification.
    """
    modifier = character.abilities.modifier(ability)
    if proficient:
        modifier += proficiency_bonus(character.level)
    return DiceRoll(
        die=DieType.D20,
        count=1,
        modifier=modifier,
        reason=f"{ability.abbreviation} check",
    )


def get_saving_throw_roll(character: Character, ability: Ability) -> DiceRoll:
    """Build a saving throw: d20 + ability modifier, no proficiency."""
    return DiceRoll(
        die=DieType.D20,
        count=1,
        modifier=character.abilities.modifier(ability),
        reason=f"{ability.abbreviation} saving throw",
    )


def get_initiative_roll(character: Character) -> DiceRoll:
    """Build an initiative roll: d20 + DEX modifier."""
    return DiceRoll(
        die=DieType.D20,
        count=1,
        modifier=character.abilities.modifier(Ability.DEX),
        reason="Initiative",
    )


def get_death_saving_throw() -> DiceRoll:
    """Build a death saving throw: a flat d20."""
    return DiceRoll(die=DieType.D20, count=1, modifier=0, reason="Death saving throw")


__all__ = [
    "CLASS_ATTACK_ABILITY",
    "CLASS_DAMAGE_DIE",
    "proficiency_bonus",
    "get_attack_roll",
    "get_damage_roll",
    "get_ability_check_roll",
    "get_saving_throw_roll",
    "get_initiative_roll",
    "get_death_saving_throw",
]
