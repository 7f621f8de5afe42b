"""Tests for the rules engine roll builders."""

from __future__ import annotations

import pytest

from dungeon_companion.engine.rules import (
    get_ability_check_roll,
    get_attack_roll,
    get_damage_roll,
    get_death_saving_throw,
    get_initiative_roll,
    get_saving_throw_roll,
    proficiency_bonus,
)
from dungeon_companion.models import Ability, Character, DieType


class TestProficiencyBonus:
    """Tests for the proficiency bonus table."""

    @pytest.mark.parametrize(
        ("level", "expected"),
        [(1, 2), (4, 2), (5, 3), (8, 3), (9, 4), (13, 5), (17, 6), (20, 6)],
    )
    def test_by_level(self, level: int, expected: int) -> None:
        """Test floor((level - 1) / 4) + 2."""
        assert proficiency_bonus(level) == expected


class TestRollBuilders:
    """Tests for roll specifications built from a character."""

    def test_fighter_attack(self, sample_character: Character) -> None:
        """Test d20 + STR modifier + proficiency for a fighter."""
        roll = get_attack_roll(sample_character)

        assert roll.die == DieType.D20
        assert roll.modifier == 3 + 2
        assert roll.reason == "Attack roll"

    def test_wizard_attack_uses_int(self, sample_wizard: Character) -> None:
        """Test wizards attack with INT."""
        assert get_attack_roll(sample_wizard).modifier == 3 + 2

    def test_fighter_damage(self, sample_character: Character) -> None:
        """Test one class damage die plus the attack modifier."""
        roll = get_damage_roll(sample_character)

        assert roll.die == DieType.D10
        assert roll.count == 1
        assert roll.modifier == 3

    def test_wizard_damage(self, sample_wizard: Character) -> None:
        """Test wizards deal a d6."""
        assert get_damage_roll(sample_wizard).die == DieType.D6

    def test_ability_check(self, sample_character: Character) -> None:
        """Test ability checks with and without proficiency."""
        plain = get_ability_check_roll(sample_character, Ability.CHA)
        proficient = get_ability_check_roll(sample_character, Ability.CHA, proficient=True)

        assert plain.modifier == 1
        assert proficient.modifier == 3
        assert plain.reason == "CHA check"

    def test_saving_throw(self, sample_character: Character) -> None:
        """Test saving throws add only the ability modifier."""
        roll = get_saving_throw_roll(sample_character, Ability.CON)

        assert roll.modifier == 2
        assert roll.reason == "CON saving throw"

    def test_initiative(self, sample_wizard: Character) -> None:
        """Test initiative adds the DEX modifier."""
        assert get_initiative_roll(sample_wizard).modifier == 2

    def test_death_saving_throw(self) -> None:
        """Test death saves are a flat d20."""
        roll = get_death_saving_throw()

        assert roll.die == DieType.D20
        assert roll.modifier == 0
