"""Enumeration types for the Dungeon Companion.

These enums are the closed vocabularies of the game-state core: the six
playable races and classes, the six abilities, session phases, story
entry kinds, die types and the roll categories a narrator may request.
"""

from __future__ import annotations

from enum import StrEnum


class Ability(StrEnum):
    """The six core ability scores."""

    STR = "strength"
    DEX = "dexterity"
    CON = "constitution"
    INT = "intelligence"
    WIS = "wisdom"
    CHA = "charisma"

    @property
    def full_name(self) -> str:
        """Get the full name of the ability (e.g., 'Strength')."""
        return self.value.capitalize()

    @property
    def abbreviation(self) -> str:
        """Get the three-letter abbreviation (e.g., 'STR')."""
        return self.name


class Race(StrEnum):
    """Playable races."""

    HUMAN = "human"
    ELF = "elf"
    DWARF = "dwarf"
    HALFLING = "halfling"
    HALF_ORC = "half-orc"
    TIEFLING = "tiefling"


class CharacterClass(StrEnum):
    """Playable classes and their hit die sizes."""

    FIGHTER = "fighter"
    WIZARD = "wizard"
    ROGUE = "rogue"
    CLERIC = "cleric"
    RANGER = "ranger"
    BARBARIAN = "barbarian"

    @property
    def hit_die(self) -> int:
        """Get the hit die size used for HP calculation.

        Returns:
            Number of faces on the class hit die.
        """
        hit_dice: dict[CharacterClass, int] = {
            CharacterClass.BARBARIAN: 12,
            CharacterClass.FIGHTER: 10,
            CharacterClass.RANGER: 10,
            CharacterClass.CLERIC: 8,
            CharacterClass.ROGUE: 8,
            CharacterClass.WIZARD: 6,
        }
        return hit_dice[self]


class GamePhase(StrEnum):
    """Top-level mode of a game session.

    ``setup`` and ``character-select`` are pre-game, ``playing`` and
    ``combat`` are live, ``game-over`` is terminal until a new game.
    """

    SETUP = "setup"
    CHARACTER_SELECT = "character-select"
    CHARACTER_CREATE = "character-create"
    PLAYING = "playing"
    COMBAT = "combat"
    GAME_OVER = "game-over"

    @property
    def is_live(self) -> bool:
        """Whether the session is in an interactive adventure phase."""
        return self in (GamePhase.PLAYING, GamePhase.COMBAT)


class StoryEntryType(StrEnum):
    """Who or what produced a story log entry."""

    DM = "dm"
    PLAYER = "player"
    SYSTEM = "system"
    ROLL = "roll"


class DieType(StrEnum):
    """Supported polyhedral dice."""

    D4 = "d4"
    D6 = "d6"
    D8 = "d8"
    D10 = "d10"
    D12 = "d12"
    D20 = "d20"

    @property
    def max_value(self) -> int:
        """Highest face value on the die."""
        return int(self.value[1:])

    @classmethod
    def from_sides(cls, sides: int) -> DieType | None:
        """Look up a die by face count.

        Args:
            sides: Number of faces.

        Returns:
            The matching DieType, or None for unsupported sizes.
        """
        try:
            return cls(f"d{sides}")
        except ValueError:
            return None


class RollRequestType(StrEnum):
    """Kinds of roll a narrator can ask the player to make."""

    ABILITY_CHECK = "ability_check"
    ATTACK = "attack"
    DAMAGE = "damage"
    SAVING_THROW = "saving_throw"
    INITIATIVE = "initiative"
    DEATH_SAVE = "death_save"


__all__ = [
    "Ability",
    "Race",
    "CharacterClass",
    "GamePhase",
    "StoryEntryType",
    "DieType",
    "RollRequestType",
]
