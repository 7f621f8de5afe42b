"""Character model: value types, derived stats and character factories.

Every function here is pure apart from the random factories. Derived
statistics (maximum HP, armor class, modifiers, XP thresholds) are
computed from class, ability scores and level so that the reducer can
recompute them on level-up instead of trusting stored values.
"""

from __future__ import annotations

import random
from typing import Annotated

import d20
from pydantic import BaseModel, ConfigDict, Field, model_validator

from dungeon_companion.core.constants import (
    DEFAULT_STARTING_GOLD,
    MAX_CHARACTER_LEVEL,
    MIN_HIT_POINTS,
    RANDOM_STARTING_GOLD_RANGE,
    XP_THRESHOLDS,
)
from dungeon_companion.models.enums import Ability, CharacterClass, Race


# =============================================================================
# Value Types
# =============================================================================


class AbilityScores(BaseModel):
    """The six ability scores of a character.

    Scores are nominally 3-20 but are not clamped; only the modifier
    formula is applied to them.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    strength: int = Field(description="Strength score")
    dexterity: int = Field(description="Dexterity score")
    constitution: int = Field(description="Constitution score")
    intelligence: int = Field(description="Intelligence score")
    wisdom: int = Field(description="Wisdom score")
    charisma: int = Field(description="Charisma score")

    def score(self, ability: Ability) -> int:
        """Get the raw score for an ability."""
        return getattr(self, ability.value)

    def modifier(self, ability: Ability) -> int:
        """Get the modifier for an ability."""
        return get_modifier(self.score(ability))


class Character(BaseModel):
    """A player character.

    Attributes:
        name: Character name.
        race: One of the six playable races.
        character_class: One of the six playable classes.
        level: Character level (1-20).
        xp: Total experience points.
        hp: Current hit points, never above max_hp.
        max_hp: Maximum hit points.
        ac: Armor class.
        abilities: The six ability scores.
        backstory: Free-form background text.
        inventory: Item names in acquisition order, duplicates allowed.
        gold: Gold pieces carried.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1, max_length=100, description="Character name")
    race: Race
    character_class: CharacterClass
    level: Annotated[int, Field(ge=1, le=MAX_CHARACTER_LEVEL)] = 1
    xp: Annotated[int, Field(ge=0)] = 0
    hp: Annotated[int, Field(ge=0, description="Current hit points")]
    max_hp: Annotated[int, Field(ge=1, description="Maximum hit points")]
    ac: Annotated[int, Field(ge=1, description="Armor class")]
    abilities: AbilityScores
    backstory: str = ""
    inventory: tuple[str, ...] = ()
    gold: Annotated[int, Field(ge=0)] = 0

    @model_validator(mode="after")
    def validate_hp_within_max(self) -> "Character":
        """Ensure current HP does not exceed maximum HP.

        Raises:
            ValueError: If hp is greater than max_hp.
        """
        if self.hp > self.max_hp:
            raise ValueError(f"hp ({self.hp}) cannot exceed max_hp ({self.max_hp})")
        return self

    @property
    def is_down(self) -> bool:
        """Whether the character is at 0 HP."""
        return self.hp == 0

    @property
    def summary(self) -> str:
        """One-line description, e.g. 'level 3 elf wizard'."""
        return f"level {self.level} {self.race} {self.character_class}"


class CharacterPreset(BaseModel):
    """A ready-made character offered for quick starts."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    race: Race
    character_class: CharacterClass
    abilities: AbilityScores
    backstory: str
    flavor: str
    inventory: tuple[str, ...]


# =============================================================================
# Derived Statistics
# =============================================================================


def get_modifier(score: int) -> int:
    """Calculate the ability modifier for a score.

    Args:
        score: Ability score.

    Returns:
        ``floor((score - 10) / 2)``.
    """
    return (score - 10) // 2


def get_modifier_string(score: int) -> str:
    """Format a score's modifier with an explicit sign (``+2``, ``-1``)."""
    modifier = get_modifier(score)
    return f"+{modifier}" if modifier >= 0 else str(modifier)


def calculate_hp(character_class: CharacterClass, constitution: int, level: int) -> int:
    """Calculate maximum hit points.

    Level 1 grants the full hit die plus the CON modifier; each later
    level grants half the hit die plus one plus the CON modifier.

    Args:
        character_class: The character's class.
        constitution: Constitution score.
        level: Character level.

    Returns:
        Maximum HP, never less than 1.
    """
    hit_die = character_class.hit_die
    con_mod = get_modifier(constitution)
    base = hit_die + con_mod
    per_level = hit_die // 2 + 1 + con_mod
    return max(MIN_HIT_POINTS, base + per_level * (level - 1))


# Fixed armor base and optional DEX bonus cap per class
_ARMOR: dict[CharacterClass, tuple[int, int | None]] = {
    CharacterClass.BARBARIAN: (12, None),
    CharacterClass.FIGHTER: (16, 2),
    CharacterClass.CLERIC: (16, 2),
    CharacterClass.RANGER: (14, 2),
    CharacterClass.ROGUE: (12, None),
    CharacterClass.WIZARD: (10, None),
}


def calculate_ac(character_class: CharacterClass, dexterity: int) -> int:
    """Calculate armor class from the class armor archetype.

    Args:
        character_class: The character's class.
        dexterity: Dexterity score.

    Returns:
        Armor class.
    """
    base, dex_cap = _ARMOR[character_class]
    dex_mod = get_modifier(dexterity)
    if dex_cap is not None:
        dex_mod = min(dex_mod, dex_cap)
    return base + dex_mod


def xp_for_next_level(level: int) -> int | None:
    """Get the total XP needed to reach the next level.

    Returns:
        The threshold, or None at the level cap.
    """
    if level >= MAX_CHARACTER_LEVEL:
        return None
    return XP_THRESHOLDS[level + 1]


def should_level_up(xp: int, level: int) -> bool:
    """Check whether a character has reached the next level's threshold."""
    threshold = xp_for_next_level(level)
    return threshold is not None and xp >= threshold


# =============================================================================
# Creation Tables
# =============================================================================

CLASS_INVENTORIES: dict[CharacterClass, tuple[str, ...]] = {
    CharacterClass.FIGHTER: ("Longsword", "Shield", "Chain mail", "Explorer's pack"),
    CharacterClass.WIZARD: ("Quarterstaff", "Spellbook", "Component pouch", "Scholar's pack"),
    CharacterClass.ROGUE: (
        "Shortsword",
        "Shortbow",
        "Leather armor",
        "Thieves' tools",
        "Burglar's pack",
    ),
    CharacterClass.CLERIC: ("Warhammer", "Shield", "Scale mail", "Holy symbol", "Priest's pack"),
    CharacterClass.RANGER: ("Longbow", "Shortsword (2)", "Leather armor", "Explorer's pack"),
    CharacterClass.BARBARIAN: ("Greataxe", "Handaxe (2)", "Explorer's pack", "Javelins (4)"),
}

FIRST_NAMES: dict[Race, tuple[str, ...]] = {
    Race.HUMAN: ("Aldric", "Gareth", "Elena", "Mira", "Theron", "Cassandra", "Roland", "Freya"),
    Race.ELF: ("Lyra", "Thalion", "Arwen", "Faelar", "Celeste", "Elyndor", "Seraphina", "Arannis"),
    Race.DWARF: ("Bronwyn", "Torgin", "Hilda", "Durak", "Gretta", "Balin", "Dagny", "Thrain"),
    Race.HALFLING: ("Finn", "Rosie", "Pippin", "Marigold", "Bramble", "Tansy", "Cob", "Wren"),
    Race.HALF_ORC: ("Kael", "Shara", "Grom", "Zara", "Thokk", "Vala", "Drog", "Neera"),
    Race.TIEFLING: ("Sera", "Mordai", "Lilith", "Zephyr", "Ravyn", "Damien", "Nyx", "Ashara"),
}

LAST_NAMES: dict[Race, tuple[str, ...]] = {
    Race.HUMAN: ("Stoneshield", "Brightblade", "Ashford", "Ravencrest", "Ironwill", "Dawnstrider"),
    Race.ELF: ("Moonwhisper", "Starweaver", "Windwalker", "Dawnpetal", "Silverleaf", "Nightbloom"),
    Race.DWARF: ("Ironheart", "Deepdelve", "Forgehammer", "Stonehelm", "Goldvein", "Battleborn"),
    Race.HALFLING: ("Lightfoot", "Goodbarrel", "Underbough", "Tealeaf", "Thorngage", "Burrows"),
    Race.HALF_ORC: (
        "Stormrunner",
        "Skullcrusher",
        "Bloodfang",
        "Thunderfist",
        "Bonecleaver",
        "Ironjaw",
    ),
    Race.TIEFLING: ("Duskwalker", "Hellbane", "Shadowmere", "Ashborn", "Grimsoul", "Nightfire"),
}

BACKSTORIES: dict[CharacterClass, tuple[str, ...]] = {
    CharacterClass.FIGHTER: (
        "A former soldier who left the army after a war that cost too many lives.",
        "Trained by a legendary swordmaster who vanished mysteriously.",
        "A tournament champion seeking glory beyond the arena walls.",
    ),
    CharacterClass.WIZARD: (
        "A scholar who discovered forbidden magic in ancient ruins.",
        "Apprentice to a powerful mage who was consumed by their own spell.",
        "Self-taught from a spellbook found in a dragon's abandoned hoard.",
    ),
    CharacterClass.ROGUE: (
        "A charming street urchin who learned to survive by wit and quick fingers.",
        "A former spy who knows too many dangerous secrets.",
        "A treasure hunter drawn to ancient tombs and deadly traps.",
    ),
    CharacterClass.CLERIC: (
        "A devoted healer whose temple was destroyed, now seeking justice.",
        "Called by divine visions to embark on a sacred quest.",
        "A former soldier who found faith on the battlefield.",
    ),
    CharacterClass.RANGER: (
        "Raised in the wilderness after being abandoned as a child.",
        "A bounty hunter who tracks monsters through the untamed frontier.",
        "Sworn to protect the ancient forests from encroaching darkness.",
    ),
    CharacterClass.BARBARIAN: (
        "Raised by wolves, driven by primal instinct and unshakable loyalty.",
        "Last survivor of a tribe destroyed by a great evil.",
        "An arena gladiator who broke free and now seeks true freedom.",
    ),
}


def _scores(str_: int, dex: int, con: int, int_: int, wis: int, cha: int) -> AbilityScores:
    return AbilityScores(
        strength=str_,
        dexterity=dex,
        constitution=con,
        intelligence=int_,
        wisdom=wis,
        charisma=cha,
    )


CHARACTER_PRESETS: tuple[CharacterPreset, ...] = (
    CharacterPreset(
        name="Aldric Stoneshield",
        race=Race.HUMAN,
        character_class=CharacterClass.FIGHTER,
        abilities=_scores(16, 12, 14, 10, 11, 13),
        backstory=(
            "A former city guard who left duty after witnessing corruption in the ranks. "
            "Now seeks to protect the innocent on his own terms."
        ),
        flavor="Sturdy and reliable. Hits hard, takes hits harder. Great for beginners.",
        inventory=CLASS_INVENTORIES[CharacterClass.FIGHTER],
    ),
    CharacterPreset(
        name="Lyra Moonwhisper",
        race=Race.ELF,
        character_class=CharacterClass.WIZARD,
        abilities=_scores(8, 14, 12, 16, 13, 10),
        backstory=(
            "An elven scholar who discovered a forbidden tome in the ruins of an ancient "
            "library. The secrets within drove her to seek more knowledge at any cost."
        ),
        flavor="Fragile but devastating. Bends reality with arcane magic.",
        inventory=CLASS_INVENTORIES[CharacterClass.WIZARD],
    ),
    CharacterPreset(
        name="Finn Lightfoot",
        race=Race.HALFLING,
        character_class=CharacterClass.ROGUE,
        abilities=_scores(10, 16, 12, 13, 11, 14),
        backstory=(
            "A charming street urchin from the capital's underbelly. What he lacks in "
            "size, he makes up for in cunning and impossibly quick fingers."
        ),
        flavor="Sneaky and clever. Picks locks, disarms traps, stabs from the shadows.",
        inventory=CLASS_INVENTORIES[CharacterClass.ROGUE],
    ),
    CharacterPreset(
        name="Bronwyn Ironheart",
        race=Race.DWARF,
        character_class=CharacterClass.CLERIC,
        abilities=_scores(14, 10, 15, 11, 16, 12),
        backstory=(
            "A devoted healer of Moradin who lost her temple to a dragon attack. She "
            "wanders the land mending wounds and seeking divine justice."
        ),
        flavor="Heals, protects, and smites. The backbone of any adventure.",
        inventory=CLASS_INVENTORIES[CharacterClass.CLERIC],
    ),
    CharacterPreset(
        name="Kael Stormrunner",
        race=Race.HALF_ORC,
        character_class=CharacterClass.BARBARIAN,
        abilities=_scores(17, 13, 15, 8, 10, 11),
        backstory=(
            "Raised by wolves after being abandoned as an infant. His rage is primal, "
            "his loyalty unshakable, and his appetite legendary."
        ),
        flavor="Pure fury. Rages into battle and shrugs off damage. Simple and devastating.",
        inventory=CLASS_INVENTORIES[CharacterClass.BARBARIAN],
    ),
    CharacterPreset(
        name="Sera Duskwalker",
        race=Race.TIEFLING,
        character_class=CharacterClass.RANGER,
        abilities=_scores(12, 16, 13, 11, 14, 10),
        backstory=(
            "Shunned by superstitious villagers for her infernal heritage, she found "
            "solace in the wilderness. The forests accept all who respect them."
        ),
        flavor="Versatile tracker and archer. At home in the wild, deadly at range.",
        inventory=CLASS_INVENTORIES[CharacterClass.RANGER],
    ),
)


# =============================================================================
# Factories
# =============================================================================


def roll_ability_score() -> int:
    """Roll one ability score as 4d6, dropping the lowest die."""
    return d20.roll("4d6kh3").total


def _build_character(
    name: str,
    race: Race,
    character_class: CharacterClass,
    abilities: AbilityScores,
    backstory: str,
    inventory: tuple[str, ...],
    gold: int,
) -> Character:
    max_hp = calculate_hp(character_class, abilities.constitution, 1)
    return Character(
        name=name,
        race=race,
        character_class=character_class,
        level=1,
        xp=0,
        hp=max_hp,
        max_hp=max_hp,
        ac=calculate_ac(character_class, abilities.dexterity),
        abilities=abilities,
        backstory=backstory,
        inventory=inventory,
        gold=gold,
    )


def create_character_from_preset(preset: CharacterPreset) -> Character:
    """Create a level 1 character from a preset.

    Args:
        preset: One of CHARACTER_PRESETS, or any other preset.

    Returns:
        A full-health character carrying the preset's inventory.
    """
    return _build_character(
        preset.name,
        preset.race,
        preset.character_class,
        preset.abilities,
        preset.backstory,
        preset.inventory,
        DEFAULT_STARTING_GOLD,
    )


def create_custom_character(
    name: str,
    race: Race,
    character_class: CharacterClass,
    abilities: AbilityScores,
    backstory: str = "",
) -> Character:
    """Create a level 1 character from explicit choices.

    The starting inventory is the class default.
    """
    return _build_character(
        name,
        race,
        character_class,
        abilities,
        backstory,
        CLASS_INVENTORIES[character_class],
        DEFAULT_STARTING_GOLD,
    )


def generate_random_character() -> Character:
    """Create a fully randomized level 1 character.

    Race, class, name and backstory are picked uniformly; abilities use
    4d6-drop-lowest; gold is drawn from RANDOM_STARTING_GOLD_RANGE.
    """
    race = random.choice(list(Race))
    character_class = random.choice(list(CharacterClass))
    name = f"{random.choice(FIRST_NAMES[race])} {random.choice(LAST_NAMES[race])}"
    abilities = AbilityScores(**{ability.value: roll_ability_score() for ability in Ability})
    return _build_character(
        name,
        race,
        character_class,
        abilities,
        random.choice(BACKSTORIES[character_class]),
        CLASS_INVENTORIES[character_class],
        random.randint(*RANDOM_STARTING_GOLD_RANGE),
    )


__all__ = [
    "AbilityScores",
    "Character",
    "CharacterPreset",
    "CHARACTER_PRESETS",
    "CLASS_INVENTORIES",
    "FIRST_NAMES",
    "LAST_NAMES",
    "BACKSTORIES",
    "get_modifier",
    "get_modifier_string",
    "calculate_hp",
    "calculate_ac",
    "xp_for_next_level",
    "should_level_up",
    "roll_ability_score",
    "create_character_from_preset",
    "create_custom_character",
    "generate_random_character",
]
