"""Rule and session constants for the Dungeon Companion.

Values follow the simplified 5e approximation the engine implements.
"""

from __future__ import annotations

# =============================================================================
# Character Progression
# =============================================================================

MIN_CHARACTER_LEVEL = 1
"""Level every new character starts at."""

MAX_CHARACTER_LEVEL = 20
"""Level cap; no XP threshold exists beyond it."""

XP_THRESHOLDS: dict[int, int] = {
    1: 0,
    2: 300,
    3: 900,
    4: 2700,
    5: 6500,
    6: 14000,
    7: 23000,
    8: 34000,
    9: 48000,
    10: 64000,
    11: 85000,
    12: 100000,
    13: 120000,
    14: 140000,
    15: 165000,
    16: 195000,
    17: 225000,
    18: 265000,
    19: 305000,
    20: 355000,
}
"""Total XP needed to reach each level."""

MIN_HIT_POINTS = 1
"""Floor applied to computed maximum HP after CON penalties."""

# =============================================================================
# Combat
# =============================================================================

MAX_DEATH_SAVES = 3
"""Three successes stabilize, three failures end the game."""

STABILIZED_HIT_POINTS = 1
"""HP a character is left with after three successful death saves."""

MAX_DICE_PER_ROLL = 100
"""Largest number of dice a single roll may ask for."""

# =============================================================================
# Character Creation
# =============================================================================

DEFAULT_STARTING_GOLD = 15
"""Gold given to preset and custom characters."""

RANDOM_STARTING_GOLD_RANGE = (10, 29)
"""Inclusive gold range for fully randomized characters."""

DEFAULT_LOCATION = "Unknown"
"""Location shown before the narrator names one."""

# =============================================================================
# Narrator Interaction
# =============================================================================

CONTINUE_HINT = "Continue"
"""Single suggestion offered when the narrator gives none."""

FALLBACK_SUGGESTED_ACTIONS = ("Look around", "Continue forward", "Check inventory")
"""Suggestions shown when a narrator reply could not be parsed."""

MIN_STORY_ENTRIES_FOR_ARCHIVE = 2
"""A campaign needs at least this many story entries to be archived."""


__all__ = [
    "MIN_CHARACTER_LEVEL",
    "MAX_CHARACTER_LEVEL",
    "XP_THRESHOLDS",
    "MIN_HIT_POINTS",
    "MAX_DEATH_SAVES",
    "STABILIZED_HIT_POINTS",
    "MAX_DICE_PER_ROLL",
    "DEFAULT_STARTING_GOLD",
    "RANDOM_STARTING_GOLD_RANGE",
    "DEFAULT_LOCATION",
    "CONTINUE_HINT",
    "FALLBACK_SUGGESTED_ACTIONS",
    "MIN_STORY_ENTRIES_FOR_ARCHIVE",
]
