"""Narrator prompts.

The system prompt is rebuilt from the current GameState on every turn.
Whatever the wording, it must ask the narrator for a single JSON object
with ``narrative``, ``rollRequest``, ``suggestedActions`` and
``gameUpdates`` keys, since that is what the interpreter parses.
"""

from __future__ import annotations

from dungeon_companion.models.character import Character, get_modifier_string
from dungeon_companion.models.enums import Ability, StoryEntryType
from dungeon_companion.models.game_state import GameState


# =============================================================================
# Response Contract
# =============================================================================


RESPONSE_FORMAT = """## Response Format
You MUST respond with valid JSON in this exact format:
{
  "narrative": "Your descriptive narration text here. Use markdown for emphasis (*bold*, _italic_).",
  "rollRequest": null,
  "suggestedActions": ["Action 1", "Action 2", "Action 3"],
  "gameUpdates": null
}

When you need a dice roll, set rollRequest:
{
  "narrative": "The troll swings its massive club at you! Quick, try to dodge!",
  "rollRequest": {
    "type": "ability_check|attack|damage|saving_throw|initiative|death_save",
    "dice": "d20",
    "modifier": 5,
    "reason": "Dexterity saving throw to dodge the troll's club",
    "dc": 14
  },
  "suggestedActions": [],
  "gameUpdates": null
}

For game state changes, set gameUpdates:
{
  "narrative": "...",
  "rollRequest": null,
  "suggestedActions": ["..."],
  "gameUpdates": {
    "damage": 0,
    "healing": 0,
    "xp": 0,
    "gold": 0,
    "addItems": [],
    "removeItems": [],
    "location": null,
    "newNPC": null,
    "quest": null,
    "startCombat": null,
    "endCombat": false,
    "enemyDamage": null,
    "deathSave": null
  }
}

startCombat format (when starting combat):
"startCombat": [{"name": "Goblin", "hp": 12, "maxHp": 12, "ac": 13}]

enemyDamage format (when the player hits an enemy; index is the enemy's position in the list):
"enemyDamage": {"index": 0, "amount": 8}

deathSave format (only while the character is at 0 HP in combat):
"deathSave": true for a success, false for a failure"""


DM_SYSTEM_PROMPT = """You are an expert Dungeon Master running a solo D&D 5e adventure for a new player. You are creative, descriptive, and encouraging.

## Your Role
- Narrate in vivid second person ("You step into the dimly lit tavern...")
- Create immersive, branching stories with memorable NPCs
- Manage combat encounters with clear turn structure
- Explain D&D mechanics naturally as they come up (the player is new!)
- Keep the tone fun and epic. Make the player feel like a hero.
- Be fair but dramatic. Near-misses are more exciting than easy wins.

## Current Character
{character_block}

## Game State
Location: {location}
NPCs Met: {npcs}
Quests: {quests}
{combat_block}
{response_format}

## Rules
- Only include fields in gameUpdates that are relevant. Omit or null the rest.
- For ability checks, the DC should be 10-15 for easy/medium, 15-20 for hard.
- Attack rolls: compare total vs enemy AC. Nat 20 = critical hit (double damage dice). Nat 1 = miss.
- Always provide 2-4 suggestedActions unless waiting for a dice roll.
- After receiving a roll result, narrate the outcome dramatically.
- Keep combat moving. 3-5 rounds is ideal.
- Award XP after combat (25-100 XP for small encounters, 100-300 for tough ones).
- Sprinkle in treasure, lore, and NPC interactions between combats.
- NEVER break character. You are the DM, not an AI assistant.

IMPORTANT: Your ENTIRE response must be valid JSON. No text before or after the JSON object."""


INTRO_PROMPT = """You are an expert Dungeon Master. The player is about to begin their first D&D adventure.
Respond with valid JSON:
{
  "narrative": "Your welcome message",
  "rollRequest": null,
  "suggestedActions": ["Begin your adventure"],
  "gameUpdates": null
}"""


CAMPAIGN_SUMMARY_SYSTEM_PROMPT = (
    "You are a chronicler who records the deeds of adventurers. "
    "You write concise, evocative campaign summaries."
)

CAMPAIGN_SUMMARY_PROMPT = """Below is the adventure log of {character_line}.

LAST KNOWN LOCATION: {location}
QUESTS: {quests}
NPCs MET: {npcs}

ADVENTURE LOG:
{log}

Write a short title (under 8 words) and a summary of 2-4 paragraphs covering the key events, battles and decisions.
Respond with valid JSON only:
{{"title": "The title", "summary": "The summary"}}"""


CHRONICLE_SYSTEM_PROMPT = (
    "You are a fantasy author who writes vivid, engaging prose. You take D&D "
    "adventure logs and turn them into beautiful short stories."
)

CHRONICLE_PROMPT = """You are a skilled fantasy author. Below is the raw adventure log from a D&D session. Rewrite it as a compelling short story: a self-contained tale with vivid prose, dialogue, and dramatic pacing.

CHARACTER:
{character_line}

LOCATIONS VISITED: {location}
QUESTS: {quests}
NPCs MET: {npcs}

ADVENTURE LOG:
{log}

INSTRUCTIONS:
- Write in third person past tense
- Give it a title
- Make it feel like a chapter from a fantasy novel
- Include the key moments, battles, and decisions
- Keep it under 1500 words
- End with a sense of the adventure continuing (or concluding, if it ended)"""


# =============================================================================
# Builders
# =============================================================================


def _character_block(character: Character) -> str:
    scores = character.abilities
    abilities = [
        f"{ability.abbreviation}: {scores.score(ability)} "
        f"({get_modifier_string(scores.score(ability))})"
        for ability in Ability
    ]
    return "\n".join(
        [
            f"Name: {character.name}",
            f"Race: {character.race} | Class: {character.character_class} | "
            f"Level: {character.level} | XP: {character.xp}",
            f"HP: {character.hp}/{character.max_hp} | AC: {character.ac}",
            " | ".join(abilities[:3]),
            " | ".join(abilities[3:]),
            f"Inventory: {', '.join(character.inventory) or 'Empty'}",
            f"Gold: {character.gold}",
            f"Backstory: {character.backstory}",
        ]
    )


def _combat_block(state: GameState) -> str:
    combat = state.combat
    if combat is None:
        return ""
    turn = "Player's turn" if combat.player_turn else "Enemy's turn"
    enemies = ", ".join(
        f"[{index}] {enemy.name} (HP: {enemy.hp}/{enemy.max_hp}, AC: {enemy.ac})"
        for index, enemy in enumerate(combat.enemies)
    )
    saves = combat.death_saves
    lines = [f"COMBAT ACTIVE - Round {combat.round}, {turn}", f"Enemies: {enemies or 'None'}"]
    if state.character is not None and state.character.hp == 0:
        lines.append(
            f"CHARACTER IS DOWN - Death saves: {saves.successes} successes, "
            f"{saves.failures} failures"
        )
    return "\n".join(lines) + "\n"


def build_dm_system_prompt(state: GameState) -> str:
    """Build the narrator system prompt for the current state.

    Falls back to the intro prompt when no character has been chosen.
    """
    if state.character is None:
        return INTRO_PROMPT

    return DM_SYSTEM_PROMPT.format(
        character_block=_character_block(state.character),
        location=state.location,
        npcs=", ".join(state.npcs_met_names) or "None yet",
        quests="; ".join(state.quest_log) or "None yet",
        combat_block=_combat_block(state),
        response_format=RESPONSE_FORMAT,
    )


def build_roll_result_message(
    reason: str,
    total: int,
    values: tuple[int, ...] | list[int],
    dc: int | None = None,
) -> str:
    """Build the synthesized user message reporting a roll to the narrator.

    Example:
        >>> build_roll_result_message("Stealth", 17, [15], dc=12)
        '[DICE ROLL RESULT] Stealth: rolled 15 for a total of 17 against DC 12. SUCCESS!. Please narrate the outcome.'
    """
    message = (
        f"[DICE ROLL RESULT] {reason}: rolled {', '.join(str(v) for v in values)} "
        f"for a total of {total}"
    )
    if dc is not None:
        message += f" against DC {dc}. {'SUCCESS!' if total >= dc else 'FAILURE!'}"
    return message + ". Please narrate the outcome."


def build_adventure_start_message(character: Character) -> str:
    """Build the opening player message that asks the narrator to start the story."""
    return (
        f"I am {character.name}, a {character.race} {character.character_class}. "
        f"{character.backstory} I'm ready to begin my adventure!"
    ).replace("  ", " ")


def _character_line(character: Character | None) -> str:
    if character is None:
        return "Unknown adventurer"
    return (
        f"{character.name}, a level {character.level} {character.race} "
        f"{character.character_class}. {character.backstory}"
    ).strip()


def _adventure_log(state: GameState) -> str:
    lines: list[str] = []
    for entry in state.story_log:
        if entry.entry_type == StoryEntryType.PLAYER:
            lines.append(f"[PLAYER ACTION]: {entry.text}")
        elif entry.entry_type == StoryEntryType.DM:
            lines.append(entry.text)
    return "\n\n".join(lines)


def build_campaign_summary_prompt(state: GameState) -> str:
    """Build the single-shot prompt asking for a campaign title and summary."""
    return CAMPAIGN_SUMMARY_PROMPT.format(
        character_line=_character_line(state.character),
        location=state.location,
        quests=", ".join(state.quest_log) or "None recorded",
        npcs=", ".join(state.npcs_met_names) or "None recorded",
        log=_adventure_log(state),
    )


def build_chronicle_prompt(state: GameState) -> str:
    """Build the single-shot prompt turning the story log into a short tale."""
    return CHRONICLE_PROMPT.format(
        character_line=_character_line(state.character),
        location=state.location,
        quests=", ".join(state.quest_log) or "None recorded",
        npcs=", ".join(state.npcs_met_names) or "None recorded",
        log=_adventure_log(state),
    )


__all__ = [
    "RESPONSE_FORMAT",
    "DM_SYSTEM_PROMPT",
    "INTRO_PROMPT",
    "CAMPAIGN_SUMMARY_SYSTEM_PROMPT",
    "CHRONICLE_SYSTEM_PROMPT",
    "build_dm_system_prompt",
    "build_roll_result_message",
    "build_adventure_start_message",
    "build_campaign_summary_prompt",
    "build_chronicle_prompt",
]
