"""Session data model for the Dungeon Companion.

This module defines the immutable values that make up one game session
and the long-lived roster archive.

Models:
    Enemy: A combatant the player fights.
    DeathSaves: Success and failure counters while the character is down.
    CombatState: Enemy roster, turn flag and round counter.
    StoryEntry: One append-only line of the story log.
    CampaignRecord: Archived summary of a finished campaign.
    RosterCharacter: A character persisted across campaigns.
    GameState: The full serializable snapshot of one session.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from dungeon_companion.core.constants import DEFAULT_LOCATION, MAX_DEATH_SAVES
from dungeon_companion.models.character import Character
from dungeon_companion.models.enums import GamePhase, StoryEntryType
from dungeon_companion.models.rolls import DiceResult


# =============================================================================
# Combat
# =============================================================================


class Enemy(BaseModel):
    """An enemy in the current fight.

    Enemies stay in the combat roster at 0 HP and are shown as defeated.
    Accepts the narrator's ``maxHp`` spelling as well as ``max_hp``; a
    missing ``hp`` or ``maxHp`` is filled from the other, and ``hp`` is
    clamped into ``[0, max_hp]``.

    Attributes:
        name: Display name.
        hp: Current hit points.
        max_hp: Maximum hit points.
        ac: Armor class.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    name: str = Field(min_length=1, description="Enemy name")
    hp: Annotated[int, Field(ge=0)]
    max_hp: Annotated[int, Field(ge=1, alias="maxHp")]
    ac: Annotated[int, Field(ge=1)] = 10

    @model_validator(mode="before")
    @classmethod
    def fill_and_clamp_hp(cls, data: Any) -> Any:
        """Complete missing HP values and clamp current HP."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        max_key = "maxHp" if "maxHp" in data else "max_hp"
        hp = data.get("hp")
        max_hp = data.get(max_key)
        if max_hp is None and isinstance(hp, int):
            data[max_key] = max_hp = hp
        if hp is None and isinstance(max_hp, int):
            data["hp"] = hp = max_hp
        if isinstance(hp, int) and isinstance(max_hp, int):
            data["hp"] = max(0, min(hp, max_hp))
        return data

    @property
    def is_defeated(self) -> bool:
        """Whether the enemy has been reduced to 0 HP."""
        return self.hp == 0


class DeathSaves(BaseModel):
    """Death saving throw counters, each bounded to 0-3."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    successes: Annotated[int, Field(ge=0, le=MAX_DEATH_SAVES)] = 0
    failures: Annotated[int, Field(ge=0, le=MAX_DEATH_SAVES)] = 0


class CombatState(BaseModel):
    """State of an active fight.

    Attributes:
        enemies: Enemies in the order the narrator introduced them.
        player_turn: Whether the player acts next.
        round: Current round, starting at 1.
        death_saves: Death save counters for the player character.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    enemies: tuple[Enemy, ...] = ()
    player_turn: bool = True
    round: Annotated[int, Field(ge=1)] = 1
    death_saves: DeathSaves = Field(default_factory=DeathSaves)

    @property
    def all_defeated(self) -> bool:
        """Whether every enemy is at 0 HP."""
        return bool(self.enemies) and all(enemy.is_defeated for enemy in self.enemies)


# =============================================================================
# Story & Archive
# =============================================================================


class StoryEntry(BaseModel):
    """One entry of the append-only story log."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: UUID = Field(default_factory=uuid4, description="Entry ID")
    entry_type: StoryEntryType = Field(description="Who produced the entry")
    text: str = Field(description="Entry text")
    timestamp: datetime = Field(default_factory=datetime.now, description="When appended")
    roll_result: DiceResult | None = Field(default=None, description="Attached dice result")


class CampaignRecord(BaseModel):
    """Immutable archive of one finished campaign.

    Attributes:
        id: Record identifier.
        title: Short title, usually written by the narrator.
        summary: Prose summary of the campaign.
        location: Where the campaign ended.
        quests_completed: Quest log at campaign end.
        npcs_met: NPC names at campaign end.
        start_date: When the campaign started.
        end_date: When it was ended.
        story_log: Full story log snapshot.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: UUID = Field(default_factory=uuid4)
    title: str
    summary: str
    location: str = DEFAULT_LOCATION
    quests_completed: tuple[str, ...] = ()
    npcs_met: tuple[str, ...] = ()
    start_date: datetime
    end_date: datetime = Field(default_factory=datetime.now)
    story_log: tuple[StoryEntry, ...] = ()


class RosterCharacter(BaseModel):
    """A character kept across campaigns.

    Attributes:
        id: Roster identifier, referenced by GameState.roster_id.
        character: Snapshot of the character at the end of its last campaign.
        campaign_history: Archived campaigns, oldest first.
        created_at: When the character joined the roster.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: UUID = Field(default_factory=uuid4)
    character: Character
    campaign_history: tuple[CampaignRecord, ...] = ()
    created_at: datetime = Field(default_factory=datetime.now)

    def with_campaign(self, record: CampaignRecord, character: Character) -> "RosterCharacter":
        """Append a campaign record and replace the character snapshot.

        Args:
            record: The newly finished campaign.
            character: End-of-campaign character state.

        Returns:
            A new RosterCharacter.
        """
        return self.model_copy(
            update={
                "campaign_history": (*self.campaign_history, record),
                "character": character,
            }
        )


# =============================================================================
# Session
# =============================================================================


class GameState(BaseModel):
    """The full serializable snapshot of one session.

    Attributes:
        phase: Current session phase.
        character: The player character, once chosen.
        story_log: Append-only story entries.
        combat: Active combat state, if any.
        quest_log: Quests in the order received, duplicates kept.
        location: Most recent location.
        npcs_met_names: NPC names in first-seen order, no duplicates.
        session_id: Identifier regenerated on every new game.
        roster_id: Linked roster character, if any.
        campaign_start_date: Set once when a character is first assigned.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    phase: GamePhase = GamePhase.SETUP
    character: Character | None = None
    story_log: tuple[StoryEntry, ...] = ()
    combat: CombatState | None = None
    quest_log: tuple[str, ...] = ()
    location: str = DEFAULT_LOCATION
    npcs_met_names: tuple[str, ...] = ()
    session_id: UUID = Field(default_factory=uuid4)
    roster_id: UUID | None = None
    campaign_start_date: datetime | None = None

    @property
    def is_in_combat(self) -> bool:
        """Whether combat state is present."""
        return self.combat is not None

    @property
    def is_game_over(self) -> bool:
        """Whether the session has reached its terminal phase."""
        return self.phase == GamePhase.GAME_OVER


def create_initial_state() -> GameState:
    """Create a fresh setup-phase state with a new session id."""
    return GameState()


__all__ = [
    "Enemy",
    "DeathSaves",
    "CombatState",
    "StoryEntry",
    "CampaignRecord",
    "RosterCharacter",
    "GameState",
    "create_initial_state",
]
