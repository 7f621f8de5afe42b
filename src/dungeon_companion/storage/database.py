"""SQLite persistence layer for the Dungeon Companion.

Provides persistent storage for:
- The current session (auto-save), app preferences and the voice flag
- Named save slots, each holding a full GameState snapshot
- The roster of long-lived characters and their campaign history

Values are stored as JSON produced by pydantic, so a loaded state is
exactly the state that was saved.

Storage location: ~/.dungeon_companion/companion.db (configurable).
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any
from uuid import UUID, uuid4

from pydantic import ValidationError

from dungeon_companion.core.config import get_settings
from dungeon_companion.core.exceptions import StorageError
from dungeon_companion.core.logging import get_logger
from dungeon_companion.models.character import Character
from dungeon_companion.models.game_state import CampaignRecord, GameState, RosterCharacter


logger = get_logger(__name__)

GAME_STATE_KEY = "game_state"
SETTINGS_KEY = "settings"
VOICE_KEY = "voice_enabled"


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class SaveSlot:
    """Metadata of a named save slot.

    Attributes:
        id: Slot identifier.
        name: User-provided slot name.
        character_name: Character name at save time.
        character_class: Character class at save time.
        level: Character level at save time.
        location: Location at save time.
        timestamp: When the slot was last written.
        story_length: Number of story entries saved.
    """

    id: str
    name: str
    character_name: str
    character_class: str
    level: int
    location: str
    timestamp: datetime
    story_length: int

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> SaveSlot:
        """Create from database row."""
        return cls(
            id=row[0],
            name=row[1],
            character_name=row[2],
            character_class=row[3],
            level=row[4],
            location=row[5],
            timestamp=datetime.fromisoformat(row[6]),
            story_length=row[7],
        )

    @classmethod
    def describe(cls, slot_id: str, name: str, state: GameState) -> SaveSlot:
        """Build slot metadata for a state."""
        character = state.character
        return cls(
            id=slot_id,
            name=name,
            character_name=character.name if character else "Unknown",
            character_class=str(character.character_class) if character else "unknown",
            level=character.level if character else 1,
            location=state.location,
            timestamp=datetime.now(),
            story_length=len(state.story_log),
        )


# =============================================================================
# Database Class
# =============================================================================


class Database:
    """SQLite database for Dungeon Companion persistence.

    Manages storage of:
    - Key/value entries (current session, preferences, voice flag)
    - Save slots (metadata + full state JSON)
    - Roster characters (character snapshot + campaign history)
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: str | Path | None = None) -> None:
        """Initialize database.

        Args:
            db_path: Path to database file. If None, uses the configured location.
        """
        if db_path is None:
            self.db_path = get_settings().storage.database_path
        else:
            self.db_path = Path(db_path)

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

        logger.info("Database initialized", path=str(self.db_path))

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection with proper cleanup.

        Raises:
            StorageError: If SQLite reports an error.
        """
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StorageError(f"Database operation failed: {exc}") from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_schema(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value_json TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS save_slots (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    character_name TEXT NOT NULL,
                    character_class TEXT NOT NULL,
                    level INTEGER NOT NULL,
                    location TEXT NOT NULL,
                    timestamp TEXT NOT NULL,
                    story_length INTEGER NOT NULL,
                    state_json TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS roster (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    data_json TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_save_slots_timestamp
                ON save_slots(timestamp DESC)
            """)

            cursor.execute("""
                INSERT OR REPLACE INTO schema_version (version) VALUES (?)
            """, (self.SCHEMA_VERSION,))

    # =========================================================================
    # Key/Value Operations
    # =========================================================================

    def _set_value(self, key: str, value_json: str) -> None:
        with self._get_connection() as conn:
            conn.execute("""
                INSERT OR REPLACE INTO kv_store (key, value_json, updated_at)
                VALUES (?, ?, ?)
            """, (key, value_json, datetime.now().isoformat()))

    def _get_value(self, key: str) -> str | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT value_json FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
        return row[0] if row else None

    def _delete_value(self, key: str) -> None:
        with self._get_connection() as conn:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))

    @staticmethod
    def _parse_state(raw: str, *, key: str) -> GameState | None:
        try:
            return GameState.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Stored game state is invalid", key=key, errors=exc.error_count())
            return None

    def save_game_state(self, state: GameState) -> None:
        """Auto-save the current session."""
        self._set_value(GAME_STATE_KEY, state.model_dump_json())
        logger.debug("Game state saved", session_id=str(state.session_id))

    def load_game_state(self) -> GameState | None:
        """Load the auto-saved session.

        Returns:
            The saved state, or None if absent or unreadable.
        """
        raw = self._get_value(GAME_STATE_KEY)
        if raw is None:
            return None
        return self._parse_state(raw, key=GAME_STATE_KEY)

    def clear_game_state(self) -> None:
        """Remove the auto-saved session."""
        self._delete_value(GAME_STATE_KEY)

    def save_settings(self, settings: dict[str, Any]) -> None:
        """Persist app preferences chosen in the UI."""
        self._set_value(SETTINGS_KEY, json.dumps(settings, default=str))

    def load_settings(self) -> dict[str, Any]:
        """Load app preferences, or an empty dict if none were saved."""
        raw = self._get_value(SETTINGS_KEY)
        if raw is None:
            return {}
        try:
            value = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Stored settings are not valid JSON")
            return {}
        return value if isinstance(value, dict) else {}

    def save_voice_enabled(self, enabled: bool) -> None:
        """Persist the narration voice flag."""
        self._set_value(VOICE_KEY, json.dumps(enabled))

    def load_voice_enabled(self, default: bool = True) -> bool:
        """Load the narration voice flag."""
        raw = self._get_value(VOICE_KEY)
        return default if raw is None else raw == "true"

    # =========================================================================
    # Save Slot Operations
    # =========================================================================

    def _write_slot(self, slot: SaveSlot, state: GameState) -> None:
        with self._get_connection() as conn:
            conn.execute("""
                INSERT OR REPLACE INTO save_slots
                (id, name, character_name, character_class, level, location,
                 timestamp, story_length, state_json)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (slot.id, slot.name, slot.character_name, slot.character_class,
                  slot.level, slot.location, slot.timestamp.isoformat(),
                  slot.story_length, state.model_dump_json()))

    def create_save(self, name: str, state: GameState) -> SaveSlot:
        """Create a new named save slot.

        Args:
            name: Slot name.
            state: State to save.

        Returns:
            The new slot's metadata.
        """
        slot = SaveSlot.describe(f"save_{uuid4().hex}", name, state)
        self._write_slot(slot, state)
        logger.info("Save created", slot_id=slot.id, name=name)
        return slot

    def overwrite_save(self, slot_id: str, name: str, state: GameState) -> SaveSlot:
        """Replace the contents of a save slot, creating it if missing.

        Args:
            slot_id: Slot to overwrite.
            name: New slot name.
            state: State to save.

        Returns:
            The updated slot metadata.
        """
        slot = SaveSlot.describe(slot_id, name, state)
        self._write_slot(slot, state)
        logger.info("Save overwritten", slot_id=slot_id, name=name)
        return slot

    def list_saves(self) -> list[SaveSlot]:
        """List save slots, newest first."""
        with self._get_connection() as conn:
            rows = conn.execute("""
                SELECT id, name, character_name, character_class, level,
                       location, timestamp, story_length
                FROM save_slots ORDER BY timestamp DESC, rowid DESC
            """).fetchall()
        return [SaveSlot.from_row(tuple(row)) for row in rows]

    def load_save(self, slot_id: str) -> GameState | None:
        """Load the state stored in a slot.

        Returns:
            The saved state, or None if the slot is missing or unreadable.
        """
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT state_json FROM save_slots WHERE id = ?", (slot_id,)
            ).fetchone()
        if row is None:
            return None
        return self._parse_state(row[0], key=slot_id)

    def delete_save(self, slot_id: str) -> bool:
        """Delete a save slot.

        Returns:
            True if deleted, False if not found.
        """
        with self._get_connection() as conn:
            deleted = conn.execute(
                "DELETE FROM save_slots WHERE id = ?", (slot_id,)
            ).rowcount > 0
        if deleted:
            logger.info("Save deleted", slot_id=slot_id)
        return deleted

    # =========================================================================
    # Roster Operations
    # =========================================================================

    def _write_roster(self, roster_character: RosterCharacter) -> None:
        with self._get_connection() as conn:
            conn.execute("""
                INSERT OR REPLACE INTO roster (id, name, created_at, data_json)
                VALUES (?, ?, ?, ?)
            """, (str(roster_character.id), roster_character.character.name,
                  roster_character.created_at.isoformat(),
                  roster_character.model_dump_json()))

    def add_to_roster(self, roster_character: RosterCharacter) -> None:
        """Add a character to the roster."""
        self._write_roster(roster_character)
        logger.info(
            "Roster character added",
            roster_id=str(roster_character.id),
            name=roster_character.character.name,
        )

    def get_roster_character(self, roster_id: UUID | str) -> RosterCharacter | None:
        """Get a roster character by ID.

        Returns:
            The roster entry, or None if not found or unreadable.
        """
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT data_json FROM roster WHERE id = ?", (str(roster_id),)
            ).fetchone()
        if row is None:
            return None
        try:
            return RosterCharacter.model_validate_json(row[0])
        except ValidationError as exc:
            logger.warning(
                "Stored roster character is invalid",
                roster_id=str(roster_id),
                errors=exc.error_count(),
            )
            return None

    def list_roster(self) -> list[RosterCharacter]:
        """List roster characters in the order they joined."""
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT id, data_json FROM roster ORDER BY created_at, rowid"
            ).fetchall()

        roster: list[RosterCharacter] = []
        for row in rows:
            try:
                roster.append(RosterCharacter.model_validate_json(row[1]))
            except ValidationError:
                logger.warning("Skipping invalid roster character", roster_id=row[0])
        return roster

    def update_roster_character(
        self,
        roster_id: UUID | str,
        *,
        character: Character | None = None,
        campaign_history: tuple[CampaignRecord, ...] | None = None,
    ) -> bool:
        """Replace a roster character's snapshot and/or history.

        Returns:
            True if updated, False if not found.
        """
        current = self.get_roster_character(roster_id)
        if current is None:
            return False

        update: dict[str, Any] = {}
        if character is not None:
            update["character"] = character
        if campaign_history is not None:
            update["campaign_history"] = campaign_history
        self._write_roster(current.model_copy(update=update))
        return True

    def add_campaign_to_roster(
        self,
        roster_id: UUID | str,
        campaign: CampaignRecord,
        character: Character,
    ) -> bool:
        """Append a finished campaign and store the end-of-campaign character.

        Returns:
            True if updated, False if the roster character does not exist.
        """
        current = self.get_roster_character(roster_id)
        if current is None:
            return False

        self._write_roster(current.with_campaign(campaign, character))
        logger.info(
            "Campaign archived",
            roster_id=str(roster_id),
            title=campaign.title,
            campaigns=len(current.campaign_history) + 1,
        )
        return True

    def delete_roster_character(self, roster_id: UUID | str) -> bool:
        """Delete a roster character and its history.

        Returns:
            True if deleted, False if not found.
        """
        with self._get_connection() as conn:
            deleted = conn.execute(
                "DELETE FROM roster WHERE id = ?", (str(roster_id),)
            ).rowcount > 0
        if deleted:
            logger.info("Roster character deleted", roster_id=str(roster_id))
        return deleted


# =============================================================================
# Singleton Instance
# =============================================================================


_database_instance: Database | None = None


def get_database() -> Database:
    """Get the global database instance.

    Returns:
        Database singleton instance.
    """
    global _database_instance

    if _database_instance is None:
        _database_instance = Database()

    return _database_instance


__all__ = [
    "Database",
    "SaveSlot",
    "get_database",
]
