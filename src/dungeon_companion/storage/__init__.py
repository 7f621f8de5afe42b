"""Storage module for Dungeon Companion persistence.

Provides SQLite-based storage for:
- The auto-saved current session and app preferences
- Named save slots
- The roster of characters and their campaign history
"""

from dungeon_companion.storage.database import (
    Database,
    SaveSlot,
    get_database,
)

__all__ = [
    "Database",
    "SaveSlot",
    "get_database",
]
