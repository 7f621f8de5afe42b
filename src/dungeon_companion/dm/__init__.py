"""Dungeon Master module for the Dungeon Companion.

This module connects the game core to an external LLM narrator:
- Prompt construction from the current GameState
- Narrator providers (Claude, OpenAI) behind one interface
- Interpretation of narrator replies into reducer actions
- The session orchestrator that runs the turn loop
- Voice playback of narration

The narrator writes the story; Python owns the rules. Replies are
interpreted and committed through the reducer, never applied directly.
"""

from __future__ import annotations

from .interpreter import (
    GameUpdates,
    NarratorReply,
    RollRequest,
    extract_json,
    interpret_response,
    updates_to_actions,
)
from .orchestrator import SessionOrchestrator, TurnResult
from .providers import (
    ClaudeProvider,
    ConversationMessage,
    NarratorProvider,
    OpenAIProvider,
    create_provider,
)
from .voice import Speaker, VoiceSession

__all__ = [
    "SessionOrchestrator",
    "TurnResult",
    "NarratorProvider",
    "ConversationMessage",
    "ClaudeProvider",
    "OpenAIProvider",
    "create_provider",
    "GameUpdates",
    "NarratorReply",
    "RollRequest",
    "extract_json",
    "interpret_response",
    "updates_to_actions",
    "Speaker",
    "VoiceSession",
]
