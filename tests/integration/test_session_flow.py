"""Integration tests for a play session end to end.

Covers character choice, the opening scene, a roll cycle, autosave and
resuming from storage after a restart.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import pytest
from conftest import FakeNarrator, narrator_reply

from dungeon_companion.core.config import NarratorSettings, SessionSettings
from dungeon_companion.dm.orchestrator import SessionOrchestrator
from dungeon_companion.dm.voice import VoiceSession
from dungeon_companion.engine import dice
from dungeon_companion.models import (
    CHARACTER_PRESETS,
    Character,
    GamePhase,
    StoryEntryType,
    create_character_from_preset,
)
from dungeon_companion.storage.database import Database


class QuietSpeaker:
    """Speaker that only records."""

    def __init__(self) -> None:
        self.spoken: list[list[str]] = []
        self.cancels = 0

    def speak(self, sentences: Sequence[str]) -> None:
        self.spoken.append(list(sentences))

    def cancel(self) -> None:
        self.cancels += 1


def _session(
    narrator: FakeNarrator,
    database: Database | None = None,
    voice: VoiceSession | None = None,
) -> SessionOrchestrator:
    state = database.load_game_state() if database is not None else None
    return SessionOrchestrator(
        narrator,
        state=state,
        database=database,
        voice=voice,
        session_settings=SessionSettings(),
        narrator_settings=NarratorSettings(),
    )


class TestOpeningScene:
    """Choosing a character and starting the story."""

    def test_begin_adventure(self, sample_character: Character) -> None:
        """Test the opening message introduces the character."""
        narrator = FakeNarrator(
            [narrator_reply("You wake in a tavern.", suggested_actions=["Order ale", "Leave"])]
        )
        session = _session(narrator)
        session.choose_character(sample_character)

        result = asyncio.run(session.begin_adventure())

        assert result is not None
        assert result.succeeded
        opening = narrator.calls[0]["messages"][0].content
        assert opening.startswith("I am Aldric Stormwind, a human fighter.")
        assert "I'm ready to begin my adventure!" in opening
        assert [entry.entry_type for entry in session.state.story_log] == [
            StoryEntryType.PLAYER,
            StoryEntryType.DM,
        ]
        assert session.suggested_actions == ("Order ale", "Leave")

    def test_begin_adventure_only_once(self, sample_character: Character) -> None:
        """Test a story in progress cannot be restarted."""
        narrator = FakeNarrator([narrator_reply("You wake in a tavern.")])
        session = _session(narrator)
        session.choose_character(sample_character)
        asyncio.run(session.begin_adventure())

        assert asyncio.run(session.begin_adventure()) is None
        assert len(narrator.calls) == 1

    def test_begin_adventure_needs_character(self) -> None:
        """Test nothing is sent before a character is chosen."""
        narrator = FakeNarrator()
        session = _session(narrator)

        assert asyncio.run(session.begin_adventure()) is None
        assert narrator.calls == []

    def test_preset_character(self) -> None:
        """Test a preset can be played straight away."""
        narrator = FakeNarrator([narrator_reply("The road stretches ahead.")])
        session = _session(narrator)
        hero = create_character_from_preset(CHARACTER_PRESETS[0])

        session.choose_character(hero)
        asyncio.run(session.begin_adventure())

        assert session.state.phase == GamePhase.PLAYING
        assert session.state.character == hero
        assert hero.hp == hero.max_hp
        assert hero.name in narrator.calls[0]["messages"][0].content


class TestRollCycle:
    """A narrator roll request resolved by the dice engine."""

    def test_requested_roll_resolved(
        self, sample_character: Character, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test the engine roll is logged and reported back."""
        monkeypatch.setattr(dice, "roll_die", lambda sides: 14)
        narrator = FakeNarrator(
            [
                narrator_reply(
                    "The lock is old but sturdy.",
                    roll_request={
                        "type": "ability_check",
                        "dice": "d20",
                        "modifier": 3,
                        "reason": "Pick the lock",
                        "dc": 15,
                    },
                ),
                narrator_reply("The lock clicks open.", game_updates={"addItems": ["Silver key"]}),
            ]
        )
        session = _session(narrator)
        session.choose_character(sample_character)

        asyncio.run(session.send_player_action("I pick the lock"))
        assert session.pending_roll is not None
        asyncio.run(session.roll_pending())

        roll_entry = session.state.story_log[2]
        assert roll_entry.entry_type == StoryEntryType.ROLL
        assert roll_entry.text.endswith("(DC 15: Success!)")
        assert "SUCCESS!" in narrator.calls[1]["messages"][-1].content
        assert session.pending_roll is None
        assert session.accepts_player_input
        assert session.state.character is not None
        assert "Silver key" in session.state.character.inventory


class TestPersistence:
    """Autosave and restore across orchestrator instances."""

    def test_resume_after_restart(self, database: Database, sample_character: Character) -> None:
        """Test a new orchestrator picks up the saved session."""
        first = _session(
            FakeNarrator(
                [
                    narrator_reply("A stranger waves you over."),
                    narrator_reply(
                        "She introduces herself as Mira.",
                        game_updates={"newNPC": "Mira", "location": "Tavern", "quest": "Find the map"},
                    ),
                ]
            ),
            database,
        )
        first.choose_character(sample_character)
        asyncio.run(first.begin_adventure())
        asyncio.run(first.send_player_action("I greet the stranger"))

        narrator = FakeNarrator([narrator_reply("Mira hands you a torn map.")])
        second = _session(narrator, database)

        assert second.state == first.state
        assert second.state.location == "Tavern"
        assert second.state.npcs_met_names == ("Mira",)
        assert second.state.quest_log == ("Find the map",)

        asyncio.run(second.send_player_action("I ask about the map"))
        assert "Mira" in narrator.calls[0]["system_prompt"]
        assert database.load_game_state() == second.state

    def test_named_save_slot(self, database: Database, sample_character: Character) -> None:
        """Test a slot captures the session and can be loaded later."""
        session = _session(FakeNarrator([narrator_reply("The gate looms.")]), database)
        session.choose_character(sample_character)
        asyncio.run(session.begin_adventure())

        slot = database.create_save("At the gate", session.state)
        session.new_game()

        loaded = database.load_save(slot.id)
        assert loaded is not None
        assert slot.story_length == 2
        assert loaded.story_log[-1].text == "The gate looms."
        assert session.state.phase == GamePhase.SETUP


class TestVoice:
    """Narration playback during a session."""

    def test_narrative_spoken(self, sample_character: Character) -> None:
        """Test each committed narrative is spoken and a new game stops playback."""
        speaker = QuietSpeaker()
        session = _session(
            FakeNarrator([narrator_reply("*Thunder* rolls. Rain falls.")]),
            voice=VoiceSession(speaker),
        )
        session.choose_character(sample_character)

        asyncio.run(session.begin_adventure())

        assert speaker.spoken == [["Thunder rolls.", "Rain falls."]]
        cancels = speaker.cancels
        session.new_game()
        assert speaker.cancels == cancels + 1

    def test_disabled_voice_is_silent(self, sample_character: Character) -> None:
        """Test nothing is spoken when voice is off."""
        speaker = QuietSpeaker()
        session = _session(
            FakeNarrator([narrator_reply("Silence.")]),
            voice=VoiceSession(speaker, enabled=False),
        )
        session.choose_character(sample_character)

        asyncio.run(session.begin_adventure())

        assert speaker.spoken == []
