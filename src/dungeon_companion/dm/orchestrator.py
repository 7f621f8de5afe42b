"""Session Orchestrator - the turn loop around the narrator.

One orchestrator drives one session:
1. INPUT: a player action or a dice result is logged and appended to the
   conversation window
2. NARRATION: the narrator is called with a system prompt rebuilt from the
   current GameState; its reply streams for display only
3. RESOLUTION: once the stream ends the full text is interpreted and its
   updates are committed through the reducer in a single step

Python owns the truth. The narrator never touches GameState directly and
never rolls dice; it asks for a roll and the player supplies the result.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from dungeon_companion.core.config import NarratorSettings, SessionSettings, get_settings
from dungeon_companion.core.constants import MIN_STORY_ENTRIES_FOR_ARCHIVE
from dungeon_companion.core.logging import bind_context, clear_context, get_logger
from dungeon_companion.dm.interpreter import (
    NarratorReply,
    RollRequest,
    extract_json,
    interpret_response,
    updates_to_actions,
)
from dungeon_companion.dm.prompts import (
    CAMPAIGN_SUMMARY_SYSTEM_PROMPT,
    CHRONICLE_SYSTEM_PROMPT,
    build_adventure_start_message,
    build_campaign_summary_prompt,
    build_chronicle_prompt,
    build_dm_system_prompt,
    build_roll_result_message,
)
from dungeon_companion.dm.providers import ConversationMessage, NarratorProvider
from dungeon_companion.dm.voice import VoiceSession
from dungeon_companion.engine.actions import (
    AddStory,
    BaseAction,
    LoadState,
    NewGame,
    SetCharacter,
    SetPhase,
)
from dungeon_companion.engine.dice import format_roll, roll_dice
from dungeon_companion.engine.reducer import apply_actions, game_reducer
from dungeon_companion.models import (
    CampaignRecord,
    Character,
    DiceResult,
    GamePhase,
    GameState,
    RosterCharacter,
    StoryEntry,
    StoryEntryType,
    create_initial_state,
)
from dungeon_companion.storage.database import Database


logger = get_logger(__name__)

NOT_CONFIGURED_MESSAGE = "Please configure your narrator provider in Settings first."

TokenCallback = Callable[[str], None]
_Snapshot = tuple[GameState, tuple[ConversationMessage, ...], RollRequest | None]


@dataclass
class TurnResult:
    """Outcome of one narrator turn."""

    state: GameState
    """State after the turn was committed."""

    reply: NarratorReply | None = None
    """Interpreted narrator reply, absent when the call failed."""

    actions: list[BaseAction] = field(default_factory=list)
    """Reducer actions derived from the reply, in application order."""

    error: str | None = None
    """User-facing error text when the turn failed."""

    @property
    def succeeded(self) -> bool:
        return self.error is None


class SessionOrchestrator:
    """Coordinates player input, the narrator and the reducer.

    Example:
        >>> orchestrator = SessionOrchestrator(create_provider(settings.narrator))
        >>> orchestrator.choose_character(character)
        >>> await orchestrator.begin_adventure()
        >>> await orchestrator.send_player_action("I search the room")
    """

    def __init__(
        self,
        provider: NarratorProvider,
        *,
        state: GameState | None = None,
        database: Database | None = None,
        voice: VoiceSession | None = None,
        session_settings: SessionSettings | None = None,
        narrator_settings: NarratorSettings | None = None,
        on_token: TokenCallback | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            provider: Narrator variant to talk to.
            state: Starting state, e.g. one restored from storage.
            database: Where checkpoints and the roster are written.
            voice: Narration playback, if enabled by the UI shell.
            session_settings: History, undo and autosave limits.
            narrator_settings: Token budgets and the call timeout.
            on_token: Receives streamed fragments for live display.
        """
        if session_settings is None or narrator_settings is None:
            settings = get_settings()
            session_settings = session_settings or settings.session
            narrator_settings = narrator_settings or settings.narrator

        self.provider = provider
        self.state = state or create_initial_state()
        self.database = database
        self.voice = voice
        self.on_token = on_token

        self._session_settings = session_settings
        self._narrator_settings = narrator_settings
        self._history: deque[ConversationMessage] = deque(maxlen=session_settings.max_history)
        self._undo_stack: deque[_Snapshot] = deque(maxlen=session_settings.max_undo)

        self.is_responding = False
        self.streaming_text = ""
        self.pending_roll: RollRequest | None = None
        self.suggested_actions: tuple[str, ...] = ()

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def history(self) -> tuple[ConversationMessage, ...]:
        """The conversation window, oldest first."""
        return tuple(self._history)

    @property
    def can_undo(self) -> bool:
        return bool(self._undo_stack) and not self.is_responding

    @property
    def accepts_player_input(self) -> bool:
        """Whether free-text player input would be accepted right now."""
        return not self.is_responding and self.pending_roll is None

    # =========================================================================
    # State Commits
    # =========================================================================

    def set_provider(self, provider: NarratorProvider) -> None:
        """Swap the narrator after a settings change."""
        self.provider = provider
        logger.info("Narrator provider changed", provider=provider.name)

    def dispatch(self, action: BaseAction) -> GameState:
        """Apply one reducer action and checkpoint the result."""
        self.state = game_reducer(self.state, action)
        self._autosave()
        return self.state

    def _add_entry(self, entry_type: StoryEntryType, text: str, **extra: object) -> None:
        entry = StoryEntry(entry_type=entry_type, text=text, **extra)
        self.state = game_reducer(self.state, AddStory(entry=entry))

    def _autosave(self) -> None:
        if self.database is None or not self._session_settings.autosave:
            return
        if self.state.phase == GamePhase.SETUP:
            return
        self.database.save_game_state(self.state)

    def _push_undo(self) -> None:
        self._undo_stack.append((self.state, tuple(self._history), self.pending_roll))

    def _reset_turn_state(self) -> None:
        self._history.clear()
        self._undo_stack.clear()
        self.pending_roll = None
        self.suggested_actions = ()
        self.streaming_text = ""

    def undo(self) -> bool:
        """Restore state, conversation and pending roll from before the last input.

        Returns:
            True if a snapshot was restored, False when there is nothing to
            undo or a response is pending.
        """
        if self.is_responding:
            logger.warning("Undo refused while a response is pending")
            return False
        if not self._undo_stack:
            return False

        state, history, pending_roll = self._undo_stack.pop()
        self.state = game_reducer(self.state, LoadState(state=state))
        self._history = deque(history, maxlen=self._session_settings.max_history)
        self.pending_roll = pending_roll
        self.suggested_actions = ()
        self._autosave()
        logger.info("Turn undone", remaining=len(self._undo_stack))
        return True

    # =========================================================================
    # Session Lifecycle
    # =========================================================================

    def new_game(self) -> GameState:
        """Hard-reset to a fresh setup-phase session."""
        self.state = game_reducer(self.state, NewGame())
        self._reset_turn_state()
        if self.voice is not None:
            self.voice.stop()
        return self.state

    def choose_character(self, character: Character) -> GameState:
        """Assign the player character and enter play."""
        self.state = apply_actions(
            self.state,
            [SetCharacter(character=character), SetPhase(phase=GamePhase.PLAYING)],
        )
        self._autosave()
        return self.state

    def resume_roster_character(self, roster_character: RosterCharacter) -> GameState:
        """Start a new campaign with a character from the roster.

        The character comes back at full health in a fresh session linked
        to its roster entry.
        """
        character = roster_character.character
        fresh = GameState(
            phase=GamePhase.PLAYING,
            character=character.model_copy(update={"hp": character.max_hp}),
            roster_id=roster_character.id,
            campaign_start_date=datetime.now(),
        )
        self.state = game_reducer(self.state, LoadState(state=fresh))
        self._reset_turn_state()
        self._autosave()
        logger.info(
            "Roster character resumed",
            roster_id=str(roster_character.id),
            campaigns=len(roster_character.campaign_history),
        )
        return self.state

    # =========================================================================
    # Turns
    # =========================================================================

    async def begin_adventure(self) -> TurnResult | None:
        """Ask the narrator to open the story for the chosen character.

        Returns:
            The turn result, or None if there is no character or the story
            has already started.
        """
        character = self.state.character
        if character is None or self.state.story_log:
            logger.warning("Adventure start refused", has_character=character is not None)
            return None
        return await self.send_player_action(build_adventure_start_message(character))

    async def send_player_action(self, text: str) -> TurnResult | None:
        """Send a free-text player action to the narrator.

        Args:
            text: What the player does or says.

        Returns:
            The turn result, or None if input is not accepted right now.
        """
        if not self.accepts_player_input:
            logger.warning(
                "Player action refused",
                responding=self.is_responding,
                roll_pending=self.pending_roll is not None,
            )
            return None

        self._push_undo()
        self._add_entry(StoryEntryType.PLAYER, text)
        self.suggested_actions = ()
        return await self._run_turn(text)

    async def send_roll_result(self, result: DiceResult, dc: int | None = None) -> TurnResult | None:
        """Report the outcome of the pending roll to the narrator.

        Args:
            result: The resolved dice roll.
            dc: Difficulty class; defaults to the one the narrator asked for.

        Returns:
            The turn result, or None if no roll is pending.
        """
        request = self.pending_roll
        if request is None or self.is_responding:
            logger.warning("Roll result refused", responding=self.is_responding)
            return None

        if dc is None:
            dc = request.dc
        reason = result.roll.reason or request.reason or "Roll"

        text = f"{reason}: {format_roll(result)}"
        if dc is not None:
            text += f" (DC {dc}: {'Success!' if result.total >= dc else 'Failure!'})"

        self._push_undo()
        self._add_entry(StoryEntryType.ROLL, text, roll_result=result)
        self.pending_roll = None
        message = build_roll_result_message(reason, result.total, result.values, dc)
        return await self._run_turn(message)

    async def roll_pending(self) -> TurnResult | None:
        """Roll the pending request with the dice engine and report it."""
        if self.pending_roll is None:
            return None
        result = roll_dice(self.pending_roll.to_dice_roll())
        return await self.send_roll_result(result)

    async def _run_turn(self, user_message: str) -> TurnResult:
        if not self.provider.is_configured():
            self._add_entry(StoryEntryType.SYSTEM, NOT_CONFIGURED_MESSAGE)
            self._autosave()
            return TurnResult(state=self.state, error=NOT_CONFIGURED_MESSAGE)

        bind_context(session_id=str(self.state.session_id))
        self.is_responding = True
        self.streaming_text = ""
        request = ConversationMessage(role="user", content=user_message)
        if len(self._history) == self._history.maxlen:
            # Evict the oldest exchange whole so the window still opens with a user message
            self._history.popleft()
            self._history.popleft()
        self._history.append(request)

        try:
            text = await self._stream_reply()
            return self._commit_reply(text)
        except Exception as exc:
            logger.exception("Narrator turn failed", provider=self.provider.name)
            # The window holds user/assistant pairs only
            if self._history and self._history[-1] is request:
                self._history.pop()
            error = str(exc) or f"{type(exc).__name__} from the narrator"
            if isinstance(exc, TimeoutError):
                error = "The narrator took too long to respond"
            self._add_entry(StoryEntryType.SYSTEM, f"Error: {error}")
            self._autosave()
            return TurnResult(state=self.state, error=error)
        finally:
            self.is_responding = False
            self.streaming_text = ""
            clear_context()

    async def _stream_reply(self) -> str:
        system_prompt = build_dm_system_prompt(self.state)
        fragments: list[str] = []
        async with asyncio.timeout(self._narrator_settings.timeout_seconds):
            async for fragment in self.provider.stream_message(list(self._history), system_prompt):
                fragments.append(fragment)
                self.streaming_text += fragment
                if self.on_token is not None:
                    self.on_token(fragment)
        return "".join(fragments)

    def _commit_reply(self, text: str) -> TurnResult:
        self._history.append(ConversationMessage(role="assistant", content=text))

        reply = interpret_response(text)
        actions = updates_to_actions(reply.game_updates)
        before = self.state
        self.state = apply_actions(self.state, actions)

        if reply.narrative:
            self._add_entry(StoryEntryType.DM, reply.narrative)
        self._announce_changes(before)

        self.suggested_actions = reply.suggested_actions
        self.pending_roll = reply.roll_request

        if self.voice is not None and reply.narrative:
            self.voice.start(reply.narrative)

        self._autosave()
        logger.info(
            "Narrator turn committed",
            actions=len(actions),
            roll_requested=reply.roll_request is not None,
            structured=reply.structured,
        )
        return TurnResult(state=self.state, reply=reply, actions=actions)

    def _announce_changes(self, before: GameState) -> None:
        after = self.state.character
        if after is None or before.character is None:
            return
        if after.level > before.character.level:
            self._add_entry(
                StoryEntryType.SYSTEM,
                f"Level up! {after.name} is now level {after.level} (max HP {after.max_hp}).",
            )
        if self.state.is_game_over and not before.is_game_over:
            self._add_entry(StoryEntryType.SYSTEM, f"{after.name} has fallen. The adventure is over.")

    # =========================================================================
    # Single-Shot Requests
    # =========================================================================

    async def _single_shot(self, prompt: str, system_prompt: str, max_tokens: int) -> str | None:
        if self.is_responding or not self.provider.is_configured():
            return None

        self.is_responding = True
        try:
            async with asyncio.timeout(self._narrator_settings.timeout_seconds):
                return await self.provider.send_message(
                    [ConversationMessage(role="user", content=prompt)],
                    system_prompt,
                    max_tokens=max_tokens,
                )
        except Exception:
            logger.exception("Single-shot narrator request failed", provider=self.provider.name)
            return None
        finally:
            self.is_responding = False

    async def write_chronicle(self) -> str | None:
        """Turn the story so far into a short prose tale.

        Returns:
            The chronicle text, or None if there is no story or the
            narrator is unavailable.
        """
        if not self.state.story_log:
            return None
        return await self._single_shot(
            build_chronicle_prompt(self.state),
            CHRONICLE_SYSTEM_PROMPT,
            self._narrator_settings.chronicle_max_tokens,
        )

    async def _summarize_campaign(self, character: Character) -> tuple[str, str]:
        title = f"{character.name}'s Adventure"
        summary = (
            f"{character.name} the {character.race} {character.character_class} "
            f"adventured until reaching {self.state.location}."
        )

        text = await self._single_shot(
            build_campaign_summary_prompt(self.state),
            CAMPAIGN_SUMMARY_SYSTEM_PROMPT,
            self._narrator_settings.summary_max_tokens,
        )
        if not text:
            return title, summary

        data = extract_json(text) or {}
        if isinstance(data.get("title"), str) and data["title"].strip():
            title = data["title"].strip()
        if isinstance(data.get("summary"), str) and data["summary"].strip():
            summary = data["summary"].strip()
        elif not data:
            summary = text.strip()
        return title, summary

    async def end_campaign(self) -> CampaignRecord | None:
        """Archive the campaign to the roster and reset the session.

        Nothing is archived without a character or with fewer than two
        story entries; the session is reset either way.

        Returns:
            The archived record, or None if nothing was archived or a
            response is pending.
        """
        if self.is_responding:
            logger.warning("End campaign refused while a response is pending")
            return None

        state = self.state
        character = state.character
        record: CampaignRecord | None = None

        if character is not None and len(state.story_log) >= MIN_STORY_ENTRIES_FOR_ARCHIVE:
            title, summary = await self._summarize_campaign(character)
            record = CampaignRecord(
                title=title,
                summary=summary,
                location=state.location,
                quests_completed=state.quest_log,
                npcs_met=state.npcs_met_names,
                start_date=state.campaign_start_date or state.story_log[0].timestamp,
                story_log=state.story_log,
            )
            self._archive(state, character, record)

        self.new_game()
        if self.database is not None:
            self.database.clear_game_state()
        return record

    def _archive(self, state: GameState, character: Character, record: CampaignRecord) -> None:
        if self.database is None:
            logger.warning("Campaign not archived, no database", title=record.title)
            return

        if state.roster_id is not None and self.database.add_campaign_to_roster(
            state.roster_id, record, character
        ):
            return

        roster_character = RosterCharacter(character=character, campaign_history=(record,))
        self.database.add_to_roster(roster_character)
        logger.info("Character joined roster", roster_id=str(roster_character.id))


__all__ = [
    "NOT_CONFIGURED_MESSAGE",
    "SessionOrchestrator",
    "TurnResult",
]
