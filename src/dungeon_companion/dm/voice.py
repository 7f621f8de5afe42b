"""Voice session for reading narration aloud.

The actual text-to-speech engine is injected as a ``Speaker``. The
session owns the enabled flag and the text cleanup; it is constructed
once by the UI shell and handed to the orchestrator, which calls
``start`` without waiting on playback.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Protocol

from dungeon_companion.core.logging import get_logger


logger = get_logger(__name__)

_CLEANUP_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"```[\s\S]*?```"), ""),
    (re.compile(r"\*\*([^*]+)\*\*"), r"\1"),
    (re.compile(r"\*([^*]+)\*"), r"\1"),
    (re.compile(r"__([^_]+)__"), r"\1"),
    (re.compile(r"_([^_]+)_"), r"\1"),
    (re.compile(r"#{1,6}\s*"), ""),
    (re.compile(r"\[.*?\]"), ""),
    (re.compile(r"[{}]"), ""),
    (re.compile(r"`([^`]+)`"), r"\1"),
    (re.compile(r"\n{3,}"), "\n\n"),
)

_SENTENCE_BREAK = re.compile(r"(?<=[.!?…])\s+|(?<=\n)\n")


class Speaker(Protocol):
    """A text-to-speech backend."""

    def speak(self, sentences: Sequence[str]) -> None:
        """Begin speaking sentences in order. Must not block."""
        ...

    def cancel(self) -> None:
        """Stop speaking immediately and drop anything queued."""
        ...


def clean_text(text: str) -> str:
    """Strip markdown emphasis, headers, code fences and bracketed notes."""
    for pattern, replacement in _CLEANUP_RULES:
        text = pattern.sub(replacement, text)
    return text.strip()


def split_sentences(text: str) -> list[str]:
    """Split text into sentences for paced playback."""
    return [part.strip() for part in _SENTENCE_BREAK.split(text) if part.strip()]


class VoiceSession:
    """Owns narration playback for one UI shell.

    Example:
        >>> voice = VoiceSession(speaker, enabled=True)
        >>> voice.start("*The door creaks open.* You see a **dragon**!")
        >>> voice.stop()
    """

    def __init__(self, speaker: Speaker, *, enabled: bool = True) -> None:
        self._speaker = speaker
        self._enabled = enabled

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        """Turn narration off and silence anything currently playing."""
        self._enabled = False
        self.stop()

    def start(self, text: str) -> None:
        """Speak narration text, replacing anything currently playing.

        Does nothing while disabled or when the cleaned text is empty.
        Speaker failures are logged and never propagate.
        """
        if not self._enabled:
            return

        self.stop()
        sentences = split_sentences(clean_text(text))
        if not sentences:
            return

        try:
            self._speaker.speak(sentences)
        except Exception:
            logger.exception("Speaker failed to start", sentences=len(sentences))

    def stop(self) -> None:
        """Stop playback immediately."""
        try:
            self._speaker.cancel()
        except Exception:
            logger.exception("Speaker failed to stop")


__all__ = ["Speaker", "VoiceSession", "clean_text", "split_sentences"]
