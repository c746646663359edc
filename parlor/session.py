"""Chat sessions: per-character message history with retried chat calls.

A ChatSession belongs to one user. It tracks which character is selected,
which tone is active, and an append-only message list per character.

send_message() flow:

    1. No character selected        → return None, nothing appended.
    2. A send for the current chat still in flight → SessionBusyError,
       nothing appended.
    3. Append the user message.
    4. Call the chat backend under RetryPolicy (3 attempts, 1s apart).
    5. Success    → append the assistant reply and return it.
       Exhausted  → log, append the apology message, return None.
    6. If the user switched character or cleared the chat while the call was
       outstanding, the result is dropped instead of appended.

SessionRegistry holds the live sessions for the HTTP layer. Nothing is
persisted; sessions die with the process.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import secrets
import time
from collections import OrderedDict
from typing import Any, Awaitable, Callable, TypeVar

from .characters import CharacterLoader
from .errors import (
    ConfigurationError,
    ParlorError,
    RetryExhausted,
    SessionBusyError,
    SessionNotFound,
)
from .llm import ChatBackend
from .models import DEFAULT_TONE, Character, ChatMessage, Role, ToneType

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "I apologize, but I encountered an error. Please try again."

T = TypeVar("T")


def _now_ms() -> int:
    return int(time.time() * 1000)


# ---------------------------------------------------------------------------
# RetryPolicy: fixed attempt count, constant delay
# ---------------------------------------------------------------------------

class RetryPolicy:
    """Bounded retry with a constant delay between attempts.

    Retries on any ParlorError except the ones in `fatal`. There is no delay
    after the final attempt.

    Args:
        attempts: Total attempts, including the first. At least 1.
        delay:    Seconds to wait between attempts.
        sleep:    Awaitable sleep function; tests pass a no-op.
        fatal:    Error types that are raised immediately without retrying.
    """

    def __init__(
        self,
        attempts: int = 3,
        delay: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        fatal: tuple[type[BaseException], ...] = (ConfigurationError,),
    ) -> None:
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        self.attempts = attempts
        self.delay = delay
        self._sleep = sleep
        self._fatal = fatal

    async def run(self, operation: Callable[[], Awaitable[T]]) -> tuple[T, int]:
        """Run operation until it succeeds. Returns (result, attempts used).

        Raises RetryExhausted wrapping the last error once attempts run out,
        or when the error is fatal.
        """
        last_error: ParlorError | None = None
        for attempt in range(1, self.attempts + 1):
            try:
                return await operation(), attempt
            except ParlorError as e:
                last_error = e
                if isinstance(e, self._fatal):
                    raise RetryExhausted(e, attempt) from e
                if attempt < self.attempts:
                    logger.warning(
                        "attempt %d/%d failed (%s), retrying in %.1fs",
                        attempt, self.attempts, type(e).__name__, self.delay,
                    )
                    await self._sleep(self.delay)
        assert last_error is not None
        raise RetryExhausted(last_error, self.attempts) from last_error


# ---------------------------------------------------------------------------
# ChatSession
# ---------------------------------------------------------------------------

class ChatSession:
    """One user's conversation state across characters."""

    def __init__(
        self,
        characters: CharacterLoader,
        chat: ChatBackend,
        retry: RetryPolicy | None = None,
        clock: Callable[[], int] = _now_ms,
        session_id: str = "",
    ) -> None:
        self.id = session_id
        self._characters = characters
        self._chat = chat
        self._retry = retry or RetryPolicy()
        self._clock = clock
        self._ids = itertools.count(1)
        self._sending: int | None = None
        self._generation = 0
        self._histories: dict[str, list[ChatMessage]] = {}
        self.character: Character | None = None
        self.tone: ToneType = DEFAULT_TONE

    # -- state ---------------------------------------------------------------

    @property
    def is_loading(self) -> bool:
        return self._sending == self._generation

    @property
    def messages(self) -> list[ChatMessage]:
        """The selected character's messages, oldest first."""
        if self.character is None:
            return []
        return list(self._histories.get(self.character.id, []))

    def history(self, character_id: str) -> list[ChatMessage]:
        return list(self._histories.get(character_id, []))

    def select_character(self, character_id: str) -> Character:
        """Make a character current and start its conversation afresh.

        Other characters' stored histories are left as they are. Any reply
        still in flight for the previous selection will be dropped.
        """
        character = self._characters.get(character_id)
        self.character = character
        self._histories[character.id] = []
        self._generation += 1
        logger.debug("session=%s selected character=%s", self.id, character.id)
        return character

    def set_tone(self, tone: ToneType) -> None:
        self.tone = tone

    def clear_messages(self) -> None:
        """Start a new chat with the current character."""
        if self.character is not None:
            self._histories[self.character.id] = []
        self._generation += 1

    # -- sending -------------------------------------------------------------

    def _make_message(self, role: Role, content: str, prefix: str) -> ChatMessage:
        return ChatMessage(
            id=f"{prefix}-{next(self._ids)}",
            role=role,
            content=content,
            timestamp=self._clock(),
        )

    def _append(self, character_id: str, message: ChatMessage) -> None:
        self._histories.setdefault(character_id, []).append(message)

    async def send_message(self, content: str) -> ChatMessage | None:
        """Send a user message and append the reply.

        Returns the assistant message, or None when nothing was selected,
        every attempt failed, or the conversation moved on meanwhile.
        """
        character = self.character
        if character is None:
            return None
        if self.is_loading:
            raise SessionBusyError("A message is already being sent in this session")

        generation = self._generation
        self._sending = generation
        try:
            return await self._exchange(character, content, generation)
        finally:
            # A switch or clear meanwhile has already handed the session on
            if self._sending == generation:
                self._sending = None

    async def _exchange(
        self, character: Character, content: str, generation: int
    ) -> ChatMessage | None:
        self._append(character.id, self._make_message("user", content, "user"))
        context = character.context_for(self.tone)

        started = time.monotonic()
        try:
            reply, attempts = await self._retry.run(
                lambda: self._chat.send(content, context)
            )
        except RetryExhausted as e:
            latency_ms = int((time.monotonic() - started) * 1000)
            logger.warning(
                "chat send failed session=%s character=%s kind=%s attempts=%d "
                "latency_ms=%d: %s",
                self.id, character.id, type(e.last_error).__name__,
                e.attempts, latency_ms, e.last_error,
            )
            if self._is_stale(generation, character):
                return None
            self._append(character.id, self._make_message("assistant", FALLBACK_REPLY, "error"))
            return None

        if self._is_stale(generation, character):
            logger.info(
                "dropping stale reply session=%s character=%s attempts=%d",
                self.id, character.id, attempts,
            )
            return None

        message = self._make_message("assistant", reply, "assistant")
        self._append(character.id, message)
        return message

    def _is_stale(self, generation: int, character: Character) -> bool:
        return (
            generation != self._generation
            or self.character is None
            or self.character.id != character.id
        )

    def snapshot(self) -> dict[str, Any]:
        """JSON-friendly view of the session for the API."""
        return {
            "id": self.id,
            "characterId": self.character.id if self.character else None,
            "tone": self.tone,
            "isLoading": self.is_loading,
            "messages": [m.model_dump() for m in self.messages],
        }


# ---------------------------------------------------------------------------
# SessionRegistry: live sessions keyed by random id
# ---------------------------------------------------------------------------

class SessionRegistry:
    """In-memory holder of ChatSessions. Construct one per app.

    Sessions idle for longer than `idle_ttl` seconds are discarded, and once
    `max_sessions` are live the least recently used one makes room for a new
    one. Both checks run on create() and get().
    """

    def __init__(
        self,
        characters: CharacterLoader,
        chat: ChatBackend,
        retry: RetryPolicy | None = None,
        max_sessions: int = 1000,
        idle_ttl: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._characters = characters
        self._chat = chat
        self._retry = retry or RetryPolicy()
        self._max_sessions = max_sessions
        self._idle_ttl = idle_ttl
        self._clock = clock
        # Least recently used first
        self._sessions: OrderedDict[str, tuple[ChatSession, float]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def _expire(self) -> None:
        cutoff = self._clock() - self._idle_ttl
        while self._sessions:
            session_id, (_, last_used) = next(iter(self._sessions.items()))
            if last_used > cutoff:
                break
            del self._sessions[session_id]
            logger.info("session expired session=%s", session_id)

    def create(self) -> ChatSession:
        self._expire()
        while self._sessions and len(self._sessions) >= self._max_sessions:
            session_id, _ = self._sessions.popitem(last=False)
            logger.info("session evicted session=%s", session_id)
        session_id = secrets.token_hex(8)
        session = ChatSession(
            self._characters, self._chat, retry=self._retry, session_id=session_id
        )
        self._sessions[session_id] = (session, self._clock())
        return session

    def get(self, session_id: str) -> ChatSession:
        self._expire()
        try:
            session, _ = self._sessions[session_id]
        except KeyError:
            raise SessionNotFound(f"Session not found: {session_id}") from None
        self._sessions[session_id] = (session, self._clock())
        self._sessions.move_to_end(session_id)
        return session

    def drop(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is None:
            raise SessionNotFound(f"Session not found: {session_id}")

    def clear(self) -> None:
        self._sessions.clear()
