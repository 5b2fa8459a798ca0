"""Conversation orchestration: turn sequencing over the matcher and the symptom ledger."""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

import structlog

from healthassist.config import AssistantConfig
from healthassist.ledger import SymptomLedger, analyze
from healthassist.matcher import match_text
from healthassist.models import Category, Guidance, Message, Origin

logger = structlog.get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]
Clock = Callable[[], datetime]

WELCOME_MESSAGE = (
    "Hello! I'm your Health Assistant. I can help you understand your symptoms and "
    "provide basic health guidance. Note that I'm not a replacement for professional "
    "medical advice. What symptoms are you experiencing?"
)

EMPTY_LEDGER_NOTICE = "Please add at least one symptom before requesting an analysis."


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ConversationError(Exception):
    """Base class for rejected conversation actions. Nothing is appended to the log."""


class EmptyMessageError(ConversationError, ValueError):
    pass


class EmptyLedgerError(ConversationError):
    pass


class AssistantBusyError(ConversationError):
    """A previous assistant response is still being prepared."""


class ConversationSession:
    """One conversation log and one symptom ledger.

    Only one assistant response may be outstanding at a time; further
    submissions are rejected rather than queued. ``sleep`` and ``clock``
    can be replaced to make latency and timestamps deterministic.
    """

    def __init__(
        self,
        session_id: str,
        *,
        response_delay: float = 1.0,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = _utcnow,
        greet: bool = True,
    ) -> None:
        self.session_id = session_id
        self.response_delay = response_delay
        self.ledger = SymptomLedger()
        self._sleep = sleep
        self._clock = clock
        self._messages: list[Message] = []
        self._pending = False
        self._reply_task: asyncio.Task[Message] | None = None
        self.logger = logger.bind(session_id=session_id)

        if greet:
            self._append(WELCOME_MESSAGE, Origin.ASSISTANT, Category.GENERAL)

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    @property
    def is_pending(self) -> bool:
        return self._pending

    def _append(self, text: str, origin: Origin, category: Category) -> Message:
        message = Message(text=text, origin=origin, category=category, created_at=self._clock())
        self._messages.append(message)
        return message

    def _ensure_idle(self) -> None:
        if self._pending:
            raise AssistantBusyError("The assistant is still responding to the previous message")

    async def _compute_reply(self, produce: Callable[[], Guidance]) -> Message:
        try:
            await self._sleep(self.response_delay)
            guidance = produce()
            self.logger.info("assistant_replied", rule=guidance.rule, category=guidance.category.value)
            return self._append(guidance.message, Origin.ASSISTANT, guidance.category)
        finally:
            self._pending = False

    async def _respond(self, produce: Callable[[], Guidance]) -> Message:
        # The reply task belongs to the session, so a cancelled caller
        # still leaves the turn completed in the log.
        self._pending = True
        self._reply_task = asyncio.create_task(self._compute_reply(produce))
        return await asyncio.shield(self._reply_task)

    async def wait_idle(self) -> None:
        """Wait until any outstanding assistant reply has been appended."""
        if self._reply_task is not None:
            await asyncio.shield(self._reply_task)

    async def submit(self, text: str) -> Message:
        """Record a user message and return the assistant's reply to it."""
        if not text.strip():
            raise EmptyMessageError("Message must not be empty")
        self._ensure_idle()

        self._append(text, Origin.USER, Category.GENERAL)
        return await self._respond(lambda: match_text(text))

    async def analyze_symptoms(self) -> Message:
        """Reply with an assessment of everything recorded in the ledger."""
        if not len(self.ledger):
            raise EmptyLedgerError(EMPTY_LEDGER_NOTICE)
        self._ensure_idle()

        snapshot = self.ledger.records
        self.logger.info("analysis_requested", symptom_count=len(snapshot))
        return await self._respond(lambda: analyze(snapshot))


class SessionStore:
    """Conversation sessions owned by one running service."""

    def __init__(
        self,
        config: AssistantConfig | None = None,
        *,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = _utcnow,
    ) -> None:
        self.config = config or AssistantConfig()
        self._sleep = sleep
        self._clock = clock
        self._sessions: dict[str, ConversationSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def get_or_create(self, session_id: str) -> ConversationSession:
        if session_id not in self._sessions:
            self._sessions[session_id] = ConversationSession(
                session_id,
                response_delay=self.config.response_delay_seconds,
                sleep=self._sleep,
                clock=self._clock,
                greet=self.config.greet_new_sessions,
            )
            logger.info("session_created", session_id=session_id)
        return self._sessions[session_id]

    def get(self, session_id: str) -> ConversationSession:
        if session_id not in self._sessions:
            raise KeyError(f"Session {session_id} not found")
        return self._sessions[session_id]

    def clear(self, session_id: str) -> bool:
        if session_id in self._sessions:
            del self._sessions[session_id]
            logger.info("session_cleared", session_id=session_id)
            return True
        return False

    async def wait_idle(self) -> None:
        """Let every pending reply finish before the store is closed."""
        for session in list(self._sessions.values()):
            await session.wait_idle()

    def close(self) -> None:
        logger.info("session_store_closed", session_count=len(self._sessions))
        self._sessions.clear()
