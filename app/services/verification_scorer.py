"""
Heuristic verification scoring for finder claims.

When a human message mentions a trigger phrase ("found it", "located", ...),
a scoring task is scheduled after a fixed delay. It asks the ScoringStrategy
for a score in [0, 10] and appends a synthetic "ai-system" verification
message carrying {score, confidence} to the conversation.

The default RandomScoringStrategy is a placeholder. A real classifier only
has to implement ScoringStrategy.score; the message shape stays the same.
"""

from __future__ import annotations

import asyncio
import random
from contextlib import AbstractContextManager
from typing import Callable, Dict, Iterable, Optional, Protocol, Set
from uuid import UUID

from sqlalchemy.orm import Session

from app.config import get_settings
from app.core.message_bus import MessageBus
from app.infra.logging_config import get_logger
from app.models.chat_message import AI_SYSTEM_SENDER_ID
from app.schemas.chat import AIAnalysis, ChatMessageCreate, ChatMessageRead
from app.services.chat_message_service import append_and_publish
from app.utils.db.db_session_helper import db_session

logger = get_logger("verification")

SCORE_MIN = 0.0
SCORE_MAX = 10.0

VERDICT_LIKELY_VALID = "likely valid"
VERDICT_NEEDS_VERIFICATION = "needs further verification"
VERDICT_LIKELY_INVALID = "likely invalid"

SessionFactory = Callable[[], AbstractContextManager[Session]]


class ScoringStrategy(Protocol):
    def score(self, conversation_id: UUID, text: str) -> float: ...


class RandomScoringStrategy:
    """Uniform random score. Stands in until a real claim classifier exists."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    def score(self, conversation_id: UUID, text: str) -> float:
        return self._rng.uniform(SCORE_MIN, SCORE_MAX)


def clamp_score(score: float) -> float:
    return max(SCORE_MIN, min(SCORE_MAX, float(score)))


def verdict_for(score: float) -> str:
    if score > 7:
        return VERDICT_LIKELY_VALID
    if score >= 4:
        return VERDICT_NEEDS_VERIFICATION
    return VERDICT_LIKELY_INVALID


def compose_verification_text(score: float) -> str:
    verdict = verdict_for(score)
    return f"AI Verification: confidence level {score:.1f}/10. {verdict.capitalize()}."


def build_verification_message(score: float) -> ChatMessageCreate:
    score = clamp_score(score)
    return ChatMessageCreate(
        sender_id=AI_SYSTEM_SENDER_ID,
        message=compose_verification_text(score),
        message_type="verification",
        ai_analysis=AIAnalysis(score=score, confidence=score / 10),
    )


class VerificationScorer:
    """Watches sent messages and appends delayed verification verdicts.

    Every trigger schedules its own task; nothing is debounced. Tasks are
    tracked per conversation so closing a conversation can cancel them.
    """

    def __init__(
        self,
        bus: MessageBus,
        session_factory: SessionFactory = db_session,
        strategy: Optional[ScoringStrategy] = None,
        delay_seconds: Optional[float] = None,
        trigger_phrases: Optional[Iterable[str]] = None,
    ) -> None:
        settings = get_settings()
        self._bus = bus
        self._session_factory = session_factory
        self._strategy = strategy or RandomScoringStrategy()
        self._delay = (
            settings.verification_delay_seconds
            if delay_seconds is None
            else delay_seconds
        )
        phrases = (
            settings.verification_trigger_phrases
            if trigger_phrases is None
            else trigger_phrases
        )
        self._phrases = tuple(p.lower() for p in phrases if p.strip())
        self._pending: Dict[UUID, Set[asyncio.Task]] = {}
        self._latest: Dict[UUID, float] = {}

    def is_trigger(self, text: str) -> bool:
        lowered = (text or "").lower()
        return any(phrase in lowered for phrase in self._phrases)

    def observe(self, message: ChatMessageRead) -> Optional[asyncio.Task]:
        """Schedule scoring for a just-sent human text message that contains a trigger phrase."""
        if message.sender_id == AI_SYSTEM_SENDER_ID or message.message_type != "text":
            return None
        if not self.is_trigger(message.message):
            return None
        task = asyncio.create_task(
            self._score_later(message.conversation_id, message.message),
            name=f"verify-{message.conversation_id}",
        )
        tasks = self._pending.setdefault(message.conversation_id, set())
        tasks.add(task)
        task.add_done_callback(
            lambda t, cid=message.conversation_id: self._forget(cid, t)
        )
        logger.info(
            "Scheduled verification for conversation %s in %.1fs",
            message.conversation_id,
            self._delay,
        )
        return task

    async def _score_later(
        self, conversation_id: UUID, text: str
    ) -> Optional[ChatMessageRead]:
        await asyncio.sleep(self._delay)
        return await self.score_and_append(conversation_id, text)

    async def score_and_append(
        self, conversation_id: UUID, text: str
    ) -> Optional[ChatMessageRead]:
        """Score now and append the verification message. Returns None if the append failed."""
        score = clamp_score(self._strategy.score(conversation_id, text))
        self._latest[conversation_id] = score
        data = build_verification_message(score)
        try:
            with self._session_factory() as db:
                return await append_and_publish(db, self._bus, conversation_id, data)
        except Exception:
            logger.exception(
                "Dropping verification score %.1f for conversation %s",
                score,
                conversation_id,
            )
            return None

    def latest_score(self, conversation_id: UUID) -> Optional[float]:
        return self._latest.get(conversation_id)

    def pending(self, conversation_id: UUID) -> int:
        return len(self._pending.get(conversation_id, ()))

    def cancel_pending(self, conversation_id: UUID) -> int:
        tasks = self._pending.pop(conversation_id, set())
        for task in tasks:
            task.cancel()
        if tasks:
            logger.info(
                "Cancelled %d pending verification(s) for conversation %s",
                len(tasks),
                conversation_id,
            )
        return len(tasks)

    async def drain(self, conversation_id: Optional[UUID] = None) -> None:
        """Wait for pending scoring tasks (one conversation or all)."""
        if conversation_id is not None:
            tasks = set(self._pending.get(conversation_id, ()))
        else:
            tasks = {t for group in self._pending.values() for t in group}
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _forget(self, conversation_id: UUID, task: asyncio.Task) -> None:
        tasks = self._pending.get(conversation_id)
        if tasks is None:
            return
        tasks.discard(task)
        if not tasks:
            del self._pending[conversation_id]
