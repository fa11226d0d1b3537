"""Tests for VerificationScorer and the verdict helpers."""

import asyncio
import random
from contextlib import contextmanager
from datetime import datetime, timezone
from uuid import uuid4

import pytest

from app.models.chat_message import ChatMessage
from app.schemas.chat import ChatMessageRead
from app.services.verification_scorer import (
    RandomScoringStrategy,
    VerificationScorer,
    build_verification_message,
    compose_verification_text,
    verdict_for,
)


def _human_message(conversation_id, text, sender_id="F1", message_type="text"):
    return ChatMessageRead(
        id=uuid4(),
        conversation_id=conversation_id,
        sender_id=sender_id,
        message=text,
        message_type=message_type,
        created_at=datetime.now(timezone.utc),
    )


@pytest.mark.parametrize(
    "score,expected",
    [
        (10.0, "likely valid"),
        (7.01, "likely valid"),
        (7.0, "needs further verification"),
        (5.5, "needs further verification"),
        (4.0, "needs further verification"),
        (3.99, "likely invalid"),
        (0.0, "likely invalid"),
    ],
)
def test_verdict_thresholds(score, expected):
    assert verdict_for(score) == expected


def test_compose_verification_text():
    assert (
        compose_verification_text(7.26)
        == "AI Verification: confidence level 7.3/10. Likely valid."
    )
    assert compose_verification_text(2.0).endswith("Likely invalid.")


def test_build_verification_message_shape():
    data = build_verification_message(6.5)
    assert data.sender_id == "ai-system"
    assert data.message_type == "verification"
    assert data.ai_analysis.score == 6.5
    assert data.ai_analysis.confidence == 6.5 / 10


def test_build_verification_message_clamps_out_of_range():
    assert build_verification_message(12.0).ai_analysis.score == 10.0
    assert build_verification_message(-3.0).ai_analysis.score == 0.0


def test_random_strategy_stays_in_range():
    strategy = RandomScoringStrategy(random.Random(42))
    scores = [strategy.score(uuid4(), "found it") for _ in range(500)]
    assert all(0 <= s <= 10 for s in scores)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("I found it near the gate", True),
        ("FOUND IT!", True),
        ("I have located your bag", True),
        ("Is it still missing?", False),
        ("", False),
    ],
)
def test_is_trigger(scorer, text, expected):
    assert scorer.is_trigger(text) is expected


@pytest.mark.asyncio
async def test_observe_ignores_non_trigger_and_system_messages(scorer):
    conversation_id = uuid4()
    assert scorer.observe(_human_message(conversation_id, "hello there")) is None
    assert (
        scorer.observe(
            _human_message(conversation_id, "found it", sender_id="ai-system")
        )
        is None
    )
    assert (
        scorer.observe(
            _human_message(conversation_id, "found it", message_type="image")
        )
        is None
    )
    assert scorer.pending(conversation_id) == 0


@pytest.mark.asyncio
async def test_trigger_appends_verification_message(
    db, scorer, setup_conversation, fixed_strategy
):
    task = scorer.observe(_human_message(setup_conversation.id, "I found it"))
    assert task is not None
    result = await task

    assert result.sender_id == "ai-system"
    assert result.message_type == "verification"
    assert result.ai_analysis.score == 8.0
    assert result.ai_analysis.confidence == pytest.approx(0.8)
    assert result.message == "AI Verification: confidence level 8.0/10. Likely valid."
    assert scorer.latest_score(setup_conversation.id) == 8.0
    assert fixed_strategy.calls == [(setup_conversation.id, "I found it")]

    stored = db.query(ChatMessage).filter(ChatMessage.sender_id == "ai-system").all()
    assert len(stored) == 1
    assert stored[0].ai_analysis == {"score": 8.0, "confidence": 0.8}


@pytest.mark.asyncio
async def test_verification_is_published(scorer, message_bus, setup_conversation):
    listener = await message_bus.subscribe(setup_conversation.id)
    await scorer.score_and_append(setup_conversation.id, "located")
    published = await asyncio.wait_for(listener.__anext__(), timeout=1)
    assert published.sender_id == "ai-system"
    await listener.close()


@pytest.mark.asyncio
async def test_each_trigger_schedules_independent_task(scorer, setup_conversation, db):
    first = scorer.observe(_human_message(setup_conversation.id, "found it"))
    second = scorer.observe(_human_message(setup_conversation.id, "located it"))
    assert first is not second
    await asyncio.gather(first, second)
    assert (
        db.query(ChatMessage)
        .filter(ChatMessage.message_type == "verification")
        .count()
        == 2
    )
    assert scorer.pending(setup_conversation.id) == 0


@pytest.mark.asyncio
async def test_cancel_pending_drops_scheduled_scoring(
    message_bus, session_factory, fixed_strategy, setup_conversation, db
):
    slow = VerificationScorer(
        message_bus,
        session_factory=session_factory,
        strategy=fixed_strategy,
        delay_seconds=60,
        trigger_phrases=["found it"],
    )
    task = slow.observe(_human_message(setup_conversation.id, "found it"))
    assert slow.pending(setup_conversation.id) == 1

    assert slow.cancel_pending(setup_conversation.id) == 1
    with pytest.raises(asyncio.CancelledError):
        await task
    assert fixed_strategy.calls == []
    assert db.query(ChatMessage).count() == 0


@pytest.mark.asyncio
async def test_append_failure_drops_score(message_bus, fixed_strategy):
    @contextmanager
    def broken_session():
        raise RuntimeError("database unavailable")
        yield  # pragma: no cover

    scorer = VerificationScorer(
        message_bus,
        session_factory=broken_session,
        strategy=fixed_strategy,
        delay_seconds=0,
        trigger_phrases=["found it"],
    )
    conversation_id = uuid4()
    result = await scorer.score_and_append(conversation_id, "found it")
    assert result is None
    assert scorer.latest_score(conversation_id) == 8.0
