"""Fixtures for conversations, the message bus and the verification scorer."""

import pytest

from app.core.message_bus import InMemoryMessageBus
from app.models.conversation import Conversation
from app.services.verification_scorer import VerificationScorer


class FixedScoringStrategy:
    """Deterministic strategy for tests; records what it was asked to score."""

    def __init__(self, score: float) -> None:
        self.value = score
        self.calls = []

    def score(self, conversation_id, text):
        self.calls.append((conversation_id, text))
        return self.value


@pytest.fixture(scope="function")
def setup_conversation(db, setup_lost_item, setup_finder):
    """Conversation between U1 (reporter) and F1 (finder) about the lost item."""
    conversation = Conversation(
        lost_item_id=setup_lost_item.id,
        reporter_id=setup_lost_item.user_id,
        finder_id=setup_finder.id,
    )
    db.add(conversation)
    db.commit()
    db.refresh(conversation)
    return conversation


@pytest.fixture(scope="function")
def message_bus():
    return InMemoryMessageBus()


@pytest.fixture(scope="function")
def fixed_strategy():
    return FixedScoringStrategy(8.0)


@pytest.fixture(scope="function")
def scorer(message_bus, session_factory, fixed_strategy):
    return VerificationScorer(
        message_bus,
        session_factory=session_factory,
        strategy=fixed_strategy,
        delay_seconds=0,
        trigger_phrases=["found it", "located"],
    )
