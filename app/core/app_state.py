from __future__ import annotations

from typing import Optional

from app.core.message_bus import MessageBus, build_message_bus
from app.services.verification_scorer import VerificationScorer


class AppState:
    """Process-wide runtime objects, created once at startup and handed to components explicitly."""

    def __init__(
        self,
        bus: Optional[MessageBus] = None,
        scorer: Optional[VerificationScorer] = None,
    ) -> None:
        self.bus = bus or build_message_bus()
        self.scorer = scorer or VerificationScorer(self.bus)

    async def shutdown(self) -> None:
        await self.scorer.drain()
        await self.bus.close()
