"""Lifecycle tracking for a single `/ring` interaction."""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, List

from .models import RingPhase

logger = logging.getLogger("chaosbot.lifecycle")

_TRANSITIONS: Dict[RingPhase, FrozenSet[RingPhase]] = {
    # Early rejections (no tier role, unusable attachment) fail straight from RECEIVED.
    RingPhase.RECEIVED: frozenset({RingPhase.DEFERRED, RingPhase.FAILED}),
    RingPhase.DEFERRED: frozenset({RingPhase.PROCESSING, RingPhase.FAILED}),
    RingPhase.PROCESSING: frozenset({RingPhase.COMPLETED, RingPhase.FAILED}),
    RingPhase.COMPLETED: frozenset(),
    RingPhase.FAILED: frozenset(),
}


class RingLifecycle:
    """Received -> Deferred -> Processing -> Completed/Failed."""

    def __init__(self, interaction_id: int):
        self.interaction_id = interaction_id
        self.phase = RingPhase.RECEIVED
        self.history: List[RingPhase] = [RingPhase.RECEIVED]
        self.failure_reason: str = ""

    @property
    def finished(self) -> bool:
        return self.phase in (RingPhase.COMPLETED, RingPhase.FAILED)

    def advance(self, phase: RingPhase) -> None:
        if phase not in _TRANSITIONS[self.phase]:
            raise RuntimeError(
                f"Interaction {self.interaction_id}: illegal transition {self.phase.value} -> {phase.value}"
            )
        logger.debug("Interaction %s: %s -> %s", self.interaction_id, self.phase.value, phase.value)
        self.phase = phase
        self.history.append(phase)

    def fail(self, reason: str) -> None:
        self.failure_reason = reason
        self.advance(RingPhase.FAILED)

    def __repr__(self) -> str:
        return f"<RingLifecycle interaction={self.interaction_id} phase={self.phase.value}>"


__all__ = ["RingLifecycle"]
