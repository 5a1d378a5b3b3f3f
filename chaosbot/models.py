"""Dataclasses and shared type definitions for ChaosBot."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional, Tuple


class Tier(enum.Enum):
    DAOIST = "daoist"
    FREN = "fren"
    REGULAR = "regular"

    @property
    def label(self) -> str:
        return "DAOist" if self is Tier.DAOIST else self.value.capitalize()


# Highest-privilege tier first; a member holding several tier roles gets the first match.
TIER_PRECEDENCE: Tuple[Tier, ...] = (Tier.DAOIST, Tier.FREN, Tier.REGULAR)


class RingPhase(enum.Enum):
    RECEIVED = "received"
    DEFERRED = "deferred"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class RingConfig:
    token: str = field(repr=False)
    role_ids: Mapping[Tier, int]
    overlay_paths: Mapping[Tier, Path]
    overlay_bytes: Mapping[Tier, bytes] = field(repr=False)
    guild_id: Optional[int] = None
    max_attachment_bytes: int = 8 * 1024 * 1024
    max_image_pixels: int = 4096 * 4096
    fetch_timeout: float = 10.0

    def __post_init__(self) -> None:
        for name in ("role_ids", "overlay_paths", "overlay_bytes"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))

    def overlay_for(self, tier: Tier) -> bytes:
        return self.overlay_bytes[tier]


@dataclass(frozen=True)
class RingRequest:
    """One `/ring` invocation, reduced to what the handler needs."""

    interaction_id: int
    user_id: int
    guild_id: Optional[int]
    role_ids: FrozenSet[int]
    attachment_url: str
    filename: str
    content_type: Optional[str]
    size: int


__all__ = [
    "RingConfig",
    "RingPhase",
    "RingRequest",
    "TIER_PRECEDENCE",
    "Tier",
]
