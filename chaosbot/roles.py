"""Role tier resolution for `/ring`."""

from __future__ import annotations

from typing import Iterable, Mapping

from .errors import NoQualifyingRole
from .models import TIER_PRECEDENCE, Tier


def resolve_tier(role_ids: Iterable[int], role_map: Mapping[Tier, int]) -> Tier:
    """Return the highest-precedence tier whose role the member holds.

    Precedence is DAOist, then Fren, then Regular. Raises NoQualifyingRole when
    the member holds none of the three roles.
    """
    held = set(role_ids)
    for tier in TIER_PRECEDENCE:
        if role_map.get(tier) in held:
            return tier
    raise NoQualifyingRole("member holds none of the tier roles")


__all__ = ["resolve_tier"]
