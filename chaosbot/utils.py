"""Utility helpers for ChaosBot."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger("chaosbot.utils")


def int_from_env(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid integer for %s=%s. Falling back to %s.", name, raw, default)
        return default


def float_from_env(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid float for %s=%s. Falling back to %s.", name, raw, default)
        return default


def path_from_env(environ: Mapping[str, str], name: str) -> Optional[Path]:
    value = environ.get(name, "").strip()
    if not value:
        return None
    return Path(value).expanduser()


def parse_snowflake(raw: str) -> Optional[int]:
    """Parse a Discord id; returns None for anything that isn't a positive integer."""
    try:
        value = int(raw.strip())
    except (AttributeError, ValueError):
        return None
    return value if value > 0 else None


__all__ = [
    "float_from_env",
    "int_from_env",
    "parse_snowflake",
    "path_from_env",
]
