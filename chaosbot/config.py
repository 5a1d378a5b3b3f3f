"""Environment driven configuration for ChaosBot."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from .compositor import DEFAULT_MAX_IMAGE_PIXELS, load_overlay
from .errors import ConfigError, UnprocessableImage
from .models import RingConfig, Tier
from .utils import float_from_env, int_from_env, parse_snowflake, path_from_env

logger = logging.getLogger("chaosbot.config")

ROLE_ENV_VARS: Dict[Tier, str] = {
    Tier.DAOIST: "DAO_ROLE_DAOIST",
    Tier.FREN: "DAO_ROLE_FREN",
    Tier.REGULAR: "DAO_ROLE_REGULAR",
}
OVERLAY_ENV_VARS: Dict[Tier, str] = {
    Tier.DAOIST: "CHAOSRING_DAOISTS",
    Tier.FREN: "CHAOSRING_FRENS",
    Tier.REGULAR: "CHAOSRING_REGULARS",
}

DEFAULT_MAX_ATTACHMENT_BYTES = 8 * 1024 * 1024
DEFAULT_FETCH_TIMEOUT = 10.0


def _load_role_ids(environ: Mapping[str, str], problems: List[str]) -> Dict[Tier, int]:
    role_ids: Dict[Tier, int] = {}
    for tier, name in ROLE_ENV_VARS.items():
        raw = environ.get(name, "").strip()
        if not raw:
            problems.append(f"{name} is not set")
            continue
        role_id = parse_snowflake(raw)
        if role_id is None:
            problems.append(f"{name} must be a positive integer role id, got {raw!r}")
            continue
        role_ids[tier] = role_id
    assigned = list(role_ids.values())
    duplicates = {role_id for role_id in assigned if assigned.count(role_id) > 1}
    if duplicates:
        logger.warning("Several tiers share role id(s) %s; the highest tier wins.", sorted(duplicates))
    return role_ids


def _load_overlays(
    environ: Mapping[str, str], problems: List[str]
) -> Tuple[Dict[Tier, Path], Dict[Tier, bytes]]:
    paths: Dict[Tier, Path] = {}
    payloads: Dict[Tier, bytes] = {}
    for tier, name in OVERLAY_ENV_VARS.items():
        path = path_from_env(environ, name)
        if path is None:
            problems.append(f"{name} is not set")
            continue
        if not path.is_file():
            problems.append(f"{name} points to {path}, which is not a file")
            continue
        try:
            payloads[tier] = load_overlay(path)
        except OSError as exc:
            problems.append(f"{name} points to {path}, which cannot be read: {exc}")
            continue
        except UnprocessableImage as exc:
            problems.append(f"{name} points to {path}, which is not a usable image: {exc.reason}")
            continue
        paths[tier] = path
    return paths, payloads


def load_config(environ: Optional[Mapping[str, str]] = None) -> RingConfig:
    """Build the process configuration, collecting every problem before failing."""
    if environ is None:
        environ = os.environ
    problems: List[str] = []

    token = environ.get("DISCORD_TOKEN", "").strip()
    if not token:
        problems.append("DISCORD_TOKEN is not set")
    role_ids = _load_role_ids(environ, problems)
    overlay_paths, overlay_bytes = _load_overlays(environ, problems)

    guild_id: Optional[int] = None
    raw_guild = environ.get("GUILD_ID", "").strip()
    if raw_guild:
        guild_id = parse_snowflake(raw_guild)
        if guild_id is None:
            problems.append(f"GUILD_ID must be a positive integer, got {raw_guild!r}")

    if problems:
        raise ConfigError(problems)

    config = RingConfig(
        token=token,
        role_ids=dict(role_ids),
        overlay_paths=dict(overlay_paths),
        overlay_bytes=dict(overlay_bytes),
        guild_id=guild_id,
        max_attachment_bytes=max(
            1, int_from_env(environ, "CHAOSBOT_MAX_ATTACHMENT_BYTES", DEFAULT_MAX_ATTACHMENT_BYTES)
        ),
        max_image_pixels=max(
            1, int_from_env(environ, "CHAOSBOT_MAX_IMAGE_PIXELS", DEFAULT_MAX_IMAGE_PIXELS)
        ),
        fetch_timeout=max(0.1, float_from_env(environ, "CHAOSBOT_FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT)),
    )
    for tier in Tier:
        logger.info(
            "%s tier: role %s, overlay %s",
            tier.label,
            config.role_ids[tier],
            config.overlay_paths[tier],
        )
    return config


__all__ = [
    "DEFAULT_FETCH_TIMEOUT",
    "DEFAULT_MAX_ATTACHMENT_BYTES",
    "OVERLAY_ENV_VARS",
    "ROLE_ENV_VARS",
    "load_config",
]
