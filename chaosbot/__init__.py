"""ChaosBot package providing the `/ring` command, role tiers and ring compositing."""

from . import attachments, compositor, config, errors, lifecycle, models, responder, ring, roles, utils  # noqa: F401

__all__ = [
    "attachments",
    "compositor",
    "config",
    "errors",
    "lifecycle",
    "models",
    "responder",
    "ring",
    "roles",
    "utils",
]
