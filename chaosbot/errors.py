"""Exception types shared across ChaosBot."""

from __future__ import annotations

from typing import Optional


class ChaosBotError(Exception):
    """Base class for every error raised by ChaosBot."""


class ConfigError(ChaosBotError):
    """Raised when the process environment cannot produce a usable configuration."""

    def __init__(self, problems):
        self.problems = tuple(problems)
        super().__init__("Invalid configuration: " + "; ".join(self.problems))


class RingError(ChaosBotError):
    """An interaction failure that should be reported back to the invoking user."""

    user_message = "Something went wrong while preparing your avatar."

    def __init__(self, reason: str, *, user_message: Optional[str] = None):
        super().__init__(reason)
        self.reason = reason
        if user_message is not None:
            self.user_message = user_message


class NoQualifyingRole(RingError):
    user_message = "You need the DAOist, Fren or Regular role to get a ring."


class UnprocessableImage(RingError):
    user_message = "I couldn't read that image. Please upload a PNG, JPEG, WEBP, GIF or BMP picture."


class TransportError(RingError):
    user_message = "Discord didn't cooperate while preparing your avatar. Please try again."


__all__ = [
    "ChaosBotError",
    "ConfigError",
    "NoQualifyingRole",
    "RingError",
    "TransportError",
    "UnprocessableImage",
]
