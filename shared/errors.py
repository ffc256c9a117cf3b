"""
errors.py – exceptions raised by the clients and the core
"""

from __future__ import annotations


class BotError(Exception):
    """Base for every error this package raises on purpose."""


class ConfigError(BotError):
    """Missing or unusable configuration (fatal at start-up)."""


class DataError(BotError, ValueError):
    """A collaborator returned data we cannot interpret."""


class CollaboratorError(BotError, RuntimeError):
    """A data or trading call failed."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class AuthError(CollaboratorError):
    pass


class RateLimitError(CollaboratorError):
    pass
