"""Application-level exception types for gamerelay."""

from __future__ import annotations


class RelayError(Exception):
    """Base exception for gamerelay."""


class ConfigurationError(RelayError):
    """Base exception for configuration and startup validation errors."""


class PromptConfigError(ConfigurationError):
    """Raised when a stored prompt or game configuration cannot be read."""


class ChannelError(RelayError):
    """Raised when the simulation channel cannot be opened."""


class ProviderNotFoundError(ConfigurationError):
    """Raised when no decision provider matches a model id."""


class BackendError(RelayError):
    """Raised when the decision backend answers with a non-success status."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class BackendResponseError(BackendError):
    """Raised when the decision backend answers with an unreadable body."""
