"""Exception hierarchy shared by the settings store and its collaborators."""

from __future__ import annotations


class ConfigError(Exception):
    """Base class for every recoverable configuration failure."""


class ConfigIOError(ConfigError):
    """Raised when the configuration directory or file cannot be read or created."""


class ConfigPersistenceError(ConfigIOError):
    """Raised when the configuration cannot be written to disk."""


class MalformedDocument(ConfigError):
    """Raised when a document is not valid JSONC or does not fit the schema."""


class SerializationError(ConfigError):
    """Raised when the settings cannot be encoded for persistence."""


class MissingEnvironmentError(ConfigError):
    """Raised when a required environment variable is absent."""

    def __init__(self, variable: str) -> None:
        super().__init__(f"Environment variable {variable} is not set")
        self.variable = variable


class LockPoisonedError(RuntimeError):
    """Raised when a writer failed while holding the settings lock.

    The shared value may be half-updated, so every later acquisition fails.
    """


__all__ = [
    "ConfigError",
    "ConfigIOError",
    "ConfigPersistenceError",
    "LockPoisonedError",
    "MalformedDocument",
    "MissingEnvironmentError",
    "SerializationError",
]
