"""File-backed, hot-reloading settings store for the whisperd dictation daemon."""

from .change_bus import ChangeBus, Subscription
from .codec import decode, parse, serialize
from .config_manager import ConfigManager
from .config_schema import Settings, TranscriptionProvider, default_settings
from .errors import (
    ConfigError,
    ConfigIOError,
    ConfigPersistenceError,
    LockPoisonedError,
    MalformedDocument,
    MissingEnvironmentError,
    SerializationError,
)

__all__ = [
    "ChangeBus",
    "ConfigError",
    "ConfigIOError",
    "ConfigManager",
    "ConfigPersistenceError",
    "LockPoisonedError",
    "MalformedDocument",
    "MissingEnvironmentError",
    "SerializationError",
    "Settings",
    "Subscription",
    "TranscriptionProvider",
    "decode",
    "default_settings",
    "parse",
    "serialize",
]
