"""Read JSONC settings documents and write them back as canonical JSON."""

from __future__ import annotations

import json

import json5
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from .config_schema import Settings
from .errors import MalformedDocument, SerializationError
from .hotkey_normalization import normalize_shortcuts
from .migration import migrate_legacy_settings

JSON_INDENT = 2


def decode(text: str) -> Settings:
    """Decode ``text`` into :class:`Settings` without migrating or normalizing.

    Comments and trailing commas are accepted. Unknown keys are ignored and
    missing keys take their defaults.
    """

    try:
        value = json5.loads(text)
    except ValueError as exc:
        raise MalformedDocument(f"Failed to parse config as JSONC: {exc}") from exc

    if value is None:
        raise MalformedDocument("Config file did not contain a JSON value")
    if not isinstance(value, dict):
        raise MalformedDocument(
            f"Config document must be a JSON object, not {type(value).__name__}"
        )

    try:
        return Settings.model_validate(value)
    except ValidationError as exc:
        raise MalformedDocument(f"Failed to deserialize config: {exc}") from exc


def parse(text: str) -> Settings:
    """Decode ``text``, then migrate legacy keys and normalize shortcuts."""

    return normalize_shortcuts(migrate_legacy_settings(decode(text)))


def serialize(settings: Settings) -> str:
    """Render ``settings`` as pretty-printed JSON.

    Unset optionals, an empty ``paste_hints.shift``, an unbounded
    ``max_speech_s`` and every deprecated key are left out.
    """

    try:
        payload = settings.model_dump(mode="json", exclude_none=True)
        return json.dumps(payload, indent=JSON_INDENT, ensure_ascii=False, allow_nan=False) + "\n"
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        raise SerializationError(f"Failed to serialize config: {exc}") from exc


__all__ = ["decode", "parse", "serialize"]
