"""Reconcile the legacy single hotkey with the ``shortcuts`` press/hold pair."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .logging_utils import get_logger, log_context

if TYPE_CHECKING:
    from .config_schema import Settings

LOGGER = get_logger("whisperd.config.shortcuts", component="HotkeyNormalization")

DEFAULT_PRIMARY_SHORTCUT = "SUPER+ALT+R"


def sanitize_shortcut(value: str | None) -> str | None:
    """Trim ``value``; blank chords count as unset."""

    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


def normalize_shortcuts(settings: "Settings") -> "Settings":
    """Make ``primary_shortcut`` and ``shortcuts.press`` agree, in place.

    A legacy value that differs from ``press`` wins, unless it is exactly the
    value the previous pass mirrored into it: then ``press`` was edited since
    and the legacy copy is merely stale. Without any value the compiled-in
    default is used. Running this twice changes nothing the second time.
    """

    legacy = sanitize_shortcut(settings.primary_shortcut)
    press = sanitize_shortcut(settings.shortcuts.press)
    settings.shortcuts.hold = sanitize_shortcut(settings.shortcuts.hold)

    if press is not None and legacy is not None and press != legacy:
        if legacy == settings._normalized_shortcut:
            legacy = press
        else:
            LOGGER.debug(
                log_context(
                    "Legacy primary shortcut overrides shortcuts.press.",
                    event="config.shortcuts.legacy_override",
                    legacy=legacy,
                    press=press,
                )
            )
            press = legacy
    elif press is None:
        press = legacy

    if press is None:
        press = DEFAULT_PRIMARY_SHORTCUT

    settings.shortcuts.press = press
    settings.primary_shortcut = press
    settings._normalized_shortcut = press
    return settings


__all__ = ["DEFAULT_PRIMARY_SHORTCUT", "normalize_shortcuts", "sanitize_shortcut"]
