import pytest

from whisperd.config_schema import Settings
from whisperd.hotkey_normalization import (
    DEFAULT_PRIMARY_SHORTCUT,
    normalize_shortcuts,
    sanitize_shortcut,
)


@pytest.mark.parametrize(
    "raw,expected",
    [(None, None), ("", None), ("   ", None), (" SUPER+R ", "SUPER+R")],
)
def test_sanitize_shortcut(raw, expected):
    assert sanitize_shortcut(raw) == expected


def _settings(**payload):
    return Settings.model_validate(payload)


def test_blank_everything_falls_back_to_default():
    settings = normalize_shortcuts(_settings(shortcuts={"press": "  ", "hold": ""}))

    assert settings.shortcuts.press == DEFAULT_PRIMARY_SHORTCUT
    assert settings.primary_shortcut == DEFAULT_PRIMARY_SHORTCUT
    assert settings.shortcuts.hold is None


def test_legacy_fills_missing_press():
    settings = normalize_shortcuts(_settings(primary_shortcut="CTRL+ALT+D", shortcuts={"press": None}))

    assert settings.shortcuts.press == "CTRL+ALT+D"


def test_explicit_legacy_overrides_differing_press():
    settings = normalize_shortcuts(_settings(primary_shortcut="F9", shortcuts={"press": "F10"}))

    assert settings.shortcuts.press == "F9"
    assert settings.primary_shortcut == "F9"


def test_custom_press_survives_when_legacy_key_absent():
    settings = normalize_shortcuts(_settings(shortcuts={"press": "SUPER+SHIFT+D"}))

    assert settings.shortcuts.press == "SUPER+SHIFT+D"
    assert settings.primary_shortcut == "SUPER+SHIFT+D"


def test_press_edit_after_normalization_wins_over_stale_mirror():
    settings = normalize_shortcuts(_settings())
    settings.shortcuts.press = "CTRL+SPACE"

    normalize_shortcuts(settings)

    assert settings.shortcuts.press == "CTRL+SPACE"
    assert settings.primary_shortcut == "CTRL+SPACE"


def test_shortcut_accessors_return_normalized_chords():
    settings = normalize_shortcuts(
        _settings(shortcuts={"press": " CTRL+F1 ", "hold": " SUPER+SPACE "})
    )

    assert settings.press_shortcut() == "CTRL+F1"
    assert settings.hold_shortcut() == "SUPER+SPACE"
    assert normalize_shortcuts(_settings()).hold_shortcut() is None


def test_hand_built_settings_equal_parsed_only_after_normalizing():
    hand_built = Settings()
    parsed = normalize_shortcuts(_settings())

    assert hand_built != parsed
    assert normalize_shortcuts(hand_built) == parsed


def test_hold_is_trimmed():
    settings = normalize_shortcuts(_settings(shortcuts={"hold": "  SUPER+H "}))

    assert settings.shortcuts.hold == "SUPER+H"


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"primary_shortcut": "F9", "shortcuts": {"press": "F10"}},
        {"primary_shortcut": "  ", "shortcuts": {"press": " F8 ", "hold": " "}},
        {"shortcuts": {"press": None}},
    ],
)
def test_normalization_is_idempotent(payload):
    once = normalize_shortcuts(_settings(**payload))
    snapshot = once.model_copy(deep=True)

    twice = normalize_shortcuts(once)

    assert twice == snapshot
    assert twice.primary_shortcut == twice.shortcuts.press
