"""Move values from the old flat settings keys into ``transcription.whisper_cpp``."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .logging_utils import get_logger, log_context

if TYPE_CHECKING:
    from .config_schema import Settings

LOGGER = get_logger("whisperd.config.migration", component="Migration")

# legacy attribute -> attribute on transcription.whisper_cpp
_WHISPER_CPP_TARGETS: dict[str, str] = {
    "legacy_model": "model",
    "legacy_threads": "threads",
    "legacy_gpu_layers": "gpu_layers",
    "legacy_models_dirs": "models_dirs",
    "legacy_no_speech_threshold": "no_speech_threshold",
    "legacy_fallback_cli": "fallback_cli",
    "legacy_vad": "vad",
}


def migrate_legacy_settings(settings: "Settings") -> "Settings":
    """Consume every populated legacy field, in place.

    The old ``whisper_prompt`` applies to every provider, so it is copied to
    all four prompt fields. Legacy fields are ``None`` afterwards, which makes
    a second call a no-op.
    """

    whisper_cpp = settings.transcription.whisper_cpp
    migrated: list[str] = []

    for legacy_name, target in _WHISPER_CPP_TARGETS.items():
        value = getattr(settings, legacy_name)
        if value is None:
            continue
        setattr(whisper_cpp, target, value)
        setattr(settings, legacy_name, None)
        migrated.append(target)

    prompt = settings.legacy_whisper_prompt
    if prompt is not None:
        transcription = settings.transcription
        transcription.whisper_cpp.prompt = prompt
        transcription.groq.prompt = prompt
        transcription.gemini.prompt = prompt
        transcription.parakeet.prompt = prompt
        settings.legacy_whisper_prompt = None
        migrated.append("prompt")

    if migrated:
        LOGGER.info(
            log_context(
                "Migrated legacy flat settings into transcription.whisper_cpp.",
                event="config.migration.applied",
                fields=migrated,
            )
        )
    return settings


__all__ = ["migrate_legacy_settings"]
