"""Pydantic schema and compiled-in defaults for the daemon settings document."""

from __future__ import annotations

import math
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    SerializerFunctionWrapHandler,
    field_validator,
    model_serializer,
)

from .hotkey_normalization import DEFAULT_PRIMARY_SHORTCUT, normalize_shortcuts
from .migration import migrate_legacy_settings

DEFAULT_PROMPT = (
    "Transcribe with proper capitalization, including sentence beginnings, "
    "proper nouns, titles, and standard English capitalization rules."
)
DEFAULT_VOLUME = 0.3
DEFAULT_MODEL = "base"
DEFAULT_THREADS = 4
# Offload every layer to the GPU unless told otherwise.
DEFAULT_GPU_LAYERS = 999
DEFAULT_NO_SPEECH_THRESHOLD = 0.60
DEFAULT_VAD_MODEL = "ggml-silero-v5.1.2.bin"
UNBOUNDED_SPEECH_S = math.inf
DEFAULT_REQUEST_TIMEOUT_SECS = 45
DEFAULT_MAX_RETRIES = 2
DEFAULT_GROQ_MODEL = "whisper-large-v3-turbo"
DEFAULT_GROQ_ENDPOINT = "https://api.groq.com/openai/v1/audio/transcriptions"
DEFAULT_GEMINI_MODEL = "gemini-2.5-pro-exp-0827"
DEFAULT_GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models"
# Relative to the user data directory.
DEFAULT_PARAKEET_MODEL_DIR = "models/parakeet/parakeet-tdt-0.6b-v3-onnx"


class _Section(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        protected_namespaces=(),
    )


class ShortcutsConfig(_Section):
    """Key chords for tap-to-toggle (``press``) and push-to-talk (``hold``)."""

    hold: str | None = None
    press: str | None = DEFAULT_PRIMARY_SHORTCUT


class PasteHintsConfig(_Section):
    """Window classes that need Shift+Insert style pasting."""

    shift: list[str] = Field(default_factory=list)

    @model_serializer(mode="wrap")
    def _omit_empty(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = handler(self)
        if not self.shift:
            data.pop("shift", None)
        return data


class VadConfig(_Section):
    """Model-based voice activity detection used by the local whisper binary."""

    model_config = ConfigDict(validate_assignment=True)

    enabled: bool = False
    model: str = DEFAULT_VAD_MODEL
    threshold: float = 0.50
    min_speech_ms: int = Field(default=250, ge=0)
    min_silence_ms: int = Field(default=100, ge=0)
    max_speech_s: float = UNBOUNDED_SPEECH_S
    speech_pad_ms: int = Field(default=30, ge=0)
    samples_overlap: float = 0.10

    @field_validator("max_speech_s", mode="before")
    @classmethod
    def _null_means_unbounded(cls, value: Any) -> Any:
        # NaN and -inf are not written out either, so they must read back equal.
        if value is None:
            return UNBOUNDED_SPEECH_S
        if isinstance(value, float) and not math.isfinite(value):
            return UNBOUNDED_SPEECH_S
        return value

    @model_serializer(mode="wrap")
    def _omit_unbounded(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = handler(self)
        if not math.isfinite(self.max_speech_s):
            data.pop("max_speech_s", None)
        return data


class FastVadProfile(str, Enum):
    QUALITY = "quality"
    LOW_BITRATE = "low_bitrate"
    AGGRESSIVE = "aggressive"
    VERY_AGGRESSIVE = "very_aggressive"


class FastVadConfig(_Section):
    """Heuristic VAD that trims silence before audio leaves the recorder."""

    enabled: bool = False
    profile: FastVadProfile = FastVadProfile.AGGRESSIVE
    min_speech_ms: int = Field(default=120, ge=0)
    silence_timeout_ms: int = Field(default=500, ge=0)
    pre_roll_ms: int = Field(default=120, ge=0)
    post_roll_ms: int = Field(default=150, ge=0)
    volatility_window: int = Field(default=24, ge=0)
    volatility_increase_threshold: float = 0.35
    volatility_decrease_threshold: float = 0.12


class TranscriptionProvider(str, Enum):
    WHISPER_CPP = "whisper_cpp"
    GROQ = "groq"
    GEMINI = "gemini"
    PARAKEET = "parakeet"

    @property
    def label(self) -> str:
        return _PROVIDER_LABELS[self]


_PROVIDER_LABELS: dict[TranscriptionProvider, str] = {
    TranscriptionProvider.WHISPER_CPP: "Local",
    TranscriptionProvider.GROQ: "Groq",
    TranscriptionProvider.GEMINI: "Gemini",
    TranscriptionProvider.PARAKEET: "Parakeet TDT",
}


class WhisperCppConfig(_Section):
    prompt: str = DEFAULT_PROMPT
    model: str = DEFAULT_MODEL
    threads: int = Field(default=DEFAULT_THREADS, ge=0)
    gpu_layers: int = DEFAULT_GPU_LAYERS
    fallback_cli: bool = False
    no_speech_threshold: float = DEFAULT_NO_SPEECH_THRESHOLD
    models_dirs: list[str] = Field(default_factory=list)
    vad: VadConfig = Field(default_factory=VadConfig)


class GroqConfig(_Section):
    model: str = DEFAULT_GROQ_MODEL
    endpoint: str = DEFAULT_GROQ_ENDPOINT
    prompt: str = DEFAULT_PROMPT


class GeminiConfig(_Section):
    model: str = DEFAULT_GEMINI_MODEL
    endpoint: str = DEFAULT_GEMINI_ENDPOINT
    temperature: float = 0.0
    max_output_tokens: int = Field(default=1024, ge=0)
    prompt: str = DEFAULT_PROMPT


class ParakeetConfig(_Section):
    model_dir: str = DEFAULT_PARAKEET_MODEL_DIR
    prompt: str = DEFAULT_PROMPT


class TranscriptionConfig(_Section):
    provider: TranscriptionProvider = TranscriptionProvider.WHISPER_CPP
    request_timeout_secs: int = Field(default=DEFAULT_REQUEST_TIMEOUT_SECS, ge=0)
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    whisper_cpp: WhisperCppConfig = Field(default_factory=WhisperCppConfig)
    groq: GroqConfig = Field(default_factory=GroqConfig)
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    parakeet: ParakeetConfig = Field(default_factory=ParakeetConfig)


class Settings(_Section):
    """The whole settings document.

    ``primary_shortcut`` is the pre-``shortcuts`` single hotkey; it is read
    but never written back. The ``legacy_*`` fields hold values found under
    the old flat keys until :func:`~whisperd.migration.migrate_legacy_settings`
    moves them into ``transcription.whisper_cpp``.

    Equality also compares the private ``_normalized_shortcut`` marker set by
    :func:`~whisperd.hotkey_normalization.normalize_shortcuts`. A hand-built
    ``Settings(...)`` therefore only equals a parsed or loaded value after it
    has been normalized too.
    """

    primary_shortcut: str | None = Field(default=None, exclude=True)
    shortcuts: ShortcutsConfig = Field(default_factory=ShortcutsConfig)
    word_overrides: dict[str, str] = Field(default_factory=dict)
    audio_feedback: bool = False
    start_sound_volume: float = DEFAULT_VOLUME
    stop_sound_volume: float = DEFAULT_VOLUME
    start_sound_path: str | None = None
    stop_sound_path: str | None = None
    auto_copy_clipboard: bool = True
    shift_paste: bool = True
    global_paste_shortcut: bool = False
    paste_hints: PasteHintsConfig = Field(default_factory=PasteHintsConfig)
    audio_device: int | None = Field(default=None, ge=0)
    fast_vad: FastVadConfig = Field(default_factory=FastVadConfig)
    transcription: TranscriptionConfig = Field(default_factory=TranscriptionConfig)

    legacy_model: str | None = Field(default=None, validation_alias="model", exclude=True)
    legacy_threads: int | None = Field(
        default=None, ge=0, validation_alias="threads", exclude=True
    )
    legacy_gpu_layers: int | None = Field(
        default=None, validation_alias="gpu_layers", exclude=True
    )
    legacy_whisper_prompt: str | None = Field(
        default=None, validation_alias="whisper_prompt", exclude=True
    )
    legacy_models_dirs: list[str] | None = Field(
        default=None, validation_alias="models_dirs", exclude=True
    )
    legacy_no_speech_threshold: float | None = Field(
        default=None, validation_alias="no_speech_threshold", exclude=True
    )
    legacy_fallback_cli: bool | None = Field(
        default=None, validation_alias="fallback_cli", exclude=True
    )
    legacy_vad: VadConfig | None = Field(default=None, validation_alias="vad", exclude=True)

    # Value written to both shortcut fields by the last normalization pass.
    _normalized_shortcut: str | None = PrivateAttr(default=None)

    def press_shortcut(self) -> str | None:
        return self.shortcuts.press

    def hold_shortcut(self) -> str | None:
        return self.shortcuts.hold


LEGACY_FIELDS: tuple[str, ...] = (
    "legacy_model",
    "legacy_threads",
    "legacy_gpu_layers",
    "legacy_whisper_prompt",
    "legacy_models_dirs",
    "legacy_no_speech_threshold",
    "legacy_fallback_cli",
    "legacy_vad",
)


def default_settings() -> Settings:
    """Return the default aggregate, already migrated and normalized."""

    return normalize_shortcuts(migrate_legacy_settings(Settings()))


__all__ = [
    "DEFAULT_PRIMARY_SHORTCUT",
    "DEFAULT_PROMPT",
    "FastVadConfig",
    "FastVadProfile",
    "GeminiConfig",
    "GroqConfig",
    "LEGACY_FIELDS",
    "ParakeetConfig",
    "PasteHintsConfig",
    "Settings",
    "ShortcutsConfig",
    "TranscriptionConfig",
    "TranscriptionProvider",
    "UNBOUNDED_SPEECH_S",
    "VadConfig",
    "WhisperCppConfig",
    "default_settings",
]
