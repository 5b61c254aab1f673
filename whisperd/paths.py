"""Filesystem locations: config and data directories, models, binaries and assets."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

from platformdirs import user_config_dir, user_data_dir

from .errors import MissingEnvironmentError
from .logging_utils import get_logger, log_context

if TYPE_CHECKING:
    from .config_schema import Settings

LOGGER = get_logger("whisperd.paths", component="Paths")

APP_NAME = "whisperd"
CONFIG_DIR_ENV = "WHISPERD_CONFIG_DIR"
DATA_DIR_ENV = "WHISPERD_DATA_DIR"

SYSTEM_MODELS_DIR = Path("/usr/share/whisper/models")
SYSTEM_BINARY_DIR = Path("/usr/bin")
INSTALLED_ASSETS_DIR = Path(f"/usr/lib/{APP_NAME}/share/assets")
RELATIVE_ASSETS_DIR = Path("assets")
TEMP_DIR_NAME = "temp"

_PRIMARY_BINARY = "whisper-cli"
_FALLBACK_BINARIES = ("main", "whisper")


def home_dir() -> Path:
    """Return ``$HOME``; the per-user legacy locations cannot be derived without it."""

    home = os.environ.get("HOME")
    if not home:
        raise MissingEnvironmentError("HOME")
    return Path(home)


def expand_tilde(path: str) -> Path:
    """Expand a leading ``~`` or ``~/`` against ``$HOME``. Other paths are returned as-is."""

    if path == "~":
        return home_dir()
    if path.startswith("~/"):
        return home_dir() / path[2:]
    return Path(path)


def _override(env_var: str) -> Path | None:
    raw = os.environ.get(env_var, "").strip()
    if not raw:
        return None
    return expand_tilde(raw)


def config_dir() -> Path:
    return _override(CONFIG_DIR_ENV) or Path(user_config_dir(APP_NAME, appauthor=False))


def data_dir() -> Path:
    return _override(DATA_DIR_ENV) or Path(user_data_dir(APP_NAME, appauthor=False))


def managed_whisper_dir() -> Path:
    """Directory holding the locally managed whisper.cpp checkout and build."""

    return home_dir() / ".local" / "share" / APP_NAME / "whisper.cpp"


def model_search_dirs(settings: "Settings") -> list[Path]:
    """Existing model directories in priority order.

    Configured directories come first, then the system-wide directory, then
    the legacy per-user directory under the managed whisper.cpp tree.
    """

    dirs: list[Path] = []
    for raw in settings.transcription.whisper_cpp.models_dirs:
        expanded = expand_tilde(raw)
        if expanded.exists():
            dirs.append(expanded)
        else:
            LOGGER.debug(
                log_context(
                    "Skipping missing models directory.",
                    event="paths.models_dir.missing",
                    path=str(expanded),
                )
            )

    if SYSTEM_MODELS_DIR.exists():
        dirs.append(SYSTEM_MODELS_DIR)

    legacy_models = managed_whisper_dir() / "models"
    if legacy_models.exists():
        dirs.append(legacy_models)
    return dirs


def resolve_model_path(settings: "Settings") -> Path:
    """Path of the ggml model file for the configured whisper.cpp model.

    The file need not exist. For a multilingual name the English-only build
    is preferred when it is present next to it.
    """

    search_dirs = model_search_dirs(settings)
    models_dir = search_dirs[0] if search_dirs else Path(".")
    name = settings.transcription.whisper_cpp.model

    if name.endswith(".en"):
        return models_dir / f"ggml-{name}.bin"

    english_only = models_dir / f"ggml-{name}.en.bin"
    if english_only.exists():
        return english_only
    return models_dir / f"ggml-{name}.bin"


def resolve_vad_model_path(settings: "Settings", config_path: Path | None = None) -> Path | None:
    vad = settings.transcription.whisper_cpp.vad
    if not vad.enabled:
        return None
    reference = vad.model.strip()
    if not reference:
        return None

    direct = Path(reference)
    if direct.is_absolute() and direct.exists():
        return direct
    if direct.exists():
        return direct

    candidates: list[Path] = []
    if config_path is not None:
        candidates.append(Path(config_path).parent / reference)
    candidates.append(config_dir() / reference)
    candidates.extend(directory / reference for directory in model_search_dirs(settings))

    for candidate in candidates:
        if candidate.exists():
            return candidate

    LOGGER.debug(
        log_context(
            "VAD model not found in any search location.",
            event="paths.vad_model.missing",
            reference=reference,
        )
    )
    return None


def whisper_binary_candidates(include_fallbacks: bool = False) -> list[Path]:
    """Existing whisper.cpp executables, best first, without duplicates."""

    managed = managed_whisper_dir()
    build_bin = managed / "build" / "bin"

    ordered = [
        build_bin / _PRIMARY_BINARY,
        managed / _PRIMARY_BINARY,
        SYSTEM_BINARY_DIR / _PRIMARY_BINARY,
    ]
    if include_fallbacks:
        ordered.extend(build_bin / name for name in _FALLBACK_BINARIES)
        ordered.extend(managed / name for name in _FALLBACK_BINARIES)
        ordered.append(SYSTEM_BINARY_DIR / _FALLBACK_BINARIES[-1])

    candidates: list[Path] = []
    for path in ordered:
        if path.exists() and path not in candidates:
            candidates.append(path)
    return candidates


def temp_dir() -> Path:
    """Scratch directory under the user data dir, created on demand."""

    path = data_dir() / TEMP_DIR_NAME
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        LOGGER.warning(
            log_context(
                "Unable to create temp directory.",
                event="paths.temp_dir.create_failed",
                path=str(path),
                error=str(exc),
            )
        )
    return path


def assets_dir() -> Path:
    if INSTALLED_ASSETS_DIR.exists():
        return INSTALLED_ASSETS_DIR
    return RELATIVE_ASSETS_DIR


__all__ = [
    "APP_NAME",
    "assets_dir",
    "config_dir",
    "data_dir",
    "expand_tilde",
    "home_dir",
    "managed_whisper_dir",
    "model_search_dirs",
    "resolve_model_path",
    "resolve_vad_model_path",
    "temp_dir",
    "whisper_binary_candidates",
]
