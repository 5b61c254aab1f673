"""The settings store: one authoritative value, its backing file and its watchers."""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path

from . import paths
from .change_bus import ChangeBus, Subscription
from .codec import parse, serialize
from .config_schema import Settings, default_settings
from .errors import ConfigIOError, ConfigPersistenceError, MalformedDocument
from .hotkey_normalization import normalize_shortcuts
from .locking import ReadWriteLock
from .logging_utils import get_logger, log_context, log_duration
from .migration import migrate_legacy_settings
from .watcher import WATCH_INTERVAL_SECONDS, ConfigWatcher

LOGGER = get_logger("whisperd.config", component="ConfigManager")

CONFIG_FILE_NAME = "config.jsonc"
LEGACY_CONFIG_FILE_NAME = "config.json"


def _write_atomically(path: Path, text: str) -> None:
    temp_path = path.with_name(path.name + ".tmp")
    try:
        with temp_path.open("w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(temp_path, path)
    except OSError as exc:
        LOGGER.error(
            log_context(
                "Error saving configuration file.",
                event="config.save.failure",
                path=str(path),
                error=str(exc),
            ),
            exc_info=True,
        )
        try:
            temp_path.unlink(missing_ok=True)
        except OSError as cleanup_exc:  # pragma: no cover - best effort
            LOGGER.warning(
                log_context(
                    "Failed to clean up temporary configuration file.",
                    event="config.save.cleanup_failed",
                    path=str(temp_path),
                    error=str(cleanup_exc),
                )
            )
        raise ConfigPersistenceError(f"Failed to write config file at {path}: {exc}") from exc


def _read_document(path: Path) -> Settings:
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedDocument(f"Config file at {path} is not valid UTF-8: {exc}") from exc
    except OSError as exc:
        raise ConfigIOError(f"Failed to read config file at {path}: {exc}") from exc
    return parse(text)


class ConfigManager:
    """Owns the current :class:`Settings` and keeps it in sync with ``config.jsonc``.

    Build one with :meth:`load` and hand it to every consumer. Reads return
    private copies; the held value is only replaced by :meth:`save` or by the
    watcher after an external edit, and both publish to subscribers.
    """

    def __init__(self, config_path: Path, settings: Settings) -> None:
        self._config_path = Path(config_path)
        self._settings = settings
        self._lock = ReadWriteLock()
        # File write and in-memory replacement happen as one step.
        self._save_lock = threading.Lock()
        self._bus = ChangeBus(settings)
        self._watcher: ConfigWatcher | None = None
        self._watch_lock = threading.Lock()
        self._logger = LOGGER.bind(path=str(self._config_path))

    @classmethod
    def load(cls, config_dir: Path | str | None = None) -> "ConfigManager":
        """Read (or create) the backing file and return a ready store.

        A legacy ``config.json`` is migrated into ``config.jsonc`` once and
        left in place. Without either file the defaults are written out.
        """

        paths.home_dir()
        directory = Path(config_dir) if config_dir is not None else paths.config_dir()
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigIOError(f"Failed to create config directory {directory}: {exc}") from exc

        config_path = directory / CONFIG_FILE_NAME
        legacy_path = directory / LEGACY_CONFIG_FILE_NAME

        with log_duration(
            LOGGER,
            "Configuration loaded.",
            event="config.load.success",
            details={"path": str(config_path)},
            level=logging.INFO,
        ) as timing:
            if config_path.exists():
                settings = _read_document(config_path)
                timing["source"] = "jsonc"
            elif legacy_path.exists():
                settings = _read_document(legacy_path)
                _write_atomically(config_path, serialize(settings))
                timing["source"] = "legacy_json"
                LOGGER.info(
                    log_context(
                        "Migrated legacy config.json to config.jsonc.",
                        event="config.load.legacy_migrated",
                        legacy_path=str(legacy_path),
                        path=str(config_path),
                    )
                )
            else:
                settings = default_settings()
                _write_atomically(config_path, serialize(settings))
                timing["source"] = "defaults"
                LOGGER.info(
                    log_context(
                        "Configuration file not found; wrote defaults.",
                        event="config.load.first_run",
                        path=str(config_path),
                    )
                )

        return cls(config_path, settings)

    @property
    def config_path(self) -> Path:
        return self._config_path

    def get(self) -> Settings:
        with self._lock.read_locked():
            return self._settings.model_copy(deep=True)

    def subscribe(self) -> Subscription:
        return self._bus.subscribe()

    def save(self, settings: Settings) -> None:
        """Persist ``settings`` and make it the current value.

        On a write failure :class:`ConfigPersistenceError` is raised and the
        current value is left as it was.
        """

        candidate = normalize_shortcuts(migrate_legacy_settings(settings.model_copy(deep=True)))
        text = serialize(candidate)

        with self._save_lock:
            _write_atomically(self._config_path, text)
            with self._lock.write_locked():
                self._settings = candidate
                self._bus.publish(candidate)

        self._logger.info(
            log_context("Configuration saved to disk.", event="config.save.success")
        )

    def reload_from_disk(self) -> bool:
        """Re-read the backing file; publish only when the value differs.

        Returns ``True`` when the held value was replaced.
        """

        with self._save_lock:
            fresh = _read_document(self._config_path)
            with self._lock.write_locked():
                if fresh == self._settings:
                    changed = False
                else:
                    self._settings = fresh
                    self._bus.publish(fresh)
                    changed = True

        if changed:
            self._logger.info(
                log_context(
                    "Configuration reloaded after external edit.",
                    event="config.watch.reloaded",
                )
            )
        else:
            self._logger.debug(
                log_context(
                    "Backing file touched but settings unchanged.",
                    event="config.watch.unchanged",
                )
            )
        return changed

    def start_watching(self, poll_interval: float = WATCH_INTERVAL_SECONDS) -> bool:
        """Start the background watcher. Returns ``False`` if it was already running."""

        with self._watch_lock:
            if self._watcher is not None:
                return False
            self._watcher = ConfigWatcher(
                self._config_path,
                self.reload_from_disk,
                interval=poll_interval,
            )
            self._watcher.start()
        return True

    def stop_watching(self, timeout: float | None = None) -> None:
        with self._watch_lock:
            watcher, self._watcher = self._watcher, None
        if watcher is not None:
            watcher.stop(timeout)

    def get_model_path(self) -> Path:
        return paths.resolve_model_path(self.get())

    def get_vad_model_path(self, settings: Settings | None = None) -> Path | None:
        if settings is None:
            settings = self.get()
        return paths.resolve_vad_model_path(settings, self._config_path)

    def get_whisper_binary_candidates(self, include_fallbacks: bool = False) -> list[Path]:
        return paths.whisper_binary_candidates(include_fallbacks)

    def get_temp_dir(self) -> Path:
        return paths.temp_dir()

    def get_assets_dir(self) -> Path:
        return paths.assets_dir()


__all__ = ["CONFIG_FILE_NAME", "ConfigManager", "LEGACY_CONFIG_FILE_NAME"]
