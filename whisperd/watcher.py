"""Poll the backing file and reload it when it changes on disk."""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Callable

from .errors import ConfigError
from .logging_utils import get_logger, log_context

LOGGER = get_logger("whisperd.config.watcher", component="ConfigWatcher")

WATCH_INTERVAL_SECONDS = 0.5

FileState = tuple[int, int]


def file_state(path: Path) -> FileState | None:
    """``(mtime_ns, size)`` of ``path``, or ``None`` when it cannot be stat'ed."""

    try:
        stat = os.stat(path)
    except OSError:
        return None
    return stat.st_mtime_ns, stat.st_size


class ConfigWatcher(threading.Thread):
    """Daemon thread that calls ``on_change`` whenever the file's state moves.

    Failures raised by ``on_change`` are logged and the watcher keeps polling;
    whatever value the store already holds stays in effect.
    """

    def __init__(
        self,
        path: Path,
        on_change: Callable[[], None],
        *,
        interval: float = WATCH_INTERVAL_SECONDS,
    ) -> None:
        super().__init__(name="whisperd-config-watcher", daemon=True)
        self.path = Path(path)
        self.interval = interval
        self._on_change = on_change
        self._stop_event = threading.Event()
        self._last_state = file_state(self.path)

    def stop(self, timeout: float | None = None) -> None:
        self._stop_event.set()
        if self.is_alive() and threading.current_thread() is not self:
            self.join(timeout)

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def poll_once(self) -> bool:
        """Run a single tick. Returns ``True`` when a change was detected."""

        current = file_state(self.path)
        if current == self._last_state:
            return False
        self._last_state = current

        LOGGER.debug(
            log_context(
                "Backing file changed on disk.",
                event="config.watch.changed",
                path=str(self.path),
                mtime_ns=current[0] if current else None,
                size=current[1] if current else None,
            )
        )
        try:
            self._on_change()
        except (ConfigError, OSError) as exc:
            LOGGER.warning(
                log_context(
                    "Failed to reload config after external edit; keeping previous settings.",
                    event="config.watch.reload_failed",
                    path=str(self.path),
                    error=str(exc),
                )
            )
        return True

    def run(self) -> None:
        LOGGER.info(
            log_context(
                "Watching config file for changes.",
                event="config.watch.started",
                path=str(self.path),
                interval_s=self.interval,
            )
        )
        while not self._stop_event.wait(self.interval):
            self.poll_once()
        LOGGER.debug(
            log_context(
                "Config watcher stopped.",
                event="config.watch.stopped",
                path=str(self.path),
            )
        )


__all__ = ["ConfigWatcher", "WATCH_INTERVAL_SECONDS", "file_state"]
