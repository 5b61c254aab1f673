"""Latest-value broadcast of settings changes."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Iterator

from .logging_utils import get_logger, log_context

if TYPE_CHECKING:
    from .config_schema import Settings

LOGGER = get_logger("whisperd.config.bus", component="ChangeBus")


class ChangeBus:
    """Holds the most recently published settings.

    Subscribers never see a backlog: a slow one that misses several
    publications wakes up with only the newest value.
    """

    def __init__(self, initial: "Settings") -> None:
        self._cond = threading.Condition()
        self._value = initial.model_copy(deep=True)
        self._version = 0
        self._subscriber_count = 0

    @property
    def version(self) -> int:
        with self._cond:
            return self._version

    def publish(self, value: "Settings") -> None:
        snapshot = value.model_copy(deep=True)
        with self._cond:
            self._value = snapshot
            self._version += 1
            version = self._version
            self._cond.notify_all()
        LOGGER.debug(
            log_context(
                "Published settings change.",
                event="config.bus.published",
                version=version,
            )
        )

    def current(self) -> "Settings":
        with self._cond:
            return self._value.model_copy(deep=True)

    def subscribe(self) -> "Subscription":
        with self._cond:
            self._subscriber_count += 1
            total = self._subscriber_count
        LOGGER.debug(
            log_context(
                "Settings subscriber registered.",
                event="config.bus.subscriber_registered",
                total_subscribers=total,
            )
        )
        return Subscription(self)

    def _wait_newer(self, seen: int, timeout: float | None) -> tuple[int, "Settings"] | None:
        with self._cond:
            if not self._cond.wait_for(lambda: self._version != seen, timeout=timeout):
                return None
            return self._version, self._value.model_copy(deep=True)

    def _peek(self) -> tuple[int, "Settings"]:
        with self._cond:
            return self._version, self._value.model_copy(deep=True)


class Subscription:
    """A receiver handle; the first :meth:`wait` returns the current value."""

    def __init__(self, bus: ChangeBus) -> None:
        self._bus = bus
        self._seen = -1

    def wait(self, timeout: float | None = None) -> "Settings" | None:
        """Block until a value newer than the last one returned is available.

        Returns ``None`` when ``timeout`` elapses first.
        """

        result = self._bus._wait_newer(self._seen, timeout)
        if result is None:
            return None
        self._seen, value = result
        return value

    def latest(self) -> "Settings":
        """Return the current value without marking it as seen."""

        return self._bus._peek()[1]

    def has_pending(self) -> bool:
        return self._bus.version != self._seen

    def __iter__(self) -> Iterator["Settings"]:
        while True:
            value = self.wait()
            if value is not None:
                yield value


__all__ = ["ChangeBus", "Subscription"]
