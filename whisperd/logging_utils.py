"""Structured logging helpers for the settings daemon.

Log calls take a :class:`StructuredMessage` (usually built with
:func:`log_context`) so every record carries a short headline, an optional
dotted event name and a flat mapping of details. Two output formats are
available, selected through ``WHISPERD_LOG_FORMAT``:

* ``structured`` (default) - ``timestamp | LEVEL | logger:component | headline | event=... | k=v``
* ``json`` - one JSON object per line.
"""
from __future__ import annotations

import json
import logging
import os
import threading
import time
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterator, Mapping

LOG_LEVEL_ENV = "WHISPERD_LOG_LEVEL"
LOG_FORMAT_ENV = "WHISPERD_LOG_FORMAT"
LOG_DIR_ENV = "WHISPERD_LOG_DIR"
DEFAULT_LOG_FILENAME = "whisperd.log"
DEFAULT_LOG_MAX_BYTES = 2 * 1024 * 1024
DEFAULT_LOG_BACKUP_COUNT = 3

_FORMAT_STRUCTURED = "structured"
_FORMAT_JSON = "json"
_SUPPORTED_FORMATS = {_FORMAT_STRUCTURED, _FORMAT_JSON}

_STARTED_MONOTONIC = time.monotonic()


class _RuntimeContextFilter(logging.Filter):
    """Attach pid, thread name and uptime to each record."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - trivial
        record.process_id = os.getpid()
        record.thread_name = threading.current_thread().name
        record.uptime_ms = int((time.monotonic() - _STARTED_MONOTONIC) * 1000)
        return True


def _stringify_detail(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float):
        if abs(value) >= 100:
            return f"{value:.1f}"
        return f"{value:.3f}"
    if isinstance(value, (list, tuple, set, frozenset)):
        return "[" + ", ".join(_stringify_detail(item) for item in value) + "]"
    if value is None:
        return "<none>"
    return str(value)


class StructuredMessage:
    """A log headline plus an event name and key/value details."""

    __slots__ = ("headline", "event", "details")

    def __init__(
        self,
        headline: str,
        /,
        *,
        event: str | None = None,
        details: Mapping[str, Any] | None = None,
        **fields: Any,
    ) -> None:
        merged: dict[str, Any] = dict(details or {})
        for key, value in fields.items():
            if value is not None:
                merged[key] = value
        self.headline = headline
        self.event = event
        self.details = merged

    def __str__(self) -> str:
        segments = [self.headline]
        if self.event:
            segments.append(f"event={self.event}")
        if self.details:
            segments.append(
                " ".join(f"{key}={_stringify_detail(val)}" for key, val in self.details.items())
            )
        return " | ".join(segments)


class _StructuredLogFormatter(logging.Formatter):
    default_time_format = "%Y-%m-%dT%H:%M:%S"
    default_msec_format = "%s.%03d"

    def format(self, record: logging.LogRecord) -> str:
        timestamp = self.formatTime(record, self.datefmt)
        name = record.name
        component = getattr(record, "component", None)
        if component:
            name = f"{name}:{component}"

        message = super().format(record)
        if "\n" in message:
            head, *rest = message.splitlines()
            message = head + "\n" + "\n".join(f"    {line}" for line in rest)

        extras: list[str] = []
        thread_name = getattr(record, "thread_name", None)
        if thread_name and thread_name != "MainThread":
            extras.append(f"thread={thread_name}")
        uptime_ms = getattr(record, "uptime_ms", None)
        if isinstance(uptime_ms, int):
            extras.append(f"uptime_ms={uptime_ms}")
        context = f" [{', '.join(extras)}]" if extras else ""

        tail = ""
        event = getattr(record, "event", None)
        if event:
            tail = f" | event={event}"
        details = getattr(record, "details", None)
        if isinstance(details, Mapping) and details:
            tail += " | " + " ".join(
                f"{key}={_stringify_detail(value)}" for key, value in sorted(details.items())
            )

        return f"{timestamp} | {record.levelname:<8} | {name}{context} | {message}{tail}"


def _jsonable(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(item) for item in value]
    return str(value)


class _JsonLogFormatter(logging.Formatter):
    default_time_format = "%Y-%m-%dT%H:%M:%S"
    default_msec_format = "%s.%03d"

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for attribute in ("component", "event", "thread_name", "uptime_ms"):
            value = getattr(record, attribute, None)
            if value is not None:
                payload[attribute] = value
        details = getattr(record, "details", None)
        if isinstance(details, Mapping) and details:
            payload["details"] = _jsonable(details)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, sort_keys=True)


class ContextualLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that unpacks :class:`StructuredMessage` into record extras."""

    def __init__(
        self,
        logger: logging.Logger,
        *,
        component: str | None = None,
        defaults: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(logger, extra={})
        self._component = component
        self._defaults = dict(defaults or {})

    def bind(self, **fields: Any) -> "ContextualLoggerAdapter":
        merged = dict(self._defaults)
        merged.update(fields)
        return ContextualLoggerAdapter(self.logger, component=self._component, defaults=merged)

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        kwargs = dict(kwargs)
        extra = dict(kwargs.get("extra") or {})

        details: dict[str, Any] = dict(self._defaults)
        if isinstance(msg, StructuredMessage):
            details.update(msg.details)
            if msg.event:
                extra.setdefault("event", msg.event)
            msg = msg.headline

        if self._component:
            extra.setdefault("component", self._component)
        if details:
            extra["details"] = details
        kwargs["extra"] = extra
        return msg, kwargs


def log_context(
    headline: str,
    /,
    *,
    event: str | None = None,
    details: Mapping[str, Any] | None = None,
    **fields: Any,
) -> StructuredMessage:
    """Build a :class:`StructuredMessage`."""

    return StructuredMessage(headline, event=event, details=details, **fields)


@contextmanager
def log_duration(
    logger: logging.Logger | logging.LoggerAdapter,
    headline: str,
    /,
    *,
    event: str | None = None,
    details: Mapping[str, Any] | None = None,
    level: int = logging.DEBUG,
    failure_level: int = logging.ERROR,
) -> Iterator[dict[str, Any]]:
    """Log how long the wrapped block took.

    The yielded dict can be filled with extra details; it is merged into the
    record emitted on success or failure. Failures are re-raised.
    """

    collected: dict[str, Any] = {}
    started = time.perf_counter()
    try:
        yield collected
    except Exception as exc:
        payload = dict(details or {})
        payload.update(collected)
        payload["status"] = "failure"
        payload["error"] = repr(exc)
        payload["duration_ms"] = int((time.perf_counter() - started) * 1000)
        logger.log(failure_level, StructuredMessage(headline, event=event, details=payload))
        raise
    else:
        payload = dict(details or {})
        payload.update(collected)
        payload.setdefault("status", "success")
        payload["duration_ms"] = int((time.perf_counter() - started) * 1000)
        logger.log(level, StructuredMessage(headline, event=event, details=payload))


def _build_formatter(log_format: str) -> logging.Formatter:
    if log_format == _FORMAT_JSON:
        return _JsonLogFormatter()
    return _StructuredLogFormatter()


def _file_handler(formatter: logging.Formatter) -> logging.Handler | None:
    raw_dir = os.getenv(LOG_DIR_ENV, "").strip()
    if not raw_dir:
        return None
    directory = Path(raw_dir).expanduser()
    try:
        directory.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            directory / DEFAULT_LOG_FILENAME,
            maxBytes=DEFAULT_LOG_MAX_BYTES,
            backupCount=DEFAULT_LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError:
        logging.getLogger(__name__).warning(
            "Unable to log to %s; file logging disabled.", directory, exc_info=True
        )
        return None
    handler.setFormatter(formatter)
    handler.addFilter(_RuntimeContextFilter())
    return handler


def setup_logging() -> None:
    """Configure root logging from the ``WHISPERD_LOG_*`` environment variables."""

    level_name = os.getenv(LOG_LEVEL_ENV, "INFO").strip().upper()
    level = getattr(logging, level_name, logging.INFO)

    requested_format = os.getenv(LOG_FORMAT_ENV, "").strip().lower()
    log_format = requested_format if requested_format in _SUPPORTED_FORMATS else _FORMAT_STRUCTURED

    console = logging.StreamHandler()
    console.setFormatter(_build_formatter(log_format))
    console.addFilter(_RuntimeContextFilter())
    handlers: list[logging.Handler] = [console]

    file_handler = _file_handler(_build_formatter(log_format))
    if file_handler is not None:
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    logger = get_logger("whisperd.logging", component="Logging")
    if requested_format and requested_format not in _SUPPORTED_FORMATS:
        logger.warning(
            log_context(
                "Unsupported log format requested; using the structured format.",
                event="logging.format_rejected",
                requested=requested_format,
            )
        )
    logger.debug(
        log_context(
            "Logging configured.",
            event="logging.configured",
            level=logging.getLevelName(level),
            log_format=log_format,
            log_file=getattr(file_handler, "baseFilename", None),
        )
    )


def get_logger(name: str, *, component: str | None = None, **defaults: Any) -> ContextualLoggerAdapter:
    """Return a :class:`ContextualLoggerAdapter` for ``name``."""

    return ContextualLoggerAdapter(logging.getLogger(name), component=component, defaults=defaults)


__all__ = [
    "ContextualLoggerAdapter",
    "StructuredMessage",
    "get_logger",
    "log_context",
    "log_duration",
    "setup_logging",
]
