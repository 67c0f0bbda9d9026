"""Structured logging for vcam-prefs.

Thin layer over the standard logging module that lets every call site attach
key/value data to a message instead of formatting it into the text:

    logger = get_logger(__name__)
    logger.debug("Writing value", key="Cameras\\1\\description")

    with LogContext(camera="/vcam/video0"):
        logger.info("Removing camera")  # carries camera=/vcam/video0

Two output formats are available:
- StructuredFormatter: ``<time> - <logger> - <level> - <message> | k=v k=v``
- JSONFormatter: one JSON object per line, structured data as top-level keys

Registry keys and device descriptions come from users, so they are always
passed as keyword arguments rather than interpolated into the message.
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
import threading
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, cast

#: Name of the package logger every module logger hangs off.
ROOT_LOGGER_NAME = "vcam_prefs"

_log_context: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar(
    "log_context", default={}
)


# =============================================================================
# Structured Logger
# =============================================================================


class StructuredLogger(logging.Logger):
    """Logger whose level methods accept structured keyword arguments.

    Usage:
        logger = StructuredLogger("vcam_prefs.preferences.store")
        logger.debug("Deleting key", key="Cameras\\2\\")
    """

    def debug(
        self,
        msg: object,
        *args: Any,
        exc_info: Any = None,
        stack_info: bool = False,
        stacklevel: int = 1,
        extra: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        """Log a debug message with structured keyword data."""
        if self.isEnabledFor(logging.DEBUG):
            self._log(
                logging.DEBUG,
                msg,
                args,
                exc_info=exc_info,
                extra=extra,
                stack_info=stack_info,
                stacklevel=stacklevel + 1,
                **kwargs,
            )

    def info(
        self,
        msg: object,
        *args: Any,
        exc_info: Any = None,
        stack_info: bool = False,
        stacklevel: int = 1,
        extra: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        """Log an info message with structured keyword data."""
        if self.isEnabledFor(logging.INFO):
            self._log(
                logging.INFO,
                msg,
                args,
                exc_info=exc_info,
                extra=extra,
                stack_info=stack_info,
                stacklevel=stacklevel + 1,
                **kwargs,
            )

    def warning(
        self,
        msg: object,
        *args: Any,
        exc_info: Any = None,
        stack_info: bool = False,
        stacklevel: int = 1,
        extra: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        """Log a warning message with structured keyword data."""
        if self.isEnabledFor(logging.WARNING):
            self._log(
                logging.WARNING,
                msg,
                args,
                exc_info=exc_info,
                extra=extra,
                stack_info=stack_info,
                stacklevel=stacklevel + 1,
                **kwargs,
            )

    def error(
        self,
        msg: object,
        *args: Any,
        exc_info: Any = None,
        stack_info: bool = False,
        stacklevel: int = 1,
        extra: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        """Log an error message with structured keyword data."""
        if self.isEnabledFor(logging.ERROR):
            self._log(
                logging.ERROR,
                msg,
                args,
                exc_info=exc_info,
                extra=extra,
                stack_info=stack_info,
                stacklevel=stacklevel + 1,
                **kwargs,
            )

    def _log(
        self,
        level: int,
        msg: object,
        args: tuple[Any, ...] | MutableMapping[str, Any] | None = None,
        exc_info: Any = None,
        extra: dict[str, Any] | None = None,
        stack_info: bool = False,
        stacklevel: int = 1,
        **kwargs: Any,
    ) -> None:
        """Attach context and keyword data to the record, then log it.

        Active LogContext values are merged first and explicit keyword
        arguments override them. The merged mapping is handed to the
        formatters through ``extra["structured_data"]``.

        Args:
            level: Numeric log level.
            msg: Message, may contain % placeholders.
            args: Arguments for % formatting.
            exc_info: Exception info as accepted by logging.Logger.
            extra: Extra record attributes; ``structured_data`` is overwritten.
            stack_info: Include a stack trace when True.
            stacklevel: Frames to skip when locating the caller.
            **kwargs: Structured key/value data (key, camera, index, ...).
        """
        structured_data = {**_log_context.get(), **kwargs}

        if extra is None:
            extra = {}
        extra["structured_data"] = structured_data

        super()._log(
            level,
            msg,
            args,
            exc_info=exc_info,
            extra=extra,
            stack_info=stack_info,
            stacklevel=stacklevel + 1,
        )


# =============================================================================
# Formatters
# =============================================================================


class StructuredFormatter(logging.Formatter):
    """Human-readable formatter: ``base message | key=value key=value``."""

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        include_structured: bool = True,
    ) -> None:
        """Create the formatter.

        Args:
            fmt: Base format string. Defaults to
                ``%(asctime)s - %(name)s - %(levelname)s - %(message)s``.
            datefmt: Date format for ``%(asctime)s``.
            include_structured: Append structured data after the message.
        """
        if fmt is None:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        super().__init__(fmt, datefmt)
        self.include_structured = include_structured

    def format(self, record: logging.LogRecord) -> str:
        """Format the record and append its structured data, if any."""
        base = super().format(record)

        if not self.include_structured:
            return base

        structured = getattr(record, "structured_data", {})
        if not structured:
            return base

        pairs = " ".join(f"{k}={_format_value(v)}" for k, v in structured.items())
        return f"{base} | {pairs}"


class JSONFormatter(logging.Formatter):
    """One JSON object per record with structured data at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        """Serialize the record as a single JSON line.

        Fields: ``timestamp`` (UTC ISO 8601), ``level``, ``logger``,
        ``message``, ``exception`` when exc_info is set, plus every key of the
        record's structured data. Values json cannot encode go through str().
        """
        log_dict: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        log_dict.update(getattr(record, "structured_data", {}))

        if record.exc_info:
            log_dict["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_dict, default=str)


def _format_value(value: Any) -> str:
    """Render one structured value for StructuredFormatter.

    None becomes ``null``, strings containing spaces are double-quoted,
    dicts and lists are JSON-encoded and anything else goes through str().

    Example:
        >>> _format_value("Cam A")
        '"Cam A"'
        >>> _format_value(["RGB24", 640, 480])
        '["RGB24", 640, 480]'
    """
    if value is None:
        return "null"
    if isinstance(value, str):
        if " " in value:
            return f'"{value}"'
        return value
    if isinstance(value, dict | list):
        return json.dumps(value, default=str)
    return str(value)


# =============================================================================
# Context Management
# =============================================================================


@dataclass
class LogContext:
    """Scoped key/value pairs added to every record logged inside the block.

    Contexts nest; inner values override outer ones and are dropped again
    when the inner block exits.

    Usage:
        with LogContext(camera="/vcam/video1"):
            logger.info("Reindexing")
            with LogContext(index=3):
                logger.debug("Moving camera")  # camera and index
    """

    _kwargs: dict[str, Any] = field(default_factory=dict, init=False, repr=True)
    _token: contextvars.Token[dict[str, Any]] | None = field(
        default=None, init=False, repr=False
    )

    def __init__(self, **kwargs: Any) -> None:
        self._kwargs = kwargs

    def __enter__(self) -> LogContext:
        current = _log_context.get()
        self._token = _log_context.set({**current, **self._kwargs})
        return self

    def __exit__(self, *args: Any) -> None:
        if self._token is not None:
            _log_context.reset(self._token)


# =============================================================================
# Configuration
# =============================================================================

_configured = False
_config_lock = threading.Lock()


def configure_logging(
    level: int | str = logging.WARNING,
    json_format: bool = False,
    stream: Any = None,
    include_structured: bool = True,
    force: bool = False,
) -> None:
    """Install the handler and formatter on the ``vcam_prefs`` logger.

    Idempotent: later calls are ignored unless ``force`` is True, in which
    case existing handlers are removed first. Guarded by a module lock.

    The default level is WARNING so that the CLI only prints registry
    traffic when asked to; the stored ``loglevel`` setting or ``--log-level``
    lowers it.

    Args:
        level: Minimum level, as an int or a level name ("DEBUG", ...).
        json_format: Use JSONFormatter instead of StructuredFormatter.
        stream: Output stream, sys.stderr by default.
        include_structured: Append key=value pairs in text mode.
        force: Reconfigure even if logging was already configured.

    Example:
        >>> configure_logging(level="DEBUG", force=True)
        >>> get_logger("vcam_prefs.cli").debug("Ready", backend="memory")
    """
    with _config_lock:
        if force:
            _reset_logging_impl()
        _configure_logging_impl(level, json_format, stream, include_structured)


def _configure_logging_impl(
    level: int | str = logging.WARNING,
    json_format: bool = False,
    stream: Any = None,
    include_structured: bool = True,
) -> None:
    """Configure the package logger (caller holds the lock)."""
    global _configured

    if _configured:
        return

    logging.setLoggerClass(StructuredLogger)

    if stream is None:
        stream = sys.stderr
    handler = logging.StreamHandler(stream)

    formatter: logging.Formatter
    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = StructuredFormatter(include_structured=include_structured)
    handler.setFormatter(formatter)

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)
    root.addHandler(handler)
    root.propagate = False

    _configured = True


def _reset_logging_impl() -> None:
    """Drop and close the package handlers (caller holds the lock)."""
    global _configured

    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    _configured = False


def reset_logging() -> None:
    """Return logging to the unconfigured state. Used by tests."""
    with _config_lock:
        _reset_logging_impl()


def get_logger(name: str) -> StructuredLogger:
    """Return a StructuredLogger, configuring defaults on first use.

    Args:
        name: Logger name, normally ``__name__`` of a ``vcam_prefs`` module so
            the logger inherits the package handler.

    Returns:
        StructuredLogger accepting keyword data on every level method.
    """
    if not _configured:
        with _config_lock:
            if not _configured:  # pragma: no branch
                _configure_logging_impl()

    # setLoggerClass() above makes getLogger() hand out StructuredLogger
    return cast(StructuredLogger, logging.getLogger(name))
