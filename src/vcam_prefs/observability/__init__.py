"""Observability module for vcam-prefs.

Structured logging for the preferences store and its command line front end.

Example:
    from vcam_prefs.observability import get_logger, LogContext

    logger = get_logger(__name__)

    logger.info("Camera added", path="/vcam/video0")

    with LogContext(camera="/vcam/video0"):
        logger.debug("Writing formats", count=2)
"""

from vcam_prefs.observability.logging import (
    ROOT_LOGGER_NAME,
    JSONFormatter,
    LogContext,
    StructuredFormatter,
    StructuredLogger,
    configure_logging,
    get_logger,
    reset_logging,
)

__all__ = [
    "ROOT_LOGGER_NAME",
    "JSONFormatter",
    "LogContext",
    "StructuredFormatter",
    "StructuredLogger",
    "configure_logging",
    "get_logger",
    "reset_logging",
]
