"""Process-wide settings stored next to the camera registry."""

from __future__ import annotations

import logging

from vcam_prefs.preferences.store import PreferenceStore

#: Log level used when none has been stored.
DEFAULT_LOG_LEVEL = logging.WARNING

PICTURE = "picture"
LOG_LEVEL = "loglevel"


class GlobalSettings:
    """Placeholder picture and log level accessors.

    The placeholder picture is the image the virtual cameras show while no
    client is streaming to them. The log level uses the numeric values of
    the logging module.
    """

    def __init__(
        self, store: PreferenceStore, default_log_level: int = DEFAULT_LOG_LEVEL
    ) -> None:
        self.store = store
        self.default_log_level = default_log_level

    def picture(self) -> str:
        return self.store.read_string(PICTURE)

    def set_picture(self, picture: str) -> None:
        self.store.write_string(PICTURE, picture)

    def log_level(self) -> int:
        return self.store.read_int(LOG_LEVEL, self.default_log_level)

    def set_log_level(self, level: int) -> None:
        self.store.write_int(LOG_LEVEL, level)
