"""Tests for GlobalSettings."""

import logging

from vcam_prefs.preferences import GlobalSettings


class TestGlobalSettings:
    """Test suite for the picture and log level settings."""

    def test_defaults(self, settings):
        """Verifies unset settings report their defaults.

        Arrangement:
        1. Empty store.

        Action:
        Read picture and log level.

        Assertion Strategy:
        Validates defaults by confirming:
        - picture() is "".
        - log_level() is logging.WARNING.
        """
        assert settings.picture() == ""
        assert settings.log_level() == logging.WARNING

    def test_round_trip(self, settings):
        settings.set_picture("/home/user/placeholder.png")
        settings.set_log_level(logging.DEBUG)

        assert settings.picture() == "/home/user/placeholder.png"
        assert settings.log_level() == logging.DEBUG

    def test_custom_default_log_level(self, store):
        assert GlobalSettings(store, default_log_level=logging.ERROR).log_level() == (
            logging.ERROR
        )

    def test_settings_live_in_root_container(self, settings, store):
        settings.set_picture("a.png")
        settings.set_log_level(10)

        assert sorted(store.list_values("")) == ["loglevel", "picture"]
