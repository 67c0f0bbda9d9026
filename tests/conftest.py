"""Pytest configuration and fixtures for vcam-prefs tests.

Every fixture builds on InMemoryBackend, the in-process stand-in for the
Windows registry, so the whole suite runs on any host.
"""

import pytest

from vcam_prefs import config
from vcam_prefs.backends import InMemoryBackend
from vcam_prefs.observability import reset_logging
from vcam_prefs.preferences import (
    DeviceRegistry,
    GlobalSettings,
    PreferenceStore,
    VideoFormat,
)


@pytest.fixture(autouse=True)
def isolate_globals(monkeypatch):
    """Reset logging, the global store factory and VCAM_PREFS_* variables.

    Business context:
    The CLI and config module keep process-wide singletons. Without this
    fixture one test's backend choice or log level would leak into the next.

    Yields:
        None.
    """
    for name in (config.ENV_BACKEND, config.ENV_FILE, config.ENV_ROOT):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "_factory", None)
    monkeypatch.setattr(config, "_registry", None)
    monkeypatch.setattr(config, "_settings", None)
    yield
    reset_logging()


@pytest.fixture
def memory_backend():
    """Empty in-memory backend."""
    return InMemoryBackend()


@pytest.fixture
def store(memory_backend):
    """PreferenceStore over an empty in-memory backend."""
    return PreferenceStore(memory_backend)


@pytest.fixture
def registry(store):
    """DeviceRegistry with no cameras."""
    return DeviceRegistry(store)


@pytest.fixture
def settings(store):
    """GlobalSettings sharing the registry's store."""
    return GlobalSettings(store)


@pytest.fixture
def rgb_vga():
    return VideoFormat("RGB24", 640, 480, 30)


@pytest.fixture
def yuy2_hd():
    return VideoFormat("YUY2", 1280, 720, "30000/1001")
