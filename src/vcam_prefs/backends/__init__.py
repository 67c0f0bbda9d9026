"""Storage backends for the preferences store.

Protocols:
    KeyValueBackend: hierarchical, path-addressed key/value capability

Implementations:
    InMemoryBackend: dict tree, used by tests and as a scratch store
    JsonFileBackend: InMemoryBackend persisted atomically to a JSON file
    WindowsRegistryBackend: HKEY_CURRENT_USER through the winreg module
"""

from vcam_prefs.backends.base import (
    PATH_SEPARATOR,
    KeyValueBackend,
    ValueType,
    split_path,
)
from vcam_prefs.backends.jsonfile import JsonFileBackend
from vcam_prefs.backends.memory import InMemoryBackend, MemoryHandle
from vcam_prefs.backends.windows import (
    BackendUnavailableError,
    WindowsRegistryBackend,
)

__all__ = [
    "PATH_SEPARATOR",
    "BackendUnavailableError",
    "InMemoryBackend",
    "JsonFileBackend",
    "KeyValueBackend",
    "MemoryHandle",
    "ValueType",
    "WindowsRegistryBackend",
    "split_path",
]
