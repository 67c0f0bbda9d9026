"""Store configuration and factory.

Selects the storage backend (Windows registry, JSON file or memory) and the
constants the preferences store is built with, and wires the layers
together:

    backend -> PreferenceStore -> DeviceRegistry / GlobalSettings
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path

from vcam_prefs.backends import (
    InMemoryBackend,
    JsonFileBackend,
    KeyValueBackend,
    WindowsRegistryBackend,
)
from vcam_prefs.preferences import (
    DEFAULT_DEVICE_PREFIX,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_DEVICES,
    DEFAULT_ROOT,
    DeviceRegistry,
    DevicePathAllocator,
    GlobalSettings,
    PreferenceStore,
)

# =============================================================================
# Constants
# =============================================================================

ENV_BACKEND = "VCAM_PREFS_BACKEND"
ENV_FILE = "VCAM_PREFS_FILE"
ENV_ROOT = "VCAM_PREFS_ROOT"


class ConfigurationError(ValueError):
    """Raised for invalid store configuration values."""


class BackendMode(Enum):
    """Storage backend selection."""

    MEMORY = "memory"  # Process-local, lost on exit
    JSON_FILE = "json_file"  # JSON document on disk
    WINDOWS_REGISTRY = "windows_registry"  # HKEY_CURRENT_USER


def default_backend_mode() -> BackendMode:
    """Registry on Windows, JSON file everywhere else."""
    if sys.platform == "win32":
        return BackendMode.WINDOWS_REGISTRY
    return BackendMode.JSON_FILE


def _default_data_file() -> Path:
    """Default JSON document location: ~/.vcam-prefs/preferences.json."""
    return Path.home() / ".vcam-prefs" / "preferences.json"


def parse_backend_mode(value: str) -> BackendMode:
    """Parse a backend name ("memory", "json_file"/"json-file", ...).

    Raises:
        ConfigurationError: If the name is not a known backend.
    """
    normalized = value.strip().lower().replace("-", "_")
    try:
        return BackendMode(normalized)
    except ValueError:
        choices = ", ".join(mode.value for mode in BackendMode)
        raise ConfigurationError(
            f"Unknown backend {value!r}, expected one of: {choices}"
        ) from None


@dataclass
class StoreConfig:
    """Configuration for the preferences store.

    Attributes:
        mode: Storage backend.
        root: Root container every preference key lives under.
        data_file: JSON document used by the JSON_FILE backend.
        device_prefix: Prefix of allocated device paths.
        max_devices: Number of device paths the allocator may try.
        default_log_level: Log level reported when none is stored.
    """

    mode: BackendMode = field(default_factory=default_backend_mode)
    root: str = DEFAULT_ROOT
    data_file: Path = field(default_factory=_default_data_file)
    device_prefix: str = DEFAULT_DEVICE_PREFIX
    max_devices: int = DEFAULT_MAX_DEVICES
    default_log_level: int = DEFAULT_LOG_LEVEL

    def validate(self) -> None:
        """Check the configuration.

        Raises:
            ConfigurationError: On an empty root or prefix, or a scan bound
                below 1.
        """
        if not self.root.strip("\\/"):
            raise ConfigurationError("root must name a container")
        if not self.device_prefix:
            raise ConfigurationError("device_prefix must not be empty")
        if self.max_devices < 1:
            raise ConfigurationError(
                f"max_devices must be >= 1, got {self.max_devices}"
            )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> StoreConfig:
        """Build a config from VCAM_PREFS_* environment variables.

        Unset variables keep their defaults.

        Example:
            >>> StoreConfig.from_env({"VCAM_PREFS_BACKEND": "memory"}).mode
            <BackendMode.MEMORY: 'memory'>
        """
        env = os.environ if environ is None else environ
        config = cls()
        if env.get(ENV_BACKEND):
            config.mode = parse_backend_mode(env[ENV_BACKEND])
        if env.get(ENV_FILE):
            config.data_file = Path(env[ENV_FILE]).expanduser()
        if env.get(ENV_ROOT):
            config.root = env[ENV_ROOT]
        return config


class StoreFactory:
    """Builds backends and the store layers from a StoreConfig.

    Each create_* call returns new objects. The JSON and registry backends
    hold no state beyond what is on disk, so independent instances see each
    other's writes; memory backends do not, which is why the factory keeps
    the one it created.

    Thread Safety:
        Not thread-safe. Configure once at startup.
    """

    def __init__(self, config: StoreConfig | None = None) -> None:
        self.config = config or StoreConfig()
        self.config.validate()
        self._memory_backend: InMemoryBackend | None = None

    def create_backend(self) -> KeyValueBackend:
        """Backend for the configured mode.

        Raises:
            BackendUnavailableError: WINDOWS_REGISTRY mode on a host without
                the winreg module.
        """
        mode = self.config.mode
        if mode is BackendMode.WINDOWS_REGISTRY:
            return WindowsRegistryBackend()
        if mode is BackendMode.JSON_FILE:
            return JsonFileBackend(self.config.data_file)

        if self._memory_backend is None:
            self._memory_backend = InMemoryBackend()
        return self._memory_backend

    def create_store(self, backend: KeyValueBackend | None = None) -> PreferenceStore:
        return PreferenceStore(backend or self.create_backend(), root=self.config.root)

    def create_registry(self, store: PreferenceStore | None = None) -> DeviceRegistry:
        store = store or self.create_store()
        registry = DeviceRegistry(store)
        registry.allocator = DevicePathAllocator(
            registry.camera_paths,
            prefix=self.config.device_prefix,
            max_devices=self.config.max_devices,
        )
        return registry

    def create_settings(self, store: PreferenceStore | None = None) -> GlobalSettings:
        return GlobalSettings(
            store or self.create_store(),
            default_log_level=self.config.default_log_level,
        )


# =============================================================================
# Global Singletons
# =============================================================================
# Not thread-safe. Configure once at startup before sharing the store.

_factory: StoreFactory | None = None
_registry: DeviceRegistry | None = None
_settings: GlobalSettings | None = None


def get_factory() -> StoreFactory:
    """Global factory, created from the environment on first access."""
    global _factory
    if _factory is None:
        _factory = StoreFactory(StoreConfig.from_env())
    return _factory


def configure(config: StoreConfig) -> None:
    """Replace the global factory and drop the cached registry and settings.

    Raises:
        ConfigurationError: If ``config`` is invalid.
    """
    global _factory, _registry, _settings
    _factory = StoreFactory(config)
    _registry = None
    _settings = None


def use_memory_backend() -> None:
    """Switch to a fresh in-memory store, keeping the other settings."""
    configure(replace(get_factory().config, mode=BackendMode.MEMORY))


def use_json_file(path: Path | str) -> None:
    """Switch to the JSON file backend stored at ``path``."""
    configure(
        replace(
            get_factory().config,
            mode=BackendMode.JSON_FILE,
            data_file=Path(path).expanduser(),
        )
    )


def _shared_store() -> PreferenceStore:
    if _registry is not None:
        return _registry.store
    if _settings is not None:
        return _settings.store
    return get_factory().create_store()


def get_registry() -> DeviceRegistry:
    """Global DeviceRegistry for the configured backend."""
    global _registry
    if _registry is None:
        _registry = get_factory().create_registry(_shared_store())
    return _registry


def get_settings() -> GlobalSettings:
    """Global GlobalSettings sharing the registry's store."""
    global _settings
    if _settings is None:
        _settings = get_factory().create_settings(_shared_store())
    return _settings
