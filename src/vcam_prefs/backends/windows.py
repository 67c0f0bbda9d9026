"""Windows registry backend.

Maps the KeyValueBackend protocol onto the stdlib ``winreg`` module. All
containers live under ``HKEY_CURRENT_USER`` and are opened in the 64-bit
registry view so 32-bit and 64-bit processes see the same devices.

``winreg`` reports every failure as OSError; this backend turns those into
None/False/empty results, which the preferences store maps to defaults.

The registry module is injectable so the backend can be exercised on hosts
without a registry:

    backend = WindowsRegistryBackend(api=fake_winreg)
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from types import ModuleType
from typing import Any

from vcam_prefs.backends.base import ValueType, from_dword, split_path, to_dword
from vcam_prefs.observability import get_logger

logger = get_logger(__name__)


class BackendUnavailableError(RuntimeError):
    """Raised when the Windows registry cannot be used on this host."""


def _load_winreg() -> ModuleType:
    try:
        import winreg
    except ImportError as e:
        raise BackendUnavailableError(
            "The Windows registry backend requires the winreg module (Windows only)"
        ) from e
    return winreg


class WindowsRegistryBackend:
    """KeyValueBackend over the Windows registry.

    Args:
        api: Module implementing the winreg API. Defaults to the real
            ``winreg``; raises BackendUnavailableError where it is missing.
        hive: Root hive. Defaults to ``HKEY_CURRENT_USER``.
    """

    def __init__(self, api: Any | None = None, hive: Any | None = None) -> None:
        self._api = api if api is not None else _load_winreg()
        self._hive = hive if hive is not None else self._api.HKEY_CURRENT_USER
        self._view = self._api.KEY_WOW64_64KEY

    def _reg_types(self, value_type: ValueType) -> tuple[int, ...]:
        if value_type is ValueType.DWORD:
            return (self._api.REG_DWORD,)
        return (self._api.REG_SZ, self._api.REG_EXPAND_SZ)

    def open_container(self, path: str) -> Any | None:
        access = self._api.KEY_READ | self._api.KEY_SET_VALUE | self._view
        try:
            return self._api.OpenKey(self._hive, path, 0, access)
        except OSError:
            return None

    def create_container(self, path: str) -> Any | None:
        access = self._api.KEY_READ | self._api.KEY_WRITE | self._view
        try:
            return self._api.CreateKeyEx(self._hive, path, 0, access)
        except OSError as e:
            logger.debug("Cannot create registry key", path=path, error=str(e))
            return None

    def close_container(self, handle: Any) -> None:
        try:
            self._api.CloseKey(handle)
        except OSError as e:
            logger.debug("Cannot close registry key", error=str(e))

    def read_value(
        self, handle: Any, name: str, value_type: ValueType
    ) -> str | int | None:
        try:
            data, reg_type = self._api.QueryValueEx(handle, name)
        except OSError:
            return None

        if reg_type not in self._reg_types(value_type):
            return None
        if value_type is ValueType.DWORD:
            return from_dword(int(data))
        return str(data)

    def write_value(
        self, handle: Any, name: str, value_type: ValueType, data: str | int
    ) -> bool:
        if value_type is ValueType.DWORD:
            reg_type, payload = self._api.REG_DWORD, to_dword(int(data))
        else:
            reg_type, payload = self._api.REG_SZ, str(data)

        try:
            self._api.SetValueEx(handle, name, 0, reg_type, payload)
        except OSError as e:
            logger.debug("Cannot write registry value", name=name, error=str(e))
            return False
        return True

    def delete_value(self, handle: Any, name: str) -> bool:
        try:
            self._api.DeleteValue(handle, name)
        except OSError:
            return False
        return True

    def delete_container(self, path: str) -> bool:
        path = "\\".join(split_path(path))
        handle = self.open_container(path)
        if handle is None:
            return False

        try:
            children = self.enumerate_containers(handle)
        finally:
            self.close_container(handle)

        # The registry refuses to delete keys that still have subkeys
        for child in children:
            self.delete_container(f"{path}\\{child}")

        try:
            self._api.DeleteKeyEx(self._hive, path, self._view, 0)
        except OSError as e:
            logger.debug("Cannot delete registry key", path=path, error=str(e))
            return False
        return True

    @contextmanager
    def batch(self) -> Iterator[None]:
        """No-op: every registry write is applied immediately."""
        yield

    def enumerate_values(self, handle: Any) -> list[str]:
        names: list[str] = []
        i = 0
        while True:
            try:
                name, _, _ = self._api.EnumValue(handle, i)
            except OSError:
                break
            names.append(name)
            i += 1
        return names

    def enumerate_containers(self, handle: Any) -> list[str]:
        names: list[str] = []
        i = 0
        while True:
            try:
                names.append(self._api.EnumKey(handle, i))
            except OSError:
                break
            i += 1
        return names
