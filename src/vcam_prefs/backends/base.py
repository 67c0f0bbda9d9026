"""Backend protocol for the hierarchical key/value store.

The preferences store never talks to the Windows registry (or any other
storage) directly. It consumes the small capability described here, modelled
on the registry API: containers addressed by backslash-separated paths,
holding typed named values and nested containers.

Container handles are opaque to callers. Every handle returned by
``open_container`` or ``create_container`` must be given back to
``close_container``.
"""

from __future__ import annotations

from enum import Enum
from contextlib import AbstractContextManager
from typing import Any, Protocol, runtime_checkable

#: Separator between container names in backend paths.
PATH_SEPARATOR = "\\"


class ValueType(Enum):
    """Value encodings understood by every backend."""

    STRING = "string"  # REG_SZ
    DWORD = "dword"  # REG_DWORD, 32-bit signed as seen by callers


_DWORD_MASK = 0xFFFFFFFF


def to_dword(value: int) -> int:
    """Two's complement encoding of a signed int as an unsigned DWORD."""
    return value & _DWORD_MASK


def from_dword(value: int) -> int:
    """Reinterpret the low 32 bits of an int as a signed DWORD.

    Example:
        >>> from_dword(0xFFFFFFF6)
        -10
        >>> from_dword(2**40 + 7)
        7
    """
    value &= _DWORD_MASK
    return value - (1 << 32) if value & 0x80000000 else value


def split_path(path: str) -> list[str]:
    """Split a backend container path into its non-empty segments.

    Example:
        >>> split_path("SOFTWARE\\\\VirtualCamera\\\\Cameras\\\\")
        ['SOFTWARE', 'VirtualCamera', 'Cameras']
    """
    return [segment for segment in path.split(PATH_SEPARATOR) if segment]


@runtime_checkable
class KeyValueBackend(Protocol):  # pragma: no cover
    """Protocol for a hierarchical, path-addressed key/value store.

    Implemented by InMemoryBackend, JsonFileBackend and
    WindowsRegistryBackend. Backends report failure through their return
    values (None, False, empty list) and never raise OSError to the caller.

    Container names compare case-insensitively, as the Windows registry does.
    """

    def open_container(self, path: str) -> Any | None:
        """Open an existing container.

        Args:
            path: Full container path, e.g. ``SOFTWARE\\VirtualCamera\\Cameras``.

        Returns:
            An opaque handle, or None if the container does not exist or
            cannot be opened.
        """
        ...

    def create_container(self, path: str) -> Any | None:
        """Open a container, creating it and any missing parents.

        Returns:
            An opaque handle, or None if creation failed.
        """
        ...

    def close_container(self, handle: Any) -> None:
        """Release a handle obtained from open/create."""
        ...

    def read_value(
        self, handle: Any, name: str, value_type: ValueType
    ) -> str | int | None:
        """Read a named value of the requested type.

        Returns:
            The value, or None when it is absent or stored with another type.
        """
        ...

    def write_value(
        self, handle: Any, name: str, value_type: ValueType, data: str | int
    ) -> bool:
        """Write a named value, replacing any previous value and type."""
        ...

    def delete_value(self, handle: Any, name: str) -> bool:
        """Delete a named value. Returns False if it did not exist."""
        ...

    def delete_container(self, path: str) -> bool:
        """Delete a container and everything beneath it."""
        ...

    def batch(self) -> AbstractContextManager[None]:
        """Group the writes made inside the block.

        Backends that persist on every mutation may defer persisting until
        the outermost block exits. Blocks nest. Values written inside the
        block are readable immediately.
        """
        ...

    def enumerate_values(self, handle: Any) -> list[str]:
        """List the value names stored directly in a container."""
        ...

    def enumerate_containers(self, handle: Any) -> list[str]:
        """List the names of the containers nested directly in a container."""
        ...
