"""Typed key/value access and subtree operations over a backend.

PreferenceStore is the only layer that talks to a KeyValueBackend. It turns
logical keys into (container, value name) pairs, opens and closes containers
around every access, and gives the schema layer typed reads and writes plus
the bulk operations used for reindexing.

Failure policy:
    Reads never fail: a missing container, a missing value, a value of the
    wrong type or an unparsable number all return the caller's default.
    Writes are fire-and-forget: if the container cannot be created the write
    is dropped and logged at debug level. Callers cannot tell "absent" from
    "backend error" and are not meant to.

Compound operations (copy, move) are plain sequences of backend calls with
no rollback. Callers serialize them across processes.
"""

from __future__ import annotations

from collections.abc import Iterable
from contextlib import AbstractContextManager

from vcam_prefs.backends.base import KeyValueBackend, ValueType
from vcam_prefs.observability import get_logger
from vcam_prefs.preferences.keys import (
    DEFAULT_ROOT,
    SEPARATOR,
    container_path,
    split_key,
)

logger = get_logger(__name__)

#: Separator used by write_string_list/read_string_list.
LIST_SEPARATOR = ","


class PreferenceStore:
    """Typed reads, writes and subtree operations under one root container.

    Thread Safety:
        Not thread-safe, and compound operations are not atomic. The caller
        holds an exclusive lock around any add/remove/reindex sequence.

    Example:
        >>> store = PreferenceStore(InMemoryBackend())
        >>> store.write_int("Cameras\\\\size", 1)
        >>> store.read_int("Cameras\\\\size")
        1
        >>> store.read_int("nonexistent", 42)
        42
    """

    def __init__(self, backend: KeyValueBackend, root: str = DEFAULT_ROOT) -> None:
        self.backend = backend
        self.root = root

    # -------------------------------------------------------------------------
    # Raw access
    # -------------------------------------------------------------------------

    def _read(self, key: str, value_type: ValueType) -> str | int | None:
        container, name = split_key(key, self.root)
        handle = self.backend.open_container(container)
        if handle is None:
            return None

        try:
            return self.backend.read_value(handle, name, value_type)
        finally:
            self.backend.close_container(handle)

    def _write(self, key: str, value_type: ValueType, data: str | int) -> None:
        container, name = split_key(key, self.root)
        logger.debug("Writing value", key=key, value=data)
        handle = self.backend.create_container(container)
        if handle is None:
            logger.debug("Dropping write, container unavailable", key=key)
            return

        try:
            if not self.backend.write_value(handle, name, value_type, data):
                logger.debug("Backend rejected write", key=key)
        finally:
            self.backend.close_container(handle)

    def batch(self) -> AbstractContextManager[None]:
        """Group the writes of a compound operation.

        Delegates to the backend, which may persist once when the outermost
        block exits instead of after every write. Grouping does not make the
        operation atomic.

        Example:
            >>> with store.batch():
            ...     store.write_int("Cameras\\\\size", 2)
            ...     store.write_string("Cameras\\\\2\\\\path", "/vcam/video1")
        """
        return self.backend.batch()

    # -------------------------------------------------------------------------
    # Typed writes
    # -------------------------------------------------------------------------

    def write_string(self, key: str, value: str) -> None:
        self._write(key, ValueType.STRING, str(value))

    def write_int(self, key: str, value: int) -> None:
        self._write(key, ValueType.DWORD, int(value))

    def write_double(self, key: str, value: float) -> None:
        """Store a float as decimal text.

        repr() gives the shortest text that parses back to the same float,
        so read_double() returns exactly the value written.
        """
        self._write(key, ValueType.STRING, repr(float(value)))

    def write_string_list(self, key: str, values: Iterable[str]) -> None:
        """Store strings joined with commas. Items must not contain commas."""
        self.write_string(key, LIST_SEPARATOR.join(values))

    # -------------------------------------------------------------------------
    # Typed reads
    # -------------------------------------------------------------------------

    def read_string(self, key: str, default: str = "") -> str:
        value = self._read(key, ValueType.STRING)
        return default if value is None else str(value)

    def read_int(self, key: str, default: int = 0) -> int:
        value = self._read(key, ValueType.DWORD)
        return default if value is None else int(value)

    def read_double(self, key: str, default: float = 0.0) -> float:
        value = self._read(key, ValueType.STRING)
        if value is None:
            return default

        try:
            return float(value)
        except ValueError:
            logger.debug("Ignoring malformed number", key=key, value=value)
            return default

    def read_bool(self, key: str, default: bool = False) -> bool:
        return self.read_int(key, int(default)) != 0

    def read_string_list(self, key: str, default: list[str] | None = None) -> list[str]:
        value = self._read(key, ValueType.STRING)
        if value is None:
            return list(default) if default is not None else []
        if not value:
            return []
        return str(value).split(LIST_SEPARATOR)

    # -------------------------------------------------------------------------
    # Enumeration
    # -------------------------------------------------------------------------

    def list_values(self, key: str) -> list[str]:
        """Names of the values stored directly in the container ``key``."""
        handle = self.backend.open_container(container_path(key, self.root))
        if handle is None:
            return []

        try:
            return self.backend.enumerate_values(handle)
        finally:
            self.backend.close_container(handle)

    def list_containers(self, key: str) -> list[str]:
        """Names of the containers nested directly in the container ``key``."""
        handle = self.backend.open_container(container_path(key, self.root))
        if handle is None:
            return []

        try:
            return self.backend.enumerate_containers(handle)
        finally:
            self.backend.close_container(handle)

    # -------------------------------------------------------------------------
    # Subtree operations
    # -------------------------------------------------------------------------

    def delete_key(self, key: str) -> None:
        """Delete a value, or a whole container when the key ends with ``\\``.

        Example:
            >>> store.delete_key("Cameras\\\\1\\\\description")  # one value
            >>> store.delete_key("Cameras\\\\1\\\\")  # camera 1 and below
        """
        logger.debug("Deleting key", key=key)
        container, name = split_key(key, self.root)

        if not name:
            self.backend.delete_container(container)
            return

        handle = self.backend.open_container(container)
        if handle is None:
            return

        try:
            self.backend.delete_value(handle, name)
        finally:
            self.backend.close_container(handle)

    def copy_subtree(self, from_key: str, to_key: str) -> bool:
        """Recursively copy the container ``from_key`` into ``to_key``.

        The destination is created if needed; existing values with the same
        names are overwritten, others are kept.

        Returns:
            True if every value and nested container was copied. False if the
            source does not exist or any step failed, in which case the
            destination may be partially written.
        """
        return self._copy_tree(
            container_path(from_key, self.root), container_path(to_key, self.root)
        )

    def _copy_tree(self, source: str, destination: str) -> bool:
        src = self.backend.open_container(source)
        if src is None:
            return False

        try:
            dst = self.backend.create_container(destination)
            if dst is None:
                return False

            try:
                for name in self.backend.enumerate_values(src):
                    if not self._copy_value(src, dst, name):
                        return False
                children = self.backend.enumerate_containers(src)
            finally:
                self.backend.close_container(dst)
        finally:
            self.backend.close_container(src)

        return all(
            self._copy_tree(
                f"{source}{SEPARATOR}{child}", f"{destination}{SEPARATOR}{child}"
            )
            for child in children
        )

    def _copy_value(self, src: object, dst: object, name: str) -> bool:
        for value_type in ValueType:
            data = self.backend.read_value(src, name, value_type)
            if data is not None:
                return self.backend.write_value(dst, name, value_type, data)
        return False

    def move(self, from_key: str, to_key: str) -> bool:
        """Copy the container ``from_key`` to ``to_key``, then delete the source.

        The source is only deleted when the copy fully succeeded. A failed
        copy leaves the source intact and the destination possibly partial.

        Returns:
            True if the container was moved.
        """
        logger.debug("Moving key", source=from_key, destination=to_key)

        if not self.copy_subtree(from_key, to_key):
            logger.debug(
                "Move aborted, copy failed", source=from_key, destination=to_key
            )
            return False

        self.backend.delete_container(container_path(from_key, self.root))
        return True
