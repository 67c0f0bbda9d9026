"""In-memory key/value backend.

A dict tree that behaves like the registry as far as the preferences store
can tell: containers are created on demand, names are matched
case-insensitively but keep the case they were first written with, and
values carry their type. Used as the test double for the store and as the
base of JsonFileBackend.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from vcam_prefs.backends.base import ValueType, from_dword, split_path, to_dword


@dataclass
class _Node:
    """One container: typed values plus nested containers.

    Both mappings are keyed by the lower-cased name and store the original
    name alongside the payload.
    """

    name: str = ""
    values: dict[str, tuple[str, ValueType, str | int]] = field(default_factory=dict)
    children: dict[str, _Node] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "values": {
                name: {"type": value_type.value, "data": data}
                for name, value_type, data in self.values.values()
            },
            "keys": {
                child.name: child.to_dict() for child in self.children.values()
            },
        }

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> _Node:
        node = cls(name=name)
        for value_name, entry in data.get("values", {}).items():
            value_type = ValueType(entry["type"])
            payload = entry["data"]
            if value_type is ValueType.DWORD:
                payload = from_dword(to_dword(int(payload)))
            else:
                payload = str(payload)
            node.values[value_name.lower()] = (value_name, value_type, payload)
        for child_name, child_data in data.get("keys", {}).items():
            node.children[child_name.lower()] = cls.from_dict(child_name, child_data)
        return node


@dataclass
class MemoryHandle:
    """Handle to an open container of an InMemoryBackend."""

    path: str
    node: _Node


class InMemoryBackend:
    """Registry-like backend held entirely in process memory.

    Example:
        >>> backend = InMemoryBackend()
        >>> handle = backend.create_container("SOFTWARE\\\\VirtualCamera")
        >>> backend.write_value(handle, "loglevel", ValueType.DWORD, 10)
        True
        >>> backend.read_value(handle, "LOGLEVEL", ValueType.DWORD)
        10
    """

    def __init__(self) -> None:
        self._root = _Node()

    def _find(self, path: str, create: bool = False) -> _Node | None:
        node = self._root
        for segment in split_path(path):
            child = node.children.get(segment.lower())
            if child is None:
                if not create:
                    return None
                child = _Node(name=segment)
                node.children[segment.lower()] = child
            node = child
        return node

    def open_container(self, path: str) -> MemoryHandle | None:
        node = self._find(path)
        if node is None:
            return None
        return MemoryHandle(path, node)

    def create_container(self, path: str) -> MemoryHandle | None:
        node = self._find(path, create=True)
        assert node is not None
        return MemoryHandle(path, node)

    def close_container(self, handle: MemoryHandle) -> None:
        pass

    def read_value(
        self, handle: MemoryHandle, name: str, value_type: ValueType
    ) -> str | int | None:
        entry = handle.node.values.get(name.lower())
        if entry is None or entry[1] is not value_type:
            return None
        return entry[2]

    def write_value(
        self,
        handle: MemoryHandle,
        name: str,
        value_type: ValueType,
        data: str | int,
    ) -> bool:
        if value_type is ValueType.DWORD:
            # Same 32-bit truncation as REG_DWORD
            data = from_dword(to_dword(int(data)))
        existing = handle.node.values.get(name.lower())
        stored_name = existing[0] if existing else name
        handle.node.values[name.lower()] = (stored_name, value_type, data)
        return True

    @contextmanager
    def batch(self) -> Iterator[None]:
        """No-op: the tree is updated in place."""
        yield

    def delete_value(self, handle: MemoryHandle, name: str) -> bool:
        return handle.node.values.pop(name.lower(), None) is not None

    def delete_container(self, path: str) -> bool:
        segments = split_path(path)
        if not segments:
            # The root itself cannot be removed, only emptied
            removed = bool(self._root.values or self._root.children)
            self._root = _Node()
            return removed

        parent = self._find("\\".join(segments[:-1]))
        if parent is None:
            return False
        return parent.children.pop(segments[-1].lower(), None) is not None

    def enumerate_values(self, handle: MemoryHandle) -> list[str]:
        return [name for name, _, _ in handle.node.values.values()]

    def enumerate_containers(self, handle: MemoryHandle) -> list[str]:
        return [child.name for child in handle.node.children.values()]

    def to_dict(self) -> dict[str, Any]:
        """Export the whole tree as plain JSON-compatible data."""
        return self._root.to_dict()

    def load_dict(self, data: dict[str, Any]) -> None:
        """Replace the whole tree with data produced by to_dict()."""
        self._root = _Node.from_dict("", data)
