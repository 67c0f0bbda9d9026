"""JSON file backend.

Keeps the registry tree in memory (see InMemoryBackend) and persists it to a
JSON document after every mutation, or once per batch() block. Writes are
atomic: the document is written to a temporary file in the same directory
and moved into place with os.replace(), so a crash leaves either the old or
the new document.

This is the default backend on hosts without a Windows registry.
"""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from vcam_prefs.backends.base import ValueType
from vcam_prefs.backends.memory import InMemoryBackend, MemoryHandle
from vcam_prefs.observability import get_logger

logger = get_logger(__name__)

#: Format marker stored at the top of the document.
DOCUMENT_VERSION = 1


class JsonFileBackend(InMemoryBackend):
    """InMemoryBackend persisted to a JSON file.

    The file and its parent directories are created on the first write.
    A missing file is an empty store; an unreadable or corrupt file is
    logged and also treated as empty.

    Every save rewrites the whole document without fsync. Outside a
    batch() block that happens once per value written, so adding a camera
    with N formats costs 4N+4 rewrites; PreferenceStore.batch() groups them
    into one.

    Example:
        >>> backend = JsonFileBackend(Path("~/.vcam-prefs/preferences.json"))
        >>> handle = backend.create_container("SOFTWARE\\\\VirtualCamera")
        >>> backend.write_value(handle, "picture", ValueType.STRING, "/tmp/a.png")
        True
    """

    def __init__(self, path: Path | str) -> None:
        super().__init__()
        self.path = Path(path).expanduser()
        self._batch_depth = 0
        self._dirty = False
        self._load()

    def _load(self) -> None:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return
        except OSError as e:
            logger.warning(
                "Cannot read preferences file", path=str(self.path), error=str(e)
            )
            return

        try:
            document = json.loads(text)
            self.load_dict(document.get("tree", {}))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(
                "Ignoring corrupt preferences file", path=str(self.path), error=str(e)
            )

    def _save(self) -> bool:
        if self._batch_depth:
            self._dirty = True
            return True
        return self._write_document()

    def _write_document(self) -> bool:
        document: dict[str, Any] = {"version": DOCUMENT_VERSION, "tree": self.to_dict()}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=self.path.name + ".", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(document, f, indent=2, sort_keys=True)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.warning(
                "Cannot write preferences file", path=str(self.path), error=str(e)
            )
            return False
        return True

    def create_container(self, path: str) -> MemoryHandle | None:
        existed = self._find(path) is not None
        handle = super().create_container(path)
        if not existed and not self._save():
            return None
        return handle

    def write_value(
        self,
        handle: MemoryHandle,
        name: str,
        value_type: ValueType,
        data: str | int,
    ) -> bool:
        super().write_value(handle, name, value_type, data)
        return self._save()

    def delete_value(self, handle: MemoryHandle, name: str) -> bool:
        if not super().delete_value(handle, name):
            return False
        return self._save()

    def delete_container(self, path: str) -> bool:
        if not super().delete_container(path):
            return False
        return self._save()

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Write the document once when the outermost block exits.

        Mutations inside the block return True without touching the file; a
        failed final write is logged. The document is written even when the
        block raises, so completed mutations are not lost.
        """
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
            if not self._batch_depth and self._dirty:
                self._dirty = False
                self._write_document()
