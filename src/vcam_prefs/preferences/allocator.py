"""Device path allocation.

A device path is the opaque identifier consumers use to name a virtual
camera. The DirectShow registration code derives a CLSID from each path, so
a new path must be unused both literally and through its CLSID.

There are no naming rules for device paths on Windows; candidates are a
fixed prefix followed by an index, tried in order over a bounded range. The
bound is fixed because the registration side only knows that many slots.
"""

from __future__ import annotations

import hashlib
import uuid
from collections.abc import Callable, Hashable, Iterable

from vcam_prefs.observability import get_logger

logger = get_logger(__name__)

#: Prefix shared by every allocated device path.
DEFAULT_DEVICE_PREFIX = "/vcam/video"

#: Number of candidate paths tried before giving up.
DEFAULT_MAX_DEVICES = 64


def derive_clsid(path: str) -> uuid.UUID:
    """Derive the CLSID a device path is registered under.

    SHA-1 of the UTF-8 path, whose first 16 bytes are read as a GUID in its
    in-memory (little-endian) layout.

    Example:
        >>> derive_clsid("/vcam/video0") == derive_clsid("/vcam/video0")
        True
    """
    digest = hashlib.sha1(path.encode("utf-8")).digest()
    return uuid.UUID(bytes_le=digest[:16])


class DevicePathAllocator:
    """Finds a free device path by bounded linear probing.

    Args:
        paths_provider: Returns the paths of every registered camera.
        derive: Maps a path to its derived identifier.
        prefix: Text every candidate path starts with.
        max_devices: Number of candidate indices (0..max_devices-1).
        reserved_ids: Optional provider of identifiers already taken outside
            the preferences, e.g. CLSIDs found in the driver registration.

    Example:
        >>> allocator = DevicePathAllocator(lambda: ["/vcam/video0"])
        >>> allocator.allocate()
        '/vcam/video1'
    """

    def __init__(
        self,
        paths_provider: Callable[[], Iterable[str]],
        derive: Callable[[str], Hashable] = derive_clsid,
        prefix: str = DEFAULT_DEVICE_PREFIX,
        max_devices: int = DEFAULT_MAX_DEVICES,
        reserved_ids: Callable[[], Iterable[Hashable]] | None = None,
    ) -> None:
        if not prefix:
            raise ValueError("Device path prefix must not be empty")
        if max_devices < 1:
            raise ValueError(f"max_devices must be >= 1, got {max_devices}")

        self._paths_provider = paths_provider
        self._derive = derive
        self.prefix = prefix
        self.max_devices = max_devices
        self._reserved_ids = reserved_ids

    def candidates(self) -> list[str]:
        """Every path the allocator may hand out, in scan order."""
        return [f"{self.prefix}{i}" for i in range(self.max_devices)]

    def allocate(self) -> str:
        """Return the first free candidate path.

        A candidate is free when it is not a registered path and its derived
        identifier is neither the identifier of a registered path nor a
        reserved identifier. The result is only guaranteed free at call time.

        Returns:
            The new path, or "" when every candidate is taken (registry full).
        """
        used_paths = set(self._paths_provider())
        used_ids = {self._derive(path) for path in used_paths}
        if self._reserved_ids is not None:
            used_ids.update(self._reserved_ids())

        for path in self.candidates():
            if path in used_paths:
                continue
            if self._derive(path) in used_ids:
                continue
            return path

        logger.warning(
            "No free device path", prefix=self.prefix, max_devices=self.max_devices
        )
        return ""
