"""Virtual camera registry schema.

Maps cameras, their formats and their control values onto preference keys:

    Cameras\\size                           number of cameras (authoritative)
    Cameras\\<n>\\description               camera description
    Cameras\\<n>\\path                      device path
    Cameras\\<n>\\Formats\\size             number of formats
    Cameras\\<n>\\Formats\\<m>\\format      pixel format name
    Cameras\\<n>\\Formats\\<m>\\width       width in pixels
    Cameras\\<n>\\Formats\\<m>\\height      height in pixels
    Cameras\\<n>\\Formats\\<m>\\fps         frame rate, "num/den"
    Cameras\\<n>\\Controls\\<name>          control value

Storage indices ``n`` and ``m`` are 1-based and contiguous. Every public
method takes and returns 0-based indices. Removing a camera moves the cameras
above it down one slot so the numbering never has gaps. Format lists are
rewritten whole on every change and never hold invalid entries.

Lookups signal "not found" through their return value: "" for paths and
descriptions, None for indices, an invalid VideoFormat for formats, the given
default for control values. Invalid control names are ignored, never
raised.

Thread Safety:
    None. add/remove/reindex operations are sequences of independent writes;
    the caller holds the cross-process device lock for their whole duration.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from fractions import Fraction

from vcam_prefs.observability import LogContext, get_logger
from vcam_prefs.preferences.allocator import DevicePathAllocator, derive_clsid
from vcam_prefs.preferences.formats import VideoFormat, parse_frame_rate
from vcam_prefs.preferences.keys import SEPARATOR, join_key, subtree_key
from vcam_prefs.preferences.store import PreferenceStore

logger = get_logger(__name__)

CAMERAS = "Cameras"
FORMATS = "Formats"
CONTROLS = "Controls"
SIZE = "size"
DESCRIPTION = "description"
PATH = "path"


def is_valid_control_name(name: str) -> bool:
    """True if ``name`` can be stored as a single value under Controls.

    Empty names and names containing a key separator (``\\`` or ``/``) would
    address another container.
    """
    return bool(name) and SEPARATOR not in name and "/" not in name


@dataclass
class CameraInfo:
    """Snapshot of one registered camera."""

    index: int
    path: str
    description: str
    formats: list[VideoFormat] = field(default_factory=list)
    controls: dict[str, int] = field(default_factory=dict)


class DeviceRegistry:
    """CRUD access to the virtual cameras stored in the preferences.

    Args:
        store: Preference store holding the registry.
        allocator: Device path allocator. Defaults to one probing the
            standard prefix against this registry's paths.
        derive: Path to CLSID transform used by camera_from_clsid() and by
            the default allocator.

    Example:
        >>> registry = DeviceRegistry(PreferenceStore(InMemoryBackend()))
        >>> fmt = VideoFormat("RGB24", 640, 480, 30)
        >>> path = registry.add_camera("", "Cam A", [fmt])
        >>> registry.cameras_count()
        1
        >>> registry.camera_description(registry.camera_from_path(path))
        'Cam A'
    """

    def __init__(
        self,
        store: PreferenceStore,
        allocator: DevicePathAllocator | None = None,
        derive: Callable[[str], Hashable] = derive_clsid,
    ) -> None:
        self.store = store
        self._derive = derive
        self.allocator = allocator or DevicePathAllocator(
            self.camera_paths, derive=derive
        )

    # -------------------------------------------------------------------------
    # Key helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _camera_key(index: int, *segments: object) -> str:
        return join_key(CAMERAS, index + 1, *segments)

    @staticmethod
    def _format_key(index: int, format_index: int, *segments: object) -> str:
        return join_key(CAMERAS, index + 1, FORMATS, format_index + 1, *segments)

    @staticmethod
    def _control_key(index: int, name: str) -> str:
        return join_key(CAMERAS, index + 1, CONTROLS, name)

    def _has_camera(self, index: int) -> bool:
        return 0 <= index < self.cameras_count()

    # -------------------------------------------------------------------------
    # Cameras
    # -------------------------------------------------------------------------

    def cameras_count(self) -> int:
        return max(0, self.store.read_int(join_key(CAMERAS, SIZE)))

    def camera_path(self, index: int) -> str:
        if not self._has_camera(index):
            return ""
        return self.store.read_string(self._camera_key(index, PATH))

    def camera_paths(self) -> list[str]:
        return [
            self.store.read_string(self._camera_key(i, PATH))
            for i in range(self.cameras_count())
        ]

    def camera_from_path(self, path: str) -> int | None:
        """Index of the camera registered under ``path``, or None."""
        for i, camera_path in enumerate(self.camera_paths()):
            if camera_path == path:
                return i
        return None

    def camera_from_clsid(self, clsid: Hashable) -> int | None:
        """Index of the camera whose path derives to ``clsid``, or None."""
        for i, camera_path in enumerate(self.camera_paths()):
            if self._derive(camera_path) == clsid:
                return i
        return None

    def camera_exists(self, path: str) -> bool:
        return self.camera_from_path(path) is not None

    def create_device_path(self) -> str:
        """Allocate an unused device path, "" if none is left."""
        return self.allocator.allocate()

    def add_camera(
        self,
        path: str = "",
        description: str = "",
        formats: Iterable[VideoFormat] = (),
    ) -> str:
        """Append a camera to the registry.

        Writes, in order: the new count, the description, the path and the
        format list. The sequence is not atomic; an interrupted call leaves a
        partially written camera behind.

        Args:
            path: Device path to register, or "" to allocate one.
            description: Human readable camera name.
            formats: Supported formats, default format first.

        Returns:
            The camera's device path, or "" if ``path`` is already registered
            or no free path could be allocated.
        """
        if path and self.camera_exists(path):
            logger.info("Camera already registered", path=path)
            return ""

        device_path = path or self.create_device_path()
        if not device_path:
            return ""

        index = self.cameras_count()

        with LogContext(camera=device_path), self.store.batch():
            # Drop whatever an interrupted add may have left in the slot
            self.store.delete_key(subtree_key(CAMERAS, index + 1))
            self.store.write_int(join_key(CAMERAS, SIZE), index + 1)
            self.store.write_string(self._camera_key(index, DESCRIPTION), description)
            self.store.write_string(self._camera_key(index, PATH), device_path)
            self._write_formats(index, list(formats))
            logger.info("Camera added", index=index, description=description)

        return device_path

    def add_device(self, description: str) -> str:
        """Add a camera with an allocated path and no formats."""
        return self.add_camera("", description)

    def remove_camera(self, path: str) -> bool:
        """Remove the camera registered under ``path`` and close the gap.

        Clears the camera's formats, deletes its subtree, moves every camera
        above it down one slot, then stores the new count (or deletes the
        whole Cameras container when the registry becomes empty).

        Returns:
            True if a camera was removed, False if ``path`` is unknown.
        """
        index = self.camera_from_path(path)
        if index is None:
            return False

        with LogContext(camera=path), self.store.batch():
            count = self.cameras_count()
            self.camera_set_formats(index, [])
            self.store.delete_key(subtree_key(CAMERAS, index + 1))

            for i in range(index + 1, count):
                self.store.move(join_key(CAMERAS, i + 1), join_key(CAMERAS, i))

            if count > 1:
                self.store.write_int(join_key(CAMERAS, SIZE), count - 1)
            else:
                self.store.delete_key(subtree_key(CAMERAS))

            logger.info("Camera removed", index=index)

        return True

    def remove_all_cameras(self) -> None:
        with self.store.batch():
            for path in reversed(self.camera_paths()):
                self.remove_camera(path)
            self.store.delete_key(subtree_key(CAMERAS))

    def camera_description(self, index: int) -> str:
        if not self._has_camera(index):
            return ""
        return self.store.read_string(self._camera_key(index, DESCRIPTION))

    def camera_set_description(self, index: int, description: str) -> None:
        if not self._has_camera(index):
            return
        self.store.write_string(self._camera_key(index, DESCRIPTION), description)

    def cameras(self) -> list[CameraInfo]:
        """Snapshot of every registered camera, in index order."""
        return [
            CameraInfo(
                index=i,
                path=self.camera_path(i),
                description=self.camera_description(i),
                formats=self.camera_formats(i),
                controls=self.camera_controls(i),
            )
            for i in range(self.cameras_count())
        ]

    # -------------------------------------------------------------------------
    # Formats
    # -------------------------------------------------------------------------

    def formats_count(self, index: int) -> int:
        return max(0, self.store.read_int(self._camera_key(index, FORMATS, SIZE)))

    def camera_format(self, index: int, format_index: int) -> VideoFormat:
        """Format ``format_index`` of camera ``index``.

        Returns:
            The stored format, or an invalid (falsy) VideoFormat when either
            index is out of range.
        """
        if not self._has_camera(index):
            return VideoFormat()
        if not 0 <= format_index < self.formats_count(index):
            return VideoFormat()

        read_string = self.store.read_string
        read_int = self.store.read_int
        fps = parse_frame_rate(
            read_string(self._format_key(index, format_index, "fps"))
        )

        return VideoFormat(
            fourcc=read_string(self._format_key(index, format_index, "format")),
            width=read_int(self._format_key(index, format_index, "width")),
            height=read_int(self._format_key(index, format_index, "height")),
            fps=fps or Fraction(0),
        )

    def camera_formats(self, index: int) -> list[VideoFormat]:
        """Valid formats of camera ``index``; unreadable entries are skipped."""
        formats = []
        for i in range(self.formats_count(index)):
            video_format = self.camera_format(index, i)
            if video_format:
                formats.append(video_format)
        return formats

    def _write_format(
        self, index: int, format_index: int, video_format: VideoFormat
    ) -> None:
        self.store.write_string(
            self._format_key(index, format_index, "format"), video_format.fourcc
        )
        self.store.write_int(
            self._format_key(index, format_index, "width"), video_format.width
        )
        self.store.write_int(
            self._format_key(index, format_index, "height"), video_format.height
        )
        self.store.write_string(
            self._format_key(index, format_index, "fps"), video_format.fps_text
        )

    def _write_formats(self, index: int, formats: Sequence[VideoFormat]) -> None:
        valid = [video_format for video_format in formats if video_format]
        if len(valid) != len(formats):
            logger.debug("Skipping invalid formats", index=index)

        self.store.write_int(self._camera_key(index, FORMATS, SIZE), len(valid))
        for i, video_format in enumerate(valid):
            self._write_format(index, i, video_format)

    def camera_set_formats(self, index: int, formats: Iterable[VideoFormat]) -> None:
        """Replace the whole format list of camera ``index``.

        Invalid formats are dropped, so storage slots always line up with
        the positions camera_formats() reports.
        """
        if not self._has_camera(index):
            return

        with self.store.batch():
            self.store.delete_key(subtree_key(CAMERAS, index + 1, FORMATS))
            self._write_formats(index, list(formats))

    def camera_add_format(
        self, index: int, video_format: VideoFormat, format_index: int = -1
    ) -> None:
        """Insert a format at ``format_index`` of camera_formats().

        A negative or past-the-end ``format_index`` appends. An invalid
        format is ignored. The list is rewritten in full, which also drops
        unreadable entries left by other writers.
        """
        if not self._has_camera(index) or not video_format:
            return

        formats = self.camera_formats(index)
        if format_index < 0 or format_index > len(formats):
            format_index = len(formats)

        formats.insert(format_index, video_format)
        self.camera_set_formats(index, formats)

    def camera_remove_format(self, index: int, format_index: int) -> None:
        """Remove entry ``format_index`` of camera_formats().

        Out-of-range indices are ignored.
        """
        if not self._has_camera(index):
            return

        formats = self.camera_formats(index)
        if not 0 <= format_index < len(formats):
            return

        del formats[format_index]
        self.camera_set_formats(index, formats)

    # -------------------------------------------------------------------------
    # Controls
    # -------------------------------------------------------------------------

    def camera_control_value(self, index: int, name: str, default: int = 0) -> int:
        """Stored value of control ``name``, ``default`` if unset or invalid."""
        if not self._has_camera(index) or not is_valid_control_name(name):
            return default
        return self.store.read_int(self._control_key(index, name), default)

    def camera_set_control_value(self, index: int, name: str, value: int) -> None:
        """Store a control value; unknown cameras and invalid names are ignored."""
        if not self._has_camera(index):
            return
        if not is_valid_control_name(name):
            logger.debug("Ignoring invalid control name", index=index, name=name)
            return
        self.store.write_int(self._control_key(index, name), value)

    def camera_set_control_values(self, index: int, values: Mapping[str, int]) -> None:
        with self.store.batch():
            for name, value in values.items():
                self.camera_set_control_value(index, name, value)

    def camera_controls(self, index: int) -> dict[str, int]:
        """Every control value stored for camera ``index``, by name.

        Values whose names cannot be addressed as a key (written by other
        tools with a ``/`` in the name) are skipped.
        """
        if not self._has_camera(index):
            return {}

        names = self.store.list_values(join_key(CAMERAS, index + 1, CONTROLS))
        controls = {}
        for name in names:
            if not is_valid_control_name(name):
                logger.debug("Skipping unaddressable control", name=name)
                continue
            controls[name] = self.store.read_int(self._control_key(index, name))
        return controls
