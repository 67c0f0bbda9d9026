"""Preferences store for virtual camera devices.

Layers, leaves first:
    keys: logical key <-> (container, value name) codec
    store: typed reads/writes and subtree operations over a backend
    formats: VideoFormat records and frame-rate text
    allocator: collision-free device path allocation
    devices: camera/format/control schema (DeviceRegistry)
    settings: global settings (GlobalSettings)
"""

from vcam_prefs.preferences.allocator import (
    DEFAULT_DEVICE_PREFIX,
    DEFAULT_MAX_DEVICES,
    DevicePathAllocator,
    derive_clsid,
)
from vcam_prefs.preferences.devices import (
    CameraInfo,
    DeviceRegistry,
    is_valid_control_name,
)
from vcam_prefs.preferences.formats import (
    VideoFormat,
    format_frame_rate,
    parse_frame_rate,
)
from vcam_prefs.preferences.keys import (
    DEFAULT_ROOT,
    container_path,
    join_key,
    split_key,
    subtree_key,
)
from vcam_prefs.preferences.settings import DEFAULT_LOG_LEVEL, GlobalSettings
from vcam_prefs.preferences.store import PreferenceStore

__all__ = [
    # Keys
    "DEFAULT_ROOT",
    "container_path",
    "join_key",
    "split_key",
    "subtree_key",
    # Store
    "PreferenceStore",
    # Formats
    "VideoFormat",
    "format_frame_rate",
    "parse_frame_rate",
    # Allocation
    "DEFAULT_DEVICE_PREFIX",
    "DEFAULT_MAX_DEVICES",
    "DevicePathAllocator",
    "derive_clsid",
    # Schema
    "CameraInfo",
    "DeviceRegistry",
    "is_valid_control_name",
    # Settings
    "DEFAULT_LOG_LEVEL",
    "GlobalSettings",
]
