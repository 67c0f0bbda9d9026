"""CLI entry point for vcam-prefs.

Provides the ``vcam-prefs`` console script for inspecting and editing the
virtual camera registry and the global settings.

Usage::

    vcam-prefs devices
    vcam-prefs add-device "My Camera"
    vcam-prefs add-format /vcam/video0 RGB24 640 480 30
    vcam-prefs formats /vcam/video0
    vcam-prefs set-controls /vcam/video0 hflip=1 brightness=-10
    vcam-prefs set-picture ~/placeholder.png
    vcam-prefs --backend memory devices

Output is plain text, one item per line, so it can be piped into other
tools. Exit status is 0 on success, 1 when a device, format or value cannot
be found or written, 2 on usage errors.

Each invocation is a single short-lived process; running several
invocations that modify the registry concurrently is not supported.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable, Sequence
from dataclasses import replace
from pathlib import Path

from vcam_prefs.backends import BackendUnavailableError
from vcam_prefs.config import (
    ConfigurationError,
    StoreConfig,
    configure,
    get_registry,
    get_settings,
    parse_backend_mode,
)
from vcam_prefs.observability import configure_logging, get_logger
from vcam_prefs.preferences import (
    DeviceRegistry,
    GlobalSettings,
    VideoFormat,
    is_valid_control_name,
)
from vcam_prefs.preferences.formats import parse_frame_rate

PROG_NAME = "vcam-prefs"

logger = get_logger(__name__)

Handler = Callable[[argparse.Namespace, DeviceRegistry, GlobalSettings], int]


def _error(message: str) -> int:
    """Print an error to stderr and return the failure exit status."""
    print(f"{PROG_NAME}: {message}", file=sys.stderr)
    return 1


def _parse_log_level(value: str) -> int:
    """Accept a numeric level or a level name ("debug", "INFO", ...).

    Raises:
        argparse.ArgumentTypeError: If the value is neither.
    """
    if value.lstrip("-").isdigit():
        return int(value)
    level = logging.getLevelName(value.upper())
    if not isinstance(level, int):
        raise argparse.ArgumentTypeError(f"invalid log level: {value!r}")
    return level


def _camera_index(registry: DeviceRegistry, device: str) -> int | None:
    index = registry.camera_from_path(device)
    if index is None:
        _error(f"'{device}' doesn't exist")
    return index


# =============================================================================
# Commands
# =============================================================================


def cmd_devices(
    args: argparse.Namespace, registry: DeviceRegistry, settings: GlobalSettings
) -> int:
    for camera in registry.cameras():
        print(f"{camera.path}\t{camera.description}")
    return 0


def cmd_add_device(
    args: argparse.Namespace, registry: DeviceRegistry, settings: GlobalSettings
) -> int:
    path = registry.add_camera(args.path or "", args.description)
    if not path:
        if args.path:
            return _error(f"'{args.path}' is already registered")
        return _error("failed to create device, no free device path left")
    print(path)
    return 0


def cmd_remove_device(
    args: argparse.Namespace, registry: DeviceRegistry, settings: GlobalSettings
) -> int:
    if not registry.remove_camera(args.device):
        return _error(f"'{args.device}' doesn't exist")
    return 0


def cmd_remove_devices(
    args: argparse.Namespace, registry: DeviceRegistry, settings: GlobalSettings
) -> int:
    registry.remove_all_cameras()
    return 0


def cmd_description(
    args: argparse.Namespace, registry: DeviceRegistry, settings: GlobalSettings
) -> int:
    index = _camera_index(registry, args.device)
    if index is None:
        return 1
    print(registry.camera_description(index))
    return 0


def cmd_set_description(
    args: argparse.Namespace, registry: DeviceRegistry, settings: GlobalSettings
) -> int:
    index = _camera_index(registry, args.device)
    if index is None:
        return 1
    registry.camera_set_description(index, args.description)
    return 0


def cmd_formats(
    args: argparse.Namespace, registry: DeviceRegistry, settings: GlobalSettings
) -> int:
    index = _camera_index(registry, args.device)
    if index is None:
        return 1
    for i, video_format in enumerate(registry.camera_formats(index)):
        print(f"{i}: {video_format}")
    return 0


def cmd_add_format(
    args: argparse.Namespace, registry: DeviceRegistry, settings: GlobalSettings
) -> int:
    index = _camera_index(registry, args.device)
    if index is None:
        return 1

    fps = parse_frame_rate(args.fps)
    if fps is None:
        return _error(f"invalid frame rate: {args.fps!r}")

    video_format = VideoFormat(args.format, args.width, args.height, fps)
    if not video_format:
        return _error(f"invalid format: {video_format}")

    registry.camera_add_format(index, video_format, args.index)
    return 0


def cmd_remove_format(
    args: argparse.Namespace, registry: DeviceRegistry, settings: GlobalSettings
) -> int:
    index = _camera_index(registry, args.device)
    if index is None:
        return 1
    if not 0 <= args.index < len(registry.camera_formats(index)):
        return _error(f"format index out of range: {args.index}")
    registry.camera_remove_format(index, args.index)
    return 0


def cmd_remove_formats(
    args: argparse.Namespace, registry: DeviceRegistry, settings: GlobalSettings
) -> int:
    index = _camera_index(registry, args.device)
    if index is None:
        return 1
    registry.camera_set_formats(index, [])
    return 0


def cmd_controls(
    args: argparse.Namespace, registry: DeviceRegistry, settings: GlobalSettings
) -> int:
    index = _camera_index(registry, args.device)
    if index is None:
        return 1
    for name, value in sorted(registry.camera_controls(index).items()):
        print(f"{name}={value}")
    return 0


def cmd_get_control(
    args: argparse.Namespace, registry: DeviceRegistry, settings: GlobalSettings
) -> int:
    index = _camera_index(registry, args.device)
    if index is None:
        return 1
    if not is_valid_control_name(args.control):
        return _error(f"invalid control name: {args.control!r}")
    print(registry.camera_control_value(index, args.control))
    return 0


def cmd_set_controls(
    args: argparse.Namespace, registry: DeviceRegistry, settings: GlobalSettings
) -> int:
    index = _camera_index(registry, args.device)
    if index is None:
        return 1

    values: dict[str, int] = {}
    for assignment in args.controls:
        name, sep, value = assignment.partition("=")
        if not sep or not name:
            return _error(f"expected NAME=VALUE, got {assignment!r}")
        if not is_valid_control_name(name):
            return _error(f"invalid control name: {name!r}")
        try:
            values[name] = int(value)
        except ValueError:
            return _error(f"control value must be an integer: {assignment!r}")

    registry.camera_set_control_values(index, values)
    return 0


def cmd_picture(
    args: argparse.Namespace, registry: DeviceRegistry, settings: GlobalSettings
) -> int:
    print(settings.picture())
    return 0


def cmd_set_picture(
    args: argparse.Namespace, registry: DeviceRegistry, settings: GlobalSettings
) -> int:
    picture = str(Path(args.picture).expanduser()) if args.picture else ""
    settings.set_picture(picture)
    return 0


def cmd_loglevel(
    args: argparse.Namespace, registry: DeviceRegistry, settings: GlobalSettings
) -> int:
    print(logging.getLevelName(settings.log_level()))
    return 0


def cmd_set_loglevel(
    args: argparse.Namespace, registry: DeviceRegistry, settings: GlobalSettings
) -> int:
    settings.set_log_level(args.level)
    return 0


# =============================================================================
# Parser
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with every subcommand."""
    parser = argparse.ArgumentParser(
        prog=PROG_NAME,
        description="Manage the virtual camera registry and its settings",
    )
    parser.add_argument(
        "--backend",
        type=parse_backend_mode,
        help="Storage backend: windows_registry, json_file or memory",
    )
    parser.add_argument(
        "--file",
        dest="data_file",
        type=Path,
        help="Preferences file for the json_file backend",
    )
    parser.add_argument(
        "--log-level",
        type=_parse_log_level,
        help="Log level for this run (defaults to the stored loglevel)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit logs as JSON lines",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    def add(name: str, handler: Handler, help_text: str) -> argparse.ArgumentParser:
        sub = subparsers.add_parser(name, help=help_text)
        sub.set_defaults(handler=handler)
        return sub

    add("devices", cmd_devices, "List devices")

    sub = add("add-device", cmd_add_device, "Add a new device")
    sub.add_argument("description")
    sub.add_argument("--path", help="Register under this device path")

    sub = add("remove-device", cmd_remove_device, "Remove a device")
    sub.add_argument("device")

    add("remove-devices", cmd_remove_devices, "Remove all devices")

    sub = add("description", cmd_description, "Show device description")
    sub.add_argument("device")

    sub = add("set-description", cmd_set_description, "Set device description")
    sub.add_argument("device")
    sub.add_argument("description")

    sub = add("formats", cmd_formats, "Show device formats")
    sub.add_argument("device")

    sub = add("add-format", cmd_add_format, "Add a new device format")
    sub.add_argument("device")
    sub.add_argument("format")
    sub.add_argument("width", type=int)
    sub.add_argument("height", type=int)
    sub.add_argument("fps")
    sub.add_argument("-i", "--index", type=int, default=-1, help="Insert at INDEX")

    sub = add("remove-format", cmd_remove_format, "Remove device format")
    sub.add_argument("device")
    sub.add_argument("index", type=int)

    sub = add("remove-formats", cmd_remove_formats, "Remove all device formats")
    sub.add_argument("device")

    sub = add("controls", cmd_controls, "Show stored device controls")
    sub.add_argument("device")

    sub = add("get-control", cmd_get_control, "Read device control")
    sub.add_argument("device")
    sub.add_argument("control")

    sub = add("set-controls", cmd_set_controls, "Write device control values")
    sub.add_argument("device")
    sub.add_argument("controls", nargs="+", metavar="NAME=VALUE")

    add("picture", cmd_picture, "Show placeholder picture")

    sub = add("set-picture", cmd_set_picture, "Set placeholder picture")
    sub.add_argument("picture", metavar="FILE")

    add("loglevel", cmd_loglevel, "Show log level")

    sub = add("set-loglevel", cmd_set_loglevel, "Set log level")
    sub.add_argument("level", type=_parse_log_level)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run one vcam-prefs command.

    Args:
        argv: Arguments without the program name; sys.argv[1:] when None.

    Returns:
        Exit status.

    Raises:
        SystemExit: On --help or usage errors (status 2).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = StoreConfig.from_env()
        if args.backend is not None:
            config = replace(config, mode=args.backend)
        if args.data_file is not None:
            config = replace(config, data_file=args.data_file.expanduser())
        configure(config)

        registry = get_registry()
        settings = get_settings()
    except (ConfigurationError, BackendUnavailableError) as e:
        return _error(str(e))

    level = args.log_level if args.log_level is not None else settings.log_level()
    configure_logging(level=level, json_format=args.json_logs, force=True)
    logger.debug("Running command", command=args.command, backend=config.mode.value)

    handler: Handler = args.handler
    return handler(args, registry, settings)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
