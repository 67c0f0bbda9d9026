"""Tests for the vcam-prefs command-line interface.

Commands run through main() against a JSON file in tmp_path so state
persists between invocations, the way it does between real CLI runs.
"""

import sys

import pytest

from vcam_prefs.cli import build_parser, main
from vcam_prefs.config import ENV_BACKEND, ENV_FILE


@pytest.fixture
def run(tmp_path, capsys):
    """Run one CLI command against a per-test preferences file.

    Returns:
        Callable taking the command arguments and returning
        (exit status, stdout, stderr).
    """
    data_file = tmp_path / "prefs.json"

    def _run(*args):
        status = main(["--backend", "json_file", "--file", str(data_file), *args])
        captured = capsys.readouterr()
        return status, captured.out, captured.err

    return _run


class TestDeviceCommands:
    """Test suite for device listing, creation and removal.

    Categories:
    1. Listing (2 tests)
    2. Creation (2 tests)
    3. Removal (2 tests)

    Total: 6 tests.
    """

    def test_devices_empty(self, run):
        assert run("devices") == (0, "", "")

    def test_add_device_prints_path_and_lists_it(self, run):
        """Verifies add-device allocates a path that devices then lists.

        Arrangement:
        1. Empty preferences file.

        Action:
        Run add-device "My Camera", then devices.

        Assertion Strategy:
        Validates the round trip by confirming:
        - add-device prints /vcam/video0 and exits 0.
        - devices prints "path<TAB>description".
        """
        status, out, _ = run("add-device", "My Camera")
        assert status == 0
        assert out == "/vcam/video0\n"

        assert run("devices")[1] == "/vcam/video0\tMy Camera\n"

    def test_add_device_with_explicit_path(self, run):
        assert run("add-device", "Cam", "--path", "/custom/cam")[1] == "/custom/cam\n"

        status, _, err = run("add-device", "Again", "--path", "/custom/cam")

        assert status == 1
        assert "already registered" in err

    def test_set_description(self, run):
        run("add-device", "Old")

        assert run("set-description", "/vcam/video0", "New")[0] == 0
        assert run("description", "/vcam/video0")[1] == "New\n"

    def test_remove_device(self, run):
        run("add-device", "A")
        run("add-device", "B")

        assert run("remove-device", "/vcam/video0")[0] == 0
        assert run("devices")[1] == "/vcam/video1\tB\n"

    def test_unknown_device_is_an_error(self, run):
        status, out, err = run("remove-device", "/vcam/video7")

        assert status == 1
        assert out == ""
        assert "'/vcam/video7' doesn't exist" in err

    def test_remove_devices(self, run):
        run("add-device", "A")
        run("add-device", "B")

        assert run("remove-devices")[0] == 0
        assert run("devices")[1] == ""


class TestFormatCommands:
    """Test suite for format commands."""

    @pytest.fixture
    def device(self, run):
        return run("add-device", "Cam")[1].strip()

    def test_add_and_list_formats(self, run, device):
        run("add-format", device, "RGB24", "640", "480", "30")
        run("add-format", device, "YUY2", "1280", "720", "30000/1001", "-i", "0")

        assert run("formats", device)[1] == (
            "0: YUY2 1280x720 30000/1001\n1: RGB24 640x480 30/1\n"
        )

    def test_invalid_frame_rate(self, run, device):
        status, _, err = run("add-format", device, "RGB24", "640", "480", "fast")

        assert status == 1
        assert "invalid frame rate" in err

    def test_invalid_dimensions(self, run, device):
        assert run("add-format", device, "RGB24", "0", "480", "30")[0] == 1

    def test_remove_format(self, run, device):
        run("add-format", device, "RGB24", "640", "480", "30")
        run("add-format", device, "YUY2", "320", "240", "15")

        assert run("remove-format", device, "0")[0] == 0
        assert run("formats", device)[1] == "0: YUY2 320x240 15/1\n"

        status, _, err = run("remove-format", device, "5")
        assert status == 1
        assert "out of range" in err

    def test_remove_formats(self, run, device):
        run("add-format", device, "RGB24", "640", "480", "30")

        assert run("remove-formats", device)[0] == 0
        assert run("formats", device)[1] == ""


class TestControlCommands:
    """Test suite for control commands."""

    def test_set_and_show_controls(self, run):
        """Verifies set-controls stores every NAME=VALUE pair.

        Arrangement:
        1. One device.

        Action:
        set-controls with two assignments, then controls and get-control.

        Assertion Strategy:
        Validates control storage by confirming:
        - controls prints sorted name=value lines.
        - get-control prints a single value, 0 for unset controls.
        """
        run("add-device", "Cam")

        assert run("set-controls", "/vcam/video0", "hflip=1", "brightness=-10")[0] == 0

        assert run("controls", "/vcam/video0")[1] == "brightness=-10\nhflip=1\n"
        assert run("get-control", "/vcam/video0", "hflip")[1] == "1\n"
        assert run("get-control", "/vcam/video0", "gamma")[1] == "0\n"

    @pytest.mark.parametrize("assignment", ["hflip", "=1", "hflip=yes", "a/b=1"])
    def test_bad_assignment(self, run, assignment):
        run("add-device", "Cam")

        assert run("set-controls", "/vcam/video0", assignment)[0] == 1

    def test_get_control_rejects_unaddressable_name(self, run):
        run("add-device", "Cam")

        status, _, err = run("get-control", "/vcam/video0", "a\\b")

        assert status == 1
        assert "invalid control name" in err


class TestSettingsCommands:
    """Test suite for picture and log level commands."""

    def test_picture(self, run, tmp_path):
        picture = str(tmp_path / "placeholder.png")

        assert run("picture")[1] == "\n"
        assert run("set-picture", picture)[0] == 0
        assert run("picture")[1] == f"{picture}\n"

    def test_set_picture_without_file_option(self, tmp_path, monkeypatch, capsys):
        """Verifies set-picture works when --file is not given.

        Arrangement:
        1. Backend and data file chosen through VCAM_PREFS_* variables, so
           the command line carries no --file.

        Action:
        Run set-picture, then picture.

        Assertion Strategy:
        Validates argument wiring by confirming:
        - set-picture exits 0.
        - picture prints the stored path.
        """
        monkeypatch.setenv(ENV_BACKEND, "json_file")
        monkeypatch.setenv(ENV_FILE, str(tmp_path / "prefs.json"))
        picture = str(tmp_path / "placeholder.png")

        assert main(["set-picture", picture]) == 0
        assert main(["picture"]) == 0
        assert capsys.readouterr().out == f"{picture}\n"

    def test_picture_and_data_file_are_separate_arguments(self):
        args = build_parser().parse_args(
            ["--file", "prefs.json", "set-picture", "placeholder.png"]
        )

        assert str(args.data_file) == "prefs.json"
        assert args.picture == "placeholder.png"

    def test_loglevel(self, run):
        assert run("loglevel")[1] == "WARNING\n"
        assert run("set-loglevel", "error")[0] == 0
        assert run("loglevel")[1] == "ERROR\n"

    def test_numeric_loglevel(self, run):
        run("set-loglevel", "10")

        assert run("loglevel")[1] == "DEBUG\n"


class TestArgumentHandling:
    """Test suite for global options and usage errors."""

    def test_missing_command_is_usage_error(self):
        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 2

    def test_unknown_backend_is_usage_error(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["--backend", "floppy", "devices"])

        assert exc_info.value.code == 2

    def test_unavailable_registry(self, monkeypatch, capsys):
        """Verifies a missing winreg is reported instead of crashing.

        Arrangement:
        1. sys.modules["winreg"] = None simulates a non-Windows host.

        Action:
        Run devices with --backend windows_registry.

        Assertion Strategy:
        Validates error mapping by confirming:
        - Exit status 1.
        - stderr mentions winreg.
        """
        monkeypatch.setitem(sys.modules, "winreg", None)

        assert main(["--backend", "windows_registry", "devices"]) == 1
        assert "winreg" in capsys.readouterr().err

    def test_memory_backend_starts_empty(self, capsys):
        assert main(["--backend", "memory", "devices"]) == 0
        assert capsys.readouterr().out == ""

    def test_every_command_has_a_handler(self):
        parser = build_parser()
        args = parser.parse_args(["remove-devices"])

        assert callable(args.handler)
