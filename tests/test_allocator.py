"""Tests for device path allocation and CLSID derivation."""

import uuid

import pytest

from vcam_prefs.preferences import DevicePathAllocator, derive_clsid


class TestDeriveClsid:
    """Test suite for derive_clsid()."""

    def test_is_deterministic(self):
        assert derive_clsid("/vcam/video0") == derive_clsid("/vcam/video0")

    def test_distinct_paths_give_distinct_ids(self):
        ids = {derive_clsid(f"/vcam/video{i}") for i in range(64)}

        assert len(ids) == 64

    def test_returns_uuid(self):
        assert isinstance(derive_clsid("/vcam/video0"), uuid.UUID)


class TestDevicePathAllocator:
    """Test suite for DevicePathAllocator.

    Categories:
    1. Probing order (2 tests)
    2. Collision avoidance (2 tests)
    3. Exhaustion (1 test)
    4. Argument validation (1 test)

    Total: 6 tests.
    """

    def test_first_path_on_empty_registry(self):
        allocator = DevicePathAllocator(lambda: [])

        assert allocator.allocate() == "/vcam/video0"

    def test_skips_used_paths(self):
        allocator = DevicePathAllocator(lambda: ["/vcam/video0", "/vcam/video2"])

        assert allocator.allocate() == "/vcam/video1"

    def test_skips_candidates_whose_id_collides(self):
        """Verifies a candidate is rejected when only its derived id is taken.

        Arrangement:
        1. derive() maps video0 and video1 to the same id "dup".
        2. "/custom" is registered and derives to "dup" as well.

        Action:
        Allocate a path.

        Assertion Strategy:
        Validates CLSID collision avoidance by confirming:
        - video0 and video1 are skipped although unused as paths.
        - video2 is returned.

        Testing Principle:
        Two device paths must never register the same CLSID.
        """

        def derive(path):
            if path in ("/vcam/video0", "/vcam/video1", "/custom"):
                return "dup"
            return path

        allocator = DevicePathAllocator(lambda: ["/custom"], derive=derive)

        assert allocator.allocate() == "/vcam/video2"

    def test_reserved_ids_are_avoided(self):
        reserved = [derive_clsid("/vcam/video0")]
        allocator = DevicePathAllocator(lambda: [], reserved_ids=lambda: reserved)

        assert allocator.allocate() == "/vcam/video1"

    def test_exhaustion_returns_empty(self):
        """Verifies a full registry yields "" instead of raising.

        Arrangement:
        1. max_devices=3 with all three candidates registered.

        Action:
        Allocate a path.

        Assertion Strategy:
        Validates exhaustion signal by confirming:
        - allocate() returns "".
        """
        allocator = DevicePathAllocator(
            lambda: ["/cam0", "/cam1", "/cam2"], prefix="/cam", max_devices=3
        )

        assert allocator.candidates() == ["/cam0", "/cam1", "/cam2"]
        assert allocator.allocate() == ""

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            DevicePathAllocator(lambda: [], prefix="")
        with pytest.raises(ValueError):
            DevicePathAllocator(lambda: [], max_devices=0)
