"""Tests for the logical key codec."""

from vcam_prefs.preferences.keys import (
    DEFAULT_ROOT,
    container_path,
    join_key,
    normalize_key,
    split_key,
    subtree_key,
)


class TestSplitKey:
    """Test suite for split_key().

    Categories:
    1. Root-level values (1 test)
    2. Nested values (1 test)
    3. Container keys (1 test)
    4. Separator aliases (2 tests)

    Total: 5 tests.
    """

    def test_bare_name_lives_in_root(self):
        """Verifies a key without separators names a value of the root.

        Arrangement:
        1. Key "loglevel" has no separator.

        Action:
        Split with the default root.

        Assertion Strategy:
        Validates root mapping by confirming:
        - Container is DEFAULT_ROOT.
        - Value name is the key itself.
        """
        assert split_key("loglevel") == (DEFAULT_ROOT, "loglevel")

    def test_nested_key_splits_at_last_separator(self):
        """Verifies the last segment becomes the value name."""
        container, name = split_key("Cameras\\2\\Formats\\size")

        assert container == f"{DEFAULT_ROOT}\\Cameras\\2\\Formats"
        assert name == "size"

    def test_trailing_separator_gives_empty_name(self):
        """Verifies a key ending in a separator names a container.

        Arrangement:
        1. "Cameras\\1\\" is the subtree form used for deletes and copies.

        Action:
        Split the key.

        Assertion Strategy:
        Validates container addressing by confirming:
        - Container is root\\Cameras\\1.
        - Value name is empty.

        Testing Principle:
        Validates the convention delete_key() relies on to tell value
        deletion from subtree deletion.
        """
        assert split_key("Cameras\\1\\") == (f"{DEFAULT_ROOT}\\Cameras\\1", "")

    def test_forward_slashes_are_aliases(self):
        assert split_key("Cameras/1/path") == split_key("Cameras\\1\\path")

    def test_custom_root(self):
        assert split_key("picture", "SOFTWARE\\Test") == ("SOFTWARE\\Test", "picture")


class TestKeyHelpers:
    """Test suite for normalize_key, container_path, join_key, subtree_key."""

    def test_normalize_strips_leading_separators(self):
        assert normalize_key("/Cameras/1") == "Cameras\\1"
        assert normalize_key("\\\\size") == "size"

    def test_container_path_ignores_trailing_separator(self):
        """Verifies "Cameras\\1" and "Cameras\\1\\" name the same container."""
        expected = f"{DEFAULT_ROOT}\\Cameras\\1"

        assert container_path("Cameras\\1") == expected
        assert container_path("Cameras\\1\\") == expected

    def test_container_path_of_empty_key_is_root(self):
        assert container_path("") == DEFAULT_ROOT
        assert container_path("\\") == DEFAULT_ROOT

    def test_join_key_converts_segments_to_text(self):
        assert join_key("Cameras", 3, "Formats", 1, "fps") == (
            "Cameras\\3\\Formats\\1\\fps"
        )

    def test_subtree_key_round_trips_through_split(self):
        """Verifies subtree_key() output is recognized as a container key.

        Arrangement:
        1. Build "Cameras\\3\\" with subtree_key().

        Action:
        Split it back with split_key().

        Assertion Strategy:
        Validates the two helpers agree by confirming:
        - The value name is empty.
        - The container ends with Cameras\\3.
        """
        key = subtree_key("Cameras", 3)

        container, name = split_key(key)

        assert key == "Cameras\\3\\"
        assert name == ""
        assert container.endswith("Cameras\\3")
