"""Tests for VideoFormat and frame-rate text."""

from fractions import Fraction

import pytest

from vcam_prefs.preferences import VideoFormat, format_frame_rate, parse_frame_rate


class TestParseFrameRate:
    """Test suite for parse_frame_rate()."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("30/1", Fraction(30)),
            ("30000/1001", Fraction(30000, 1001)),
            ("60/2", Fraction(30)),
            ("25", Fraction(25)),
            ("29.97", Fraction(2997, 100)),
            (" 15/1 ", Fraction(15)),
        ],
    )
    def test_valid_text(self, text, expected):
        assert parse_frame_rate(text) == expected

    @pytest.mark.parametrize("text", ["", "abc", "30/0", "0/1", "-30/1", "1/x"])
    def test_invalid_text_returns_none(self, text):
        """Verifies malformed, zero and negative rates are rejected.

        Arrangement:
        1. Inputs cover empty, non-numeric, division by zero, zero and
           negative rates.

        Action:
        Parse each input.

        Assertion Strategy:
        Validates rejection by confirming:
        - None is returned, never an exception.
        """
        assert parse_frame_rate(text) is None


def test_format_frame_rate_uses_lowest_terms():
    assert format_frame_rate(Fraction(60, 2)) == "30/1"
    assert format_frame_rate(Fraction(30000, 1001)) == "30000/1001"


class TestVideoFormat:
    """Test suite for VideoFormat.

    Categories:
    1. Validity (2 tests)
    2. Frame rate coercion (2 tests)
    3. Rendering (1 test)

    Total: 5 tests.
    """

    def test_default_is_invalid_and_falsy(self):
        """Verifies VideoFormat() is the "not found" sentinel.

        Arrangement:
        1. Default construction, no arguments.

        Action:
        Evaluate validity and truthiness.

        Assertion Strategy:
        Validates sentinel by confirming:
        - is_valid() is False.
        - bool() is False.
        """
        video_format = VideoFormat()

        assert video_format.is_valid() is False
        assert not video_format

    @pytest.mark.parametrize(
        "video_format",
        [
            VideoFormat("", 640, 480, 30),
            VideoFormat("RGB24", 0, 480, 30),
            VideoFormat("RGB24", 640, -1, 30),
            VideoFormat("RGB24", 640, 480, 0),
            VideoFormat("RGB24", 640, 480, "bogus"),
        ],
    )
    def test_incomplete_formats_are_invalid(self, video_format):
        assert not video_format

    def test_fps_accepts_int_float_and_text(self):
        assert VideoFormat("RGB24", 640, 480, 30).fps == Fraction(30)
        assert VideoFormat("RGB24", 640, 480, 29.97).fps == Fraction(2997, 100)
        assert VideoFormat("RGB24", 640, 480, "30000/1001").fps == Fraction(
            30000, 1001
        )

    def test_formats_compare_by_value(self):
        assert VideoFormat("RGB24", 640, 480, "30/1") == VideoFormat(
            "RGB24", 640, 480, 30
        )

    def test_str(self, yuy2_hd):
        assert str(yuy2_hd) == "YUY2 1280x720 30000/1001"
        assert yuy2_hd.fps_text == "30000/1001"
