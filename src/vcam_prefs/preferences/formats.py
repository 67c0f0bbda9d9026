"""Video format records as stored in the preferences.

A camera's format list is stored one container per format, each holding four
values: ``format`` (pixel format name), ``width``, ``height`` and ``fps``.
The frame rate is a rational number kept as ``"num/den"`` text so that
values such as 30000/1001 survive storage exactly.

The pixel format name is opaque here; validating it against supported pixel
layouts is the caller's business.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from fractions import Fraction


def parse_frame_rate(text: str) -> Fraction | None:
    """Parse frame-rate text into a Fraction.

    Accepts ``"num/den"``, integers and decimals (``"30"``, ``"29.97"``).
    Decimals are converted exactly, so ``"29.97"`` is 2997/100.

    Returns:
        The positive frame rate, or None for empty, malformed, zero or
        negative input.

    Example:
        >>> parse_frame_rate("30000/1001")
        Fraction(30000, 1001)
        >>> parse_frame_rate("abc") is None
        True
    """
    try:
        rate = Fraction(text.strip())
    except (ValueError, ZeroDivisionError):
        return None
    return rate if rate > 0 else None


def format_frame_rate(rate: Fraction) -> str:
    """Render a frame rate as ``"num/den"`` text.

    Example:
        >>> format_frame_rate(Fraction(30))
        '30/1'
    """
    return f"{rate.numerator}/{rate.denominator}"


def _coerce_frame_rate(value: Fraction | int | float | str) -> Fraction:
    if isinstance(value, Fraction):
        return value
    if isinstance(value, str):
        return parse_frame_rate(value) or Fraction(0)
    if isinstance(value, float):
        # Go through repr() so 29.97 means 2997/100, not its binary expansion
        return Fraction(repr(value))
    return Fraction(value)


@dataclass(frozen=True)
class VideoFormat:
    """One entry of a camera's format list.

    Attributes:
        fourcc: Pixel format name (e.g. "RGB24", "YUY2").
        width: Frame width in pixels.
        height: Frame height in pixels.
        fps: Frame rate. Strings, ints and floats are converted to Fraction.

    A default-constructed VideoFormat is the invalid format returned for
    out-of-range lookups; it is falsy.
    """

    fourcc: str = ""
    width: int = 0
    height: int = 0
    fps: Fraction = field(default_factory=Fraction)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fps", _coerce_frame_rate(self.fps))

    def is_valid(self) -> bool:
        return bool(self.fourcc) and self.width > 0 and self.height > 0 and self.fps > 0

    def __bool__(self) -> bool:
        return self.is_valid()

    @property
    def fps_text(self) -> str:
        return format_frame_rate(self.fps)

    def __str__(self) -> str:
        return f"{self.fourcc} {self.width}x{self.height} {self.fps_text}"
