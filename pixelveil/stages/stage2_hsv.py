"""
Stage 2 — COLOUR: RGB <-> HSV
==============================
Hue / saturation / value form of one RGB triple at a given bit depth.

    hue : degrees in [0, 360)
    sat : chroma / value, 0 for black
    val : max(r, g, b) normalized to [0, 1]

For fixed-point inputs the conversion is exact in both directions:
to_rgb(from_rgb(c, d), d) == c. Loss only enters when the value is
rewritten (equalization) or the depth changes.
"""

from dataclasses import dataclass
from typing import Tuple

# Absorbs float representation error before truncating to an integer
# sample, e.g. 28.999999999999996 -> 29.
_EPSILON = 1e-9


def _scale(depth: int) -> float:
    return float((1 << depth) - 1)


@dataclass
class HSVColor:
    """One colour in HSV form."""

    hue: float
    sat: float
    val: float

    @classmethod
    def from_rgb(cls, red: int, green: int, blue: int,
                 depth: int = 8) -> "HSVColor":
        n = _scale(depth)
        r, g, b = red / n, green / n, blue / n

        v = max(r, g, b)
        c = v - min(r, g, b)

        if c == 0.0:
            h = 0.0
        elif v == r:
            h = ((g - b) / c) % 6.0
        elif v == g:
            h = (b - r) / c + 2.0
        else:
            h = (r - g) / c + 4.0

        s = 0.0 if v == 0.0 else c / v
        return cls(hue=(h * 60.0) % 360.0, sat=s, val=v)

    def to_rgb(self, depth: int = 8) -> Tuple[int, int, int]:
        c = self.val * self.sat
        h = (self.hue % 360.0) / 60.0
        x = c * (1.0 - abs(h % 2.0 - 1.0))
        m = self.val - c

        sector = int(h)
        if sector >= 6:          # hue of 359.99999.. rounding up to 360
            sector = 0
        r1, g1, b1 = (
            (c, x, 0.0),
            (x, c, 0.0),
            (0.0, c, x),
            (0.0, x, c),
            (x, 0.0, c),
            (c, 0.0, x),
        )[sector]

        n = _scale(depth)
        top = int(n)
        return tuple(
            min(top, max(0, int((ch + m) * n + _EPSILON)))
            for ch in (r1, g1, b1)
        )
