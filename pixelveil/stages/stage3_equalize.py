"""
Stage 3 — NORMALIZE: Histogram Equalization in HSV
===================================================
Spread pixel brightness evenly across the available range.

Each pixel's HSV value is replaced by its rank among all distinct
values in the image, normalized to [0, 1]:

    cdf(v) = rank(v) / (U - 1)     U = number of distinct values
                                   U == 1  ->  cdf(v) = 0

Hue and saturation are kept, so colours shift in brightness only.
The output depends only on the multiset of values, and equalizing an
already-equalized image changes nothing.
"""

from bisect import bisect_left
from typing import Callable, List, Sequence

from ..buffer import SampleBuffer
from ..errors import PreconditionError
from .stage2_hsv import HSVColor


class Equalizer:
    """Empirical-CDF equalization of HSV value."""

    def __init__(self, depth: int = 8):
        self.depth = depth

    @staticmethod
    def build_cdf(values: Sequence[float]) -> Callable[[float], float]:
        """
        Return cdf(v) over the distinct entries of `values`.

        Every v later passed to cdf must be one of `values`; anything else
        raises LookupError.
        """
        unique: List[float] = sorted(set(values))
        top = len(unique) - 1

        def cdf(v: float) -> float:
            rank = bisect_left(unique, v)
            if rank > top or unique[rank] != v:
                raise LookupError(f"value {v!r} not in CDF domain")
            return rank / top if top else 0.0

        return cdf

    def equalize(self, buf: SampleBuffer) -> SampleBuffer:
        """
        Equalize the colour channels of buf; an alpha channel passes through.

        Raises:
            PreconditionError: fewer than three colour channels
        """
        if buf.color_channels < 3:
            raise PreconditionError(
                "Equalization needs RGB samples.",
                details={"channels": buf.channels},
            )

        hsvs = [HSVColor.from_rgb(p[0], p[1], p[2], self.depth)
                for p in buf.pixels()]
        cdf = self.build_cdf([hsv.val for hsv in hsvs])

        out = bytearray(buf.samples)
        step = buf.channels
        for i, hsv in enumerate(hsvs):
            hsv.val = cdf(hsv.val)
            out[i * step:i * step + 3] = bytes(hsv.to_rgb(self.depth))
        return buf.with_samples(out)
