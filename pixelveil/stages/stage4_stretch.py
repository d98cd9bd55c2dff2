"""
Stage 4 — NORMALIZE: Per-Channel Contrast Stretch
==================================================
Rescale each RGB channel independently so its darkest sample becomes 0
and its brightest becomes the top of the output range:

    new = (sample - min) * max_out // (max - min)
    max_out = 2^bits - 1

A constant channel (max == min) maps to 0 everywhere.
"""

from typing import List, Tuple

from ..buffer import SampleBuffer, check_bits


class Stretcher:
    """Linear min/max contrast stretch, one channel at a time."""

    def __init__(self, bits: int = 8):
        self.bits = check_bits(bits)
        self.max_out = (1 << bits) - 1

    @staticmethod
    def channel_ranges(buf: SampleBuffer) -> List[Tuple[int, int]]:
        """(min, max) of every channel; (0, 0) for an empty buffer."""
        ranges = []
        for c in range(buf.channels):
            channel = buf.samples[c::buf.channels]
            ranges.append((min(channel), max(channel)) if channel else (0, 0))
        return ranges

    def stretch(self, buf: SampleBuffer) -> SampleBuffer:
        out = bytearray(buf.samples)
        ranges = self.channel_ranges(buf)
        for c in range(buf.color_channels):
            lo, hi = ranges[c]
            span = hi - lo
            if span:
                table = bytes(
                    (v - lo) * self.max_out // span if lo <= v <= hi else 0
                    for v in range(256)
                )
            else:
                table = bytes(256)
            out[c::buf.channels] = buf.samples[c::buf.channels].translate(table)
        return buf.with_samples(out)
