"""
SampleBuffer — the data carrier passed between stages.

A flat byte sequence of interleaved 8-bit samples plus its shape.
Pixel p, channel c lives at samples[p * channels + c].
"""

from dataclasses import dataclass, field
from typing import Iterator

from .errors import PreconditionError

MIN_BITS = 1
MAX_BITS = 8


def check_bits(bits: int) -> int:
    """Return bits unchanged, or raise PreconditionError outside [1, 8]."""
    if isinstance(bits, bool) or not isinstance(bits, int) \
            or not MIN_BITS <= bits <= MAX_BITS:
        raise PreconditionError(
            f"Bit width must be an integer in [{MIN_BITS}, {MAX_BITS}].",
            details={"bits": bits},
        )
    return bits


def low_mask(bits: int) -> int:
    return 0xFF >> (8 - bits)


def high_mask(bits: int) -> int:
    return (0xFF << bits) & 0xFF


@dataclass
class SampleBuffer:
    """
    Flat pixel samples with their shape.

    Attributes:
        width, height : image size in pixels
        channels      : samples per pixel (3 = RGB, 4 = RGBA, ...)
        samples       : width * height * channels bytes
        has_alpha     : True when the last channel is alpha
    """

    width: int
    height: int
    channels: int
    samples: bytes = field(repr=False)
    has_alpha: bool = False

    def __post_init__(self):
        if self.width < 0 or self.height < 0 or self.channels < 1:
            raise PreconditionError(
                "Invalid buffer shape.",
                details={"width": self.width, "height": self.height,
                         "channels": self.channels},
            )
        self.samples = bytes(self.samples)
        expected = self.width * self.height * self.channels
        if len(self.samples) != expected:
            raise PreconditionError(
                f"Buffer holds {len(self.samples)} samples, "
                f"shape requires {expected}.",
                details={"width": self.width, "height": self.height,
                         "channels": self.channels},
            )

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def color_channels(self) -> int:
        """Number of channels excluding a trailing alpha channel."""
        return self.channels - 1 if self.has_alpha else self.channels

    def same_size(self, other: "SampleBuffer") -> bool:
        return (self.width, self.height) == (other.width, other.height)

    def pixels(self) -> Iterator[bytes]:
        """Yield each pixel's samples as a bytes slice."""
        step = self.channels
        data = self.samples
        for i in range(0, len(data), step):
            yield data[i:i + step]

    def with_samples(self, samples) -> "SampleBuffer":
        """Return a buffer of the same shape carrying new samples."""
        return SampleBuffer(self.width, self.height, self.channels,
                            bytes(samples), self.has_alpha)
