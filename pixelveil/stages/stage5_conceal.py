"""
Stage 5 — STEGANOGRAPHY: Image-in-Image LSB Concealment
========================================================
Hide one image inside the low bits of another.

embed  : merged = (hidden & (0xFF << N)) | (cover & (2^N - 1))
reveal : (merged & (2^N - 1)) * 255 // (2^N - 1)

The `cover` argument is the payload: an image already quantized down
to N significant bits. The `hidden` argument supplies the visible high
8-N bits of the result. reveal() recovers the payload at N-bit
precision; the visible image's bits are discarded.

Channel layouts may differ (RGB payload, RGBA carrier, greyscale, ...).
Output channel i takes carrier channel min(carrier_channels - 1, i),
so a short layout repeats its last channel instead of failing.

Carrier format: PNG or any lossless raster (JPEG destroys low bits)
Capacity:       width x height x channels x N bits
"""

from ..buffer import SampleBuffer, check_bits, high_mask, low_mask
from ..errors import PreconditionError
from .stage1_bitdepth import BitDepthCodec


class Concealer:
    """Merge and split images by bit plane."""

    @staticmethod
    def check_dimensions(cover: SampleBuffer, hidden: SampleBuffer) -> None:
        if not cover.same_size(hidden):
            raise PreconditionError(
                "Image dimensions do not match.",
                details={
                    "primary": f"{cover.width}x{cover.height}",
                    "secondary": f"{hidden.width}x{hidden.height}",
                },
            )

    def embed(self, cover: SampleBuffer, hidden: SampleBuffer,
              bits: int) -> SampleBuffer:
        """
        Combine cover's low `bits` bits with hidden's high 8-bits bits.

        Returns:
            A buffer with cover's layout.

        Raises:
            PreconditionError: width/height differ or bits outside [1, 8]
        """
        check_bits(bits)
        self.check_dimensions(cover, hidden)

        lo, hi = low_mask(bits), high_mask(bits)
        channel_map = [min(hidden.channels - 1, i) for i in range(cover.channels)]

        out = bytearray(len(cover.samples))
        for p in range(cover.pixel_count):
            base = p * cover.channels
            h_base = p * hidden.channels
            for i, j in enumerate(channel_map):
                out[base + i] = (hidden.samples[h_base + j] & hi) \
                    | (cover.samples[base + i] & lo)
        return cover.with_samples(out)

    @staticmethod
    def reveal(merged: SampleBuffer, bits: int) -> SampleBuffer:
        """Extract the low `bits` bits of every sample, rescaled to 0..255."""
        return BitDepthCodec.dequantize_buffer(merged, bits)

    @staticmethod
    def capacity_bits(buf: SampleBuffer, bits: int) -> int:
        """Payload bits a carrier of this shape holds at `bits` per sample."""
        return len(buf.samples) * check_bits(bits)
