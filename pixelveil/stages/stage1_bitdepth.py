"""
Stage 1 — BIT DEPTH: Quantize / Dequantize
===========================================
Reduce 8-bit samples to N significant bits and expand them back.

quantize   : sample >> (8 - N)                 (drops the low 8-N bits)
dequantize : (sample & mask) * 255 // mask     (mask = 2^N - 1)

Quantization is lossy. dequantize(quantize(x)) is only x when N == 8;
otherwise it is the N-bit value spread linearly over 0..255.

Buffer forms run through a 256-entry translation table, so a whole
image costs one bytes.translate() call.
"""

from ..buffer import SampleBuffer, check_bits, low_mask


class BitDepthCodec:
    """Per-sample and per-buffer bit-depth conversion."""

    MAX_OUT = 0xFF

    @staticmethod
    def quantize(sample: int, bits: int) -> int:
        return (sample & 0xFF) >> (8 - bits)

    @classmethod
    def dequantize(cls, sample: int, bits: int) -> int:
        mask = low_mask(bits)
        return (sample & mask) * cls.MAX_OUT // mask

    @classmethod
    def quantize_table(cls, bits: int) -> bytes:
        return bytes(cls.quantize(v, bits) for v in range(256))

    @classmethod
    def dequantize_table(cls, bits: int) -> bytes:
        return bytes(cls.dequantize(v, bits) for v in range(256))

    @classmethod
    def quantize_buffer(cls, buf: SampleBuffer, bits: int) -> SampleBuffer:
        """Quantize every sample of buf to `bits` significant bits."""
        check_bits(bits)
        return buf.with_samples(buf.samples.translate(cls.quantize_table(bits)))

    @classmethod
    def dequantize_buffer(cls, buf: SampleBuffer, bits: int) -> SampleBuffer:
        """Expand every `bits`-wide sample of buf back to 0..255."""
        check_bits(bits)
        return buf.with_samples(buf.samples.translate(cls.dequantize_table(bits)))
