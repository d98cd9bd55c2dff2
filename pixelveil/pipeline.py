"""
Pipeline — composes the seven stages into one run.

    decode
      -> stretch | equalize          (Normalize modes, 8-bit working precision)
      -> quantize to N bits          (every mode except Reveal)
      -> embed into secondary image  (Conceal)
      -> unscramble                  (if an unscramble key is given)
      -> keystream XOR               (if a key is given)
      -> scramble                    (if a scramble key is given)
      -> reveal | dequantize | as-is (Reveal | others | Conceal)
    encode

Unscramble sits before the keystream and scramble after it, so running
the pipeline a second time with the same key and the unscramble key
undoes the first run.

All preconditions (bit width, keys, cover/secondary dimensions) are
checked before any output is written.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from . import codec
from .buffer import SampleBuffer, check_bits
from .errors import PreconditionError
from .stages.stage1_bitdepth import BitDepthCodec
from .stages.stage3_equalize import Equalizer
from .stages.stage4_stretch import Stretcher
from .stages.stage5_conceal import Concealer
from .stages.stage6_keystream import KeystreamCipher, check_key
from .stages.stage7_permute import Permuter

logger = logging.getLogger(__name__)


class NormalizeMethod(Enum):
    """Brightness normalization applied before quantization."""

    STRETCH = "stretch"
    EQUALIZE = "equalize"


@dataclass(frozen=True)
class Passthrough:
    """Quantize, optionally cipher/scramble, dequantize."""


@dataclass(frozen=True)
class Reveal:
    """Extract the low-bit payload of a concealed image."""


@dataclass(frozen=True)
class Conceal:
    """Hide the input's high bits under the visible `image`."""

    image: Path


@dataclass(frozen=True)
class Normalize:
    method: NormalizeMethod


Mode = Union[Passthrough, Reveal, Conceal, Normalize]


@dataclass
class PipelineConfig:
    """
    Settings for one pipeline run.

    Attributes:
        mode           : what the run does (see Mode)
        bits           : significant bits per sample, 1-8
        key            : keystream XOR key, or None to skip the cipher
        scramble_key   : key to scramble positions with, or None
        unscramble_key : key to unscramble positions with, or None
        keep_alpha     : keep the input's alpha channel instead of
                         compositing it onto black
        permute_unit   : "pixel" or "sample"
    """

    DEFAULT_BITS = 8

    mode: Mode = field(default_factory=Passthrough)
    bits: int = DEFAULT_BITS
    key: Optional[int] = None
    scramble_key: Optional[int] = None
    unscramble_key: Optional[int] = None
    keep_alpha: bool = False
    permute_unit: str = "pixel"

    def __post_init__(self):
        check_bits(self.bits)
        for k in (self.key, self.scramble_key, self.unscramble_key):
            if k is not None:
                check_key(k)
        if self.scramble_key is not None and self.unscramble_key is not None:
            raise PreconditionError("Scramble and unscramble are mutually exclusive.")
        if self.permute_unit not in Permuter.UNITS:
            raise PreconditionError(f"Unknown permutation unit {self.permute_unit!r}.")


class Pipeline:
    """Runs one configured transformation from file to file."""

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or PipelineConfig()

    def run(self, input_path: codec.PathLike,
            output_path: codec.PathLike) -> SampleBuffer:
        """
        Decode input_path, transform it, encode the result to output_path.

        Raises:
            PreconditionError: secondary image size differs from the input
            ResourceError:     unreadable input or unwritable output
        """
        cfg = self.config
        logger.info(f"Running {type(cfg.mode).__name__} at {cfg.bits} bits on {input_path}")

        # a stego image keeps its alpha so the payload bits in it survive
        keep_alpha = cfg.keep_alpha or isinstance(cfg.mode, Reveal)
        primary = codec.decode(input_path, composite_alpha=not keep_alpha)
        secondary = None
        if isinstance(cfg.mode, Conceal):
            secondary = codec.decode(cfg.mode.image, composite_alpha=False)
            Concealer.check_dimensions(primary, secondary)

        out = self.process(primary, secondary)
        codec.encode(out, output_path)
        return out

    def process(self, buf: SampleBuffer,
                secondary: Optional[SampleBuffer] = None) -> SampleBuffer:
        """In-memory part of run(): every stage between decode and encode."""
        cfg = self.config
        mode = cfg.mode
        bits = cfg.bits

        if isinstance(mode, Conceal):
            if secondary is None:
                raise PreconditionError("Conceal mode needs a secondary image.")
            Concealer.check_dimensions(buf, secondary)

        if isinstance(mode, Normalize):
            if mode.method is NormalizeMethod.STRETCH:
                buf = Stretcher().stretch(buf)
            else:
                buf = Equalizer().equalize(buf)
            logger.debug(f"Normalized with {mode.method.value}")

        if not isinstance(mode, Reveal):
            buf = BitDepthCodec.quantize_buffer(buf, bits)

        if isinstance(mode, Conceal):
            buf = Concealer().embed(buf, secondary, bits)
            logger.debug(f"Embedded {Concealer.capacity_bits(buf, bits)} payload bits")

        if cfg.unscramble_key is not None:
            buf = Permuter(cfg.unscramble_key, cfg.permute_unit).inverse(buf)
            logger.debug("Unscrambled")

        if cfg.key is not None:
            buf = KeystreamCipher(cfg.key).encrypt(buf, bits)
            logger.debug("Applied keystream")

        if cfg.scramble_key is not None:
            buf = Permuter(cfg.scramble_key, cfg.permute_unit).apply(buf)
            logger.debug("Scrambled")

        if isinstance(mode, Reveal):
            return Concealer.reveal(buf, bits)
        if isinstance(mode, Conceal):
            return buf
        return BitDepthCodec.dequantize_buffer(buf, bits)
