"""
pixelveil — Reversible pixel transforms
========================================
Seven-stage toolkit for hiding, normalizing and obfuscating raster
image samples. Every stage works on a flat 8-bit SampleBuffer.

Stages:
    1  BIT DEPTH     — Quantize / dequantize to 1-8 significant bits
    2  COLOUR        — Exact RGB <-> HSV conversion
    3  NORMALIZE     — HSV histogram equalization (empirical CDF)
    4  NORMALIZE     — Per-channel contrast stretch
    5  STEGANOGRAPHY — Image-in-image low-bit concealment and reveal
    6  STREAM        — Keyed ChaCha20 keystream XOR (obfuscation)
    7  SCRAMBLE      — Keyed, exactly invertible Fisher–Yates shuffle
    PIPELINE         — Decode -> stages -> encode, driven by a Mode

License: Apache 2.0
"""

__version__  = "1.0.0"

from .buffer                    import SampleBuffer
from .errors                    import PixelVeilError, PreconditionError, ResourceError
from .stages.stage1_bitdepth    import BitDepthCodec
from .stages.stage2_hsv         import HSVColor
from .stages.stage3_equalize    import Equalizer
from .stages.stage4_stretch     import Stretcher
from .stages.stage5_conceal     import Concealer
from .stages.stage6_keystream   import KeyedRandomSequence, KeystreamCipher
from .stages.stage7_permute     import Permuter
from .pipeline                  import (
    Conceal, Normalize, NormalizeMethod, Passthrough, Pipeline,
    PipelineConfig, Reveal,
)

__all__ = [
    "SampleBuffer",
    "PixelVeilError",
    "PreconditionError",
    "ResourceError",
    "BitDepthCodec",
    "HSVColor",
    "Equalizer",
    "Stretcher",
    "Concealer",
    "KeyedRandomSequence",
    "KeystreamCipher",
    "Permuter",
    "Pipeline",
    "PipelineConfig",
    "Passthrough",
    "Reveal",
    "Conceal",
    "Normalize",
    "NormalizeMethod",
]
