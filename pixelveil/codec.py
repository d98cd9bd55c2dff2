"""
Image codec adapter — Pillow in, PNG out.

decode() turns any Pillow-readable raster into an 8-bit SampleBuffer:
greyscale and palette images are expanded to RGB, and an alpha channel
is either composited onto black (c * a // 255) or kept as a 4th channel.
encode() writes an 8-bit RGB or RGBA PNG.

Dependencies: Pillow >= 10.0
"""

import io
import logging
from pathlib import Path
from typing import Union

from PIL import Image

from .buffer import SampleBuffer
from .errors import PreconditionError, ResourceError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

BACKGROUND = (0, 0, 0)


def _open(path: PathLike) -> Image.Image:
    try:
        img = Image.open(path)
        img.load()
    except FileNotFoundError as exc:
        raise ResourceError("Input file not found.",
                            details={"path": str(path)}) from exc
    except OSError as exc:
        raise ResourceError(f"Image data failed to read: {exc}",
                            details={"path": str(path)}) from exc
    return img


def _has_alpha(img: Image.Image) -> bool:
    return "A" in img.getbands() or "transparency" in img.info


WIDE_GREY_MODES = ("I", "I;16", "I;16B", "I;16L", "I;16N")


def _narrow_grey(img: Image.Image) -> Image.Image:
    """Scale 16-bit greyscale down to 8-bit L by keeping the high byte."""
    data = bytes(min(255, max(0, v) >> 8) for v in img.getdata())
    return Image.frombytes("L", img.size, data)


def composite(rgba: bytes, background=BACKGROUND) -> bytes:
    """Flatten interleaved RGBA samples onto a solid background colour."""
    out = bytearray(len(rgba) // 4 * 3)
    k = 0
    for i in range(0, len(rgba), 4):
        a = rgba[i + 3]
        for c in range(3):
            out[k] = rgba[i + c] * a // 255 + background[c] * (255 - a) // 255
            k += 1
    return bytes(out)


def decode(path: PathLike, composite_alpha: bool = True) -> SampleBuffer:
    """
    Read an image file as 8-bit RGB (or RGBA) samples.

    Args:
        path            : image file
        composite_alpha : flatten alpha onto black (3 channels) instead of
                          keeping it as a 4th channel

    Raises:
        ResourceError: file missing or not a readable image
    """
    img = _open(path)
    width, height = img.size
    alpha = _has_alpha(img)
    logger.debug(f"Decoded {path}: {width}x{height} mode={img.mode} alpha={alpha}")

    if img.mode in WIDE_GREY_MODES:
        img = _narrow_grey(img)

    if not alpha:
        return SampleBuffer(width, height, 3, img.convert("RGB").tobytes())

    rgba = img.convert("RGBA").tobytes()
    if composite_alpha:
        return SampleBuffer(width, height, 3, composite(rgba))
    return SampleBuffer(width, height, 4, rgba, has_alpha=True)


def encode(buf: SampleBuffer, path: PathLike) -> None:
    """
    Write buf as an 8-bit PNG.

    The image is encoded in memory first, so a failure never leaves a
    partial file behind.

    Raises:
        PreconditionError: buffer is not 3- or 4-channel
        ResourceError:     output path not writable
    """
    modes = {3: "RGB", 4: "RGBA"}
    if buf.channels not in modes:
        raise PreconditionError("Only RGB and RGBA buffers can be encoded.",
                                details={"channels": buf.channels})

    img = Image.frombytes(modes[buf.channels], (buf.width, buf.height),
                          buf.samples)
    data = io.BytesIO()
    img.save(data, format="PNG")

    try:
        Path(path).write_bytes(data.getvalue())
    except OSError as exc:
        raise ResourceError(f"Failed to create output file: {exc}",
                            details={"path": str(path)}) from exc
    logger.info(f"Wrote {buf.width}x{buf.height} {modes[buf.channels]} PNG to {path}")
