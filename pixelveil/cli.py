"""
pixelveil command line interface.

Usage:
    pixelveil INPUT [-o OUTPUT] [-b BITS] [-k KEY]
              [-r | -c IMAGE | -s | -e]
              [--scramble KEY | --unscramble KEY]
              [--alpha] [--sample-permute] [-v]
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .errors import PixelVeilError
from .pipeline import (
    Conceal, Normalize, NormalizeMethod, Passthrough, Pipeline,
    PipelineConfig, Reveal,
)
from .stages.stage6_keystream import MAX_KEY

logger = logging.getLogger(__name__)


def _bits(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid bit width: {text!r}")
    if not 1 <= value <= 8:
        raise argparse.ArgumentTypeError("bit width must be between 1 and 8")
    return value


def _key(text: str) -> int:
    try:
        value = int(text, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid key: {text!r}")
    if not 0 <= value <= MAX_KEY:
        raise argparse.ArgumentTypeError("key must be an unsigned 64-bit integer")
    return value


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pixelveil",
        description="Hide, reveal, normalize and obfuscate image pixels.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    pixelveil secret.png -c carrier.png -b 2 -o stego.png
    pixelveil stego.png -r -b 2 -o secret_out.png
    pixelveil photo.png -e -o equalized.png
    pixelveil photo.png -k 1234 --scramble 99 -o noise.png
    pixelveil noise.png -k 1234 --unscramble 99 -o photo_out.png
        """,
    )
    parser.add_argument("input", type=Path, help="Input image")
    parser.add_argument("-o", "--output", type=Path, default=Path("out.png"),
                        help="Output PNG (default: out.png)")
    parser.add_argument("-b", "--bits", type=_bits, metavar="1-8",
                        default=PipelineConfig.DEFAULT_BITS,
                        help="Significant bits per sample (default: 8)")
    parser.add_argument("-k", "--key", type=_key,
                        help="Keystream XOR key (encrypt and decrypt)")

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("-r", "--reveal", action="store_true",
                      help="Extract a concealed image from the low bits")
    mode.add_argument("-c", "--conceal", type=Path, metavar="IMAGE",
                      help="Hide the input under IMAGE")
    mode.add_argument("-s", "--stretch", action="store_true",
                      help="Per-channel contrast stretch")
    mode.add_argument("-e", "--equalize", action="store_true",
                      help="HSV histogram equalization")

    perm = parser.add_mutually_exclusive_group()
    perm.add_argument("--scramble", type=_key, metavar="KEY",
                      help="Shuffle pixel positions with KEY")
    perm.add_argument("--unscramble", type=_key, metavar="KEY",
                      help="Undo --scramble KEY")

    parser.add_argument("--alpha", action="store_true",
                        help="Keep the input's alpha channel (reveal always keeps it)")
    parser.add_argument("--sample-permute", action="store_true",
                        help="Scramble single samples instead of whole pixels")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Debug logging")
    parser.add_argument("--version", action="version",
                        version=f"pixelveil {__version__}")
    return parser


def config_from_args(args: argparse.Namespace) -> PipelineConfig:
    if args.reveal:
        mode = Reveal()
    elif args.conceal is not None:
        mode = Conceal(args.conceal)
    elif args.stretch:
        mode = Normalize(NormalizeMethod.STRETCH)
    elif args.equalize:
        mode = Normalize(NormalizeMethod.EQUALIZE)
    else:
        mode = Passthrough()

    return PipelineConfig(
        mode=mode,
        bits=args.bits,
        key=args.key,
        scramble_key=args.scramble,
        unscramble_key=args.unscramble,
        keep_alpha=args.alpha,
        permute_unit="sample" if args.sample_permute else "pixel",
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = create_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        Pipeline(config_from_args(args)).run(args.input, args.output)
    except PixelVeilError as e:
        logger.debug("Run aborted", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return e.code
    return 0


if __name__ == "__main__":
    sys.exit(main())
