"""
pixelveil — Codec, Pipeline and CLI Tests
==========================================
Run with:  python -m pytest tests/ -v
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import random
import struct

import pytest
from PIL import Image

from pixelveil                        import codec
from pixelveil.buffer                 import SampleBuffer
from pixelveil.cli                    import main
from pixelveil.errors                 import PreconditionError, ResourceError
from pixelveil.pipeline               import (
    Conceal, Normalize, NormalizeMethod, Passthrough, Pipeline,
    PipelineConfig, Reveal,
)
from pixelveil.stages.stage1_bitdepth import BitDepthCodec


def noise(n, seed=0):
    rng = random.Random(seed)
    return bytes(rng.randrange(256) for _ in range(n))


def write_png(path, width, height, mode="RGB", seed=0, data=None):
    channels = len(mode)
    if data is None:
        data = noise(width * height * channels, seed)
    Image.frombytes(mode, (width, height), data).save(path, format="PNG")
    return path


def read_bytes(path):
    return Image.open(path).convert("RGB").tobytes()


@pytest.fixture
def secret(tmp_path):
    return write_png(tmp_path / "secret.png", 6, 5, seed=1)


@pytest.fixture
def carrier(tmp_path):
    return write_png(tmp_path / "carrier.png", 6, 5, seed=2)


# ── Codec ─────────────────────────────────────────────────────────────────────
def test_codec_roundtrip(tmp_path, secret):
    buf = codec.decode(secret)
    assert (buf.width, buf.height, buf.channels) == (6, 5, 3)
    codec.encode(buf, tmp_path / "copy.png")
    assert read_bytes(tmp_path / "copy.png") == buf.samples

def test_codec_composites_alpha_on_black(tmp_path):
    path = write_png(tmp_path / "a.png", 1, 1, "RGBA", data=bytes([200, 100, 50, 128]))
    buf = codec.decode(path)
    assert buf.channels == 3 and not buf.has_alpha
    assert buf.samples == bytes([100, 50, 25])

def test_codec_keeps_alpha(tmp_path):
    path = write_png(tmp_path / "a.png", 1, 1, "RGBA", data=bytes([200, 100, 50, 128]))
    buf = codec.decode(path, composite_alpha=False)
    assert buf.channels == 4 and buf.has_alpha
    assert buf.samples == bytes([200, 100, 50, 128])

def test_codec_greyscale_expanded(tmp_path):
    path = write_png(tmp_path / "g.png", 2, 1, "L", data=bytes([7, 9]))
    assert codec.decode(path).samples == bytes([7, 7, 7, 9, 9, 9])

def test_codec_16bit_grey_normalized(tmp_path):
    path = tmp_path / "g16.png"
    raw = struct.pack("<3H", 0, 32768, 65535)
    Image.frombytes("I;16", (3, 1), raw).save(path, format="PNG")
    buf = codec.decode(path)
    assert buf.samples == bytes([0, 0, 0, 128, 128, 128, 255, 255, 255])

def test_codec_missing_input(tmp_path):
    with pytest.raises(ResourceError):
        codec.decode(tmp_path / "nope.png")

def test_codec_not_an_image(tmp_path):
    path = tmp_path / "junk.png"
    path.write_bytes(b"definitely not a png")
    with pytest.raises(ResourceError):
        codec.decode(path)

def test_codec_unwritable_output(tmp_path):
    buf = SampleBuffer(1, 1, 3, bytes(3))
    with pytest.raises(ResourceError):
        codec.encode(buf, tmp_path / "missing_dir" / "out.png")

# ── Config ────────────────────────────────────────────────────────────────────
def test_config_rejects_bits():
    with pytest.raises(PreconditionError):
        PipelineConfig(bits=9)

def test_config_rejects_both_permutations():
    with pytest.raises(PreconditionError):
        PipelineConfig(scramble_key=1, unscramble_key=1)

def test_config_rejects_big_key():
    with pytest.raises(PreconditionError):
        PipelineConfig(key=1 << 64)

# ── Pipeline ──────────────────────────────────────────────────────────────────
def test_pipeline_dimension_mismatch(tmp_path):
    cover = write_png(tmp_path / "cover.png", 4, 4, seed=3)
    hidden = write_png(tmp_path / "hidden.png", 4, 5, seed=4)
    out = tmp_path / "out.png"
    pipe = Pipeline(PipelineConfig(mode=Conceal(hidden), bits=2))
    with pytest.raises(PreconditionError):
        pipe.run(cover, out)
    assert not out.exists()

def test_pipeline_passthrough_quantizes(tmp_path, secret):
    out = tmp_path / "out.png"
    Pipeline(PipelineConfig(bits=3)).run(secret, out)
    expected = BitDepthCodec.dequantize_buffer(
        BitDepthCodec.quantize_buffer(codec.decode(secret), 3), 3)
    assert read_bytes(out) == expected.samples

@pytest.mark.parametrize("bits", [2, 8])
def test_pipeline_conceal_then_reveal(tmp_path, secret, carrier, bits):
    stego = tmp_path / "stego.png"
    revealed = tmp_path / "revealed.png"
    Pipeline(PipelineConfig(mode=Conceal(carrier), bits=bits)).run(secret, stego)
    Pipeline(PipelineConfig(mode=Reveal(), bits=bits)).run(stego, revealed)

    original = codec.decode(secret)
    expected = BitDepthCodec.dequantize_buffer(
        BitDepthCodec.quantize_buffer(original, bits), bits)
    assert read_bytes(revealed) == expected.samples

def test_pipeline_conceal_keeps_carrier_high_bits(tmp_path, secret, carrier):
    stego = tmp_path / "stego.png"
    Pipeline(PipelineConfig(mode=Conceal(carrier), bits=2)).run(secret, stego)
    for s, c in zip(read_bytes(stego), read_bytes(carrier)):
        assert s & 0xFC == c & 0xFC

def test_pipeline_conceal_with_key_and_scramble(tmp_path, secret, carrier):
    stego = tmp_path / "stego.png"
    revealed = tmp_path / "revealed.png"
    Pipeline(PipelineConfig(mode=Conceal(carrier), bits=3, key=7,
                            scramble_key=11)).run(secret, stego)
    Pipeline(PipelineConfig(mode=Reveal(), bits=3, key=7,
                            unscramble_key=11)).run(stego, revealed)

    expected = BitDepthCodec.dequantize_buffer(
        BitDepthCodec.quantize_buffer(codec.decode(secret), 3), 3)
    assert read_bytes(revealed) == expected.samples

def test_pipeline_reveal_with_wrong_key_is_garbage(tmp_path, secret, carrier):
    stego = tmp_path / "stego.png"
    revealed = tmp_path / "revealed.png"
    Pipeline(PipelineConfig(mode=Conceal(carrier), bits=4, key=7)).run(secret, stego)
    Pipeline(PipelineConfig(mode=Reveal(), bits=4, key=8)).run(stego, revealed)
    expected = BitDepthCodec.dequantize_buffer(
        BitDepthCodec.quantize_buffer(codec.decode(secret), 4), 4)
    assert read_bytes(revealed) != expected.samples

@pytest.mark.parametrize("bits", [1, 5, 8])
def test_pipeline_cipher_and_scramble_roundtrip(tmp_path, secret, bits):
    noisy = tmp_path / "noisy.png"
    back = tmp_path / "back.png"
    Pipeline(PipelineConfig(bits=bits, key=1234, scramble_key=99)).run(secret, noisy)
    Pipeline(PipelineConfig(bits=bits, key=1234, unscramble_key=99)).run(noisy, back)

    expected = BitDepthCodec.dequantize_buffer(
        BitDepthCodec.quantize_buffer(codec.decode(secret), bits), bits)
    assert read_bytes(back) == expected.samples
    if bits == 8:
        assert read_bytes(back) == read_bytes(secret)

def test_pipeline_sample_permute_roundtrip(tmp_path, secret):
    noisy = tmp_path / "noisy.png"
    back = tmp_path / "back.png"
    Pipeline(PipelineConfig(scramble_key=5, permute_unit="sample")).run(secret, noisy)
    Pipeline(PipelineConfig(unscramble_key=5, permute_unit="sample")).run(noisy, back)
    assert read_bytes(back) == read_bytes(secret)

def test_pipeline_stretch(tmp_path, secret):
    out = tmp_path / "out.png"
    buf = Pipeline(PipelineConfig(mode=Normalize(NormalizeMethod.STRETCH))).run(secret, out)
    for c in range(3):
        channel = buf.samples[c::3]
        assert (min(channel), max(channel)) == (0, 255)

def test_pipeline_equalize(tmp_path):
    src = write_png(tmp_path / "grey.png", 3, 1, "L", data=bytes([10, 20, 30]))
    out = tmp_path / "out.png"
    Pipeline(PipelineConfig(mode=Normalize(NormalizeMethod.EQUALIZE))).run(src, out)
    assert read_bytes(out) == bytes([0] * 3 + [127] * 3 + [255] * 3)

def test_pipeline_keep_alpha(tmp_path):
    src = write_png(tmp_path / "a.png", 2, 2, "RGBA", seed=6)
    out = tmp_path / "out.png"
    Pipeline(PipelineConfig(keep_alpha=True)).run(src, out)
    img = Image.open(out)
    assert img.mode == "RGBA"
    assert img.tobytes() == Image.open(src).tobytes()

def test_pipeline_reveal_keeps_stego_alpha(tmp_path):
    secret = write_png(tmp_path / "secret.png", 4, 3, "RGBA", seed=12)
    carrier = write_png(tmp_path / "carrier.png", 4, 3, "RGBA", seed=13)
    stego = tmp_path / "stego.png"
    revealed = tmp_path / "revealed.png"
    Pipeline(PipelineConfig(mode=Conceal(carrier), bits=2,
                            keep_alpha=True)).run(secret, stego)
    Pipeline(PipelineConfig(mode=Reveal(), bits=2)).run(stego, revealed)

    expected = BitDepthCodec.dequantize_buffer(
        BitDepthCodec.quantize_buffer(codec.decode(secret, composite_alpha=False), 2), 2)
    img = Image.open(revealed)
    assert img.mode == "RGBA"
    assert img.tobytes() == expected.samples

def test_pipeline_process_requires_secondary():
    pipe = Pipeline(PipelineConfig(mode=Conceal("unused.png")))
    with pytest.raises(PreconditionError):
        pipe.process(SampleBuffer(1, 1, 3, bytes(3)))

def test_pipeline_default_mode():
    assert isinstance(PipelineConfig().mode, Passthrough)

# ── CLI ───────────────────────────────────────────────────────────────────────
def test_cli_conceal_reveal(tmp_path, secret, carrier):
    stego = tmp_path / "stego.png"
    revealed = tmp_path / "revealed.png"
    assert main([str(secret), "-c", str(carrier), "-b", "2", "-k", "42",
                 "-o", str(stego)]) == 0
    assert main([str(stego), "-r", "-b", "2", "-k", "42",
                 "-o", str(revealed)]) == 0
    expected = BitDepthCodec.dequantize_buffer(
        BitDepthCodec.quantize_buffer(codec.decode(secret), 2), 2)
    assert read_bytes(revealed) == expected.samples

def test_cli_dimension_mismatch_exit_code(tmp_path, capsys):
    cover = write_png(tmp_path / "cover.png", 4, 4)
    hidden = write_png(tmp_path / "hidden.png", 4, 5)
    out = tmp_path / "out.png"
    assert main([str(cover), "-c", str(hidden), "-b", "2", "-o", str(out)]) == 2
    assert "Image dimensions do not match" in capsys.readouterr().err
    assert not out.exists()

def test_cli_missing_input_exit_code(tmp_path):
    out = tmp_path / "out.png"
    assert main([str(tmp_path / "nope.png"), "-o", str(out)]) == 3
    assert not out.exists()

@pytest.mark.parametrize("argv", [
    ["in.png", "-b", "0"],
    ["in.png", "-b", "9"],
    ["in.png", "-k", "-1"],
    ["in.png", "-r", "-s"],
    ["in.png", "--scramble", "1", "--unscramble", "2"],
])
def test_cli_usage_errors(argv):
    with pytest.raises(SystemExit) as exc:
        main(argv)
    assert exc.value.code == 2

def test_cli_hex_key(tmp_path, secret):
    out = tmp_path / "out.png"
    assert main([str(secret), "-k", "0xDEADBEEF", "-o", str(out)]) == 0
    assert out.exists()
