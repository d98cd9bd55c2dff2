"""
pixelveil — Live Demo: All Seven Stages + Pipeline
===================================================
Run:  python examples/demo_all_stages.py

Builds a small synthetic image in memory, pushes it through every
stage, and prints what each one did.
"""

import sys, os, time, tempfile
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pixelveil.buffer                  import SampleBuffer
from pixelveil.stages.stage1_bitdepth  import BitDepthCodec
from pixelveil.stages.stage2_hsv       import HSVColor
from pixelveil.stages.stage3_equalize  import Equalizer
from pixelveil.stages.stage4_stretch   import Stretcher
from pixelveil.stages.stage5_conceal   import Concealer
from pixelveil.stages.stage6_keystream import KeystreamCipher
from pixelveil.stages.stage7_permute   import Permuter
from pixelveil.pipeline                import Conceal, Pipeline, PipelineConfig, Reveal
from pixelveil                         import codec

LINE = "═" * 70
W, H = 32, 24

def header(stage, name):
    print(f"\n{LINE}")
    print(f"  Stage {stage} — {name}")
    print(LINE)

def ok(label, value=""):
    print(f"  ✓  {label}{f': {value}' if value else ''}")

def gradient(w, h):
    data = bytearray()
    for y in range(h):
        for x in range(w):
            data += bytes([60 + x * 4, 80 + y * 3, 100 + (x + y) % 40])
    return SampleBuffer(w, h, 3, bytes(data))

def checker(w, h):
    data = bytearray()
    for y in range(h):
        for x in range(w):
            v = 255 if (x // 4 + y // 4) % 2 else 0
            data += bytes([v, v, v])
    return SampleBuffer(w, h, 3, bytes(data))

# ─────────────────────────────────────────────────────────────────────────────
print(f"\n{LINE}")
print("  pixelveil — Seven-Stage Demo")
print(LINE)
img = gradient(W, H)
print(f"  Image: {W}x{H} RGB gradient, {len(img.samples)} samples\n")

# ── STAGE 1 ──────────────────────────────────────────────────────────────────
header(1, "BIT DEPTH")
q = BitDepthCodec.quantize_buffer(img, 3)
ok("Quantized to 3 bits", f"max sample {max(q.samples)}")
ok("Dequantized", f"first pixel {tuple(BitDepthCodec.dequantize_buffer(q, 3).samples[:3])}")

# ── STAGE 2 ──────────────────────────────────────────────────────────────────
header(2, "COLOUR — RGB <-> HSV")
hsv = HSVColor.from_rgb(*img.samples[:3])
ok("HSV", f"hue={hsv.hue:.1f} sat={hsv.sat:.3f} val={hsv.val:.3f}")
ok("Back to RGB", str(hsv.to_rgb()))

# ── STAGE 3 ──────────────────────────────────────────────────────────────────
header(3, "NORMALIZE — Histogram Equalization")
t0 = time.perf_counter()
eq = Equalizer().equalize(img)
ok("Value range", f"{min(eq.samples)}..{max(eq.samples)}")
ok("Elapsed", f"{(time.perf_counter() - t0) * 1000:.2f} ms")

# ── STAGE 4 ──────────────────────────────────────────────────────────────────
header(4, "NORMALIZE — Contrast Stretch")
st = Stretcher().stretch(img)
ok("Channel ranges before", str(Stretcher.channel_ranges(img)))
ok("Channel ranges after",  str(Stretcher.channel_ranges(st)))

# ── STAGE 5 ──────────────────────────────────────────────────────────────────
header(5, "STEGANOGRAPHY — Image in Image")
payload = BitDepthCodec.quantize_buffer(img, 2)
merged  = Concealer().embed(payload, checker(W, H), 2)
back    = Concealer.reveal(merged, 2)
ok("Capacity", f"{Concealer.capacity_bits(merged, 2)} bits")
ok("Payload recovered",
   str(back.samples == BitDepthCodec.dequantize_buffer(payload, 2).samples))

# ── STAGE 6 ──────────────────────────────────────────────────────────────────
header(6, "STREAM — Keystream XOR")
c  = KeystreamCipher(0xC0FFEE)
ct = c.encrypt(img)
ok("Changed samples", f"{sum(a != b for a, b in zip(ct.samples, img.samples))}")
ok("Round-trip", str(c.decrypt(ct).samples == img.samples))

# ── STAGE 7 ──────────────────────────────────────────────────────────────────
header(7, "SCRAMBLE — Keyed Permutation")
p  = Permuter(2024)
sc = p.apply(img)
ok("First 5 positions", str(p.forward(img.pixel_count)[:5]))
ok("Round-trip", str(p.inverse(sc).samples == img.samples))

# ── PIPELINE ─────────────────────────────────────────────────────────────────
header("P", "PIPELINE — Conceal then Reveal on disk")
with tempfile.TemporaryDirectory() as tmp:
    secret, cover = os.path.join(tmp, "secret.png"), os.path.join(tmp, "cover.png")
    stego, out = os.path.join(tmp, "stego.png"), os.path.join(tmp, "out.png")
    codec.encode(img, secret)
    codec.encode(checker(W, H), cover)
    Pipeline(PipelineConfig(mode=Conceal(cover), bits=3, key=7,
                            scramble_key=9)).run(secret, stego)
    revealed = Pipeline(PipelineConfig(mode=Reveal(), bits=3, key=7,
                                       unscramble_key=9)).run(stego, out)
    ok("Stego image written", f"{os.path.getsize(stego)} bytes")
    ok("Revealed matches 3-bit secret",
       str(revealed.samples == BitDepthCodec.dequantize_buffer(
           BitDepthCodec.quantize_buffer(img, 3), 3).samples))

print(f"\n{LINE}\n")
