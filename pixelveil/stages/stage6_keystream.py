"""
Stage 6 — STREAM: Keyed Keystream XOR
======================================
Obfuscate samples by XOR with a deterministic keyed byte stream.

The stream comes from ChaCha20 run as a counter-mode generator over a
zero block. The 64-bit numeric key is stretched to a 256-bit ChaCha20
key with SHA-256; the nonce is fixed, so the same key always replays
the same stream from position 0.

Values are drawn in [0, 2^N - 1] so the XOR only touches the N
significant bits of each sample. XOR with the same stream twice is the
identity: encrypt and decrypt are the same operation.

NOT secure encryption: there is no nonce, no authentication, and the
key space is 64 bits. Use an authenticated cipher for confidentiality.

Dependencies: cryptography >= 41.0
"""

import hashlib

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms

from ..buffer import SampleBuffer, check_bits, low_mask
from ..errors import PreconditionError

MAX_KEY = (1 << 64) - 1


def check_key(key: int) -> int:
    """Return key unchanged, or raise PreconditionError if not a u64."""
    if isinstance(key, bool) or not isinstance(key, int) \
            or not 0 <= key <= MAX_KEY:
        raise PreconditionError(
            "Key must be an unsigned 64-bit integer.",
            details={"key": key},
        )
    return key


class KeyedRandomSequence:
    """
    Restartable pseudorandom sequence seeded by a 64-bit key.

    Two instances built from the same key yield identical draws;
    reset() rewinds an instance to its first draw.
    """

    NONCE     = bytes(16)   # 32-bit block counter + 96-bit nonce, all zero
    POOL_SIZE = 4096

    def __init__(self, key: int):
        check_key(key)
        self._chacha_key = hashlib.sha256(key.to_bytes(8, "little")).digest()
        self.reset()

    def reset(self) -> None:
        cipher = Cipher(algorithms.ChaCha20(self._chacha_key, self.NONCE),
                        mode=None)
        self._encryptor = cipher.encryptor()
        self._pool = b""
        self._pos = 0

    def take(self, n: int) -> bytes:
        """Next n raw bytes of the stream."""
        out = bytearray()
        while n > 0:
            if self._pos >= len(self._pool):
                self._pool = self._encryptor.update(bytes(max(n, self.POOL_SIZE)))
                self._pos = 0
            chunk = self._pool[self._pos:self._pos + n]
            self._pos += len(chunk)
            n -= len(chunk)
            out += chunk
        return bytes(out)

    def randint(self, bound: int) -> int:
        """
        Uniform integer in [0, bound], inclusive.

        Draws the fewest whole bytes that cover bound and rejects the
        biased tail, so the result is exactly uniform.
        """
        if bound < 0:
            raise ValueError("bound must be non-negative")
        if bound == 0:
            return 0
        span = bound + 1
        width = (bound.bit_length() + 7) // 8
        limit = ((1 << (8 * width)) // span) * span
        while True:
            x = int.from_bytes(self.take(width), "little")
            if x < limit:
                return x % span


class KeystreamCipher:
    """XOR a buffer with a keyed stream bounded to N bits per sample."""

    def __init__(self, key: int):
        self._key = check_key(key)

    @property
    def key(self) -> int:
        return self._key

    def generate(self, length: int, bound: int = 0xFF) -> bytes:
        """
        `length` stream values, each uniform in [0, bound], drawn in order
        from a freshly seeded sequence.
        """
        if not 0 <= bound <= 0xFF:
            raise PreconditionError("Keystream bound must fit in a byte.",
                                    details={"bound": bound})
        rng = KeyedRandomSequence(self._key)
        span = bound + 1
        if span & (span - 1) == 0:
            # power-of-two span: one byte per draw, never rejected
            mask = bytes(v & bound for v in range(256))
            return rng.take(length).translate(mask)
        return bytes(rng.randint(bound) for _ in range(length))

    @staticmethod
    def xor(data: bytes, stream: bytes) -> bytes:
        if len(data) != len(stream):
            raise ValueError("data and stream lengths differ")
        n = len(data)
        return (int.from_bytes(data, "big")
                ^ int.from_bytes(stream, "big")).to_bytes(n, "big")

    def encrypt(self, buf: SampleBuffer, bits: int = 8) -> SampleBuffer:
        """XOR every sample with the keystream drawn in [0, 2^bits - 1]."""
        check_bits(bits)
        stream = self.generate(len(buf.samples), low_mask(bits))
        return buf.with_samples(self.xor(buf.samples, stream))

    def decrypt(self, buf: SampleBuffer, bits: int = 8) -> SampleBuffer:
        """Same as encrypt(); the XOR is its own inverse."""
        return self.encrypt(buf, bits)
