"""
Stage 7 — SCRAMBLE: Keyed Fisher–Yates Permutation
===================================================
Move pixels (or single samples) to key-determined positions.

Scramble runs a Fisher–Yates shuffle over the buffer itself:

    for i = n-1 down to 1:
        j = rng.randint(0..=i)
        swap(buf[i], buf[j])

Unscramble regenerates exactly the same draws from the key and replays
the swaps for i = 1 up to n-1. Each swap is its own inverse, so
replaying the trace backwards undoes it. Any change in draw order,
bound inclusivity or swap direction yields a different permutation
rather than an error, so both directions share _draws().

Uses the same keyed sequence as Stage 6.
"""

from typing import List

from ..buffer import SampleBuffer
from ..errors import PreconditionError
from .stage6_keystream import KeyedRandomSequence, check_key


class Permuter:
    """Keyed, exactly invertible shuffle of buffer positions."""

    UNITS = ("pixel", "sample")

    def __init__(self, key: int, unit: str = "pixel"):
        if unit not in self.UNITS:
            raise PreconditionError(f"Unknown permutation unit {unit!r}.",
                                    details={"units": ", ".join(self.UNITS)})
        self._key = check_key(key)
        self.unit = unit

    def _draws(self, n: int) -> List[int]:
        """Swap partners j for i = n-1, n-2, ..., 1, in draw order."""
        rng = KeyedRandomSequence(self._key)
        return [rng.randint(i) for i in range(n - 1, 0, -1)]

    def forward(self, n: int) -> List[int]:
        """
        The permutation as a lookup table: scrambled[k] == original[perm[k]].
        """
        perm = list(range(n))
        self._shuffle(perm)
        return perm

    def _shuffle(self, items: list) -> None:
        n = len(items)
        for i, j in zip(range(n - 1, 0, -1), self._draws(n)):
            items[i], items[j] = items[j], items[i]

    def _unshuffle(self, items: list) -> None:
        n = len(items)
        draws = self._draws(n)
        for i, j in zip(range(1, n), reversed(draws)):
            items[i], items[j] = items[j], items[i]

    def _units(self, buf: SampleBuffer) -> list:
        if self.unit == "sample":
            return list(buf.samples)
        return list(buf.pixels())

    def _join(self, buf: SampleBuffer, items: list) -> SampleBuffer:
        if self.unit == "sample":
            return buf.with_samples(bytes(items))
        return buf.with_samples(b"".join(items))

    def apply(self, buf: SampleBuffer) -> SampleBuffer:
        """Scramble buf by replaying the keyed swap trace."""
        items = self._units(buf)
        self._shuffle(items)
        return self._join(buf, items)

    def inverse(self, buf: SampleBuffer) -> SampleBuffer:
        """Unscramble a buffer produced by apply() with the same key and unit."""
        items = self._units(buf)
        self._unshuffle(items)
        return self._join(buf, items)
