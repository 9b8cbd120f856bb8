"""Deterministic random numbers: FNV-1a string seeding and a Mersenne Twister.

The generator reproduces the 32-bit MT19937 engine bit for bit, and
``randint`` reproduces the way a uniform integer distribution draws from it,
so that every node derives identical dungeons from identical seeds.
"""

from __future__ import annotations

_MASK32 = 0xFFFFFFFF
_FNV_OFFSET = 0x811C9DC5
_FNV_PRIME = 0x01000193

_N = 624
_M = 397
_MATRIX_A = 0x9908B0DF
_UPPER_MASK = 0x80000000
_LOWER_MASK = 0x7FFFFFFF
_DEFAULT_SEED = 5489


def hash_seed(text: str) -> int:
    """Return the 32-bit FNV-1a hash of the UTF-8 encoding of ``text``."""
    value = _FNV_OFFSET
    for byte in text.encode("utf-8"):
        value ^= byte
        value = (value * _FNV_PRIME) & _MASK32
    return value


class Mt19937:
    """The 32-bit Mersenne Twister engine."""

    def __init__(self, seed: int = _DEFAULT_SEED) -> None:
        state = [seed & _MASK32]
        for i in range(1, _N):
            prev = state[-1]
            state.append((1812433253 * (prev ^ (prev >> 30)) + i) & _MASK32)
        self._state = state
        self._index = _N

    def _twist(self) -> None:
        mt = self._state
        for i in range(_N):
            y = (mt[i] & _UPPER_MASK) | (mt[(i + 1) % _N] & _LOWER_MASK)
            value = mt[(i + _M) % _N] ^ (y >> 1)
            if y & 1:
                value ^= _MATRIX_A
            mt[i] = value
        self._index = 0

    def next_u32(self) -> int:
        """Return the next raw 32-bit output."""
        if self._index >= _N:
            self._twist()
        y = self._state[self._index]
        self._index += 1
        y ^= y >> 11
        y ^= (y << 7) & 0x9D2C5680
        y ^= (y << 15) & 0xEFC60000
        y ^= y >> 18
        return y & _MASK32

    def _bounded(self, bound: int) -> int:
        """Return a value in [0, bound) for 0 < bound <= 2**32 - 1."""
        product = self.next_u32() * bound
        low = product & _MASK32
        if low < bound:
            threshold = ((1 << 32) - bound) % bound
            while low < threshold:
                product = self.next_u32() * bound
                low = product & _MASK32
        return product >> 32

    def randint(self, low: int, high: int) -> int:
        """Return a uniformly distributed integer in [low, high] inclusive."""
        if low > high:
            raise ValueError(f"empty range [{low}, {high}]")
        span = high - low
        if span < _MASK32:
            return low + self._bounded(span + 1)
        if span == _MASK32:
            return low + self.next_u32()
        while True:
            upper = (1 << 32) * self.randint(0, span >> 32)
            result = upper + self.next_u32()
            if result <= span:
                return low + result

    def serialize(self) -> str:
        """Return the engine state as text: 624 state words and the index."""
        return " ".join(str(word) for word in [*self._state, self._index])

    def restore(self, data: str) -> None:
        """Restore the engine state from text produced by ``serialize``."""
        tokens = data.split()
        if len(tokens) != _N + 1:
            raise ValueError(
                f"expected {_N + 1} numbers in RNG state, got {len(tokens)}"
            )
        try:
            numbers = [int(token) for token in tokens]
        except ValueError as exc:
            raise ValueError(f"malformed RNG state: {exc}") from None
        *state, index = numbers
        if any(word < 0 or word > _MASK32 for word in state):
            raise ValueError("RNG state word out of 32-bit range")
        if not 0 <= index <= _N:
            raise ValueError(f"RNG state index out of range: {index}")
        self._state = state
        self._index = index