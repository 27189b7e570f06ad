"""
Deterministic seeding for sigil and nebula generation.

Keys (a category name, or ``category:instance``) hash to a 32-bit seed which
initialises a linear congruential generator. The hash and the LCG constants
are fixed: every platform must reproduce the same stream for the same key, so
neither Python's salted ``hash()`` nor the ``random`` module is used here.
"""

from typing import Iterator, Optional

# LCG constants (Numerical Recipes)
LCG_MULTIPLIER = 1664525
LCG_INCREMENT = 1013904223
LCG_MODULUS = 2 ** 32

_INT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def _to_int32(value: int) -> int:
    """Wrap an arbitrary int to signed 32-bit two's complement."""
    value &= _INT32_MASK
    return value - LCG_MODULUS if value & _INT32_SIGN else value


def _code_units(key: str) -> Iterator[int]:
    """Yield UTF-16 code units so astral characters hash as surrogate pairs."""
    raw = key.encode("utf-16-le")
    for i in range(0, len(raw), 2):
        yield raw[i] | (raw[i + 1] << 8)


def hash_key(key: Optional[str]) -> int:
    """
    Polynomial rolling hash (``h * 31 + c``) wrapped to 32 bits.

    Args:
        key: Seed key. ``None`` hashes like the empty string.

    Returns:
        Non-negative integer in ``[0, 2**31]``.
    """
    h = 0
    for code in _code_units(key or ""):
        h = _to_int32((h << 5) - h + code)
    return abs(h)


def seed_key(category: str, instance_id: Optional[str] = None) -> str:
    """Build the seed key for a category, optionally scoped to one instance."""
    if instance_id:
        return f"{category}:{instance_id}"
    return category


class SeededRandom:
    """
    Reproducible float stream in ``[0, 1)``.

    Calling the instance advances the LCG by one step. The stream is never
    reseeded; create a new instance to restart it.
    """

    __slots__ = ("seed", "_state", "_calls")

    def __init__(self, seed: int):
        if seed < 0:
            raise ValueError(f"seed must be non-negative, got {seed}")
        self.seed = int(seed)
        self._state = self.seed
        self._calls = 0

    def __call__(self) -> float:
        self._state = (self._state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        self._calls += 1
        return self._state / LCG_MODULUS

    @property
    def calls(self) -> int:
        """Number of values drawn so far."""
        return self._calls


def make_random(seed: int) -> SeededRandom:
    """Create a fresh stream for ``seed``."""
    return SeededRandom(seed)
