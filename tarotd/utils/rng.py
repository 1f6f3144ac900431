"""Random sources for card drawing.

The spread generator only ever asks for ``next_int(n)``; anything that
answers that can stand in, which is how tests pin a draw down exactly.
"""

import hashlib
import random
from typing import Optional, Protocol


class RandomSource(Protocol):
    def next_int(self, n: int) -> int:
        """Return an integer in ``[0, n)``."""
        ...


class PyRandomSource:
    """RandomSource backed by a private ``random.Random`` instance.

    One instance belongs to one request; it is not meant to be shared
    between threads.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng if rng is not None else random.Random()

    def next_int(self, n: int) -> int:
        return self._rng.randrange(n)


def seeded_random(seed: str, salt: str = "") -> random.Random:
    """Create a deterministic random.Random instance from seed and optional salt.

    Args:
        seed: Base seed string
        salt: Optional salt to modify the seed

    Returns:
        random.Random instance that will produce deterministic sequences
    """
    combined = f"{seed}{salt}"
    hash_obj = hashlib.sha256(combined.encode("utf-8"))
    int_seed = int(hash_obj.hexdigest(), 16)

    # Mask to fit within Python's random seed range
    int_seed = int_seed & ((1 << 31) - 1)

    return random.Random(int_seed)


def new_random_source(seed: Optional[str] = None) -> PyRandomSource:
    """Fresh per-request source; reproducible when a seed is given."""
    if seed:
        return PyRandomSource(seeded_random(seed))
    return PyRandomSource()
