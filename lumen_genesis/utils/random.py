"""
Random number generation utilities.

Every randomized step in lumen_genesis draws from an explicit AleaPRNG
instance handed down by the caller. There is no process-wide generator:
sessions own one, and tests seed their own to make spawn selection
reproducible.
"""

import uuid
from typing import List, MutableSequence, Optional, TypeVar

from ..core.alea_prng import AleaPRNG

T = TypeVar("T")


def make_prng(seed: Optional[str] = None) -> AleaPRNG:
    """
    Create a PRNG, seeded or not.

    Args:
        seed: Seed string. When omitted a random one is drawn so unseeded
            sessions still differ from run to run.

    Returns:
        AleaPRNG instance
    """
    if seed is None:
        seed = uuid.uuid4().hex[:8]
    return AleaPRNG(seed)


def shuffle(items: MutableSequence[T], prng: AleaPRNG) -> MutableSequence[T]:
    """
    Shuffle ``items`` in place with Fisher-Yates and return it.

    Walks from the last index down, swapping each slot with a uniformly
    chosen slot at or below it, so every permutation is equally likely.
    """
    for i in range(len(items) - 1, 0, -1):
        j = int(prng.random() * (i + 1))
        items[i], items[j] = items[j], items[i]
    return items


def permutation(n: int, prng: AleaPRNG) -> List[int]:
    """Uniform random permutation of ``range(n)``."""
    return list(shuffle(list(range(n)), prng))
