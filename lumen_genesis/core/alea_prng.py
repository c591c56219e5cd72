"""
Alea PRNG used for every randomized step of soil and creature generation.

Based on Johannes Baagøe's Alea algorithm. The generator is small, fast and
fully reproducible from a string or numeric seed, which lets tests pin down
subsampling, spawn selection and per-creature decoration.
"""


def _uint32(n):
    """Convert to unsigned 32-bit integer."""
    return int(n) & 0xFFFFFFFF


def _mash_factory():
    """Build the Mash hash used to scramble seeds into generator state."""
    n = 0xEFC8249D

    def mash(data):
        nonlocal n
        for char in str(data):
            n = n + ord(char)
            h = 0.02519603282416938 * n
            n = _uint32(h)
            h -= n
            h *= n
            n = _uint32(h)
            h -= n
            n += h * 0x100000000  # 2^32
        return _uint32(n) * 2.3283064365386963e-10  # 2^-32

    return mash


class AleaPRNG:
    """
    Seeded uniform generator over [0, 1).

    Besides ``random()`` it offers the handful of helpers the generation
    pipeline needs: ``uniform``, ``randrange`` and ``choice``.
    """

    def __init__(self, seed):
        """Initialize with seed string, number or iterable of those."""
        self.seed = seed
        self.call_count = 0

        if hasattr(seed, "__iter__") and not isinstance(seed, str):
            args = list(seed)
        else:
            args = [seed]

        mash = _mash_factory()
        self.s0 = mash(" ")
        self.s1 = mash(" ")
        self.s2 = mash(" ")
        self.c = 1

        for arg in args:
            self.s0 -= mash(arg)
            if self.s0 < 0:
                self.s0 += 1
            self.s1 -= mash(arg)
            if self.s1 < 0:
                self.s1 += 1
            self.s2 -= mash(arg)
            if self.s2 < 0:
                self.s2 += 1

    def random(self) -> float:
        """Generate next random number in [0, 1)."""
        self.call_count += 1
        t = 2091639 * self.s0 + self.c * 2.3283064365386963e-10  # 2^-32
        self.s0 = self.s1
        self.s1 = self.s2
        self.c = int(t)
        self.s2 = t - self.c
        return self.s2

    def uniform(self, low: float, high: float) -> float:
        """Random float in [low, high)."""
        return low + (high - low) * self.random()

    def randrange(self, stop: int) -> int:
        """Random integer in [0, stop)."""
        return int(self.random() * stop)

    def choice(self, seq):
        """Choose a random element from a non-empty sequence."""
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[self.randrange(len(seq))]
