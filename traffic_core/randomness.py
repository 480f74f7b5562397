"""Injected randomness for endpoint, tenant, latency and failure sampling."""

import random
from typing import Protocol, Sequence, TypeVar

T = TypeVar("T")


class IRandomSource(Protocol):
    """Random capability handed to the generator and the handler."""

    def pick_one(self, items: Sequence[T]) -> T:
        """Pick one item uniformly."""
        ...

    def uniform_int(self, low: int, high: int) -> int:
        """Uniform integer in [low, high]."""
        ...

    def bernoulli(self, probability: float) -> bool:
        """True with the given probability."""
        ...

    def token(self, length: int = 4) -> str:
        """Short random hex token."""
        ...

    def spawn(self) -> "IRandomSource":
        """Independent child source for a single transaction."""
        ...


class RandomSource:
    """``random.Random``-backed source; each instance owns its own generator."""

    def __init__(self, seed: int | None = None):
        self._random = random.Random(seed)

    def pick_one(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("Cannot pick from an empty sequence")
        return self._random.choice(items)

    def uniform_int(self, low: int, high: int) -> int:
        if low > high:
            raise ValueError(f"Invalid range [{low}, {high}]")
        return self._random.randint(low, high)

    def bernoulli(self, probability: float) -> bool:
        if not 0.0 <= probability <= 1.0:
            raise ValueError(f"Probability out of range: {probability}")
        if probability == 0.0:
            return False
        if probability == 1.0:
            return True
        return self._random.random() < probability

    def token(self, length: int = 4) -> str:
        return "".join(self._random.choice("0123456789abcdef") for _ in range(length))

    def spawn(self) -> "RandomSource":
        return RandomSource(self._random.getrandbits(64))
