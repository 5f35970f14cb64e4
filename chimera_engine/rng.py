"""Deterministic random utilities for loot and perk rolls."""

from __future__ import annotations

import hashlib
import random
from typing import Protocol, Sequence, TypeVar

T = TypeVar("T")


class RandomSource(Protocol):
    """Minimal interface the engine draws from."""

    def random(self) -> float:
        ...

    def randint(self, a: int, b: int) -> int:
        ...

    def choice(self, seq: Sequence[T]) -> T:
        ...

    def fork(self, label: str) -> "RandomSource":
        ...


class DeterministicRNG:
    """Wraps :mod:`random` with deterministic replay support."""

    def __init__(self, seed: int) -> None:
        self._seed = seed & 0xFFFFFFFF
        # nosec B311 - deterministic pseudo-RNG acceptable for game mechanics
        self._random = random.Random(self._seed)

    @property
    def seed(self) -> int:
        return self._seed

    def random(self) -> float:
        return self._random.random()

    def randint(self, a: int, b: int) -> int:
        return self._random.randint(a, b)

    def choice(self, seq: Sequence[T]) -> T:
        return self._random.choice(seq)

    def fork(self, label: str) -> "DeterministicRNG":
        """Derive an independent stream, e.g. one per hunt."""

        digest = hashlib.sha256(f"{self._seed}:{label}".encode("utf-8")).digest()
        return DeterministicRNG(int.from_bytes(digest[:4], "big"))


__all__ = ["DeterministicRNG", "RandomSource"]
