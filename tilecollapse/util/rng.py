"""Seeded random streams, one per consumer.

Every consumer of randomness (such as candidate draws in the solver) asks
for a named stream. Each stream is an independent
``random.Random`` derived from a master seed, so:

1. A run is reproducible from the master seed alone
2. Drawing more numbers in one stream never shifts another stream

Usage:
    from tilecollapse.util import rng
    rng.init(config.RANDOM_SEED)

    _rng = rng.get("solver.candidates")
    state = _rng.choice(candidates)

Streams survive ``rng.reset()``: a cached stream reference switches to the
freshly seeded generator on its next call.
"""

from __future__ import annotations

import zlib
from collections.abc import Sequence
from random import Random
from typing import TypeAlias, TypeVar

from tilecollapse.types import RandomSeed

T = TypeVar("T")


class RNGStream:
    """Named handle that forwards to the provider's current generator."""

    def __init__(self, provider: RNGProvider, domain: str) -> None:
        self._provider = provider
        self._domain = domain

    @property
    def domain(self) -> str:
        return self._domain

    def _rng(self) -> Random:
        return self._provider._generator(self._domain)

    def choice(self, seq: Sequence[T]) -> T:
        """Return random element from non-empty sequence."""
        return self._rng().choice(seq)


# Anything the solver can draw candidates from.
RNG: TypeAlias = Random | RNGStream


class RNGProvider:
    """Owns one generator per domain, all derived from a master seed."""

    def __init__(self, master_seed: RandomSeed = None) -> None:
        self._master_seed = master_seed
        self._generators: dict[str, Random] = {}
        self._streams: dict[str, RNGStream] = {}

    @property
    def master_seed(self) -> RandomSeed:
        return self._master_seed

    def get(self, domain: str) -> RNGStream:
        """Return the (cached) stream for ``domain``.

        Args:
            domain: Dotted name such as "solver.candidates".
        """
        stream = self._streams.get(domain)
        if stream is None:
            stream = RNGStream(self, domain)
            self._streams[domain] = stream
        return stream

    def _generator(self, domain: str) -> Random:
        generator = self._generators.get(domain)
        if generator is None:
            if self._master_seed is None:
                generator = Random()
            else:
                # crc32 is stable across interpreter sessions, hash() is not
                seed = zlib.crc32(f"{self._master_seed}:{domain}".encode())
                generator = Random(seed)
            self._generators[domain] = generator
        return generator

    def reset(self, master_seed: RandomSeed = None) -> None:
        """Reseed every domain. Cached streams stay valid."""
        self._master_seed = master_seed
        self._generators.clear()


# =============================================================================
# Module-level API
# =============================================================================

_provider: RNGProvider | None = None


def init(master_seed: RandomSeed = None) -> None:
    """Initialize (or reseed) the global provider."""
    global _provider
    if _provider is not None:
        _provider.reset(master_seed)
    else:
        _provider = RNGProvider(master_seed)


def get(domain: str) -> RNGStream:
    """Return a stream from the global provider.

    An uninitialized provider is created on first use with the seed from
    ``tilecollapse.config.RANDOM_SEED``.
    """
    global _provider
    if _provider is None:
        from tilecollapse import config

        _provider = RNGProvider(config.RANDOM_SEED)
    return _provider.get(domain)


def reset(master_seed: RandomSeed = None) -> None:
    """Reseed the global provider.

    Raises:
        RuntimeError: If ``init()`` has not been called.
    """
    if _provider is None:
        raise RuntimeError("RNG not initialized - call rng.init() first")
    _provider.reset(master_seed)
