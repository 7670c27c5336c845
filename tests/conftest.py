from __future__ import annotations

from collections.abc import Iterator

import pytest

from tilecollapse import config
from tilecollapse.util import rng


@pytest.fixture(autouse=True)
def reseed_global_rng() -> Iterator[None]:
    """Reseed the global RNG streams before and after each test."""
    rng.init(config.RANDOM_SEED)
    yield
    rng.init(config.RANDOM_SEED)
