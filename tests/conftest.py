from __future__ import annotations

import os

import pytest

from reorgcalc.errors import SourceUnavailable
from reorgcalc.sources import SnapshotSource


class CountingSource:
    """Wraps a source and counts per-height lookups."""

    def __init__(self, inner):
        self.inner = inner
        self.lookups = []

    def block_difficulty_at(self, height):
        self.lookups.append(height)
        return self.inner.block_difficulty_at(height)

    def current_height(self):
        return self.inner.current_height()

    def current_network_difficulty(self):
        return self.inner.current_network_difficulty()


class FlakySource(CountingSource):
    """Fails the lookup for the given heights."""

    def __init__(self, inner, bad_heights):
        super().__init__(inner)
        self.bad_heights = set(bad_heights)

    def block_difficulty_at(self, height):
        if height in self.bad_heights:
            raise SourceUnavailable(f"injected failure at {height}")
        return super().block_difficulty_at(height)


@pytest.fixture
def uneven_source():
    """Heights 0..20 with awkward float difficulties; current difficulty 4."""
    difficulties = [0.1, 0.2, 0.3, 1e8, 0.7, 1.1, 3.3, 2.2, 0.01, 1e-3,
                    5.5, 1.0, 1.0, 7.25, 0.333, 1e6, 0.9, 1.0, 1.0, 1.0, 1.0]
    return SnapshotSource.from_sequence(difficulties, current_difficulty=4.0)


@pytest.fixture
def unit_source():
    """Heights 0..200, every block at difficulty 1; current difficulty 1."""
    return SnapshotSource.from_sequence([1.0] * 201, current_difficulty=1.0)


@pytest.fixture
def counting(unit_source):
    return CountingSource(unit_source)


@pytest.fixture
def isolated_env():
    """Strip reorg-calc settings from the environment and restore everything after."""
    saved = dict(os.environ)
    for name in ("RPC_URL", "RPC_USER", "RPC_PASSWORD", "RPC_PORT", "NETWORK",
                 "DEFAULT_HASHRATE", "TARGET_DAYS", "OUTPUT_FILE", "REORG_DEPTHS"):
        os.environ.pop(name, None)
    yield
    os.environ.clear()
    os.environ.update(saved)


@pytest.fixture
def flaky():
    """Factory: flaky(source, bad_heights) -> source failing at those heights."""
    return FlakySource
