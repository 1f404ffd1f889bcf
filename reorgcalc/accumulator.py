"""Sum per-block difficulty over a height range.

Sums are exactly rounded (math.fsum, or exact rational prefix sums in the
batch table), so the result does not depend on reduction order and a range
summed directly agrees bit for bit with the same range read from a WorkTable.
Heights are always fetched in ascending order.
"""

from __future__ import annotations

import math
from fractions import Fraction
from typing import List

from reorgcalc.errors import DivisionDomainError, RangeError
from reorgcalc.log import log
from reorgcalc.models import ChainWorkSample
from reorgcalc.sources import ChainDataSource

PROGRESS_EVERY = 1000


def _check_range(source: ChainDataSource, fork_height: int, tip_height: int) -> None:
    if fork_height < 0:
        raise RangeError(f"Fork height {fork_height} is negative")
    if tip_height < fork_height:
        raise RangeError(f"Tip height {tip_height} is below fork height {fork_height}")
    known = source.current_height()
    if tip_height > known:
        raise RangeError(f"Tip height {tip_height} exceeds current chain height {known}")


def _difficulty(source: ChainDataSource, height: int) -> float:
    difficulty = source.block_difficulty_at(height)
    if not difficulty > 0 or not math.isfinite(difficulty):
        raise DivisionDomainError(f"Block {height} has non-positive or non-finite difficulty {difficulty!r}")
    return difficulty


def _fetch(source: ChainDataSource, low_height: int, tip_height: int, progress: bool) -> List[float]:
    difficulties = []
    for height in range(low_height, tip_height + 1):
        difficulty = _difficulty(source, height)
        difficulties.append(difficulty)
        if progress and (height % PROGRESS_EVERY == 0 or height == tip_height):
            log(f"  Processed block {height} (difficulty: {difficulty:.2f})")
    return difficulties


def accumulate(source: ChainDataSource, fork_height: int, tip_height: int, progress: bool = False) -> ChainWorkSample:
    """Total work of the blocks a competing chain forked at `fork_height` must out-work.

    One lookup per height, no caching and no retries. Any lookup failure
    propagates (SourceUnavailable); a partial sum is never returned.
    """
    _check_range(source, fork_height, tip_height)
    if progress:
        log(f"Calculating chain work from block {fork_height} to {tip_height}...")
    difficulties = _fetch(source, fork_height, tip_height, progress)
    return ChainWorkSample(fork_height=fork_height, tip_height=tip_height, total_work=math.fsum(difficulties))


class WorkTable:
    """Read-only work-to-tip lookup for every fork height in [low_height, tip_height].

    `_prefix[i]` is the exact sum of the first i difficulties, so the work from
    height h to the tip is one exact subtraction rounded once to float.
    Safe to share between threads; nothing mutates it after construction.
    """

    def __init__(self, low_height: int, tip_height: int, difficulties: List[float]) -> None:
        if len(difficulties) != tip_height - low_height + 1:
            raise RangeError("difficulty count does not match the height range")
        self.low_height = low_height
        self.tip_height = tip_height
        self._difficulties = tuple(difficulties)
        prefix = [Fraction(0)]
        for d in self._difficulties:
            if not d > 0 or not math.isfinite(d):
                raise DivisionDomainError(f"non-positive or non-finite difficulty {d!r} in table")
            prefix.append(prefix[-1] + Fraction(d))
        self._prefix = tuple(prefix)

    def __len__(self) -> int:
        return len(self._difficulties)

    def difficulty_at(self, height: int) -> float:
        self._check(height)
        return self._difficulties[height - self.low_height]

    def work_from(self, fork_height: int) -> float:
        """Work over [fork_height, tip_height]."""
        self._check(fork_height)
        return float(self._prefix[-1] - self._prefix[fork_height - self.low_height])

    def sample(self, fork_height: int) -> ChainWorkSample:
        return ChainWorkSample(fork_height, self.tip_height, self.work_from(fork_height))

    def _check(self, height: int) -> None:
        if not self.low_height <= height <= self.tip_height:
            raise RangeError(f"Height {height} outside table range [{self.low_height}, {self.tip_height}]")


def prefix_sums(source: ChainDataSource, low_height: int, tip_height: int, progress: bool = False) -> WorkTable:
    """Fetch every difficulty in [low_height, tip_height] once and index it."""
    _check_range(source, low_height, tip_height)
    if progress:
        log(f"Fetching difficulties for blocks {low_height} to {tip_height}...")
    return WorkTable(low_height, tip_height, _fetch(source, low_height, tip_height, progress))
