"""Scan fork heights for ones a budget can reach.

Two searches:

  find_viable_fork_heights    every height from tip - 1 down to a floor, each
                              with the hashrate a duration budget requires, or
                              the time a hashrate budget requires
  find_viable_target_heights  a handful of fixed depths below the tip, kept
                              when a given hashrate finishes within max_days

Scan order for the full search is descending (nearest the tip first). The
order is fixed; callers wanting "cheapest first" use `rank_candidates`.
"""

from __future__ import annotations

from typing import Iterable, Iterator, List, Sequence

from reorgcalc.accumulator import prefix_sums
from reorgcalc.difficulty import NetworkParams
from reorgcalc.engine import calculate_reorg_requirements, estimate
from reorgcalc.errors import InvalidBudget, RangeError, ReorgCalcError
from reorgcalc.log import warn
from reorgcalc.models import CandidateHeight, ResourceBudget
from reorgcalc.sources import ChainDataSource

# Depths below the tip checked by find_viable_target_heights.
TARGET_DEPTHS: Sequence[int] = (1, 10, 50, 100, 500, 1000, 5000)


def find_viable_fork_heights(
    source: ChainDataSource,
    tip_height: int,
    lowest_height_to_consider: int,
    budget: ResourceBudget,
    hashes_per_unit_difficulty: float,
    progress: bool = False,
) -> Iterator[CandidateHeight]:
    """Yield one CandidateHeight per fork height, tip_height - 1 down to the floor.

    Each candidate carries the quantity `budget` leaves open: the hashrate
    needed to out-work blocks fork_height..tip_height within a duration budget,
    or the seconds a hashrate budget takes to do so. Difficulties are fetched
    once, in ascending order, when iteration starts. A failed lookup aborts the
    whole scan: a missing difficulty would corrupt every later candidate.
    """
    if not isinstance(budget, ResourceBudget):
        raise InvalidBudget(f"candidate search needs a ResourceBudget, got {budget!r}")
    if lowest_height_to_consider < 0:
        raise RangeError(f"Lowest height {lowest_height_to_consider} is negative")
    if tip_height < 0:
        raise RangeError(f"Tip height {tip_height} is negative")
    return _scan(source, tip_height, lowest_height_to_consider, budget, hashes_per_unit_difficulty, progress)


def _scan(source, tip_height, lowest, budget, hashes_per_unit_difficulty, progress) -> Iterator[CandidateHeight]:
    if tip_height - 1 < lowest:
        return
    current_difficulty = source.current_network_difficulty()
    table = prefix_sums(source, lowest, tip_height, progress=progress)
    for fork_height in range(tip_height - 1, lowest - 1, -1):
        est = estimate(table.work_from(fork_height), current_difficulty, budget, hashes_per_unit_difficulty)
        yield CandidateHeight(
            fork_height=fork_height,
            blocks_needed=est.blocks_needed,
            required_hashrate_or_time=est.derived_value,
        )


def rank_candidates(candidates: Iterable[CandidateHeight]) -> List[CandidateHeight]:
    """Cheapest first; equal cost goes to the higher (shallower) fork height."""
    return sorted(candidates, key=lambda c: (c.required_hashrate_or_time, -c.fork_height))


def viable_candidates(candidates: Iterable[CandidateHeight], available_hashrate: float) -> List[CandidateHeight]:
    """Candidates whose required hashrate fits within `available_hashrate`, cheapest first."""
    return rank_candidates(c for c in candidates if c.required_hashrate_or_time <= available_hashrate)


def find_viable_target_heights(
    source: ChainDataSource,
    hashrate: float,
    max_days: float,
    network: NetworkParams,
    depths: Sequence[int] = TARGET_DEPTHS,
) -> List[int]:
    """Check fork heights at fixed depths below the tip; keep those done within `max_days`.

    A height that cannot be calculated is skipped with a warning.
    """
    current_height = source.current_height()
    viable = []
    for depth in depths:
        height = max(0, current_height - depth)
        if height <= 0:
            continue
        try:
            calc = calculate_reorg_requirements(source, height, hashrate, max_days, network)
        except InvalidBudget:
            raise
        except ReorgCalcError as e:
            warn(f"Failed to calculate for height {height}: {e}")
            continue
        if calc.time_required_days <= max_days:
            viable.append(height)
    return viable
