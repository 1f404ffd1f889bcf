"""Convert accumulated work into blocks, time and hashrate.

A competing chain forked at height F must carry strictly more work than the
existing blocks F..tip. Mined at the current difficulty D, that takes

    blocks_needed = ceil(total_work / D)

blocks, each costing D * hashes_per_unit_difficulty expected hashes. Given a
hashrate the engine derives the duration; given a duration it derives the
hashrate.

On networks with a minimum-difficulty rule a run of floor-difficulty blocks can
carry so little work that a single block at full difficulty out-works it;
`single_block_sufficient` reports that case.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Optional

from reorgcalc.accumulator import accumulate
from reorgcalc.difficulty import NetworkParams
from reorgcalc.errors import DivisionDomainError, InvalidBudget, RangeError
from reorgcalc.models import (
    SECONDS_PER_DAY,
    SECONDS_PER_HOUR,
    ReorgCalculation,
    ReorgEstimate,
    ResourceBudget,
)
from reorgcalc.sources import ChainDataSource, read_network_state


def blocks_needed(total_work: float, current_difficulty: float) -> int:
    if not current_difficulty > 0:
        raise DivisionDomainError(f"Current difficulty must be > 0, got {current_difficulty!r}")
    if not total_work > 0:
        raise DivisionDomainError(f"Total work must be > 0, got {total_work!r}")
    return max(1, math.ceil(total_work / current_difficulty))


def estimate(
    total_work: float,
    current_difficulty: float,
    budget: ResourceBudget,
    hashes_per_unit_difficulty: float,
) -> ReorgEstimate:
    if not isinstance(budget, ResourceBudget):
        raise InvalidBudget(f"Expected a ResourceBudget, got {type(budget).__name__}")
    if not hashes_per_unit_difficulty > 0:
        raise DivisionDomainError(f"hashes_per_unit_difficulty must be > 0, got {hashes_per_unit_difficulty!r}")

    needed = blocks_needed(total_work, current_difficulty)
    total_hashes = needed * current_difficulty * hashes_per_unit_difficulty
    # Both directions are the same ratio: hashes / rate = time, hashes / time = rate.
    derived = total_hashes / budget.value

    return ReorgEstimate(
        blocks_needed=needed,
        derived_value=derived,
        total_work=total_work,
        current_difficulty=current_difficulty,
        single_block_sufficient=needed <= 1,
        mode=budget.mode,
    )


def calculate_reorg_requirements(
    source: ChainDataSource,
    fork_height: int,
    hashrate: float,
    target_days: float,
    network: NetworkParams,
    progress: bool = False,
    now: Optional[datetime] = None,
) -> ReorgCalculation:
    """Time needed at `hashrate`, and hashrate needed for `target_days`, to reorg from `fork_height`."""
    time_budget = ResourceBudget.from_hashrate(hashrate)
    rate_budget = ResourceBudget.from_days(target_days)

    state = read_network_state(source)
    if fork_height > state.current_height:
        raise RangeError(f"Fork height {fork_height} exceeds current chain height {state.current_height}")

    sample = accumulate(source, fork_height, state.current_height, progress=progress)
    by_time = estimate(sample.total_work, state.current_difficulty, time_budget, network.hashes_per_unit_difficulty)
    by_rate = estimate(sample.total_work, state.current_difficulty, rate_budget, network.hashes_per_unit_difficulty)

    return ReorgCalculation(
        fork_height=fork_height,
        current_height=state.current_height,
        blocks_to_reorg=sample.blocks_to_reorg,
        total_work=sample.total_work,
        current_difficulty=state.current_difficulty,
        blocks_needed=by_time.blocks_needed,
        time_required_hours=by_time.derived_value / SECONDS_PER_HOUR,
        time_required_days=by_time.derived_value / SECONDS_PER_DAY,
        hashrate_required=by_rate.derived_value,
        timestamp=now or datetime.now(timezone.utc),
    )
