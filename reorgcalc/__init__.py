"""Proof-of-work reorg cost calculator."""

from reorgcalc.accumulator import WorkTable, accumulate, prefix_sums
from reorgcalc.engine import calculate_reorg_requirements, estimate
from reorgcalc.errors import DivisionDomainError, InvalidBudget, RangeError, ReorgCalcError, SourceUnavailable
from reorgcalc.models import (
    BlockDifficulty,
    CandidateHeight,
    ChainWorkSample,
    NetworkState,
    ReorgCalculation,
    ReorgEstimate,
    ResourceBudget,
)
from reorgcalc.search import find_viable_fork_heights, find_viable_target_heights, rank_candidates

__version__ = "0.1.0"

__all__ = [
    "BlockDifficulty",
    "CandidateHeight",
    "ChainWorkSample",
    "DivisionDomainError",
    "InvalidBudget",
    "NetworkState",
    "RangeError",
    "ReorgCalcError",
    "ReorgCalculation",
    "ReorgEstimate",
    "ResourceBudget",
    "SourceUnavailable",
    "WorkTable",
    "accumulate",
    "calculate_reorg_requirements",
    "estimate",
    "find_viable_fork_heights",
    "find_viable_target_heights",
    "prefix_sums",
    "rank_candidates",
]
