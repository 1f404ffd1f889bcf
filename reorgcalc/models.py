"""Value records passed between the accumulator, the engine and the output layer."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from reorgcalc.errors import InvalidBudget

SECONDS_PER_HOUR = 3600.0
SECONDS_PER_DAY = 86400.0

MODE_DURATION = "duration"
MODE_HASHRATE = "hashrate"


@dataclass(frozen=True)
class BlockDifficulty:
    height: int
    difficulty: float


@dataclass(frozen=True)
class ChainWorkSample:
    """Summed difficulty over [fork_height, tip_height], both ends included."""

    fork_height: int
    tip_height: int
    total_work: float

    @property
    def blocks_to_reorg(self) -> int:
        return self.tip_height - self.fork_height + 1


@dataclass(frozen=True)
class NetworkState:
    current_difficulty: float
    current_height: int


@dataclass(frozen=True)
class ResourceBudget:
    """Either an available hashrate (H/s) or a target duration (seconds), never both.

    The engine derives whichever quantity is missing:
      hashrate budget  -> time required
      duration budget  -> hashrate required
    """

    hashrate: Optional[float] = None
    target_duration: Optional[float] = None

    def __post_init__(self) -> None:
        if (self.hashrate is None) == (self.target_duration is None):
            raise InvalidBudget("budget needs exactly one of hashrate or target_duration")
        value = self.hashrate if self.hashrate is not None else self.target_duration
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidBudget(f"budget value must be a number, got {value!r}")
        # NaN fails both checks.
        if not value > 0 or not math.isfinite(value):
            field_name = "hashrate" if self.hashrate is not None else "target_duration"
            raise InvalidBudget(f"{field_name} must be a finite number > 0, got {value!r}")

    @classmethod
    def from_hashrate(cls, hashrate: float) -> "ResourceBudget":
        return cls(hashrate=hashrate)

    @classmethod
    def from_duration(cls, seconds: float) -> "ResourceBudget":
        return cls(target_duration=seconds)

    @classmethod
    def from_days(cls, days: float) -> "ResourceBudget":
        if days is None:
            raise InvalidBudget("target days must be set")
        return cls(target_duration=days * SECONDS_PER_DAY)

    @property
    def mode(self) -> str:
        """Which quantity an estimate under this budget derives."""
        return MODE_DURATION if self.hashrate is not None else MODE_HASHRATE

    @property
    def value(self) -> float:
        return self.hashrate if self.hashrate is not None else self.target_duration  # type: ignore[return-value]


@dataclass(frozen=True)
class ReorgEstimate:
    """Result of one engine call.

    `derived_value` is a duration in seconds when `mode == "duration"` and a
    hashrate in H/s when `mode == "hashrate"`.
    """

    blocks_needed: int
    derived_value: float
    total_work: float
    current_difficulty: float
    single_block_sufficient: bool
    mode: str


@dataclass(frozen=True)
class CandidateHeight:
    fork_height: int
    blocks_needed: int
    required_hashrate_or_time: float


@dataclass(frozen=True)
class ReorgCalculation:
    """Both modes for one fork height, as recorded in reports."""

    fork_height: int
    current_height: int
    blocks_to_reorg: int
    total_work: float
    current_difficulty: float
    blocks_needed: int
    time_required_hours: float
    time_required_days: float
    hashrate_required: float
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def single_block_sufficient(self) -> bool:
        return self.blocks_needed <= 1

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["timestamp"] = self.timestamp.isoformat()
        out["single_block_sufficient"] = self.single_block_sufficient
        return out
