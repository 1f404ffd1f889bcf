"""Console and text-file output of reorg calculations."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional, Sequence, TextIO

from reorgcalc.difficulty import NetworkParams, format_hashrate, format_time
from reorgcalc.log import log
from reorgcalc.models import CandidateHeight, ReorgCalculation

TIME_FORMAT = "%Y-%m-%d %H:%M:%S UTC"

SINGLE_BLOCK_NOTE = (
    "Note: A single high-difficulty block may suffice due to the network's "
    "20-minute minimum-difficulty rule."
)
# For networks without the minimum-difficulty rule.
SINGLE_BLOCK_NOTE_PLAIN = "Note: One block at the current difficulty out-works the whole range."


def display_calculation(
    calc: ReorgCalculation,
    provided_hashrate: float,
    target_days: float,
    network: Optional[NetworkParams] = None,
    out: Optional[TextIO] = None,
) -> None:
    def p(line: str = "") -> None:
        print(line, file=out)

    p("\n=== Reorg Calculation ===")
    p(f"Timestamp: {calc.timestamp.strftime(TIME_FORMAT)}")
    p(f"Fork Height: {calc.fork_height}")
    p(f"Current Height: {calc.current_height}")
    p(f"Blocks to Reorg: {calc.blocks_to_reorg}")
    p(f"Total Existing Chain Work: {calc.total_work:.2f}")
    p(f"Current Difficulty: {calc.current_difficulty:.2f}")
    p(f"New Chain Blocks Needed: {calc.blocks_needed}")
    p()
    p(f"=== With Your Hashrate ({format_hashrate(provided_hashrate)}) ===")
    p(f"Time Required: {calc.time_required_hours:.2f} hours ({calc.time_required_days:.2f} days)")
    p()
    p(f"=== For Target Time ({target_days:g} days) ===")
    p(f"Hashrate Required: {format_hashrate(calc.hashrate_required)}")

    if calc.single_block_sufficient:
        note = SINGLE_BLOCK_NOTE if network is not None and network.min_difficulty_blocks else SINGLE_BLOCK_NOTE_PLAIN
        p(f"\n{note}")


def display_candidates(
    candidates: Sequence[CandidateHeight],
    target_days: float,
    limit: int = 20,
    out: Optional[TextIO] = None,
) -> None:
    """Table of the cheapest candidates (already ranked)."""
    rate_header = f"Hashrate for {target_days:g} days"
    print(f"\n{'Fork Height':<14} {'Blocks Needed':<15} {rate_header:<22}", file=out)
    print("-" * 52, file=out)
    for c in candidates[:limit]:
        print(f"{c.fork_height:<14} {c.blocks_needed:<15,} {format_hashrate(c.required_hashrate_or_time):<22}", file=out)
    if len(candidates) > limit:
        print(f"... {len(candidates) - limit} more", file=out)


def save_to_file(
    calculations: Iterable[ReorgCalculation],
    filename: Path,
    provided_hashrate: float,
    target_days: float,
    now: Optional[datetime] = None,
) -> None:
    """Append a section for `calculations` to `filename`."""
    stamp = (now or datetime.now(timezone.utc)).strftime(TIME_FORMAT)
    path = Path(filename)
    with path.open("a") as f:
        f.write(f"\n=== Reorg Calculations - {stamp} ===\n")
        for calc in calculations:
            f.write(f"\nFork Height: {calc.fork_height}\n")
            f.write(f"Current Height: {calc.current_height}\n")
            f.write(f"Blocks to Reorg: {calc.blocks_to_reorg}\n")
            f.write(f"Total Work: {calc.total_work:.2f}\n")
            f.write(f"Current Difficulty: {calc.current_difficulty:.2f}\n")
            f.write(f"Blocks Needed: {calc.blocks_needed}\n")
            f.write(
                f"Time Required ({format_hashrate(provided_hashrate)}): "
                f"{calc.time_required_days:.2f} days ({format_time(calc.time_required_hours)})\n"
            )
            f.write(f"Hashrate for {target_days:g} days: {format_hashrate(calc.hashrate_required)}\n")
            if calc.single_block_sufficient:
                f.write("Single block sufficient: yes\n")
            f.write(f"Timestamp: {calc.timestamp.strftime(TIME_FORMAT)}\n")
            f.write("---\n")

    log(f"Results saved to: {path}")
