"""reorg-calc: how much work it takes to reorganize a chain from a fork height.

Examples:
  reorg-calc --fork-height 60000 --hashrate 1e15
  reorg-calc --batch-calculate --target-days 3
  reorg-calc --scan-floor 59000 --chart charts/
  reorg-calc --snapshot difficulties.json --fork-height 90

Defaults come from the environment / .env (see reorgcalc.config).
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from reorgcalc.config import load_config
from reorgcalc.difficulty import NETWORKS, format_hashrate, get_network
from reorgcalc.engine import calculate_reorg_requirements
from reorgcalc.errors import ReorgCalcError
from reorgcalc.log import log
from reorgcalc.models import ReorgCalculation, ResourceBudget
from reorgcalc.report import display_calculation, display_candidates, save_to_file
from reorgcalc.search import find_viable_fork_heights, find_viable_target_heights, rank_candidates, viable_candidates
from reorgcalc.sources import BitcoinRPCSource, SnapshotSource

SUGGESTED_DEPTH = 100


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reorg-calc",
        description="Calculate the work, time and hashrate needed to reorg a chain from a fork height",
    )
    parser.add_argument("-f", "--fork-height", type=int, help="Fork block height to start reorg from")
    parser.add_argument("-t", "--target-days", type=float, help="Target completion time in days")
    parser.add_argument("--hashrate", type=float, help="Available hashrate in hashes/second")
    parser.add_argument("--rpcuser", help="RPC username")
    parser.add_argument("--rpcpassword", help="RPC password")
    parser.add_argument("--rpcport", type=int, help="RPC port (node on 127.0.0.1)")
    parser.add_argument("--network", choices=sorted(NETWORKS), help="Network preset (unit-difficulty hash cost)")
    parser.add_argument("--batch-calculate", action="store_true", help="Check fixed depths below the tip for viable heights")
    parser.add_argument(
        "--scan-floor",
        type=int,
        help="Scan every fork height from tip-1 down to this height and rank by required hashrate",
    )
    parser.add_argument("--chart", type=Path, help="Directory to write a candidate chart to (with --scan-floor)")
    parser.add_argument("--snapshot", type=Path, help="Read difficulties from a JSON snapshot instead of a node")
    parser.add_argument("--output", type=Path, help="Report file to append results to")
    return parser


def _scan(source, hashrate: float, target_days: float, floor: int, network, chart_dir: Optional[Path]) -> List[ReorgCalculation]:
    tip = source.current_height()
    budget = ResourceBudget.from_days(target_days)
    log(f"Scanning fork heights {tip - 1} down to {floor}...")
    candidates = list(find_viable_fork_heights(source, tip, floor, budget, network.hashes_per_unit_difficulty, progress=True))
    if not candidates:
        print(f"No fork heights between {floor} and {tip - 1}")
        return []

    if chart_dir is not None:
        from reorgcalc.charts import generate_candidate_chart

        generate_candidate_chart(candidates, chart_dir, target_days, available_hashrate=hashrate)

    viable = viable_candidates(candidates, hashrate)
    if not viable:
        print(f"No fork height reachable within {target_days:g} days with {format_hashrate(hashrate)}")
        display_candidates(rank_candidates(candidates), target_days, limit=5)
        return []

    print(f"Found {len(viable)} fork heights reachable within {target_days:g} days with {format_hashrate(hashrate)}:")
    display_candidates(viable, target_days)
    # The deepest reachable fork is the most interesting one to record.
    deepest = min(viable, key=lambda c: c.fork_height)
    calc = calculate_reorg_requirements(source, deepest.fork_height, hashrate, target_days, network)
    display_calculation(calc, hashrate, target_days, network)
    return [calc]


def run(args: argparse.Namespace) -> int:
    cfg = load_config()

    rpc_user = args.rpcuser if args.rpcuser is not None else cfg.rpc_user
    rpc_password = args.rpcpassword if args.rpcpassword is not None else cfg.rpc_password
    rpc_url = f"http://127.0.0.1:{args.rpcport}" if args.rpcport is not None else cfg.rpc_url
    hashrate = args.hashrate if args.hashrate is not None else cfg.default_hashrate
    target_days = args.target_days if args.target_days is not None else cfg.target_days
    network = get_network(args.network or cfg.network)
    output_file = args.output or cfg.output_file

    # Validate both budgets before touching the node.
    ResourceBudget.from_hashrate(hashrate)
    ResourceBudget.from_days(target_days)

    if args.snapshot is not None:
        source = SnapshotSource.load(args.snapshot)
        log(f"Loaded snapshot {args.snapshot}")
    else:
        source = BitcoinRPCSource(rpc_url, rpc_user, rpc_password).connect()
        log(f"Connected to node at {rpc_url}")
        log(f"Chain: {source.chain_name() or network.name + ' (assumed)'}")

    current_height = source.current_height()
    log(f"Current block height: {current_height}")

    calculations: List[ReorgCalculation] = []

    if args.scan_floor is not None:
        calculations = _scan(source, hashrate, target_days, args.scan_floor, network, args.chart)
    elif args.batch_calculate:
        log(f"Finding viable target heights for {format_hashrate(hashrate)} within {target_days:g} days...")
        viable_heights = find_viable_target_heights(source, hashrate, target_days, network)
        if not viable_heights:
            print(f"No viable target heights found within {target_days:g} days with {format_hashrate(hashrate)}")
        else:
            print(f"Found {len(viable_heights)} viable target heights:")
            for height in viable_heights:
                calc = calculate_reorg_requirements(source, height, hashrate, target_days, network)
                display_calculation(calc, hashrate, target_days, network)
                calculations.append(calc)
    elif args.fork_height is not None:
        calc = calculate_reorg_requirements(source, args.fork_height, hashrate, target_days, network, progress=True)
        display_calculation(calc, hashrate, target_days, network)
        calculations.append(calc)
    else:
        suggested_height = max(0, current_height - SUGGESTED_DEPTH)
        print(f"\nNo fork height specified. Calculating for suggested height: {suggested_height}")
        calc = calculate_reorg_requirements(source, suggested_height, hashrate, target_days, network, progress=True)
        display_calculation(calc, hashrate, target_days, network)
        calculations.append(calc)

        print("\nTo calculate for a specific height, use: --fork-height <height>")
        print("To find all viable heights, use: --batch-calculate or --scan-floor <height>")

    if calculations:
        save_to_file(calculations, output_file, hashrate, target_days)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return run(args)
    except ReorgCalcError as e:
        log(f"ERROR ({type(e).__name__}): {e}")
        return 1
    except ValueError as e:
        log(f"ERROR: {e}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
