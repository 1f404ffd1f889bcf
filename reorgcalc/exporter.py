"""Prometheus exporter publishing the current cost of reorging at fixed depths.

Every poll re-reads the tip and current difficulty, fetches the difficulties
of the deepest configured range once, and for each depth d (fork height
tip - d) publishes the work to beat, blocks needed, time at the configured
hashrate and hashrate needed for the target time.

Env vars (besides the RPC ones, see reorgcalc.config):
  PORT                   listen port (default: 9101)
  POLL_INTERVAL_SECONDS  seconds between polls (default: 60)
  REORG_DEPTHS           comma list of depths (default: 1,10,100)
"""

from __future__ import annotations

import os
import threading
from typing import Any, Dict, List, Sequence

from flask import Flask, Response
from prometheus_client import CONTENT_TYPE_LATEST, Gauge, generate_latest

from reorgcalc.accumulator import prefix_sums
from reorgcalc.config import env_float, env_int, load_config, parse_depths
from reorgcalc.difficulty import NetworkParams, get_network
from reorgcalc.engine import estimate
from reorgcalc.errors import ReorgCalcError
from reorgcalc.log import log, warn
from reorgcalc.models import ResourceBudget
from reorgcalc.sources import BitcoinRPCSource, ChainDataSource, read_network_state

app = Flask(__name__)


g_up = Gauge("reorg_up", "Whether the last poll of the node succeeded (1=up, 0=down)")
g_tip = Gauge("reorg_tip_height", "Current chain tip height")
g_difficulty = Gauge("reorg_current_difficulty", "Current network difficulty")
g_total_work = Gauge("reorg_total_work", "Summed difficulty from the fork height to the tip", ["depth"])
g_blocks_needed = Gauge("reorg_blocks_needed", "Blocks at current difficulty needed to out-work the range", ["depth"])
g_hashrate_required = Gauge(
    "reorg_hashrate_required",
    "Hashrate (H/s) needed to finish the reorg within the target time",
    ["depth"],
)
g_time_required = Gauge(
    "reorg_time_required_seconds",
    "Expected seconds to finish the reorg at the configured hashrate",
    ["depth"],
)
g_single_block = Gauge(
    "reorg_single_block_sufficient",
    "1 when one block at current difficulty out-works the whole range",
    ["depth"],
)

_DEPTH_GAUGES = (g_total_work, g_blocks_needed, g_hashrate_required, g_time_required, g_single_block)


class Poller:
    def __init__(
        self,
        source: ChainDataSource,
        network: NetworkParams,
        depths: Sequence[int],
        hashrate: float,
        target_days: float,
        interval_seconds: float,
    ) -> None:
        if not depths:
            raise ValueError("No depths configured. Set REORG_DEPTHS.")
        self.source = source
        self.network = network
        self.depths = sorted(set(depths))
        self.time_budget = ResourceBudget.from_hashrate(hashrate)
        self.rate_budget = ResourceBudget.from_days(target_days)
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name="poller", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        self._thread.join(timeout=5)

    def poll_once(self) -> Dict[int, Dict[str, Any]]:
        """Recompute every depth and update the gauges; returns the values set."""
        state = read_network_state(self.source)
        tip, difficulty = state.current_height, state.current_difficulty
        depths = [d for d in self.depths if tip - d >= 0]
        if not depths:
            raise ReorgCalcError(f"Chain at height {tip} is shallower than every configured depth")

        table = prefix_sums(self.source, tip - depths[-1], tip)
        hashes_per_unit = self.network.hashes_per_unit_difficulty

        # Depths can disappear between polls (short chain); drop stale series.
        for g in _DEPTH_GAUGES:
            g.clear()

        out: Dict[int, Dict[str, Any]] = {}
        for depth in depths:
            work = table.work_from(tip - depth)
            by_time = estimate(work, difficulty, self.time_budget, hashes_per_unit)
            by_rate = estimate(work, difficulty, self.rate_budget, hashes_per_unit)
            label = str(depth)
            g_total_work.labels(depth=label).set(work)
            g_blocks_needed.labels(depth=label).set(by_time.blocks_needed)
            g_time_required.labels(depth=label).set(by_time.derived_value)
            g_hashrate_required.labels(depth=label).set(by_rate.derived_value)
            g_single_block.labels(depth=label).set(1 if by_time.single_block_sufficient else 0)
            out[depth] = {
                "fork_height": tip - depth,
                "total_work": work,
                "blocks_needed": by_time.blocks_needed,
                "time_required_seconds": by_time.derived_value,
                "hashrate_required": by_rate.derived_value,
                "single_block_sufficient": by_time.single_block_sufficient,
            }

        g_tip.set(tip)
        g_difficulty.set(difficulty)
        g_up.set(1)
        return out

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self.poll_once()
            except Exception as e:
                # Keep the last computed series; only flag the node as down.
                g_up.set(0)
                warn(f"poll failed ({type(e).__name__}): {e}")
            self._stop.wait(self.interval_seconds)


@app.get("/metrics")
def metrics() -> Response:
    return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)


@app.get("/healthz")
def healthz() -> Dict[str, Any]:
    return {"ok": True}


def main() -> None:
    cfg = load_config()
    port = env_int("PORT", 9101)
    interval = env_float("POLL_INTERVAL_SECONDS", 60.0)
    depths: List[int] = parse_depths(os.environ.get("REORG_DEPTHS", "1,10,100"))

    source = BitcoinRPCSource(cfg.rpc_url, cfg.rpc_user, cfg.rpc_password)
    poller = Poller(
        source,
        get_network(cfg.network),
        depths,
        hashrate=cfg.default_hashrate,
        target_days=cfg.target_days,
        interval_seconds=interval,
    )
    poller.start()
    log(f"Exporter polling {cfg.rpc_url} every {interval:g}s for depths {depths}")

    # Flask dev server is fine here (internal-only).
    app.run(host="0.0.0.0", port=port, debug=False)


if __name__ == "__main__":
    main()
