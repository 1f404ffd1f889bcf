"""Settings from the environment (optionally a .env file).

Env vars:
  RPC_URL           node JSON-RPC URL (default: http://127.0.0.1:<RPC_PORT>)
  RPC_USER          RPC username (default: myusername)
  RPC_PASSWORD      RPC password (default: mypassword)
  RPC_PORT          RPC port when RPC_URL is unset (default: 48337)
  NETWORK           network preset, see reorgcalc.difficulty.NETWORKS (default: testnet4)
  DEFAULT_HASHRATE  available hashrate in H/s (default: 1e15)
  TARGET_DAYS       target completion time in days (default: 3)
  OUTPUT_FILE       report file results are appended to (default: reorg_calculations.txt)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

DEFAULT_RPC_PORT = 48337
DEFAULT_HASHRATE = 1e15
DEFAULT_TARGET_DAYS = 3.0


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_number_strict(name: str, kind, default):
    """Like env_int/env_float but a malformed value is an error, not a fallback."""
    raw = (os.environ.get(name, "") or "").strip()
    if not raw:
        return default
    try:
        return kind(raw)
    except ValueError:
        raise ValueError(f"Invalid {name} in .env: {raw!r}") from None


def parse_depths(spec: str) -> List[int]:
    """Parse REORG_DEPTHS.

    Format:
      depth,depth,...
    Example:
      1,10,100
    """
    spec = (spec or "").strip()
    if not spec:
        return []
    out: List[int] = []
    for chunk in spec.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        try:
            depth = int(chunk)
        except ValueError:
            raise ValueError(f"Invalid REORG_DEPTHS item (not an integer): {chunk}") from None
        if depth < 1:
            raise ValueError(f"Invalid REORG_DEPTHS item (must be >= 1): {chunk}")
        out.append(depth)
    return sorted(set(out))


@dataclass(frozen=True)
class Config:
    rpc_url: str
    rpc_user: str
    rpc_password: str
    rpc_port: int
    network: str
    default_hashrate: float
    target_days: float
    output_file: Path


def load_config(dotenv_path: Optional[Path] = None) -> Config:
    # Values already in the environment win over the .env file.
    load_dotenv(dotenv_path or find_dotenv(usecwd=True), override=False)

    rpc_port = _env_number_strict("RPC_PORT", int, DEFAULT_RPC_PORT)
    rpc_url = (os.environ.get("RPC_URL", "") or "").strip() or f"http://127.0.0.1:{rpc_port}"
    return Config(
        rpc_url=rpc_url,
        rpc_user=os.environ.get("RPC_USER", "myusername"),
        rpc_password=os.environ.get("RPC_PASSWORD", "mypassword"),
        rpc_port=rpc_port,
        network=os.environ.get("NETWORK", "testnet4"),
        default_hashrate=_env_number_strict("DEFAULT_HASHRATE", float, DEFAULT_HASHRATE),
        target_days=_env_number_strict("TARGET_DAYS", float, DEFAULT_TARGET_DAYS),
        output_file=Path(os.environ.get("OUTPUT_FILE", "reorg_calculations.txt")),
    )
