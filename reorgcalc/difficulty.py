"""Difficulty units, network presets and human-readable formatting.

Difficulty is expressed relative to each network's unit-difficulty block. The
expected hash count of a unit-difficulty block differs per proof-of-work
family, so it is a per-network setting rather than a constant in the engine:

  Bitcoin-style (SHA-256d, difficulty 1 = target 0x1d00ffff): 2**32 hashes
  Ethash-style (difficulty is the expected hash count itself):    1 hash
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

BITCOIN_HASHES_PER_DIFFICULTY = 4294967296.0  # 2^32
ETHASH_HASHES_PER_DIFFICULTY = 1.0

# Compact encoding of the difficulty-1 target.
MAX_TARGET_BITS = 0x1D00FFFF


@dataclass(frozen=True)
class NetworkParams:
    name: str
    hashes_per_unit_difficulty: float
    # Networks where a block timestamped 20 minutes past its parent may be
    # mined at minimum difficulty.
    min_difficulty_blocks: bool = False


NETWORKS: Dict[str, NetworkParams] = {
    "main": NetworkParams("main", BITCOIN_HASHES_PER_DIFFICULTY),
    "test": NetworkParams("test", BITCOIN_HASHES_PER_DIFFICULTY, min_difficulty_blocks=True),
    "testnet4": NetworkParams("testnet4", BITCOIN_HASHES_PER_DIFFICULTY, min_difficulty_blocks=True),
    "signet": NetworkParams("signet", BITCOIN_HASHES_PER_DIFFICULTY),
    "regtest": NetworkParams("regtest", BITCOIN_HASHES_PER_DIFFICULTY),
    "ethash": NetworkParams("ethash", ETHASH_HASHES_PER_DIFFICULTY),
}


def get_network(name: str) -> NetworkParams:
    key = (name or "").strip().lower()
    if key not in NETWORKS:
        raise ValueError(f"Unknown network {name!r} (known: {', '.join(sorted(NETWORKS))})")
    return NETWORKS[key]


def _compact_to_target(bits: int) -> float:
    mantissa = bits & 0xFFFFFF
    exponent = (bits >> 24) & 0xFF
    return mantissa * 256.0 ** (exponent - 3)


def bits_to_difficulty(bits: int) -> float:
    """Difficulty of a block header's compact `bits` relative to 0x1d00ffff."""
    target = _compact_to_target(bits)
    if target <= 0:
        raise ValueError(f"bits 0x{bits:08x} encode a non-positive target")
    return _compact_to_target(MAX_TARGET_BITS) / target


def format_hashrate(hashrate: float) -> str:
    if hashrate >= 1e18:
        return f"{hashrate / 1e18:.2f} EH/s"
    elif hashrate >= 1e15:
        return f"{hashrate / 1e15:.2f} PH/s"
    elif hashrate >= 1e12:
        return f"{hashrate / 1e12:.2f} TH/s"
    elif hashrate >= 1e9:
        return f"{hashrate / 1e9:.2f} GH/s"
    elif hashrate >= 1e6:
        return f"{hashrate / 1e6:.2f} MH/s"
    else:
        return f"{hashrate:.0f} H/s"


def format_time(hours: float) -> str:
    """Format hours into human-readable string."""
    if hours < 1:
        return f"{hours * 60:.0f} minutes"
    elif hours < 24:
        return f"{hours:.1f} hours"
    else:
        days = hours / 24
        return f"{days:.1f} days"
