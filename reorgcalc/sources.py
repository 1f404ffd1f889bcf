"""Chain-data sources the calculator reads difficulties from.

A source answers three queries:

  block_difficulty_at(height)   difficulty of the block at `height`
  current_height()              height of the current tip
  current_network_difficulty()  difficulty the next block is mined at

Failures of any kind surface as `SourceUnavailable`.
"""

from __future__ import annotations

import itertools
import json
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Protocol

import requests

from reorgcalc.difficulty import bits_to_difficulty
from reorgcalc.errors import SourceUnavailable
from reorgcalc.models import BlockDifficulty, NetworkState


def _as_number(value: Any, kind, method: str):
    try:
        return kind(value)
    except (TypeError, ValueError):
        raise SourceUnavailable(f"Unexpected {method} result: {value!r}") from None


class ChainDataSource(Protocol):
    def block_difficulty_at(self, height: int) -> float: ...

    def current_height(self) -> int: ...

    def current_network_difficulty(self) -> float: ...


class BitcoinRPCSource:
    """Bitcoin Core JSON-RPC (HTTP basic auth).

    Block difficulty is derived from the header's compact `bits`, so only
    `getblockhash` + `getblockheader` are needed per height.
    """

    def __init__(
        self,
        url: str,
        user: str = "",
        password: str = "",
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        if user or password:
            self.session.auth = (user, password)
        self._ids = itertools.count(1)

    def call(self, method: str, params: Optional[list] = None) -> Any:
        payload = {
            "jsonrpc": "1.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }
        try:
            r = self.session.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise SourceUnavailable(f"RPC {method} to {self.url} failed: {e}") from e

        # Bitcoin Core reports RPC errors with a non-200 status and a JSON body,
        # so look at the body before the status.
        try:
            body = r.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("error"):
            raise SourceUnavailable(f"RPC error from {self.url} {method}: {body['error']}")
        if r.status_code != 200:
            raise SourceUnavailable(f"RPC {method} HTTP {r.status_code}: {r.text[:200]}")
        if not isinstance(body, dict) or "result" not in body:
            raise SourceUnavailable(f"Unexpected RPC response for {method}: {r.text[:200]}")
        return body["result"]

    def connect(self) -> "BitcoinRPCSource":
        """Fail fast if the node is not reachable."""
        self.current_height()
        return self

    def block_difficulty_at(self, height: int) -> float:
        block_hash = self.call("getblockhash", [height])
        header = self.call("getblockheader", [block_hash, True])
        if not isinstance(header, dict) or "bits" not in header:
            raise SourceUnavailable(f"Missing header data for height {height}")
        try:
            return bits_to_difficulty(int(header["bits"], 16))
        except (TypeError, ValueError) as e:
            raise SourceUnavailable(f"Bad bits {header.get('bits')!r} at height {height}: {e}") from e

    def current_height(self) -> int:
        return _as_number(self.call("getblockcount"), int, "getblockcount")

    def current_network_difficulty(self) -> float:
        return _as_number(self.call("getdifficulty"), float, "getdifficulty")

    def chain_name(self) -> Optional[str]:
        """Chain reported by getblockchaininfo, or None if the call is unsupported."""
        try:
            info = self.call("getblockchaininfo")
        except SourceUnavailable:
            return None
        return (info or {}).get("chain")


class SnapshotSource:
    """Fixed difficulties held in memory (test fixtures, saved snapshots).

    JSON layout:
      {"current_difficulty": 12345.6, "current_height": 100,
       "blocks": {"0": 1.0, "1": 1.0, ...}}
    `current_height` defaults to the highest height in `blocks`.
    """

    def __init__(
        self,
        difficulties: Mapping[int, float],
        current_difficulty: float,
        current_height: Optional[int] = None,
    ) -> None:
        self._difficulties: Dict[int, float] = {int(h): float(d) for h, d in difficulties.items()}
        self._current_difficulty = float(current_difficulty)
        if current_height is None:
            current_height = max(self._difficulties) if self._difficulties else 0
        self._current_height = int(current_height)

    @classmethod
    def from_sequence(cls, difficulties, current_difficulty: float, start_height: int = 0) -> "SnapshotSource":
        return cls(
            {start_height + i: d for i, d in enumerate(difficulties)},
            current_difficulty,
        )

    @classmethod
    def from_blocks(cls, blocks: Iterable[BlockDifficulty], current_difficulty: float) -> "SnapshotSource":
        return cls({b.height: b.difficulty for b in blocks}, current_difficulty)

    @classmethod
    def load(cls, path: Path) -> "SnapshotSource":
        try:
            data = json.loads(Path(path).read_text())
            blocks = data["blocks"]
            return cls(
                {int(h): d for h, d in blocks.items()},
                data["current_difficulty"],
                data.get("current_height"),
            )
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            raise SourceUnavailable(f"Cannot load snapshot {path}: {e}") from e

    def block_difficulty_at(self, height: int) -> float:
        try:
            return self._difficulties[height]
        except KeyError:
            raise SourceUnavailable(f"No block at height {height} in snapshot") from None

    def current_height(self) -> int:
        return self._current_height

    def current_network_difficulty(self) -> float:
        return self._current_difficulty


def read_network_state(source: ChainDataSource) -> NetworkState:
    """Tip height and current difficulty, read together for one calculation."""
    return NetworkState(
        current_difficulty=source.current_network_difficulty(),
        current_height=source.current_height(),
    )
