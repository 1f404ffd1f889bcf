from __future__ import annotations

import sys


def log(msg: str) -> None:
    print(f"[reorg-calc] {msg}", flush=True)


def warn(msg: str) -> None:
    print(f"[reorg-calc] WARN: {msg}", file=sys.stderr, flush=True)
