"""Chart of required hashrate against fork height.

Color palette:
    - Cyan (#00F0FF): Required hashrate line
    - Yellow (#FFE739): Cheapest candidate star
    - Pink (#FF55CC): Available hashrate line
    - Background (#1a1a2e): Dark theme
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.ticker import FuncFormatter  # noqa: E402

from reorgcalc.difficulty import format_hashrate  # noqa: E402
from reorgcalc.log import log  # noqa: E402
from reorgcalc.models import CandidateHeight  # noqa: E402
from reorgcalc.search import rank_candidates  # noqa: E402

CYAN = '#00F0FF'
YELLOW = '#FFE739'
PINK = '#FF55CC'
BACKGROUND = '#1a1a2e'
TEXT = '#e8e8e8'
GRID = '#888888'
BORDER = '#2a2a4a'


def generate_candidate_chart(
    candidates: Sequence[CandidateHeight],
    output_dir: Path,
    target_days: float,
    available_hashrate: Optional[float] = None,
    name: str = "reorg_candidates",
) -> List[Path]:
    """Plot each candidate's required hashrate; returns the written PNG and SVG paths."""
    if not candidates:
        raise ValueError("No candidates to chart")
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    points = sorted(candidates, key=lambda c: c.fork_height)
    heights = [c.fork_height for c in points]
    rates = [c.required_hashrate_or_time for c in points]
    best = rank_candidates(points)[0]

    plt.style.use('dark_background')
    fig, ax = plt.subplots(figsize=(14, 10))
    fig.patch.set_facecolor(BACKGROUND)
    ax.set_facecolor(BACKGROUND)

    ax.semilogy(heights, rates, color=CYAN, linewidth=2.0)
    ax.semilogy(best.fork_height, best.required_hashrate_or_time, color=YELLOW, marker='*', markersize=18,
                markeredgecolor=YELLOW, markeredgewidth=1, zorder=10,
                label=f'Cheapest: height {best.fork_height:,} ({format_hashrate(best.required_hashrate_or_time)})')

    if available_hashrate:
        ax.axhline(y=available_hashrate, color=PINK, linestyle='--', linewidth=1.5,
                   label=f'Available: {format_hashrate(available_hashrate)}')

    ax.set_ylabel(f'Hashrate required for {target_days:g} days', color=TEXT, fontsize=14)
    ax.set_xlabel('Fork Height', color=TEXT, fontsize=14)
    ax.set_title('Reorg Cost by Fork Height', color=CYAN, fontsize=16, fontweight='bold')

    ax.grid(True, alpha=0.3, color=GRID)
    ax.tick_params(colors=TEXT)
    ax.legend(loc='upper left', facecolor=BACKGROUND, edgecolor=BORDER)
    ax.yaxis.set_major_formatter(FuncFormatter(lambda y, pos: format_hashrate(y)))
    ax.xaxis.set_major_formatter(FuncFormatter(lambda x, pos: f'{int(x):,}'))
    ax.tick_params(axis='x', rotation=30)

    plt.tight_layout()
    png = output_dir / f'{name}.png'
    svg = output_dir / f'{name}.svg'
    plt.savefig(png, dpi=150, facecolor=BACKGROUND)
    plt.savefig(svg, facecolor=BACKGROUND)
    plt.close(fig)

    log(f"Chart saved to {png} and .svg")
    return [png, svg]
