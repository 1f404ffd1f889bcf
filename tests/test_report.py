from __future__ import annotations

import io
from datetime import datetime, timezone

import pytest

from reorgcalc.difficulty import get_network
from reorgcalc.models import CandidateHeight, ReorgCalculation
from reorgcalc.report import (
    SINGLE_BLOCK_NOTE,
    SINGLE_BLOCK_NOTE_PLAIN,
    display_calculation,
    display_candidates,
    save_to_file,
)

STAMP = datetime(2024, 5, 1, 12, 30, 0, tzinfo=timezone.utc)


def _calc(blocks_needed=51):
    return ReorgCalculation(
        fork_height=60_000,
        current_height=60_100,
        blocks_to_reorg=101,
        total_work=500_000_050.0,
        current_difficulty=10_000_000.0,
        blocks_needed=blocks_needed,
        time_required_hours=4.06,
        time_required_days=4.06 / 24,
        hashrate_required=845e9,
        timestamp=STAMP,
    )


class TestDisplay:
    def test_calculation(self):
        out = io.StringIO()
        display_calculation(_calc(), 150e12, 3, out=out)
        text = out.getvalue()
        assert "Fork Height: 60000" in text
        assert "Blocks to Reorg: 101" in text
        assert "New Chain Blocks Needed: 51" in text
        assert "=== With Your Hashrate (150.00 TH/s) ===" in text
        assert "Time Required: 4.06 hours (0.17 days)" in text
        assert "=== For Target Time (3 days) ===" in text
        assert "Hashrate Required: 845.00 GH/s" in text
        assert "Timestamp: 2024-05-01 12:30:00 UTC" in text
        assert SINGLE_BLOCK_NOTE not in text

    def test_single_block_note_on_min_difficulty_network(self):
        out = io.StringIO()
        display_calculation(_calc(blocks_needed=1), 150e12, 3, get_network("testnet4"), out=out)
        assert SINGLE_BLOCK_NOTE in out.getvalue()

    def test_single_block_note_without_min_difficulty_rule(self):
        """Mainnet has no 20-minute rule, so only the plain note is shown."""
        out = io.StringIO()
        display_calculation(_calc(blocks_needed=1), 150e12, 3, get_network("main"), out=out)
        text = out.getvalue()
        assert SINGLE_BLOCK_NOTE_PLAIN in text
        assert SINGLE_BLOCK_NOTE not in text

    def test_no_note_when_several_blocks_needed(self):
        out = io.StringIO()
        display_calculation(_calc(), 150e12, 3, get_network("testnet4"), out=out)
        text = out.getvalue()
        assert SINGLE_BLOCK_NOTE not in text
        assert SINGLE_BLOCK_NOTE_PLAIN not in text

    def test_candidates_table_limit(self):
        cands = [CandidateHeight(100 - i, 1 + i, 1e12 * (i + 1)) for i in range(5)]
        out = io.StringIO()
        display_candidates(cands, 1.5, limit=3, out=out)
        text = out.getvalue()
        assert "Hashrate for 1.5 days" in text
        assert "100" in text and "98" in text
        assert "97 " not in text
        assert "... 2 more" in text


class TestSaveToFile:
    def test_appends_sections(self, tmp_path):
        path = tmp_path / "reorg_calculations.txt"
        save_to_file([_calc()], path, 150e12, 3, now=STAMP)
        save_to_file([_calc(blocks_needed=1)], path, 150e12, 3, now=STAMP)
        text = path.read_text()
        assert text.count("=== Reorg Calculations - 2024-05-01 12:30:00 UTC ===") == 2
        assert "Blocks Needed: 51" in text
        assert "Time Required (150.00 TH/s): 0.17 days (4.1 hours)" in text
        assert "Hashrate for 3 days: 845.00 GH/s" in text
        assert text.count("Single block sufficient: yes") == 1
        assert text.count("---") == 2

    def test_unwritable_path(self, tmp_path):
        with pytest.raises(OSError):
            save_to_file([_calc()], tmp_path / "no" / "such" / "dir.txt", 1e12, 3)
