"""
Tests for the reorg feasibility engine.

Tests cover:
- blocks_needed rounding
- Hashrate and duration modes, including a round trip between them
- The single-block flag
- Budget and difficulty validation
- The combined per-fork-height calculation
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from reorgcalc.difficulty import BITCOIN_HASHES_PER_DIFFICULTY, ETHASH_HASHES_PER_DIFFICULTY, get_network
from reorgcalc.engine import blocks_needed, calculate_reorg_requirements, estimate
from reorgcalc.errors import DivisionDomainError, InvalidBudget, RangeError
from reorgcalc.models import MODE_DURATION, MODE_HASHRATE, ResourceBudget
from reorgcalc.sources import SnapshotSource

H = BITCOIN_HASHES_PER_DIFFICULTY


class TestBlocksNeeded:
    """Tests for the ceil(total_work / difficulty) rule."""

    def test_fractional_remainder_needs_another_block(self):
        assert blocks_needed(500_000_050, 10_000_000) == 51

    def test_exact_multiple(self):
        assert blocks_needed(500_000_000, 10_000_000) == 50

    def test_small_work_still_one_block(self):
        assert blocks_needed(1, 10) == 1

    def test_always_at_least_one(self):
        assert blocks_needed(1e-320, 1e300) == 1

    @pytest.mark.parametrize("difficulty", [0, -1.0, float("nan")])
    def test_non_positive_difficulty(self, difficulty):
        with pytest.raises(DivisionDomainError):
            blocks_needed(10, difficulty)

    def test_non_positive_work(self):
        with pytest.raises(DivisionDomainError):
            blocks_needed(0, 10)


class TestEstimate:
    """Tests for estimate()."""

    def test_duration_from_hashrate(self):
        """51 blocks at difficulty 1e7 with 150 TH/s take about 4.06 hours."""
        est = estimate(500_000_050, 10_000_000, ResourceBudget.from_hashrate(150e12), H)
        assert est.blocks_needed == 51
        assert est.mode == MODE_DURATION
        assert est.derived_value == pytest.approx(51 * 10_000_000 * H / 150e12)
        assert est.derived_value / 3600 == pytest.approx(4.06, abs=0.01)
        assert est.single_block_sufficient is False

    def test_hashrate_from_duration(self):
        est = estimate(500_000_050, 10_000_000, ResourceBudget.from_days(3), H)
        assert est.mode == MODE_HASHRATE
        assert est.derived_value == pytest.approx(51 * 10_000_000 * H / (3 * 86400))

    def test_fractional_work_rounds_up(self):
        """5,000,000.5 work over difficulty 10,000 is 500.00005 blocks, so 501."""
        est = estimate(5_000_000.50, 10_000.00, ResourceBudget.from_hashrate(1e15), H)
        assert est.blocks_needed == 501
        assert est.derived_value == pytest.approx(501 * 10_000 * H / 1e15)

    def test_single_block_case(self):
        est = estimate(1, 10, ResourceBudget.from_hashrate(1e12), H)
        assert est.blocks_needed == 1
        assert est.single_block_sufficient is True

    @pytest.mark.parametrize(
        "work,difficulty,expected",
        [(9.99, 10.0, True), (10.0, 10.0, True), (10.01, 10.0, False), (1e9, 1e3, False)],
    )
    def test_single_block_iff_work_within_difficulty(self, work, difficulty, expected):
        est = estimate(work, difficulty, ResourceBudget.from_hashrate(1.0), H)
        assert est.single_block_sufficient is expected
        assert est.single_block_sufficient is (work <= difficulty)

    def test_round_trip_between_modes(self):
        """Duration from a hashrate, fed back as a budget, gives the hashrate again."""
        work, difficulty, hashrate = 123_456_789.25, 98_765.4, 7.5e14
        forward = estimate(work, difficulty, ResourceBudget.from_hashrate(hashrate), H)
        back = estimate(work, difficulty, ResourceBudget.from_duration(forward.derived_value), H)
        assert back.blocks_needed == forward.blocks_needed
        assert back.derived_value == pytest.approx(hashrate, rel=1e-12)

    def test_unit_hash_cost_is_configurable(self):
        """Ethash-style difficulty is already a hash count."""
        est = estimate(1_000, 100, ResourceBudget.from_hashrate(10), ETHASH_HASHES_PER_DIFFICULTY)
        assert est.derived_value == pytest.approx(10 * 100 / 10)

    def test_non_positive_unit_hash_cost(self):
        with pytest.raises(DivisionDomainError):
            estimate(10, 1, ResourceBudget.from_hashrate(1.0), 0)

    def test_current_difficulty_checked(self):
        with pytest.raises(DivisionDomainError):
            estimate(10, 0, ResourceBudget.from_hashrate(1.0), H)

    def test_budget_type_checked(self):
        with pytest.raises(InvalidBudget):
            estimate(10, 1, {"hashrate": 1.0}, H)


class TestResourceBudget:
    """Tests for budget construction."""

    def test_both_set(self):
        with pytest.raises(InvalidBudget):
            ResourceBudget(hashrate=1.0, target_duration=1.0)

    def test_neither_set(self):
        with pytest.raises(InvalidBudget):
            ResourceBudget()

    @pytest.mark.parametrize("value", [0, -5.0, float("nan"), float("inf")])
    def test_non_positive_or_non_finite(self, value):
        with pytest.raises(InvalidBudget):
            ResourceBudget.from_hashrate(value)
        with pytest.raises(InvalidBudget):
            ResourceBudget.from_duration(value)

    def test_non_numeric(self):
        with pytest.raises(InvalidBudget):
            ResourceBudget(hashrate="fast")
        with pytest.raises(InvalidBudget):
            ResourceBudget(hashrate=True)

    def test_from_days(self):
        budget = ResourceBudget.from_days(3)
        assert budget.target_duration == 259_200
        assert budget.hashrate is None
        assert budget.mode == MODE_HASHRATE
        with pytest.raises(InvalidBudget):
            ResourceBudget.from_days(None)


class TestCalculateReorgRequirements:
    """Tests for the combined calculation against a source."""

    @pytest.fixture
    def source(self):
        # Heights 0..100, difficulty 2 each, next block at difficulty 4.
        return SnapshotSource.from_sequence([2.0] * 101, current_difficulty=4.0)

    def test_both_modes_recorded(self, source):
        now = datetime(2024, 5, 1, tzinfo=timezone.utc)
        calc = calculate_reorg_requirements(source, 91, H, 1, get_network("testnet4"), now=now)
        # Blocks 91..100: work 20, at difficulty 4 that is 5 blocks.
        assert calc.blocks_to_reorg == 10
        assert calc.total_work == 20.0
        assert calc.blocks_needed == 5
        assert calc.current_height == 100
        assert calc.current_difficulty == 4.0
        # H hashes/s mines one difficulty-1 block per second.
        assert calc.time_required_hours * 3600 == pytest.approx(20.0)
        assert calc.time_required_days == pytest.approx(20.0 / 86400)
        assert calc.hashrate_required == pytest.approx(5 * 4.0 * H / 86400)
        assert calc.timestamp == now
        assert calc.single_block_sufficient is False

    def test_to_dict(self, source):
        calc = calculate_reorg_requirements(source, 100, H, 1, get_network("testnet4"))
        data = calc.to_dict()
        assert data["fork_height"] == 100
        assert data["single_block_sufficient"] is True
        assert isinstance(data["timestamp"], str)

    def test_fork_above_tip(self, source):
        with pytest.raises(RangeError):
            calculate_reorg_requirements(source, 101, H, 1, get_network("testnet4"))

    def test_bad_hashrate(self, source):
        with pytest.raises(InvalidBudget):
            calculate_reorg_requirements(source, 90, -1, 1, get_network("testnet4"))
