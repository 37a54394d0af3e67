"""
Position Ledger Tests
======================
Cost basis, weighted entry market cap, partial sells and realized P&L.
"""
from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from journal.core.errors import InvalidInput, InvalidPercentage, PositionClosed
from journal.core.ledger import (
    BehaviorData, Performance, PositionStatus, TimeOfDay, exit_market_cap, hold_duration,
    open_position, realized_performance, record_buy, record_sell, unrealized_multiple,
)

T0 = datetime(2024, 3, 1, 10, 0, 0)


@pytest.fixture
def position():
    """10 SOL for 1M tokens at a 100k market cap."""
    return open_position(10.0, 1_000_000, 100_000, 1_000_000_000, token_name="Doge Two", ticker="DOGE2", now=T0)


class TestOpenPosition:
    """Opening buy seeds the aggregates."""

    def test_initial_state(self, position):
        """A new position is active with one buy and nothing sold."""
        assert position.status == PositionStatus.ACTIVE
        assert len(position.buys) == 1
        assert position.sells == ()
        assert position.percentage_sold == 0
        assert position.remaining_investment == 10.0
        assert position.entry_market_cap == 100_000
        assert position.entry_date == T0
        assert position.id.startswith("trade_")

    def test_opening_buy_mirrors_position(self, position):
        """The first buy carries the opening amounts."""
        buy = position.buys[0]
        assert buy.sol_amount == 10.0
        assert buy.token_quantity == 1_000_000
        assert buy.market_cap == 100_000

    def test_ownership_percentage(self, position):
        """Ownership is token quantity over supply."""
        assert position.ownership_percentage == pytest.approx(0.1)

    def test_ownership_zero_without_supply(self):
        """Unknown supply reports zero ownership."""
        p = open_position(1.0, 100, 50_000, 0)
        assert p.ownership_percentage == 0.0

    @pytest.mark.parametrize("investment,quantity,market_cap", [
        (0, 100, 1000),
        (-1, 100, 1000),
        (1, 0, 1000),
        (1, 100, 0),
        (None, 100, 1000),
        (float('nan'), 100, 1000),
    ])
    def test_rejects_non_positive_inputs(self, investment, quantity, market_cap):
        """Missing, zero, negative or NaN inputs raise InvalidInput."""
        with pytest.raises(InvalidInput):
            open_position(investment, quantity, market_cap, 1000)

    def test_behavioral_defaults(self, position):
        """Behavioral data defaults to mid-scale values."""
        assert position.behavioral == BehaviorData()


class TestRecordBuy:
    """Consecutive buys recompute the weighted entry."""

    def test_equal_quantity_buys_average_market_cap(self):
        """Two equal-quantity buys average the market caps."""
        p = open_position(1.0, 1000, 100_000, 0, now=T0)
        p = record_buy(p, 3.0, 300_000, 1000, now=T0 + timedelta(hours=1))
        assert p.entry_market_cap == pytest.approx(200_000)
        assert p.sol_investment == pytest.approx(4.0)
        assert p.token_quantity == pytest.approx(2000)
        assert len(p.buys) == 2

    def test_weighted_by_token_quantity(self):
        """Larger token buys pull the entry harder."""
        p = open_position(1.0, 3000, 100_000, 0)
        p = record_buy(p, 1.0, 200_000, 1000)
        assert p.entry_market_cap == pytest.approx((3000 * 100_000 + 1000 * 200_000) / 4000)

    def test_buy_after_partial_sell_updates_remaining(self, position):
        """Remaining investment uses the new total and the sold percentage."""
        p = record_sell(position, 50, 200_000)
        p = record_buy(p, 10.0, 100_000, 1_000_000)
        assert p.remaining_investment == pytest.approx(10.0)

    def test_zero_sol_rejected(self, position):
        """A zero-SOL buy raises and leaves the position unchanged."""
        with pytest.raises(InvalidInput):
            record_buy(position, 0, 100_000, 1000)
        assert position.sol_investment == 10.0
        assert len(position.buys) == 1

    def test_buy_on_completed_rejected(self, position):
        """Completed positions take no more buys."""
        closed = record_sell(position, 100, 150_000)
        with pytest.raises(PositionClosed):
            record_buy(closed, 1.0, 100_000, 1000)

    def test_input_not_mutated(self, position):
        """The original position object is untouched."""
        record_buy(position, 5.0, 50_000, 1000)
        assert len(position.buys) == 1
        assert position.entry_market_cap == 100_000


class TestRecordSell:
    """Partial sells by percentage of the original bag."""

    def test_partial_sell_stays_active(self, position):
        """Selling under 100% keeps the position active."""
        p = record_sell(position, 30, 200_000, time_of_day=TimeOfDay.MORNING)
        assert p.status == PositionStatus.ACTIVE
        assert p.percentage_sold == pytest.approx(30)
        assert p.remaining_investment == pytest.approx(7.0)
        assert p.sells[0].time_of_day == TimeOfDay.MORNING

    def test_exact_hundred_completes(self, position):
        """Sells totalling 100% complete the position."""
        p = record_sell(position, 60, 200_000)
        p = record_sell(p, 40, 300_000)
        assert p.status == PositionStatus.COMPLETED
        assert p.percentage_sold == 100
        assert p.remaining_investment == 0

    def test_thirds_complete_within_epsilon(self, position):
        """Three sells of 100/3 complete despite float drift."""
        p = position
        for _ in range(3):
            p = record_sell(p, 100 / 3, 200_000)
        assert p.status == PositionStatus.COMPLETED
        assert p.percentage_sold == 100
        assert p.remaining_investment == 0

    def test_over_hundred_rejected(self, position):
        """Exceeding 100% cumulative is rejected, state unchanged."""
        p = record_sell(position, 70, 200_000)
        with pytest.raises(InvalidPercentage):
            record_sell(p, 40, 200_000)
        assert p.percentage_sold == pytest.approx(70)
        assert len(p.sells) == 1

    @pytest.mark.parametrize("pct", [0, -5, float('nan')])
    def test_non_positive_percentage_rejected(self, position, pct):
        """Zero, negative or NaN percentages raise InvalidPercentage."""
        with pytest.raises(InvalidPercentage):
            record_sell(position, pct, 200_000)

    def test_bad_market_cap_rejected(self, position):
        """A non-positive sale market cap raises InvalidInput."""
        with pytest.raises(InvalidInput):
            record_sell(position, 10, 0)

    def test_negative_sol_received_rejected(self, position):
        """Negative SOL received raises InvalidInput."""
        with pytest.raises(InvalidInput):
            record_sell(position, 10, 100_000, sol_received=-1)

    def test_unknown_time_of_day_rejected(self, position):
        """Only the four time-of-day buckets are accepted."""
        with pytest.raises(InvalidInput):
            record_sell(position, 10, 100_000, time_of_day="Brunch")

    def test_sell_on_completed_rejected(self, position):
        """Completed positions take no more sells."""
        closed = record_sell(position, 100, 100_000)
        with pytest.raises(PositionClosed):
            record_sell(closed, 1, 100_000)


class TestRealizedPerformance:
    """Realized P&L from market cap multiples."""

    def test_no_sells_is_zero(self, position):
        """An unsold position has all-zero performance."""
        perf = realized_performance(position)
        assert perf.realized_pnl == 0
        assert perf.total_value_from_sells == 0
        assert perf.cost_of_goods_sold == 0
        assert perf.average_sell_multiplier == 0
        assert perf.roi == 0

    def test_two_leg_exit(self, position):
        """10 SOL @100k: half @200k then half @50k."""
        p = record_sell(position, 50, 200_000)
        perf = realized_performance(p)
        assert perf.realized_pnl == pytest.approx(5.0)
        assert perf.roi == pytest.approx(100.0)
        assert perf.average_sell_multiplier == pytest.approx(2.0)

        p = record_sell(p, 50, 50_000)
        perf = realized_performance(p)
        assert p.status == PositionStatus.COMPLETED
        assert perf.realized_pnl == pytest.approx(2.5)
        assert perf.total_value_from_sells == pytest.approx(12.5)
        assert perf.cost_of_goods_sold == pytest.approx(10.0)
        assert perf.roi == pytest.approx(25.0)

    def test_losing_exit(self, position):
        """Selling below entry gives a negative ROI."""
        p = record_sell(position, 100, 25_000)
        perf = realized_performance(p)
        assert perf.realized_pnl == pytest.approx(-7.5)
        assert perf.roi == pytest.approx(-75.0)

    @pytest.mark.parametrize("broken", [
        {'entry_market_cap': 0},
        {'entry_market_cap': None},
        {'entry_market_cap': float('nan')},
        {'sol_investment': "abc"},
    ])
    def test_degenerate_position_is_zero(self, position, broken):
        """Unusable entry or investment yields zeros even with sells recorded."""
        sold = record_sell(position, 50, 200_000)
        assert realized_performance(replace(sold, **broken)) == Performance()


class TestDerivedViews:
    """Helpers used by history and coaching."""

    def test_unrealized_multiple(self, position):
        assert unrealized_multiple(position, 250_000) == pytest.approx(2.5)

    def test_exit_market_cap_defaults_to_entry(self, position):
        assert exit_market_cap(position) == 100_000
        p = record_sell(position, 10, 400_000)
        assert exit_market_cap(p) == 400_000

    def test_hold_duration_to_last_sell(self, position):
        p = record_sell(position, 100, 200_000, now=T0 + timedelta(days=3))
        assert hold_duration(p) == timedelta(days=3)
