"""
Analytics Tests
================
History filters, overview aggregation and dashboard stats.
"""
from datetime import datetime, timedelta

import pytest

from journal.core.analytics import (
    dashboard_stats, format_hold_time, history, history_metrics, overview,
    subtract_months, trade_summary,
)
from journal.core.errors import InvalidInput
from journal.core.ledger import BehaviorData, TimeOfDay, open_position, record_sell

NOW = datetime(2024, 6, 15, 12, 0, 0)


def _closed(name, entry_mc, exit_mc, closed_at, state="Calm", time_of_day=TimeOfDay.AFTERNOON,
            opened_at=None):
    p = open_position(
        1.0, 1000, entry_mc, 1_000_000, token_name=name, ticker=name[:4].upper(),
        behavioral=BehaviorData(state_of_mind=state), now=opened_at or closed_at - timedelta(days=2),
    )
    return record_sell(p, 100, exit_mc, time_of_day=time_of_day, now=closed_at)


@pytest.fixture
def journal():
    """Two winners, one loser and one open trade."""
    return [
        _closed("Alpha", 50_000, 150_000, NOW - timedelta(days=3), state="Calm", time_of_day=TimeOfDay.MORNING),
        _closed("Bravo", 200_000, 100_000, NOW - timedelta(days=40), state="FOMO", time_of_day=TimeOfDay.NIGHT),
        _closed("Charlie", 2_000_000, 3_000_000, NOW - timedelta(days=200), state="Calm"),
        open_position(2.0, 500, 80_000, 1_000_000, token_name="Delta", now=NOW),
    ]


class TestHelpers:

    def test_subtract_months_clamps_day(self):
        assert subtract_months(datetime(2024, 3, 31), 1) == datetime(2024, 2, 29)
        assert subtract_months(datetime(2024, 1, 15), 3) == datetime(2023, 10, 15)

    def test_format_hold_time(self):
        assert format_hold_time(timedelta(hours=5)) == "5 hours"
        assert format_hold_time(timedelta(days=4, hours=3)) == "4 days"


class TestDashboardStats:

    def test_counts_and_totals(self, journal):
        stats = dashboard_stats(journal)
        assert stats['total_trades'] == 4
        assert stats['active_trades'] == 1
        assert stats['completed_trades'] == 3
        assert stats['total_sol_invested'] == pytest.approx(5.0)
        # +2.0, -0.5, +0.5
        assert stats['total_realized_pnl'] == pytest.approx(2.0)


class TestHistory:
    """Completed trade history view."""

    def test_only_completed(self, journal):
        result = history(journal, now=NOW)
        names = [e.trade.token_name for e in result['trades']]
        assert names == ["Alpha", "Bravo", "Charlie"]

    def test_summary(self, journal):
        summary = history(journal, now=NOW)['summary']
        assert summary['total_trades'] == 3
        assert summary['win_rate'] == pytest.approx(200 / 3)
        assert summary['total_profit'] == pytest.approx(2.0)
        assert summary['avg_roi'] == pytest.approx((200 - 50 + 50) / 3)

    def test_outcome_filters(self, journal):
        wins = history(journal, outcome='wins', now=NOW)['trades']
        losses = history(journal, outcome='losses', now=NOW)['trades']
        assert {e.trade.token_name for e in wins} == {"Alpha", "Charlie"}
        assert [e.trade.token_name for e in losses] == ["Bravo"]

    def test_search_matches_name_or_ticker(self, journal):
        assert [e.trade.token_name for e in history(journal, search="brav")['trades']] == ["Bravo"]
        assert [e.trade.token_name for e in history(journal, search="CHAR")['trades']] == ["Charlie"]

    def test_days_window(self, journal):
        recent = history(journal, days=30, now=NOW)['trades']
        assert [e.trade.token_name for e in recent] == ["Alpha"]

    def test_sort_by_roi(self, journal):
        result = history(journal, sort='roi-desc', now=NOW)['trades']
        assert [e.trade.token_name for e in result] == ["Alpha", "Charlie", "Bravo"]

    def test_entry_fields(self, journal):
        entry = history(journal, search="alpha")['trades'][0]
        assert entry.exit_market_cap == 150_000
        assert entry.hold_time == "2 days"
        assert entry.roi == pytest.approx(200.0)

    def test_unknown_sort(self, journal):
        with pytest.raises(InvalidInput):
            history(journal, sort='vibes')

    def test_unknown_outcome(self, journal):
        with pytest.raises(InvalidInput):
            history(journal, outcome='draws')


class TestOverview:
    """Analytics page aggregation."""

    def test_none_without_completed(self):
        assert overview([open_position(1.0, 10, 1000, 0)]) is None

    def test_all_period(self, journal):
        data = overview(journal, now=NOW)
        assert data['has_data'] is True
        assert [row['month'] for row in data['performance']] == ["Nov 2023", "May 2024", "Jun 2024"]
        assert sum(row['trades'] for row in data['performance']) == 3

    def test_market_cap_buckets(self, journal):
        buckets = {row['range']: row for row in overview(journal, now=NOW)['market_caps']}
        assert buckets['<100K']['trades'] == 1
        assert buckets['<100K']['avg_roi'] == pytest.approx(200.0)
        assert buckets['100K-500K']['win_rate'] == 0
        assert buckets['>1M']['trades'] == 1
        assert '500K-1M' not in buckets

    def test_psychology_impact(self, journal):
        factors = {row['factor']: row for row in overview(journal, now=NOW)['psychology']}
        assert factors['Calm']['trades'] == 2
        assert factors['Calm']['avg_roi'] == pytest.approx(125.0)
        assert factors['FOMO']['avg_roi'] == pytest.approx(-50.0)

    def test_time_of_day(self, journal):
        buckets = {row['name']: row for row in overview(journal, now=NOW)['time_of_day']}
        assert buckets['Morning'] == {'name': 'Morning', 'count': 1, 'pnl': pytest.approx(2.0)}
        assert buckets['Night']['pnl'] == pytest.approx(-0.5)

    def test_period_filter(self, journal):
        data = overview(journal, period='1m', now=NOW)
        assert [row['trades'] for row in data['performance']] == [1]

    def test_period_with_nothing_left(self):
        old = _closed("Old", 100_000, 200_000, NOW - timedelta(days=500))
        data = overview([old], period='1m', now=NOW)
        assert data['has_data'] is False
        assert data['performance'] == []

    def test_unknown_period(self, journal):
        with pytest.raises(InvalidInput):
            overview(journal, period='5y')


class TestCoachSummaries:

    def test_history_metrics(self, journal):
        metrics = history_metrics(journal[:3])
        assert metrics['total_trades'] == 3
        assert metrics['best_trade'] == pytest.approx(200.0)
        assert metrics['worst_trade'] == pytest.approx(-50.0)
        assert metrics['avg_loss_roi'] == pytest.approx(-50.0)

    def test_trade_summary_text(self, journal):
        text = trade_summary(journal[:3])
        assert "Total Trades: 3" in text
        assert "Win Rate: 66.7%" in text
        assert "Total Realized PnL: 2.000 SOL" in text
