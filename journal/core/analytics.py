"""
Journal Analytics

Aggregations over the position list for the dashboard, trade history and
analytics views. Every ROI figure here is the realized ROI from the ledger
(P&L over cost of goods sold), so all views agree.
"""
import calendar
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from journal.core.errors import InvalidInput
from journal.core.ledger import (
    Performance, Position, PositionStatus, exit_market_cap, hold_duration,
    realized_performance,
)
from journal.utils.constants import (
    ANALYTICS_PERIODS, HISTORY_OUTCOMES, HISTORY_SORTS, MARKET_CAP_BUCKETS,
)


@dataclass(frozen=True)
class HistoryEntry:
    """A completed trade with its derived history-view figures."""
    trade: Position
    performance: Performance
    exit_market_cap: float
    hold_time: str

    @property
    def profit(self) -> float:
        return self.performance.realized_pnl

    @property
    def roi(self) -> float:
        return self.performance.roi


def _completed(trades: Iterable[Position]) -> List[Position]:
    return [t for t in trades if t.status == PositionStatus.COMPLETED]


def subtract_months(moment: datetime, months: int) -> datetime:
    """Calendar-aware month subtraction, clamping the day to the target month."""
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def format_hold_time(delta: timedelta) -> str:
    days = delta.days
    if days < 1:
        return f"{round(delta.total_seconds() / 3600)} hours"
    return f"{days} days"


def dashboard_stats(trades: Iterable[Position]) -> Dict:
    """Headline numbers: lifetime SOL invested, realized P&L and counts."""
    trades = list(trades)
    return {
        'total_sol_invested': sum(t.sol_investment for t in trades),
        'total_realized_pnl': sum(realized_performance(t).realized_pnl for t in trades),
        'active_trades': sum(1 for t in trades if t.status == PositionStatus.ACTIVE),
        'completed_trades': sum(1 for t in trades if t.status == PositionStatus.COMPLETED),
        'total_trades': len(trades),
    }


def history(
    trades: Iterable[Position],
    search: Optional[str] = None,
    outcome: str = 'all',
    days: Optional[int] = None,
    sort: str = 'date-desc',
    now: Optional[datetime] = None,
) -> Dict:
    """
    Completed trades filtered, sorted and summarized for the history view.

    Args:
        search: case-insensitive substring of token name or ticker
        outcome: 'all', 'wins' (roi > 0) or 'losses' (roi <= 0)
        days: keep trades last updated within this many days
        sort: one of HISTORY_SORTS
    """
    if outcome not in HISTORY_OUTCOMES:
        raise InvalidInput(f"Unknown outcome filter {outcome!r}")
    if sort not in HISTORY_SORTS:
        raise InvalidInput(f"Unknown sort {sort!r}")

    entries = [
        HistoryEntry(
            trade=t,
            performance=realized_performance(t),
            exit_market_cap=exit_market_cap(t),
            hold_time=format_hold_time(hold_duration(t)),
        )
        for t in _completed(trades)
    ]

    if search:
        needle = search.lower()
        entries = [e for e in entries
                   if needle in e.trade.token_name.lower() or needle in e.trade.ticker.lower()]

    if outcome == 'wins':
        entries = [e for e in entries if e.roi > 0]
    elif outcome == 'losses':
        entries = [e for e in entries if e.roi <= 0]

    if days is not None:
        cutoff = (now or datetime.utcnow()) - timedelta(days=days)
        entries = [e for e in entries if e.trade.updated_at > cutoff]

    sort_keys = {
        'date-desc': (lambda e: e.trade.updated_at, True),
        'date-asc': (lambda e: e.trade.updated_at, False),
        'roi-desc': (lambda e: e.roi, True),
        'roi-asc': (lambda e: e.roi, False),
        'profit-desc': (lambda e: e.profit, True),
    }
    key, reverse = sort_keys[sort]
    entries.sort(key=key, reverse=reverse)

    total = len(entries)
    winners = sum(1 for e in entries if e.roi > 0)
    return {
        'trades': entries,
        'summary': {
            'total_trades': total,
            'win_rate': winners / total * 100 if total else 0.0,
            'total_profit': sum(e.profit for e in entries),
            'avg_roi': sum(e.roi for e in entries) / total if total else 0.0,
        },
    }


def overview(trades: Iterable[Position], period: str = 'all',
             now: Optional[datetime] = None) -> Optional[Dict]:
    """
    Analytics page data for completed trades within ``period``.

    Returns None when the journal has no completed trades at all, and a
    payload with ``has_data`` False when the period filter leaves none.
    """
    if period != 'all' and period not in ANALYTICS_PERIODS:
        raise InvalidInput(f"Unknown period {period!r}")

    completed = _completed(trades)
    if not completed:
        return None

    if period != 'all':
        start = subtract_months(now or datetime.utcnow(), ANALYTICS_PERIODS[period])
        completed = [t for t in completed if t.updated_at >= start]

    if not completed:
        return {
            'performance': [],
            'market_caps': [],
            'psychology': [],
            'time_of_day': [],
            'has_data': False,
        }

    perf = {t.id: realized_performance(t) for t in completed}

    return {
        'performance': _monthly_performance(completed, perf),
        'market_caps': _market_cap_buckets(completed, perf),
        'psychology': _psychology_impact(completed, perf),
        'time_of_day': _time_of_day(completed),
        'has_data': True,
    }


def _monthly_performance(trades: List[Position], perf: Dict[str, Performance]) -> List[Dict]:
    months = OrderedDict()
    for t in sorted(trades, key=lambda t: t.updated_at):
        key = t.updated_at.strftime('%b %Y')
        months.setdefault(key, []).append(t)
    rows = []
    for month, bucket in months.items():
        wins = sum(1 for t in bucket if perf[t.id].realized_pnl > 0)
        rows.append({
            'month': month,
            'profit': sum(perf[t.id].realized_pnl for t in bucket),
            'win_rate': wins / len(bucket) * 100,
            'trades': len(bucket),
        })
    return rows


def _market_cap_buckets(trades: List[Position], perf: Dict[str, Performance]) -> List[Dict]:
    rows = []
    for label, lower, upper in MARKET_CAP_BUCKETS:
        bucket = [t for t in trades if lower <= t.entry_market_cap < upper]
        if not bucket:
            continue
        wins = sum(1 for t in bucket if perf[t.id].realized_pnl > 0)
        rows.append({
            'range': label,
            'trades': len(bucket),
            'avg_roi': sum(perf[t.id].roi for t in bucket) / len(bucket),
            'win_rate': wins / len(bucket) * 100,
        })
    return rows


def _psychology_impact(trades: List[Position], perf: Dict[str, Performance]) -> List[Dict]:
    states = OrderedDict()
    for t in trades:
        states.setdefault(t.behavioral.state_of_mind or 'Unknown', []).append(t)
    return [
        {
            'factor': state,
            'trades': len(bucket),
            'avg_roi': sum(perf[t.id].roi for t in bucket) / len(bucket),
        }
        for state, bucket in states.items()
    ]


def _time_of_day(trades: List[Position]) -> List[Dict]:
    """Per-sell P&L grouped by the sell's time-of-day bucket."""
    buckets = OrderedDict()
    for t in trades:
        entry_mc = t.entry_market_cap or 0
        for sell in t.sells:
            row = buckets.setdefault(sell.time_of_day.value, {'count': 0, 'pnl': 0.0})
            cost = t.sol_investment * (sell.percentage or 0) / 100
            value = cost * (sell.market_cap / entry_mc) if entry_mc > 0 else 0.0
            row['count'] += 1
            row['pnl'] += value - cost
    return [{'name': name, 'count': row['count'], 'pnl': row['pnl']}
            for name, row in buckets.items()]


def history_metrics(trades: Iterable[Position]) -> Dict:
    """Win rate and ROI spread used by the pattern-analysis coach."""
    trades = list(trades)
    perfs = [realized_performance(t) for t in trades]
    wins = [p for p in perfs if p.realized_pnl > 0]
    losses = [p for p in perfs if p.realized_pnl < 0]
    return {
        'total_trades': len(trades),
        'win_rate': len(wins) / len(trades) * 100 if trades else 0.0,
        'avg_win_roi': sum(p.roi for p in wins) / len(wins) if wins else 0.0,
        'avg_loss_roi': sum(p.roi for p in losses) / len(losses) if losses else 0.0,
        'best_trade': max((p.roi for p in perfs), default=0.0),
        'worst_trade': min((p.roi for p in perfs), default=0.0),
    }


def trade_summary(trades: Iterable[Position]) -> str:
    """Plain-text performance summary embedded in coach prompts."""
    trades = list(trades)
    perfs = [realized_performance(t) for t in trades]
    winning = sum(1 for p in perfs if p.realized_pnl > 0)
    avg_roi = sum(p.roi for p in perfs) / len(perfs) if perfs else 0.0
    total_pnl = sum(p.realized_pnl for p in perfs)
    return (
        f"Total Trades: {len(trades)}\n"
        f"Win Rate: {winning / max(len(trades), 1) * 100:.1f}%\n"
        f"Average ROI (realized): {avg_roi:.2f}%\n"
        f"Total Realized PnL: {total_pnl:.3f} SOL"
    )
