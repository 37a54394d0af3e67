"""
Analytics endpoints: performance overview and trade history.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from journal.api.deps import get_trade_store
from journal.api.schemas import PerformanceResponse, position_response
from journal.core import analytics
from journal.core.store import TradeStore

router = APIRouter()

@router.get("/overview")
def analytics_overview(
    period: str = Query("all", description="1m, 3m, 6m, 1y or all"),
    store: TradeStore = Depends(get_trade_store)
):
    """
    Monthly performance, market cap buckets, psychology impact and
    time-of-day breakdown for completed trades.
    """
    data = analytics.overview(store.trades, period)
    if data is None:
        return {"has_data": False, "message": "No completed trades"}
    return data

@router.get("/history")
def trade_history(
    search: Optional[str] = Query(None, description="Token name or ticker contains"),
    outcome: str = Query("all", description="all, wins or losses"),
    days: Optional[int] = Query(None, ge=1, description="Only trades updated in the last N days"),
    sort: str = Query("date-desc", description="date-desc, date-asc, roi-desc, roi-asc, profit-desc"),
    store: TradeStore = Depends(get_trade_store)
):
    """
    Completed trades with realized results and summary statistics.
    """
    result = analytics.history(store.trades, search=search, outcome=outcome, days=days, sort=sort)
    return {
        "summary": result['summary'],
        "trades": [
            {
                "trade": position_response(entry.trade),
                "performance": PerformanceResponse.model_validate(entry.performance),
                "exit_market_cap": entry.exit_market_cap,
                "hold_time": entry.hold_time,
            }
            for entry in result['trades']
        ],
    }
