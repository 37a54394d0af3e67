"""
Trade (position) endpoints: open, buy, sell, annotate, delete.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field

from journal.api.deps import get_trade_store
from journal.api.schemas import (
    BehaviorModel, PerformanceResponse, PositionResponse, position_response,
)
from journal.core.analytics import dashboard_stats
from journal.core.errors import InvalidInput
from journal.core.ledger import BehaviorData, PositionStatus, TimeOfDay, realized_performance
from journal.core.store import TradeStore
from journal.utils.constants import DEFAULT_QUERY_LIMIT, MAX_QUERY_LIMIT

router = APIRouter()

class TradeCreate(BaseModel):
    token_name: str = Field("", max_length=200)
    ticker: str = Field("", max_length=32)
    token_address: str = Field("", max_length=128)
    sol_investment: float = Field(..., gt=0, description="Opening buy in SOL")
    token_quantity: Optional[float] = Field(None, gt=0, description="Derived from market cap and supply when omitted")
    entry_market_cap: float = Field(..., gt=0)
    total_supply: float = Field(0, ge=0)
    ath_market_cap: Optional[float] = Field(None, gt=0)
    ath_date: Optional[datetime] = None
    behavioral: BehaviorModel = Field(default_factory=BehaviorModel)

class TradeUpdate(BaseModel):
    token_name: Optional[str] = Field(None, max_length=200)
    ticker: Optional[str] = Field(None, max_length=32)
    token_address: Optional[str] = Field(None, max_length=128)
    ath_market_cap: Optional[float] = Field(None, gt=0)
    ath_date: Optional[datetime] = None
    behavioral: Optional[BehaviorModel] = None

class BuyCreate(BaseModel):
    sol_amount: float = Field(..., gt=0)
    market_cap: float = Field(..., gt=0)
    token_quantity: Optional[float] = Field(None, gt=0)

class SellCreate(BaseModel):
    percentage: float = Field(..., gt=0, le=100, description="Percent of the original bag")
    market_cap: float = Field(..., gt=0)
    sol_received: float = Field(0.0, ge=0)
    time_of_day: TimeOfDay = TimeOfDay.AFTERNOON

def derive_token_quantity(sol_amount: float, market_cap: float, total_supply: float) -> float:
    """Tokens bought for ``sol_amount`` when price is market cap over supply."""
    if not total_supply or total_supply <= 0:
        raise InvalidInput("token_quantity is required when total_supply is unknown")
    return sol_amount / market_cap * total_supply

@router.get("/", response_model=List[PositionResponse])
def list_trades(
    status: Optional[PositionStatus] = Query(None, description="Filter by status (active, completed)"),
    limit: int = Query(DEFAULT_QUERY_LIMIT, ge=1, le=MAX_QUERY_LIMIT, description="Maximum number of results"),
    store: TradeStore = Depends(get_trade_store)
):
    """
    List trades, newest first.
    """
    trades = list(store.trades)
    if status:
        trades = [t for t in trades if t.status == status]
    trades.sort(key=lambda t: t.entry_date, reverse=True)
    return [position_response(t) for t in trades[:limit]]

@router.post("/", response_model=PositionResponse, status_code=201)
def open_trade(body: TradeCreate, store: TradeStore = Depends(get_trade_store)):
    """
    Open a position with its first buy.
    """
    quantity = body.token_quantity or derive_token_quantity(
        body.sol_investment, body.entry_market_cap, body.total_supply
    )
    position = store.add_trade(
        body.sol_investment,
        quantity,
        body.entry_market_cap,
        body.total_supply,
        token_name=body.token_name,
        ticker=body.ticker.upper(),
        token_address=body.token_address,
        ath_market_cap=body.ath_market_cap,
        ath_date=body.ath_date,
        behavioral=BehaviorData(**body.behavioral.model_dump()),
    )
    return position_response(position)

@router.get("/stats/summary")
def trade_stats(store: TradeStore = Depends(get_trade_store)):
    """
    Dashboard headline numbers.
    """
    return dashboard_stats(store.trades)

@router.get("/{trade_id}", response_model=PositionResponse)
def get_trade(trade_id: str, store: TradeStore = Depends(get_trade_store)):
    """
    Get specific trade by ID.
    """
    return position_response(store.get_trade(trade_id))

@router.patch("/{trade_id}", response_model=PositionResponse)
def update_trade(trade_id: str, body: TradeUpdate, store: TradeStore = Depends(get_trade_store)):
    """
    Edit descriptive fields and behavioral notes.
    """
    # only the ATH fields may be cleared with an explicit null
    updates = {
        k: v for k, v in body.model_dump(exclude_unset=True).items()
        if v is not None or k in ('ath_market_cap', 'ath_date')
    }
    if 'ticker' in updates:
        updates['ticker'] = updates['ticker'].upper()
    return position_response(store.annotate_trade(trade_id, **updates))

@router.delete("/{trade_id}", status_code=204)
def delete_trade(trade_id: str, store: TradeStore = Depends(get_trade_store)):
    """
    Delete a trade and its reflection.
    """
    store.delete_trade(trade_id)
    return Response(status_code=204)

@router.post("/{trade_id}/buys", response_model=PositionResponse)
def add_buy(trade_id: str, body: BuyCreate, store: TradeStore = Depends(get_trade_store)):
    """
    Record a consecutive buy.
    """
    quantity = body.token_quantity
    if quantity is None:
        quantity = derive_token_quantity(
            body.sol_amount, body.market_cap, store.get_trade(trade_id).total_supply
        )
    return position_response(store.add_buy(trade_id, body.sol_amount, body.market_cap, quantity))

@router.post("/{trade_id}/sells", response_model=PositionResponse)
def add_sell(trade_id: str, body: SellCreate, store: TradeStore = Depends(get_trade_store)):
    """
    Record a partial sell. Reaching 100% sold completes the trade.
    """
    position = store.add_sell(
        trade_id, body.percentage, body.market_cap, body.sol_received, body.time_of_day
    )
    return position_response(position)

@router.get("/{trade_id}/performance", response_model=PerformanceResponse)
def trade_performance(trade_id: str, store: TradeStore = Depends(get_trade_store)):
    """
    Realized performance of a trade's sells.
    """
    return PerformanceResponse.model_validate(realized_performance(store.get_trade(trade_id)))
