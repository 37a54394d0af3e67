"""Pydantic models shared by several routers."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from journal.core.ledger import Position, PositionStatus, TimeOfDay, realized_performance


class BehaviorModel(BaseModel):
    entry_sentiment: int = Field(5, ge=1, le=10)
    fear_level: int = Field(5, ge=1, le=10)
    confidence_level: int = Field(5, ge=1, le=10)
    patience_level: int = Field(5, ge=1, le=10)
    state_of_mind: str = Field("", max_length=200)
    research_time: float = Field(0.0, ge=0)
    investment_thesis: str = Field("", max_length=5000)
    groupthink_influence: bool = False
    group_sentiment: str = Field("", max_length=200)
    sleep_quality: int = Field(5, ge=1, le=10)
    distractions: str = Field("", max_length=1000)

    class Config:
        from_attributes = True


class BuyEventResponse(BaseModel):
    id: str
    date: datetime
    sol_amount: float
    token_quantity: float
    market_cap: float

    class Config:
        from_attributes = True


class SellEventResponse(BaseModel):
    id: str
    date: datetime
    percentage: float
    market_cap: float
    sol_received: float
    time_of_day: TimeOfDay

    class Config:
        from_attributes = True


class PerformanceResponse(BaseModel):
    realized_pnl: float
    total_value_from_sells: float
    cost_of_goods_sold: float
    average_sell_multiplier: float
    roi: float

    class Config:
        from_attributes = True


class PositionResponse(BaseModel):
    id: str
    token_name: str
    ticker: str
    token_address: str
    status: PositionStatus
    sol_investment: float
    token_quantity: float
    entry_market_cap: float
    total_supply: float
    ownership_percentage: float
    ath_market_cap: Optional[float]
    ath_date: Optional[datetime]
    percentage_sold: float
    remaining_percentage: float
    remaining_investment: float
    decision_quality: int
    behavioral: BehaviorModel
    buys: List[BuyEventResponse]
    sells: List[SellEventResponse]
    entry_date: datetime
    created_at: datetime
    updated_at: datetime
    performance: Optional[PerformanceResponse] = None

    class Config:
        from_attributes = True


def position_response(position: Position) -> PositionResponse:
    """Response model for a position with its realized performance attached."""
    response = PositionResponse.model_validate(position)
    response.performance = PerformanceResponse.model_validate(realized_performance(position))
    return response
