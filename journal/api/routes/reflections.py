"""
Post-trade reflection endpoints.
"""
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from journal.api.deps import get_trade_store
from journal.core.reflection import RepeatDecision
from journal.core.store import TradeStore
from journal.utils.constants import DEFAULT_QUERY_LIMIT, MAX_QUERY_LIMIT, MAX_TEXT_LENGTH

router = APIRouter()

class ReflectionCreate(BaseModel):
    trade_id: str
    decision_quality: int = Field(..., ge=1, le=10)
    what_went_well: str = Field("", max_length=MAX_TEXT_LENGTH)
    what_could_be_improved: str = Field("", max_length=MAX_TEXT_LENGTH)
    key_mistakes: List[str] = Field(default_factory=list)
    lessons_learned: str = Field("", max_length=MAX_TEXT_LENGTH)
    would_repeat_trade: RepeatDecision = RepeatDecision.MAYBE
    alternative_actions: str = Field("", max_length=MAX_TEXT_LENGTH)
    emotional_state_tags: List[str] = Field(default_factory=list)
    market_condition_tags: List[str] = Field(default_factory=list)

class ReflectionResponse(BaseModel):
    id: str
    trade_id: str
    reflection_date: datetime
    decision_quality: int
    what_went_well: str
    what_could_be_improved: str
    key_mistakes: List[str]
    lessons_learned: str
    would_repeat_trade: RepeatDecision
    alternative_actions: str
    emotional_state_tags: List[str]
    market_condition_tags: List[str]

    class Config:
        from_attributes = True

@router.get("/", response_model=List[ReflectionResponse])
def list_reflections(
    limit: int = Query(DEFAULT_QUERY_LIMIT, ge=1, le=MAX_QUERY_LIMIT, description="Maximum number of results"),
    store: TradeStore = Depends(get_trade_store)
):
    """
    List reflections, newest first.
    """
    reflections = sorted(store.reflections, key=lambda r: r.reflection_date, reverse=True)
    return [ReflectionResponse.model_validate(r) for r in reflections[:limit]]

@router.post("/", response_model=ReflectionResponse, status_code=201)
def create_reflection(body: ReflectionCreate, store: TradeStore = Depends(get_trade_store)):
    """
    Reflect on a completed trade. One reflection per trade.
    """
    fields = body.model_dump(exclude={'trade_id', 'decision_quality'})
    reflection = store.add_reflection(body.trade_id, body.decision_quality, **fields)
    return ReflectionResponse.model_validate(reflection)

@router.get("/trade/{trade_id}", response_model=ReflectionResponse)
def get_reflection_for_trade(trade_id: str, store: TradeStore = Depends(get_trade_store)):
    """
    Get the reflection attached to a trade.
    """
    store.get_trade(trade_id)
    reflection = store.reflection_for(trade_id)
    if reflection is None:
        raise HTTPException(status_code=404, detail=f"No reflection for trade {trade_id}")
    return ReflectionResponse.model_validate(reflection)
