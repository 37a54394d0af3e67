"""
AI coach endpoints. Each call is a single request/response round trip to
the completion service; failures surface as a generic 500.
"""
from dataclasses import asdict
from typing import Any, List, Literal, Optional

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError, model_validator

from journal.ai.client import CompletionError
from journal.ai.services import CoachService
from journal.api.deps import get_coach_service, get_rate_limiter, get_trade_store
from journal.api.rate_limit import RateLimiter
from journal.core.store import TradeStore
from journal.utils import metrics
from journal.utils.constants import MAX_TEXT_LENGTH
from journal.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

class TradeSetup(BaseModel):
    token_name: str = ""
    ticker: str = ""
    entry_market_cap: float = Field(0, ge=0)
    sol_investment: float = Field(0, ge=0)

class PsychologySnapshot(BaseModel):
    entry_sentiment: Optional[int] = Field(None, ge=1, le=10)
    fear_level: Optional[int] = Field(None, ge=1, le=10)
    confidence_level: Optional[int] = Field(None, ge=1, le=10)
    patience_level: Optional[int] = Field(None, ge=1, le=10)
    state_of_mind: Optional[str] = None
    research_time: Optional[float] = Field(None, ge=0)

class AnalyzeTradeRequest(BaseModel):
    trade: TradeSetup
    psychology: PsychologySnapshot

class ExitRequest(BaseModel):
    trade_id: str
    current_market_cap: float = Field(..., gt=0)

class PatternRequest(BaseModel):
    trade_ids: Optional[List[str]] = None

class CoachRequest(BaseModel):
    question: str = Field(..., min_length=1, max_length=MAX_TEXT_LENGTH)
    include_recent_trades: bool = True
    recent_limit: int = Field(10, ge=1, le=100)
    psychology: Optional[PsychologySnapshot] = None

class ChatMessage(BaseModel):
    role: Literal['user', 'assistant', 'system']
    content: str = Field(..., min_length=1, max_length=MAX_TEXT_LENGTH)

class FionaRequest(BaseModel):
    messages: Optional[List[ChatMessage]] = None
    prompt: Optional[str] = Field(None, min_length=1, max_length=MAX_TEXT_LENGTH)
    context: Optional[str] = Field(None, max_length=MAX_TEXT_LENGTH)

    @model_validator(mode='after')
    def require_prompt_or_messages(self):
        has_messages = bool(self.messages)
        has_prompt = bool(self.prompt and self.prompt.strip())
        if not (has_messages or has_prompt):
            raise ValueError('Provide either messages[] or prompt')
        return self

def _call(endpoint: str, action):
    try:
        result = action()
    except CompletionError:
        metrics.record_coach_request(endpoint, 'error')
        raise
    metrics.record_coach_request(endpoint, 'ok')
    return result

def _client_ip(request: Request) -> str:
    forwarded = request.headers.get('x-forwarded-for')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.client.host if request.client else 'unknown'

@router.post("/analyze-trade")
def analyze_trade(body: AnalyzeTradeRequest, coach: CoachService = Depends(get_coach_service)):
    """
    Risk assessment of a trade setup and the trader's state of mind.
    """
    response = _call('analyze-trade', lambda: coach.analyze_trade_setup(
        body.trade.model_dump(), body.psychology.model_dump()
    ))
    return asdict(response)

@router.post("/exit-recommendation")
def exit_recommendation(
    body: ExitRequest,
    coach: CoachService = Depends(get_coach_service),
    store: TradeStore = Depends(get_trade_store)
):
    """
    Exit plan for an active trade at the current market cap.
    """
    position = store.get_trade(body.trade_id)
    response = _call('exit-recommendation', lambda: coach.generate_exit_recommendation(
        position, body.current_market_cap
    ))
    return asdict(response)

@router.post("/patterns")
def trading_patterns(
    body: Optional[PatternRequest] = None,
    coach: CoachService = Depends(get_coach_service),
    store: TradeStore = Depends(get_trade_store)
):
    """
    Pattern analysis over completed trades (or the listed ones).
    """
    if body and body.trade_ids:
        trades = [store.get_trade(trade_id) for trade_id in body.trade_ids]
    else:
        trades = store.completed_trades()
    response = _call('patterns', lambda: coach.analyze_trade_history(trades))
    return asdict(response)

@router.post("/coach")
def psychology_coach(
    body: CoachRequest,
    coach: CoachService = Depends(get_coach_service),
    store: TradeStore = Depends(get_trade_store)
):
    """
    Answer a trading psychology question.
    """
    recent = None
    if body.include_recent_trades:
        recent = sorted(store.trades, key=lambda t: t.updated_at, reverse=True)[:body.recent_limit]
    psychology = body.psychology.model_dump() if body.psychology else None
    response = _call('coach', lambda: coach.provide_psychology_coaching(
        body.question, recent, psychology
    ))
    return asdict(response)

@router.post("/fiona")
def fiona_chat(
    request: Request,
    payload: Any = Body(None),
    coach: CoachService = Depends(get_coach_service),
    limiter: RateLimiter = Depends(get_rate_limiter)
):
    """
    Chat turn with the Fiona coach persona. Rate limited per client IP.
    """
    ip = _client_ip(request)
    if not limiter.hit(ip):
        logger.warning(f"Rate limit hit for {ip}")
        metrics.record_coach_request('fiona', 'rate_limited')
        return JSONResponse(status_code=429, content={"error": "Too many requests"})

    try:
        body = FionaRequest.model_validate(payload)
    except ValidationError as e:
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request", "detail": e.errors(include_url=False, include_context=False)},
        )

    messages = [m.model_dump() for m in body.messages or []]
    reply = _call('fiona', lambda: coach.fiona_reply(messages, body.prompt, body.context))
    return {"reply": reply}
