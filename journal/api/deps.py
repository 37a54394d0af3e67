"""
Application-root singletons handed to routes through FastAPI dependencies.
Tests swap them with ``app.dependency_overrides``.
"""
from functools import lru_cache

from config.settings import get_prompts, get_settings
from journal.ai.client import ChatCompletionClient
from journal.ai.services import CoachService
from journal.api.rate_limit import RateLimiter
from journal.core.profile import ProfileStore
from journal.core.store import TradeStore
from journal.models.base import SessionLocal
from journal.models.snapshots import SnapshotRepository

@lru_cache()
def get_trade_store() -> TradeStore:
    settings = get_settings()
    return TradeStore(SnapshotRepository(SessionLocal), settings.TRADES_STORAGE_KEY)

@lru_cache()
def get_profile_store() -> ProfileStore:
    settings = get_settings()
    return ProfileStore(SnapshotRepository(SessionLocal), settings.PROFILE_STORAGE_KEY)

@lru_cache()
def get_coach_service() -> CoachService:
    settings = get_settings()
    client = ChatCompletionClient(
        api_key=settings.OPENAI_API_KEY,
        base_url=settings.OPENAI_BASE_URL,
        model=settings.OPENAI_MODEL,
        fallback_models=settings.OPENAI_FALLBACK_MODELS,
        timeout=settings.OPENAI_TIMEOUT,
    )
    return CoachService(client, get_prompts())

@lru_cache()
def get_rate_limiter() -> RateLimiter:
    settings = get_settings()
    return RateLimiter(settings.RATE_LIMIT_WINDOW_SECONDS, settings.RATE_LIMIT_MAX_REQUESTS)
