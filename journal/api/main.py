"""
FastAPI application entry point.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from journal.ai.client import CompletionError
from journal.api.routes import analytics, coach, health, profile, reflections, trades
from journal.core.errors import JournalError, TradeNotFound
from journal.models.base import Base, engine
from journal.models import snapshots  # noqa: F401  registers the snapshots table
from journal.utils.logging import get_logger

logger = get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    yield

app = FastAPI(
    title="Memecoin Journal API",
    description="Position ledger, reflections, analytics and AI coaching for memecoin trades",
    version="0.1.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(trades.router, prefix="/trades", tags=["Trades"])
app.include_router(reflections.router, prefix="/reflections", tags=["Reflections"])
app.include_router(analytics.router, prefix="/analytics", tags=["Analytics"])
app.include_router(profile.router, tags=["Profile"])
app.include_router(coach.router, prefix="/ai", tags=["AI Coach"])

@app.exception_handler(TradeNotFound)
async def trade_not_found_handler(request: Request, exc: TradeNotFound):
    return JSONResponse(status_code=404, content={"error": type(exc).__name__, "detail": str(exc)})

@app.exception_handler(JournalError)
async def journal_error_handler(request: Request, exc: JournalError):
    return JSONResponse(status_code=400, content={"error": type(exc).__name__, "detail": str(exc)})

@app.exception_handler(CompletionError)
async def completion_error_handler(request: Request, exc: CompletionError):
    logger.error(f"Coach request failed on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": str(exc), "detail": exc.detail})

@app.get("/")
def root():
    """Root endpoint."""
    return {
        "name": "Memecoin Journal API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health"
    }
