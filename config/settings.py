"""Application settings and configuration management."""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List
import yaml
from pathlib import Path

class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite:///./journal.db"

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # Storage keys for persisted snapshots
    TRADES_STORAGE_KEY: str = "memecoin-trades-storage"
    PROFILE_STORAGE_KEY: str = "psych_profile_v1"

    # LLM coach
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_FALLBACK_MODELS: List[str] = ["gpt-4o-mini", "gpt-4o"]
    OPENAI_TIMEOUT: int = 60

    # Chat rate limiting (per client IP)
    RATE_LIMIT_WINDOW_SECONDS: int = 60
    RATE_LIMIT_MAX_REQUESTS: int = 30

    # Environment
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

@lru_cache()
def get_prompts() -> dict:
    """Load coach system prompts from YAML."""
    config_path = Path(__file__).parent / "prompts.yaml"
    with open(config_path, 'r') as f:
        return yaml.safe_load(f)
