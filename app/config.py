# app/config.py

from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "Invoice Reconciler API"
    app_env: str = "development"
    debug: bool = True
    frontend_url: str = "http://localhost:3000"
    api_url: str = "http://localhost:8000"
    log_level: str = "INFO"

    # Supabase (auth + session history)
    supabase_url: Optional[str] = None
    supabase_service_role_key: Optional[str] = None

    # Anthropic (Claude) - candidate extraction
    anthropic_api_key: Optional[str] = None
    anthropic_model: str = "claude-sonnet-4-20250514"
    extraction_max_tokens: int = 16000

    # History
    enable_history: bool = True
    history_limit: int = 20

    # Matching config
    amount_tolerance: float = 1.0
    heuristic_match_confidence: float = 0.8

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
