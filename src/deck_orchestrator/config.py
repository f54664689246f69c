"""
Configuration settings for the generation orchestrator.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development (see .env.example).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "Deck Orchestrator"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"  # development | production

    # === Anthropic Provider ===
    ANTHROPIC_API_KEY: str = ""
    ANTHROPIC_BASE_URL: str = "https://api.anthropic.com"
    ANTHROPIC_API_VERSION: str = "2023-06-01"
    LLM_MODEL: str = "claude-3-5-haiku-20241022"
    LLM_TIMEOUT: float = 60.0  # seconds, hard deadline per upstream call

    # === Generation Parameters (by call kind) ===
    LLM_MAX_TOKENS_NEW: int = 6000
    LLM_MAX_TOKENS_MODIFY: int = 4000
    LLM_TEMPERATURE_NEW: float = 0.3
    LLM_TEMPERATURE_MODIFY: float = 0.1  # Low for faithful edits

    # === Transport Retry (inside GenerationClient) ===
    TRANSPORT_MAX_ATTEMPTS: int = 3
    TRANSPORT_BACKOFF_BASE: float = 1.0  # 1s, 2s, 4s ...
    TRANSPORT_BACKOFF_CAP: float = 5.0

    # === Request Queue ===
    QUEUE_MIN_INTERVAL: float = 2.0  # seconds between upstream dispatches
    QUEUE_MAX_RETRIES: int = 3
    RATE_LIMIT_RETRY_DELAYS: list[float] = [3.0, 6.0, 12.0]

    # === Response Cache ===
    CACHE_TTL_SECONDS: float = 300.0  # 5 minutes
    CACHE_SWEEP_INTERVAL_SECONDS: float = 60.0
    CACHE_SYSTEM_PROMPT_PREFIX_CHARS: int = 100
    CACHE_MESSAGE_WINDOW: int = 2  # Only the last N messages are fingerprinted

    # === Response Parsing ===
    PARSE_DIAGNOSTIC_CHARS: int = 500
    PARSE_RETRY_AFTER_SECONDS: int = 60

    # === Usage Metering ===
    USAGE_LOG_PATH: Optional[str] = None  # JSONL audit file, disabled if unset
    USAGE_REDIS_ENABLED: bool = False
    USAGE_REDIS_KEY: str = "deck:usage"
    USAGE_REDIS_MAX_ENTRIES: int = 10000
    USAGE_COST_WARNING_USD: float = 0.03
    USAGE_INPUT_TOKEN_WARNING: int = 3000

    # === Redis ===
    REDIS_URL: str = "redis://redis:6379/0"
    REDIS_MAX_CONNECTIONS: int = 10

    # === Auxiliary Services ===
    CHART_SERVICE_BASE_URL: Optional[str] = None

    # === Monitoring ===
    PROMETHEUS_ENABLED: bool = True


# Global settings instance
settings = Settings()
