"""Application configuration and settings."""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Service Configuration
    service_name: str = "salamat-assistant"
    service_port: int = 8005
    environment: str = "development"

    # Chat-completion provider (OpenRouter-compatible)
    openrouter_api_key: Optional[str] = None
    llm_base_url: str = "https://openrouter.ai/api/v1"
    llm_http_referer: str = "https://salamatbot.ir"
    llm_app_title: str = "SalamatBot"
    llm_invoke_timeout: float = 30.0

    # Per-profile models
    classifier_model: str = "openai/gpt-4o-mini"
    triage_model: str = "openai/gpt-4o"
    medication_model: str = "openai/gpt-4o-mini"
    information_model: str = "openai/gpt-4o"

    # Intent classification
    rule_confidence_threshold: float = 0.7

    # Triage interview
    triage_max_questions: int = 4  # UI progress hint only
    triage_question_ceiling: int = 8  # hard stop, forces a classification

    # Session storage
    session_backend: str = "memory"  # "memory" or "mongo"
    session_ttl_seconds: int = 7200

    # MongoDB Configuration
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "salamat"
    mongodb_collection_sessions: str = "unified_sessions"

    # HTTP
    cors_origins: List[str] = ["http://localhost:3000"]

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
