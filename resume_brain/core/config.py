"""Configuration settings for the resume analysis service."""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    db_conn: Optional[str] = None
    GROK_API_KEY: Optional[str] = None
    MODEL_NAME: str = "grok-4-fast-reasoning"
    GROK_API_URL: str = "https://api.x.ai/v1/chat/completions"
    GROK_TIMEOUT: float = 30.0
    GROK_TEMPERATURE: float = 0.7
    GROK_MAX_TOKENS: int = 1500

    UPLOAD_PATH: str = "./uploads"
    QUEUE_POLL_INTERVAL: float = 5.0

    LOG_FILE: str = "resume_brain.log"
    LOG_LEVEL: str = "INFO"


settings = Settings()
