from pydantic import model_validator
from pydantic_settings import BaseSettings
from typing import List
import os
import logging

logger = logging.getLogger(__name__)

DEFAULT_GREETING = "Hello! I'm here to listen and support you. How are you feeling today?"


class Settings(BaseSettings):
    # Database: sqlite file that holds sessions, turns and profiles
    database_url: str = "sqlite:///data/serenity.db"
    persist_transcripts: bool = True  # write-through copy of every turn

    # Simulated reply latency (seconds), sampled uniformly per reply
    reply_delay_min_seconds: float = float(os.getenv("REPLY_DELAY_MIN_SECONDS", "1.0"))
    reply_delay_max_seconds: float = float(os.getenv("REPLY_DELAY_MAX_SECONDS", "2.0"))

    # Opening assistant turn for every new session
    greeting_enabled: bool = True
    greeting_message: str = DEFAULT_GREETING

    # Idle sessions are dropped from memory after this long (restored from the store on next use)
    session_idle_minutes: int = 30

    # System
    log_level: str = "INFO"

    # FastAPI
    api_host: str = "0.0.0.0"
    api_port: int = 8001
    api_title: str = "Serenity API"
    api_version: str = "1.0.0"

    # Security
    cors_origins: List[str] = ["*"]

    @model_validator(mode="after")
    def _check_reply_delay(self) -> "Settings":
        if self.reply_delay_min_seconds < 0 or self.reply_delay_max_seconds < 0:
            raise ValueError("reply delay bounds must be non-negative")
        if self.session_idle_minutes <= 0:
            raise ValueError("session_idle_minutes must be positive")
        if self.reply_delay_min_seconds > self.reply_delay_max_seconds:
            raise ValueError(
                f"reply_delay_min_seconds ({self.reply_delay_min_seconds}) "
                f"exceeds reply_delay_max_seconds ({self.reply_delay_max_seconds})"
            )
        return self

    class Config:
        env_file = ".env"


# Shared settings instance for the whole application
settings = Settings()


def get_database_path() -> str:
    """
    Return the absolute path of the sqlite database file.
    Relative paths in database_url are resolved against the current working directory.
    """
    if settings.database_url.startswith("sqlite:///"):
        db_path = settings.database_url[10:]  # strip "sqlite:///"
        if not os.path.isabs(db_path):
            return os.path.join(os.getcwd(), db_path)
        return db_path
    return settings.database_url
