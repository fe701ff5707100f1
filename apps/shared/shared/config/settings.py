"""Application settings using Pydantic Settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global settings loaded from environment variables / .env file."""

    # Gemini LLM API (OpenAI-compatible endpoint)
    gemini_api_key: str = ""
    llm_base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    llm_model: str = "gemini-2.0-flash-exp"
    llm_timeout: float = 60.0

    # Folders shared with the scraper and the dashboard API
    scraped_posts_dir: str = "scraped_posts"
    analyzed_data_dir: str = "analyzed_data"

    # Orchestrator pacing (seconds)
    batch_delay_seconds: float = 1.0
    watch_settle_seconds: float = 2.0
    watch_poll_seconds: float = 1.0

    # Notification server
    notify_api_url: str = "http://localhost:3001"
    notify_timeout: float = 5.0
    notify_enabled: bool = True

    # Source descriptor stamped on every record
    platform: str = "facebook"
    collection_method: str = "browser_use"

    # API server
    api_port: int = 3001
    cors_origins: list[str] = ["http://localhost:5173"]

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def reload_settings() -> Settings:
    """Reload settings (clear cache and return new instance).

    Call this when .env file is updated to pick up new values.
    """
    get_settings.cache_clear()
    return get_settings()
