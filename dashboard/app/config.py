from __future__ import annotations

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=False,
        extra="ignore",
    )

    SUPABASE_URL: AnyUrl
    SUPABASE_SERVICE_ROLE_KEY: str
    APP_ENV: str = "local"
    FRONTEND_CORS_ORIGINS: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"],
    )

    # Upstream HTTP
    HTTP_TIMEOUT_SECONDS: float = 15.0
    ITUNES_SEARCH_URL: str = "https://itunes.apple.com/search"
    PODCAST_SEARCH_LIMIT: int = 20
    OPEN_LIBRARY_SEARCH_URL: str = "https://openlibrary.org/search.json"
    POKEAPI_URL: str = "https://pokeapi.co/api/v2"
    ON_THIS_DAY_URL: str = "https://api.wikimedia.org/feed/v1/wikipedia/en/onthisday/events"

    # Player
    POSITION_SAVE_INTERVAL_SECONDS: float = 10.0
    DEFAULT_FORWARD_SKIP_SECONDS: int = 30
    DEFAULT_BACKWARD_SKIP_SECONDS: int = 15


settings = Settings()
