from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    env: str = Field(default="dev", alias="APP_ENV")
    debug: bool = Field(default=False, alias="APP_DEBUG")
    service_version: str = Field(default="0.1.0", alias="SERVICE_VERSION")

    # Search store
    search_backend: Literal["mock", "reindexer"] = Field(default="mock", alias="SEARCH_BACKEND")
    reindexer_base_url: str = Field(default="http://localhost:9088", alias="REINDEXER_BASE_URL")
    reindexer_database: str = Field(default="itv_api_ng", alias="REINDEXER_DATABASE")
    search_timeout_seconds: float = Field(default=5.0, alias="SEARCH_TIMEOUT_SECONDS")
    search_retry_attempts: int = Field(default=1, alias="SEARCH_RETRY_ATTEMPTS")

    # Query limits
    media_fetch_limit: int = Field(default=100, alias="MEDIA_FETCH_LIMIT")
    media_relevancy_fetch_limit: int = Field(default=10, alias="MEDIA_RELEVANCY_FETCH_LIMIT")
    epg_fetch_limit: int = Field(default=10, alias="EPG_FETCH_LIMIT")

    # Session memory
    session_idle_ttl_seconds: Optional[float] = Field(default=3600.0, alias="SESSION_IDLE_TTL_SECONDS")
    session_sweep_interval_seconds: float = Field(default=60.0, alias="SESSION_SWEEP_INTERVAL_SECONDS")

    result_selector_seed: Optional[int] = Field(default=None, alias="RESULT_SELECTOR_SEED")

    # Presentation
    image_base_url: str = Field(default="https://mos-itv01.svc.iptv.rt.ru", alias="IMAGE_BASE_URL")
    open_url_template: str = Field(
        default="http://production.smarttv.itv.restr.im/pc/#/media_item/{id}",
        alias="OPEN_URL_TEMPLATE",
    )
    card_subtitle_max_length: int = Field(default=120, alias="CARD_SUBTITLE_MAX_LENGTH")

    enable_request_tracing: bool = Field(default=True, alias="ENABLE_REQUEST_TRACING")

    # LangSmith tracing
    langsmith_api_key: str | None = Field(default=None, alias="LANGSMITH_API_KEY")
    langsmith_project: str | None = Field(default=None, alias="LANGSMITH_PROJECT")
    langsmith_tracing_v2: bool = Field(default=False, alias="LANGCHAIN_TRACING_V2")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
