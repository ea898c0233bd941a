from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any
from urllib.parse import urlparse

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from newsreader.core.errors import ClientError, ErrorCode


DEFAULT_NEWS_API_BASE = "https://newsapi.org/v2"
UPSTREAM_HOST = "newsapi.org"


DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


class Mode(str, Enum):
    DIRECT = "direct"
    PROXY = "proxy"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="NEWSREADER_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        populate_by_name=True,
    )

    # NEWSREADER_API_BASE is the deprecated name, read only when the preferred one is unset.
    news_api_base: str | None = Field(
        default=None,
        validation_alias=AliasChoices("NEWSREADER_NEWS_API_BASE", "NEWSREADER_API_BASE"),
    )
    news_api_key: str | None = Field(default=None)
    news_api_mode: Mode | None = Field(default=None)

    request_timeout_seconds: float = Field(default=15.0, ge=1.0, le=120.0)

    cors_origins: list[str] | str = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    proxy_rate_limit: str = Field(default="60/minute")
    log_level: str = Field(default="INFO")

    @field_validator("news_api_mode", mode="before")
    @classmethod
    def _lower_mode(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() or None
        return value

    def model_post_init(self, __context: Any) -> None:
        # Allow NEWSREADER_CORS_ORIGINS as JSON array or comma-separated string.
        raw = getattr(self, "cors_origins", None)
        if isinstance(raw, str):
            parsed = raw.strip()
            if parsed.startswith("["):
                try:
                    self.cors_origins = [str(x).strip() for x in json.loads(parsed) if str(x).strip()]
                except ValueError:
                    self.cors_origins = [s.strip() for s in parsed.strip("[]").split(",") if s.strip()]
            else:
                self.cors_origins = [s.strip() for s in parsed.split(",") if s.strip()]


def load_settings() -> Settings:
    """Read settings from the environment, reporting bad values as a configuration error."""
    try:
        return Settings()
    except ValidationError as exc:
        fields = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
        raise ClientError(
            f"Invalid news configuration: {', '.join(fields) or 'settings'}. Check the NEWSREADER_* environment.",
            code=ErrorCode.CONFIG,
        ) from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


@dataclass(frozen=True)
class NewsApiConfig:
    base_url: str
    api_key: str | None
    mode: Mode

    @property
    def is_proxy(self) -> bool:
        return self.mode is Mode.PROXY


def strip_trailing_slashes(value: str | None) -> str:
    return (value or "").rstrip("/")


def infer_mode(base_url: str) -> Mode:
    """Classify a base URL: the upstream host (or one of its subdomains) means direct mode."""
    host = (urlparse(base_url).hostname or "").lower()
    if host == UPSTREAM_HOST or host.endswith("." + UPSTREAM_HOST):
        return Mode.DIRECT
    return Mode.PROXY


def resolve_config(settings: Settings | None = None) -> NewsApiConfig:
    """Build the client configuration.

    Without ``settings`` the environment is read again, so the result always
    reflects its current state. A missing key in direct mode is not an error
    here; the client reports it when a request is made.
    """
    if settings is None:
        settings = load_settings()

    base_raw = (settings.news_api_base or "").strip() or DEFAULT_NEWS_API_BASE
    base_url = strip_trailing_slashes(base_raw)

    mode = settings.news_api_mode or infer_mode(base_url)

    api_key = None
    if mode is Mode.DIRECT:
        api_key = (settings.news_api_key or "").strip() or None

    return NewsApiConfig(base_url=base_url, api_key=api_key, mode=mode)
