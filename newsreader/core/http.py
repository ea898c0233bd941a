from __future__ import annotations

from typing import Optional

import httpx

from newsreader.core.config import Settings


USER_AGENT = "newsreader/0.1"

_client: Optional[httpx.AsyncClient] = None


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    limits = httpx.Limits(max_keepalive_connections=20, max_connections=50)
    timeout = httpx.Timeout(settings.request_timeout_seconds)
    return httpx.AsyncClient(
        timeout=timeout,
        limits=limits,
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
    )


def set_http_client(client: Optional[httpx.AsyncClient]) -> None:
    global _client
    _client = client


def has_http_client() -> bool:
    return _client is not None


def get_http_client() -> httpx.AsyncClient:
    if _client is None:
        raise RuntimeError("HTTP client not initialized. Did you start the FastAPI app?")
    return _client
