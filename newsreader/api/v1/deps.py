from __future__ import annotations

from fastapi import Request

from newsreader.services.news.client import NewsApiClient


def get_news_client(request: Request) -> NewsApiClient:
    """Return the client created at startup; configuration is resolved once per app."""
    client = getattr(request.app.state, "news_client", None)
    if client is None:
        raise RuntimeError("News client not initialized. Did you start the FastAPI app?")
    return client
