from __future__ import annotations

from newsreader.schemas.news import (
    HealthResponse,
    NewsErrorResponse,
    NewsResponse,
    QueryResult,
    SearchFilters,
    TopHeadlinesFilters,
)

__all__ = [
    "HealthResponse",
    "NewsErrorResponse",
    "NewsResponse",
    "QueryResult",
    "SearchFilters",
    "TopHeadlinesFilters",
]
