from fastapi import APIRouter, Depends, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from newsreader.api.v1.deps import get_news_client
from newsreader.core.config import get_settings
from newsreader.schemas.news import NewsResponse, SearchFilters, TopHeadlinesFilters
from newsreader.services.news.client import NewsApiClient


router = APIRouter()

# Rate limiter
limiter = Limiter(key_func=get_remote_address)


def _proxy_rate_limit() -> str:
    return get_settings().proxy_rate_limit


@router.get("/top-headlines", response_model=NewsResponse)
@limiter.limit(_proxy_rate_limit)
async def top_headlines(
    request: Request,
    country: str | None = Query("us", max_length=8),
    category: str | None = Query(None, max_length=32),
    page_size: str | None = Query(None, alias="pageSize"),
    page: str | None = Query(None),
    client: NewsApiClient = Depends(get_news_client),
):
    filters = TopHeadlinesFilters(country=country, category=category, page_size=page_size, page=page)
    result = await client.get_top_headlines(filters)
    return NewsResponse(totalResults=result.total_results, articles=result.articles)


@router.get("/search", response_model=NewsResponse)
@limiter.limit(_proxy_rate_limit)
async def search(
    request: Request,
    q: str | None = Query(None, max_length=500),
    sort_by: str | None = Query("publishedAt", alias="sortBy", max_length=32),
    language: str | None = Query("en", max_length=8),
    page_size: str | None = Query(None, alias="pageSize"),
    page: str | None = Query(None),
    client: NewsApiClient = Depends(get_news_client),
):
    filters = SearchFilters(q=q, sort_by=sort_by, language=language, page_size=page_size, page=page)
    result = await client.search_everything(filters)
    return NewsResponse(totalResults=result.total_results, articles=result.articles)
