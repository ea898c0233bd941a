from fastapi import APIRouter, Depends

from newsreader.api.v1.deps import get_news_client
from newsreader.schemas.news import HealthResponse
from newsreader.services.news.client import NewsApiClient


router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(client: NewsApiClient = Depends(get_news_client)):
    return HealthResponse(mode=client.mode.value, api_key_configured=bool(client.config.api_key))
