from fastapi import APIRouter

from newsreader.api.v1.endpoints.health import router as health_router
from newsreader.api.v1.endpoints.news import router as news_router


api_v1_router = APIRouter()
api_v1_router.include_router(health_router)
api_v1_router.include_router(news_router, prefix="/news", tags=["news"])
