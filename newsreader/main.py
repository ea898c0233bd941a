from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from newsreader.api.v1.endpoints.news import limiter, router as news_router
from newsreader.api.v1.router import api_v1_router
from newsreader.core.config import get_settings, resolve_config
from newsreader.core.errors import CancelReason, ClientError, ErrorCode
from newsreader.core.http import create_http_client, set_http_client
from newsreader.schemas.news import NewsErrorResponse
from newsreader.services.news.client import NewsApiClient
from newsreader.services.news.hints import describe_error


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    config = resolve_config(settings)

    # Setup HTTP client
    client = create_http_client(settings)
    set_http_client(client)

    app.state.news_client = NewsApiClient(config, client, timeout_seconds=settings.request_timeout_seconds)
    logger.info("news client ready (mode=%s, api key configured=%s)", config.mode.value, bool(config.api_key))

    try:
        yield
    finally:
        set_http_client(None)
        await client.aclose()


def status_for_error(err: ClientError) -> int:
    if err.code is ErrorCode.VALIDATION:
        return 400
    if err.code is ErrorCode.CONFIG:
        return 500
    if err.code is ErrorCode.NETWORK:
        return 504 if err.reason is CancelReason.TIMEOUT else 502
    if err.status is not None and 400 <= err.status < 600:
        return err.status
    return 502


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    body = NewsErrorResponse(
        code=exc.code.value if exc.code else None,
        message=describe_error(exc, fallback="Failed to load news."),
    )
    return JSONResponse(status_code=status_for_error(exc), content=body.model_dump())


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    app = FastAPI(
        title="newsreader api",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Add rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(ClientError, client_error_handler)

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=False,
            allow_methods=["GET"],
            allow_headers=["*"],
        )

    # /api/news is the proxy base browser readers point NEWSREADER_NEWS_API_BASE at.
    app.include_router(news_router, prefix="/api/news", tags=["proxy"])
    app.include_router(api_v1_router, prefix="/api/v1")
    return app


app = create_app()
