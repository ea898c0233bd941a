from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

import httpx
from pydantic import ValidationError

from newsreader.core.config import Mode, NewsApiConfig, load_settings, resolve_config
from newsreader.core.errors import CancelReason, ClientError, ErrorCode
from newsreader.core.http import create_http_client, get_http_client, has_http_client
from newsreader.schemas.news import QueryResult, SearchFilters, TopHeadlinesFilters


logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT_SECONDS = 15.0

TOP_HEADLINES = "top-headlines"
SEARCH = "search"

ALLOWED_SORT = frozenset({"relevancy", "popularity", "publishedAt"})
DEFAULT_SORT = "publishedAt"
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

NETWORK_ERROR_SIGNATURES = ("failed to fetch", "networkerror", "network error", "load failed", "cors")

GENERIC_ERROR_MESSAGE = "Unexpected error contacting news service."


@dataclass(frozen=True)
class QueryRequest:
    endpoint: str
    params: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def build(cls, endpoint: str, params: Mapping[str, Any]) -> "QueryRequest":
        cleaned = {key: str(value) for key, value in params.items() if value is not None and value != ""}
        return cls(endpoint=endpoint, params=MappingProxyType(cleaned))

    def query_string(self) -> str:
        return str(httpx.QueryParams(dict(self.params)))


def _as_int(value: Any, default: int) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def clamp_page_size(value: Any) -> int:
    return min(max(1, _as_int(value, DEFAULT_PAGE_SIZE)), MAX_PAGE_SIZE)


def clamp_page(value: Any) -> int:
    return max(1, _as_int(value, 1))


def normalize_sort(value: Any) -> str:
    return value if value in ALLOWED_SORT else DEFAULT_SORT


def resolve_path(endpoint: str, mode: Mode) -> str:
    if endpoint == SEARCH:
        return "search" if mode is Mode.PROXY else "everything"
    return endpoint


def redact(text: str, secret: str | None) -> str:
    if secret and secret in text:
        return text.replace(secret, "***")
    return text


def map_api_error(status: int, payload: Any) -> str:
    if status == 429:
        return "Rate limit reached. Please wait a minute before trying again."
    if status >= 500:
        return "News service is currently unavailable. Please try again later."
    if status in (401, 403):
        return (
            "Unauthorized: Please ensure a valid NewsAPI key is configured (direct mode) "
            "or the proxy is authorized."
        )
    body = payload if isinstance(payload, Mapping) else {}
    message = body.get("message") or body.get("error")
    if isinstance(message, str) and message.strip():
        return message
    return GENERIC_ERROR_MESSAGE


def is_network_error(exc: BaseException) -> bool:
    """True for failures where the request never completed (connection refused, DNS, blocked origin...)."""
    if isinstance(exc, httpx.TransportError):
        return True
    msg = str(exc).lower()
    return any(sig in msg for sig in NETWORK_ERROR_SIGNATURES)


def _coerce_filters(filters: Any, model: type) -> Any:
    if filters is None:
        return model()
    if isinstance(filters, model):
        return filters
    try:
        return model.model_validate(dict(filters))
    except (ValidationError, TypeError, ValueError) as exc:
        raise ClientError("Invalid news filters.", code=ErrorCode.VALIDATION) from exc


def _normalize_result(payload: Any) -> QueryResult:
    body = payload if isinstance(payload, Mapping) else {}
    total = body.get("totalResults")
    if isinstance(total, bool) or not isinstance(total, int) or total < 0:
        total = 0
    raw_articles = body.get("articles")
    articles = [a for a in raw_articles if isinstance(a, Mapping)] if isinstance(raw_articles, list) else []
    return QueryResult(total_results=total, articles=[dict(a) for a in articles])


class NewsApiClient:
    """Fetches headlines and search results from NewsAPI or a proxy in front of it.

    The configuration is fixed for the lifetime of the client. Every call is a
    single attempt bounded by ``timeout_seconds``; an optional ``cancel_event``
    aborts the in-flight request when it is set.
    """

    def __init__(
        self,
        config: NewsApiConfig,
        http_client: httpx.AsyncClient,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.config = config
        self._http = http_client
        self._timeout = timeout_seconds

    @property
    def mode(self) -> Mode:
        return self.config.mode

    async def get_top_headlines(
        self,
        filters: TopHeadlinesFilters | Mapping[str, Any] | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> QueryResult:
        f = _coerce_filters(filters, TopHeadlinesFilters)
        params: dict[str, Any] = {
            "country": f.country,
            "pageSize": clamp_page_size(f.page_size),
            "page": clamp_page(f.page),
        }
        if f.category:
            params["category"] = f.category
        data = await self.perform_request(TOP_HEADLINES, params, cancel_event)
        return _normalize_result(data)

    async def search_everything(
        self,
        filters: SearchFilters | Mapping[str, Any] | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> QueryResult:
        f = _coerce_filters(filters, SearchFilters)
        query = (f.q or "").strip()
        if not query:
            raise ClientError("Please enter a search term.", code=ErrorCode.VALIDATION)

        params: dict[str, Any] = {
            "q": query,
            "sortBy": normalize_sort(f.sort_by),
            "language": f.language,
            "pageSize": clamp_page_size(f.page_size),
            "page": clamp_page(f.page),
        }
        # Logical "search" maps to /search behind a proxy and /everything upstream.
        data = await self.perform_request(SEARCH, params, cancel_event)
        return _normalize_result(data)

    def _check_config(self) -> None:
        cfg = self.config
        if cfg.mode is Mode.DIRECT and not cfg.api_key:
            raise ClientError(
                "NewsAPI key is missing. Set NEWSREADER_NEWS_API_KEY in your environment or use the proxy.",
                code=ErrorCode.CONFIG,
            )
        if not cfg.base_url.lower().startswith(("http://", "https://")):
            raise ClientError(
                "Invalid NewsAPI base URL. Ensure NEWSREADER_NEWS_API_BASE starts with http(s)://",
                code=ErrorCode.CONFIG,
            )

    def build_url(self, request: QueryRequest) -> str:
        path = resolve_path(request.endpoint, self.config.mode)
        query = request.query_string()
        url = f"{self.config.base_url}/{path}"
        return f"{url}?{query}" if query else url

    def _headers(self) -> dict[str, str]:
        if self.config.is_proxy:
            return {}
        return {"X-Api-Key": self.config.api_key or ""}

    async def perform_request(
        self,
        endpoint: str,
        params: Mapping[str, Any],
        cancel_event: asyncio.Event | None = None,
    ) -> Any:
        self._check_config()

        request = QueryRequest.build(endpoint, params)
        url = self.build_url(request)
        mode = self.config.mode.value
        path = resolve_path(endpoint, self.config.mode)

        logger.debug("news request mode=%s endpoint=%s", mode, path)
        try:
            resp = await self._send(url, cancel_event)
        except ClientError as exc:
            logger.warning("news request %s (%s) aborted: %s", path, mode, exc.reason)
            raise
        except Exception as exc:
            err = self._to_client_error(exc, path)
            logger.warning("news request %s (%s) failed: %s", path, mode, type(exc).__name__)
            raise err from exc

        try:
            data = resp.json()
        except ValueError:
            data = None

        if not resp.is_success or (isinstance(data, Mapping) and data.get("status") == "error"):
            message = redact(map_api_error(resp.status_code, data), self.config.api_key)
            logger.warning("news request %s (%s) returned status %s", path, mode, resp.status_code)
            raise ClientError(message, status=resp.status_code, details=data)
        return data

    async def _send(self, url: str, cancel_event: asyncio.Event | None) -> httpx.Response:
        if cancel_event is not None and cancel_event.is_set():
            raise self._cancelled(CancelReason.CANCELLED)

        request_task = asyncio.create_task(
            # The key header must not follow a redirect to another host.
            self._http.get(url, headers=self._headers(), follow_redirects=self.config.is_proxy)
        )
        waiters: set[asyncio.Task] = {request_task}
        cancel_task = None
        if cancel_event is not None:
            cancel_task = asyncio.create_task(cancel_event.wait())
            waiters.add(cancel_task)

        try:
            done, _ = await asyncio.wait(waiters, timeout=self._timeout, return_when=asyncio.FIRST_COMPLETED)
        finally:
            pending = [t for t in waiters if not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        if request_task in done:
            return request_task.result()
        if cancel_task is not None and cancel_task in done:
            raise self._cancelled(CancelReason.CANCELLED)
        raise self._cancelled(CancelReason.TIMEOUT)

    def _cancelled(self, reason: CancelReason) -> ClientError:
        mode = self.config.mode.value
        if reason is CancelReason.TIMEOUT:
            message = f"Request timed out: the news service ({mode}) did not respond in time. Please try again."
        else:
            message = "Request was cancelled."
        return ClientError(message, code=ErrorCode.NETWORK, reason=reason, details={"mode": mode})

    def _to_client_error(self, exc: Exception, path: str) -> ClientError:
        mode = self.config.mode.value
        details = {"mode": mode, "endpoint": path}
        if isinstance(exc, httpx.TimeoutException):
            err = self._cancelled(CancelReason.TIMEOUT)
            err.details = details
            return err
        if is_network_error(exc):
            return ClientError(
                f"Network error: Unable to reach the news service ({mode}, /{path}). "
                "If using a proxy, ensure NEWSREADER_NEWS_API_BASE points to it and that the proxy is running. "
                "Otherwise verify network access and try again.",
                code=ErrorCode.NETWORK,
                details=details,
            )
        return ClientError("Unexpected error occurred.", details=details)


async def _call(method: str, filters: Any, cancel_event: asyncio.Event | None) -> QueryResult:
    # Environment is read on every call; the shared HTTP client is reused when installed.
    settings = load_settings()
    config = resolve_config(settings)
    if has_http_client():
        client = NewsApiClient(config, get_http_client(), timeout_seconds=settings.request_timeout_seconds)
        return await getattr(client, method)(filters, cancel_event)

    async with create_http_client(settings) as http_client:
        client = NewsApiClient(config, http_client, timeout_seconds=settings.request_timeout_seconds)
        return await getattr(client, method)(filters, cancel_event)


async def get_top_headlines(
    filters: TopHeadlinesFilters | Mapping[str, Any] | None = None,
    cancel_event: asyncio.Event | None = None,
) -> QueryResult:
    return await _call("get_top_headlines", filters, cancel_event)


async def search_everything(
    filters: SearchFilters | Mapping[str, Any] | None = None,
    cancel_event: asyncio.Event | None = None,
) -> QueryResult:
    return await _call("search_everything", filters, cancel_event)
