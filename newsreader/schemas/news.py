from __future__ import annotations

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class TopHeadlinesFilters(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    country: str | None = "us"
    category: str | None = None
    # Paging values are clamped by the client, so anything is accepted here.
    page_size: Any = Field(10, validation_alias=AliasChoices("page_size", "pageSize"))
    page: Any = 1


class SearchFilters(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    q: str | None = None
    sort_by: str | None = Field("publishedAt", validation_alias=AliasChoices("sort_by", "sortBy"))
    language: str | None = "en"
    # Paging values are clamped by the client, so anything is accepted here.
    page_size: Any = Field(10, validation_alias=AliasChoices("page_size", "pageSize"))
    page: Any = 1


class QueryResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_results: int = Field(0, ge=0, alias="totalResults")
    # Articles are passed through untouched: title, description, url, urlToImage,
    # publishedAt and source.name are the keys readers look at.
    articles: list[dict[str, Any]] = Field(default_factory=list)


class NewsResponse(BaseModel):
    status: Literal["ok"] = "ok"
    totalResults: int
    articles: list[dict[str, Any]]


class NewsErrorResponse(BaseModel):
    status: Literal["error"] = "error"
    code: str | None = None
    message: str


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    mode: str
    api_key_configured: bool
