# src/bulletin_board/schemas/search.py
"""Search schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class SearchResultResponse(BaseModel):
    type: Literal["announcement", "post"]
    id: int
    title: str
    summary: str
    created_at: datetime
    category: str | None = None
    priority: str | None = None
    likes: int | None = None
    dislikes: int | None = None
    matched_fields: list[str]
    relevance_score: int


class SearchResponse(BaseModel):
    query: str
    total: int
    results: list[SearchResultResponse]


class PopularTermsResponse(BaseModel):
    terms: list[str]


class SuggestionsResponse(BaseModel):
    suggestions: list[str]
