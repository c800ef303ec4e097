# src/bulletin_board/api/v1/endpoints/search.py
"""Search endpoints."""

from datetime import datetime
from typing import Literal

from fastapi import APIRouter, HTTPException, Query, status

from bulletin_board.api.v1.dependencies import CurrentEmployeeDep, SessionDep
from bulletin_board.schemas.search import (
    PopularTermsResponse,
    SearchResponse,
    SearchResultResponse,
    SuggestionsResponse,
)
from bulletin_board.services import search as search_service
from bulletin_board.services.search import SearchOptions

router = APIRouter(prefix="/search", tags=["search"])


@router.get("/", response_model=SearchResponse)
async def search(
    db: SessionDep,
    current_employee: CurrentEmployeeDep,
    q: str = Query(..., min_length=1),
    scope: Literal["all", "announcements", "posts"] = "all",
    category_id: int | None = None,
    priority: Literal["urgent", "normal"] | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    sort_by: Literal["relevance", "date", "title"] = "relevance",
    limit: int | None = Query(None, ge=1, le=200),
) -> SearchResponse:
    options = SearchOptions(
        query=q,
        scope=scope,
        category_id=category_id,
        priority=priority,
        date_from=date_from,
        date_to=date_to,
        sort_by=sort_by,
        limit=limit,
    )
    try:
        term = search_service.sanitize_query(q)
        results = search_service.search(db, options)
    except ValueError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err

    search_service.log_search(db, term, current_employee.employee_id)
    return SearchResponse(
        query=term,
        total=len(results),
        results=[
            SearchResultResponse(
                type=result.type,
                id=result.id,
                title=result.title,
                summary=search_service.summarize(result.content, term),
                created_at=result.created_at,
                category=result.category,
                priority=result.priority,
                likes=result.likes,
                dislikes=result.dislikes,
                matched_fields=result.matched_fields,
                relevance_score=result.relevance_score,
            )
            for result in results
        ],
    )


@router.get("/popular", response_model=PopularTermsResponse)
async def popular(
    db: SessionDep,
    _employee: CurrentEmployeeDep,
    limit: int = Query(10, ge=1, le=50),
) -> PopularTermsResponse:
    return PopularTermsResponse(terms=search_service.popular_terms(db, limit))


@router.get("/suggestions", response_model=SuggestionsResponse)
async def suggestions(
    db: SessionDep,
    _employee: CurrentEmployeeDep,
    q: str = "",
    limit: int = Query(5, ge=1, le=20),
) -> SuggestionsResponse:
    return SuggestionsResponse(suggestions=search_service.suggestions(db, q, limit))
