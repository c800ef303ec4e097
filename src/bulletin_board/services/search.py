"""Search across announcements and anonymous posts."""
from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bulletin_board.core.settings import settings
from bulletin_board.db.time import days_ago
from bulletin_board.models import Announcement, AnonymousPost, BoardCategory, SearchLog

logger = logging.getLogger(__name__)

SearchScope = Literal["all", "announcements", "posts"]
SortOrder = Literal["relevance", "date", "title"]

MAX_QUERY_LENGTH = 100
MIN_POPULAR_TERM_LENGTH = 2
SUMMARY_CONTEXT = 50

TITLE_MATCH_SCORE = 3
CONTENT_MATCH_SCORE = 1
URGENT_SCORE = 2

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f%_\\]")


@dataclass
class SearchOptions:
    query: str
    scope: SearchScope = "all"
    category_id: int | None = None
    priority: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    sort_by: SortOrder = "relevance"
    limit: int | None = None


@dataclass
class SearchResult:
    type: Literal["announcement", "post"]
    id: int
    title: str
    content: str
    created_at: datetime
    category: str | None = None
    priority: str | None = None
    likes: int | None = None
    dislikes: int | None = None
    matched_fields: list[str] = field(default_factory=list)
    relevance_score: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "created_at": self.created_at,
            "category": self.category,
            "priority": self.priority,
            "likes": self.likes,
            "dislikes": self.dislikes,
            "matched_fields": self.matched_fields,
            "relevance_score": self.relevance_score,
        }


def sanitize_query(query: str) -> str:
    """Trim the query and strip wildcard/control characters.

    Raises:
        ValueError: If nothing searchable remains or the query is too long.
    """
    cleaned = _CONTROL_CHARS.sub("", query).strip()
    if not cleaned:
        raise ValueError("Search query must not be empty")
    if len(cleaned) > MAX_QUERY_LENGTH:
        raise ValueError(f"Search query must be at most {MAX_QUERY_LENGTH} characters")
    return cleaned


def _score(title: str, content: str, term: str, *, urgent: bool = False) -> tuple[list[str], int]:
    needle = term.lower()
    matched: list[str] = []
    score = 0
    if needle in title.lower():
        matched.append("title")
        score += TITLE_MATCH_SCORE
    if needle in content.lower():
        matched.append("content")
        score += CONTENT_MATCH_SCORE
    if urgent:
        score += URGENT_SCORE
    return matched, score


def _sort(results: list[SearchResult], sort_by: SortOrder) -> list[SearchResult]:
    if sort_by == "date":
        return sorted(results, key=lambda r: r.created_at, reverse=True)
    if sort_by == "title":
        return sorted(results, key=lambda r: r.title.lower())
    # Stable sort keeps date order among equal scores.
    by_date = sorted(results, key=lambda r: r.created_at, reverse=True)
    return sorted(by_date, key=lambda r: r.relevance_score, reverse=True)


def search_announcements(db: Session, options: SearchOptions) -> list[SearchResult]:
    term = sanitize_query(options.query)
    pattern = f"%{term}%"
    query = select(Announcement, BoardCategory.name).outerjoin(
        BoardCategory, BoardCategory.id == Announcement.category_id
    ).where(or_(Announcement.title.ilike(pattern), Announcement.content.ilike(pattern)))
    if options.category_id is not None:
        query = query.where(Announcement.category_id == options.category_id)
    if options.priority is not None:
        query = query.where(Announcement.priority == options.priority)
    if options.date_from is not None:
        query = query.where(Announcement.created_at >= options.date_from)
    if options.date_to is not None:
        query = query.where(Announcement.created_at <= options.date_to)

    results = []
    for announcement, category_name in db.execute(query).all():
        matched, score = _score(
            announcement.title, announcement.content, term, urgent=announcement.is_urgent
        )
        results.append(
            SearchResult(
                type="announcement",
                id=announcement.id,
                title=announcement.title,
                content=announcement.content,
                created_at=announcement.created_at,
                category=category_name,
                priority=announcement.priority,
                matched_fields=matched,
                relevance_score=score,
            )
        )
    return results


def search_posts(db: Session, options: SearchOptions) -> list[SearchResult]:
    term = sanitize_query(options.query)
    pattern = f"%{term}%"
    query = select(AnonymousPost, BoardCategory.name).join(
        BoardCategory, BoardCategory.id == AnonymousPost.category_id
    ).where(or_(AnonymousPost.title.ilike(pattern), AnonymousPost.content.ilike(pattern)))
    if options.category_id is not None:
        query = query.where(AnonymousPost.category_id == options.category_id)
    if options.date_from is not None:
        query = query.where(AnonymousPost.created_at >= options.date_from)
    if options.date_to is not None:
        query = query.where(AnonymousPost.created_at <= options.date_to)

    results = []
    for post, category_name in db.execute(query).all():
        matched, score = _score(post.title, post.content, term)
        results.append(
            SearchResult(
                type="post",
                id=post.id,
                title=post.title,
                content=post.content,
                created_at=post.created_at,
                category=category_name,
                likes=post.likes,
                dislikes=post.dislikes,
                matched_fields=matched,
                relevance_score=score,
            )
        )
    return results


def search(db: Session, options: SearchOptions) -> list[SearchResult]:
    """Run a search over the requested scope and return sorted, limited results.

    Posts have no priority, so a priority filter restricts results to
    announcements.
    """
    results: list[SearchResult] = []
    if options.scope in ("all", "announcements"):
        results.extend(search_announcements(db, options))
    if options.scope in ("all", "posts") and options.priority is None:
        results.extend(search_posts(db, options))

    limit = options.limit or settings.search_default_limit
    return _sort(results, options.sort_by)[:limit]


def log_search(db: Session, query: str, employee_id: str | None = None) -> None:
    """Record a search; failures are logged and never surface to the searcher."""
    try:
        db.add(SearchLog(query=query[:MAX_QUERY_LENGTH], employee_id=employee_id))
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Could not log search %r: %s", query, exc)


def popular_terms(db: Session, limit: int = 10, *, days: int | None = None) -> list[str]:
    """Return the most frequent search terms of the recent window."""
    window = days if days is not None else settings.popular_search_window_days
    since = days_ago(window)
    queries = db.execute(select(SearchLog.query).where(SearchLog.searched_at >= since)).scalars()

    counts: Counter[str] = Counter()
    for query in queries:
        term = query.strip().lower()
        if len(term) >= MIN_POPULAR_TERM_LENGTH:
            counts[term] += 1
    return [term for term, _ in counts.most_common(limit)]


def suggestions(db: Session, query: str, limit: int = 5) -> list[str]:
    """Suggest announcement and post titles containing ``query``."""
    if len(query.strip()) < MIN_POPULAR_TERM_LENGTH:
        return []
    try:
        term = sanitize_query(query)
    except ValueError:
        return []

    pattern = f"%{term}%"
    titles = list(
        db.execute(select(Announcement.title).where(Announcement.title.ilike(pattern)).limit(limit))
        .scalars()
    )
    titles.extend(
        db.execute(select(AnonymousPost.title).where(AnonymousPost.title.ilike(pattern)).limit(limit))
        .scalars()
    )
    return list(dict.fromkeys(titles))[:limit]


def summarize(content: str, term: str | None, max_length: int = 150) -> str:
    """Return a snippet of ``content`` centred on the first match of ``term``."""
    def _truncate(text: str) -> str:
        return text[:max_length] + "..." if len(text) > max_length else text

    if not term:
        return _truncate(content)
    index = content.lower().find(term.lower())
    if index == -1:
        return _truncate(content)

    start = max(0, index - SUMMARY_CONTEXT)
    end = min(len(content), index + len(term) + SUMMARY_CONTEXT)
    snippet = content[start:end]
    if start > 0:
        snippet = "..." + snippet
    if end < len(content):
        snippet += "..."
    return snippet
