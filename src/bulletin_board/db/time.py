"""Timestamps for rows and change events, always timezone-aware UTC."""

from datetime import UTC, datetime, timedelta


def utcnow() -> datetime:
    return datetime.now(UTC)


def days_ago(days: int) -> datetime:
    """Start of a trailing window of ``days`` days ending now."""
    return utcnow() - timedelta(days=days)
