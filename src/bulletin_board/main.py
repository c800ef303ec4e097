# src/bulletin_board/main.py
"""Main entry point for the bulletin board application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from bulletin_board.api.v1 import (
    announcements_router,
    attachments_router,
    auth_router,
    board_router,
    employees_router,
    notifications_router,
    search_router,
    votes_router,
)
from bulletin_board.core.settings import settings
from bulletin_board.services.change_feed import get_change_feed

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    description="Company bulletin board: announcements, anonymous board and notifications",
    version=settings.app_version,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

app.add_middleware(GZipMiddleware)

API_ROUTERS = (
    auth_router,
    employees_router,
    announcements_router,
    attachments_router,
    board_router,
    votes_router,
    notifications_router,
    search_router,
)
for router in API_ROUTERS:
    app.include_router(router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    feed = get_change_feed()
    logger.info("%s %s started with %s", settings.app_name, settings.app_version, type(feed).__name__)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await get_change_feed().close()
    logger.info("%s stopped", settings.app_name)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Liveness check."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Service metadata and links to the API docs."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Company bulletin board API",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("bulletin_board.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
