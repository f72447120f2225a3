"""Version 1 API endpoints."""

from .endpoints import (
    content_router,
    payments_router,
    replies_router,
    sessions_router,
    votes_router,
)

__all__ = [
    "content_router",
    "payments_router",
    "replies_router",
    "sessions_router",
    "votes_router",
]
