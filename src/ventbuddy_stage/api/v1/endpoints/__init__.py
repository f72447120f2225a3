"""API endpoint modules for version 1."""

from .content import router as content_router
from .payments import router as payments_router
from .replies import router as replies_router
from .sessions import router as sessions_router
from .votes import router as votes_router

__all__ = [
    "content_router",
    "payments_router",
    "replies_router",
    "sessions_router",
    "votes_router",
]
