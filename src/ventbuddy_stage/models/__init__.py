"""SQLAlchemy models for the Ventbuddy application."""

from .access import AccessGrant
from .engagement import ContentVote, PostStats, ReplyStats
from .post import Post
from .reply import Reply
from .user import UserSession

__all__ = [
    "AccessGrant",
    "ContentVote", "PostStats", "ReplyStats",
    "Post",
    "Reply",
    "UserSession",
]
