"""Reply-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ReplyCreate(BaseModel):
    """Schema for creating a reply."""

    content: str = Field(..., min_length=1, description="Reply text")
    parent_id: int | None = Field(None, description="Parent reply id for nested replies")


class ReplyResponse(BaseModel):
    """A reply and its nested children."""

    id: int
    post_id: int
    parent_id: int | None
    author_identity: str
    content: str
    content_hash: str
    decode_error: bool = False
    depth: int
    created_at: datetime
    upvote_count: int = 0
    downvote_count: int = 0
    children: list[ReplyResponse] = Field(default_factory=list)


class ReplyCounts(BaseModel):
    """Totals aggregated over all replies of a post."""

    total_replies: int = 0
    total_upvotes: int = 0
    total_downvotes: int = 0
