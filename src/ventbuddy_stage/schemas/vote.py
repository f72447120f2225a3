"""Vote-related Pydantic schemas."""

from pydantic import BaseModel, Field

from .common import ContentType, VoteDirection


class VoteCreate(BaseModel):
    """Schema for setting a vote."""

    content_type: ContentType = ContentType.POST
    content_id: int = Field(..., gt=0)
    direction: VoteDirection = Field(..., description="'up' or 'down'")


class StatsResponse(BaseModel):
    """Stored aggregate counters for a content item."""

    upvote_count: int = 0
    downvote_count: int = 0


class VoteResult(StatsResponse):
    """Viewer vote state together with authoritative post-mutation counters."""

    has_upvoted: bool = False
    has_downvoted: bool = False


class MyVoteResponse(BaseModel):
    """The viewer's current vote, if any."""

    direction: VoteDirection | None = None
