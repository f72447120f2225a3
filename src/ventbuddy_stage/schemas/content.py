"""Content schemas, modelled as a union tagged by visibility tier."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from .access import AccessDecision
from .common import VisibilityTier
from .vote import StatsResponse


class _ContentBase(BaseModel):
    id: int = Field(..., gt=0, description="Sequential post id assigned on chain")
    author_identity: str

    model_config = ConfigDict(frozen=True)


class PublicContent(_ContentBase):
    """Freely viewable content; carries no unlock price."""

    visibility_tier: Literal["public"] = "public"

    model_config = ConfigDict(frozen=True, extra="forbid")


class GatedContent(_ContentBase):
    """Payment-gated content; the unlock price is mandatory and positive."""

    visibility_tier: Literal["gated"] = "gated"
    min_price: Decimal = Field(..., gt=0, description="Minimum unlock amount in ETH")

    model_config = ConfigDict(frozen=True, extra="forbid")


ContentItem = Annotated[PublicContent | GatedContent, Field(discriminator="visibility_tier")]
content_item_adapter: TypeAdapter[PublicContent | GatedContent] = TypeAdapter(ContentItem)


class ContentCreate(BaseModel):
    """Schema for ingesting a post observed on chain."""

    id: int = Field(..., gt=0)
    author_identity: str = Field(..., min_length=1, max_length=64)
    content: str = Field(..., min_length=1)
    preview: str = Field(..., min_length=1)
    visibility_tier: VisibilityTier
    min_price: Decimal | None = Field(None, gt=0)


class ContentView(BaseModel):
    """Content as seen by a particular viewer."""

    content: ContentItem
    decision: AccessDecision
    body: str | None = None
    preview: str | None = None
    decode_error: bool = False
    content_hash: str
    created_at: datetime
    stats: StatsResponse
