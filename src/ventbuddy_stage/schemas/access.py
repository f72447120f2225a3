"""Access decision and grant schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from .common import AccessReason, ContentType, GrantType


class AccessDecision(BaseModel):
    """Derived visibility decision; never persisted."""

    has_access: bool
    reason: AccessReason

    model_config = ConfigDict(frozen=True)

    @classmethod
    def unlocked(cls, reason: AccessReason) -> AccessDecision:
        return cls(has_access=True, reason=reason)

    @classmethod
    def locked(cls, reason: AccessReason) -> AccessDecision:
        return cls(has_access=False, reason=reason)


class GrantResponse(BaseModel):
    """Schema for an access grant returned by the API."""

    id: int
    content_id: int
    content_type: ContentType
    identity: str
    grant_type: GrantType
    amount: Decimal
    tx_hash: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentConfirmation(BaseModel):
    """Schema for confirming a transaction submitted by the viewer's wallet."""

    content_id: int = Field(..., gt=0)
    grant_type: GrantType
    amount: Decimal = Field(..., gt=0, description="Amount in ETH")
    tx_hash: str = Field(..., pattern=r"^0x[0-9a-fA-F]{64}$")


class EarningsResponse(BaseModel):
    """Totals received by a content item across all grants."""

    content_id: int
    grant_count: int
    total_amount: Decimal
