"""
Pydantic schemas for API request/response models and domain values.

These schemas define the structure of API data for serialization and validation.
"""

from .access import AccessDecision, EarningsResponse, GrantResponse, PaymentConfirmation
from .common import AccessReason, ContentType, GrantType, VisibilityTier, VoteDirection
from .content import ContentCreate, ContentItem, ContentView, GatedContent, PublicContent
from .reply import ReplyCounts, ReplyCreate, ReplyResponse
from .session import SessionCreate, SessionResponse
from .vote import MyVoteResponse, StatsResponse, VoteCreate, VoteResult

__all__ = [
    "AccessDecision", "EarningsResponse", "GrantResponse", "PaymentConfirmation",
    "AccessReason", "ContentType", "GrantType", "VisibilityTier", "VoteDirection",
    "ContentCreate", "ContentItem", "ContentView", "GatedContent", "PublicContent",
    "ReplyCounts", "ReplyCreate", "ReplyResponse",
    "SessionCreate", "SessionResponse",
    "MyVoteResponse", "StatsResponse", "VoteCreate", "VoteResult",
]
