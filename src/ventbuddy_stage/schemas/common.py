"""Shared enumerations and schemas used across the API and services."""
from __future__ import annotations

from enum import StrEnum


class VisibilityTier(StrEnum):
    """Visibility classification of a content item."""

    PUBLIC = "public"
    GATED = "gated"


class ContentType(StrEnum):
    """Kinds of content that can carry grants and votes."""

    POST = "post"
    REPLY = "reply"


class GrantType(StrEnum):
    """Payment events that grant access to gated content."""

    TIP = "tip"
    UNLOCK = "unlock"


class VoteDirection(StrEnum):
    """Exclusive vote directions."""

    UP = "up"
    DOWN = "down"

    @property
    def opposite(self) -> VoteDirection:
        return VoteDirection.DOWN if self is VoteDirection.UP else VoteDirection.UP


class AccessReason(StrEnum):
    """Closed set of reasons attached to an access decision."""

    PUBLIC = "public"
    AUTHOR = "author"
    UNLOCK = "unlock"
    TIP = "tip"
    UNAUTHENTICATED = "unauthenticated"
    PAYMENT_REQUIRED = "payment_required"
