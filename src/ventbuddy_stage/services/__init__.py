"""Business logic services for the Ventbuddy application."""

from .access_log import AccessLogStore
from .codec import ContentCodec
from .content import ContentService
from .engagement import EngagementAggregator
from .identity import IdentityResolver, ViewerContext
from .payments import PaymentGateway, PaymentReceipt, PaymentService
from .replies import ReplyNode, ReplyService, ReplyTreeBuilder
from .visibility import VisibilityResolver

__all__ = [
    "AccessLogStore",
    "ContentCodec",
    "ContentService",
    "EngagementAggregator",
    "IdentityResolver",
    "ViewerContext",
    "PaymentGateway",
    "PaymentReceipt",
    "PaymentService",
    "ReplyNode",
    "ReplyService",
    "ReplyTreeBuilder",
    "VisibilityResolver",
]
