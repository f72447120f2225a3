"""Access decisions for a (content, viewer) pair."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ventbuddy_stage.models import Post
from ventbuddy_stage.schemas.access import AccessDecision
from ventbuddy_stage.schemas.common import AccessReason, ContentType, GrantType
from ventbuddy_stage.schemas.content import ContentItem, PublicContent, content_item_adapter

from .access_log import AccessLogStore
from .errors import ContentNotFound
from .identity import IdentityResolver, ViewerContext

logger = logging.getLogger(__name__)


def content_from_orm(post: Post) -> ContentItem:
    """Build the tier-tagged content value from a stored post."""
    data: dict[str, object] = {
        "id": post.id,
        "author_identity": post.author_identity,
        "visibility_tier": post.visibility_tier,
    }
    if post.min_price is not None:
        data["min_price"] = post.min_price
    return content_item_adapter.validate_python(data)


def load_content(db: Session, content_id: int) -> ContentItem:
    """Load a content item or raise ``ContentNotFound``."""
    post = db.get(Post, content_id)
    if post is None:
        raise ContentNotFound(f"Content {content_id} not found")
    return content_from_orm(post)


class VisibilityResolver:
    """Decides whether a viewer may see a content item.

    Decisions are recomputed on every call; nothing is cached, so a grant
    recorded after a confirmation is reflected by the next evaluation.
    """

    @staticmethod
    def evaluate(
        content: ContentItem,
        viewer_identity: str | None,
        grant: GrantType | None = None,
    ) -> AccessDecision:
        """Apply the decision rules to already-loaded inputs."""
        if isinstance(content, PublicContent):
            return AccessDecision.unlocked(AccessReason.PUBLIC)
        if viewer_identity is None:
            return AccessDecision.locked(AccessReason.UNAUTHENTICATED)
        if viewer_identity == content.author_identity:
            return AccessDecision.unlocked(AccessReason.AUTHOR)
        if grant == GrantType.UNLOCK:
            return AccessDecision.unlocked(AccessReason.UNLOCK)
        if grant == GrantType.TIP:
            return AccessDecision.unlocked(AccessReason.TIP)
        return AccessDecision.locked(AccessReason.PAYMENT_REQUIRED)

    @classmethod
    def evaluate_for(
        cls,
        db: Session,
        content: ContentItem,
        viewer_identity: str | None,
    ) -> AccessDecision:
        """Evaluate a loaded content item, querying grants only when needed."""
        grant: GrantType | None = None
        needs_grant = (
            not isinstance(content, PublicContent)
            and viewer_identity is not None
            and viewer_identity != content.author_identity
        )
        if needs_grant:
            try:
                grant = AccessLogStore.strongest_grant(
                    db, content.id, viewer_identity, ContentType.POST
                )
            except SQLAlchemyError as err:
                logger.warning("Grant lookup failed for content %s: %s", content.id, err)
                return AccessDecision.locked(AccessReason.PAYMENT_REQUIRED)
        return cls.evaluate(content, viewer_identity, grant)

    @classmethod
    def decide(cls, db: Session, ctx: ViewerContext, content_id: int) -> AccessDecision:
        """Resolve the viewer and content, then evaluate.

        Raises:
            ContentNotFound: If the content item does not exist.
        """
        content = load_content(db, content_id)
        viewer_identity = IdentityResolver(db).resolve_context(ctx)
        return cls.evaluate_for(db, content, viewer_identity)
