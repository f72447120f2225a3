"""Ingestion and viewer-scoped reads of posts."""

from __future__ import annotations

import logging

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ventbuddy_stage.models import Post, PostStats
from ventbuddy_stage.schemas.common import ContentType
from ventbuddy_stage.schemas.content import (
    ContentCreate,
    ContentItem,
    ContentView,
    GatedContent,
    content_item_adapter,
)

from .codec import ContentCodec, get_content_codec
from .engagement import EngagementAggregator
from .errors import ContentNotFound, DecodeFailed, StoreWriteFailed
from .identity import IdentityResolver, ViewerContext
from .visibility import VisibilityResolver, content_from_orm

logger = logging.getLogger(__name__)

DEFAULT_FEED_LIMIT = 20
MAX_FEED_LIMIT = 100


class ContentService:
    """Stores externally created posts and serves them per viewer."""

    def __init__(self, db: Session, codec: ContentCodec | None = None) -> None:
        self.db = db
        self.codec = codec or get_content_codec()

    def ingest(self, data: ContentCreate) -> ContentItem:
        """Persist a post observed on chain.

        Raises:
            ValueError: If the tier and price combination is impossible.
            StoreWriteFailed: If the post already exists or cannot be stored.
        """
        try:
            item = content_item_adapter.validate_python(
                {
                    "id": data.id,
                    "author_identity": data.author_identity,
                    "visibility_tier": data.visibility_tier.value,
                    **({"min_price": data.min_price} if data.min_price is not None else {}),
                }
            )
        except ValidationError as err:
            raise ValueError(f"Invalid content tier/price combination: {err}") from err

        post = Post(
            id=item.id,
            author_identity=item.author_identity,
            visibility_tier=item.visibility_tier,
            min_price=item.min_price if isinstance(item, GatedContent) else None,
            content_hash=self.codec.hash(data.content),
            preview_hash=self.codec.hash(data.preview),
            encoded_content=self.codec.encode(data.content),
            encoded_preview=self.codec.encode(data.preview),
        )
        try:
            self.db.add(post)
            self.db.flush()
            self.db.add(PostStats(post_id=post.id))
            self.db.commit()
        except IntegrityError as err:
            self.db.rollback()
            raise StoreWriteFailed(f"Post {data.id} already exists") from err
        except SQLAlchemyError as err:
            self.db.rollback()
            raise StoreWriteFailed(f"Failed to store post: {err}") from err

        logger.info("Ingested %s post %s", item.visibility_tier, item.id)
        return item

    def read(self, ctx: ViewerContext, post_id: int) -> ContentView:
        """Return the post as seen by the viewer.

        The body is only decoded when the access decision grants access.
        """
        post = self.db.get(Post, post_id)
        if post is None:
            raise ContentNotFound(f"Post {post_id} not found")
        item = content_from_orm(post)
        viewer_identity = IdentityResolver(self.db).resolve_context(ctx)
        decision = VisibilityResolver.evaluate_for(self.db, item, viewer_identity)

        body: str | None = None
        decode_error = False
        if decision.has_access:
            try:
                body = self.codec.decode(post.encoded_content)
                if not self.codec.verify(body, post.content_hash):
                    raise DecodeFailed("Content hash mismatch")
            except DecodeFailed as err:
                logger.warning("Failed to decode post %s: %s", post_id, err)
                body = None
                decode_error = True

        return ContentView(
            content=item,
            decision=decision,
            body=body,
            decode_error=decode_error,
            content_hash=post.content_hash,
            created_at=post.created_at,
            stats=EngagementAggregator.get_stats(self.db, ContentType.POST, post_id),
        )
