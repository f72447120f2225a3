"""Nested reply creation, decoding, and tree assembly."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ventbuddy_stage.core.settings import settings
from ventbuddy_stage.db.time import utcnow
from ventbuddy_stage.models import Post, PostStats, Reply, ReplyStats
from ventbuddy_stage.schemas.reply import ReplyCounts, ReplyResponse

from .codec import ContentCodec, get_content_codec, make_preview
from .errors import (
    ContentNotFound,
    DecodeFailed,
    InvalidReply,
    ReplyDepthExceeded,
    StoreWriteFailed,
)
from .identity import IdentityResolver, ViewerContext

logger = logging.getLogger(__name__)

DECODE_FAILED_PLACEHOLDER = "[Decryption failed]"


@dataclass
class ReplyNode:
    """A reply in the assembled forest."""

    id: int
    post_id: int
    parent_id: int | None
    author_identity: str
    content: str
    created_at: datetime
    content_hash: str = ""
    depth: int = 0
    decode_error: bool = False
    upvote_count: int = 0
    downvote_count: int = 0
    children: list[ReplyNode] = field(default_factory=list)

    def to_response(self) -> ReplyResponse:
        return ReplyResponse(
            id=self.id,
            post_id=self.post_id,
            parent_id=self.parent_id,
            author_identity=self.author_identity,
            content=self.content,
            content_hash=self.content_hash,
            decode_error=self.decode_error,
            depth=self.depth,
            created_at=self.created_at,
            upvote_count=self.upvote_count,
            downvote_count=self.downvote_count,
            children=[child.to_response() for child in self.children],
        )


class ReplyTreeBuilder:
    """Assembles a flat, creation-ordered reply list into a forest."""

    @staticmethod
    def build_tree(flat_replies: Iterable[ReplyNode]) -> list[ReplyNode]:
        """Group replies under their parents.

        Roots are replies without a parent; a reply whose parent is not part
        of the input is promoted to a root. Children keep creation order.
        Assembly depth is unbounded.
        """
        # Stable sort keeps the caller's order for equal timestamps.
        ordered = sorted(flat_replies, key=lambda node: node.created_at)
        by_id = {node.id: node for node in ordered}
        children: dict[int, list[ReplyNode]] = defaultdict(list)
        roots: list[ReplyNode] = []
        for node in ordered:
            node.children = []
            if node.parent_id is not None and node.parent_id in by_id:
                children[node.parent_id].append(node)
            else:
                if node.parent_id is not None:
                    logger.debug("Reply %s has no loaded parent %s", node.id, node.parent_id)
                roots.append(node)
        for parent_id, kids in children.items():
            by_id[parent_id].children = kids
        return roots


class ReplyService:
    """Creates replies and reads them back as a decoded tree."""

    def __init__(self, db: Session, codec: ContentCodec | None = None) -> None:
        self.db = db
        self.codec = codec or get_content_codec()

    def _parent_depth(self, post_id: int, parent_id: int) -> int:
        parent = self.db.get(Reply, parent_id)
        if parent is None or parent.post_id != post_id:
            raise InvalidReply(f"Parent reply {parent_id} not found on post {post_id}")
        return parent.depth

    def create(
        self,
        ctx: ViewerContext,
        post_id: int,
        content: str,
        parent_id: int | None = None,
    ) -> ReplyNode:
        """Create a reply on a post, optionally nested under another reply.

        Raises:
            IdentityRequired: If the viewer has no registered session.
            ContentNotFound: If the post does not exist.
            InvalidReply: If the text is empty or the parent is not on the post.
            ReplyDepthExceeded: If the parent is already at the depth limit.
            StoreWriteFailed: If persisting fails.
        """
        identity = IdentityResolver(self.db).require(ctx)
        text = content.strip()
        if not text:
            raise InvalidReply("Please enter reply content")
        if len(text) > settings.max_content_length:
            raise InvalidReply("Reply content is too long")
        if self.db.get(Post, post_id) is None:
            raise ContentNotFound(f"Post {post_id} not found")

        depth = 0
        if parent_id is not None:
            depth = self._parent_depth(post_id, parent_id) + 1
            if depth > settings.max_reply_depth:
                raise ReplyDepthExceeded(
                    f"Replies cannot be nested deeper than {settings.max_reply_depth} levels"
                )

        preview = make_preview(text)
        reply = Reply(
            post_id=post_id,
            parent_id=parent_id,
            replier_identity=identity,
            content_hash=self.codec.hash(text),
            preview_hash=self.codec.hash(preview),
            encoded_content=self.codec.encode(text),
            encoded_preview=self.codec.encode(preview),
            depth=depth,
            created_at=utcnow(),
        )
        try:
            self.db.add(reply)
            self.db.flush()
            self.db.add(ReplyStats(reply_id=reply.id, post_id=post_id))
            bumped = self.db.execute(
                update(PostStats)
                .where(PostStats.post_id == post_id)
                .values(reply_count=PostStats.reply_count + 1, last_updated=utcnow())
                .execution_options(synchronize_session=False)
            )
            if not bumped.rowcount:
                self.db.execute(insert(PostStats).values(post_id=post_id, reply_count=1))
            self.db.commit()
        except SQLAlchemyError as err:
            self.db.rollback()
            raise StoreWriteFailed(f"Failed to create reply: {err}") from err

        self.db.refresh(reply)
        logger.info("Created reply %s on post %s at depth %d", reply.id, post_id, depth)
        return ReplyNode(
            id=reply.id,
            post_id=post_id,
            parent_id=parent_id,
            author_identity=identity,
            content=text,
            content_hash=reply.content_hash,
            depth=depth,
            created_at=reply.created_at,
        )

    def _decode_node(self, reply: Reply, stats: ReplyStats | None) -> ReplyNode:
        decode_error = False
        try:
            text = self.codec.decode(reply.encoded_content)
            if not self.codec.verify(text, reply.content_hash):
                raise DecodeFailed("Content hash mismatch")
        except DecodeFailed as err:
            logger.warning("Failed to decode reply %s: %s", reply.id, err)
            text = DECODE_FAILED_PLACEHOLDER
            decode_error = True
        return ReplyNode(
            id=reply.id,
            post_id=reply.post_id,
            parent_id=reply.parent_id,
            author_identity=reply.replier_identity,
            content=text,
            content_hash=reply.content_hash,
            depth=reply.depth,
            decode_error=decode_error,
            created_at=reply.created_at,
            upvote_count=stats.upvote_count if stats else 0,
            downvote_count=stats.downvote_count if stats else 0,
        )

    def list_flat(self, post_id: int) -> list[ReplyNode]:
        """Return decoded replies for a post in creation order.

        Each reply decodes independently; failures become placeholders.
        """
        rows: Sequence[tuple[Reply, ReplyStats | None]] = self.db.execute(
            select(Reply, ReplyStats)
            .outerjoin(ReplyStats, ReplyStats.reply_id == Reply.id)
            .where(Reply.post_id == post_id)
            .order_by(Reply.created_at, Reply.id)
        ).tuples().all()
        return [self._decode_node(reply, stats) for reply, stats in rows]

    def list_tree(self, post_id: int) -> list[ReplyNode]:
        """Return the decoded reply forest for a post."""
        if self.db.get(Post, post_id) is None:
            raise ContentNotFound(f"Post {post_id} not found")
        return ReplyTreeBuilder.build_tree(self.list_flat(post_id))

    def reply_counts(self, post_id: int) -> ReplyCounts:
        """Return reply and vote totals across a post's replies.

        Raises:
            ContentNotFound: If the post does not exist.
        """
        if self.db.get(Post, post_id) is None:
            raise ContentNotFound(f"Post {post_id} not found")
        total, up, down = self.db.execute(
            select(
                func.count(ReplyStats.reply_id),
                func.coalesce(func.sum(ReplyStats.upvote_count), 0),
                func.coalesce(func.sum(ReplyStats.downvote_count), 0),
            ).where(ReplyStats.post_id == post_id)
        ).one()
        return ReplyCounts(total_replies=total, total_upvotes=up, total_downvotes=down)
