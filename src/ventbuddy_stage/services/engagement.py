"""Exclusive up/down vote bookkeeping and authoritative counters."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import case, delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ventbuddy_stage.db.time import utcnow
from ventbuddy_stage.models import ContentVote, Post, PostStats, Reply, ReplyStats
from ventbuddy_stage.schemas.common import ContentType, VoteDirection
from ventbuddy_stage.schemas.vote import StatsResponse, VoteResult

from .errors import ContentNotFound, StoreWriteFailed

logger = logging.getLogger(__name__)

# Bounded retries when a concurrent session inserts the same vote row first.
MAX_VOTE_ATTEMPTS = 3


@dataclass(frozen=True)
class _Delta:
    up: int = 0
    down: int = 0

    @classmethod
    def of(cls, direction: VoteDirection, amount: int) -> _Delta:
        if direction is VoteDirection.UP:
            return cls(up=amount)
        return cls(down=amount)

    def __add__(self, other: _Delta) -> _Delta:
        return _Delta(up=self.up + other.up, down=self.down + other.down)


def _floored(column, delta: int):
    """SQL expression for ``max(column + delta, 0)``."""
    return case((column + delta < 0, 0), else_=column + delta)


class EngagementAggregator:
    """Applies exclusive votes to posts and replies.

    Every vote transition is a single conditional statement on the vote row
    and counters move through SQL expressions, so concurrent sessions voting
    on the same content never lose updates. Results are re-read from the
    stored aggregate after commit.
    """

    @staticmethod
    def _stats_model(content_type: ContentType) -> type[PostStats] | type[ReplyStats]:
        return PostStats if content_type is ContentType.POST else ReplyStats

    @classmethod
    def _stats_key(cls, content_type: ContentType):
        model = cls._stats_model(content_type)
        return model.post_id if model is PostStats else model.reply_id

    @staticmethod
    def _ensure_content(db: Session, content_type: ContentType, content_id: int) -> int | None:
        """Return the owning post id for a reply (or None for posts); raise if missing."""
        if content_type is ContentType.POST:
            if db.get(Post, content_id) is None:
                raise ContentNotFound(f"Post {content_id} not found")
            return None
        post_id = db.execute(select(Reply.post_id).where(Reply.id == content_id)).scalar_one_or_none()
        if post_id is None:
            raise ContentNotFound(f"Reply {content_id} not found")
        return post_id

    @classmethod
    def _apply_delta(
        cls,
        db: Session,
        content_type: ContentType,
        content_id: int,
        delta: _Delta,
        post_id: int | None,
    ) -> None:
        model = cls._stats_model(content_type)
        key = cls._stats_key(content_type)
        bump = (
            update(model)
            .where(key == content_id)
            .values(
                upvote_count=_floored(model.upvote_count, delta.up),
                downvote_count=_floored(model.downvote_count, delta.down),
                last_updated=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        if db.execute(bump).rowcount:
            return

        values: dict[str, object] = {
            "upvote_count": max(delta.up, 0),
            "downvote_count": max(delta.down, 0),
            "last_updated": utcnow(),
        }
        if model is PostStats:
            values["post_id"] = content_id
        else:
            values["reply_id"] = content_id
            values["post_id"] = post_id
        try:
            with db.begin_nested():
                db.execute(insert(model).values(**values))
        except IntegrityError:
            # Another session created the row between our update and insert.
            db.execute(bump)

    @staticmethod
    def _vote_filter(content_type: ContentType, content_id: int, identity: str):
        return (
            ContentVote.content_type == content_type.value,
            ContentVote.content_id == content_id,
            ContentVote.voter_identity == identity,
        )

    @classmethod
    def _transition(
        cls,
        db: Session,
        content_type: ContentType,
        content_id: int,
        identity: str,
        direction: VoteDirection,
    ) -> _Delta:
        """Run the conditional vote statements and return the counter delta."""
        where = cls._vote_filter(content_type, content_id, identity)
        for _ in range(MAX_VOTE_ATTEMPTS):
            removed = db.execute(
                delete(ContentVote)
                .where(*where, ContentVote.direction == direction.value)
                .execution_options(synchronize_session=False)
            )
            if removed.rowcount:
                return _Delta.of(direction, -1)

            switched = db.execute(
                update(ContentVote)
                .where(*where, ContentVote.direction == direction.opposite.value)
                .values(direction=direction.value)
                .execution_options(synchronize_session=False)
            )
            if switched.rowcount:
                return _Delta.of(direction.opposite, -1) + _Delta.of(direction, 1)

            try:
                with db.begin_nested():
                    db.execute(
                        insert(ContentVote).values(
                            content_type=content_type.value,
                            content_id=content_id,
                            voter_identity=identity,
                            direction=direction.value,
                        )
                    )
                return _Delta.of(direction, 1)
            except IntegrityError:
                logger.debug("Concurrent vote on %s %s; retrying", content_type, content_id)
        raise StoreWriteFailed("Vote could not be applied after concurrent updates")

    @classmethod
    def set_vote(
        cls,
        db: Session,
        content_type: ContentType,
        content_id: int,
        identity: str,
        direction: VoteDirection,
    ) -> VoteResult:
        """Apply an exclusive vote and return the authoritative state.

        Voting the held direction again removes it; voting the opposite
        direction moves the vote in one step.

        Raises:
            ContentNotFound: If the post or reply does not exist.
            StoreWriteFailed: If the vote cannot be persisted.
        """
        content_type = ContentType(content_type)
        direction = VoteDirection(direction)
        post_id = cls._ensure_content(db, content_type, content_id)
        try:
            delta = cls._transition(db, content_type, content_id, identity, direction)
            cls._apply_delta(db, content_type, content_id, delta, post_id)
            db.commit()
        except SQLAlchemyError as err:
            db.rollback()
            raise StoreWriteFailed(f"Failed to record vote: {err}") from err

        logger.debug(
            "Vote %s on %s %s applied with delta up=%d down=%d",
            direction,
            content_type,
            content_id,
            delta.up,
            delta.down,
        )
        current = cls.get_vote(db, content_type, content_id, identity)
        stats = cls.get_stats(db, content_type, content_id)
        return VoteResult(
            upvote_count=stats.upvote_count,
            downvote_count=stats.downvote_count,
            has_upvoted=current is VoteDirection.UP,
            has_downvoted=current is VoteDirection.DOWN,
        )

    @classmethod
    def get_stats(cls, db: Session, content_type: ContentType, content_id: int) -> StatsResponse:
        """Return the stored counters (zeros when no aggregate row exists)."""
        content_type = ContentType(content_type)
        model = cls._stats_model(content_type)
        row = db.execute(
            select(model.upvote_count, model.downvote_count).where(
                cls._stats_key(content_type) == content_id
            )
        ).first()
        if row is None:
            return StatsResponse()
        return StatsResponse(upvote_count=row.upvote_count, downvote_count=row.downvote_count)

    @classmethod
    def get_vote(
        cls,
        db: Session,
        content_type: ContentType,
        content_id: int,
        identity: str,
    ) -> VoteDirection | None:
        """Return the identity's current vote direction, if any."""
        content_type = ContentType(content_type)
        direction = db.execute(
            select(ContentVote.direction).where(
                *cls._vote_filter(content_type, content_id, identity)
            )
        ).scalar_one_or_none()
        return VoteDirection(direction) if direction else None

    @classmethod
    def recount(cls, db: Session, content_type: ContentType, content_id: int) -> StatsResponse:
        """Rebuild counters for one item from its vote rows."""
        content_type = ContentType(content_type)
        post_id = cls._ensure_content(db, content_type, content_id)
        up, down = db.execute(
            select(
                func.count(case((ContentVote.direction == VoteDirection.UP.value, 1))),
                func.count(case((ContentVote.direction == VoteDirection.DOWN.value, 1))),
            ).where(
                ContentVote.content_type == content_type.value,
                ContentVote.content_id == content_id,
            )
        ).one()
        model = cls._stats_model(content_type)
        try:
            updated = db.execute(
                update(model)
                .where(cls._stats_key(content_type) == content_id)
                .values(upvote_count=up, downvote_count=down, last_updated=utcnow())
                .execution_options(synchronize_session=False)
            )
            if not updated.rowcount:
                values: dict[str, object] = {"upvote_count": up, "downvote_count": down}
                if model is PostStats:
                    values["post_id"] = content_id
                else:
                    values.update(reply_id=content_id, post_id=post_id)
                db.execute(insert(model).values(**values))
            db.commit()
        except SQLAlchemyError as err:
            db.rollback()
            raise StoreWriteFailed(f"Failed to recount votes: {err}") from err
        logger.info("Recounted %s %s: %d up, %d down", content_type, content_id, up, down)
        return StatsResponse(upvote_count=up, downvote_count=down)

    @classmethod
    def recount_all(cls, db: Session) -> int:
        """Recount every post and reply that has votes; return the number fixed."""
        targets = db.execute(
            select(ContentVote.content_type, ContentVote.content_id).distinct()
        ).all()
        for content_type, content_id in targets:
            try:
                cls.recount(db, ContentType(content_type), content_id)
            except ContentNotFound:
                logger.warning("Skipping votes for missing %s %s", content_type, content_id)
        return len(targets)
