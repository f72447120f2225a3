"""Models capturing votes and aggregated engagement counters."""

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from ventbuddy_stage.db.session import Base
from ventbuddy_stage.db.time import utcnow


class ContentVote(Base):
    """Per-identity exclusive vote on a post or reply."""

    __tablename__ = "content_vote"
    __table_args__ = (
        CheckConstraint("direction IN ('up', 'down')", name="ck_content_vote_direction"),
        CheckConstraint("content_type IN ('post', 'reply')", name="ck_content_vote_content_type"),
        Index("ix_content_vote_content", "content_type", "content_id"),
    )

    # Composite primary key: at most one vote per identity and content item.
    content_type: Mapped[str] = mapped_column(String(16), primary_key=True)
    content_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    voter_identity: Mapped[str] = mapped_column(String(64), primary_key=True)

    direction: Mapped[str] = mapped_column(String(8), nullable=False)


class PostStats(Base):
    """Authoritative counters for a post."""

    __tablename__ = "post_stats"
    __table_args__ = (
        CheckConstraint("upvote_count >= 0", name="ck_post_stats_upvotes"),
        CheckConstraint("downvote_count >= 0", name="ck_post_stats_downvotes"),
        CheckConstraint("reply_count >= 0", name="ck_post_stats_replies"),
    )

    post_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("post.id", ondelete="CASCADE"),
        primary_key=True,
    )
    upvote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    downvote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reply_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )


class ReplyStats(Base):
    """Authoritative vote counters for a reply."""

    __tablename__ = "reply_stats"
    __table_args__ = (
        CheckConstraint("upvote_count >= 0", name="ck_reply_stats_upvotes"),
        CheckConstraint("downvote_count >= 0", name="ck_reply_stats_downvotes"),
        Index("ix_reply_stats_post_id", "post_id"),
    )

    reply_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("reply.id", ondelete="CASCADE"),
        primary_key=True,
    )
    post_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("post.id", ondelete="CASCADE"),
        nullable=False,
    )
    upvote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    downvote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
