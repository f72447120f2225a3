"""Models for nested replies attached to posts."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, Integer, SmallInteger, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ventbuddy_stage.db.session import Base
from ventbuddy_stage.db.time import utcnow


class Reply(Base):
    """Append-only reply; top-level replies have parent_id = NULL."""

    __tablename__ = "reply"
    __table_args__ = (
        Index("ix_reply_post_created", "post_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("post.id", ondelete="CASCADE"),
        nullable=False,
    )
    parent_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("reply.id"),
        nullable=True,
    )
    replier_identity: Mapped[str] = mapped_column(String(64), nullable=False)

    content_hash: Mapped[str] = mapped_column(String(66), nullable=False)
    preview_hash: Mapped[str] = mapped_column(String(66), nullable=False)
    encoded_content: Mapped[str] = mapped_column(Text, nullable=False)
    encoded_preview: Mapped[str] = mapped_column(Text, nullable=False)

    # 0 for top-level replies; stored so composition limits need no ancestor walk.
    depth: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
