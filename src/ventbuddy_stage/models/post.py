"""SQLAlchemy models for gated and public posts."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ventbuddy_stage.db.session import Base
from ventbuddy_stage.db.time import utcnow


class Post(Base):
    """Content item ingested from chain events.

    The identifier is the sequential post id assigned by the contract, so it is
    supplied by the ingester rather than generated here.
    """

    __tablename__ = "post"
    __table_args__ = (
        CheckConstraint(
            "visibility_tier IN ('public', 'gated')",
            name="ck_post_visibility_tier",
        ),
        # Public rows carry no price; gated rows always carry a positive one.
        CheckConstraint(
            "(visibility_tier = 'public' AND min_price IS NULL) OR "
            "(visibility_tier = 'gated' AND min_price IS NOT NULL AND min_price > 0)",
            name="ck_post_tier_price",
        ),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    author_identity: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    visibility_tier: Mapped[str] = mapped_column(String(16), nullable=False)
    min_price: Mapped[Decimal | None] = mapped_column(Numeric(38, 18), nullable=True)

    content_hash: Mapped[str] = mapped_column(String(66), nullable=False)
    preview_hash: Mapped[str] = mapped_column(String(66), nullable=False)
    encoded_content: Mapped[str] = mapped_column(Text, nullable=False)
    encoded_preview: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
