"""Append-only ledger of confirmed payment events."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from ventbuddy_stage.db.session import Base
from ventbuddy_stage.db.time import utcnow


class AccessGrant(Base):
    """Recorded proof of payment for a content item.

    Rows are never updated or deleted. Several grants may exist for the same
    (content, identity) pair; access only depends on existence.
    """

    __tablename__ = "access_grant"
    __table_args__ = (
        CheckConstraint("grant_type IN ('tip', 'unlock')", name="ck_access_grant_type"),
        CheckConstraint("content_type IN ('post', 'reply')", name="ck_access_grant_content_type"),
        CheckConstraint("amount >= 0", name="ck_access_grant_amount"),
        Index("ix_access_grant_lookup", "content_type", "content_id", "identity"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    content_type: Mapped[str] = mapped_column(String(16), nullable=False, default="post")
    identity: Mapped[str] = mapped_column(String(64), nullable=False)
    grant_type: Mapped[str] = mapped_column(String(16), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(38, 18), nullable=False)
    # One grant per confirmed transaction; NULL for grants recorded without a hash.
    tx_hash: Mapped[str | None] = mapped_column(String(66), nullable=True, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
