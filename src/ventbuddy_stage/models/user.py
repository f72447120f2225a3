"""SQLAlchemy models for wallet sessions and pseudonymous identities."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ventbuddy_stage.db.session import Base
from ventbuddy_stage.db.time import utcnow


class UserSession(Base):
    """Registered wallet session mapping an address to a stable identity."""

    __tablename__ = "user_session"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    # Stored lower-cased; lookups are case-insensitive on the hex address.
    wallet_address: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    identity: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    session_token: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    last_active: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
