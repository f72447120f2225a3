"""Append-only ledger of confirmed payment events."""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ventbuddy_stage.models import AccessGrant
from ventbuddy_stage.schemas.common import ContentType, GrantType

from .errors import GrantConflict, StoreWriteFailed

logger = logging.getLogger(__name__)

ACCESS_GRANT_TYPES: tuple[str, ...] = (GrantType.TIP.value, GrantType.UNLOCK.value)


def _grant_key(grant: AccessGrant) -> tuple[int, str, str, str]:
    return (grant.content_id, grant.content_type, grant.identity, grant.grant_type)


class AccessLogStore:
    """Event log of tips and unlocks per (content, identity).

    Grants are never deduplicated by pair: repeated unlocks simply add events.
    The only uniqueness rule is per transaction hash: recording the same
    confirmed transaction twice yields the grant recorded first, and a hash
    already recorded for another payer, item, or grant type is refused.
    """

    @staticmethod
    def record(
        db: Session,
        content_id: int,
        identity: str,
        grant_type: GrantType,
        amount: Decimal,
        *,
        content_type: ContentType = ContentType.POST,
        tx_hash: str | None = None,
    ) -> AccessGrant:
        """Append a grant and commit it.

        Raises:
            GrantConflict: If ``tx_hash`` is already recorded for a different grant.
            StoreWriteFailed: If the grant cannot be persisted.
        """
        normalized_hash = tx_hash.lower() if tx_hash else None
        grant = AccessGrant(
            content_id=content_id,
            content_type=ContentType(content_type).value,
            identity=identity,
            grant_type=GrantType(grant_type).value,
            amount=amount,
            tx_hash=normalized_hash,
        )
        try:
            try:
                with db.begin_nested():
                    db.add(grant)
            except IntegrityError:
                if normalized_hash is None:
                    raise
                existing = db.execute(
                    select(AccessGrant).where(AccessGrant.tx_hash == normalized_hash)
                ).scalar_one()
                if _grant_key(existing) != _grant_key(grant):
                    db.rollback()
                    logger.warning(
                        "Transaction %s is already recorded for another grant", normalized_hash
                    )
                    raise GrantConflict(
                        "This transaction is already recorded for a different grant"
                    )
                logger.info(
                    "Transaction %s already recorded as grant %s", normalized_hash, existing.id
                )
                db.commit()
                return existing
            db.commit()
        except SQLAlchemyError as err:
            db.rollback()
            raise StoreWriteFailed(f"Failed to record access grant: {err}") from err

        db.refresh(grant)
        logger.info(
            "Recorded %s grant %s for %s %s",
            grant.grant_type,
            grant.id,
            grant.content_type,
            grant.content_id,
        )
        return grant

    @staticmethod
    def strongest_grant(
        db: Session,
        content_id: int,
        identity: str,
        content_type: ContentType = ContentType.POST,
    ) -> GrantType | None:
        """Return ``unlock`` if any unlock exists, else ``tip`` if any tip exists."""
        rows = db.execute(
            select(AccessGrant.grant_type)
            .where(
                AccessGrant.content_type == ContentType(content_type).value,
                AccessGrant.content_id == content_id,
                AccessGrant.identity == identity,
                AccessGrant.grant_type.in_(ACCESS_GRANT_TYPES),
            )
            .distinct()
        ).scalars().all()
        found = set(rows)
        if GrantType.UNLOCK.value in found:
            return GrantType.UNLOCK
        if GrantType.TIP.value in found:
            return GrantType.TIP
        return None

    @classmethod
    def has_access(
        cls,
        db: Session,
        content_id: int,
        identity: str,
        content_type: ContentType = ContentType.POST,
    ) -> bool:
        """Return True if any tip or unlock grant exists for the pair."""
        return cls.strongest_grant(db, content_id, identity, content_type) is not None

    @staticmethod
    def list_grants(
        db: Session,
        content_id: int,
        content_type: ContentType = ContentType.POST,
    ) -> list[AccessGrant]:
        """Return all grants for a content item, oldest first."""
        return list(
            db.execute(
                select(AccessGrant)
                .where(
                    AccessGrant.content_type == ContentType(content_type).value,
                    AccessGrant.content_id == content_id,
                )
                .order_by(AccessGrant.created_at, AccessGrant.id)
            ).scalars()
        )

    @staticmethod
    def total_received(
        db: Session,
        content_id: int,
        content_type: ContentType = ContentType.POST,
    ) -> tuple[int, Decimal]:
        """Return ``(grant_count, total_amount)`` received by a content item."""
        count, total = db.execute(
            select(func.count(AccessGrant.id), func.coalesce(func.sum(AccessGrant.amount), 0))
            .where(
                AccessGrant.content_type == ContentType(content_type).value,
                AccessGrant.content_id == content_id,
            )
        ).one()
        return int(count), Decimal(str(total))
