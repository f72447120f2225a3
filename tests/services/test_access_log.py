# mypy: ignore-errors
"""Tests for the append-only grant ledger."""

from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from ventbuddy_stage.models import AccessGrant
from ventbuddy_stage.schemas.common import GrantType
from ventbuddy_stage.services.access_log import AccessLogStore
from ventbuddy_stage.services.errors import GrantConflict, StoreWriteFailed


def test_repeated_grants_are_kept(db_session, make_post, viewer) -> None:
    post = make_post(gated=True)
    for _ in range(2):
        AccessLogStore.record(
            db_session, post.id, viewer.identity, GrantType.UNLOCK, Decimal("0.01")
        )

    grants = AccessLogStore.list_grants(db_session, post.id)
    assert len(grants) == 2
    assert AccessLogStore.has_access(db_session, post.id, viewer.identity)


def test_same_transaction_is_recorded_once(db_session, make_post, viewer, tx_hash) -> None:
    post = make_post(gated=True)
    first = AccessLogStore.record(
        db_session, post.id, viewer.identity, GrantType.UNLOCK, Decimal("0.01"), tx_hash=tx_hash
    )
    second = AccessLogStore.record(
        db_session,
        post.id,
        viewer.identity,
        GrantType.UNLOCK,
        Decimal("0.01"),
        tx_hash=tx_hash.upper().replace("0X", "0x"),
    )

    assert second.id == first.id
    assert db_session.query(AccessGrant).count() == 1


def test_strongest_grant(db_session, make_post, viewer) -> None:
    post = make_post(gated=True)
    assert AccessLogStore.strongest_grant(db_session, post.id, viewer.identity) is None
    assert not AccessLogStore.has_access(db_session, post.id, viewer.identity)

    AccessLogStore.record(db_session, post.id, viewer.identity, GrantType.TIP, Decimal("0.25"))
    assert AccessLogStore.strongest_grant(db_session, post.id, viewer.identity) is GrantType.TIP

    AccessLogStore.record(db_session, post.id, viewer.identity, GrantType.UNLOCK, Decimal("0.5"))
    assert AccessLogStore.strongest_grant(db_session, post.id, viewer.identity) is GrantType.UNLOCK


def test_grants_are_scoped_to_identity(db_session, make_post, viewer, author) -> None:
    post = make_post(gated=True)
    AccessLogStore.record(db_session, post.id, viewer.identity, GrantType.UNLOCK, Decimal("0.5"))

    assert not AccessLogStore.has_access(db_session, post.id, "someone-else")


def test_total_received(db_session, make_post, viewer) -> None:
    post = make_post(gated=True)
    assert AccessLogStore.total_received(db_session, post.id) == (0, Decimal("0"))

    AccessLogStore.record(db_session, post.id, viewer.identity, GrantType.TIP, Decimal("0.25"))
    AccessLogStore.record(db_session, post.id, viewer.identity, GrantType.UNLOCK, Decimal("0.5"))

    count, total = AccessLogStore.total_received(db_session, post.id)
    assert count == 2
    assert total == Decimal("0.75")


def test_store_failure_raises(db_session, make_post, viewer, mocker) -> None:
    post = make_post(gated=True)
    mocker.patch.object(
        db_session, "commit", side_effect=OperationalError("COMMIT", {}, Exception("disk full"))
    )

    with pytest.raises(StoreWriteFailed):
        AccessLogStore.record(
            db_session, post.id, viewer.identity, GrantType.UNLOCK, Decimal("0.01")
        )


def test_transaction_cannot_be_reused_by_another_identity(
    db_session, make_post, viewer, other, tx_hash
) -> None:
    post = make_post(gated=True)
    first = AccessLogStore.record(
        db_session, post.id, viewer.identity, GrantType.UNLOCK, Decimal("0.01"), tx_hash=tx_hash
    )

    with pytest.raises(GrantConflict):
        AccessLogStore.record(
            db_session, post.id, other.identity, GrantType.UNLOCK, Decimal("0.01"), tx_hash=tx_hash
        )

    grants = AccessLogStore.list_grants(db_session, post.id)
    assert [grant.id for grant in grants] == [first.id]
    assert not AccessLogStore.has_access(db_session, post.id, other.identity)


def test_transaction_cannot_be_reused_for_another_post(
    db_session, make_post, viewer, tx_hash
) -> None:
    first_post = make_post(gated=True)
    second_post = make_post(gated=True)
    AccessLogStore.record(
        db_session, first_post.id, viewer.identity, GrantType.UNLOCK, Decimal("0.01"), tx_hash=tx_hash
    )

    with pytest.raises(GrantConflict):
        AccessLogStore.record(
            db_session,
            second_post.id,
            viewer.identity,
            GrantType.UNLOCK,
            Decimal("0.01"),
            tx_hash=tx_hash,
        )
    assert not AccessLogStore.has_access(db_session, second_post.id, viewer.identity)
