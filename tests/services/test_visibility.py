# mypy: ignore-errors
"""Tests for access decisions."""

from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from ventbuddy_stage.schemas.common import AccessReason, GrantType
from ventbuddy_stage.schemas.content import GatedContent, PublicContent
from ventbuddy_stage.services.access_log import AccessLogStore
from ventbuddy_stage.services.errors import ContentNotFound
from ventbuddy_stage.services.identity import ViewerContext
from ventbuddy_stage.services.visibility import VisibilityResolver

PUBLIC = PublicContent(id=1, author_identity="author")
GATED = GatedContent(id=2, author_identity="author", min_price=Decimal("0.01"))


@pytest.mark.parametrize("viewer", [None, "author", "someone"])
def test_public_content_is_always_unlocked(viewer) -> None:
    decision = VisibilityResolver.evaluate(PUBLIC, viewer)
    assert decision.has_access is True
    assert decision.reason == AccessReason.PUBLIC


def test_gated_content_locked_for_anonymous_viewer() -> None:
    decision = VisibilityResolver.evaluate(GATED, None, GrantType.UNLOCK)
    assert decision.has_access is False
    assert decision.reason == AccessReason.UNAUTHENTICATED


def test_gated_content_unlocked_for_author() -> None:
    decision = VisibilityResolver.evaluate(GATED, "author")
    assert decision.has_access is True
    assert decision.reason == AccessReason.AUTHOR


def test_gated_content_requires_payment_without_grant() -> None:
    decision = VisibilityResolver.evaluate(GATED, "someone")
    assert decision.has_access is False
    assert decision.reason == AccessReason.PAYMENT_REQUIRED


@pytest.mark.parametrize(
    ("grant", "reason"),
    [(GrantType.UNLOCK, AccessReason.UNLOCK), (GrantType.TIP, AccessReason.TIP)],
)
def test_gated_content_unlocked_by_grant(grant, reason) -> None:
    decision = VisibilityResolver.evaluate(GATED, "someone", grant)
    assert decision.has_access is True
    assert decision.reason == reason


def test_decide_reflects_recorded_unlock(db_session, make_post, viewer, viewer_ctx) -> None:
    post = make_post(gated=True)
    before = VisibilityResolver.decide(db_session, viewer_ctx, post.id)
    assert before.reason == AccessReason.PAYMENT_REQUIRED

    AccessLogStore.record(db_session, post.id, viewer.identity, GrantType.UNLOCK, Decimal("0.01"))

    after = VisibilityResolver.decide(db_session, viewer_ctx, post.id)
    assert after.has_access is True
    assert after.reason == AccessReason.UNLOCK


def test_decide_prefers_unlock_over_tip(db_session, make_post, viewer, viewer_ctx) -> None:
    post = make_post(gated=True)
    AccessLogStore.record(db_session, post.id, viewer.identity, GrantType.TIP, Decimal("0.5"))
    AccessLogStore.record(db_session, post.id, viewer.identity, GrantType.UNLOCK, Decimal("0.5"))

    decision = VisibilityResolver.decide(db_session, viewer_ctx, post.id)
    assert decision.reason == AccessReason.UNLOCK


def test_decide_for_author_of_gated_post(db_session, make_post, author_ctx) -> None:
    post = make_post(gated=True)

    decision = VisibilityResolver.decide(db_session, author_ctx, post.id)
    assert decision.reason == AccessReason.AUTHOR


def test_decide_for_unregistered_wallet_is_unauthenticated(db_session, make_post) -> None:
    post = make_post(gated=True)
    ctx = ViewerContext(wallet_address="0x" + "99" * 20)

    decision = VisibilityResolver.decide(db_session, ctx, post.id)
    assert decision.reason == AccessReason.UNAUTHENTICATED


def test_decide_missing_content(db_session, viewer_ctx) -> None:
    with pytest.raises(ContentNotFound):
        VisibilityResolver.decide(db_session, viewer_ctx, 424242)


def test_grant_lookup_failure_degrades_to_locked(db_session, make_post, viewer, mocker) -> None:
    post = make_post(gated=True)
    mocker.patch.object(
        AccessLogStore,
        "strongest_grant",
        side_effect=OperationalError("SELECT", {}, Exception("down")),
    )

    decision = VisibilityResolver.evaluate_for(db_session, post, viewer.identity)
    assert decision.has_access is False
    assert decision.reason == AccessReason.PAYMENT_REQUIRED
