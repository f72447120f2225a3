# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from decimal import Decimal
from itertools import count

os.environ.setdefault("PYTEST_RUNNING", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-ventbuddy")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ventbuddy_stage.db.session import Base, enable_sqlite_savepoints
from ventbuddy_stage.db.session import get_db as app_get_session
from ventbuddy_stage.main import app as fastapi_app
from ventbuddy_stage.models import UserSession
from ventbuddy_stage.schemas.common import GrantType, VisibilityTier
from ventbuddy_stage.schemas.content import ContentCreate, ContentItem
from ventbuddy_stage.services.auth import create_access_token
from ventbuddy_stage.services.content import ContentService
from ventbuddy_stage.services.identity import IdentityResolver, ViewerContext
from ventbuddy_stage.services.payments import GatewayError, PaymentReceipt

TEST_DB_URL = "sqlite://"

AUTHOR_WALLET = "0x" + "a1" * 20
VIEWER_WALLET = "0x" + "b2" * 20
OTHER_WALLET = "0x" + "c3" * 20

_POST_ID_COUNTER = count(1)
_TX_COUNTER = count(1)


def make_tx_hash() -> str:
    return "0x" + format(next(_TX_COUNTER), "064x")


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # Services commit, so each test wipes the tables afterwards.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def author(db_session: Session) -> UserSession:
    """Registered session for the wallet that writes posts."""
    return IdentityResolver(db_session).register(AUTHOR_WALLET)


@pytest.fixture()
def viewer(db_session: Session) -> UserSession:
    """Registered session for a reading wallet."""
    return IdentityResolver(db_session).register(VIEWER_WALLET)


@pytest.fixture()
def author_ctx(author: UserSession) -> ViewerContext:
    return ViewerContext(wallet_address=AUTHOR_WALLET)


@pytest.fixture()
def viewer_ctx(viewer: UserSession) -> ViewerContext:
    return ViewerContext(wallet_address=VIEWER_WALLET)


@pytest.fixture()
def other(db_session: Session) -> UserSession:
    """Registered session for a wallet unrelated to the post or the payment."""
    return IdentityResolver(db_session).register(OTHER_WALLET)


def _bearer(session: UserSession) -> dict[str, str]:
    token = create_access_token(session.wallet_address, session.session_token)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def author_headers(author: UserSession) -> dict[str, str]:
    return _bearer(author)


@pytest.fixture()
def viewer_headers(viewer: UserSession) -> dict[str, str]:
    return _bearer(viewer)


@pytest.fixture()
def other_headers(other: UserSession) -> dict[str, str]:
    return _bearer(other)


@pytest.fixture()
def make_post(db_session: Session, author: UserSession) -> Callable[..., ContentItem]:
    """Factory that ingests a post written by the ``author`` wallet."""

    def _make(
        content: str = "Today was rough and I needed to say it somewhere.",
        *,
        gated: bool = False,
        min_price: str = "0.01",
        post_id: int | None = None,
    ) -> ContentItem:
        data = ContentCreate(
            id=post_id or next(_POST_ID_COUNTER),
            author_identity=author.identity,
            content=content,
            preview=content[:20] or "preview",
            visibility_tier=VisibilityTier.GATED if gated else VisibilityTier.PUBLIC,
            min_price=Decimal(min_price) if gated else None,
        )
        return ContentService(db_session).ingest(data)

    return _make


class FakeGateway:
    """In-memory payment gateway with a scripted confirmation outcome.

    Transactions it submitted itself confirm as the call that was made. Any
    other hash confirms as ``grant_type`` on ``content_id`` sent by ``sender``.
    """

    def __init__(
        self,
        outcome: str = "success",
        *,
        value: Decimal | None = None,
        reject: bool = False,
        sender: str = VIEWER_WALLET,
        content_id: int | None = None,
        grant_type: GrantType = GrantType.UNLOCK,
    ) -> None:
        self.outcome = outcome
        self.value = value
        self.reject = reject
        self.sender = sender
        self.content_id = content_id
        self.grant_type = grant_type
        self.submitted: list[tuple[GrantType, int, Decimal]] = []
        self.waited: list[str] = []
        self._calls: dict[str, tuple[GrantType, int]] = {}

    async def _submit(self, kind: GrantType, content_id: int, amount: Decimal) -> str:
        if self.reject:
            raise GatewayError("User rejected the transaction")
        self.submitted.append((kind, content_id, amount))
        tx_hash = make_tx_hash()
        self._calls[tx_hash] = (kind, content_id)
        return tx_hash

    async def submit_unlock(self, content_id: int, amount: Decimal) -> str:
        return await self._submit(GrantType.UNLOCK, content_id, amount)

    async def submit_tip(self, content_id: int, amount: Decimal) -> str:
        return await self._submit(GrantType.TIP, content_id, amount)

    async def wait_for_confirmation(self, tx_hash: str, timeout: float) -> PaymentReceipt | None:
        self.waited.append(tx_hash)
        if self.outcome == "timeout":
            return None
        if self.outcome == "reverted":
            return PaymentReceipt(tx_hash=tx_hash, status="reverted", error="execution reverted")
        grant_type, content_id = self._calls.get(tx_hash, (self.grant_type, self.content_id))
        return PaymentReceipt(
            tx_hash=tx_hash,
            status="success",
            sender=self.sender,
            content_id=content_id,
            grant_type=grant_type,
            value=self.value,
        )


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def gateway_factory() -> type[FakeGateway]:
    return FakeGateway


@pytest.fixture()
def tx_hash() -> str:
    return make_tx_hash()
