"""Wallet address to pseudonymous identity resolution."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass

from cryptography.hazmat.primitives import hashes, hmac
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ventbuddy_stage.core.settings import settings
from ventbuddy_stage.db.time import utcnow
from ventbuddy_stage.models import UserSession

from .errors import (
    AuthenticationFailed,
    IdentityRequired,
    IdentityUnavailable,
    StoreWriteFailed,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewerContext:
    """Per-request view of the connected wallet.

    Passed explicitly into every resolver call instead of reading ambient
    wallet state.
    """

    wallet_address: str | None = None

    @property
    def is_connected(self) -> bool:
        return bool(self.wallet_address)


def normalize_address(wallet_address: str) -> str:
    """Return the canonical lower-cased form of a wallet address."""
    return wallet_address.strip().lower()


def derive_identity(wallet_address: str, secret: str | None = None) -> str:
    """Derive the stable pseudonymous identity for a wallet address."""
    key = (secret or settings.secret_key).encode("utf-8")
    mac = hmac.HMAC(key, hashes.SHA256())
    mac.update(normalize_address(wallet_address).encode("utf-8"))
    return mac.finalize().hex()


class IdentityResolver:
    """Maps wallet addresses to identities through registered sessions."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _lookup(self, wallet_address: str) -> str:
        try:
            identity = self.db.execute(
                select(UserSession.identity).where(
                    UserSession.wallet_address == normalize_address(wallet_address)
                )
            ).scalar_one_or_none()
        except SQLAlchemyError as err:
            raise IdentityUnavailable(f"Session lookup failed: {err}") from err
        if identity is None:
            raise IdentityUnavailable("No session registered for wallet")
        return identity

    def resolve(self, wallet_address: str | None) -> str | None:
        """Return the identity for a wallet, or None when unauthenticated.

        Never raises: a missing session and a failed lookup both degrade to
        an unauthenticated viewer.
        """
        if not wallet_address:
            return None
        try:
            return self._lookup(wallet_address)
        except IdentityUnavailable as err:
            if err.__cause__ is not None:
                logger.warning("Identity lookup failed: %s", err)
            else:
                logger.debug("Identity unavailable for wallet: %s", err)
            return None

    def resolve_context(self, ctx: ViewerContext) -> str | None:
        """Resolve the identity of the viewer described by ``ctx``."""
        return self.resolve(ctx.wallet_address)

    def require(self, ctx: ViewerContext) -> str:
        """Resolve the viewer identity or raise for mutating operations."""
        identity = self.resolve_context(ctx)
        if identity is None:
            raise IdentityRequired("Wallet not registered. Please register your wallet first.")
        return identity

    def verify_session(self, wallet_address: str, session_token: str) -> str:
        """Return the identity of a wallet whose session token is still current.

        Registering again rotates the token, so tokens issued for an older
        session stop verifying.

        Raises:
            AuthenticationFailed: If no session exists or the token was superseded.
            IdentityUnavailable: If the session store cannot be read.
        """
        try:
            session = self.db.execute(
                select(UserSession).where(
                    UserSession.wallet_address == normalize_address(wallet_address)
                )
            ).scalar_one_or_none()
        except SQLAlchemyError as err:
            raise IdentityUnavailable(f"Session lookup failed: {err}") from err
        if session is None or not secrets.compare_digest(
            session.session_token.encode(), session_token.encode()
        ):
            raise AuthenticationFailed("Session is no longer valid")
        return session.identity

    def register(self, wallet_address: str) -> UserSession:
        """Create or refresh the session for a wallet and return it."""
        address = normalize_address(wallet_address)
        identity = derive_identity(address)
        token = secrets.token_hex(32)
        try:
            refreshed = self.db.execute(
                update(UserSession)
                .where(UserSession.wallet_address == address)
                .values(session_token=token, last_active=utcnow())
            )
            if refreshed.rowcount == 0:
                try:
                    with self.db.begin_nested():
                        self.db.add(
                            UserSession(
                                wallet_address=address,
                                identity=identity,
                                session_token=token,
                            )
                        )
                except IntegrityError:
                    # A concurrent registration for the same wallet won the insert.
                    logger.info("Session for wallet already registered concurrently")
            self.db.commit()
        except SQLAlchemyError as err:
            self.db.rollback()
            raise StoreWriteFailed(f"Failed to register session: {err}") from err

        session = self.db.execute(
            select(UserSession).where(UserSession.wallet_address == address)
        ).scalar_one()
        logger.info("Registered wallet session for identity %s", session.identity[:10])
        return session
