"""Wallet ownership challenges and bearer access tokens.

A wallet signs in by signing a server-issued message with ``personal_sign``.
The challenge is stateless: it carries its nonce, issue time, and an HMAC
bound to the wallet address, so only challenges this server issued verify.
"""

from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from cryptography.hazmat.primitives import hashes, hmac
from eth_account import Account
from eth_account.messages import encode_defunct
from jose import JWTError, jwt

from ventbuddy_stage.core.settings import settings

from .errors import AuthenticationFailed
from .identity import normalize_address

logger = logging.getLogger(__name__)

CHALLENGE_NONCE_BYTES = 16


@dataclass(frozen=True)
class WalletChallenge:
    """Challenge material handed to a wallet before sign-in."""

    wallet_address: str
    challenge: str
    message: str
    expires_at: datetime


def _challenge_mac(address: str, nonce: str, issued_at: int) -> str:
    mac = hmac.HMAC(settings.secret_key.encode("utf-8"), hashes.SHA256())
    mac.update(f"{address}|{nonce}|{issued_at}".encode())
    return mac.finalize().hex()


def challenge_message(address: str, nonce: str, issued_at: int) -> str:
    """Return the text a wallet signs to prove it controls ``address``."""
    return (
        f"Sign in to {settings.app_name}\n"
        f"Wallet: {address}\n"
        f"Nonce: {nonce}\n"
        f"Issued At: {issued_at}"
    )


def issue_challenge(wallet_address: str, *, now: int | None = None) -> WalletChallenge:
    """Generate a sign-in challenge for a wallet."""
    address = normalize_address(wallet_address)
    issued_at = int(time.time()) if now is None else now
    nonce = secrets.token_hex(CHALLENGE_NONCE_BYTES)
    return WalletChallenge(
        wallet_address=address,
        challenge=f"{nonce}.{issued_at}.{_challenge_mac(address, nonce, issued_at)}",
        message=challenge_message(address, nonce, issued_at),
        expires_at=datetime.fromtimestamp(issued_at + settings.challenge_ttl_seconds, UTC),
    )


def verify_wallet_signature(
    wallet_address: str,
    challenge: str,
    signature: str,
    *,
    now: int | None = None,
) -> str:
    """Validate a signed challenge and return the normalized wallet address.

    Raises:
        AuthenticationFailed: If the challenge is forged, expired, or signed
            by a different wallet.
    """
    address = normalize_address(wallet_address)
    try:
        nonce, issued_raw, supplied_mac = challenge.split(".")
        issued_at = int(issued_raw)
    except ValueError as err:
        raise AuthenticationFailed("Malformed challenge") from err

    expected_mac = _challenge_mac(address, nonce, issued_at)
    if not secrets.compare_digest(supplied_mac.encode(), expected_mac.encode()):
        raise AuthenticationFailed("Challenge was not issued for this wallet")
    current = int(time.time()) if now is None else now
    if current - issued_at > settings.challenge_ttl_seconds:
        raise AuthenticationFailed("Challenge has expired")

    message = encode_defunct(text=challenge_message(address, nonce, issued_at))
    try:
        signer = Account.recover_message(message, signature=signature)
    except Exception as err:  # eth-account raises several unrelated types for bad signatures
        raise AuthenticationFailed("Invalid wallet signature") from err
    if normalize_address(signer) != address:
        logger.info("Signature for %s was produced by another wallet", address)
        raise AuthenticationFailed("Signature does not match wallet")
    return address


def create_access_token(wallet_address: str, session_token: str) -> str:
    """Create a JWT bound to the wallet's current session."""
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode: dict[str, object] = {
        "sub": normalize_address(wallet_address),
        "sid": session_token,
        "exp": expire,
    }
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> tuple[str, str]:
    """Return ``(wallet_address, session_token)`` from a valid JWT.

    Raises:
        AuthenticationFailed: If the token is malformed, forged, or expired.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as err:
        raise AuthenticationFailed("Could not validate credentials") from err
    subject = payload.get("sub")
    session_token = payload.get("sid")
    if not isinstance(subject, str) or not isinstance(session_token, str):
        raise AuthenticationFailed("Could not validate credentials")
    return subject, session_token
