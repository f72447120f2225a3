# mypy: ignore-errors
"""Tests for wallet challenges and access tokens."""

import time

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from jose import jwt

from ventbuddy_stage.core.settings import settings
from ventbuddy_stage.services.auth import (
    create_access_token,
    decode_access_token,
    issue_challenge,
    verify_wallet_signature,
)
from ventbuddy_stage.services.errors import AuthenticationFailed

WALLET = Account.from_key("0x" + "4c" * 32)


def _sign(message: str) -> str:
    signed = Account.sign_message(encode_defunct(text=message), private_key=WALLET.key)
    return "0x" + bytes(signed.signature).hex()


def test_signed_challenge_verifies() -> None:
    challenge = issue_challenge(WALLET.address)

    address = verify_wallet_signature(WALLET.address, challenge.challenge, _sign(challenge.message))

    assert address == WALLET.address.lower()


def test_challenge_expiry_is_enforced() -> None:
    issued = int(time.time())
    challenge = issue_challenge(WALLET.address, now=issued)
    signature = _sign(challenge.message)

    verify_wallet_signature(
        WALLET.address,
        challenge.challenge,
        signature,
        now=issued + settings.challenge_ttl_seconds,
    )
    with pytest.raises(AuthenticationFailed):
        verify_wallet_signature(
            WALLET.address,
            challenge.challenge,
            signature,
            now=issued + settings.challenge_ttl_seconds + 1,
        )


@pytest.mark.parametrize("challenge", ["", "only-one-part", "a.not-a-number.c", "a.1.ünïcode"])
def test_malformed_challenge_is_rejected(challenge) -> None:
    with pytest.raises(AuthenticationFailed):
        verify_wallet_signature(WALLET.address, challenge, "0x" + "00" * 65)


def test_garbage_signature_is_rejected() -> None:
    challenge = issue_challenge(WALLET.address)
    with pytest.raises(AuthenticationFailed):
        verify_wallet_signature(WALLET.address, challenge.challenge, "0x" + "00" * 65)


def test_access_token_round_trip() -> None:
    token = create_access_token(WALLET.address, "session-token")
    assert decode_access_token(token) == (WALLET.address.lower(), "session-token")


def test_token_without_session_claim_is_rejected() -> None:
    token = jwt.encode(
        {"sub": WALLET.address.lower()}, settings.secret_key, algorithm=settings.jwt_algorithm
    )
    with pytest.raises(AuthenticationFailed):
        decode_access_token(token)
