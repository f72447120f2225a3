"""Wallet sign-in endpoints for the Ventbuddy API."""

from fastapi import APIRouter, status

from ventbuddy_stage.schemas.session import (
    ChallengeRequest,
    ChallengeResponse,
    SessionCreate,
    SessionResponse,
)
from ventbuddy_stage.services.auth import (
    create_access_token,
    issue_challenge,
    verify_wallet_signature,
)
from ventbuddy_stage.services.errors import VentbuddyError
from ventbuddy_stage.services.identity import IdentityResolver

from ..dependencies import SessionDep, http_error

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("/challenge", response_model=ChallengeResponse)
async def request_challenge(payload: ChallengeRequest) -> ChallengeResponse:
    """Issue the message a wallet must sign to open a session."""
    challenge = issue_challenge(payload.wallet_address)
    return ChallengeResponse(
        wallet_address=challenge.wallet_address,
        challenge=challenge.challenge,
        message=challenge.message,
        expires_at=challenge.expires_at,
    )


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def register_session(payload: SessionCreate, db: SessionDep) -> SessionResponse:
    """Verify a signed challenge and return the wallet's identity and bearer token.

    Raises:
        HTTPException: 401 when the challenge or signature does not verify
    """
    try:
        address = verify_wallet_signature(
            payload.wallet_address,
            payload.challenge,
            payload.signature,
        )
        session = IdentityResolver(db).register(address)
    except VentbuddyError as err:
        raise http_error(err) from err
    return SessionResponse(
        wallet_address=session.wallet_address,
        identity=session.identity,
        access_token=create_access_token(session.wallet_address, session.session_token),
        token_type="bearer",
    )
