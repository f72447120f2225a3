"""Wallet sign-in schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

WALLET_ADDRESS_PATTERN = r"^0x[0-9a-fA-F]{40}$"


class ChallengeRequest(BaseModel):
    """Request for a message the wallet must sign."""

    wallet_address: str = Field(..., pattern=WALLET_ADDRESS_PATTERN)


class ChallengeResponse(BaseModel):
    """Sign-in challenge returned to a wallet."""

    wallet_address: str
    challenge: str = Field(..., description="Opaque value to send back with the signature")
    message: str = Field(..., description="Exact text the wallet signs with personal_sign")
    expires_at: datetime


class SessionCreate(BaseModel):
    """Signed challenge proving control of a wallet."""

    wallet_address: str = Field(..., pattern=WALLET_ADDRESS_PATTERN)
    challenge: str = Field(..., min_length=1)
    signature: str = Field(..., pattern=r"^(0x)?[0-9a-fA-F]{130}$")


class SessionResponse(BaseModel):
    """Identity and bearer token issued to a verified wallet."""

    wallet_address: str
    identity: str
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type (typically 'bearer')")
