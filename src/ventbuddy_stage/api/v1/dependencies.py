"""Shared API dependencies for authentication and error translation."""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ventbuddy_stage.db.session import get_db
from ventbuddy_stage.services.auth import decode_access_token
from ventbuddy_stage.services.errors import (
    AuthenticationFailed,
    ContentNotFound,
    GrantConflict,
    IdentityRequired,
    IdentityUnavailable,
    InvalidReply,
    PaymentFailed,
    PaymentUnconfirmed,
    StoreWriteFailed,
    VentbuddyError,
)
from ventbuddy_stage.services.identity import IdentityResolver, ViewerContext

logger = logging.getLogger(__name__)

# Reads are open to anonymous viewers, so a missing token is not an error here.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]

_STATUS_BY_ERROR: tuple[tuple[type[VentbuddyError], int], ...] = (
    (IdentityRequired, status.HTTP_401_UNAUTHORIZED),
    (AuthenticationFailed, status.HTTP_401_UNAUTHORIZED),
    (ContentNotFound, status.HTTP_404_NOT_FOUND),
    (InvalidReply, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (GrantConflict, status.HTTP_409_CONFLICT),
    (PaymentFailed, status.HTTP_402_PAYMENT_REQUIRED),
    (PaymentUnconfirmed, status.HTTP_504_GATEWAY_TIMEOUT),
    (StoreWriteFailed, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def get_viewer_context(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> ViewerContext:
    """Build the viewer context from a bearer token.

    Without a token the viewer is anonymous; operations that need an identity
    reject the request themselves. A token that fails validation is rejected.

    Raises:
        HTTPException: If the token is forged, expired, or superseded
    """
    if credentials is None:
        return ViewerContext()
    try:
        wallet_address, session_token = decode_access_token(credentials.credentials)
        IdentityResolver(db).verify_session(wallet_address, session_token)
    except AuthenticationFailed as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(err),
            headers={"WWW-Authenticate": "Bearer"},
        ) from err
    except IdentityUnavailable as err:
        logger.warning("Treating viewer as anonymous: %s", err)
        return ViewerContext()
    return ViewerContext(wallet_address=wallet_address)


ViewerDep = Annotated[ViewerContext, Depends(get_viewer_context)]


def http_error(err: VentbuddyError) -> HTTPException:
    """Translate a service error into the matching HTTP error.

    Args:
        err: Exception raised by a service

    Returns:
        HTTPException carrying the service error message
    """
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(err, error_type):
            return HTTPException(status_code=status_code, detail=str(err))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(err))
