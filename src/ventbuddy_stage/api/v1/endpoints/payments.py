"""Payment confirmation endpoints for the Ventbuddy API."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from ventbuddy_stage.core.settings import settings
from ventbuddy_stage.schemas.access import GrantResponse, PaymentConfirmation
from ventbuddy_stage.services.chain import get_confirmer
from ventbuddy_stage.services.errors import VentbuddyError
from ventbuddy_stage.services.payments import ConfirmationSource, PaymentService

from ..dependencies import SessionDep, ViewerDep, http_error

router = APIRouter(prefix="/payments", tags=["payments"])


def get_confirmer_dep() -> ConfirmationSource:
    """Return the shared chain confirmer, or fail when no RPC node is configured."""
    if not settings.rpc_enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Payment confirmation is not configured",
        )
    return get_confirmer()


ConfirmerDep = Annotated[ConfirmationSource, Depends(get_confirmer_dep)]


@router.post("/confirm", response_model=GrantResponse, status_code=status.HTTP_201_CREATED)
async def confirm_payment(
    payload: PaymentConfirmation,
    viewer: ViewerDep,
    db: SessionDep,
    confirmer: ConfirmerDep,
) -> GrantResponse:
    """Record a tip or unlock once its transaction is confirmed on chain.

    Args:
        payload: Transaction hash, amount, and grant type
        viewer: Connected wallet context
        db: Database session
        confirmer: Source of transaction receipts

    Returns:
        The recorded grant; confirming the same transaction again returns it unchanged

    Raises:
        HTTPException: 401 without a registered wallet, 402 for a failed or
            insufficient payment, 504 when no confirmation arrives in time
    """
    try:
        grant = await PaymentService(db).confirm_submitted(
            confirmer,
            viewer,
            payload.content_id,
            payload.grant_type,
            payload.amount,
            payload.tx_hash,
        )
    except VentbuddyError as err:
        raise http_error(err) from err
    return GrantResponse.model_validate(grant)
