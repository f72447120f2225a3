"""Content endpoints for the Ventbuddy API."""

from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from ventbuddy_stage.schemas.access import AccessDecision, EarningsResponse, GrantResponse
from ventbuddy_stage.schemas.content import ContentCreate, ContentItem, ContentView
from ventbuddy_stage.services.access_log import AccessLogStore
from ventbuddy_stage.services.content import DEFAULT_FEED_LIMIT, MAX_FEED_LIMIT, ContentService
from ventbuddy_stage.services.errors import VentbuddyError
from ventbuddy_stage.services.visibility import VisibilityResolver, load_content

from ..dependencies import SessionDep, ViewerDep, http_error

router = APIRouter(prefix="/content", tags=["content"])


@router.post("", response_model=ContentItem, status_code=status.HTTP_201_CREATED)
async def ingest_content(payload: ContentCreate, db: SessionDep) -> ContentItem:
    """Store a post created on chain.

    Args:
        payload: Post body, preview, and tier information
        db: Database session

    Returns:
        The stored content item tagged by its visibility tier
    """
    try:
        return ContentService(db).ingest(payload)
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(err),
        ) from err
    except VentbuddyError as err:
        raise http_error(err) from err


@router.get("", response_model=list[ContentView])
async def list_recent_content(
    viewer: ViewerDep,
    db: SessionDep,
    limit: Annotated[int, Query(ge=1, le=MAX_FEED_LIMIT)] = DEFAULT_FEED_LIMIT,
) -> list[ContentView]:
    """Return the newest posts first, each with the connected wallet's access decision.

    Locked posts carry their preview and no body.
    """
    return ContentService(db).list_recent(viewer, limit)


@router.get("/{content_id}", response_model=ContentView)
async def read_content(content_id: int, viewer: ViewerDep, db: SessionDep) -> ContentView:
    """Return a post as seen by the connected wallet.

    Locked content is returned without its body.
    """
    try:
        return ContentService(db).read(viewer, content_id)
    except VentbuddyError as err:
        raise http_error(err) from err


@router.get("/{content_id}/access", response_model=AccessDecision)
async def check_access(content_id: int, viewer: ViewerDep, db: SessionDep) -> AccessDecision:
    """Return only the access decision for the connected wallet."""
    try:
        return VisibilityResolver.decide(db, viewer, content_id)
    except VentbuddyError as err:
        raise http_error(err) from err


@router.get("/{content_id}/grants", response_model=list[GrantResponse])
async def list_grants(content_id: int, db: SessionDep) -> list[GrantResponse]:
    """List tips and unlocks recorded for a post, oldest first."""
    try:
        load_content(db, content_id)
    except VentbuddyError as err:
        raise http_error(err) from err
    grants = AccessLogStore.list_grants(db, content_id)
    return [GrantResponse.model_validate(grant) for grant in grants]


@router.get("/{content_id}/earnings", response_model=EarningsResponse)
async def get_earnings(content_id: int, db: SessionDep) -> EarningsResponse:
    """Return the number of grants and the total amount a post has received."""
    try:
        load_content(db, content_id)
    except VentbuddyError as err:
        raise http_error(err) from err
    count, total = AccessLogStore.total_received(db, content_id)
    return EarningsResponse(content_id=content_id, grant_count=count, total_amount=total)
