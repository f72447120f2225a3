"""Vote-related endpoints for the Ventbuddy API."""

from fastapi import APIRouter

from ventbuddy_stage.schemas.common import ContentType
from ventbuddy_stage.schemas.vote import MyVoteResponse, StatsResponse, VoteCreate, VoteResult
from ventbuddy_stage.services.engagement import EngagementAggregator
from ventbuddy_stage.services.errors import VentbuddyError
from ventbuddy_stage.services.identity import IdentityResolver

from ..dependencies import SessionDep, ViewerDep, http_error

router = APIRouter(prefix="/votes", tags=["votes"])


@router.post("", response_model=VoteResult)
async def cast_vote(vote_data: VoteCreate, viewer: ViewerDep, db: SessionDep) -> VoteResult:
    """Set, switch, or withdraw the viewer's vote on a post or reply.

    Voting the same direction twice removes the vote. The response carries
    the stored counters after the change.
    """
    try:
        identity = IdentityResolver(db).require(viewer)
        return EngagementAggregator.set_vote(
            db,
            vote_data.content_type,
            vote_data.content_id,
            identity,
            vote_data.direction,
        )
    except VentbuddyError as err:
        raise http_error(err) from err


@router.get("/{content_type}/{content_id}/stats", response_model=StatsResponse)
async def get_vote_stats(
    content_type: ContentType,
    content_id: int,
    db: SessionDep,
) -> StatsResponse:
    """Return stored vote counters for a post or reply."""
    return EngagementAggregator.get_stats(db, content_type, content_id)


@router.get("/{content_type}/{content_id}/my-vote", response_model=MyVoteResponse)
async def get_my_vote(
    content_type: ContentType,
    content_id: int,
    viewer: ViewerDep,
    db: SessionDep,
) -> MyVoteResponse:
    """Return the viewer's vote, or no direction when unauthenticated."""
    identity = IdentityResolver(db).resolve_context(viewer)
    if identity is None:
        return MyVoteResponse()
    return MyVoteResponse(
        direction=EngagementAggregator.get_vote(db, content_type, content_id, identity)
    )
