"""Reply endpoints for the Ventbuddy API."""

from fastapi import APIRouter, status

from ventbuddy_stage.schemas.reply import ReplyCounts, ReplyCreate, ReplyResponse
from ventbuddy_stage.services.errors import VentbuddyError
from ventbuddy_stage.services.replies import ReplyService

from ..dependencies import SessionDep, ViewerDep, http_error

router = APIRouter(prefix="/content", tags=["replies"])


@router.post(
    "/{post_id}/replies",
    response_model=ReplyResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_reply(
    post_id: int,
    reply_data: ReplyCreate,
    viewer: ViewerDep,
    db: SessionDep,
) -> ReplyResponse:
    """Reply to a post or to another reply on the same post."""
    try:
        node = ReplyService(db).create(
            viewer,
            post_id,
            reply_data.content,
            parent_id=reply_data.parent_id,
        )
    except VentbuddyError as err:
        raise http_error(err) from err
    return node.to_response()


@router.get("/{post_id}/replies", response_model=list[ReplyResponse])
async def list_replies(post_id: int, db: SessionDep) -> list[ReplyResponse]:
    """Return the reply forest of a post, oldest first at every level."""
    try:
        roots = ReplyService(db).list_tree(post_id)
    except VentbuddyError as err:
        raise http_error(err) from err
    return [root.to_response() for root in roots]


@router.get("/{post_id}/replies/counts", response_model=ReplyCounts)
async def get_reply_counts(post_id: int, db: SessionDep) -> ReplyCounts:
    """Return reply and vote totals across all replies of a post."""
    try:
        return ReplyService(db).reply_counts(post_id)
    except VentbuddyError as err:
        raise http_error(err) from err
