from fastapi import APIRouter, Depends
from uuid import UUID
from app.core.dependencies import get_authenticated_user, AuthenticatedUser
from app.models.join_request import JoinRequestReview
from app.services import join_requests_service

router = APIRouter()


@router.get("/{campaign_id}/join-requests")
async def list_join_requests(
    campaign_id: UUID,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    join_requests = await join_requests_service.list_join_requests(str(campaign_id), user.user_id)
    return {"joinRequests": join_requests}


@router.patch("/{campaign_id}/join-requests/{request_id}")
async def review_join_request(
    campaign_id: UUID,
    request_id: UUID,
    data: JoinRequestReview,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    """Approve or reject a pending join request (owner only)"""
    return await join_requests_service.review_join_request(
        str(campaign_id), str(request_id), data.action, user.user_id
    )
