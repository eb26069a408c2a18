from fastapi import APIRouter, Depends
from uuid import UUID
from app.core.dependencies import get_authenticated_user, AuthenticatedUser
from app.models.invite_link import InviteLinkCreate, InviteLinkJoin, InviteLinkPreview, JoinResult
from app.services import invite_links_service

router = APIRouter(tags=["invite-links"])


@router.post("/campaigns/{campaign_id}/invite-links", status_code=201)
async def create_invite_link(
    campaign_id: UUID,
    data: InviteLinkCreate,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    invite_link = await invite_links_service.create_invite_link(str(campaign_id), user.user_id, data)
    return {"inviteLink": invite_link}


@router.get("/campaigns/{campaign_id}/invite-links")
async def list_invite_links(
    campaign_id: UUID,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    invite_links = await invite_links_service.list_invite_links(str(campaign_id), user.user_id)
    return {"inviteLinks": invite_links}


@router.delete("/campaigns/{campaign_id}/invite-links/{link_id}")
async def revoke_invite_link(
    campaign_id: UUID,
    link_id: UUID,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    invite_link = await invite_links_service.revoke_invite_link(str(campaign_id), str(link_id), user.user_id)
    return {"message": "Invite link revoked", "inviteLink": invite_link}


@router.get("/invite-links/{token}", response_model=InviteLinkPreview)
async def preview_invite_link(token: str):
    """Public: campaign name and link status for the invite landing page"""
    return await invite_links_service.get_invite_link_preview(token)


@router.post("/invite-links/join", response_model=JoinResult, status_code=201)
async def join_via_invite_link(
    data: InviteLinkJoin,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    """
    Join a campaign through an invite link.

    Links that require approval create a pending join request instead of a
    membership; submitting again while pending returns the same request.
    """
    return await invite_links_service.join_via_invite_link(data.token, user)
