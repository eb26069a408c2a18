"""
API endpoints for direct campaign invitations
"""
from fastapi import APIRouter, Depends
from uuid import UUID
from app.core.dependencies import get_authenticated_user, AuthenticatedUser
from app.models.invitation import InvitationAccept
from app.services import invitations_service

router = APIRouter(tags=["invitations"])


@router.get("/campaigns/{campaign_id}/invitations")
async def list_invitations(
    campaign_id: UUID,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    """Pending invitations of a campaign (any member)"""
    invitations = await invitations_service.list_pending_invitations(str(campaign_id), user.user_id)
    return {"invitations": invitations}


@router.post("/campaigns/{campaign_id}/invitations/{invitation_id}/resend")
async def resend_invitation(
    campaign_id: UUID,
    invitation_id: UUID,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    """
    Resend the invitation email (owner only).

    The expiry is extended by the configured number of days, which also
    revives an invitation that already expired.
    """
    return await invitations_service.resend_invitation(
        str(campaign_id), str(invitation_id), user.user_id
    )


@router.delete("/campaigns/{campaign_id}/invitations/{invitation_id}")
async def revoke_invitation(
    campaign_id: UUID,
    invitation_id: UUID,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    await invitations_service.revoke_invitation(str(campaign_id), str(invitation_id), user.user_id)
    return {"message": "Invitation revoked"}


@router.post("/invitations/accept")
async def accept_invitation(
    data: InvitationAccept,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    """
    Accept an invitation with the token received by email.

    The signed-in email must match the invited email exactly.
    """
    return await invitations_service.accept_invitation(data.token, user)
