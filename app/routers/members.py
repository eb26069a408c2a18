from fastapi import APIRouter, Depends, Query
from typing import Optional
from uuid import UUID
from app.core.dependencies import get_authenticated_user, AuthenticatedUser
from app.core.exceptions import ValidationError
from app.models.member import MemberAddRequest, MemberRoleUpdate, CharacterNameUpdate
from app.services import members_service

router = APIRouter()


@router.get("/{campaign_id}/members")
async def list_members(
    campaign_id: UUID,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    members = await members_service.list_members(str(campaign_id), user.user_id)
    return {"members": members}


@router.post("/{campaign_id}/members", status_code=201)
async def add_member(
    campaign_id: UUID,
    data: MemberAddRequest,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    """
    Add a member by email (owner only).

    If an account already uses the email it becomes a member immediately;
    otherwise an invitation is created and emailed.
    """
    return await members_service.add_member_by_email(
        str(campaign_id), data.email, data.role, user.user_id
    )


@router.patch("/{campaign_id}/members")
async def update_member_role(
    campaign_id: UUID,
    data: MemberRoleUpdate,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    member = await members_service.update_member_role(
        str(campaign_id), str(data.member_id), data.role, user.user_id
    )
    return {"member": member}


@router.delete("/{campaign_id}/members")
async def remove_member(
    campaign_id: UUID,
    member_id: Optional[UUID] = Query(None, alias="memberId"),
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    if member_id is None:
        raise ValidationError("memberId query parameter required")

    await members_service.remove_member(str(campaign_id), str(member_id), user.user_id)
    return {"message": "Member removed"}


@router.patch("/{campaign_id}/members/me/character")
async def update_character_name(
    campaign_id: UUID,
    data: CharacterNameUpdate,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    """Set or clear the caller's own character name"""
    character_name = await members_service.update_own_character_name(
        str(campaign_id), user.user_id, data.character_name
    )
    return {"characterName": character_name}
