import logging
from typing import List, Optional
from app.database import get_db_connection
from app.core.exceptions import AuthorizationError, ConflictError, NotFoundError
from app.core.permissions import require_role, OWNER_ONLY, ANY_MEMBER
from app.models.member import Member, CampaignRole, AssignableRole
from app.models.invitation import Invitation

logger = logging.getLogger(__name__)


async def insert_membership(conn, campaign_id: str, user_id: str, role: str) -> Optional[dict]:
    """
    Insert a membership row.

    Returns None instead of raising when the account is already a member,
    including when a concurrent request inserted it first.
    """
    return await conn.fetchrow("""
        INSERT INTO campaign_members (campaign_id, user_id, role)
        VALUES ($1, $2, $3)
        ON CONFLICT (campaign_id, user_id) DO NOTHING
        RETURNING id, campaign_id, user_id, role, character_name, created_at
    """, campaign_id, user_id, role)


async def list_members(campaign_id: str, actor_id: str) -> List[Member]:
    """List campaign members with their profiles (any member)"""
    async with get_db_connection(use_transaction=False) as conn:
        await require_role(conn, campaign_id, actor_id, ANY_MEMBER, "Access denied")

        rows = await conn.fetch("""
            SELECT cm.id, cm.campaign_id, cm.user_id, cm.role, cm.character_name, cm.created_at,
                   p.email, p.display_name
            FROM campaign_members cm
            LEFT JOIN profiles p ON p.id = cm.user_id
            WHERE cm.campaign_id = $1
            ORDER BY cm.created_at ASC
        """, campaign_id)

        return [Member.from_row(row) for row in rows]


async def add_member_by_email(
    campaign_id: str,
    email: str,
    role: AssignableRole,
    actor_id: str
) -> dict:
    """
    Add an existing account as a member, or invite the email if no account uses it.

    Returns {"member": Member} or {"invitation": Invitation}.
    """
    from app.services import invitations_service

    async with get_db_connection() as conn:
        await require_role(conn, campaign_id, actor_id, OWNER_ONLY, "Only campaign owners can add members")

        profile = await conn.fetchrow("""
            SELECT id, email, display_name FROM profiles WHERE email = $1
            ORDER BY created_at DESC
            LIMIT 1
        """, email)

        if profile:
            row = await insert_membership(conn, campaign_id, str(profile['id']), role.value)
            if not row:
                raise ConflictError("User is already a member of this campaign")

            logger.info(f"Member added: {email} joined campaign {campaign_id} as {role.value}")
            member = Member.from_row({
                **dict(row),
                'email': profile['email'],
                'display_name': profile['display_name']
            })
            return {"member": member}

        invitation = await invitations_service.create_invitation(
            conn, campaign_id, email, role.value, actor_id
        )
        context = await invitations_service.get_invitation_context(conn, campaign_id, actor_id)

    # Notification runs after commit; failures are logged by the email service
    await invitations_service.notify_invitation(invitation, context)

    return {"invitation": Invitation.from_row(invitation)}


async def update_member_role(
    campaign_id: str,
    member_id: str,
    role: AssignableRole,
    actor_id: str
) -> Member:
    """Change a member's role; the owner membership is immutable here"""
    async with get_db_connection() as conn:
        await require_role(conn, campaign_id, actor_id, OWNER_ONLY, "Only campaign owners can update member roles")

        target = await conn.fetchrow("""
            SELECT id, role, user_id FROM campaign_members
            WHERE id = $1 AND campaign_id = $2
            FOR UPDATE
        """, member_id, campaign_id)

        if not target:
            raise NotFoundError("Member not found")

        if target['role'] == CampaignRole.OWNER.value:
            raise ConflictError("Cannot change owner role. Transfer ownership separately.")

        row = await conn.fetchrow("""
            WITH updated AS (
                UPDATE campaign_members
                SET role = $2, updated_at = NOW()
                WHERE id = $1
                RETURNING id, campaign_id, user_id, role, character_name, created_at
            )
            SELECT u.*, p.email, p.display_name
            FROM updated u
            LEFT JOIN profiles p ON p.id = u.user_id
        """, member_id, role.value)

        logger.info(f"Member {member_id} in campaign {campaign_id} changed to {role.value}")
        return Member.from_row(row)


async def remove_member(campaign_id: str, member_id: str, actor_id: str) -> None:
    """Remove a member; the owner membership cannot be removed"""
    async with get_db_connection() as conn:
        await require_role(conn, campaign_id, actor_id, OWNER_ONLY, "Only campaign owners can remove members")

        target = await conn.fetchrow("""
            SELECT id, role, user_id FROM campaign_members
            WHERE id = $1 AND campaign_id = $2
            FOR UPDATE
        """, member_id, campaign_id)

        if not target:
            raise NotFoundError("Member not found")

        if target['role'] == CampaignRole.OWNER.value:
            raise ConflictError("Cannot remove campaign owner")

        await conn.execute("""
            DELETE FROM campaign_members WHERE id = $1
        """, member_id)

        logger.info(f"Member {member_id} removed from campaign {campaign_id}")


async def update_own_character_name(
    campaign_id: str,
    user_id: str,
    character_name: Optional[str]
) -> Optional[str]:
    """Set the caller's character name; only their own membership row is touched"""
    name = character_name.strip() if character_name else None

    async with get_db_connection() as conn:
        row = await conn.fetchrow("""
            UPDATE campaign_members
            SET character_name = $3, updated_at = NOW()
            WHERE campaign_id = $1 AND user_id = $2
            RETURNING id, character_name
        """, campaign_id, user_id, name or None)

        if not row:
            raise AuthorizationError("You are not a member of this campaign")

        return row['character_name']
