"""
Service for direct, email-targeted campaign invitations
"""
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from app.database import get_db_connection
from app.config import settings
from app.core.exceptions import AuthorizationError, GoneError, NotFoundError
from app.core.permissions import require_role, OWNER_ONLY, ANY_MEMBER
from app.models.invitation import Invitation
from app.services.email_service import send_invitation_email
from app.services.members_service import insert_membership
from app.services.profiles_service import ensure_profile

logger = logging.getLogger(__name__)

INVITATION_COLUMNS = "id, campaign_id, email, role, token, accepted, created_at, expires_at, accepted_at"


def new_expiry(now: Optional[datetime] = None) -> datetime:
    """Invitations stay valid for INVITATION_EXPIRY_DAYS from creation or the last resend"""
    now = now or datetime.now(timezone.utc)
    return now + timedelta(days=settings.invitation_expiry_days)


async def get_invitation_context(conn, campaign_id: str, inviter_id: Optional[str] = None) -> dict:
    """Campaign and inviter names used in the invitation email"""
    row = await conn.fetchrow("""
        SELECT c.name AS campaign_name, p.display_name AS inviter_name
        FROM campaigns c
        LEFT JOIN profiles p ON p.id = $2
        WHERE c.id = $1
    """, campaign_id, inviter_id)

    if not row:
        return {'campaign_name': None, 'inviter_name': None}
    return {'campaign_name': row['campaign_name'], 'inviter_name': row['inviter_name']}


async def create_invitation(
    conn,
    campaign_id: str,
    email: str,
    role: str,
    invited_by: str
) -> dict:
    """
    Persist an invitation inside the caller's transaction.

    An unaccepted invitation for the same campaign and email is refreshed
    (new role and expiry, same token) rather than duplicated.
    """
    expires_at = new_expiry()

    existing = await conn.fetchrow("""
        SELECT id FROM campaign_invitations
        WHERE campaign_id = $1 AND email = $2 AND accepted = false
        FOR UPDATE
    """, campaign_id, email)

    if existing:
        invitation = await conn.fetchrow(f"""
            UPDATE campaign_invitations
            SET role = $2, expires_at = $3, invited_by = $4
            WHERE id = $1
            RETURNING {INVITATION_COLUMNS}
        """, existing['id'], role, expires_at, invited_by)
        logger.info(f"Pending invitation refreshed for {email} in campaign {campaign_id}")
        return invitation

    token = secrets.token_urlsafe(32)

    invitation = await conn.fetchrow(f"""
        INSERT INTO campaign_invitations (
            campaign_id, email, role, token, invited_by, expires_at
        )
        VALUES ($1, $2, $3, $4, $5, $6)
        RETURNING {INVITATION_COLUMNS}
    """, campaign_id, email, role, token, invited_by, expires_at)

    logger.info(f"Invitation created for {email} in campaign {campaign_id} as {role}")
    return invitation


async def notify_invitation(invitation: dict, context: dict) -> bool:
    """Send the invitation email; a failed send leaves the invitation valid"""
    sent = await send_invitation_email(
        email=invitation['email'],
        token=invitation['token'],
        campaign_name=context.get('campaign_name'),
        role=invitation['role'],
        invited_by_name=context.get('inviter_name')
    )
    if not sent:
        logger.warning(f"Invitation email to {invitation['email']} was not sent; invitation remains valid")
    return sent


async def list_pending_invitations(campaign_id: str, actor_id: str) -> List[Invitation]:
    """Pending (unaccepted) invitations, newest first (any member)"""
    async with get_db_connection(use_transaction=False) as conn:
        await require_role(conn, campaign_id, actor_id, ANY_MEMBER, "Access denied")

        rows = await conn.fetch(f"""
            SELECT {INVITATION_COLUMNS}
            FROM campaign_invitations
            WHERE campaign_id = $1 AND accepted = false
            ORDER BY created_at DESC
        """, campaign_id)

        return [Invitation.from_row(row) for row in rows]


async def resend_invitation(campaign_id: str, invitation_id: str, actor_id: str) -> dict:
    """
    Resend an invitation email and push its expiry to now + INVITATION_EXPIRY_DAYS.

    Expired invitations are revived. The token does not change.
    """
    async with get_db_connection() as conn:
        await require_role(conn, campaign_id, actor_id, OWNER_ONLY, "Only owners can resend invitations")

        invitation = await conn.fetchrow("""
            SELECT id FROM campaign_invitations
            WHERE id = $1 AND campaign_id = $2
            FOR UPDATE
        """, invitation_id, campaign_id)

        if not invitation:
            raise NotFoundError("Invitation not found")

        updated = await conn.fetchrow(f"""
            UPDATE campaign_invitations
            SET expires_at = $2
            WHERE id = $1
            RETURNING {INVITATION_COLUMNS}
        """, invitation_id, new_expiry())

        context = await get_invitation_context(conn, campaign_id, actor_id)

    await notify_invitation(updated, context)

    logger.info(f"Invitation {invitation_id} resent, now expires {updated['expires_at'].isoformat()}")

    return {
        'ok': True,
        'invitation': Invitation.from_row(updated)
    }


async def revoke_invitation(campaign_id: str, invitation_id: str, actor_id: str) -> None:
    """Hard-delete an invitation (owner only)"""
    async with get_db_connection() as conn:
        await require_role(conn, campaign_id, actor_id, OWNER_ONLY, "Only owners can revoke invitations")

        result = await conn.execute("""
            DELETE FROM campaign_invitations
            WHERE id = $1 AND campaign_id = $2
        """, invitation_id, campaign_id)

        if result.split()[-1] == '0':
            raise NotFoundError("Invitation not found")

        logger.info(f"Invitation {invitation_id} revoked from campaign {campaign_id}")


async def accept_locked_invitation(conn, invitation, user_id: str) -> bool:
    """
    Grant the invited membership and mark the invitation accepted.

    The invitation row must already be locked by the caller. A membership that
    already exists (another join path got there first) is not an error.
    Returns True when a new membership row was created.
    """
    campaign_id = str(invitation['campaign_id'])
    member = await insert_membership(conn, campaign_id, user_id, invitation['role'])

    if member is None:
        logger.info(f"User {user_id} already a member of campaign {campaign_id}; marking invitation accepted")

    await conn.execute("""
        UPDATE campaign_invitations
        SET accepted = true, accepted_at = NOW(), invited_user_id = $2
        WHERE id = $1 AND accepted = false
    """, invitation['id'], user_id)

    return member is not None


async def accept_invitation(token: str, user) -> dict:
    """
    Accept a direct invitation as the authenticated account.

    Checks, in order: token exists, invited email matches the signed-in email
    exactly, invitation not expired. Accepting an already accepted invitation
    succeeds without changes.
    """
    async with get_db_connection() as conn:
        invitation = await conn.fetchrow("""
            SELECT id, campaign_id, email, role, accepted, expires_at
            FROM campaign_invitations
            WHERE token = $1
            FOR UPDATE
        """, token)

        if not invitation:
            raise NotFoundError("Invitation not found")

        if invitation['email'] != user.email:
            raise AuthorizationError("Invitation email does not match authenticated user")

        if invitation['expires_at'] and invitation['expires_at'] < datetime.now(timezone.utc):
            raise GoneError("Invitation expired")

        if invitation['accepted']:
            return {'ok': True}

        await ensure_profile(conn, user.user_id, user.email, user.user_metadata)
        await accept_locked_invitation(conn, invitation, user.user_id)

    logger.info(f"Invitation accepted: {user.email} joined campaign {invitation['campaign_id']} as {invitation['role']}")

    return {'ok': True}


async def accept_pending_invitations_for_email(conn, user_id: str, email: str) -> List[str]:
    """Accept every pending, unexpired invitation for an email. Returns the campaign ids joined."""
    invitations = await conn.fetch("""
        SELECT id, campaign_id, email, role, accepted, expires_at
        FROM campaign_invitations
        WHERE email = $1 AND accepted = false AND expires_at > NOW()
        FOR UPDATE
    """, email)

    campaign_ids = []
    for invitation in invitations:
        await accept_locked_invitation(conn, invitation, user_id)
        campaign_ids.append(str(invitation['campaign_id']))

    return campaign_ids
