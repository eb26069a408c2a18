"""
Shareable campaign invite links.

A link is usable while it is active, unexpired and below its usage cap.
Every successful join attempt (membership or new join request) consumes
exactly one use; the counter never goes down.
"""
import logging
import secrets
from datetime import datetime, timezone
from typing import List, Optional
from app.database import get_db_connection
from app.config import settings
from app.core.exceptions import (
    AuthorizationError, ConflictError, GoneError, NotFoundError, ValidationError
)
from app.core.permissions import get_campaign_role, require_role, OWNER_ONLY, ANY_MEMBER
from app.models.invite_link import (
    InviteLink, InviteLinkCreate, InviteLinkPreview, InviteLinkStatus, JoinResult
)
from app.models.join_request import JoinRequestStatus
from app.models.member import CampaignRole
from app.services.members_service import insert_membership
from app.services.profiles_service import ensure_profile

logger = logging.getLogger(__name__)

LINK_COLUMNS = """
    id, campaign_id, token, created_by, expires_at, max_uses, use_count,
    require_approval, is_active, created_at, revoked_at, revoked_by
"""


def build_invite_link_url(token: str) -> str:
    return f"{settings.frontend_url.rstrip('/')}/invite/campaign/{token}"


def link_status(link, now: Optional[datetime] = None) -> InviteLinkStatus:
    """Usability of a link: revocation wins over expiry, expiry over exhaustion"""
    now = now or datetime.now(timezone.utc)

    if not link['is_active']:
        return InviteLinkStatus.REVOKED
    if link['expires_at'] is not None and link['expires_at'] <= now:
        return InviteLinkStatus.EXPIRED
    if link['max_uses'] is not None and link['use_count'] >= link['max_uses']:
        return InviteLinkStatus.EXHAUSTED
    return InviteLinkStatus.ACTIVE


def _row_to_link(row) -> InviteLink:
    return InviteLink(
        id=str(row['id']),
        campaign_id=str(row['campaign_id']),
        token=row['token'],
        url=build_invite_link_url(row['token']),
        created_by=str(row['created_by']) if row['created_by'] else None,
        expires_at=row['expires_at'],
        max_uses=row['max_uses'],
        use_count=row['use_count'] or 0,
        require_approval=row['require_approval'],
        is_active=row['is_active'],
        created_at=row['created_at'],
        revoked_at=row['revoked_at'],
        revoked_by=str(row['revoked_by']) if row['revoked_by'] else None
    )


async def create_invite_link(campaign_id: str, actor_id: str, data: InviteLinkCreate) -> InviteLink:
    """Create a shareable link (owner only). Expiry, when given, must be in the future."""
    expires_at = data.expires_at
    if expires_at is not None and expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)

    async with get_db_connection() as conn:
        await require_role(conn, campaign_id, actor_id, OWNER_ONLY, "Only campaign owners can create invite links")

        if expires_at is not None and expires_at <= datetime.now(timezone.utc):
            raise ValidationError("Expiry date must be in the future")

        token = secrets.token_urlsafe(32)

        row = await conn.fetchrow(f"""
            INSERT INTO campaign_invite_links (
                campaign_id, token, created_by, expires_at, max_uses, require_approval
            )
            VALUES ($1, $2, $3, $4, $5, $6)
            RETURNING {LINK_COLUMNS}
        """, campaign_id, token, actor_id, expires_at, data.max_uses, data.require_approval)

        logger.info(
            f"Invite link created for campaign {campaign_id} "
            f"(max_uses={data.max_uses}, require_approval={data.require_approval})"
        )
        return _row_to_link(row)


async def list_invite_links(campaign_id: str, actor_id: str) -> List[InviteLink]:
    """All links of a campaign, newest first (any member)"""
    async with get_db_connection(use_transaction=False) as conn:
        await require_role(conn, campaign_id, actor_id, ANY_MEMBER, "Access denied")

        rows = await conn.fetch(f"""
            SELECT {LINK_COLUMNS}
            FROM campaign_invite_links
            WHERE campaign_id = $1
            ORDER BY created_at DESC
        """, campaign_id)

        return [_row_to_link(row) for row in rows]


async def revoke_invite_link(campaign_id: str, link_id: str, actor_id: str) -> InviteLink:
    """Deactivate a link (owner only). The row and its use count are kept."""
    async with get_db_connection() as conn:
        await require_role(conn, campaign_id, actor_id, OWNER_ONLY, "Only campaign owners can revoke invite links")

        link = await conn.fetchrow(f"""
            SELECT {LINK_COLUMNS}
            FROM campaign_invite_links
            WHERE id = $1 AND campaign_id = $2
            FOR UPDATE
        """, link_id, campaign_id)

        if not link:
            raise NotFoundError("Invite link not found")

        if not link['is_active']:
            return _row_to_link(link)

        row = await conn.fetchrow(f"""
            UPDATE campaign_invite_links
            SET is_active = false, revoked_at = NOW(), revoked_by = $2
            WHERE id = $1
            RETURNING {LINK_COLUMNS}
        """, link_id, actor_id)

        logger.info(f"Invite link {link_id} revoked by {actor_id}")
        return _row_to_link(row)


async def get_invite_link_preview(token: str) -> InviteLinkPreview:
    """Public summary of a link for the invite landing page"""
    async with get_db_connection(use_transaction=False) as conn:
        row = await conn.fetchrow("""
            SELECT l.campaign_id, l.expires_at, l.max_uses, l.use_count,
                   l.require_approval, l.is_active, c.name AS campaign_name
            FROM campaign_invite_links l
            JOIN campaigns c ON c.id = l.campaign_id
            WHERE l.token = $1
        """, token)

        if not row:
            raise NotFoundError("Invite link not found")

        return InviteLinkPreview(
            campaign_id=str(row['campaign_id']),
            campaign_name=row['campaign_name'],
            require_approval=row['require_approval'],
            status=link_status(row),
            expires_at=row['expires_at']
        )


async def _consume_use(conn, link_id) -> int:
    """Atomically take one use of a link; fails when the cap was reached concurrently"""
    use_count = await conn.fetchval("""
        UPDATE campaign_invite_links
        SET use_count = use_count + 1
        WHERE id = $1 AND is_active = true
          AND (max_uses IS NULL OR use_count < max_uses)
        RETURNING use_count
    """, link_id)

    if use_count is None:
        raise GoneError("This invite link has reached its maximum number of uses")
    return use_count


async def _find_join_request(conn, campaign_id: str, user_id: str):
    return await conn.fetchrow("""
        SELECT id, status FROM campaign_join_requests
        WHERE campaign_id = $1 AND user_id = $2
        FOR UPDATE
    """, campaign_id, user_id)


def _already_requested(campaign_id: str, existing) -> JoinResult:
    return JoinResult(
        campaign_id=campaign_id,
        requires_approval=True,
        status=JoinRequestStatus.PENDING.value,
        join_request_id=str(existing['id']),
        already_requested=True,
        message="Your request to join is already pending approval"
    )


async def _submit_join_request(conn, link, user_id: str, existing) -> JoinResult:
    campaign_id = str(link['campaign_id'])

    if existing and existing['status'] == JoinRequestStatus.REJECTED.value:
        raise AuthorizationError("Your request to join this campaign was rejected")

    if existing:
        # Approved earlier, then removed from the campaign: reopen the single request row
        request = await conn.fetchrow("""
            UPDATE campaign_join_requests
            SET status = 'pending', invite_link_id = $2, requested_at = NOW(),
                reviewed_at = NULL, reviewed_by = NULL
            WHERE id = $1
            RETURNING id
        """, existing['id'], link['id'])
    else:
        request = await conn.fetchrow("""
            INSERT INTO campaign_join_requests (campaign_id, user_id, invite_link_id, status)
            VALUES ($1, $2, $3, 'pending')
            ON CONFLICT (campaign_id, user_id) DO NOTHING
            RETURNING id
        """, campaign_id, user_id, link['id'])

        if request is None:
            # Submitted concurrently through another link of the same campaign
            raise ConflictError("A request to join this campaign is already being processed")

    await _consume_use(conn, link['id'])

    logger.info(f"Join request {request['id']} created for {user_id} in campaign {campaign_id}")

    return JoinResult(
        campaign_id=campaign_id,
        requires_approval=True,
        status=JoinRequestStatus.PENDING.value,
        join_request_id=str(request['id']),
        message="Join request submitted. The campaign owner must approve it."
    )


async def join_via_invite_link(token: str, user) -> JoinResult:
    """
    Join a campaign with a link token, or request to join when the link needs approval.

    The link row stays locked for the whole transaction so concurrent joins on
    a nearly exhausted link are serialized.
    """
    async with get_db_connection() as conn:
        link = await conn.fetchrow("""
            SELECT id, campaign_id, expires_at, max_uses, use_count, require_approval, is_active
            FROM campaign_invite_links
            WHERE token = $1
            FOR UPDATE
        """, token)

        if not link:
            raise NotFoundError("Invite link not found")

        status = link_status(link)
        if status == InviteLinkStatus.REVOKED:
            raise GoneError("This invite link has been revoked")
        if status == InviteLinkStatus.EXPIRED:
            raise GoneError("This invite link has expired")

        campaign_id = str(link['campaign_id'])

        existing_request = None
        if link['require_approval']:
            # Pending requesters get their request back even once the link is used up
            existing_request = await _find_join_request(conn, campaign_id, user.user_id)
            if existing_request and existing_request['status'] == JoinRequestStatus.PENDING.value:
                return _already_requested(campaign_id, existing_request)

        if status == InviteLinkStatus.EXHAUSTED:
            raise GoneError("This invite link has reached its maximum number of uses")

        if await get_campaign_role(conn, campaign_id, user.user_id) is not None:
            raise ConflictError("You are already a member of this campaign")

        await ensure_profile(conn, user.user_id, user.email, user.user_metadata)

        if link['require_approval']:
            return await _submit_join_request(conn, link, user.user_id, existing_request)

        member = await insert_membership(conn, campaign_id, user.user_id, CampaignRole.VIEWER.value)
        if member is None:
            raise ConflictError("You are already a member of this campaign")

        use_count = await _consume_use(conn, link['id'])

    logger.info(f"User {user.user_id} joined campaign {campaign_id} via invite link (use {use_count})")

    return JoinResult(
        campaign_id=campaign_id,
        requires_approval=False,
        status="joined",
        role=CampaignRole.VIEWER.value,
        message="You have joined the campaign"
    )
