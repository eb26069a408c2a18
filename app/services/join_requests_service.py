import logging
from typing import List
from app.database import get_db_connection
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.permissions import require_role, OWNER_ONLY
from app.models.join_request import JoinRequest, JoinRequestAction, JoinRequestStatus
from app.models.member import CampaignRole
from app.services.members_service import insert_membership

logger = logging.getLogger(__name__)


async def list_join_requests(campaign_id: str, actor_id: str) -> List[JoinRequest]:
    """Join requests of a campaign with requester profiles (owner only)"""
    async with get_db_connection(use_transaction=False) as conn:
        await require_role(conn, campaign_id, actor_id, OWNER_ONLY, "Only campaign owners can view join requests")

        rows = await conn.fetch("""
            SELECT jr.id, jr.campaign_id, jr.user_id, jr.invite_link_id, jr.status,
                   jr.requested_at, jr.reviewed_at, jr.reviewed_by,
                   p.email, p.display_name
            FROM campaign_join_requests jr
            LEFT JOIN profiles p ON p.id = jr.user_id
            WHERE jr.campaign_id = $1
            ORDER BY jr.requested_at DESC
        """, campaign_id)

        return [JoinRequest.from_row(row) for row in rows]


async def review_join_request(
    campaign_id: str,
    request_id: str,
    action: str,
    actor_id: str
) -> dict:
    """
    Approve or reject a pending join request (owner only).

    Approval adds the requester as a viewer in the same transaction; a request
    is reviewed at most once.
    """
    try:
        action = JoinRequestAction(action)
    except ValueError:
        raise ValidationError('Invalid action. Must be "approve" or "reject"')

    async with get_db_connection() as conn:
        await require_role(conn, campaign_id, actor_id, OWNER_ONLY, "Only campaign owners can review join requests")

        request = await conn.fetchrow("""
            SELECT id, user_id, status FROM campaign_join_requests
            WHERE id = $1 AND campaign_id = $2
            FOR UPDATE
        """, request_id, campaign_id)

        if not request:
            raise NotFoundError("Join request not found")

        if request['status'] != JoinRequestStatus.PENDING.value:
            raise ConflictError("Join request already reviewed")

        new_status = (
            JoinRequestStatus.APPROVED if action == JoinRequestAction.APPROVE
            else JoinRequestStatus.REJECTED
        )

        await conn.execute("""
            UPDATE campaign_join_requests
            SET status = $2, reviewed_at = NOW(), reviewed_by = $3
            WHERE id = $1
        """, request_id, new_status.value, actor_id)

        if new_status == JoinRequestStatus.APPROVED:
            # Already a member (e.g. joined by direct invitation meanwhile) is fine
            await insert_membership(conn, campaign_id, str(request['user_id']), CampaignRole.VIEWER.value)

    logger.info(f"Join request {request_id} in campaign {campaign_id} {new_status.value} by {actor_id}")

    return {
        "message": f"Join request {new_status.value}",
        "status": new_status.value
    }
