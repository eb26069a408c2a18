"""
Campaign authorization gate.

Every member and invite management operation resolves the caller's role here,
inside the same transaction that performs the mutation.
"""
import logging
from typing import Optional, Iterable
from app.core.exceptions import AuthorizationError
from app.models.member import CampaignRole

logger = logging.getLogger(__name__)

OWNER_ONLY = frozenset({CampaignRole.OWNER})
ANY_MEMBER = frozenset({CampaignRole.OWNER, CampaignRole.CO_GM, CampaignRole.VIEWER})


async def get_campaign_role(conn, campaign_id: str, user_id: str) -> Optional[CampaignRole]:
    """Return the account's role in the campaign, or None when it is not a member"""
    row = await conn.fetchrow("""
        SELECT role FROM campaign_members
        WHERE campaign_id = $1 AND user_id = $2
    """, campaign_id, user_id)

    if not row:
        return None
    return CampaignRole(row['role'])


async def require_role(
    conn,
    campaign_id: str,
    user_id: str,
    allowed: Iterable[CampaignRole] = ANY_MEMBER,
    message: str = "Access denied"
) -> CampaignRole:
    """
    Fail closed unless the account holds one of the allowed roles.

    A missing membership is reported exactly like an insufficient role so
    non-members cannot probe which campaigns exist.
    """
    role = await get_campaign_role(conn, campaign_id, user_id)
    if role is None or role not in allowed:
        logger.info(f"Denied {user_id} on campaign {campaign_id} (role={role.value if role else None})")
        raise AuthorizationError(message)
    return role
