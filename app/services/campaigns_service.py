import logging
from typing import List
from app.database import get_db_connection
from app.models.campaign import Campaign, CampaignCreate
from app.models.member import CampaignRole
from app.services.members_service import insert_membership
from app.services.profiles_service import ensure_profile

logger = logging.getLogger(__name__)


async def create_campaign(user, data: CampaignCreate) -> Campaign:
    """Create a campaign and its single owner membership atomically"""
    async with get_db_connection() as conn:
        await ensure_profile(conn, user.user_id, user.email, user.user_metadata)

        row = await conn.fetchrow("""
            INSERT INTO campaigns (name, party_level, owner_id)
            VALUES ($1, $2, $3)
            RETURNING id, name, party_level, owner_id, created_at
        """, data.name.strip(), data.party_level, user.user_id)

        await insert_membership(conn, str(row['id']), user.user_id, CampaignRole.OWNER.value)

    logger.info(f"Campaign {row['id']} created by {user.user_id}")
    return Campaign.from_row({**dict(row), 'role': CampaignRole.OWNER.value})


async def list_my_campaigns(user_id: str) -> List[Campaign]:
    """Campaigns the account belongs to, with its role in each"""
    async with get_db_connection(use_transaction=False) as conn:
        rows = await conn.fetch("""
            SELECT c.id, c.name, c.party_level, c.owner_id, c.created_at, cm.role
            FROM campaign_members cm
            JOIN campaigns c ON c.id = cm.campaign_id
            WHERE cm.user_id = $1
            ORDER BY c.created_at DESC
        """, user_id)

        return [Campaign.from_row(row) for row in rows]
