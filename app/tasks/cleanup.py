import asyncio
import logging
from datetime import datetime, timedelta, timezone
from app.config import settings
from app.database import get_db_connection

logger = logging.getLogger(__name__)

INVITATION_CLEANUP_INTERVAL = 60 * 60  # 1 hour


async def cleanup_expired_invitations() -> int:
    """
    Delete unaccepted invitations that expired more than
    INVITATION_CLEANUP_GRACE_DAYS ago.

    Recently expired invitations are kept so owners can still resend them.
    Accepted invitations are never deleted.
    """
    logger.info("Starting cleanup of expired invitations...")

    cutoff = datetime.now(timezone.utc) - timedelta(days=settings.invitation_cleanup_grace_days)

    async with get_db_connection() as conn:
        result = await conn.execute("""
            DELETE FROM campaign_invitations
            WHERE accepted = false AND expires_at < $1
        """, cutoff)

        # Parse result like "DELETE 42"
        count = int(result.split()[1]) if result else 0
        logger.info(f"Invitation cleanup complete: {count} invitations deleted")
        return count


async def run_cleanup_loop():
    """
    Main cleanup loop that runs until cancelled on shutdown.
    """
    logger.info("Starting cleanup background tasks...")

    while True:
        try:
            await cleanup_expired_invitations()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error in cleanup loop: {e}")

        await asyncio.sleep(INVITATION_CLEANUP_INTERVAL)
