"""
Identity directory: profiles are created lazily the first time an account
is granted access, or explicitly right after sign-up.
"""
import logging
from typing import Optional, Tuple
from app.database import get_db_connection
from app.models.profile import Profile, ProfileBootstrap, ProfileBootstrapResult, DirectoryRole

logger = logging.getLogger(__name__)


def default_display_name(email: Optional[str], user_metadata: Optional[dict] = None) -> Optional[str]:
    """Display name from provider metadata, falling back to the email local part"""
    metadata = user_metadata or {}
    for key in ('display_name', 'full_name', 'name'):
        value = metadata.get(key)
        if value and str(value).strip():
            return str(value).strip()
    if email:
        return email.split('@')[0]
    return None


async def ensure_profile(
    conn,
    user_id: str,
    email: Optional[str],
    user_metadata: Optional[dict] = None,
    display_name: Optional[str] = None,
    role: DirectoryRole = DirectoryRole.PLAYER
) -> Tuple[dict, bool]:
    """
    Insert the directory entry if it does not exist yet.

    Returns (profile_row, created). Existing profiles are never modified.
    """
    name = display_name or default_display_name(email, user_metadata)

    created = await conn.fetchrow("""
        INSERT INTO profiles (id, email, display_name, role)
        VALUES ($1, $2, $3, $4)
        ON CONFLICT (id) DO NOTHING
        RETURNING id, email, display_name, role, created_at
    """, user_id, email, name, role.value)

    if created:
        logger.info(f"Profile created for {email}")
        return created, True

    existing = await conn.fetchrow("""
        SELECT id, email, display_name, role, created_at
        FROM profiles WHERE id = $1
    """, user_id)
    return existing, False


async def bootstrap_profile(user, data: ProfileBootstrap) -> ProfileBootstrapResult:
    """
    Create the caller's profile and claim pending invitations for their email.

    Every pending, unexpired direct invitation addressed to the authenticated
    email is accepted in the same transaction as the profile insert.
    """
    from app.services.invitations_service import accept_pending_invitations_for_email

    async with get_db_connection() as conn:
        profile, created = await ensure_profile(
            conn,
            user.user_id,
            user.email,
            user.user_metadata,
            display_name=data.display_name,
            role=data.role
        )

        accepted = []
        if user.email:
            accepted = await accept_pending_invitations_for_email(conn, user.user_id, user.email)

    if accepted:
        logger.info(f"Profile bootstrap for {user.email} accepted {len(accepted)} pending invitation(s)")

    return ProfileBootstrapResult(
        profile=Profile(
            id=str(profile['id']),
            email=profile['email'],
            display_name=profile['display_name'],
            role=profile['role'] or DirectoryRole.PLAYER,
            created_at=profile['created_at']
        ),
        created=created,
        accepted_campaign_ids=accepted
    )
