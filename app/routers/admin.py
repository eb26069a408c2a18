from fastapi import APIRouter, Depends
from app.core.dependencies import require_admin_key
from app.tasks.cleanup import cleanup_expired_invitations

router = APIRouter()


@router.post("/cleanup-invitations", dependencies=[Depends(require_admin_key)])
async def cleanup_invitations():
    """Delete long-expired unaccepted invitations (scheduled job trigger)"""
    deleted = await cleanup_expired_invitations()
    return {"deleted": deleted}
