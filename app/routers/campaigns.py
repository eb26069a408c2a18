from fastapi import APIRouter, Depends
from app.core.dependencies import get_authenticated_user, AuthenticatedUser
from app.models.campaign import CampaignCreate
from app.services import campaigns_service

router = APIRouter()


@router.post("", status_code=201)
async def create_campaign(
    data: CampaignCreate,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    """Create a campaign; the caller becomes its owner."""
    campaign = await campaigns_service.create_campaign(user, data)
    return {"campaign": campaign}


@router.get("")
async def list_campaigns(user: AuthenticatedUser = Depends(get_authenticated_user)):
    campaigns = await campaigns_service.list_my_campaigns(user.user_id)
    return {"campaigns": campaigns}
