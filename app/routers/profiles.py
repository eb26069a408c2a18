from fastapi import APIRouter, Depends
from typing import Optional
from app.core.dependencies import get_authenticated_user, AuthenticatedUser
from app.models.profile import ProfileBootstrap, ProfileBootstrapResult
from app.services import profiles_service

router = APIRouter()


@router.post("/me", response_model=ProfileBootstrapResult)
async def bootstrap_profile(
    data: Optional[ProfileBootstrap] = None,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    """
    Create the caller's directory profile after sign-up.

    Pending invitations addressed to the caller's email are accepted.
    """
    return await profiles_service.bootstrap_profile(user, data or ProfileBootstrap())
