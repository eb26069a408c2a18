from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum


class InviteLinkStatus(str, Enum):
    """Computed usability of an invite link"""
    ACTIVE = "active"
    REVOKED = "revoked"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"


class InviteLinkCreate(BaseModel):
    """Request to create a shareable invite link"""
    expires_at: Optional[datetime] = Field(None, alias="expiresAt")
    max_uses: Optional[int] = Field(None, alias="maxUses", gt=0)
    require_approval: bool = Field(False, alias="requireApproval")

    class Config:
        populate_by_name = True


class InviteLinkJoin(BaseModel):
    """Join a campaign through an invite link token"""
    token: str = Field(..., min_length=1)


class InviteLink(BaseModel):
    """Invite link with usage and revocation metadata"""
    id: str
    campaign_id: str
    token: str
    url: Optional[str] = None
    created_by: Optional[str] = None
    expires_at: Optional[datetime] = None
    max_uses: Optional[int] = None
    use_count: int = 0
    require_approval: bool = False
    is_active: bool = True
    created_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None
    revoked_by: Optional[str] = None


class InviteLinkPreview(BaseModel):
    """Public view of an invite link for the landing page"""
    campaign_id: str
    campaign_name: Optional[str] = None
    require_approval: bool
    status: InviteLinkStatus
    expires_at: Optional[datetime] = None


class JoinResult(BaseModel):
    """Outcome of joining through an invite link"""
    campaign_id: str
    requires_approval: bool
    status: str
    role: Optional[str] = None
    join_request_id: Optional[str] = None
    already_requested: bool = False
    message: str
