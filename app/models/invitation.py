"""
Direct invitation models for campaign membership
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from app.models.member import AssignableRole


class InvitationAccept(BaseModel):
    """Accept invitation request"""
    token: str = Field(..., min_length=1)


class Invitation(BaseModel):
    """Invitation response"""
    id: str
    campaign_id: str
    email: str
    role: AssignableRole
    accepted: bool = False
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row) -> "Invitation":
        return cls(
            id=str(row['id']),
            campaign_id=str(row['campaign_id']),
            email=row['email'],
            role=row['role'],
            accepted=bool(row.get('accepted')),
            created_at=row.get('created_at'),
            expires_at=row.get('expires_at'),
            accepted_at=row.get('accepted_at')
        )
