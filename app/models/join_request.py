from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from enum import Enum

from app.models.member import MemberProfile


class JoinRequestStatus(str, Enum):
    """Join request lifecycle; approved and rejected are terminal"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class JoinRequestAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class JoinRequestReview(BaseModel):
    """Review payload; the action is validated by the service to return a readable message"""
    action: Optional[str] = None


class JoinRequest(BaseModel):
    id: str
    campaign_id: str
    user_id: str
    invite_link_id: Optional[str] = None
    status: JoinRequestStatus
    requested_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    user: Optional[MemberProfile] = None

    @classmethod
    def from_row(cls, row) -> "JoinRequest":
        user = None
        if row.get('email') is not None or row.get('display_name') is not None:
            user = MemberProfile(
                id=str(row['user_id']),
                email=row.get('email'),
                display_name=row.get('display_name')
            )
        return cls(
            id=str(row['id']),
            campaign_id=str(row['campaign_id']),
            user_id=str(row['user_id']),
            invite_link_id=str(row['invite_link_id']) if row.get('invite_link_id') else None,
            status=row['status'],
            requested_at=row.get('requested_at'),
            reviewed_at=row.get('reviewed_at'),
            reviewed_by=str(row['reviewed_by']) if row.get('reviewed_by') else None,
            user=user
        )
