from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from app.models.member import CampaignRole


class CampaignCreate(BaseModel):
    """Schema to create a campaign"""
    name: str = Field(..., min_length=1, max_length=255)
    party_level: int = Field(1, alias="partyLevel", ge=1, le=20)

    class Config:
        populate_by_name = True


class Campaign(BaseModel):
    id: str
    name: str
    party_level: int = 1
    owner_id: str
    created_at: Optional[datetime] = None
    role: Optional[CampaignRole] = None

    @classmethod
    def from_row(cls, row) -> "Campaign":
        return cls(
            id=str(row['id']),
            name=row['name'],
            party_level=row.get('party_level') or 1,
            owner_id=str(row['owner_id']),
            created_at=row.get('created_at'),
            role=row.get('role')
        )
