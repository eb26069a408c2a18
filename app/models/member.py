from pydantic import BaseModel, Field, field_validator
from email_validator import validate_email, EmailNotValidError
from typing import Optional
from datetime import datetime
from enum import Enum
from uuid import UUID


class CampaignRole(str, Enum):
    """Campaign membership roles, in descending privilege"""
    OWNER = "owner"
    CO_GM = "co-gm"
    VIEWER = "viewer"


class AssignableRole(str, Enum):
    """Roles an owner may grant; ownership is never assigned through membership edits"""
    CO_GM = "co-gm"
    VIEWER = "viewer"


class MemberAddRequest(BaseModel):
    """Add a member by email (or invite them if they have no account yet)"""
    email: str
    role: AssignableRole

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        """Reject malformed addresses but keep the address exactly as typed"""
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValueError(str(e))
        return value


class MemberRoleUpdate(BaseModel):
    """Change a member's role"""
    member_id: UUID = Field(..., alias="memberId")
    role: AssignableRole

    class Config:
        populate_by_name = True


class CharacterNameUpdate(BaseModel):
    """Set or clear the caller's character name in a campaign"""
    character_name: Optional[str] = Field(..., alias="characterName", max_length=100)

    class Config:
        populate_by_name = True


class MemberProfile(BaseModel):
    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None


class Member(BaseModel):
    """Campaign membership with the member's directory profile"""
    id: str
    campaign_id: str
    user_id: str
    role: CampaignRole
    character_name: Optional[str] = None
    created_at: Optional[datetime] = None
    user: Optional[MemberProfile] = None

    @classmethod
    def from_row(cls, row) -> "Member":
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
            role=row['role'],
            character_name=row.get('character_name'),
            created_at=row.get('created_at'),
            user=user
        )
