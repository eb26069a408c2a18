from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum


class DirectoryRole(str, Enum):
    """Directory-level role; unrelated to campaign membership roles"""
    GM = "gm"
    PLAYER = "player"


class ProfileBootstrap(BaseModel):
    display_name: Optional[str] = Field(None, alias="displayName", max_length=100)
    role: DirectoryRole = DirectoryRole.PLAYER

    class Config:
        populate_by_name = True


class Profile(BaseModel):
    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    role: DirectoryRole = DirectoryRole.PLAYER
    created_at: Optional[datetime] = None


class ProfileBootstrapResult(BaseModel):
    profile: Profile
    created: bool
    accepted_campaign_ids: List[str] = []
