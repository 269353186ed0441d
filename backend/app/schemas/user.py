from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import datetime

from app.utils.links import ensure_scheme


class UserSummary(BaseModel):
    """Compact user entry used in follower/following lists"""
    id: str
    name: str
    avatar_url: Optional[str] = None
    total_points: int = 0

    model_config = ConfigDict(from_attributes=True)


class UserProfileResponse(BaseModel):
    id: str
    name: str
    email: str
    avatar_url: Optional[str] = None
    role: str
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    website_url: Optional[str] = None
    total_points: int
    followers_count: int = 0
    following_count: int = 0
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    avatar_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    website_url: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_null(cls, v: Optional[str]) -> str:
        # Omit the field to keep the current name; the column is NOT NULL
        if v is None:
            raise ValueError("name cannot be null")
        return v

    @field_validator("linkedin_url", "github_url", "website_url")
    @classmethod
    def normalize_link(cls, v: Optional[str]) -> Optional[str]:
        return ensure_scheme(v)


class FollowStatusResponse(BaseModel):
    success: bool = True
    is_following: bool
    followers_count: int
    following_count: int


class ActivityEntry(BaseModel):
    action: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AwardPointsRequest(BaseModel):
    # Validated by the ledger so the error carries the ledger's code
    amount: int
    reason: Optional[str] = Field(None, max_length=200)


class PointsResponse(BaseModel):
    user_id: str
    total_points: int


class NotificationResponse(BaseModel):
    id: str
    message: str
    type: str
    is_read: bool
    related_id: Optional[str] = None
    related_model: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationListResponse(BaseModel):
    items: List[NotificationResponse]
    unread_count: int
