from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import datetime


class ProjectCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    problem_statement: Optional[str] = None
    # URLs returned by the media host; first one is the primary image
    image_urls: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    collaborator_ids: List[str] = Field(default_factory=list)
    other_contributors: Optional[str] = None
    is_published: bool = True

    @field_validator("tags")
    @classmethod
    def strip_tags(cls, v: List[str]) -> List[str]:
        return [t.strip() for t in v if t and t.strip()]


class ProjectUpdate(BaseModel):
    """Partial edit; omitted fields are left unchanged"""
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    problem_statement: Optional[str] = None
    image_urls: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    collaborator_ids: Optional[List[str]] = None
    other_contributors: Optional[str] = None
    is_published: Optional[bool] = None

    @field_validator("title", "image_urls", "tags", "is_published")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("field cannot be null")
        return v

    @field_validator("tags")
    @classmethod
    def strip_tags(cls, v: List[str]) -> List[str]:
        return [t.strip() for t in v if t and t.strip()]


class CommentCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=2000)


class CommentResponse(BaseModel):
    id: str
    author_id: Optional[str] = None
    author_name: str
    author_avatar_url: Optional[str] = None
    text: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CollaboratorResponse(BaseModel):
    id: str
    name: str

    model_config = ConfigDict(from_attributes=True)


class ProjectResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    problem_statement: Optional[str] = None
    image_urls: List[str] = []
    tags: List[str] = []
    other_contributors: Optional[str] = None
    collaborators: List[CollaboratorResponse] = []
    like_count: int
    view_count: int
    points: int
    is_published: bool
    comments: List[CommentResponse] = []
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class LikeToggleResponse(BaseModel):
    success: bool = True
    likes: int
    has_liked: bool


class ViewResponse(BaseModel):
    success: bool = True
    views: int
    first_view: bool
