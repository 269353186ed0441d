from sqlalchemy import (
    Column, String, DateTime, Integer, Text, ForeignKey, JSON, Boolean, Index,
    Table, CheckConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime

from app.core.database import Base
from app.core.types import GUID, generate_uuid


project_collaborators = Table(
    "project_collaborators",
    Base.metadata,
    Column("project_id", GUID, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", GUID, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("position", Integer, nullable=False, default=0),
)


class Project(Base):
    """Student work item shown on profiles and exported to portfolios"""
    __tablename__ = "projects"

    __table_args__ = (
        Index('ix_projects_user_published', 'user_id', 'is_published'),
        Index('ix_projects_created_at', 'created_at'),
        CheckConstraint("like_count >= 0", name="ck_projects_like_count_non_negative"),
        CheckConstraint("points >= 0", name="ck_projects_points_non_negative"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    problem_statement = Column(Text, nullable=True)

    # Ordered image URLs, first one is the primary image
    image_urls = Column(JSON, nullable=False, default=list)
    tags = Column(JSON, nullable=False, default=list)
    other_contributors = Column(Text, nullable=True)

    # Metrics
    like_count = Column(Integer, default=0, nullable=False)
    view_count = Column(Integer, default=0, nullable=False)
    points = Column(Integer, default=0, nullable=False)

    is_published = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    owner = relationship("User", back_populates="projects")
    collaborators = relationship(
        "User",
        secondary=project_collaborators,
        order_by=project_collaborators.c.position,
        viewonly=True,
    )
    comments = relationship(
        "ProjectComment",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="ProjectComment.created_at",
    )

    @property
    def primary_image_url(self):
        return self.image_urls[0] if self.image_urls else None

    def __repr__(self):
        return f"<Project {self.title!r}>"


class ProjectLike(Base):
    """
    A user's like on a project (one row per pair).

    Unliking clears is_active instead of deleting, so a re-like is
    recognised and does not pay the owner twice.
    """
    __tablename__ = "project_likes"

    project_id = Column(GUID, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class ProjectView(Base):
    """First view of a project by a user; later views are not recorded"""
    __tablename__ = "project_views"
    __table_args__ = (
        Index("ix_project_views_user_id", "user_id"),
    )

    project_id = Column(GUID, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class ProjectComment(Base):
    """
    Comment on a project. Author name and avatar are snapshots taken when
    the comment is written; comments are never edited.
    """
    __tablename__ = "project_comments"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    project_id = Column(GUID, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    author_name = Column(String(255), nullable=False, default="Anonymous")
    author_avatar_url = Column(Text, nullable=True)
    text = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    project = relationship("Project", back_populates="comments")
