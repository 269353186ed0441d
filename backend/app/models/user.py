from sqlalchemy import (
    Column, String, Boolean, DateTime, Enum as SQLEnum, Integer, Text,
    ForeignKey, Index, CheckConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


DEFAULT_PROFILE_PIC = "https://res.cloudinary.com/dphfedhek/image/upload/default-profile.jpg"


class UserRole(str, enum.Enum):
    """User roles"""
    STUDENT = "student"
    ADMIN = "admin"
    EXTERNAL = "external"
    ALUMNI = "alumni"


class User(Base):
    """Registered identity with social links and a point total"""
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("total_points >= 0", name="ck_users_total_points_non_negative"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(50), nullable=False, default="")
    email = Column(String(255), unique=True, index=True, nullable=False)
    avatar_url = Column(Text, nullable=True, default=DEFAULT_PROFILE_PIC)

    role = Column(SQLEnum(UserRole), default=UserRole.EXTERNAL, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Social links
    linkedin_url = Column(String(500), nullable=True)
    github_url = Column(String(500), nullable=True)
    website_url = Column(String(500), nullable=True)

    total_points = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    projects = relationship("Project", back_populates="owner", cascade="all, delete-orphan")
    activity_log = relationship(
        "ActivityLog",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="ActivityLog.id",
    )

    def __repr__(self):
        return f"<User {self.email}>"


class UserFollow(Base):
    """
    One row per "follower follows followed" edge.

    The composite primary key gives set semantics and the two indexes serve
    the "following" and "followers" views of the same row.
    """
    __tablename__ = "user_follows"
    __table_args__ = (
        CheckConstraint("follower_id <> followed_id", name="ck_user_follows_no_self_follow"),
        Index("ix_user_follows_follower_id", "follower_id"),
        Index("ix_user_follows_followed_id", "followed_id"),
    )

    follower_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    followed_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<UserFollow {self.follower_id} -> {self.followed_id}>"


class ActivityLog(Base):
    """Append-only activity entries (action label + timestamp)"""
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="activity_log")

    def __repr__(self):
        return f"<ActivityLog {self.user_id} {self.action!r}>"
