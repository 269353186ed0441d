from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, ForeignKey, Index
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class NotificationType(str, enum.Enum):
    LIKE = "like"
    FOLLOW = "follow"
    COMMENT = "comment"
    MENTION = "mention"


class Notification(Base):
    """In-app notification for engagement on a user's profile or projects"""
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "is_read"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    message = Column(String(500), nullable=False)
    type = Column(SQLEnum(NotificationType), nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)

    # "project" or "user"
    related_id = Column(GUID, nullable=True)
    related_model = Column(String(20), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
