# Re-export all models for convenient imports
from app.models.user import User, UserRole, UserFollow, ActivityLog
from app.models.project import (
    Project,
    ProjectLike,
    ProjectView,
    ProjectComment,
    project_collaborators,
)
from app.models.notification import Notification, NotificationType

__all__ = [
    # User
    "User",
    "UserRole",
    "UserFollow",
    "ActivityLog",
    # Project
    "Project",
    "ProjectLike",
    "ProjectView",
    "ProjectComment",
    "project_collaborators",
    # Notifications
    "Notification",
    "NotificationType",
]
