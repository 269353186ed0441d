# Pydantic schemas
from app.schemas.user import (
    UserSummary,
    UserProfileResponse,
    UserProfileUpdate,
    FollowStatusResponse,
    ActivityEntry,
    AwardPointsRequest,
    PointsResponse,
    NotificationResponse,
    NotificationListResponse,
)
from app.schemas.project import (
    ProjectCreate,
    ProjectResponse,
    CommentCreate,
    CommentResponse,
    LikeToggleResponse,
    ViewResponse,
)
from app.schemas.portfolio import PortfolioRequest, PortfolioStylesResponse
