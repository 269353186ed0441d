"""
Users API - profiles, follow graph, points, activity log and notifications
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.core.database import get_db
from app.core.exceptions import NotificationNotFoundError
from app.models.notification import Notification
from app.models.user import User
from app.modules.auth.dependencies import get_current_user, get_current_admin
from app.schemas.user import (
    ActivityEntry,
    AwardPointsRequest,
    FollowStatusResponse,
    NotificationListResponse,
    NotificationResponse,
    PointsResponse,
    UserProfileResponse,
    UserProfileUpdate,
    UserSummary,
)
from app.services.social_ledger import SocialLedger, FollowState
from app.core.logging_config import logger

router = APIRouter()


def _follow_response(state: FollowState) -> FollowStatusResponse:
    return FollowStatusResponse(
        is_following=state.is_following,
        followers_count=state.followers_count,
        following_count=state.following_count,
    )


async def _profile_response(ledger: SocialLedger, user: User) -> UserProfileResponse:
    profile = UserProfileResponse.model_validate(user)
    profile.followers_count = await ledger.followers_count(user.id)
    profile.following_count = await ledger.following_count(user.id)
    return profile


# ==================== Own profile ====================

@router.get("/me", response_model=UserProfileResponse)
async def get_my_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await _profile_response(SocialLedger(db), current_user)


@router.patch("/me", response_model=UserProfileResponse)
async def update_my_profile(
    payload: UserProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update name, avatar and social links (links are stored with a scheme)"""
    changes = payload.model_dump(exclude_unset=True)
    for key, value in changes.items():
        setattr(current_user, key, value)

    ledger = SocialLedger(db)
    await ledger.record_activity(current_user.id, "Profile updated", commit=False)
    await db.commit()
    await db.refresh(current_user)

    logger.info(f"[Users] Profile updated for {current_user.id}: {sorted(changes)}")
    return await _profile_response(ledger, current_user)


@router.get("/me/activity", response_model=List[ActivityEntry])
async def get_my_activity(
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Activity log, newest first"""
    return await SocialLedger(db).activity_log(current_user.id, limit=limit)


@router.get("/me/notifications", response_model=NotificationListResponse)
async def get_my_notifications(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    query = select(Notification).where(Notification.user_id == current_user.id)
    if unread_only:
        query = query.where(Notification.is_read.is_(False))
    result = await db.execute(query.order_by(Notification.created_at.desc()).limit(limit))

    unread = (await db.execute(
        select(func.count()).select_from(Notification).where(
            Notification.user_id == current_user.id,
            Notification.is_read.is_(False),
        )
    )).scalar_one()

    return NotificationListResponse(
        items=[NotificationResponse.model_validate(n) for n in result.scalars().all()],
        unread_count=unread,
    )


@router.post("/me/notifications/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_notification_read(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        update(Notification)
        .where(Notification.id == notification_id, Notification.user_id == current_user.id)
        .values(is_read=True)
    )
    if result.rowcount == 0:
        raise NotificationNotFoundError(notification_id)
    await db.commit()


# ==================== Public profiles & follow graph ====================

@router.get("/{user_id}", response_model=UserProfileResponse)
async def get_profile(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    ledger = SocialLedger(db)
    return await _profile_response(ledger, await ledger.get_user(user_id))


@router.get("/{user_id}/followers", response_model=List[UserSummary])
async def list_followers(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await SocialLedger(db).followers(user_id)


@router.get("/{user_id}/following", response_model=List[UserSummary])
async def list_following(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await SocialLedger(db).following(user_id)


@router.post("/{user_id}/follow", response_model=FollowStatusResponse)
async def follow_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return _follow_response(await SocialLedger(db).follow(current_user.id, user_id))


@router.delete("/{user_id}/follow", response_model=FollowStatusResponse)
async def unfollow_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return _follow_response(await SocialLedger(db).unfollow(current_user.id, user_id))


@router.post("/{user_id}/follow/toggle", response_model=FollowStatusResponse)
async def toggle_follow_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Single follow button: follows or unfollows depending on current state"""
    return _follow_response(await SocialLedger(db).toggle_follow(current_user.id, user_id))


@router.post("/{user_id}/points", response_model=PointsResponse)
async def award_points(
    user_id: str,
    payload: AwardPointsRequest,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Admin bonus points"""
    reason = payload.reason or f"awarded by admin {admin.id}"
    total = await SocialLedger(db).award_points(user_id, payload.amount, reason=reason)
    return PointsResponse(user_id=user_id, total_points=total)
