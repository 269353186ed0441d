"""
Social/Points Ledger - follow graph, point totals and activity log

The follow relation is stored as one `user_follows` row per edge. A user's
"following" set and the target's "followers" set are two indexed views of
that row, so a follow or unfollow is always applied to both sides at once.
"""

from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import select, func, delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    SelfFollowError,
    InvalidAmountError,
    UserNotFoundError,
)
from app.core.logging_config import logger
from app.models.user import User, UserFollow, ActivityLog
from app.models.notification import Notification, NotificationType


@dataclass
class FollowState:
    """Relation between actor and target after a follow-graph operation"""
    actor_id: str
    target_id: str
    is_following: bool
    followers_count: int   # target's followers
    following_count: int   # actor's following
    changed: bool = False


class SocialLedger:
    """Follow/unfollow, point awards and activity entries for identities"""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ========== Lookups ==========

    async def get_user(self, user_id: str) -> User:
        result = await self.db.execute(
            select(User).where(User.id == str(user_id)).execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()
        if not user:
            raise UserNotFoundError(str(user_id))
        return user

    async def is_following(self, actor_id: str, target_id: str) -> bool:
        result = await self.db.execute(
            select(UserFollow.follower_id).where(
                UserFollow.follower_id == str(actor_id),
                UserFollow.followed_id == str(target_id),
            )
        )
        return result.first() is not None

    async def followers_count(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(UserFollow).where(UserFollow.followed_id == str(user_id))
        )
        return result.scalar_one()

    async def following_count(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(UserFollow).where(UserFollow.follower_id == str(user_id))
        )
        return result.scalar_one()

    async def followers(self, user_id: str) -> List[User]:
        """Users following `user_id`, oldest edge first"""
        await self.get_user(user_id)
        result = await self.db.execute(
            select(User)
            .join(UserFollow, UserFollow.follower_id == User.id)
            .where(UserFollow.followed_id == str(user_id))
            .order_by(UserFollow.created_at, User.id)
        )
        return list(result.scalars().all())

    async def following(self, user_id: str) -> List[User]:
        """Users that `user_id` follows, oldest edge first"""
        await self.get_user(user_id)
        result = await self.db.execute(
            select(User)
            .join(UserFollow, UserFollow.followed_id == User.id)
            .where(UserFollow.follower_id == str(user_id))
            .order_by(UserFollow.created_at, User.id)
        )
        return list(result.scalars().all())

    async def follow_state(self, actor_id: str, target_id: str, changed: bool = False) -> FollowState:
        return FollowState(
            actor_id=str(actor_id),
            target_id=str(target_id),
            is_following=await self.is_following(actor_id, target_id),
            followers_count=await self.followers_count(target_id),
            following_count=await self.following_count(actor_id),
            changed=changed,
        )

    # ========== Follow graph ==========

    async def follow(self, actor_id: str, target_id: str) -> FollowState:
        """
        Make `actor_id` follow `target_id`.

        Following someone already followed is a successful no-op.
        """
        actor_id, target_id = str(actor_id), str(target_id)
        if actor_id == target_id:
            raise SelfFollowError(actor_id)

        actor = await self.get_user(actor_id)
        await self.get_user(target_id)

        if await self.is_following(actor_id, target_id):
            return await self.follow_state(actor_id, target_id)

        try:
            self.db.add(UserFollow(follower_id=actor_id, followed_id=target_id))
            self.db.add(ActivityLog(user_id=actor_id, action="Followed a user"))
            self.db.add(Notification(
                user_id=target_id,
                message=f"{actor.name or 'Someone'} started following you.",
                type=NotificationType.FOLLOW,
                related_id=actor_id,
                related_model="user",
            ))
            await self.db.commit()
        except IntegrityError:
            # A concurrent request inserted the same edge first
            await self.db.rollback()
            logger.info(f"[Ledger] Follow {actor_id} -> {target_id} already recorded concurrently")
            return await self.follow_state(actor_id, target_id)

        logger.log_ledger_event("follow", actor_id, target=target_id)
        return await self.follow_state(actor_id, target_id, changed=True)

    async def unfollow(self, actor_id: str, target_id: str) -> FollowState:
        """Remove the edge; a no-op when `actor_id` does not follow `target_id`"""
        actor_id, target_id = str(actor_id), str(target_id)
        if actor_id == target_id:
            raise SelfFollowError(actor_id)

        await self.get_user(actor_id)
        await self.get_user(target_id)

        try:
            result = await self.db.execute(
                delete(UserFollow).where(
                    UserFollow.follower_id == actor_id,
                    UserFollow.followed_id == target_id,
                )
            )
            changed = result.rowcount > 0
            if changed:
                self.db.add(ActivityLog(user_id=actor_id, action="Unfollowed a user"))
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        if changed:
            logger.log_ledger_event("unfollow", actor_id, target=target_id)
        return await self.follow_state(actor_id, target_id, changed=changed)

    async def toggle_follow(self, actor_id: str, target_id: str) -> FollowState:
        """Follow when not following, unfollow otherwise"""
        if str(actor_id) != str(target_id) and await self.is_following(actor_id, target_id):
            return await self.unfollow(actor_id, target_id)
        return await self.follow(actor_id, target_id)

    # ========== Points ==========

    async def award_points(
        self,
        user_id: str,
        amount: int,
        reason: Optional[str] = None,
        commit: bool = True,
    ) -> int:
        """
        Add `amount` points to a user and return the new total.

        The increment is done in SQL so concurrent awards never lose updates.
        With commit=False the caller owns the transaction.
        """
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidAmountError(amount)

        user_id = str(user_id)
        try:
            result = await self.db.execute(
                update(User)
                .where(User.id == user_id)
                .values(total_points=User.total_points + amount)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise UserNotFoundError(user_id)

            action = f"Earned {amount} points"
            if reason:
                action = f"{action}: {reason}"
            self.db.add(ActivityLog(user_id=user_id, action=action))

            if commit:
                await self.db.commit()
        except Exception:
            if commit:
                await self.db.rollback()
            raise

        total = (await self.db.execute(
            select(User.total_points).where(User.id == user_id)
        )).scalar_one()
        logger.log_ledger_event("award_points", user_id, amount=amount, total=total)
        return total

    # ========== Activity log ==========

    async def record_activity(self, user_id: str, action: str, commit: bool = True) -> ActivityLog:
        entry = ActivityLog(user_id=str(user_id), action=action)
        self.db.add(entry)
        if commit:
            await self.db.commit()
        return entry

    async def activity_log(self, user_id: str, limit: int = 50) -> List[ActivityLog]:
        """Most recent entries first"""
        result = await self.db.execute(
            select(ActivityLog)
            .where(ActivityLog.user_id == str(user_id))
            .order_by(ActivityLog.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
