"""
Engagement Service - project uploads, edits, likes, comments and views

Each operation writes its rows, point credits and notifications in a single
transaction via the SocialLedger.
"""

from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import select, func, update, insert, delete, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.core.exceptions import AuthorizationError, ProjectNotFoundError, UserNotFoundError
from app.core.logging_config import logger
from app.models.notification import Notification, NotificationType
from app.models.project import (
    Project,
    ProjectComment,
    ProjectLike,
    ProjectView,
    project_collaborators,
)
from app.models.user import User
from app.schemas.project import ProjectCreate, ProjectUpdate
from app.services import points_calculator
from app.services.social_ledger import SocialLedger


@dataclass
class LikeResult:
    likes: int
    has_liked: bool


@dataclass
class ViewResult:
    views: int
    first_view: bool


class EngagementService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.ledger = SocialLedger(db)

    async def get_project(self, project_id: str) -> Project:
        result = await self.db.execute(
            select(Project)
            .options(selectinload(Project.collaborators), selectinload(Project.comments))
            .where(Project.id == str(project_id))
            .execution_options(populate_existing=True)
        )
        project = result.scalar_one_or_none()
        if not project:
            raise ProjectNotFoundError(str(project_id))
        return project

    async def _credit_project(self, project: Project, amount: int) -> None:
        await self.db.execute(
            update(Project)
            .where(Project.id == project.id)
            .values(points=Project.points + amount)
            .execution_options(synchronize_session=False)
        )

    async def _validated_collaborators(self, owner_id: str, collaborator_ids: List[str]) -> List[str]:
        """De-duplicate in order, drop the owner and check every id exists"""
        collaborator_ids = [cid for cid in dict.fromkeys(collaborator_ids) if cid != owner_id]
        if collaborator_ids:
            found = (await self.db.execute(
                select(User.id).where(User.id.in_(collaborator_ids))
            )).scalars().all()
            missing = set(collaborator_ids) - set(found)
            if missing:
                raise UserNotFoundError(sorted(missing)[0])
        return collaborator_ids

    async def _insert_collaborators(self, project_id: str, collaborator_ids: List[str]) -> None:
        if collaborator_ids:
            await self.db.execute(
                insert(project_collaborators),
                [
                    {"project_id": project_id, "user_id": cid, "position": i}
                    for i, cid in enumerate(collaborator_ids)
                ],
            )

    # ========== Uploads ==========

    async def create_project(self, owner: User, data: ProjectCreate) -> Project:
        """Persist a project; published uploads earn the owner upload points"""
        collaborator_ids = await self._validated_collaborators(owner.id, data.collaborator_ids)

        image_urls = data.image_urls or [settings.DEFAULT_PROJECT_IMAGE_URL]

        try:
            project = Project(
                user_id=owner.id,
                title=data.title,
                description=data.description,
                problem_statement=data.problem_statement or "",
                image_urls=image_urls,
                tags=data.tags,
                other_contributors=data.other_contributors,
                is_published=data.is_published,
            )
            self.db.add(project)
            await self.db.flush()

            await self._insert_collaborators(project.id, collaborator_ids)

            await self.ledger.record_activity(owner.id, f"Project uploaded: {data.title}", commit=False)
            if data.is_published:
                points = points_calculator.calculate_upload_points()
                await self._credit_project(project, points)
                await self.ledger.award_points(owner.id, points, reason="project upload", commit=False)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"[Engagement] Project {project.id} created by {owner.id} (published={data.is_published})")
        return await self.get_project(project.id)

    async def update_project(self, user: User, project_id: str, data: ProjectUpdate) -> Project:
        """
        Edit a project. The owner and its collaborators may edit. A new
        collaborator list replaces the old one in the given order.
        Edits never pay points.
        """
        project = await self.get_project(project_id)
        pid = project.id
        if user.id != project.user_id and user.id not in {c.id for c in project.collaborators}:
            raise AuthorizationError("Only the owner or a collaborator can edit this project")

        changes = data.model_dump(exclude_unset=True)
        collaborator_ids = changes.pop("collaborator_ids", None)
        if collaborator_ids is not None:
            collaborator_ids = await self._validated_collaborators(project.user_id, collaborator_ids)
        if "image_urls" in changes and not changes["image_urls"]:
            changes["image_urls"] = [settings.DEFAULT_PROJECT_IMAGE_URL]
        title = changes.get("title", project.title)

        try:
            for key, value in changes.items():
                setattr(project, key, value)
            if collaborator_ids is not None:
                await self.db.execute(
                    delete(project_collaborators).where(project_collaborators.c.project_id == pid)
                )
                await self._insert_collaborators(pid, collaborator_ids)

            await self.ledger.record_activity(user.id, f"Project updated: {title}", commit=False)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"[Engagement] Project {pid} updated by {user.id}: {sorted(changes)}")
        return await self.get_project(pid)

    async def delete_project(self, user: User, project_id: str) -> None:
        """Owner-only. Points already earned from the project are kept."""
        project = await self.get_project(project_id)
        if project.user_id != user.id:
            raise AuthorizationError("Only the owner can delete this project")

        pid, title = project.id, project.title
        try:
            await self.db.delete(project)
            await self.ledger.record_activity(user.id, f"Project deleted: {title}", commit=False)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"[Engagement] Project {pid} deleted by {user.id}")

    async def list_user_projects(self, user_id: str, include_unpublished: bool = False) -> List[Project]:
        """Projects the user owns or collaborates on, newest first"""
        user = await self.ledger.get_user(user_id)
        collaborating = select(project_collaborators.c.project_id).where(
            project_collaborators.c.user_id == user.id
        )
        query = (
            select(Project)
            .options(selectinload(Project.collaborators), selectinload(Project.comments))
            .where(or_(Project.user_id == user.id, Project.id.in_(collaborating)))
            .order_by(Project.created_at.desc(), Project.id)
        )
        if not include_unpublished:
            query = query.where(Project.is_published.is_(True))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    # ========== Likes ==========

    async def toggle_like(self, user: User, project_id: str) -> LikeResult:
        """
        Like or unlike a project. The owner earns like points the first time
        another user likes it; unliking does not take points back and a
        re-like pays nothing.
        """
        project = await self.get_project(project_id)
        pid = project.id

        existing = (await self.db.execute(
            select(ProjectLike).where(
                ProjectLike.project_id == project.id,
                ProjectLike.user_id == user.id,
            )
        )).scalar_one_or_none()

        try:
            if existing is not None:
                existing.is_active = not existing.is_active
                has_liked = existing.is_active
                await self.db.flush()
            else:
                self.db.add(ProjectLike(project_id=project.id, user_id=user.id))
                await self.db.flush()
                has_liked = True
                if project.user_id != user.id:
                    points = points_calculator.calculate_like_points()
                    await self._credit_project(project, points)
                    await self.ledger.award_points(project.user_id, points, reason="project liked", commit=False)
                    self.db.add(Notification(
                        user_id=project.user_id,
                        message=f"{user.name or 'Someone'} liked your project \"{project.title}\".",
                        type=NotificationType.LIKE,
                        related_id=project.id,
                        related_model="project",
                    ))

            like_count = await self._count_likes(pid)
            await self.db.execute(
                update(Project).where(Project.id == project.id).values(like_count=like_count)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except IntegrityError:
            # Double-click race: the like row already exists
            await self.db.rollback()
            return LikeResult(likes=await self._count_likes(pid), has_liked=True)
        except Exception:
            await self.db.rollback()
            raise

        return LikeResult(likes=like_count, has_liked=has_liked)

    async def _count_likes(self, project_id: str) -> int:
        return (await self.db.execute(
            select(func.count()).select_from(ProjectLike).where(
                ProjectLike.project_id == project_id,
                ProjectLike.is_active.is_(True),
            )
        )).scalar_one()

    # ========== Comments ==========

    async def add_comment(self, user: User, project_id: str, text: str) -> ProjectComment:
        """Append a comment with a snapshot of the author's name and avatar"""
        project = await self.get_project(project_id)

        try:
            comment = ProjectComment(
                project_id=project.id,
                author_id=user.id,
                author_name=user.name or "Anonymous",
                author_avatar_url=user.avatar_url,
                text=text,
            )
            self.db.add(comment)
            await self.db.flush()

            if project.user_id != user.id:
                owner_points = points_calculator.calculate_comment_points()
                await self._credit_project(project, owner_points)
                await self.ledger.award_points(project.user_id, owner_points, reason="comment received", commit=False)
                await self.ledger.award_points(
                    user.id, points_calculator.calculate_commenter_points(),
                    reason="comment written", commit=False,
                )
                self.db.add(Notification(
                    user_id=project.user_id,
                    message=f"{user.name or 'Someone'} commented on \"{project.title}\".",
                    type=NotificationType.COMMENT,
                    related_id=project.id,
                    related_model="project",
                ))
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        return comment

    # ========== Views ==========

    async def record_view(self, user: User, project_id: str) -> ViewResult:
        """
        Count a unique view. Owner and viewer earn points each time their
        running count crosses a batch threshold, up to the caps.
        """
        project = await self.get_project(project_id)

        if project.user_id == user.id:
            return ViewResult(views=project.view_count, first_view=False)

        try:
            self.db.add(ProjectView(project_id=project.id, user_id=user.id))
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            project = await self.get_project(project_id)
            return ViewResult(views=project.view_count, first_view=False)

        try:
            view_count = (await self.db.execute(
                select(func.count()).select_from(ProjectView).where(ProjectView.project_id == project.id)
            )).scalar_one()
            await self.db.execute(
                update(Project).where(Project.id == project.id).values(view_count=view_count)
                .execution_options(synchronize_session=False)
            )

            owner_points = points_calculator.incremental_points(
                points_calculator.calculate_view_points, view_count - 1, view_count
            )
            if owner_points:
                await self._credit_project(project, owner_points)
                await self.ledger.award_points(project.user_id, owner_points, reason="project views", commit=False)

            viewed_count = (await self.db.execute(
                select(func.count()).select_from(ProjectView).where(ProjectView.user_id == user.id)
            )).scalar_one()
            viewer_points = points_calculator.incremental_points(
                points_calculator.calculate_viewer_points, viewed_count - 1, viewed_count
            )
            if viewer_points:
                await self.ledger.award_points(user.id, viewer_points, reason="projects viewed", commit=False)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        return ViewResult(views=view_count, first_view=True)

    # ========== Admin ==========

    async def feature_project(self, project_id: str) -> int:
        """Award the featured-project bonus to the owner; returns the owner's new total"""
        project = await self.get_project(project_id)
        bonus = points_calculator.calculate_bonus_points("featured")
        try:
            await self._credit_project(project, bonus)
            total = await self.ledger.award_points(
                project.user_id, bonus, reason=f"featured project: {project.title}", commit=False
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return total

    async def list_comments(self, project_id: str) -> List[ProjectComment]:
        project = await self.get_project(project_id)
        return list(project.comments)

    async def get_owner(self, project_id: str) -> Optional[User]:
        project = await self.get_project(project_id)
        return await self.db.get(User, project.user_id)
