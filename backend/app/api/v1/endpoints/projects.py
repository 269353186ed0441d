from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.core.database import get_db
from app.models.user import User
from app.schemas.project import (
    CommentCreate,
    CommentResponse,
    LikeToggleResponse,
    ProjectCreate,
    ProjectResponse,
    ProjectUpdate,
    ViewResponse,
)
from app.schemas.user import PointsResponse
from app.modules.auth.dependencies import get_current_user, get_current_admin
from app.services.engagement_service import EngagementService
from app.core.logging_config import logger

router = APIRouter()


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Upload a project"""
    return await EngagementService(db).create_project(current_user, payload)


@router.get("/mine", response_model=List[ProjectResponse])
async def list_my_projects(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Caller's own and collaborated projects, drafts included"""
    return await EngagementService(db).list_user_projects(current_user.id, include_unpublished=True)


@router.get("/user/{user_id}", response_model=List[ProjectResponse])
async def list_user_projects(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Published projects a user owns or collaborates on"""
    return await EngagementService(db).list_user_projects(user_id)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await EngagementService(db).get_project(project_id)


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    payload: ProjectUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Edit a project (owner or collaborator)"""
    return await EngagementService(db).update_project(current_user, project_id, payload)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await EngagementService(db).delete_project(current_user, project_id)


@router.post("/{project_id}/like", response_model=LikeToggleResponse)
async def toggle_like(
    project_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await EngagementService(db).toggle_like(current_user, project_id)
    return LikeToggleResponse(likes=result.likes, has_liked=result.has_liked)


@router.get("/{project_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    project_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await EngagementService(db).list_comments(project_id)


@router.post("/{project_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    project_id: str,
    payload: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await EngagementService(db).add_comment(current_user, project_id, payload.text)


@router.post("/{project_id}/view", response_model=ViewResponse)
async def record_view(
    project_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Count a unique view of the project by the caller"""
    result = await EngagementService(db).record_view(current_user, project_id)
    return ViewResponse(views=result.views, first_view=result.first_view)


@router.post("/{project_id}/feature", response_model=PointsResponse)
async def feature_project(
    project_id: str,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    service = EngagementService(db)
    total = await service.feature_project(project_id)
    owner = await service.get_owner(project_id)
    logger.info(f"[Projects] Project {project_id} featured by admin {admin.id}")
    return PointsResponse(user_id=owner.id, total_points=total)
