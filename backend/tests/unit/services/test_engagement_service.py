"""
Unit Tests for EngagementService

Covers uploads, edits, deletes, listings, likes, comments, views and the
featured bonus, checking that points land on both the project and its owner.
"""
import pytest
from sqlalchemy import select

from app.core.config import settings
from app.core.exceptions import AuthorizationError, ProjectNotFoundError, UserNotFoundError
from app.models.notification import Notification, NotificationType
from app.models.project import Project, ProjectComment
from app.models.user import User
from app.schemas.project import ProjectCreate, ProjectUpdate
from app.services.engagement_service import EngagementService
from app.services import points_calculator as pc


async def points_of(db_session, user_id: str) -> int:
    return (await db_session.execute(
        select(User.total_points).where(User.id == user_id)
    )).scalar_one()


async def project_points(db_session, project_id: str) -> int:
    return (await db_session.execute(
        select(Project.points).where(Project.id == project_id)
    )).scalar_one()


class TestCreateProject:
    """Uploads"""

    async def test_published_upload_awards_points(self, db_session, test_user):
        service = EngagementService(db_session)

        project = await service.create_project(test_user, ProjectCreate(title="Solar Tracker"))

        assert project.title == "Solar Tracker"
        assert await points_of(db_session, test_user.id) == pc.POINTS_PER_UPLOAD
        assert await project_points(db_session, project.id) == pc.POINTS_PER_UPLOAD
        actions = [e.action for e in await service.ledger.activity_log(test_user.id)]
        assert "Project uploaded: Solar Tracker" in actions

    async def test_draft_upload_awards_nothing(self, db_session, test_user):
        service = EngagementService(db_session)

        await service.create_project(test_user, ProjectCreate(title="Draft", is_published=False))

        assert await points_of(db_session, test_user.id) == 0

    async def test_default_image(self, db_session, test_user):
        project = await EngagementService(db_session).create_project(test_user, ProjectCreate(title="No Pics"))

        assert project.image_urls == [settings.DEFAULT_PROJECT_IMAGE_URL]

    async def test_collaborators_in_order(self, db_session, test_user, make_user):
        bob = await make_user(name="Bob")
        cy = await make_user(name="Cy")

        project = await EngagementService(db_session).create_project(
            test_user,
            ProjectCreate(title="Team", collaborator_ids=[cy.id, bob.id, cy.id, test_user.id]),
        )

        assert [c.name for c in project.collaborators] == ["Cy", "Bob"]

    async def test_unknown_collaborator(self, db_session, test_user):
        with pytest.raises(UserNotFoundError):
            await EngagementService(db_session).create_project(
                test_user,
                ProjectCreate(title="Team", collaborator_ids=["00000000-0000-0000-0000-000000000000"]),
            )


class TestUpdateProject:
    """Edits by the owner and collaborators"""

    async def test_owner_edits_fields(self, db_session, test_user):
        service = EngagementService(db_session)
        project = await service.create_project(test_user, ProjectCreate(title="Old", tags=["a"]))

        updated = await service.update_project(
            test_user, project.id, ProjectUpdate(title="New", tags=[" iot ", ""], description="Better")
        )

        assert updated.title == "New"
        assert updated.tags == ["iot"]
        assert updated.description == "Better"
        actions = [e.action for e in await service.ledger.activity_log(test_user.id)]
        assert actions[0] == "Project updated: New"

    async def test_omitted_fields_unchanged(self, db_session, test_user, make_project):
        project = await make_project(test_user, title="Keep", tags=["x"], description="Same")

        updated = await EngagementService(db_session).update_project(
            test_user, project.id, ProjectUpdate(problem_statement="Why")
        )

        assert (updated.title, updated.tags, updated.description) == ("Keep", ["x"], "Same")
        assert updated.problem_statement == "Why"

    async def test_collaborator_can_edit(self, db_session, test_user, other_user):
        service = EngagementService(db_session)
        project = await service.create_project(
            test_user, ProjectCreate(title="Team", collaborator_ids=[other_user.id])
        )

        updated = await service.update_project(other_user, project.id, ProjectUpdate(title="Team v2"))

        assert updated.title == "Team v2"
        assert updated.user_id == test_user.id

    async def test_stranger_cannot_edit(self, db_session, test_user, other_user, make_project):
        project = await make_project(test_user, title="Mine")

        with pytest.raises(AuthorizationError):
            await EngagementService(db_session).update_project(other_user, project.id, ProjectUpdate(title="Hijacked"))

        assert (await EngagementService(db_session).get_project(project.id)).title == "Mine"

    async def test_collaborators_replaced_in_order(self, db_session, test_user, make_user):
        bob = await make_user(name="Bob")
        cy = await make_user(name="Cy")
        dee = await make_user(name="Dee")
        service = EngagementService(db_session)
        project = await service.create_project(
            test_user, ProjectCreate(title="Team", collaborator_ids=[bob.id, cy.id])
        )

        updated = await service.update_project(
            test_user, project.id, ProjectUpdate(collaborator_ids=[dee.id, test_user.id, bob.id])
        )

        assert [c.name for c in updated.collaborators] == ["Dee", "Bob"]

    async def test_unknown_collaborator_leaves_project_unchanged(self, db_session, test_user, other_user):
        service = EngagementService(db_session)
        project = await service.create_project(
            test_user, ProjectCreate(title="Team", collaborator_ids=[other_user.id])
        )

        with pytest.raises(UserNotFoundError):
            await service.update_project(
                test_user, project.id,
                ProjectUpdate(title="Renamed", collaborator_ids=["00000000-0000-0000-0000-000000000000"]),
            )

        reloaded = await service.get_project(project.id)
        assert reloaded.title == "Team"
        assert [c.id for c in reloaded.collaborators] == [other_user.id]

    async def test_edits_pay_nothing(self, db_session, test_user):
        service = EngagementService(db_session)
        project = await service.create_project(test_user, ProjectCreate(title="Draft", is_published=False))

        await service.update_project(test_user, project.id, ProjectUpdate(is_published=True))

        assert await points_of(db_session, test_user.id) == 0
        assert (await service.get_project(project.id)).is_published is True

    async def test_empty_images_fall_back_to_default(self, db_session, test_user, make_project):
        project = await make_project(test_user, image_urls=["https://img.test/a.png"])

        updated = await EngagementService(db_session).update_project(
            test_user, project.id, ProjectUpdate(image_urls=[])
        )

        assert updated.image_urls == [settings.DEFAULT_PROJECT_IMAGE_URL]


class TestDeleteProject:

    async def test_owner_deletes(self, db_session, test_user, other_user, make_project):
        service = EngagementService(db_session)
        project = await make_project(test_user, title="Gone")
        await service.add_comment(other_user, project.id, "nice")
        pid = project.id

        await service.delete_project(test_user, pid)

        with pytest.raises(ProjectNotFoundError):
            await service.get_project(pid)
        comments = (await db_session.execute(
            select(ProjectComment).where(ProjectComment.project_id == pid)
        )).scalars().all()
        assert comments == []
        actions = [e.action for e in await service.ledger.activity_log(test_user.id)]
        assert actions[0] == "Project deleted: Gone"

    async def test_collaborator_cannot_delete(self, db_session, test_user, other_user):
        service = EngagementService(db_session)
        project = await service.create_project(
            test_user, ProjectCreate(title="Team", collaborator_ids=[other_user.id])
        )

        with pytest.raises(AuthorizationError):
            await service.delete_project(other_user, project.id)

        assert (await service.get_project(project.id)).title == "Team"


class TestListProjects:

    async def test_owned_and_collaborated(self, db_session, test_user, other_user, make_project):
        service = EngagementService(db_session)
        own = await make_project(test_user, title="Own")
        team = await service.create_project(
            other_user, ProjectCreate(title="Team", collaborator_ids=[test_user.id])
        )
        await make_project(other_user, title="Not mine")

        projects = await service.list_user_projects(test_user.id)

        assert {p.id for p in projects} == {own.id, team.id}

    async def test_drafts_only_when_requested(self, db_session, test_user, make_project):
        service = EngagementService(db_session)
        live = await make_project(test_user, title="Live")
        draft = await make_project(test_user, title="Draft", is_published=False)

        assert [p.id for p in await service.list_user_projects(test_user.id)] == [live.id]
        everything = await service.list_user_projects(test_user.id, include_unpublished=True)
        assert {p.id for p in everything} == {live.id, draft.id}

    async def test_unknown_user(self, db_session):
        with pytest.raises(UserNotFoundError):
            await EngagementService(db_session).list_user_projects("00000000-0000-0000-0000-000000000000")


class TestLikes:
    """Like toggling"""

    async def test_like_and_unlike(self, db_session, test_user, other_user, make_project):
        project = await make_project(test_user)
        service = EngagementService(db_session)

        liked = await service.toggle_like(other_user, project.id)
        unliked = await service.toggle_like(other_user, project.id)

        assert (liked.likes, liked.has_liked) == (1, True)
        assert (unliked.likes, unliked.has_liked) == (0, False)

    async def test_owner_paid_once(self, db_session, test_user, other_user, make_project):
        project = await make_project(test_user)
        service = EngagementService(db_session)

        await service.toggle_like(other_user, project.id)
        await service.toggle_like(other_user, project.id)
        relike = await service.toggle_like(other_user, project.id)

        assert relike.likes == 1
        assert await points_of(db_session, test_user.id) == pc.POINTS_PER_LIKE
        assert await project_points(db_session, project.id) == pc.POINTS_PER_LIKE

    async def test_self_like_earns_nothing(self, db_session, test_user, make_project):
        project = await make_project(test_user)

        result = await EngagementService(db_session).toggle_like(test_user, project.id)

        assert result.likes == 1
        assert await points_of(db_session, test_user.id) == 0

    async def test_like_notifies_owner(self, db_session, test_user, other_user, make_project):
        project = await make_project(test_user)
        await EngagementService(db_session).toggle_like(other_user, project.id)

        notes = (await db_session.execute(
            select(Notification).where(Notification.user_id == test_user.id)
        )).scalars().all()
        assert [n.type for n in notes] == [NotificationType.LIKE]

    async def test_unknown_project(self, db_session, test_user):
        with pytest.raises(ProjectNotFoundError):
            await EngagementService(db_session).toggle_like(test_user, "00000000-0000-0000-0000-000000000000")


class TestComments:
    """Comments"""

    async def test_comment_snapshot_and_points(self, db_session, test_user, make_user, make_project):
        project = await make_project(test_user)
        commenter = await make_user(name="Grace", avatar_url="https://img.test/grace.png")

        comment = await EngagementService(db_session).add_comment(commenter, project.id, "Nice work")

        assert comment.author_name == "Grace"
        assert comment.author_avatar_url == "https://img.test/grace.png"
        assert await points_of(db_session, test_user.id) == pc.POINTS_PER_COMMENT
        assert await points_of(db_session, commenter.id) == pc.POINTS_PER_COMMENTER

    async def test_self_comment_earns_nothing(self, db_session, test_user, make_project):
        project = await make_project(test_user)

        await EngagementService(db_session).add_comment(test_user, project.id, "Notes to self")

        assert await points_of(db_session, test_user.id) == 0

    async def test_comments_listed_in_order(self, db_session, test_user, other_user, make_project):
        project = await make_project(test_user)
        service = EngagementService(db_session)
        await service.add_comment(other_user, project.id, "first")
        await service.add_comment(other_user, project.id, "second")

        assert [c.text for c in await service.list_comments(project.id)] == ["first", "second"]


class TestViews:
    """Unique views and batch rewards"""

    async def test_view_counted_once(self, db_session, test_user, other_user, make_project):
        project = await make_project(test_user)
        service = EngagementService(db_session)

        first = await service.record_view(other_user, project.id)
        second = await service.record_view(other_user, project.id)

        assert (first.views, first.first_view) == (1, True)
        assert (second.views, second.first_view) == (1, False)

    async def test_owner_view_not_counted(self, db_session, test_user, make_project):
        project = await make_project(test_user)

        result = await EngagementService(db_session).record_view(test_user, project.id)

        assert result.views == 0
        assert result.first_view is False

    async def test_owner_earns_per_batch(self, db_session, test_user, make_user, make_project):
        project = await make_project(test_user)
        service = EngagementService(db_session)

        for _ in range(pc.VIEWS_PER_BATCH):
            viewer = await make_user()
            await service.record_view(viewer, project.id)

        assert await points_of(db_session, test_user.id) == pc.POINTS_PER_VIEW_BATCH
        assert await project_points(db_session, project.id) == pc.POINTS_PER_VIEW_BATCH

    async def test_viewer_earns_per_batch(self, db_session, test_user, other_user, make_project):
        service = EngagementService(db_session)

        for _ in range(pc.PROJECTS_VIEWED_PER_BATCH):
            project = await make_project(test_user)
            await service.record_view(other_user, project.id)

        assert await points_of(db_session, other_user.id) == pc.POINTS_PER_VIEWED_BATCH


class TestFeature:

    async def test_featured_bonus(self, db_session, test_user, make_project):
        project = await make_project(test_user)

        total = await EngagementService(db_session).feature_project(project.id)

        assert total == pc.POINTS_FOR_FEATURED_PROJECT
        assert await project_points(db_session, project.id) == pc.POINTS_FOR_FEATURED_PROJECT
