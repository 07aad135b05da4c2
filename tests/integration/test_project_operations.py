"""Integration tests for projects, members, tasks and milestones."""

import pytest

from openhouse.errors import (
    ConflictError,
    InvalidRequestError,
    NotFoundError,
    PermissionDeniedError,
)
from openhouse.models.project import (
    MemberRole,
    MilestoneCreate,
    MilestoneUpdate,
    ProjectCreate,
    ProjectUpdate,
    ProjectVisibility,
    TaskCreate,
    TaskStatus,
    TaskUpdate,
)
from openhouse.services.coin_ledger import CoinLedger
from openhouse.services.projects import ProjectService


def project_form(**overrides) -> ProjectCreate:
    fields = {"title": "Open House", "description": "Founder network", "category": "Social"}
    fields.update(overrides)
    return ProjectCreate(**fields)


@pytest.mark.integration
class TestProjects:
    """Test project creation and visibility."""

    @pytest.mark.asyncio
    async def test_create_makes_owner_and_awards_coins(
        self, async_db_session, make_profile
    ) -> None:
        """Test that the creator becomes owner and earns 15 coins."""
        creator = await make_profile("creator")
        service = ProjectService(async_db_session)

        project = await service.create_project(creator.id, project_form())

        assert project.status == "planning"
        assert project.visibility == "public"
        assert await service.get_member_role(project.id, creator.id) == "owner"
        assert await CoinLedger(async_db_session).get_balance(creator.id) == 15

    @pytest.mark.asyncio
    async def test_private_project_hidden(self, async_db_session, make_profile) -> None:
        """Test that private projects are visible to members only."""
        owner = await make_profile("owner")
        outsider = await make_profile("outsider")
        service = ProjectService(async_db_session)
        secret = await service.create_project(
            owner.id, project_form(title="Stealth", visibility=ProjectVisibility.PRIVATE)
        )
        public = await service.create_project(owner.id, project_form(title="Public"))

        with pytest.raises(NotFoundError):
            await service.get_project(secret.id, outsider.id)
        with pytest.raises(NotFoundError):
            await service.get_project(secret.id)

        assert {p.id for p in await service.list_projects(outsider.id)} == {public.id}
        assert {p.id for p in await service.list_projects(owner.id)} == {public.id, secret.id}
        assert {p.id for p in await service.list_projects(owner.id, mine=True)} == {
            public.id,
            secret.id,
        }
        assert await service.list_projects(outsider.id, mine=True) == []

    @pytest.mark.asyncio
    async def test_update_and_delete_permissions(self, async_db_session, make_profile) -> None:
        """Test manager-only edits and owner-only deletion."""
        owner = await make_profile("owner")
        admin = await make_profile("admin")
        member = await make_profile("member")
        service = ProjectService(async_db_session)
        project = await service.create_project(owner.id, project_form())
        await service.add_member(project.id, owner.id, admin.id, MemberRole.ADMIN)
        await service.add_member(project.id, owner.id, member.id)

        with pytest.raises(PermissionDeniedError):
            await service.update_project(project.id, member.id, ProjectUpdate(title="Nope"))

        updated = await service.update_project(
            project.id, admin.id, ProjectUpdate(title="Open House v2")
        )
        assert updated.title == "Open House v2"

        with pytest.raises(PermissionDeniedError):
            await service.delete_project(project.id, admin.id)

        await service.delete_project(project.id, owner.id)
        with pytest.raises(NotFoundError):
            await service.get_project(project.id, owner.id)


@pytest.mark.integration
class TestMembers:
    """Test membership management."""

    @pytest.mark.asyncio
    async def test_member_rules(self, async_db_session, make_profile) -> None:
        """Test duplicate, second-owner and owner-removal rules."""
        owner = await make_profile("owner")
        member = await make_profile("member")
        other = await make_profile("other")
        service = ProjectService(async_db_session)
        project = await service.create_project(owner.id, project_form())

        await service.add_member(project.id, owner.id, member.id)

        with pytest.raises(ConflictError):
            await service.add_member(project.id, owner.id, member.id)
        with pytest.raises(InvalidRequestError):
            await service.add_member(project.id, owner.id, other.id, MemberRole.OWNER)
        with pytest.raises(PermissionDeniedError):
            await service.add_member(project.id, member.id, other.id)
        with pytest.raises(InvalidRequestError):
            await service.remove_member(project.id, owner.id, owner.id)

        await service.remove_member(project.id, owner.id, member.id)
        assert [m.user_id for m in await service.list_members(project.id)] == [owner.id]


@pytest.mark.integration
class TestTasksAndMilestones:
    """Test the project board."""

    @pytest.mark.asyncio
    async def test_task_flow(self, async_db_session, make_profile) -> None:
        """Test creating, moving and deleting tasks."""
        owner = await make_profile("owner")
        member = await make_profile("member")
        outsider = await make_profile("outsider")
        service = ProjectService(async_db_session)
        project = await service.create_project(owner.id, project_form())
        await service.add_member(project.id, owner.id, member.id)

        task = await service.create_task(
            project.id, member.id, TaskCreate(title="Design schema", assigned_to=owner.id)
        )
        assert task.status == "todo"
        assert task.priority == "medium"

        with pytest.raises(InvalidRequestError):
            await service.create_task(
                project.id, owner.id, TaskCreate(title="Outsourced", assigned_to=outsider.id)
            )
        with pytest.raises(PermissionDeniedError):
            await service.create_task(project.id, outsider.id, TaskCreate(title="Sneaky"))

        moved = await service.update_task(
            project.id, task.id, owner.id, TaskUpdate(status=TaskStatus.IN_PROGRESS)
        )
        assert moved.status == "in_progress"

        detail = await service.get_project_detail(project.id, member.id)
        assert [t.id for t in detail["tasks"]] == [task.id]
        assert len(detail["members"]) == 2

        await service.delete_task(project.id, task.id, member.id)
        assert await service.list_tasks(project.id, member.id) == []

    @pytest.mark.asyncio
    async def test_milestone_completion_timestamp(self, async_db_session, make_profile) -> None:
        """Test that completing a milestone stamps and reopening clears the timestamp."""
        owner = await make_profile("owner")
        member = await make_profile("member")
        service = ProjectService(async_db_session)
        project = await service.create_project(owner.id, project_form())
        await service.add_member(project.id, owner.id, member.id)

        with pytest.raises(PermissionDeniedError):
            await service.create_milestone(project.id, member.id, MilestoneCreate(title="MVP"))

        milestone = await service.create_milestone(
            project.id, owner.id, MilestoneCreate(title="MVP")
        )
        assert milestone.completed is False
        assert milestone.completed_at is None

        done = await service.update_milestone(
            project.id, milestone.id, owner.id, MilestoneUpdate(completed=True)
        )
        assert done.completed is True
        assert done.completed_at is not None

        reopened = await service.update_milestone(
            project.id, milestone.id, owner.id, MilestoneUpdate(completed=False)
        )
        assert reopened.completed is False
        assert reopened.completed_at is None
