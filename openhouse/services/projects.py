"""Project collaboration: projects, members, tasks and milestones."""

import uuid

import structlog
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from openhouse.errors import ConflictError, InvalidRequestError, NotFoundError, PermissionDeniedError
from openhouse.models.base import utcnow
from openhouse.models.profile import ProfileDB
from openhouse.models.project import (
    MemberRole,
    MilestoneCreate,
    MilestoneUpdate,
    ProjectCreate,
    ProjectDB,
    ProjectMemberDB,
    ProjectMilestoneDB,
    ProjectTaskDB,
    ProjectUpdate,
    ProjectVisibility,
    TaskCreate,
    TaskUpdate,
)
from openhouse.services import coin_ledger
from openhouse.services.change_feed import ChangeFeed, ChangeType, change_feed
from openhouse.services.coin_ledger import CoinLedger

logger = structlog.get_logger(__name__)

MANAGER_ROLES = (MemberRole.OWNER.value, MemberRole.ADMIN.value)


class ProjectService:
    """Project workspace operations with role checks."""

    def __init__(self, db_session: AsyncSession, feed: ChangeFeed | None = None):
        """Initialize project service.

        Args:
            db_session: Database session
            feed: Change feed for realtime notifications
        """
        self.db_session = db_session
        self.feed = feed or change_feed
        self.ledger = CoinLedger(db_session)

    # ---------- projects ----------

    async def create_project(
        self, creator_id: uuid.UUID, project_in: ProjectCreate
    ) -> ProjectDB:
        """Create a project; the creator becomes its owner and earns coins."""
        project = ProjectDB(
            id=uuid.uuid4(),
            creator_id=creator_id,
            **project_in.model_dump(mode="json"),
        )
        self.db_session.add(project)
        self.db_session.add(
            ProjectMemberDB(
                id=uuid.uuid4(),
                project_id=project.id,
                user_id=creator_id,
                role=MemberRole.OWNER.value,
            )
        )

        amount, reason = coin_ledger.PROJECT_CREATED
        await self.ledger.award_coins(
            creator_id, amount, reason, reference_type="project", reference_id=project.id
        )
        await self.db_session.commit()

        logger.info("project_created", project_id=str(project.id), creator_id=str(creator_id))
        self.feed.publish_row(project, ChangeType.INSERT)
        return project

    async def list_projects(
        self,
        user_id: uuid.UUID | None = None,
        mine: bool = False,
        category: str | None = None,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[ProjectDB]:
        """List public projects, or the caller's own when ``mine`` is set.

        Projects the caller is a member of are always visible, including
        private ones.
        """
        member_of = select(ProjectMemberDB.project_id).where(ProjectMemberDB.user_id == user_id)

        query = select(ProjectDB)
        if mine:
            if user_id is None:
                return []
            query = query.where(ProjectDB.id.in_(member_of))
        elif user_id is not None:
            query = query.where(
                or_(
                    ProjectDB.visibility == ProjectVisibility.PUBLIC.value,
                    ProjectDB.id.in_(member_of),
                )
            )
        else:
            query = query.where(ProjectDB.visibility == ProjectVisibility.PUBLIC.value)

        if category:
            query = query.where(ProjectDB.category == category)
        if status:
            query = query.where(ProjectDB.status == status)

        result = await self.db_session.execute(
            query.order_by(ProjectDB.created_at.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all())

    async def get_project(
        self, project_id: uuid.UUID, user_id: uuid.UUID | None = None
    ) -> ProjectDB:
        """Get a project the caller is allowed to see.

        Raises:
            NotFoundError: If the project does not exist or is private to others
        """
        project = await self.db_session.get(ProjectDB, project_id)
        if project is None:
            raise NotFoundError(f"Project {project_id} not found")
        if project.visibility == ProjectVisibility.PRIVATE.value:
            if user_id is None or await self.get_member_role(project_id, user_id) is None:
                raise NotFoundError(f"Project {project_id} not found")
        return project

    async def get_project_detail(
        self, project_id: uuid.UUID, user_id: uuid.UUID | None = None
    ) -> dict:
        """Project with members, tasks and milestones."""
        project = await self.get_project(project_id, user_id)
        return {
            "project": project,
            "members": await self.list_members(project_id),
            "tasks": await self.list_tasks(project_id, user_id),
            "milestones": await self.list_milestones(project_id, user_id),
        }

    async def update_project(
        self, project_id: uuid.UUID, user_id: uuid.UUID, project_in: ProjectUpdate
    ) -> ProjectDB:
        """Edit a project (owner or admin)."""
        project = await self.get_project(project_id, user_id)
        await self._require_manager(project_id, user_id)

        updates = project_in.model_dump(exclude_unset=True)
        for key, value in updates.items():
            if hasattr(value, "value"):
                value = value.value
            setattr(project, key, value)
        await self.db_session.commit()

        self.feed.publish_row(project, ChangeType.UPDATE)
        return project

    async def delete_project(self, project_id: uuid.UUID, user_id: uuid.UUID) -> None:
        """Delete a project (owner only)."""
        project = await self.get_project(project_id, user_id)
        if await self.get_member_role(project_id, user_id) != MemberRole.OWNER.value:
            raise PermissionDeniedError("Only the project owner can delete the project")

        for model in (ProjectTaskDB, ProjectMilestoneDB, ProjectMemberDB):
            result = await self.db_session.execute(
                select(model).where(model.project_id == project_id)
            )
            for row in result.scalars().all():
                await self.db_session.delete(row)
        await self.db_session.delete(project)
        await self.db_session.commit()

        logger.info("project_deleted", project_id=str(project_id))
        self.feed.publish_row(project, ChangeType.DELETE)

    # ---------- members ----------

    async def get_member_role(self, project_id: uuid.UUID, user_id: uuid.UUID) -> str | None:
        """Caller's role in the project, or None if not a member."""
        result = await self.db_session.execute(
            select(ProjectMemberDB.role).where(
                ProjectMemberDB.project_id == project_id, ProjectMemberDB.user_id == user_id
            )
        )
        return result.scalar_one_or_none()

    async def list_members(self, project_id: uuid.UUID) -> list[ProjectMemberDB]:
        """Members in join order."""
        result = await self.db_session.execute(
            select(ProjectMemberDB)
            .where(ProjectMemberDB.project_id == project_id)
            .order_by(ProjectMemberDB.joined_at.asc())
        )
        return list(result.scalars().all())

    async def add_member(
        self,
        project_id: uuid.UUID,
        user_id: uuid.UUID,
        new_member_id: uuid.UUID,
        role: MemberRole = MemberRole.MEMBER,
    ) -> ProjectMemberDB:
        """Add a collaborator (owner or admin)."""
        await self.get_project(project_id, user_id)
        await self._require_manager(project_id, user_id)

        if role == MemberRole.OWNER:
            raise InvalidRequestError("A project can only have one owner")
        if await self.db_session.get(ProfileDB, new_member_id) is None:
            raise NotFoundError(f"Profile {new_member_id} not found")
        if await self.get_member_role(project_id, new_member_id) is not None:
            raise ConflictError("User is already a member of this project")

        member = ProjectMemberDB(
            id=uuid.uuid4(), project_id=project_id, user_id=new_member_id, role=role.value
        )
        self.db_session.add(member)
        await self.db_session.commit()

        logger.info(
            "project_member_added", project_id=str(project_id), user_id=str(new_member_id)
        )
        self.feed.publish_row(member, ChangeType.INSERT)
        return member

    async def remove_member(
        self, project_id: uuid.UUID, user_id: uuid.UUID, member_user_id: uuid.UUID
    ) -> None:
        """Remove a collaborator (owner or admin; the owner cannot be removed)."""
        await self.get_project(project_id, user_id)
        await self._require_manager(project_id, user_id)

        result = await self.db_session.execute(
            select(ProjectMemberDB).where(
                ProjectMemberDB.project_id == project_id,
                ProjectMemberDB.user_id == member_user_id,
            )
        )
        member = result.scalar_one_or_none()
        if member is None:
            raise NotFoundError("User is not a member of this project")
        if member.role == MemberRole.OWNER.value:
            raise InvalidRequestError("The project owner cannot be removed")

        await self.db_session.delete(member)
        await self.db_session.commit()
        self.feed.publish_row(member, ChangeType.DELETE)

    # ---------- tasks ----------

    async def list_tasks(
        self, project_id: uuid.UUID, user_id: uuid.UUID | None = None
    ) -> list[ProjectTaskDB]:
        """Tasks on the board, oldest first."""
        await self.get_project(project_id, user_id)
        result = await self.db_session.execute(
            select(ProjectTaskDB)
            .where(ProjectTaskDB.project_id == project_id)
            .order_by(ProjectTaskDB.created_at.asc())
        )
        return list(result.scalars().all())

    async def create_task(
        self, project_id: uuid.UUID, user_id: uuid.UUID, task_in: TaskCreate
    ) -> ProjectTaskDB:
        """Add a task (members only)."""
        await self.get_project(project_id, user_id)
        await self._require_member(project_id, user_id)
        if task_in.assigned_to is not None:
            await self._require_assignee(project_id, task_in.assigned_to)

        task = ProjectTaskDB(
            id=uuid.uuid4(),
            project_id=project_id,
            title=task_in.title,
            description=task_in.description,
            assigned_to=task_in.assigned_to,
            priority=task_in.priority.value,
            due_date=task_in.due_date,
        )
        self.db_session.add(task)
        await self.db_session.commit()

        self.feed.publish_row(task, ChangeType.INSERT)
        return task

    async def update_task(
        self,
        project_id: uuid.UUID,
        task_id: uuid.UUID,
        user_id: uuid.UUID,
        task_in: TaskUpdate,
    ) -> ProjectTaskDB:
        """Edit or move a task (members only)."""
        task = await self._get_task(project_id, task_id, user_id)

        updates = task_in.model_dump(exclude_unset=True)
        if updates.get("assigned_to") is not None:
            await self._require_assignee(project_id, updates["assigned_to"])
        for key, value in updates.items():
            if hasattr(value, "value"):
                value = value.value
            setattr(task, key, value)
        await self.db_session.commit()

        self.feed.publish_row(task, ChangeType.UPDATE)
        return task

    async def delete_task(
        self, project_id: uuid.UUID, task_id: uuid.UUID, user_id: uuid.UUID
    ) -> None:
        """Delete a task (members only)."""
        task = await self._get_task(project_id, task_id, user_id)
        await self.db_session.delete(task)
        await self.db_session.commit()
        self.feed.publish_row(task, ChangeType.DELETE)

    # ---------- milestones ----------

    async def list_milestones(
        self, project_id: uuid.UUID, user_id: uuid.UUID | None = None
    ) -> list[ProjectMilestoneDB]:
        """Milestones, earliest target date first."""
        await self.get_project(project_id, user_id)
        result = await self.db_session.execute(
            select(ProjectMilestoneDB)
            .where(ProjectMilestoneDB.project_id == project_id)
            .order_by(ProjectMilestoneDB.target_date.asc(), ProjectMilestoneDB.created_at.asc())
        )
        return list(result.scalars().all())

    async def create_milestone(
        self, project_id: uuid.UUID, user_id: uuid.UUID, milestone_in: MilestoneCreate
    ) -> ProjectMilestoneDB:
        """Add a milestone (owner or admin)."""
        await self.get_project(project_id, user_id)
        await self._require_manager(project_id, user_id)

        milestone = ProjectMilestoneDB(
            id=uuid.uuid4(), project_id=project_id, completed=False, **milestone_in.model_dump()
        )
        self.db_session.add(milestone)
        await self.db_session.commit()

        self.feed.publish_row(milestone, ChangeType.INSERT)
        return milestone

    async def update_milestone(
        self,
        project_id: uuid.UUID,
        milestone_id: uuid.UUID,
        user_id: uuid.UUID,
        milestone_in: MilestoneUpdate,
    ) -> ProjectMilestoneDB:
        """Edit a milestone; completing it stamps ``completed_at``."""
        await self.get_project(project_id, user_id)
        await self._require_manager(project_id, user_id)

        milestone = await self.db_session.get(ProjectMilestoneDB, milestone_id)
        if milestone is None or milestone.project_id != project_id:
            raise NotFoundError(f"Milestone {milestone_id} not found")

        updates = milestone_in.model_dump(exclude_unset=True)
        if "completed" in updates:
            if updates["completed"] and not milestone.completed:
                milestone.completed_at = utcnow()
            elif not updates["completed"]:
                milestone.completed_at = None
        for key, value in updates.items():
            setattr(milestone, key, value)
        await self.db_session.commit()

        self.feed.publish_row(milestone, ChangeType.UPDATE)
        return milestone

    # ---------- helpers ----------

    async def _get_task(
        self, project_id: uuid.UUID, task_id: uuid.UUID, user_id: uuid.UUID
    ) -> ProjectTaskDB:
        await self.get_project(project_id, user_id)
        await self._require_member(project_id, user_id)
        task = await self.db_session.get(ProjectTaskDB, task_id)
        if task is None or task.project_id != project_id:
            raise NotFoundError(f"Task {task_id} not found")
        return task

    async def _require_member(self, project_id: uuid.UUID, user_id: uuid.UUID) -> str:
        role = await self.get_member_role(project_id, user_id)
        if role is None:
            raise PermissionDeniedError("Only project members can do this")
        return role

    async def _require_manager(self, project_id: uuid.UUID, user_id: uuid.UUID) -> str:
        role = await self._require_member(project_id, user_id)
        if role not in MANAGER_ROLES:
            raise PermissionDeniedError("Only the project owner or an admin can do this")
        return role

    async def _require_assignee(self, project_id: uuid.UUID, assignee_id: uuid.UUID) -> None:
        if await self.get_member_role(project_id, assignee_id) is None:
            raise InvalidRequestError("Tasks can only be assigned to project members")
