"""Project workspace endpoints: projects, members, tasks and milestones."""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from openhouse.api.dependencies import get_change_feed, get_current_profile, require_feature
from openhouse.api.middleware.auth import get_optional_user
from openhouse.models.profile import ProfileDB
from openhouse.models.project import (
    Milestone,
    MilestoneCreate,
    MilestoneUpdate,
    Project,
    ProjectCreate,
    ProjectDB,
    ProjectDetail,
    ProjectMember,
    ProjectMemberAdd,
    ProjectStatus,
    ProjectUpdate,
    Task,
    TaskCreate,
    TaskUpdate,
)
from openhouse.services.change_feed import ChangeFeed
from openhouse.services.database import get_db_session
from openhouse.services.projects import ProjectService

router = APIRouter(prefix="/v1/projects", tags=["projects"])


def _caller_id(current_user: dict | None) -> uuid.UUID | None:
    return current_user["user_id"] if current_user else None


# ========== Projects ==========


@router.get("", response_model=list[Project])
async def list_projects(
    mine: bool = False,
    category: str | None = None,
    status_filter: ProjectStatus | None = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: dict | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> list[ProjectDB]:
    """Public projects, or the caller's own with ``mine=true``."""
    return await ProjectService(db).list_projects(
        user_id=_caller_id(current_user),
        mine=mine,
        category=category,
        status=status_filter.value if status_filter else None,
        limit=limit,
        offset=offset,
    )


@router.post("", response_model=Project, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_in: ProjectCreate,
    profile: ProfileDB = Depends(require_feature("create_project")),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> ProjectDB:
    """Start a project; the caller becomes its owner."""
    return await ProjectService(db, feed).create_project(profile.id, project_in)


@router.get("/{project_id}", response_model=ProjectDetail)
async def get_project(
    project_id: uuid.UUID,
    current_user: dict | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProjectDetail:
    """Project with its members, task board and milestones."""
    detail = await ProjectService(db).get_project_detail(project_id, _caller_id(current_user))
    return ProjectDetail(
        **Project.model_validate(detail["project"]).model_dump(),
        members=[ProjectMember.model_validate(m) for m in detail["members"]],
        tasks=[Task.model_validate(t) for t in detail["tasks"]],
        milestones=[Milestone.model_validate(m) for m in detail["milestones"]],
    )


@router.patch("/{project_id}", response_model=Project)
async def update_project(
    project_id: uuid.UUID,
    project_in: ProjectUpdate,
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> ProjectDB:
    """Edit project details (owner or admin)."""
    return await ProjectService(db, feed).update_project(project_id, profile.id, project_in)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: uuid.UUID,
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> None:
    """Delete a project (owner only)."""
    await ProjectService(db, feed).delete_project(project_id, profile.id)


# ========== Members ==========


@router.post(
    "/{project_id}/members", response_model=ProjectMember, status_code=status.HTTP_201_CREATED
)
async def add_member(
    project_id: uuid.UUID,
    member_in: ProjectMemberAdd,
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
):
    """Add a collaborator (owner or admin)."""
    return await ProjectService(db, feed).add_member(
        project_id, profile.id, member_in.user_id, member_in.role
    )


@router.delete("/{project_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    project_id: uuid.UUID,
    user_id: uuid.UUID,
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> None:
    """Remove a collaborator (owner or admin)."""
    await ProjectService(db, feed).remove_member(project_id, profile.id, user_id)


# ========== Tasks ==========


@router.get("/{project_id}/tasks", response_model=list[Task])
async def list_tasks(
    project_id: uuid.UUID,
    current_user: dict | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Tasks on the project board."""
    return await ProjectService(db).list_tasks(project_id, _caller_id(current_user))


@router.post("/{project_id}/tasks", response_model=Task, status_code=status.HTTP_201_CREATED)
async def create_task(
    project_id: uuid.UUID,
    task_in: TaskCreate,
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
):
    """Add a task (members only)."""
    return await ProjectService(db, feed).create_task(project_id, profile.id, task_in)


@router.patch("/{project_id}/tasks/{task_id}", response_model=Task)
async def update_task(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    task_in: TaskUpdate,
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
):
    """Edit or move a task (members only)."""
    return await ProjectService(db, feed).update_task(project_id, task_id, profile.id, task_in)


@router.delete("/{project_id}/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> None:
    """Delete a task (members only)."""
    await ProjectService(db, feed).delete_task(project_id, task_id, profile.id)


# ========== Milestones ==========


@router.get("/{project_id}/milestones", response_model=list[Milestone])
async def list_milestones(
    project_id: uuid.UUID,
    current_user: dict | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Project milestones."""
    return await ProjectService(db).list_milestones(project_id, _caller_id(current_user))


@router.post(
    "/{project_id}/milestones", response_model=Milestone, status_code=status.HTTP_201_CREATED
)
async def create_milestone(
    project_id: uuid.UUID,
    milestone_in: MilestoneCreate,
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
):
    """Add a milestone (owner or admin)."""
    return await ProjectService(db, feed).create_milestone(project_id, profile.id, milestone_in)


@router.patch("/{project_id}/milestones/{milestone_id}", response_model=Milestone)
async def update_milestone(
    project_id: uuid.UUID,
    milestone_id: uuid.UUID,
    milestone_in: MilestoneUpdate,
    profile: ProfileDB = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
):
    """Edit or complete a milestone (owner or admin)."""
    return await ProjectService(db, feed).update_milestone(
        project_id, milestone_id, profile.id, milestone_in
    )
