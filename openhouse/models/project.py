"""Project collaboration data models: projects, members, tasks, milestones."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.sql import func

from openhouse.models.base import Base, reject_null, strip_text, utcnow


class ProjectStatus(str, Enum):
    """Project lifecycle status."""

    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"


class ProjectVisibility(str, Enum):
    """Who can see a project."""

    PUBLIC = "public"
    PRIVATE = "private"


class MemberRole(str, Enum):
    """Project member role."""

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class TaskStatus(str, Enum):
    """Task board column."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class TaskPriority(str, Enum):
    """Task priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ========== SQLAlchemy ORM Models ==========


class ProjectDB(Base):
    """SQLAlchemy model for projects table."""

    __tablename__ = "projects"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    creator_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(100), nullable=False)
    status = Column(
        String(20),
        nullable=False,
        default=ProjectStatus.PLANNING.value,
        server_default=ProjectStatus.PLANNING.value,
    )
    visibility = Column(
        String(20),
        nullable=False,
        default=ProjectVisibility.PUBLIC.value,
        server_default=ProjectVisibility.PUBLIC.value,
    )
    github_url = Column(Text, nullable=True)
    demo_url = Column(Text, nullable=True)
    tags = Column(JSON, nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('planning', 'in_progress', 'completed', 'on_hold')",
            name="projects_status_check",
        ),
        CheckConstraint(
            "visibility IN ('public', 'private')",
            name="projects_visibility_check",
        ),
        Index("idx_projects_creator", "creator_id"),
    )


class ProjectMemberDB(Base):
    """SQLAlchemy model for project_members table."""

    __tablename__ = "project_members"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    role = Column(String(20), nullable=False, default=MemberRole.MEMBER.value)
    joined_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "role IN ('owner', 'admin', 'member')",
            name="project_members_role_check",
        ),
        UniqueConstraint("project_id", "user_id", name="project_members_unique"),
    )


class ProjectTaskDB(Base):
    """SQLAlchemy model for project_tasks table."""

    __tablename__ = "project_tasks"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    assigned_to = Column(Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    status = Column(String(20), nullable=False, default=TaskStatus.TODO.value)
    priority = Column(String(20), nullable=False, default=TaskPriority.MEDIUM.value)
    due_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('todo', 'in_progress', 'done')", name="project_tasks_status_check"
        ),
        CheckConstraint(
            "priority IN ('low', 'medium', 'high')", name="project_tasks_priority_check"
        ),
        Index("idx_project_tasks", "project_id", "status"),
    )


class ProjectMilestoneDB(Base):
    """SQLAlchemy model for project_milestones table."""

    __tablename__ = "project_milestones"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    target_date = Column(DateTime(timezone=True), nullable=True)
    completed = Column(Boolean, nullable=False, default=False, server_default="0")
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )


# ========== Pydantic Models ==========


class ProjectCreate(BaseModel):
    """Form for creating a project."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    category: str = Field(..., min_length=1, max_length=100)
    status: ProjectStatus = ProjectStatus.PLANNING
    visibility: ProjectVisibility = ProjectVisibility.PUBLIC
    github_url: str | None = None
    demo_url: str | None = None
    tags: list[str] | None = Field(None, max_length=20)

    @field_validator("title", "description", "category", mode="before")
    @classmethod
    def strip_required(cls, v):
        """Reject whitespace-only required fields."""
        return strip_text(v)


class ProjectUpdate(BaseModel):
    """Partial project edit."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, min_length=1, max_length=5000)
    category: str | None = Field(None, min_length=1, max_length=100)
    status: ProjectStatus | None = None
    visibility: ProjectVisibility | None = None
    github_url: str | None = None
    demo_url: str | None = None
    tags: list[str] | None = Field(None, max_length=20)

    @field_validator("title", "description", "category", mode="before")
    @classmethod
    def strip_required(cls, v):
        """Reject whitespace-only or null replacements."""
        return strip_text(reject_null(v))

    @field_validator("status", "visibility", mode="before")
    @classmethod
    def require_choice(cls, v):
        return reject_null(v)


class Project(BaseModel):
    """Project as returned by the API."""

    id: uuid.UUID
    creator_id: uuid.UUID
    title: str
    description: str
    category: str
    status: ProjectStatus
    visibility: ProjectVisibility
    github_url: str | None = None
    demo_url: str | None = None
    tags: list[str] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True


class ProjectMemberAdd(BaseModel):
    """Form for adding a collaborator."""

    user_id: uuid.UUID
    role: MemberRole = MemberRole.MEMBER

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: MemberRole) -> MemberRole:
        """A project has exactly one owner: its creator."""
        if v == MemberRole.OWNER:
            raise ValueError("cannot add a second owner")
        return v


class ProjectMember(BaseModel):
    """Project member as returned by the API."""

    id: uuid.UUID
    project_id: uuid.UUID
    user_id: uuid.UUID
    role: MemberRole
    joined_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True


class TaskCreate(BaseModel):
    """Form for adding a task to the board."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    assigned_to: uuid.UUID | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_fields(cls, v):
        """Reject whitespace-only titles."""
        return strip_text(v)


class TaskUpdate(BaseModel):
    """Partial task edit (status moves, reassignment)."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    assigned_to: uuid.UUID | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        """Reject whitespace-only or null titles."""
        return strip_text(reject_null(v))

    @field_validator("description", mode="before")
    @classmethod
    def strip_description(cls, v):
        return strip_text(v)

    @field_validator("status", "priority", mode="before")
    @classmethod
    def require_choice(cls, v):
        return reject_null(v)


class Task(BaseModel):
    """Task as returned by the API."""

    id: uuid.UUID
    project_id: uuid.UUID
    title: str
    description: str | None = None
    assigned_to: uuid.UUID | None = None
    status: TaskStatus
    priority: TaskPriority
    due_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True


class MilestoneCreate(BaseModel):
    """Form for adding a milestone."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    target_date: datetime | None = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_fields(cls, v):
        """Reject whitespace-only titles."""
        return strip_text(v)


class MilestoneUpdate(BaseModel):
    """Milestone edit; toggling ``completed`` stamps ``completed_at``."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    target_date: datetime | None = None
    completed: bool | None = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return strip_text(reject_null(v))

    @field_validator("description", mode="before")
    @classmethod
    def strip_description(cls, v):
        return strip_text(v)

    @field_validator("completed", mode="before")
    @classmethod
    def require_completed(cls, v):
        return reject_null(v)


class Milestone(BaseModel):
    """Milestone as returned by the API."""

    id: uuid.UUID
    project_id: uuid.UUID
    title: str
    description: str | None = None
    target_date: datetime | None = None
    completed: bool = False
    completed_at: datetime | None = None
    created_at: datetime | None = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class ProjectDetail(Project):
    """Project with its board."""

    members: list[ProjectMember] = Field(default_factory=list)
    tasks: list[Task] = Field(default_factory=list)
    milestones: list[Milestone] = Field(default_factory=list)
