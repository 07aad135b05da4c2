"""Create projects, project_members, project_tasks and project_milestones tables

Revision ID: 20261019_0004
Revises: 20261019_0003
Create Date: 2026-10-19 00:04:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '20261019_0004'
down_revision: str | None = '20261019_0003'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create project workspace tables."""
    op.create_table(
        'projects',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('creator_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text, nullable=False),
        sa.Column('category', sa.String(100), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='planning'),
        sa.Column('visibility', sa.String(20), nullable=False, server_default='public'),
        sa.Column('github_url', sa.Text, nullable=True),
        sa.Column('demo_url', sa.Text, nullable=True),
        sa.Column('tags', JSONB, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "status IN ('planning', 'in_progress', 'completed', 'on_hold')",
            name='projects_status_check',
        ),
        sa.CheckConstraint("visibility IN ('public', 'private')", name='projects_visibility_check'),
    )
    op.create_index('idx_projects_creator', 'projects', ['creator_id'])

    op.create_table(
        'project_members',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('project_id', UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='member'),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("role IN ('owner', 'admin', 'member')", name='project_members_role_check'),
        sa.UniqueConstraint('project_id', 'user_id', name='project_members_unique'),
    )

    op.create_table(
        'project_tasks',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('project_id', UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('assigned_to', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='SET NULL'), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='todo'),
        sa.Column('priority', sa.String(20), nullable=False, server_default='medium'),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("status IN ('todo', 'in_progress', 'done')", name='project_tasks_status_check'),
        sa.CheckConstraint("priority IN ('low', 'medium', 'high')", name='project_tasks_priority_check'),
    )
    op.create_index('idx_project_tasks', 'project_tasks', ['project_id', 'status'])

    op.create_table(
        'project_milestones',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('project_id', UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('target_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    """Drop project workspace tables."""
    op.drop_table('project_milestones')
    op.drop_index('idx_project_tasks', table_name='project_tasks')
    op.drop_table('project_tasks')
    op.drop_table('project_members')
    op.drop_index('idx_projects_creator', table_name='projects')
    op.drop_table('projects')
