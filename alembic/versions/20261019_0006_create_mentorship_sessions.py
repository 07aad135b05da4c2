"""Create mentorship_sessions table

Revision ID: 20261019_0006
Revises: 20261019_0005
Create Date: 2026-10-19 00:06:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '20261019_0006'
down_revision: str | None = '20261019_0005'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create mentorship_sessions table."""
    op.create_table(
        'mentorship_sessions',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('mentor_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('mentee_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('topic', sa.String(200), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('scheduled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('duration_minutes', sa.Integer, nullable=False, server_default='60'),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name='mentorship_sessions_status_check',
        ),
        sa.CheckConstraint('duration_minutes > 0', name='mentorship_sessions_duration_check'),
    )
    op.create_index('idx_mentorship_mentor', 'mentorship_sessions', ['mentor_id', 'created_at'])
    op.create_index('idx_mentorship_mentee', 'mentorship_sessions', ['mentee_id', 'created_at'])


def downgrade() -> None:
    """Drop mentorship_sessions table."""
    op.drop_index('idx_mentorship_mentee', table_name='mentorship_sessions')
    op.drop_index('idx_mentorship_mentor', table_name='mentorship_sessions')
    op.drop_table('mentorship_sessions')
