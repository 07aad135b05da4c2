"""Create idea_validator_sessions and idea_validator_messages tables

Revision ID: 20261019_0007
Revises: 20261019_0006
Create Date: 2026-10-19 00:07:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '20261019_0007'
down_revision: str | None = '20261019_0006'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create idea validator history tables."""
    op.create_table(
        'idea_validator_sessions',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('idea_summary', sa.Text, nullable=True),
        sa.Column('conversation_context', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('idx_validator_user_sessions', 'idea_validator_sessions', ['user_id', 'updated_at'])

    op.create_table(
        'idea_validator_messages',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'session_id',
            UUID(as_uuid=True),
            sa.ForeignKey('idea_validator_sessions.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('content', sa.Text, nullable=False),
        sa.Column('has_web_context', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("role IN ('user', 'assistant', 'system')", name='idea_validator_messages_role_check'),
    )
    op.create_index('idx_validator_session_messages', 'idea_validator_messages', ['session_id', 'created_at'])


def downgrade() -> None:
    """Drop idea validator history tables."""
    op.drop_index('idx_validator_session_messages', table_name='idea_validator_messages')
    op.drop_table('idea_validator_messages')
    op.drop_index('idx_validator_user_sessions', table_name='idea_validator_sessions')
    op.drop_table('idea_validator_sessions')
