"""Create ideas, idea_votes and idea_comments tables

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 00:02:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '20261019_0002'
down_revision: str | None = '20261019_0001'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create idea board tables."""
    op.create_table(
        'ideas',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text, nullable=False),
        sa.Column('category', sa.String(100), nullable=False),
        sa.Column('stage', sa.String(50), nullable=False),
        sa.Column('looking_for', JSONB, nullable=True),
        sa.Column('upvotes', sa.Integer, nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('idx_ideas_created', 'ideas', ['created_at'])

    op.create_table(
        'idea_votes',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('idea_id', UUID(as_uuid=True), sa.ForeignKey('ideas.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('idea_id', 'user_id', name='idea_votes_unique'),
    )

    op.create_table(
        'idea_comments',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('idea_id', UUID(as_uuid=True), sa.ForeignKey('ideas.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('content', sa.Text, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('idx_idea_comments', 'idea_comments', ['idea_id', 'created_at'])


def downgrade() -> None:
    """Drop idea board tables."""
    op.drop_index('idx_idea_comments', table_name='idea_comments')
    op.drop_table('idea_comments')
    op.drop_table('idea_votes')
    op.drop_index('idx_ideas_created', table_name='ideas')
    op.drop_table('ideas')
