"""Create feed_posts, feed_post_comments and feed_post_interactions tables

Revision ID: 20261019_0003
Revises: 20261019_0002
Create Date: 2026-10-19 00:03:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '20261019_0003'
down_revision: str | None = '20261019_0002'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create feed tables."""
    op.create_table(
        'feed_posts',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('author_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('post_type', sa.String(20), nullable=False),
        sa.Column('title', sa.String(200), nullable=True),
        sa.Column('content', sa.Text, nullable=False),
        sa.Column('tags', JSONB, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "post_type IN ('idea', 'job_posting', 'job_request', 'discussion')",
            name='feed_posts_type_check',
        ),
    )
    op.create_index('idx_feed_posts_created', 'feed_posts', ['created_at'])

    op.create_table(
        'feed_post_comments',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('post_id', UUID(as_uuid=True), sa.ForeignKey('feed_posts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('content', sa.Text, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('idx_feed_post_comments', 'feed_post_comments', ['post_id', 'created_at'])

    op.create_table(
        'feed_post_interactions',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('post_id', UUID(as_uuid=True), sa.ForeignKey('feed_posts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('interaction_type', sa.String(20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("interaction_type IN ('upvote', 'save')", name='feed_post_interactions_type_check'),
        sa.UniqueConstraint('post_id', 'user_id', 'interaction_type', name='feed_post_interactions_unique'),
    )


def downgrade() -> None:
    """Drop feed tables."""
    op.drop_table('feed_post_interactions')
    op.drop_index('idx_feed_post_comments', table_name='feed_post_comments')
    op.drop_table('feed_post_comments')
    op.drop_index('idx_feed_posts_created', table_name='feed_posts')
    op.drop_table('feed_posts')
