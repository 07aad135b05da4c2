"""Create connections, conversations, conversation_participants and messages tables

Revision ID: 20261019_0005
Revises: 20261019_0004
Create Date: 2026-10-19 00:05:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '20261019_0005'
down_revision: str | None = '20261019_0004'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create connection and messaging tables."""
    op.create_table(
        'connections',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('sender_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('receiver_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('message', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("status IN ('pending', 'accepted', 'rejected')", name='connections_status_check'),
        sa.CheckConstraint('sender_id <> receiver_id', name='connections_no_self_check'),
        sa.UniqueConstraint('sender_id', 'receiver_id', name='connections_pair_unique'),
    )
    op.create_index('idx_connections_receiver', 'connections', ['receiver_id', 'status'])

    op.create_table(
        'conversations',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('conversation_type', sa.String(20), nullable=False, server_default='direct'),
        sa.Column('group_name', sa.String(255), nullable=True),
        sa.Column('project_id', UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=True),
        sa.Column('last_message_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("conversation_type IN ('direct', 'group')", name='conversations_type_check'),
    )

    op.create_table(
        'conversation_participants',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('conversation_id', UUID(as_uuid=True), sa.ForeignKey('conversations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('last_read_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('conversation_id', 'user_id', name='conversation_participants_unique'),
    )
    op.create_index('idx_participant_user', 'conversation_participants', ['user_id'])

    op.create_table(
        'messages',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('conversation_id', UUID(as_uuid=True), sa.ForeignKey('conversations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('sender_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('content', sa.Text, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('length(content) <= 10000', name='messages_content_length_check'),
    )
    op.create_index('idx_conversation_messages', 'messages', ['conversation_id', 'created_at'])


def downgrade() -> None:
    """Drop connection and messaging tables."""
    op.drop_index('idx_conversation_messages', table_name='messages')
    op.drop_table('messages')
    op.drop_index('idx_participant_user', table_name='conversation_participants')
    op.drop_table('conversation_participants')
    op.drop_table('conversations')
    op.drop_index('idx_connections_receiver', table_name='connections')
    op.drop_table('connections')
