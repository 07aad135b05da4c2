"""Create profiles, coin_transactions and payments tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:01:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '20261019_0001'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create profiles, coin_transactions and payments tables."""
    op.create_table(
        'profiles',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('avatar_url', sa.Text, nullable=True),
        sa.Column('bio', sa.Text, nullable=True),
        sa.Column('role', sa.String(50), nullable=True),
        sa.Column('skills', JSONB, nullable=True),
        sa.Column('interests', JSONB, nullable=True),
        sa.Column('social_links', JSONB, nullable=True),
        sa.Column('onboarding_completed', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('has_paid', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('payment_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('builder_coins', sa.Integer, nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_profiles_role', 'profiles', ['role'])

    op.create_table(
        'coin_transactions',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('amount', sa.Integer, nullable=False),
        sa.Column('reason', sa.String(255), nullable=False),
        sa.Column('reference_type', sa.String(50), nullable=True),
        sa.Column('reference_id', UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('idx_coin_user_reason', 'coin_transactions', ['user_id', 'reason'])

    op.create_table(
        'payments',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('amount', sa.Integer, nullable=False),
        sa.Column('currency', sa.String(3), nullable=False, server_default='INR'),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('transaction_id', sa.String(100), nullable=True),
        sa.Column('payment_method', sa.String(20), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("status IN ('pending', 'completed', 'failed')", name='payments_status_check'),
        sa.CheckConstraint('amount > 0', name='payments_amount_check'),
    )

    # Webhooks look payments up by gateway order/payment id
    op.create_index('idx_payments_transaction', 'payments', ['transaction_id', 'user_id'])


def downgrade() -> None:
    """Drop profiles, coin_transactions and payments tables."""
    op.drop_index('idx_payments_transaction', table_name='payments')
    op.drop_table('payments')
    op.drop_index('idx_coin_user_reason', table_name='coin_transactions')
    op.drop_table('coin_transactions')
    op.drop_index('ix_profiles_role', table_name='profiles')
    op.drop_table('profiles')
