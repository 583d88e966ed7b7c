"""create users and bills tables

Revision ID: 3f9a1c2b7d10
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


revision = '3f9a1c2b7d10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('is_premium', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('available_money', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )

    op.create_table(
        'bills',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column(
            'user_id', sa.String(64),
            sa.ForeignKey('users.id', ondelete='CASCADE', onupdate='CASCADE'),
            nullable=False,
        ),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('notification_frequency', sa.String(16), nullable=False, server_default='none'),
        sa.Column('reminder_enabled', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_bills_user_id', 'bills', ['user_id'])
    op.create_index('ix_bills_due_date', 'bills', ['due_date'])


def downgrade():
    op.drop_index('ix_bills_due_date', table_name='bills')
    op.drop_index('ix_bills_user_id', table_name='bills')
    op.drop_table('bills')
    op.drop_table('users')
