"""billing_schema

Revision ID: 0001_billing_schema
Revises:
Create Date: 2026-10-19 10:00:00.000000

Users with their billing customer link, subscription records, the processed
webhook ledger, custom playlists and tasks.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001_billing_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('stripe_customer_id', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('stripe_customer_id', name='uq_users_stripe_customer_id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=False)

    op.create_table(
        'user_subscriptions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=True),
        sa.Column('stripe_customer_id', sa.String(64), nullable=True),
        sa.Column('stripe_subscription_id', sa.String(64), nullable=True),
        sa.Column('status', sa.String(32), nullable=False),
        sa.Column('event_created_at', sa.BigInteger(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_user_subscriptions_email', 'user_subscriptions', ['email'], unique=True)
    op.create_index('ix_user_subscriptions_user_id', 'user_subscriptions', ['user_id'])
    op.create_index('ix_user_subscriptions_stripe_customer_id', 'user_subscriptions', ['stripe_customer_id'])
    op.create_index('ix_user_subscriptions_stripe_subscription_id', 'user_subscriptions',
                    ['stripe_subscription_id'], unique=True)

    op.create_table(
        'billing_events',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('stripe_event_id', sa.String(255), nullable=False),
        sa.Column('event_type', sa.String(80), nullable=False),
        sa.Column('outcome', sa.String(16), nullable=False),
        sa.Column('processed_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_billing_events_stripe_event_id', 'billing_events', ['stripe_event_id'], unique=True)
    op.create_index('ix_billing_events_event_type', 'billing_events', ['event_type'])

    op.create_table(
        'custom_playlists',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('url', sa.Text(), nullable=False),
        sa.Column('platform', sa.String(16), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_custom_playlists_user_id', 'custom_playlists', ['user_id'])
    op.create_index('ix_custom_playlists_created_at', 'custom_playlists', ['created_at'])

    op.create_table(
        'tasks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('priority', sa.String(16), nullable=False, server_default='Medium'),
        sa.Column('completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_tasks_user_id', 'tasks', ['user_id'])
    op.create_index('ix_tasks_created_at', 'tasks', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_tasks_created_at', table_name='tasks')
    op.drop_index('ix_tasks_user_id', table_name='tasks')
    op.drop_table('tasks')

    op.drop_index('ix_custom_playlists_created_at', table_name='custom_playlists')
    op.drop_index('ix_custom_playlists_user_id', table_name='custom_playlists')
    op.drop_table('custom_playlists')

    op.drop_index('ix_billing_events_event_type', table_name='billing_events')
    op.drop_index('ix_billing_events_stripe_event_id', table_name='billing_events')
    op.drop_table('billing_events')

    op.drop_index('ix_user_subscriptions_stripe_subscription_id', table_name='user_subscriptions')
    op.drop_index('ix_user_subscriptions_stripe_customer_id', table_name='user_subscriptions')
    op.drop_index('ix_user_subscriptions_user_id', table_name='user_subscriptions')
    op.drop_index('ix_user_subscriptions_email', table_name='user_subscriptions')
    op.drop_table('user_subscriptions')

    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
