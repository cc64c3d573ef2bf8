"""initial_membership_and_orders

Revision ID: 3c9e5a1f7b20
Revises:
Create Date: 2026-10-19 09:12:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c9e5a1f7b20'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


membership_status_enum = sa.Enum(
    'active', 'inactive', 'suspended', name='membership_status_enum'
)
transaction_type_enum = sa.Enum(
    'EARNED', 'REDEEMED', 'EXPIRED', name='membership_transaction_type_enum'
)
order_status_enum = sa.Enum(
    'pending', 'processing', 'ready', 'completed', 'cancelled', name='order_status_enum'
)
order_audit_action_enum = sa.Enum(
    'created', 'status_changed', 'proof_captured', 'completed', 'cancelled',
    name='order_audit_action_enum',
)


def upgrade() -> None:
    """Upgrade schema - Create membership ledger and order tables."""

    op.create_table(
        'membership_tiers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('discount_percentage', sa.Float(), nullable=False),
        sa.Column('points_multiplier', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'discount_percentage >= 0 AND discount_percentage <= 100',
            name='ck_tier_discount_range',
        ),
        sa.CheckConstraint('points_multiplier > 0', name='ck_tier_multiplier_positive'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table(
        'customer_memberships',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('membership_code', sa.String(), nullable=False),
        sa.Column('customer_id', sa.String(), nullable=False),
        sa.Column('tier_id', sa.Uuid(), nullable=True),
        sa.Column('points_balance', sa.Integer(), nullable=False),
        sa.Column('status', membership_status_enum, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('points_balance >= 0', name='ck_membership_balance_non_negative'),
        sa.ForeignKeyConstraint(['tier_id'], ['membership_tiers.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_customer_memberships_membership_code',
        'customer_memberships',
        ['membership_code'],
        unique=True,
    )
    op.create_index(
        'ix_customer_memberships_customer_id',
        'customer_memberships',
        ['customer_id'],
        unique=True,
    )

    op.create_table(
        'membership_transactions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('membership_id', sa.Uuid(), nullable=False),
        sa.Column('transaction_type', transaction_type_enum, nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('order_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('points > 0', name='ck_membership_transaction_points_positive'),
        sa.ForeignKeyConstraint(['membership_id'], ['customer_memberships.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'membership_id', 'sequence', name='uq_membership_transactions_sequence'
        ),
    )
    op.create_index(
        'ix_membership_transactions_membership_id',
        'membership_transactions',
        ['membership_id'],
    )
    op.create_index(
        'ix_membership_transactions_order_id',
        'membership_transactions',
        ['order_id'],
    )

    op.create_table(
        'order_requests',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('pickup_code', sa.String(), nullable=False),
        sa.Column('customer_id', sa.String(), nullable=True),
        sa.Column('customer_name', sa.String(), nullable=False),
        sa.Column('customer_phone', sa.String(), nullable=False),
        sa.Column('customer_email', sa.String(), nullable=True),
        sa.Column('medicine_name', sa.String(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('staff_notes', sa.Text(), nullable=True),
        sa.Column('processed_by', sa.String(), nullable=True),
        sa.Column('status', order_status_enum, nullable=False),
        sa.Column('customer_signature', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_order_quantity_positive'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_order_requests_pickup_code', 'order_requests', ['pickup_code'], unique=True
    )
    op.create_index('ix_order_requests_customer_id', 'order_requests', ['customer_id'])
    op.create_index('ix_order_requests_status', 'order_requests', ['status'])

    op.create_table(
        'order_audit_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False),
        sa.Column('action', order_audit_action_enum, nullable=False),
        sa.Column('old_value', sa.JSON(), nullable=True),
        sa.Column('new_value', sa.JSON(), nullable=True),
        sa.Column('performed_by', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['order_requests.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_order_audit_logs_order_id', 'order_audit_logs', ['order_id'])


def downgrade() -> None:
    """Downgrade schema - Drop membership ledger and order tables."""
    op.drop_index('ix_order_audit_logs_order_id', table_name='order_audit_logs')
    op.drop_table('order_audit_logs')

    op.drop_index('ix_order_requests_status', table_name='order_requests')
    op.drop_index('ix_order_requests_customer_id', table_name='order_requests')
    op.drop_index('ix_order_requests_pickup_code', table_name='order_requests')
    op.drop_table('order_requests')

    op.drop_index('ix_membership_transactions_order_id', table_name='membership_transactions')
    op.drop_index(
        'ix_membership_transactions_membership_id', table_name='membership_transactions'
    )
    op.drop_table('membership_transactions')

    op.drop_index('ix_customer_memberships_customer_id', table_name='customer_memberships')
    op.drop_index(
        'ix_customer_memberships_membership_code', table_name='customer_memberships'
    )
    op.drop_table('customer_memberships')

    op.drop_table('membership_tiers')

    bind = op.get_bind()
    for enum_type in (
        order_audit_action_enum,
        order_status_enum,
        transaction_type_enum,
        membership_status_enum,
    ):
        enum_type.drop(bind, checkfirst=True)
