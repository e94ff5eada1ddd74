"""Initial schema: users, referral closure table, invite codes, catalog, orders.

Revision ID: 20261017_000001
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261017_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all storefront tables."""

    # Users
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('telegram_id', sa.BigInteger(), nullable=False),
        sa.Column('username', sa.String(255), nullable=True),
        sa.Column('first_name', sa.String(255), nullable=True),
        sa.Column('last_name', sa.String(255), nullable=True),
        sa.Column('language_code', sa.String(16), nullable=True),
        sa.Column('coins', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_vip', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('vip_level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('vip_start_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('vip_expire_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_premium', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('invited_by_user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sa.ForeignKeyConstraint(
            ['invited_by_user_id'], ['users.id'],
            name='fk_users_invited_by_user_id_users', ondelete='SET NULL',
        ),
        sa.CheckConstraint('coins >= 0', name='ck_users_check_user_coins_non_negative'),
    )
    op.create_index('ix_users_telegram_id', 'users', ['telegram_id'], unique=True)
    op.create_index('ix_users_username', 'users', ['username'])
    op.create_index('ix_users_vip_expire_at', 'users', ['vip_expire_at'])
    op.create_index('ix_users_invited_by_user_id', 'users', ['invited_by_user_id'])

    # Referral closure table
    op.create_table(
        'user_ancestors',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('ancestor_id', sa.Integer(), nullable=False),
        sa.Column('descendant_id', sa.Integer(), nullable=False),
        sa.Column('depth', sa.Integer(), nullable=False),
        sa.Column(
            'owner_id', sa.Integer(), nullable=True,
            comment='Provenance of the row (audit metadata, not read for correctness)',
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id', name='pk_user_ancestors'),
        sa.ForeignKeyConstraint(
            ['ancestor_id'], ['users.id'],
            name='fk_user_ancestors_ancestor_id_users', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['descendant_id'], ['users.id'],
            name='fk_user_ancestors_descendant_id_users', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['owner_id'], ['users.id'],
            name='fk_user_ancestors_owner_id_users', ondelete='SET NULL',
        ),
        sa.UniqueConstraint('ancestor_id', 'descendant_id', name='uq_user_ancestors_pair'),
        sa.CheckConstraint('depth >= 0', name='ck_user_ancestors_check_ancestor_depth_non_negative'),
    )
    op.create_index('ix_user_ancestors_ancestor_depth', 'user_ancestors', ['ancestor_id', 'depth'])
    op.create_index('ix_user_ancestors_descendant_depth', 'user_ancestors', ['descendant_id', 'depth'])

    # Invite codes
    op.create_table(
        'invite_codes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('code', sa.String(32), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_used', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('used_by_user_id', sa.Integer(), nullable=True),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_invite_codes'),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name='fk_invite_codes_user_id_users', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['used_by_user_id'], ['users.id'],
            name='fk_invite_codes_used_by_user_id_users', ondelete='SET NULL',
        ),
    )
    op.create_index('ix_invite_codes_code', 'invite_codes', ['code'], unique=True)
    op.create_index('ix_invite_codes_user_id', 'invite_codes', ['user_id'])
    op.create_index('ix_invite_codes_is_used', 'invite_codes', ['is_used'])

    # Catalog
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', sa.String(32), nullable=False),
        sa.Column('value', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('vip_days', sa.Integer(), nullable=True),
        sa.Column('price', sa.DECIMAL(18, 2), nullable=False, comment='Unit price in fiat (USD)'),
        sa.Column('discount', sa.Integer(), nullable=False, server_default='0', comment='Display discount, percent'),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id', name='pk_products'),
        sa.CheckConstraint('price >= 0', name='ck_products_check_product_price_non_negative'),
        sa.CheckConstraint(
            'discount >= 0 AND discount <= 100',
            name='ck_products_check_product_discount_range',
        ),
    )
    op.create_index('ix_products_type', 'products', ['type'])
    op.create_index('ix_products_is_active', 'products', ['is_active'])

    # Orders
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('payment_type', sa.String(16), nullable=False),
        sa.Column(
            'external_payment_id', sa.String(255), nullable=True,
            comment='Provider-side reference (invoice payload / transfer comment)',
        ),
        sa.Column('payment_link', sa.String(1024), nullable=True),
        sa.Column('amount', sa.DECIMAL(36, 18), nullable=False, comment='Amount in the payment currency'),
        sa.Column('fiat_amount', sa.DECIMAL(18, 2), nullable=False, comment='Amount in fiat (USD)'),
        sa.Column(
            'exchange_rate', sa.DECIMAL(28, 12), nullable=False,
            comment='Payment currency units per fiat unit at creation',
        ),
        sa.Column('rate_valid_seconds', sa.Integer(), nullable=False),
        sa.Column('custom_expiration', sa.Integer(), nullable=False),
        sa.Column('expire_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(32), nullable=False, server_default='CREATED'),
        sa.Column('payment_data', sa.JSON(), nullable=True, comment='Opaque provider snapshot'),
        sa.Column('last_checked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('transaction_id', sa.String(255), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id', name='pk_orders'),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name='fk_orders_user_id_users', ondelete='CASCADE',
        ),
        sa.UniqueConstraint('external_payment_id', name='uq_orders_external_payment_id'),
        sa.CheckConstraint('amount >= 0', name='ck_orders_check_order_amount_non_negative'),
        sa.CheckConstraint('fiat_amount >= 0', name='ck_orders_check_order_fiat_amount_non_negative'),
        sa.CheckConstraint('exchange_rate > 0', name='ck_orders_check_order_exchange_rate_positive'),
        sa.CheckConstraint('rate_valid_seconds > 0', name='ck_orders_check_order_rate_window_positive'),
    )
    op.create_index('ix_orders_user_id', 'orders', ['user_id'])
    op.create_index('ix_orders_status_expire_at', 'orders', ['status', 'expire_at'])

    # Order transition log
    op.create_table(
        'order_status_history',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('from_status', sa.String(32), nullable=True),
        sa.Column('to_status', sa.String(32), nullable=False),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_order_status_history'),
        sa.ForeignKeyConstraint(
            ['order_id'], ['orders.id'],
            name='fk_order_status_history_order_id_orders', ondelete='CASCADE',
        ),
    )
    op.create_index('ix_order_status_history_order_id', 'order_status_history', ['order_id'])

    # Order lines / fulfillment
    op.create_table(
        'user_orders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('status', sa.String(16), nullable=False, server_default='PENDING'),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id', name='pk_user_orders'),
        sa.ForeignKeyConstraint(
            ['order_id'], ['orders.id'],
            name='fk_user_orders_order_id_orders', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name='fk_user_orders_user_id_users', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['product_id'], ['products.id'],
            name='fk_user_orders_product_id_products', ondelete='RESTRICT',
        ),
        sa.CheckConstraint('quantity > 0', name='ck_user_orders_check_user_order_quantity_positive'),
    )
    op.create_index('ix_user_orders_order_id', 'user_orders', ['order_id'], unique=True)
    op.create_index('ix_user_orders_user_id', 'user_orders', ['user_id'])
    op.create_index('ix_user_orders_product_id', 'user_orders', ['product_id'])
    op.create_index('ix_user_orders_status', 'user_orders', ['status'])


def downgrade() -> None:
    """Drop all storefront tables."""
    op.drop_table('user_orders')
    op.drop_table('order_status_history')
    op.drop_table('orders')
    op.drop_table('products')
    op.drop_table('invite_codes')
    op.drop_table('user_ancestors')
    op.drop_table('users')
