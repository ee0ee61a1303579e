"""initial supplier schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the InstaSupply schema from scratch:
- suppliers / session_tokens: OTP sign-in and bearer sessions
- products: supplier catalog with stock counters
- orders / order_items / order_history: order book with price snapshots
- order_sequences: atomic order number counter
- notifications: supplier inbox
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # suppliers: the only authenticated actor
    # ============================================================================
    op.create_table(
        'suppliers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('otp_hash', sa.String(length=64), nullable=True),
        sa.Column('otp_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('profile_image_url', sa.String(length=512), nullable=True),
        sa.Column('website', sa.String(length=255), nullable=True),
        sa.Column('about_us', sa.Text(), nullable=True),
        sa.Column('address_street', sa.String(length=255), nullable=True),
        sa.Column('address_city', sa.String(length=120), nullable=True),
        sa.Column('address_state', sa.String(length=120), nullable=True),
        sa.Column('address_zip_code', sa.String(length=32), nullable=True),
        sa.Column('address_country', sa.String(length=120), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_suppliers_email'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_suppliers_email', 'suppliers', ['email'])

    # ============================================================================
    # session_tokens: hashed bearer tokens
    # ============================================================================
    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_session_tokens_supplier_id', 'session_tokens', ['supplier_id'])
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)

    # ============================================================================
    # products: catalog with stock counters
    # ============================================================================
    # WHY the check constraint: conditional decrements keep stock >= 0; the
    # constraint turns any bug that slips past them into a hard failure.
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=64), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('low_stock_threshold', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('sold_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('discount_percent', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('unit', sa.String(length=32), nullable=False, server_default='Unit'),
        sa.Column('image_url', sa.String(length=512), nullable=True),
        sa.Column('available_for_delivery', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('available_for_pickup', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('stock >= 0', name='ck_products_stock_non_negative'),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_products_supplier_id', 'products', ['supplier_id'])
    op.create_index('ix_products_supplier_active', 'products', ['supplier_id', 'is_active'])
    op.create_index('ix_products_supplier_category', 'products', ['supplier_id', 'category'])
    op.create_index('ix_products_sold_quantity', 'products', ['sold_quantity'])

    # ============================================================================
    # orders + line items + history
    # ============================================================================
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_number', sa.String(length=32), nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=False),
        sa.Column('total_amount_cents', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='New Order'),
        sa.Column('customer_name', sa.String(length=255), nullable=True),
        sa.Column('customer_email', sa.String(length=255), nullable=True),
        sa.Column('customer_phone', sa.String(length=64), nullable=True),
        sa.Column('customer_type', sa.String(length=32), nullable=False, server_default='Other'),
        sa.Column('delivery_label', sa.String(length=255), nullable=True),
        sa.Column('delivery_street', sa.String(length=255), nullable=True),
        sa.Column('delivery_city', sa.String(length=120), nullable=True),
        sa.Column('delivery_state', sa.String(length=120), nullable=True),
        sa.Column('delivery_zip_code', sa.String(length=32), nullable=True),
        sa.Column('delivery_country', sa.String(length=120), nullable=True),
        sa.Column('delivery_full_address', sa.String(length=512), nullable=True),
        sa.Column('delivery_method', sa.String(length=32), nullable=False, server_default='Standard Delivery'),
        sa.Column('delivery_time', sa.String(length=120), nullable=True),
        sa.Column('payment_method_type', sa.String(length=32), nullable=True),
        sa.Column('payment_last4', sa.String(length=4), nullable=True),
        sa.Column('payment_brand', sa.String(length=32), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_number', name='uq_orders_order_number'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_orders_supplier_id', 'orders', ['supplier_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_supplier_created', 'orders', ['supplier_id', 'created_at'])
    op.create_index('ix_orders_supplier_status', 'orders', ['supplier_id', 'status'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('subtotal_cents', sa.Integer(), nullable=False),
        sa.CheckConstraint('quantity >= 1', name='ck_order_items_quantity_positive'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])
    op.create_index('ix_order_items_product_id', 'order_items', ['product_id'])

    op.create_table(
        'order_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('note', sa.String(length=512), nullable=True),
        sa.Column('updated_by', sa.String(length=255), nullable=False, server_default='System'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_order_history_order_id', 'order_history', ['order_id'])
    op.create_index('ix_order_history_order_created', 'order_history', ['order_id', 'created_at'])

    op.create_table(
        'order_sequences',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=32), nullable=False),
        sa.Column('next_number', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_order_sequences_name'),
        sqlite_autoincrement=True
    )

    # ============================================================================
    # notifications: supplier inbox
    # ============================================================================
    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('icon', sa.String(length=16), nullable=False, server_default='system'),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('related_id', sa.Integer(), nullable=True),
        sa.Column('related_type', sa.String(length=32), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_notifications_supplier_id', 'notifications', ['supplier_id'])
    op.create_index('ix_notifications_supplier_created', 'notifications', ['supplier_id', 'created_at'])
    op.create_index('ix_notifications_supplier_read', 'notifications', ['supplier_id', 'is_read'])
    op.create_index('ix_notifications_supplier_type', 'notifications', ['supplier_id', 'type'])


def downgrade():
    op.drop_table('notifications')
    op.drop_table('order_sequences')
    op.drop_table('order_history')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('products')
    op.drop_table('session_tokens')
    op.drop_table('suppliers')
