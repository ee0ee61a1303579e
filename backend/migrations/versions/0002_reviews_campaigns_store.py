"""reviews, campaigns and store settings

Revision ID: 0002_reviews_campaigns
Revises: 0001_initial
Create Date: 2026-10-19 00:00:00.000000

- reviews: public customer reviews with an optional supplier reply
- campaigns / campaign_products: product promotions and their counters
- store_settings: opening hours and running rating, one row per supplier
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0002_reviews_campaigns'
down_revision = '0001_initial'
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # reviews: soft-deleted via is_visible
    # ============================================================================
    op.create_table(
        'reviews',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=True),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('customer_email', sa.String(length=255), nullable=True),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('review_text', sa.Text(), nullable=True),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('reply_company_name', sa.String(length=255), nullable=True),
        sa.Column('reply_text', sa.Text(), nullable=True),
        sa.Column('reply_created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reply_updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_visible', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('rating BETWEEN 1 AND 5', name='ck_reviews_rating_range'),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_reviews_supplier_id', 'reviews', ['supplier_id'])
    op.create_index('ix_reviews_supplier_created', 'reviews', ['supplier_id', 'created_at'])
    op.create_index('ix_reviews_supplier_visible_rating', 'reviews', ['supplier_id', 'is_visible', 'rating'])

    # ============================================================================
    # campaigns: counters only grow
    # ============================================================================
    op.create_table(
        'campaigns',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='Active'),
        sa.Column('daily_budget_cents', sa.Integer(), nullable=False),
        sa.Column('total_spent_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('impressions', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('clicks', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('daily_budget_cents > 0', name='ck_campaigns_daily_budget_positive'),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_campaigns_supplier_id', 'campaigns', ['supplier_id'])
    op.create_index('ix_campaigns_supplier_status', 'campaigns', ['supplier_id', 'status'])

    op.create_table(
        'campaign_products',
        sa.Column('campaign_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['campaign_id'], ['campaigns.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('campaign_id', 'product_id')
    )

    # ============================================================================
    # store_settings: one row per supplier
    # ============================================================================
    op.create_table(
        'store_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=False),
        sa.Column('is_open', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('opening_time', sa.String(length=5), nullable=False, server_default='09:00'),
        sa.Column('closing_time', sa.String(length=5), nullable=False, server_default='21:00'),
        sa.Column('rating', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_ratings', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('rating_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('rating >= 0 AND rating <= 5', name='ck_store_settings_rating_range'),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('supplier_id', name='uq_store_settings_supplier'),
        sqlite_autoincrement=True
    )


def downgrade():
    op.drop_table('store_settings')
    op.drop_table('campaign_products')
    op.drop_table('campaigns')
    op.drop_table('reviews')
