"""Create categories and products tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create categories and products tables."""
    # Categories table (parent reference is not a foreign key)
    op.create_table(
        'categories',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('slug', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('image_url', sa.String(1000), nullable=True),
        sa.Column('parent_category_id', postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
    )
    op.create_index('ix_categories_slug', 'categories', ['slug'], unique=True)

    # Products table (category reference checked by the application)
    op.create_table(
        'products',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column('name', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('compare_at_price', sa.Float(), nullable=True),
        sa.Column('image_url', sa.String(1000), nullable=False),
        sa.Column('images', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('category_id', postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column('brand', sa.String(200), nullable=False),
        sa.Column('sku', sa.String(100), nullable=False),
        sa.Column('inventory', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('specifications', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('rating', sa.Float(), nullable=False, server_default='0'),
        sa.Column('review_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('free_shipping', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('featured', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('on_sale', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('price >= 0', name='ck_products_price_non_negative'),
        sa.CheckConstraint('compare_at_price >= 0', name='ck_products_compare_at_price_non_negative'),
        sa.CheckConstraint('inventory >= 0', name='ck_products_inventory_non_negative'),
        sa.CheckConstraint('rating >= 0 AND rating <= 5', name='ck_products_rating_range'),
    )
    op.create_index('ix_products_sku', 'products', ['sku'], unique=True)
    op.create_index('ix_products_category_id', 'products', ['category_id'])
    op.create_index('ix_products_brand', 'products', ['brand'])
    op.create_index('ix_products_featured', 'products', ['featured'])
    op.create_index('ix_products_on_sale', 'products', ['on_sale'])


def downgrade() -> None:
    """Drop products and categories tables."""
    op.drop_table('products')
    op.drop_table('categories')
