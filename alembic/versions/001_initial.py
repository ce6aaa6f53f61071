"""Initial migration

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-17 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Products table, keyed by the site's product id
    op.create_table(
        'products',
        sa.Column('product_id', sa.String(length=128), nullable=False),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('original_price', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('discount', sa.Text(), nullable=True),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('image_urls', sa.JSON(), nullable=False),
        sa.Column('category', sa.String(length=256), nullable=True),
        sa.Column('sub_category', sa.String(length=256), nullable=True),
        sa.Column('product_url', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('availability', sa.Boolean(), nullable=True),
        sa.Column('scraped_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('product_id')
    )

    op.create_index('ix_products_category', 'products', ['category'])
    op.create_index('ix_products_updated_at', 'products', ['updated_at'])


def downgrade() -> None:
    op.drop_index('ix_products_updated_at', table_name='products')
    op.drop_index('ix_products_category', table_name='products')
    op.drop_table('products')
