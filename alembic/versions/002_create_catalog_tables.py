"""Create catalog tables.

Revision ID: 002
Revises: 001
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '002'
down_revision: Union[str, None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    ]


def upgrade() -> None:
    """Create attribute definitions, products and the option/variant matrix."""
    op.create_table(
        'attribute_definitions',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('key', sa.String(100), nullable=False, unique=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('unit', sa.String(50), nullable=True),
        sa.Column('allowed_values', postgresql.JSON(), nullable=False, server_default='[]'),
        *_timestamps(),
    )

    # Products table
    op.create_table(
        'products',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('seller_id', sa.BigInteger(), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column(
            'category_id',
            sa.BigInteger(),
            sa.ForeignKey('categories.id', ondelete='RESTRICT'),
            nullable=False,
            index=True,
        ),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('brand', sa.String(100), nullable=True, index=True),
        sa.Column('base_sku', sa.String(100), nullable=False),
        sa.Column('short_description', sa.String(500), nullable=True),
        sa.Column('long_description', sa.Text(), nullable=True),
        sa.Column('tags', postgresql.JSON(), nullable=False, server_default='[]'),
        sa.Column('is_popular', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('allow_purchase', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True, index=True),
        *_timestamps(),
    )

    # Base SKU is unique among a seller's live products
    op.create_index(
        'uq_products_seller_base_sku_live',
        'products',
        ['seller_id', 'base_sku'],
        unique=True,
        postgresql_where=sa.text('deleted_at IS NULL'),
    )

    op.create_table(
        'product_options',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('product_id', sa.BigInteger(), sa.ForeignKey('products.id'), nullable=False, index=True),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('display_name', sa.String(100), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.UniqueConstraint('product_id', 'name', name='uq_product_options_product_name'),
    )

    op.create_table(
        'product_option_values',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('option_id', sa.BigInteger(), sa.ForeignKey('product_options.id'), nullable=False, index=True),
        sa.Column('value', sa.String(100), nullable=False),
        sa.Column('display_name', sa.String(100), nullable=False),
        sa.Column('color_code', sa.String(7), nullable=True),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.UniqueConstraint('option_id', 'value', name='uq_option_values_option_value'),
        sa.CheckConstraint("color_code IS NULL OR color_code ~ '^#[0-9A-Fa-f]{6}$'", name='ck_option_values_color'),
    )

    op.create_table(
        'product_variants',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('product_id', sa.BigInteger(), sa.ForeignKey('products.id'), nullable=False, index=True),
        sa.Column('sku', sa.String(100), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('images', postgresql.JSON(), nullable=False, server_default='[]'),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('is_popular', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('allow_purchase', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
        sa.UniqueConstraint('product_id', 'sku', name='uq_product_variants_product_sku'),
        sa.CheckConstraint('price >= 0.01', name='ck_product_variants_price'),
        sa.CheckConstraint('stock >= 0', name='ck_product_variants_stock'),
    )

    op.create_table(
        'variant_option_values',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('variant_id', sa.BigInteger(), sa.ForeignKey('product_variants.id'), nullable=False, index=True),
        sa.Column('option_id', sa.BigInteger(), sa.ForeignKey('product_options.id'), nullable=False, index=True),
        sa.Column(
            'option_value_id',
            sa.BigInteger(),
            sa.ForeignKey('product_option_values.id'),
            nullable=False,
            index=True,
        ),
        sa.UniqueConstraint('variant_id', 'option_id', name='uq_variant_option_values_variant_option'),
    )

    op.create_table(
        'product_attributes',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('product_id', sa.BigInteger(), sa.ForeignKey('products.id'), nullable=False, index=True),
        sa.Column(
            'attribute_definition_id',
            sa.BigInteger(),
            sa.ForeignKey('attribute_definitions.id'),
            nullable=False,
            index=True,
        ),
        sa.Column('value', sa.String(255), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.UniqueConstraint(
            'product_id', 'attribute_definition_id', name='uq_product_attributes_product_definition'
        ),
    )

    op.create_table(
        'package_options',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('product_id', sa.BigInteger(), sa.ForeignKey('products.id'), nullable=False, index=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('price > 0', name='ck_package_options_price'),
        sa.CheckConstraint('quantity > 0', name='ck_package_options_quantity'),
    )


def downgrade() -> None:
    """Drop catalog tables in reverse dependency order."""
    op.drop_table('package_options')
    op.drop_table('product_attributes')
    op.drop_table('variant_option_values')
    op.drop_table('product_variants')
    op.drop_table('product_option_values')
    op.drop_table('product_options')
    op.drop_index('uq_products_seller_base_sku_live', table_name='products')
    op.drop_table('products')
    op.drop_table('attribute_definitions')
