"""Move product tags into their own table.

Revision ID: 003
Revises: 002
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '003'
down_revision: Union[str, None] = '002'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create product_tags, copy existing tags and drop products.tags."""
    op.create_table(
        'product_tags',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('product_id', sa.BigInteger(), sa.ForeignKey('products.id'), nullable=False, index=True),
        sa.Column('tag', sa.String(50), nullable=False, index=True),
    )

    # One row per array element, in array order
    op.execute(
        """
        INSERT INTO product_tags (product_id, tag)
        SELECT p.id, t.tag
        FROM products p
        CROSS JOIN LATERAL json_array_elements_text(p.tags) WITH ORDINALITY AS t(tag, ord)
        ORDER BY p.id, t.ord
        """
    )
    op.drop_column('products', 'tags')


def downgrade() -> None:
    """Restore the JSON column from product_tags."""
    op.add_column(
        'products',
        sa.Column('tags', postgresql.JSON(), nullable=False, server_default='[]'),
    )
    op.execute(
        """
        UPDATE products p
        SET tags = sub.tags
        FROM (
            SELECT product_id, json_agg(tag ORDER BY id) AS tags
            FROM product_tags
            GROUP BY product_id
        ) AS sub
        WHERE sub.product_id = p.id
        """
    )
    op.drop_table('product_tags')
