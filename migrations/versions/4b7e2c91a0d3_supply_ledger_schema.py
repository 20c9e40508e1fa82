"""Supply ledger schema: store zones, supply tracker, frozen sales

Revision ID: 4b7e2c91a0d3
Revises:
Create Date: 2026-02-20 10:04:12.381502

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4b7e2c91a0d3'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'store_zones',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('store_id', sa.String(length=64), nullable=False),
        sa.Column('zone_code', sa.String(length=32), nullable=False),
        sa.Column('zone_name', sa.String(length=100), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('store_id', 'zone_code', name='uq_zone_store_code'),
    )
    op.create_index('ix_store_zones_store_id', 'store_zones', ['store_id'])

    # Restock events; remaining_qty is authoritative only at the baseline date
    op.create_table(
        'supply_tracker',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('store_id', sa.String(length=64), nullable=False),
        sa.Column('d', sa.Date(), nullable=False),
        sa.Column('zone_code', sa.String(length=32), nullable=False, server_default=''),
        sa.Column('supply_key', sa.String(length=64), nullable=False),
        sa.Column('restock_qty', sa.Numeric(precision=12, scale=3), nullable=False),
        sa.Column('remaining_qty', sa.Numeric(precision=12, scale=3), nullable=False),
        sa.Column('submitted_by', sa.String(length=64), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'store_id', 'd', 'zone_code', 'supply_key', name='uq_supply_natural_key'
        ),
    )
    op.create_index('ix_supply_tracker_store_id', 'supply_tracker', ['store_id'])
    op.create_index('ix_supply_tracker_d', 'supply_tracker', ['d'])
    op.create_index('ix_supply_store_day', 'supply_tracker', ['store_id', 'd'])

    op.create_table(
        'frozen_sales',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('store_id', sa.String(length=64), nullable=False),
        sa.Column('d', sa.Date(), nullable=False),
        sa.Column('zone_code', sa.String(length=32), nullable=False, server_default=''),
        sa.Column('product_key', sa.String(length=64), nullable=False),
        sa.Column('takeout', sa.Numeric(precision=12, scale=3), nullable=False),
        sa.Column('delivery', sa.Numeric(precision=12, scale=3), nullable=False),
        sa.Column('submitted_by', sa.String(length=64), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'store_id', 'd', 'zone_code', 'product_key', name='uq_frozen_natural_key'
        ),
    )
    op.create_index('ix_frozen_sales_store_id', 'frozen_sales', ['store_id'])
    op.create_index('ix_frozen_sales_d', 'frozen_sales', ['d'])
    op.create_index('ix_frozen_store_day', 'frozen_sales', ['store_id', 'd'])


def downgrade() -> None:
    op.drop_index('ix_frozen_store_day', table_name='frozen_sales')
    op.drop_index('ix_frozen_sales_d', table_name='frozen_sales')
    op.drop_index('ix_frozen_sales_store_id', table_name='frozen_sales')
    op.drop_table('frozen_sales')
    op.drop_index('ix_supply_store_day', table_name='supply_tracker')
    op.drop_index('ix_supply_tracker_d', table_name='supply_tracker')
    op.drop_index('ix_supply_tracker_store_id', table_name='supply_tracker')
    op.drop_table('supply_tracker')
    op.drop_index('ix_store_zones_store_id', table_name='store_zones')
    op.drop_table('store_zones')
