"""Daily inventory snapshots

Revision ID: 001_inventory_snapshots
Revises: 000_initial_schema
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_inventory_snapshots'
down_revision: Union[str, None] = '000_initial_schema'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'inventory_snapshots',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('snapshot_date', sa.Date(), nullable=False),
        sa.Column('total_products', sa.Integer(), nullable=False),
        sa.Column('total_quantity', sa.Integer(), nullable=False),
        sa.Column('total_cost_value', sa.Float(), nullable=False),
        sa.Column('total_retail_value', sa.Float(), nullable=False),
        sa.Column('value_by_category', sa.JSON(), nullable=True),
        sa.Column('quantity_by_category', sa.JSON(), nullable=True),
        sa.Column('in_stock_count', sa.Integer(), nullable=True),
        sa.Column('low_stock_count', sa.Integer(), nullable=True),
        sa.Column('out_of_stock_count', sa.Integer(), nullable=True),
        sa.Column('discontinued_count', sa.Integer(), nullable=True),
        sa.Column('dead_stock_count', sa.Integer(), nullable=True),
        sa.Column('dead_stock_value', sa.Float(), nullable=True),
        sa.Column('slow_moving_count', sa.Integer(), nullable=True),
        sa.Column('slow_moving_value', sa.Float(), nullable=True),
        sa.Column('avg_turnover_ratio', sa.Float(), nullable=True),
        sa.Column('avg_days_to_sell', sa.Float(), nullable=True),
        sa.Column('fast_moving_count', sa.Integer(), nullable=True),
        sa.Column('top_products_by_value', sa.JSON(), nullable=True),
        sa.Column('snapshot_type', sa.String(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('store_id', 'snapshot_date', name='uq_inventory_snapshots_store_date')
    )
    op.create_index(op.f('ix_inventory_snapshots_store_id'), 'inventory_snapshots', ['store_id'])
    op.create_index(op.f('ix_inventory_snapshots_snapshot_date'), 'inventory_snapshots', ['snapshot_date'])


def downgrade() -> None:
    op.drop_index(op.f('ix_inventory_snapshots_snapshot_date'), table_name='inventory_snapshots')
    op.drop_index(op.f('ix_inventory_snapshots_store_id'), table_name='inventory_snapshots')
    op.drop_table('inventory_snapshots')
