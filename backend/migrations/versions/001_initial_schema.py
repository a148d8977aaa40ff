"""Initial GSMS schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

Raw materials with stock ledger, products with BOM lines, orders with
consumption reports, and production logs.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema - create all GSMS tables."""
    op.create_table('raw_materials',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('item_code', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('unit', sa.String(length=10), nullable=False),
        sa.Column('opening_stock', sa.Numeric(precision=18, scale=4), nullable=False),
        sa.Column('current_stock', sa.Numeric(precision=18, scale=4), nullable=False),
        sa.Column('updated_date', sa.DateTime(), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_raw_materials_id'), 'raw_materials', ['id'], unique=False)
    op.create_index(op.f('ix_raw_materials_item_code'), 'raw_materials', ['item_code'], unique=True)

    op.create_table('received_batches',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('material_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Numeric(precision=18, scale=4), nullable=False),
        sa.Column('received_date', sa.DateTime(), nullable=False),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['material_id'], ['raw_materials.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_received_batches_id'), 'received_batches', ['id'], unique=False)
    op.create_index(op.f('ix_received_batches_material_id'), 'received_batches', ['material_id'], unique=False)

    op.create_table('stock_movements',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('material_id', sa.Integer(), nullable=False),
        sa.Column('movement_type', sa.String(length=20), nullable=False),
        sa.Column('quantity', sa.Numeric(precision=18, scale=4), nullable=False),
        sa.Column('reference_type', sa.String(length=50), nullable=True),
        sa.Column('reference_id', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['material_id'], ['raw_materials.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_stock_movements_id'), 'stock_movements', ['id'], unique=False)
    op.create_index(op.f('ix_stock_movements_material_id'), 'stock_movements', ['material_id'], unique=False)

    op.create_table('products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('style_no', sa.String(length=50), nullable=False),
        sa.Column('item_name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('wastage_remarks', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_products_id'), 'products', ['id'], unique=False)
    op.create_index(op.f('ix_products_style_no'), 'products', ['style_no'], unique=True)

    op.create_table('product_materials',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('material_id', sa.Integer(), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('quantity_per_piece', sa.Numeric(precision=18, scale=4), nullable=False),
        sa.Column('expected_wastage_percentage', sa.Numeric(precision=7, scale=4), nullable=False),
        sa.Column('wastage_remarks', sa.Text(), nullable=True),
        sa.Column('is_primary', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['material_id'], ['raw_materials.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_product_materials_id'), 'product_materials', ['id'], unique=False)
    op.create_index(op.f('ix_product_materials_product_id'), 'product_materials', ['product_id'], unique=False)
    op.create_index(op.f('ix_product_materials_material_id'), 'product_materials', ['material_id'], unique=False)

    op.create_table('orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('po_no', sa.String(length=50), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('order_date', sa.DateTime(), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_orders_id'), 'orders', ['id'], unique=False)
    op.create_index(op.f('ix_orders_po_no'), 'orders', ['po_no'], unique=True)
    op.create_index(op.f('ix_orders_product_id'), 'orders', ['product_id'], unique=False)
    op.create_index(op.f('ix_orders_status'), 'orders', ['status'], unique=False)

    op.create_table('order_consumption',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('material_id', sa.Integer(), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('material_name', sa.String(length=255), nullable=False),
        sa.Column('item_code', sa.String(length=50), nullable=False),
        sa.Column('unit', sa.String(length=10), nullable=False),
        sa.Column('is_primary', sa.Boolean(), nullable=False),
        sa.Column('required_qty', sa.Numeric(precision=18, scale=4), nullable=False),
        sa.Column('actual_used_qty', sa.Numeric(precision=18, scale=4), nullable=False),
        sa.Column('standard_wastage', sa.Numeric(precision=18, scale=4), nullable=False),
        sa.Column('extra_wastage', sa.Numeric(precision=18, scale=4), nullable=False),
        sa.Column('wastage', sa.Numeric(precision=18, scale=4), nullable=False),
        sa.Column('waste_percentage', sa.Numeric(precision=10, scale=4), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['material_id'], ['raw_materials.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_order_consumption_id'), 'order_consumption', ['id'], unique=False)
    op.create_index(op.f('ix_order_consumption_order_id'), 'order_consumption', ['order_id'], unique=False)
    op.create_index(op.f('ix_order_consumption_material_id'), 'order_consumption', ['material_id'], unique=False)

    op.create_table('production_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('cut_qty', sa.Numeric(precision=18, scale=4), nullable=False),
        sa.Column('used_fabric', sa.Numeric(precision=18, scale=4), nullable=False),
        sa.Column('wastage_qty', sa.Numeric(precision=18, scale=4), nullable=False),
        sa.Column('is_extra_wastage_only', sa.Boolean(), nullable=False),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_production_logs_id'), 'production_logs', ['id'], unique=False)
    op.create_index(op.f('ix_production_logs_order_id'), 'production_logs', ['order_id'], unique=False)

    op.create_table('production_log_materials',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('production_log_id', sa.Integer(), nullable=False),
        sa.Column('material_id', sa.Integer(), nullable=False),
        sa.Column('used_qty', sa.Numeric(precision=18, scale=4), nullable=False),
        sa.Column('standard_wastage', sa.Numeric(precision=18, scale=4), nullable=False),
        sa.Column('extra_wastage', sa.Numeric(precision=18, scale=4), nullable=False),
        sa.Column('total_wastage', sa.Numeric(precision=18, scale=4), nullable=False),
        sa.Column('wastage_reason', sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(['production_log_id'], ['production_logs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['material_id'], ['raw_materials.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_production_log_materials_id'), 'production_log_materials', ['id'], unique=False)
    op.create_index(
        op.f('ix_production_log_materials_production_log_id'),
        'production_log_materials', ['production_log_id'], unique=False
    )
    op.create_index(
        op.f('ix_production_log_materials_material_id'),
        'production_log_materials', ['material_id'], unique=False
    )


def downgrade() -> None:
    """Downgrade schema - drop all GSMS tables."""
    op.drop_table('production_log_materials')
    op.drop_table('production_logs')
    op.drop_table('order_consumption')
    op.drop_table('orders')
    op.drop_table('product_materials')
    op.drop_table('products')
    op.drop_table('stock_movements')
    op.drop_table('received_batches')
    op.drop_table('raw_materials')
