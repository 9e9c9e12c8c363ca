"""initial_schema

Crea las tablas de contratos, medicamentos, periodos, pedidos e inyecciones.

Revision ID: 3c7a9d51f2e8
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c7a9d51f2e8'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'contracts',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('codigo', sa.String(100), nullable=True),
        sa.Column('nombre', sa.String(300), nullable=True),
        sa.Column('concurso', sa.String(200), nullable=True),
        sa.Column('contrato_legal', sa.String(200), nullable=True),
        sa.Column('proveedor', sa.String(300), nullable=True),
        sa.Column('precio_unitario', sa.Numeric(15, 2), nullable=True),
        sa.Column('fecha_inicio', sa.Date(), nullable=True),
        sa.Column('moneda', sa.String(50), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'contract_items',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('contract_id', sa.Integer(), sa.ForeignKey('contracts.id'), nullable=False),
        sa.Column('codigo', sa.String(100), nullable=False),
        sa.Column('nombre', sa.String(300), nullable=False),
        sa.Column('moneda', sa.String(50), nullable=True),
        sa.Column('precio_unitario', sa.Numeric(15, 2), nullable=False),
    )
    op.create_index('ix_contract_items_contract_id', 'contract_items', ['contract_id'])

    op.create_table(
        'periods',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('contract_id', sa.Integer(), sa.ForeignKey('contracts.id'), nullable=False),
        sa.Column('nombre', sa.String(100), nullable=True),
        sa.Column('fecha_inicio', sa.Date(), nullable=True),
        sa.Column('fecha_fin', sa.Date(), nullable=True),
        sa.Column('presupuesto_asignado', sa.Numeric(15, 2), nullable=False),
        sa.Column('presupuesto_inicial', sa.Numeric(15, 2), nullable=True),
        sa.Column('estado', sa.String(50), nullable=True),
        sa.Column('moneda', sa.String(50), nullable=True),
    )
    op.create_index('ix_periods_contract_id', 'periods', ['contract_id'])

    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('period_id', sa.Integer(), sa.ForeignKey('periods.id'), nullable=False),
        sa.Column('fecha_pedido', sa.Date(), nullable=True),
        sa.Column('numero_pedido_sap', sa.String(50), nullable=True),
        sa.Column('numero_pedido_sicop', sa.String(50), nullable=True),
        sa.Column('pur', sa.String(50), nullable=True),
        sa.Column('numero_reserva', sa.String(50), nullable=True),
        sa.Column('cantidad_medicamento', sa.Integer(), nullable=False),
        sa.Column('monto', sa.Numeric(15, 2), nullable=False),
        sa.Column('descripcion', sa.String(500), nullable=True),
        sa.Column(
            'item_id',
            sa.Integer(),
            sa.ForeignKey('contract_items.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('medicamento_nombre', sa.String(300), nullable=True),
        sa.Column('medicamento_codigo', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_orders_period_id', 'orders', ['period_id'])

    op.create_table(
        'injections',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('period_id', sa.Integer(), sa.ForeignKey('periods.id'), nullable=False),
        sa.Column('monto', sa.Numeric(15, 2), nullable=False),
        sa.Column('moneda', sa.String(50), nullable=True),
        sa.Column('fecha', sa.Date(), nullable=True),
        sa.Column('oficio', sa.String(100), nullable=True),
        sa.Column('descripcion', sa.String(1000), nullable=True),
        sa.Column('documento_nombre', sa.String(300), nullable=True),
        sa.Column('documento', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_injections_period_id', 'injections', ['period_id'])


def downgrade() -> None:
    op.drop_index('ix_injections_period_id', table_name='injections')
    op.drop_table('injections')
    op.drop_index('ix_orders_period_id', table_name='orders')
    op.drop_table('orders')
    op.drop_index('ix_periods_contract_id', table_name='periods')
    op.drop_table('periods')
    op.drop_index('ix_contract_items_contract_id', table_name='contract_items')
    op.drop_table('contract_items')
    op.drop_table('contracts')
