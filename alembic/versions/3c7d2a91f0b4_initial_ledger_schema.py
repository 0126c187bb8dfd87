"""initial_ledger_schema

Creates the reference lists, the allocation/adjustment/release ledger and
the denormalized budget_entry table.

Revision ID: 3c7d2a91f0b4
Revises:
Create Date: 2024-07-01 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c7d2a91f0b4'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'object_code',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('code', sa.String(length=20), nullable=False, unique=True),
        sa.Column('description', sa.String(length=300), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_table(
        'cost_center',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('code', sa.String(length=20), nullable=False, unique=True),
        sa.Column('name', sa.String(length=300), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    op.create_table(
        'budget_allocation',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('object_code', sa.String(length=20), nullable=False),
        sa.Column('code_description', sa.String(length=300), nullable=True),
        sa.Column('cost_center', sa.String(length=20), nullable=False),
        sa.Column('cost_center_name', sa.String(length=300), nullable=True),
        sa.Column('financial_year', sa.String(length=9), nullable=False),
        sa.Column('total_allocation', sa.Numeric(15, 2), nullable=False),
        *[sa.Column(f'q{q}_release', sa.Numeric(15, 2), nullable=False, server_default='0')
          for q in (1, 2, 3, 4)],
        *[sa.Column(f'q{q}_released', sa.Boolean(), nullable=False, server_default=sa.false())
          for q in (1, 2, 3, 4)],
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('date_created', sa.Date(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint(
            'object_code', 'cost_center', 'financial_year',
            name='uq_budget_allocation_identity',
        ),
    )
    for column in ('object_code', 'cost_center', 'financial_year'):
        op.create_index(f'ix_budget_allocation_{column}', 'budget_allocation', [column])

    op.create_table(
        'budget_adjustment',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('financial_year', sa.String(length=9), nullable=False),
        sa.Column('amount', sa.Numeric(15, 2), nullable=False),
        sa.Column('from_object_code', sa.String(length=20), nullable=False),
        sa.Column('from_cost_center', sa.String(length=20), nullable=False),
        sa.Column('to_object_code', sa.String(length=20), nullable=True),
        sa.Column('to_cost_center', sa.String(length=20), nullable=True),
        sa.Column('from_allocation_id', sa.Integer(),
                  sa.ForeignKey('budget_allocation.id'), nullable=False),
        sa.Column('to_allocation_id', sa.Integer(),
                  sa.ForeignKey('budget_allocation.id'), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('date_created', sa.Date(), nullable=False),
        *_timestamps(),
    )
    for column in ('financial_year', 'from_allocation_id', 'to_allocation_id'):
        op.create_index(f'ix_budget_adjustment_{column}', 'budget_adjustment', [column])

    op.create_table(
        'budget_release',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('allocation_id', sa.Integer(),
                  sa.ForeignKey('budget_allocation.id'), nullable=False),
        sa.Column('adjustment_id', sa.Integer(),
                  sa.ForeignKey('budget_adjustment.id', ondelete='CASCADE'), nullable=True),
        sa.Column('object_code', sa.String(length=20), nullable=False),
        sa.Column('code_description', sa.String(length=300), nullable=True),
        sa.Column('cost_center', sa.String(length=20), nullable=False),
        sa.Column('cost_center_name', sa.String(length=300), nullable=True),
        sa.Column('financial_year', sa.String(length=9), nullable=False),
        sa.Column('quarter', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('amount', sa.Numeric(15, 2), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('date_released', sa.Date(), nullable=False),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    for column in ('allocation_id', 'adjustment_id', 'financial_year'):
        op.create_index(f'ix_budget_release_{column}', 'budget_release', [column])

    op.create_table(
        'budget_entry',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('object_code', sa.String(length=20), nullable=False),
        sa.Column('cost_center', sa.String(length=20), nullable=False),
        sa.Column('cost_center_name', sa.String(length=300), nullable=True),
        sa.Column('category_name', sa.String(length=300), nullable=True),
        sa.Column('financial_year', sa.String(length=9), nullable=False),
        sa.Column('amount', sa.Numeric(15, 2), nullable=False, server_default='0'),
        sa.Column('spent', sa.Numeric(15, 2), nullable=False, server_default='0'),
        sa.Column('remaining', sa.Numeric(15, 2), nullable=False, server_default='0'),
        sa.Column('period', sa.String(length=20), nullable=False, server_default='yearly'),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
    )
    for column in ('object_code', 'cost_center', 'financial_year'):
        op.create_index(f'ix_budget_entry_{column}', 'budget_entry', [column])


def downgrade() -> None:
    op.drop_table('budget_entry')
    op.drop_table('budget_release')
    op.drop_table('budget_adjustment')
    op.drop_table('budget_allocation')
    op.drop_table('cost_center')
    op.drop_table('object_code')
