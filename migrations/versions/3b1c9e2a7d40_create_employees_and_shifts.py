"""create employees and shifts

Revision ID: 3b1c9e2a7d40
Revises:
Create Date: 2025-11-03 10:12:44.118203
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

revision: str = '3b1c9e2a7d40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SHIFT_TYPES = ('specific_hours', 'full_day', 'half_day', 'sick_leave', 'unavailable')
HALF_DAY_TYPES = ('morning', 'afternoon')


def _audit_columns():
    return [
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(length=36), nullable=True),
        sa.Column('updated_by', sa.String(length=36), nullable=True),
    ]


def upgrade() -> None:
    connection = op.get_bind()
    tables = inspect(connection).get_table_names()

    if 'employees' not in tables:
        op.create_table(
            'employees',
            *_audit_columns(),
            sa.Column('user_id', sa.String(length=36), nullable=False),
            sa.Column('first_name', sa.String(length=50), nullable=False),
            sa.Column('last_name', sa.String(length=50), nullable=False),
            sa.Column('role', sa.String(length=30), nullable=False),
            sa.Column('is_active', sa.Boolean(), nullable=True),
        )
        op.create_index('ix_employees_id', 'employees', ['id'])
        op.create_index('ix_employees_user_id', 'employees', ['user_id'], unique=True)
        print("✓ [3b1c9e2a7d40] Created employees")
    else:
        print("✓ [3b1c9e2a7d40] employees already exists - skipping")

    if 'shifts' not in tables:
        op.create_table(
            'shifts',
            *_audit_columns(),
            sa.Column('user_id', sa.String(length=36), nullable=False),
            sa.Column('shift_date', sa.Date(), nullable=False),
            sa.Column('shift_type', sa.Enum(*SHIFT_TYPES, name='shift_type'), nullable=False),
            sa.Column('start_time', sa.Time(), nullable=True),
            sa.Column('end_time', sa.Time(), nullable=True),
            sa.Column('half_day_type', sa.Enum(*HALF_DAY_TYPES, name='half_day_type'), nullable=True),
            sa.Column('start_date', sa.Date(), nullable=True),
            sa.Column('end_date', sa.Date(), nullable=True),
            sa.Column('notes', sa.Text(), nullable=True),
        )
        op.create_index('ix_shifts_id', 'shifts', ['id'])
        op.create_index('ix_shifts_user_date', 'shifts', ['user_id', 'shift_date'])
        print("✓ [3b1c9e2a7d40] Created shifts")
    else:
        print("✓ [3b1c9e2a7d40] shifts already exists - skipping")


def downgrade() -> None:
    op.drop_index('ix_shifts_user_date', table_name='shifts')
    op.drop_index('ix_shifts_id', table_name='shifts')
    op.drop_table('shifts')
    op.drop_index('ix_employees_user_id', table_name='employees')
    op.drop_index('ix_employees_id', table_name='employees')
    op.drop_table('employees')
    sa.Enum(name='half_day_type').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='shift_type').drop(op.get_bind(), checkfirst=True)
