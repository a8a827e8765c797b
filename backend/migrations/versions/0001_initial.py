"""accounts, repairs, history and notes

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-16
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('accounts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('login_attempts', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('locked_until', sa.DateTime(), nullable=True),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('username', name='uq_accounts_username'),
    )
    op.create_index('ix_accounts_username', 'accounts', ['username'])

    op.create_table('repairs',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('repair_id', sa.String(length=64), nullable=False),
        sa.Column('customer_name', sa.String(length=100), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=False),
        sa.Column('device', sa.String(length=100), nullable=False),
        sa.Column('issue', sa.Text(), nullable=False),
        sa.Column('branch', sa.String(length=16), nullable=False),
        sa.Column('warranty', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('estimated_cost', sa.Numeric(12, 2), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('cost_center', sa.String(length=16), nullable=True),
        sa.Column('received_date', sa.DateTime(), nullable=False),
        sa.Column('return_date', sa.DateTime(), nullable=True),
        sa.Column('image_url', sa.String(length=255), nullable=True),
        sa.Column('qr_code_url', sa.String(length=255), nullable=True),
        sa.Column('created_by_id', sa.Integer(), sa.ForeignKey('accounts.id', ondelete='SET NULL'), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        # authoritative uniqueness for generated and re-registered identifiers
        sa.UniqueConstraint('repair_id', name='uq_repairs_repair_id'),
    )
    op.create_index('ix_repairs_repair_id', 'repairs', ['repair_id'])
    op.create_index('ix_repairs_branch', 'repairs', ['branch'])
    op.create_index('ix_repairs_status', 'repairs', ['status'])
    op.create_index('ix_repairs_received_date', 'repairs', ['received_date'])

    op.create_table('repair_history',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('repair_pk', sa.String(length=32), sa.ForeignKey('repairs.id', ondelete='CASCADE'), nullable=False),
        sa.Column('action', sa.String(length=128), nullable=False),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('accounts.id', ondelete='SET NULL'), nullable=True),
        sa.Column('user_name', sa.String(length=50), nullable=False),
        sa.Column('notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_repair_history_repair_pk', 'repair_history', ['repair_pk'])

    op.create_table('repair_notes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('repair_pk', sa.String(length=32), sa.ForeignKey('repairs.id', ondelete='CASCADE'), nullable=False),
        sa.Column('note_text', sa.Text(), nullable=False),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('accounts.id', ondelete='SET NULL'), nullable=True),
        sa.Column('user_name', sa.String(length=50), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_repair_notes_repair_pk', 'repair_notes', ['repair_pk'])


def downgrade():
    op.drop_index('ix_repair_notes_repair_pk', table_name='repair_notes')
    op.drop_table('repair_notes')
    op.drop_index('ix_repair_history_repair_pk', table_name='repair_history')
    op.drop_table('repair_history')
    for ix in ('ix_repairs_received_date', 'ix_repairs_status', 'ix_repairs_branch', 'ix_repairs_repair_id'):
        op.drop_index(ix, table_name='repairs')
    op.drop_table('repairs')
    op.drop_index('ix_accounts_username', table_name='accounts')
    op.drop_table('accounts')
