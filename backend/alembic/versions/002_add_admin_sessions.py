"""add admin_sessions table for the shared session registry

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'admin_sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('admin_id', sa.String(length=50), nullable=False),
        sa.Column('issued_at', sa.DateTime(), nullable=False),
        sa.Column('force_logout', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('logout_time', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    # Checked on every authenticated admin request
    op.create_index('ix_admin_sessions_admin_id', 'admin_sessions', ['admin_id'], unique=True)


def downgrade() -> None:
    op.drop_index('ix_admin_sessions_admin_id', table_name='admin_sessions')
    op.drop_table('admin_sessions')
