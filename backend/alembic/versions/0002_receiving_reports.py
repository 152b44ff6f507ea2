"""receiving reports

Revision ID: 0002_receiving_reports
Revises: 0001_initial
Create Date: 2026-10-19 15:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '0002_receiving_reports'
down_revision: Union[str, None] = '0001_initial'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


report_type = postgresql.ENUM('receiving_report', 'inventory_summary', 'custom', name='report_type', create_type=False)


def upgrade() -> None:
    report_type.create(op.get_bind(), checkfirst=True)

    op.create_table(
        'reports',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('report_type', report_type, nullable=False),
        sa.Column('date_range', sa.String(), nullable=False),
        sa.Column('data', sa.JSON(), nullable=False),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_quantity', sa.Integer(), nullable=False),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_reports_id', 'reports', ['id'])
    op.create_index('ix_reports_report_type', 'reports', ['report_type'])
    op.create_index('ix_reports_created_by', 'reports', ['created_by'])

    op.create_table(
        'report_access',
        sa.Column('report_id', sa.Integer(), sa.ForeignKey('reports.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('granted_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_report_access_user_id', 'report_access', ['user_id'])


def downgrade() -> None:
    op.drop_table('report_access')
    op.drop_table('reports')
    report_type.drop(op.get_bind(), checkfirst=True)
