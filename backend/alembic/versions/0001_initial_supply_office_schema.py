"""initial supply office schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# Enum types are created once up front; request_status is shared by two tables
user_role = postgresql.ENUM('admin', 'employee', name='user_role', create_type=False)
request_status = postgresql.ENUM('pending', 'approved', 'denied', 'partial', name='request_status', create_type=False)
request_type = postgresql.ENUM('single', 'bulk', name='request_type', create_type=False)
category_change_type = postgresql.ENUM(
    'item_added', 'quantity_change', 'location_change', 'cost_change', 'purchase',
    name='category_change_type', create_type=False,
)
audit_entity_type = postgresql.ENUM('inventory', 'user', 'category', 'request', name='audit_entity_type', create_type=False)
audit_action = postgresql.ENUM('create', 'update', 'delete', 'approve', 'deny', name='audit_action', create_type=False)
notification_type = postgresql.ENUM('success', 'alert', 'info', name='notification_type', create_type=False)

ENUMS = [user_role, request_status, request_type, category_change_type, audit_entity_type, audit_action, notification_type]


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in ENUMS:
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_categories_id', 'categories', ['id'])
    op.create_index('ix_categories_name', 'categories', ['name'], unique=True)

    op.create_table(
        'inventory_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('supplier', sa.String(), nullable=False),
        sa.Column('date_received', sa.DateTime(timezone=True), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_of_measure', sa.String(), nullable=False),
        sa.Column('item_name', sa.String(), nullable=False),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True),
        sa.Column('location', sa.String(), nullable=False),
        sa.Column('unit_cost', sa.Numeric(12, 2), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(), nullable=True),
        sa.Column('updated_by', sa.String(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_by', sa.String(), nullable=True),
        sa.CheckConstraint('quantity >= 0', name='ck_inventory_items_quantity_non_negative'),
        sa.CheckConstraint('unit_cost >= 0', name='ck_inventory_items_unit_cost_non_negative'),
    )
    op.create_index('ix_inventory_items_id', 'inventory_items', ['id'])

    op.create_table(
        'category_history',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('categories.id', ondelete='CASCADE'), nullable=False),
        sa.Column('item_id', sa.Integer(), sa.ForeignKey('inventory_items.id', ondelete='SET NULL'), nullable=True),
        sa.Column('change_type', category_change_type, nullable=False),
        sa.Column('previous_value', sa.JSON(), nullable=True),
        sa.Column('new_value', sa.JSON(), nullable=True),
        sa.Column('changed_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_category_history_id', 'category_history', ['id'])
    op.create_index('ix_category_history_category_id', 'category_history', ['category_id'])

    op.create_table(
        'inventory_requests',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('employee_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('request_type', request_type, nullable=False),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.Column('item_statuses', sa.JSON(), nullable=True),
        sa.Column('status', request_status, nullable=False),
        sa.Column('reviewed_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_inventory_requests_id', 'inventory_requests', ['id'])
    op.create_index('ix_inventory_requests_employee_id', 'inventory_requests', ['employee_id'])
    op.create_index('ix_inventory_requests_status', 'inventory_requests', ['status'])

    op.create_table(
        'released_order_requests',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('employee_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('department_office', sa.String(), nullable=False),
        sa.Column('rs_no', sa.String(), nullable=True),
        sa.Column('is_partial_release', sa.Boolean(), nullable=False),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.Column('item_statuses', sa.JSON(), nullable=True),
        sa.Column('status', request_status, nullable=False),
        sa.Column('reviewed_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('report_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_released_order_requests_id', 'released_order_requests', ['id'])
    op.create_index('ix_released_order_requests_employee_id', 'released_order_requests', ['employee_id'])
    op.create_index('ix_released_order_requests_status', 'released_order_requests', ['status'])
    op.create_index('ix_released_order_requests_report_id', 'released_order_requests', ['report_id'])

    op.create_table(
        'released_order_reports',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('sro_no', sa.String(), nullable=True),
        sa.Column('rs_no', sa.String(), nullable=True),
        sa.Column('department_office', sa.String(), nullable=False),
        sa.Column('is_partial_release', sa.Boolean(), nullable=False),
        sa.Column('request_id', sa.Integer(), sa.ForeignKey('released_order_requests.id', ondelete='SET NULL'), nullable=True),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('released_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('received_by', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_released_order_reports_id', 'released_order_reports', ['id'])
    op.create_index('ix_released_order_reports_sro_no', 'released_order_reports', ['sro_no'], unique=True)
    op.create_index('ix_released_order_reports_released_by', 'released_order_reports', ['released_by'])

    op.create_table(
        'audit_events',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('entity_type', audit_entity_type, nullable=False),
        sa.Column('entity_id', sa.String(), nullable=False),
        sa.Column('action', audit_action, nullable=False),
        sa.Column('actor_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('actor_snapshot', sa.JSON(), nullable=True),
        sa.Column('before', sa.JSON(), nullable=True),
        sa.Column('after', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_audit_events_id', 'audit_events', ['id'])
    op.create_index('ix_audit_events_entity_type', 'audit_events', ['entity_type'])
    op.create_index('ix_audit_events_created_at', 'audit_events', ['created_at'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', notification_type, nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('target_route', sa.String(), nullable=True),
        sa.Column('read', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_notifications_id', 'notifications', ['id'])
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])


def downgrade() -> None:
    for table in (
        'notifications',
        'audit_events',
        'released_order_reports',
        'released_order_requests',
        'inventory_requests',
        'category_history',
        'inventory_items',
        'categories',
        'users',
    ):
        op.drop_table(table)
    bind = op.get_bind()
    for enum_type in reversed(ENUMS):
        enum_type.drop(bind, checkfirst=True)
