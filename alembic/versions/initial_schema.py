"""initial schema: departments, admins, issues, audit trail, notifications

Creates every table the service uses and seeds the five city departments that
issue categories are routed to.

Revision ID: initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'initial_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CATEGORY = sa.Enum('pothole', 'streetlight', 'sanitation', 'traffic', 'vandalism', 'other', name='issuecategory')
STATUS = sa.Enum('submitted', 'in_progress', 'resolved', 'closed', name='issuestatus')
PRIORITY = sa.Enum('low', 'medium', 'high', 'urgent', name='issuepriority')
ROLE = sa.Enum('super_admin', 'admin', 'staff', name='adminrole')
UPDATE_TYPE = sa.Enum('status_change', 'assignment', 'comment', name='updatetype')
NOTIFICATION_TYPE = sa.Enum('issue_submitted', 'status_update', 'assignment', name='notificationtype')

DEPARTMENTS = [
    ('Public Works', 'Roads, potholes and pavement'),
    ('Utilities', 'Street lighting and public utilities'),
    ('Sanitation', 'Trash, recycling and cleanliness'),
    ('Transportation', 'Traffic signals, signs and road safety'),
    ('Code Enforcement', 'Graffiti, vandalism and property damage'),
]


def upgrade() -> None:
    """Upgrade schema."""
    departments = op.create_table(
        'departments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('contact_email', sa.String(length=255), nullable=True),
        sa.Column('contact_phone', sa.String(length=30), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_departments_name', 'departments', ['name'], unique=True)

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'admin_users',
        sa.Column('id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('full_name', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role', ROLE, nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('department_id', sa.Integer(), sa.ForeignKey('departments.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_admin_users_full_name', 'admin_users', ['full_name'])
    op.create_index('ix_admin_users_email', 'admin_users', ['email'], unique=True)

    op.create_table(
        'issues',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.String(length=4000), nullable=False),
        sa.Column('category', CATEGORY, nullable=False),
        sa.Column('status', STATUS, server_default='submitted', nullable=False),
        sa.Column('priority', PRIORITY, server_default='medium', nullable=False),
        sa.Column('location_address', sa.String(length=300), nullable=False),
        sa.Column('assigned_department', sa.String(length=120), nullable=True),
        sa.Column('assigned_to', sa.Integer(), sa.ForeignKey('admin_users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('citizen_name', sa.String(length=120), nullable=True),
        sa.Column('citizen_email', sa.String(length=255), nullable=True),
        sa.Column('citizen_phone', sa.String(length=30), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
    )
    for col in ('title', 'category', 'status', 'priority', 'assigned_department', 'assigned_to', 'created_at'):
        op.create_index(f'ix_issues_{col}', 'issues', [col])

    op.create_table(
        'issue_updates',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('issue_id', sa.Integer(), sa.ForeignKey('issues.id', ondelete='CASCADE'), nullable=False),
        sa.Column('update_type', UPDATE_TYPE, nullable=False),
        sa.Column('old_value', sa.String(length=255), nullable=True),
        sa.Column('new_value', sa.String(length=255), nullable=True),
        sa.Column('comment', sa.String(length=4000), nullable=True),
        sa.Column('updated_by', sa.Integer(), sa.ForeignKey('admin_users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_issue_updates_issue_id', 'issue_updates', ['issue_id'])
    op.create_index('ix_issue_updates_created_at', 'issue_updates', ['created_at'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('recipient_id', sa.Integer(), sa.ForeignKey('admin_users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', NOTIFICATION_TYPE, nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.String(length=1000), nullable=False),
        sa.Column('is_read', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('issue_id', sa.Integer(), sa.ForeignKey('issues.id', ondelete='SET NULL'), nullable=True),
        sa.Column('email_sent', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_notifications_recipient_id', 'notifications', ['recipient_id'])
    op.create_index('ix_notifications_is_read', 'notifications', ['is_read'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])

    op.create_table(
        'notification_preferences',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('admin_user_id', sa.Integer(), sa.ForeignKey('admin_users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('email_notifications', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('new_issues', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('status_changes', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('assignments', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('high_priority_only', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_notification_preferences_admin_user_id', 'notification_preferences',
                    ['admin_user_id'], unique=True)

    op.bulk_insert(departments, [{'name': n, 'description': d} for n, d in DEPARTMENTS])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('notification_preferences')
    op.drop_table('notifications')
    op.drop_table('issue_updates')
    op.drop_table('issues')
    op.drop_table('admin_users')
    op.drop_table('users')
    op.drop_table('departments')
    bind = op.get_bind()
    for enum in (NOTIFICATION_TYPE, UPDATE_TYPE, ROLE, PRIORITY, STATUS, CATEGORY):
        enum.drop(bind, checkfirst=True)
