"""Labor administration initial schema

Revision ID: 20261019_1200
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '20261019_1200'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# SQLAlchemy stores Python enums by member name
user_role = postgresql.ENUM(
    'SUPER_ADMIN', 'ADMIN', 'HR', 'MANAGEMENT', 'USER',
    name='userrole', create_type=False,
)
employment_state = postgresql.ENUM(
    'ACTIVE', 'MEDICAL_LEAVE', 'ADMINISTRATIVE_PERMIT', 'TERMINATED',
    name='employmentstate', create_type=False,
)
health_insurance = postgresql.ENUM(
    'FONASA', 'ISAPRE',
    name='healthinsurance', create_type=False,
)
pension_fund = postgresql.ENUM(
    'HABITAT', 'PROVIDA', 'MODELO', 'CUPRUM', 'CAPITAL', 'PLANVITAL', 'UNO',
    name='pensionfund', create_type=False,
)
labor_change_type = postgresql.ENUM(
    'HIRE', 'TERMINATION', 'ROLE_CHANGE', 'DEPARTMENT_CHANGE', 'CONTRACT_TYPE_CHANGE',
    'SALARY_CHANGE', 'SCHEDULE_CHANGE', 'LEAVE', 'LEAVE_END', 'MANUAL',
    name='laborchangetype', create_type=False,
)
leave_type = postgresql.ENUM(
    'MEDICAL_LEAVE', 'ADMINISTRATIVE_PERMIT',
    name='leavetype', create_type=False,
)
leave_request_status = postgresql.ENUM(
    'PENDING', 'APPROVED', 'REJECTED',
    name='leaverequeststatus', create_type=False,
)
bonus_category = postgresql.ENUM(
    'STATE', 'COMPANY',
    name='bonuscategory', create_type=False,
)
bonus_recurrence = postgresql.ENUM(
    'PERMANENT', 'RECURRING', 'ONE_OFF',
    name='bonusrecurrence', create_type=False,
)

ENUM_TYPES = (
    user_role, employment_state, health_insurance, pension_fund, labor_change_type,
    leave_type, leave_request_status, bonus_category, bonus_recurrence,
)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # Create enum types if they don't exist
    for enum_type in ENUM_TYPES:
        enum_type.create(op.get_bind(), checkfirst=True)

    # Users
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('rut', sa.String(12), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('role', user_role, nullable=False, server_default='USER'),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.text('true')),
        *_timestamps(),
    )
    op.create_index('ix_users_rut', 'users', ['rut'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # Workers
    op.create_table(
        'workers',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('rut', sa.String(12), nullable=False, comment='Chilean national ID, formatted 12.345.678-5'),
        sa.Column('first_names', sa.String(100), nullable=False),
        sa.Column('paternal_surname', sa.String(100), nullable=False),
        sa.Column('maternal_surname', sa.String(100), nullable=False),
        sa.Column('birth_date', sa.Date, nullable=True),
        sa.Column('phone', sa.String(12), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('emergency_phone', sa.String(12), nullable=True),
        sa.Column('address', sa.String(255), nullable=False),
        sa.Column('hire_date', sa.Date, nullable=False),
        sa.Column('in_system', sa.Boolean, nullable=False, server_default=sa.text('true')),
        *_timestamps(),
    )
    op.create_index('ix_workers_rut', 'workers', ['rut'], unique=True)
    op.create_index('ix_workers_email', 'workers', ['email'], unique=True)

    # Employment records (one per worker)
    op.create_table(
        'employment_records',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('worker_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('workers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('job_title', sa.String(100), nullable=False),
        sa.Column('department', sa.String(100), nullable=False),
        sa.Column('contract_type', sa.String(50), nullable=False),
        sa.Column('work_schedule', sa.String(50), nullable=True),
        sa.Column('base_salary', sa.Integer, nullable=False, server_default=sa.text('0')),
        sa.Column('health_insurance', health_insurance, nullable=True),
        sa.Column('pension_fund', pension_fund, nullable=True),
        sa.Column('unemployment_insurance', sa.Boolean, nullable=True),
        sa.Column('contract_start_date', sa.Date, nullable=False),
        sa.Column('contract_end_date', sa.Date, nullable=True),
        sa.Column('state', employment_state, nullable=False, server_default='ACTIVE'),
        sa.Column('termination_reason', sa.Text, nullable=True),
        sa.Column('leave_start_date', sa.Date, nullable=True),
        sa.Column('leave_end_date', sa.Date, nullable=True),
        sa.Column('leave_reason', sa.Text, nullable=True),
        sa.Column('contract_file', sa.String(255), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('worker_id', name='uq_employment_records_worker_id'),
        sa.CheckConstraint('base_salary >= 0', name='ck_employment_records_base_salary_non_negative'),
    )
    op.create_index('ix_employment_records_state', 'employment_records', ['state'])

    # Leave / permission requests
    op.create_table(
        'leave_requests',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('worker_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('workers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('leave_type', leave_type, nullable=False),
        sa.Column('start_date', sa.Date, nullable=False),
        sa.Column('end_date', sa.Date, nullable=False),
        sa.Column('reason', sa.Text, nullable=False),
        sa.Column('attachment_file', sa.String(255), nullable=True),
        sa.Column('status', leave_request_status, nullable=False, server_default='PENDING'),
        sa.Column('reviewer_comment', sa.Text, nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reviewed_by_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('end_date > start_date', name='ck_leave_requests_leave_dates_ordered'),
    )
    op.create_index('ix_leave_requests_worker_id', 'leave_requests', ['worker_id'])
    op.create_index('ix_leave_requests_status', 'leave_requests', ['status'])

    # Employment history ledger
    op.create_table(
        'employment_history',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('worker_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('workers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('change_type', labor_change_type, nullable=False),
        sa.Column('employment_state', employment_state, nullable=False),
        sa.Column('job_title', sa.String(100), nullable=False),
        sa.Column('department', sa.String(100), nullable=False),
        sa.Column('contract_type', sa.String(50), nullable=False),
        sa.Column('work_schedule', sa.String(50), nullable=True),
        sa.Column('base_salary', sa.Integer, nullable=False, server_default=sa.text('0')),
        sa.Column('start_date', sa.Date, nullable=False),
        sa.Column('end_date', sa.Date, nullable=True),
        sa.Column('end_reason', sa.Text, nullable=True),
        sa.Column('contract_file', sa.String(255), nullable=True),
        sa.Column('leave_request_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('leave_requests.id', ondelete='SET NULL'), nullable=True),
        sa.Column('registered_by_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('end_date IS NULL OR end_date >= start_date',
                           name='ck_employment_history_entry_dates_ordered'),
    )
    op.create_index('ix_employment_history_worker_id', 'employment_history', ['worker_id'])
    # At most one open entry per worker
    op.create_index(
        'ix_employment_history_one_open_per_worker',
        'employment_history',
        ['worker_id'],
        unique=True,
        postgresql_where=sa.text('end_date IS NULL'),
    )

    # Bonus catalog
    op.create_table(
        'bonuses',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('amount', sa.String(20), nullable=False),
        sa.Column('category', bonus_category, nullable=False, server_default='COMPANY'),
        sa.Column('recurrence', bonus_recurrence, nullable=False, server_default='ONE_OFF'),
        sa.Column('taxable', sa.Boolean, nullable=False, server_default=sa.text('true')),
        sa.Column('duration_months', sa.Integer, nullable=True),
        sa.Column('description', sa.Text, nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('name', name='uq_bonuses_name'),
    )

    # Bonus assignments
    op.create_table(
        'bonus_assignments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('bonus_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('bonuses.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('employment_record_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('employment_records.id', ondelete='CASCADE'), nullable=False),
        sa.Column('assignment_date', sa.Date, nullable=False),
        sa.Column('end_date', sa.Date, nullable=True),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.text('true')),
        sa.Column('notes', sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_bonus_assignments_bonus_id', 'bonus_assignments', ['bonus_id'])
    op.create_index('ix_bonus_assignments_employment_record_id', 'bonus_assignments', ['employment_record_id'])


def downgrade() -> None:
    # Drop tables (children first)
    op.drop_index('ix_bonus_assignments_employment_record_id', table_name='bonus_assignments')
    op.drop_index('ix_bonus_assignments_bonus_id', table_name='bonus_assignments')
    op.drop_table('bonus_assignments')
    op.drop_table('bonuses')

    op.drop_index('ix_employment_history_one_open_per_worker', table_name='employment_history')
    op.drop_index('ix_employment_history_worker_id', table_name='employment_history')
    op.drop_table('employment_history')

    op.drop_index('ix_leave_requests_status', table_name='leave_requests')
    op.drop_index('ix_leave_requests_worker_id', table_name='leave_requests')
    op.drop_table('leave_requests')

    op.drop_index('ix_employment_records_state', table_name='employment_records')
    op.drop_table('employment_records')

    op.drop_index('ix_workers_email', table_name='workers')
    op.drop_index('ix_workers_rut', table_name='workers')
    op.drop_table('workers')

    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_rut', table_name='users')
    op.drop_table('users')

    # Drop enum types
    for enum_type in reversed(ENUM_TYPES):
        op.execute(f"DROP TYPE IF EXISTS {enum_type.name}")
