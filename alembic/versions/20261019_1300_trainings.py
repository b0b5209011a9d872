"""Worker trainings

Revision ID: 20261019_1300
Revises: 20261019_1200
Create Date: 2026-10-19 13:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '20261019_1300'
down_revision: Union[str, None] = '20261019_1200'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'trainings',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('worker_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('workers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('course_name', sa.String(200), nullable=False),
        sa.Column('institution', sa.String(200), nullable=False),
        sa.Column('training_date', sa.Date, nullable=False),
        sa.Column('duration', sa.String(50), nullable=False,
                  comment="Free text, e.g. '40 horas'"),
        sa.Column('certificate_file', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_trainings_worker_id', 'trainings', ['worker_id'])
    op.create_index('ix_trainings_training_date', 'trainings', ['training_date'])


def downgrade() -> None:
    op.drop_index('ix_trainings_training_date', table_name='trainings')
    op.drop_index('ix_trainings_worker_id', table_name='trainings')
    op.drop_table('trainings')
