"""add multi-coach fields, business plan and session version

Revision ID: 0002_multi_coach_fields
Revises: 0001_initial
Create Date: 2025-11-18 16:40:02.551937

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0002_multi_coach_fields'
down_revision: Union[str, None] = '0001_initial'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    session_columns = [col['name'] for col in inspector.get_columns('coaching_sessions')]
    project_columns = [col['name'] for col in inspector.get_columns('projects')]

    # New columns stay nullable: existing sessions predate them and are read with defaults
    with op.batch_alter_table('coaching_sessions', schema=None) as batch_op:
        if 'coach_type' not in session_columns:
            batch_op.add_column(sa.Column('coach_type', sa.String(length=32), nullable=True))
        if 'coaching_style' not in session_columns:
            batch_op.add_column(sa.Column('coaching_style', sa.String(length=32), nullable=True))
        if 'stage' not in session_columns:
            batch_op.add_column(sa.Column('stage', sa.String(length=32), nullable=True))
        if 'business_profile' not in session_columns:
            batch_op.add_column(sa.Column('business_profile', sa.JSON(), nullable=True))
        if 'plan' not in session_columns:
            batch_op.add_column(sa.Column('plan', sa.JSON(), nullable=True))
        if 'version' not in session_columns:
            batch_op.add_column(sa.Column('version', sa.Integer(), nullable=False, server_default='1'))

    with op.batch_alter_table('projects', schema=None) as batch_op:
        if 'plan' not in project_columns:
            batch_op.add_column(sa.Column('plan', sa.JSON(), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table('projects', schema=None) as batch_op:
        batch_op.drop_column('plan')

    with op.batch_alter_table('coaching_sessions', schema=None) as batch_op:
        batch_op.drop_column('version')
        batch_op.drop_column('plan')
        batch_op.drop_column('business_profile')
        batch_op.drop_column('stage')
        batch_op.drop_column('coaching_style')
        batch_op.drop_column('coach_type')
