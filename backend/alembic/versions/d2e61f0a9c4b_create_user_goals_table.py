"""create user_goals table with row level security

Revision ID: d2e61f0a9c4b
Revises:
Create Date: 2025-05-24 10:15:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'd2e61f0a9c4b'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# `sub` claim of the JWT PostgREST verified for the current request
JWT_SUB = "(current_setting('request.jwt.claims', true)::json ->> 'sub')"

POLICIES = {
    'user_goals_select_own': f"FOR SELECT USING ({JWT_SUB} = user_id)",
    'user_goals_insert_own': f"FOR INSERT WITH CHECK ({JWT_SUB} = user_id)",
    'user_goals_update_own': f"FOR UPDATE USING ({JWT_SUB} = user_id) WITH CHECK ({JWT_SUB} = user_id)",
}


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    tables = inspector.get_table_names()
    if 'user_goals' not in tables:
        op.create_table(
            'user_goals',
            sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
            sa.Column('user_id', sa.String(), nullable=False),
            sa.Column('daily_goal_minutes', sa.Integer(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.CheckConstraint('daily_goal_minutes > 0', name='ck_user_goals_positive_minutes'),
        )
        op.create_index('ix_user_goals_id', 'user_goals', ['id'])
        op.create_index('ix_user_goals_user_id', 'user_goals', ['user_id'], unique=True)

    # Row level security only exists on Postgres (Supabase)
    if bind.dialect.name == 'postgresql':
        op.execute('ALTER TABLE user_goals ENABLE ROW LEVEL SECURITY')
        for name, clause in POLICIES.items():
            op.execute(f'DROP POLICY IF EXISTS {name} ON user_goals')
            op.execute(f'CREATE POLICY {name} ON user_goals {clause}')


def downgrade() -> None:
    # Safe drop if exists
    op.execute('DROP TABLE IF EXISTS user_goals')
