"""create user and completed_session tables

Revision ID: 5c2a9d7e41b0
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2a9d7e41b0'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    tables = set(insp.get_table_names())
    if 'user' not in tables:
        op.create_table(
            'user',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('username', sa.String(length=64), nullable=False),
            sa.Column('wins', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index('ix_user_username', 'user', ['username'], unique=True)
    if 'completed_session' not in tables:
        op.create_table(
            'completed_session',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('round_id', sa.String(length=32), nullable=False),
            sa.Column('opened_at', sa.Float(), nullable=False),
            sa.Column('closed_at', sa.Float(), nullable=False),
            sa.Column('winning_number', sa.Integer(), nullable=False),
            sa.Column('players', sa.Text(), nullable=False),
            sa.Column('winners', sa.Text(), nullable=False),
        )
        op.create_index('ix_completed_session_round_id', 'completed_session', ['round_id'], unique=True)


def downgrade():
    op.drop_index('ix_completed_session_round_id', table_name='completed_session')
    op.drop_table('completed_session')
    op.drop_index('ix_user_username', table_name='user')
    op.drop_table('user')
