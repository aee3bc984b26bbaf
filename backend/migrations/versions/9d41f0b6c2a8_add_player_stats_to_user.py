"""add games_played, wins, total_score and level to user

Revision ID: 9d41f0b6c2a8
Revises: 5c2e9a1d7b30
Create Date: 2026-10-18 00:10:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '9d41f0b6c2a8'
down_revision = '5c2e9a1d7b30'
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    cols = {c['name'] for c in insp.get_columns('user')}
    with op.batch_alter_table('user') as batch_op:
        if 'games_played' not in cols:
            batch_op.add_column(sa.Column('games_played', sa.Integer(), nullable=False, server_default='0'))
        if 'wins' not in cols:
            batch_op.add_column(sa.Column('wins', sa.Integer(), nullable=False, server_default='0'))
        if 'total_score' not in cols:
            batch_op.add_column(sa.Column('total_score', sa.Integer(), nullable=False, server_default='0'))
        if 'level' not in cols:
            batch_op.add_column(sa.Column('level', sa.Integer(), nullable=False, server_default='1'))


def downgrade():
    with op.batch_alter_table('user') as batch_op:
        batch_op.drop_column('level')
        batch_op.drop_column('total_score')
        batch_op.drop_column('wins')
        batch_op.drop_column('games_played')
