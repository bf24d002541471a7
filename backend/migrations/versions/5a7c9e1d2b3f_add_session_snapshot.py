"""add session_snapshot table

Revision ID: 5a7c9e1d2b3f
Revises:
Create Date: 2026-10-17 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5a7c9e1d2b3f'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'session_snapshot' in insp.get_table_names():
        return
    op.create_table(
        'session_snapshot',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('payload', sa.Text(), nullable=False),
        sa.Column('saved_at', sa.Float(), nullable=False),
    )


def downgrade():
    op.drop_table('session_snapshot')
