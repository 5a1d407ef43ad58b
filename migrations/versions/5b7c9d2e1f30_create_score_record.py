"""create score_record table

Revision ID: 5b7c9d2e1f30
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5b7c9d2e1f30'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'score_record' in set(insp.get_table_names()):
        return

    op.create_table(
        'score_record',
        sa.Column('identity', sa.String(length=128), primary_key=True),
        sa.Column('accumulated_score', sa.BigInteger(), nullable=False),
        sa.Column('highest_score', sa.BigInteger(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.Float(), nullable=False),
        sa.Column('updated_at', sa.Float(), nullable=False),
        sa.CheckConstraint('accumulated_score >= 0', name='ck_score_record_accumulated_non_negative'),
        sa.CheckConstraint('highest_score >= 0', name='ck_score_record_highest_non_negative'),
    )
    op.create_index(
        'ix_score_record_ranking',
        'score_record',
        [sa.text('accumulated_score DESC'), 'identity'],
    )


def downgrade():
    op.drop_index('ix_score_record_ranking', table_name='score_record')
    op.drop_table('score_record')
