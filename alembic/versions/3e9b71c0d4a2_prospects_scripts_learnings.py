"""Initial schema: prospects, scripts, learnings

Revision ID: 3e9b71c0d4a2
Revises:
Create Date: 2026-10-12 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3e9b71c0d4a2'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('prospects',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('source', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), nullable=False, server_default='new'),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('signal', sa.Text(), nullable=True),
        sa.Column('platform_link', sa.Text(), nullable=True),
        sa.Column('priority', sa.Text(), nullable=False, server_default='low'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            "status IN ('new', 'contacted', 'qualified', 'converted', 'lost')",
            name='ck_prospect_status',
        ),
        sa.CheckConstraint('score >= 0 AND score <= 100', name='ck_prospect_score_range'),
    )
    op.create_index('ix_prospects_created_at', 'prospects', ['created_at'])

    op.create_table('scripts',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('prospect_id', sa.Text(), nullable=True),
        sa.Column('tenant_id', sa.Text(), nullable=False, server_default='default'),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('script_type', sa.Text(), nullable=False, server_default='approach'),
        sa.Column('feedback', sa.Text(), nullable=True),
        sa.Column('feedback_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['prospect_id'], ['prospects.id'], ondelete='SET NULL'),
        sa.CheckConstraint(
            "script_type IN ('approach', 'follow_up', 'objection')",
            name='ck_script_type',
        ),
        sa.CheckConstraint(
            "feedback IS NULL OR feedback IN ('no_response', 'got_reply', 'converted')",
            name='ck_script_feedback_value',
        ),
        sa.CheckConstraint('(feedback IS NULL) = (feedback_at IS NULL)', name='ck_script_feedback_pair'),
    )
    op.create_index('ix_scripts_prospect_id', 'scripts', ['prospect_id'])
    op.create_index('ix_scripts_tenant_id', 'scripts', ['tenant_id'])
    op.create_index('ix_scripts_feedback', 'scripts', ['feedback'])

    op.create_table('learnings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('learning_type', sa.Text(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('context', sa.JSON(), nullable=True),
        sa.Column('success_count', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        # ON CONFLICT (content) target for the hive upsert
        sa.UniqueConstraint('content', name='uq_learning_content'),
        sa.CheckConstraint('success_count >= 1', name='ck_learning_success_count'),
    )
    op.create_index('ix_learnings_learning_type', 'learnings', ['learning_type'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_learnings_learning_type', 'learnings')
    op.drop_table('learnings')
    op.drop_index('ix_scripts_feedback', 'scripts')
    op.drop_index('ix_scripts_tenant_id', 'scripts')
    op.drop_index('ix_scripts_prospect_id', 'scripts')
    op.drop_table('scripts')
    op.drop_index('ix_prospects_created_at', 'prospects')
    op.drop_table('prospects')
