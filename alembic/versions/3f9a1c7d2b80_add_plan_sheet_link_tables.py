"""add plan sheet link tables

Revision ID: 3f9a1c7d2b80
Revises:
Create Date: 2026-10-17 09:12:41.208315

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f9a1c7d2b80'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('plans',
    sa.Column('id', sa.UUID(), nullable=False),
    sa.Column('name', sa.String(), nullable=False),
    sa.Column('file_path', sa.String(), nullable=False),
    sa.Column('page_count', sa.Integer(), nullable=True),
    sa.Column('analysis_in_progress', sa.Boolean(), server_default='false', nullable=False, comment='Per-plan analysis run lock'),
    sa.Column('analysis_version', sa.Integer(), server_default='0', nullable=False, comment='Bumped on every lock acquisition'),
    sa.Column('analyzed_at', sa.TIMESTAMP(timezone=True), nullable=True),
    sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default='NOW()', nullable=False),
    sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default='NOW()', nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_table('plan_pages',
    sa.Column('id', sa.UUID(), nullable=False),
    sa.Column('plan_id', sa.UUID(), nullable=False),
    sa.Column('page_number', sa.Integer(), nullable=False),
    sa.Column('sheet_number', sa.String(), nullable=True),
    sa.Column('page_title', sa.String(), nullable=True),
    sa.Column('discipline', sa.String(), nullable=True),
    sa.Column('page_description', sa.Text(), nullable=True),
    sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default='NOW()', nullable=False),
    sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default='NOW()', nullable=False),
    sa.ForeignKeyConstraint(['plan_id'], ['plans.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('plan_id', 'page_number', name='uq_plan_pages_plan_page')
    )
    op.create_table('plan_page_links',
    sa.Column('id', sa.UUID(), nullable=False),
    sa.Column('plan_id', sa.UUID(), nullable=False),
    sa.Column('source_page', sa.Integer(), nullable=False),
    sa.Column('target_page', sa.Integer(), nullable=False),
    sa.Column('reference_text', sa.String(), nullable=False),
    sa.Column('target_sheet_number', sa.String(), nullable=True),
    sa.Column('target_title', sa.String(), nullable=True),
    sa.Column('x_norm', sa.Float(), nullable=False),
    sa.Column('y_norm', sa.Float(), nullable=False),
    sa.Column('width_norm', sa.Float(), nullable=False),
    sa.Column('height_norm', sa.Float(), nullable=False),
    sa.Column('confidence', sa.Float(), nullable=True),
    sa.Column('is_auto', sa.Boolean(), server_default='true', nullable=False),
    sa.Column('dedup_key', sa.String(), nullable=False),
    sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default='NOW()', nullable=False),
    sa.ForeignKeyConstraint(['plan_id'], ['plans.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('plan_id', 'dedup_key', name='uq_plan_page_links_dedup_key')
    )
    op.create_index(op.f('ix_plan_page_links_plan_id'), 'plan_page_links', ['plan_id'], unique=False)
    op.create_table('plan_page_revisions',
    sa.Column('id', sa.UUID(), nullable=False),
    sa.Column('plan_id', sa.UUID(), nullable=False),
    sa.Column('target_page', sa.Integer(), nullable=False),
    sa.Column('sheet_number', sa.String(), nullable=True),
    sa.Column('normalized_sheet_key', sa.String(), nullable=False),
    sa.Column('revision_label', sa.String(), nullable=False),
    sa.Column('revision_sort', sa.Integer(), nullable=True),
    sa.Column('is_current', sa.Boolean(), nullable=True),
    sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default='NOW()', nullable=False),
    sa.ForeignKeyConstraint(['plan_id'], ['plans.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_plan_page_revisions_plan_id'), 'plan_page_revisions', ['plan_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_plan_page_revisions_plan_id'), table_name='plan_page_revisions')
    op.drop_table('plan_page_revisions')
    op.drop_index(op.f('ix_plan_page_links_plan_id'), table_name='plan_page_links')
    op.drop_table('plan_page_links')
    op.drop_table('plan_pages')
    op.drop_table('plans')
