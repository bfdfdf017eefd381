"""vfs schema

Revision ID: 4f1c9e2a7b30
Revises:
Create Date: 2026-10-19 09:12:05.418233
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '4f1c9e2a7b30'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('projects',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='draft'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    # Files: protection is derived from type but stored for querying
    op.create_table('vfs_files',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('project_id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('path', sa.String(length=1024), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('protection', sa.String(length=20), nullable=False),
        sa.Column('schema', postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column('is_archived', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('archived_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_home', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        'ux_vfs_files_project_path_active', 'vfs_files', ['project_id', 'path'],
        unique=True, postgresql_where=sa.text('NOT is_archived'),
    )
    op.create_index(
        'ux_vfs_files_project_home', 'vfs_files', ['project_id'],
        unique=True, postgresql_where=sa.text('is_home'),
    )
    op.create_index('ix_vfs_files_project_type', 'vfs_files', ['project_id', 'type'])
    op.create_index('ix_vfs_files_project_archived', 'vfs_files', ['project_id', 'is_archived'])

    op.create_table('vfs_blocks',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('file_id', sa.UUID(), nullable=False),
        sa.Column('project_id', sa.UUID(), nullable=False),
        sa.Column('type', sa.String(length=100), nullable=False),
        sa.Column('props', postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column('events', postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('styles', postgresql.JSONB(), nullable=False),
        sa.Column('constraints', postgresql.JSONB(), nullable=False),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('parent_block_id', sa.UUID(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['file_id'], ['vfs_files.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['parent_block_id'], ['vfs_blocks.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_vfs_blocks_file_order', 'vfs_blocks', ['file_id', 'order'])
    op.create_index('ix_vfs_blocks_parent_order', 'vfs_blocks', ['parent_block_id', 'order'])
    op.create_index('ix_vfs_blocks_project_type', 'vfs_blocks', ['project_id', 'type'])

    # Versions are append-only; no updated_at
    op.create_table('vfs_versions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('project_id', sa.UUID(), nullable=False),
        sa.Column('label', sa.String(length=255), nullable=True),
        sa.Column('snapshot', postgresql.JSONB(), nullable=False),
        sa.Column('trigger', sa.String(length=30), nullable=False, server_default='auto'),
        sa.Column('metadata', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_vfs_versions_project_created', 'vfs_versions', ['project_id', 'created_at'])
    op.create_index('ix_vfs_versions_project_label', 'vfs_versions', ['project_id', 'label'])


def downgrade() -> None:
    op.drop_index('ix_vfs_versions_project_label', table_name='vfs_versions')
    op.drop_index('ix_vfs_versions_project_created', table_name='vfs_versions')
    op.drop_table('vfs_versions')
    op.drop_index('ix_vfs_blocks_project_type', table_name='vfs_blocks')
    op.drop_index('ix_vfs_blocks_parent_order', table_name='vfs_blocks')
    op.drop_index('ix_vfs_blocks_file_order', table_name='vfs_blocks')
    op.drop_table('vfs_blocks')
    op.drop_index('ix_vfs_files_project_archived', table_name='vfs_files')
    op.drop_index('ix_vfs_files_project_type', table_name='vfs_files')
    op.drop_index('ux_vfs_files_project_home', table_name='vfs_files')
    op.drop_index('ux_vfs_files_project_path_active', table_name='vfs_files')
    op.drop_table('vfs_files')
    op.drop_table('projects')
