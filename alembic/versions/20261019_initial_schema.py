"""initial learnsync schema

Revision ID: 20261019_initial_schema
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('username', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name_first', sa.String(255), nullable=True),
        sa.Column('name_last', sa.String(255), nullable=True),
        sa.Column('role', sa.String(50), nullable=False, server_default='student'),
        sa.Column('is_active', sa.Boolean(), nullable=True, server_default=sa.true()),
        sa.Column('is_deleted', sa.Boolean(), nullable=True, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'provider_platforms',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('type', sa.String(40), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('base_url', sa.String(512), nullable=False),
        sa.Column('account_id', sa.String(128), nullable=True),
        sa.Column('access_key', sa.String(512), nullable=False),
        sa.Column('icon_url', sa.String(512), nullable=True),
        sa.Column('state', sa.String(24), nullable=False, server_default='enabled'),
        *_timestamps(),
    )

    op.create_table(
        'provider_user_mappings',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('user_id', sa.String(25), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('provider_platform_id', sa.String(25), sa.ForeignKey('provider_platforms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('external_user_id', sa.String(255), nullable=False),
        sa.Column('external_username', sa.String(255), nullable=True),
        sa.Column('external_login_id', sa.String(255), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('provider_platform_id', 'external_user_id', name='uq_mapping_provider_external_user'),
        sa.UniqueConstraint('user_id', 'provider_platform_id', name='uq_mapping_user_provider'),
    )
    op.create_index('ix_mapping_provider', 'provider_user_mappings', ['provider_platform_id'])

    op.create_table(
        'programs',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('provider_platform_id', sa.String(25), sa.ForeignKey('provider_platforms.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('alt_name', sa.String(255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('external_id', sa.String(255), nullable=False),
        sa.Column('thumbnail_url', sa.String(512), nullable=True),
        sa.Column('external_url', sa.String(512), nullable=True),
        sa.Column('type', sa.String(40), nullable=True),
        sa.Column('outcome_types', sa.String(255), nullable=True),
        sa.Column('total_progress_milestones', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.UniqueConstraint('provider_platform_id', 'external_id', name='uq_program_provider_external'),
    )

    op.create_table(
        'milestones',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('external_id', sa.String(255), nullable=False),
        sa.Column('type', sa.String(40), nullable=False),
        sa.Column('is_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('user_id', sa.String(25), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('program_id', sa.String(25), sa.ForeignKey('programs.id', ondelete='CASCADE'), nullable=False, index=True),
        *_timestamps(),
        sa.UniqueConstraint('program_id', 'user_id', 'external_id', name='uq_milestone_program_user_external'),
    )
    op.create_index('ix_milestone_user_created', 'milestones', ['user_id', 'created_at'])

    op.create_table(
        'outcomes',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('user_id', sa.String(25), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('program_id', sa.String(25), sa.ForeignKey('programs.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(40), nullable=False),
        sa.Column('value', sa.String(255), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_outcome_user_program', 'outcomes', ['user_id', 'program_id'])

    op.create_table(
        'activities',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('user_id', sa.String(25), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('program_id', sa.String(25), sa.ForeignKey('programs.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('type', sa.String(40), nullable=False),
        sa.Column('total_time', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('time_delta', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('external_id', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_activity_user_created', 'activities', ['user_id', 'created_at'])

    op.create_table(
        'activity_counters',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('user_id', sa.String(25), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('program_id', sa.String(25), sa.ForeignKey('programs.id', ondelete='CASCADE'), nullable=False),
        sa.Column('external_id', sa.String(255), nullable=False, server_default=''),
        sa.Column('last_total_time', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('user_id', 'program_id', 'external_id', name='uq_activity_counter_key'),
    )


def downgrade() -> None:
    op.drop_table('activity_counters')
    op.drop_index('ix_activity_user_created', table_name='activities')
    op.drop_table('activities')
    op.drop_index('ix_outcome_user_program', table_name='outcomes')
    op.drop_table('outcomes')
    op.drop_index('ix_milestone_user_created', table_name='milestones')
    op.drop_table('milestones')
    op.drop_table('programs')
    op.drop_index('ix_mapping_provider', table_name='provider_user_mappings')
    op.drop_table('provider_user_mappings')
    op.drop_table('provider_platforms')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_table('users')
