"""workspace structure workflow tables"""

from alembic import op
import sqlalchemy as sa
from typing import Sequence, Union

revision: str = '20261019_01'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(), nullable=False, unique=True),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_table(
        'workspaces',
        sa.Column('id', sa.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('slug', sa.String(), nullable=False, unique=True),
        sa.Column('blueprint_approved', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_by', sa.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_table(
        'workspace_members',
        sa.Column(
            'workspace_id',
            sa.UUID(as_uuid=True),
            sa.ForeignKey('workspaces.id', ondelete='CASCADE'),
            primary_key=True,
        ),
        sa.Column('user_id', sa.UUID(as_uuid=True), sa.ForeignKey('users.id'), primary_key=True),
        sa.Column('role', sa.String(), nullable=False, server_default='member'),
        sa.Column('joined_at', sa.DateTime(), nullable=True),
    )
    op.create_table(
        'channels',
        sa.Column('id', sa.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'workspace_id',
            sa.UUID(as_uuid=True),
            sa.ForeignKey('workspaces.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('name', sa.String(length=80), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', sa.String(), nullable=False, server_default='core'),
        sa.Column('is_private', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_by', sa.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('workspace_id', 'name', name='uq_channel_workspace_name'),
    )
    op.create_index('ix_channels_workspace_id', 'channels', ['workspace_id'])
    op.create_table(
        'channel_members',
        sa.Column(
            'channel_id',
            sa.UUID(as_uuid=True),
            sa.ForeignKey('channels.id', ondelete='CASCADE'),
            primary_key=True,
        ),
        sa.Column('user_id', sa.UUID(as_uuid=True), sa.ForeignKey('users.id'), primary_key=True),
        sa.Column('joined_at', sa.DateTime(), nullable=True),
    )
    op.create_table(
        'committees',
        sa.Column('id', sa.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'workspace_id',
            sa.UUID(as_uuid=True),
            sa.ForeignKey('workspaces.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('workspace_id', 'name', name='uq_committee_workspace_name'),
    )
    op.create_index('ix_committees_workspace_id', 'committees', ['workspace_id'])
    op.create_table(
        'structure_jobs',
        sa.Column('job_id', sa.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'workspace_id',
            sa.UUID(as_uuid=True),
            sa.ForeignKey('workspaces.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('status', sa.String(), nullable=False, server_default='created'),
        sa.Column('created_by', sa.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_structure_jobs_workspace_id', 'structure_jobs', ['workspace_id'])
    op.create_index('ix_structure_jobs_status', 'structure_jobs', ['status'])
    op.create_table(
        'intake_forms',
        sa.Column(
            'job_id',
            sa.UUID(as_uuid=True),
            sa.ForeignKey('structure_jobs.job_id', ondelete='CASCADE'),
            primary_key=True,
        ),
        sa.Column('community_size', sa.String(), nullable=False),
        sa.Column('core_activities', sa.JSON(), nullable=False),
        sa.Column('moderation_capacity', sa.String(), nullable=False),
        sa.Column('channel_budget', sa.Integer(), nullable=False),
        sa.Column('additional_context', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_table(
        'proposals',
        sa.Column('id', sa.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'job_id',
            sa.UUID(as_uuid=True),
            sa.ForeignKey('structure_jobs.job_id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('score', sa.Float(), nullable=True),
        sa.Column('rationale', sa.Text(), nullable=True),
        sa.Column('proposal', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.UniqueConstraint('job_id', 'version', name='uq_proposal_job_version'),
    )
    op.create_index('ix_proposals_job_id', 'proposals', ['job_id'])
    op.create_table(
        'blueprints',
        sa.Column('id', sa.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'job_id',
            sa.UUID(as_uuid=True),
            sa.ForeignKey('structure_jobs.job_id', ondelete='CASCADE'),
            nullable=False,
            unique=True,
        ),
        sa.Column('blueprint', sa.JSON(), nullable=False),
        sa.Column('applied_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_table(
        'structure_job_events',
        sa.Column('id', sa.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'job_id',
            sa.UUID(as_uuid=True),
            sa.ForeignKey('structure_jobs.job_id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('event_type', sa.String(), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=True),
        sa.Column('actor_id', sa.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('job_id', 'sequence', name='uq_structure_job_event_sequence'),
    )
    op.create_index('ix_structure_job_events_job_id', 'structure_job_events', ['job_id'])


def downgrade() -> None:
    op.drop_index('ix_structure_job_events_job_id', table_name='structure_job_events')
    op.drop_table('structure_job_events')
    op.drop_table('blueprints')
    op.drop_index('ix_proposals_job_id', table_name='proposals')
    op.drop_table('proposals')
    op.drop_table('intake_forms')
    op.drop_index('ix_structure_jobs_status', table_name='structure_jobs')
    op.drop_index('ix_structure_jobs_workspace_id', table_name='structure_jobs')
    op.drop_table('structure_jobs')
    op.drop_index('ix_committees_workspace_id', table_name='committees')
    op.drop_table('committees')
    op.drop_table('channel_members')
    op.drop_index('ix_channels_workspace_id', table_name='channels')
    op.drop_table('channels')
    op.drop_table('workspace_members')
    op.drop_table('workspaces')
    op.drop_table('users')
