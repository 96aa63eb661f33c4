"""Initial schema: users, openings, roles, applications, teams and chat

Revision ID: 001_initial_schema
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


ID = sa.BigInteger().with_variant(sa.Integer(), 'sqlite')


def _id() -> sa.Column:
    return sa.Column('id', ID, nullable=False, autoincrement=True)


def _is_deleted() -> sa.Column:
    return sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false())


def _created_at() -> sa.Column:
    return sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())


def _updated_at() -> sa.Column:
    return sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())


def upgrade() -> None:
    """Create every table with its constraints and indexes."""
    op.create_table(
        'users',
        _id(),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('avatar_url', sa.String(length=500), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('skills', sa.JSON(), nullable=False),
        sa.Column('primary_role', sa.String(length=100), nullable=True),
        sa.Column('experience_level', sa.Integer(), nullable=True, comment='Self-reported, 1-10'),
        sa.Column('availability', sa.Integer(), nullable=True, comment='Hours per week'),
        sa.Column('interests', sa.JSON(), nullable=False),
        sa.Column('strength_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('social_links', sa.JSON(), nullable=False),
        _is_deleted(),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            'experience_level IS NULL OR (experience_level >= 1 AND experience_level <= 10)',
            name='ck_users_experience_level',
        ),
        sa.CheckConstraint('availability IS NULL OR availability >= 0', name='ck_users_availability'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_is_deleted', 'users', ['is_deleted'])
    op.create_index('ix_users_created_at', 'users', ['created_at'])

    op.create_table(
        'portfolio_projects',
        _id(),
        sa.Column('user_id', ID, nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('url', sa.String(length=500), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        _is_deleted(),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_portfolio_projects_user_id', 'portfolio_projects', ['user_id'])
    op.create_index('ix_portfolio_projects_is_deleted', 'portfolio_projects', ['is_deleted'])
    op.create_index('ix_portfolio_projects_created_at', 'portfolio_projects', ['created_at'])

    op.create_table(
        'openings',
        _id(),
        sa.Column('recruiter_id', ID, nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('stage', sa.String(length=32), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('timeline', sa.String(length=200), nullable=True),
        sa.Column('commitment', sa.String(length=32), nullable=False),
        sa.Column('compensation', sa.String(length=200), nullable=True),
        sa.Column('location', sa.String(length=32), nullable=False),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='Open'),
        _is_deleted(),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['recruiter_id'], ['users.id']),
    )
    op.create_index('ix_openings_recruiter_id', 'openings', ['recruiter_id'])
    op.create_index('ix_openings_type', 'openings', ['type'])
    op.create_index('ix_openings_commitment', 'openings', ['commitment'])
    op.create_index('ix_openings_location', 'openings', ['location'])
    op.create_index('ix_openings_status', 'openings', ['status'])
    op.create_index('ix_openings_is_deleted', 'openings', ['is_deleted'])
    op.create_index('ix_openings_created_at', 'openings', ['created_at'])
    op.create_index('idx_openings_status_created', 'openings', ['status', 'created_at'])

    op.create_table(
        'roles',
        _id(),
        sa.Column('opening_id', ID, nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('slots', sa.Integer(), nullable=False),
        sa.Column('filled', sa.Integer(), nullable=False, server_default='0'),
        _is_deleted(),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['opening_id'], ['openings.id'], ondelete='CASCADE'),
        sa.CheckConstraint('slots >= 1', name='ck_roles_slots_positive'),
        sa.CheckConstraint('filled >= 0', name='ck_roles_filled_non_negative'),
        sa.CheckConstraint('filled <= slots', name='ck_roles_filled_le_slots'),
    )
    op.create_index('ix_roles_opening_id', 'roles', ['opening_id'])
    op.create_index('ix_roles_is_deleted', 'roles', ['is_deleted'])
    op.create_index('ix_roles_created_at', 'roles', ['created_at'])

    op.create_table(
        'applications',
        _id(),
        sa.Column('opening_id', ID, nullable=False),
        sa.Column('applicant_id', ID, nullable=False),
        sa.Column('cover_letter', sa.Text(), nullable=True),
        sa.Column('preferred_role_id', ID, nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='Pending'),
        _is_deleted(),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['opening_id'], ['openings.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['applicant_id'], ['users.id']),
        sa.ForeignKeyConstraint(['preferred_role_id'], ['roles.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_applications_opening_id', 'applications', ['opening_id'])
    op.create_index('ix_applications_applicant_id', 'applications', ['applicant_id'])
    op.create_index('ix_applications_status', 'applications', ['status'])
    op.create_index('ix_applications_is_deleted', 'applications', ['is_deleted'])
    op.create_index('ix_applications_created_at', 'applications', ['created_at'])
    op.create_index(
        'uq_applications_live_opening_applicant',
        'applications',
        ['opening_id', 'applicant_id'],
        unique=True,
        postgresql_where=sa.text('is_deleted = false'),
        sqlite_where=sa.text('is_deleted = 0'),
    )

    op.create_table(
        'teams',
        _id(),
        sa.Column('opening_id', ID, nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        _is_deleted(),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['opening_id'], ['openings.id']),
        sa.UniqueConstraint('opening_id'),
        sa.UniqueConstraint('code'),
    )
    op.create_index('ix_teams_is_deleted', 'teams', ['is_deleted'])
    op.create_index('ix_teams_created_at', 'teams', ['created_at'])

    op.create_table(
        'team_members',
        _id(),
        sa.Column('team_id', ID, nullable=False),
        sa.Column('user_id', ID, nullable=False),
        sa.Column('role_name', sa.String(length=120), nullable=False),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        _is_deleted(),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['team_id'], ['teams.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.UniqueConstraint('team_id', 'user_id', name='uq_team_members_team_user'),
    )
    op.create_index('ix_team_members_team_id', 'team_members', ['team_id'])
    op.create_index('ix_team_members_user_id', 'team_members', ['user_id'])
    op.create_index('ix_team_members_is_deleted', 'team_members', ['is_deleted'])
    op.create_index('ix_team_members_created_at', 'team_members', ['created_at'])

    op.create_table(
        'messages',
        _id(),
        sa.Column('team_id', ID, nullable=False),
        sa.Column('sender_id', ID, nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        _is_deleted(),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['team_id'], ['teams.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['sender_id'], ['users.id']),
    )
    op.create_index('ix_messages_sender_id', 'messages', ['sender_id'])
    op.create_index('ix_messages_is_deleted', 'messages', ['is_deleted'])
    op.create_index('ix_messages_created_at', 'messages', ['created_at'])
    op.create_index('idx_messages_team_created', 'messages', ['team_id', 'created_at', 'id'])

    op.create_table(
        'direct_messages',
        _id(),
        sa.Column('sender_id', ID, nullable=False),
        sa.Column('receiver_id', ID, nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        _is_deleted(),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['sender_id'], ['users.id']),
        sa.ForeignKeyConstraint(['receiver_id'], ['users.id']),
    )
    op.create_index('ix_direct_messages_is_deleted', 'direct_messages', ['is_deleted'])
    op.create_index('ix_direct_messages_created_at', 'direct_messages', ['created_at'])
    op.create_index('idx_direct_messages_pair', 'direct_messages', ['sender_id', 'receiver_id', 'created_at'])
    op.create_index('idx_direct_messages_receiver', 'direct_messages', ['receiver_id', 'created_at'])


def downgrade() -> None:
    """Drop every table, children first."""
    op.drop_table('direct_messages')
    op.drop_table('messages')
    op.drop_table('team_members')
    op.drop_table('teams')
    op.drop_index('uq_applications_live_opening_applicant', table_name='applications')
    op.drop_table('applications')
    op.drop_table('roles')
    op.drop_table('openings')
    op.drop_table('portfolio_projects')
    op.drop_table('users')
