"""Initial schema: users, smells, favorites, progress, preferences, activity, settings

Revision ID: 001_initial_schema
Revises:
Create Date: 2025-09-14 08:37:50.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


ENUM_VALUES = {
    'user_role_enum': ('USER', 'MODERATOR', 'ADMIN'),
    'smell_category_enum': (
        'CODE_SMELL', 'DESIGN_PATTERN', 'REFACTORING', 'PERFORMANCE', 'SECURITY',
        'MAINTAINABILITY', 'READABILITY', 'TESTING', 'ARCHITECTURE', 'BEST_PRACTICE',
    ),
    'difficulty_level_enum': ('BEGINNER', 'EASY', 'MEDIUM', 'HARD', 'EXPERT'),
    'profile_visibility_enum': ('PUBLIC', 'PRIVATE'),
    'theme_enum': ('LIGHT', 'DARK', 'AUTO'),
}


def enum_column_type(name):
    # Postgres types are created once up front; difficulty_level_enum is shared by two tables
    return sa.Enum(*ENUM_VALUES[name], name=name).with_variant(
        postgresql.ENUM(*ENUM_VALUES[name], name=name, create_type=False), 'postgresql'
    )


def timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade():
    bind = op.get_bind()
    if bind.dialect.name == 'postgresql':
        for name, values in ENUM_VALUES.items():
            postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('image', sa.String(500), nullable=True),
        sa.Column('bio', sa.String(500), nullable=True),
        sa.Column('location', sa.String(100), nullable=True),
        sa.Column('website', sa.String(500), nullable=True),
        sa.Column('github_url', sa.String(500), nullable=True),
        sa.Column('linkedin_url', sa.String(500), nullable=True),
        sa.Column('twitter_url', sa.String(500), nullable=True),
        sa.Column('role', enum_column_type('user_role_enum'), nullable=False, server_default='USER'),
        *timestamps(),
    )
    op.create_index('ix_user_id', 'user', ['id'])
    op.create_index('ix_user_email', 'user', ['email'], unique=True)

    op.create_table(
        'smell',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('title', sa.String(100), nullable=False),
        sa.Column('category', enum_column_type('smell_category_enum'), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('bad_code', sa.Text(), nullable=False),
        sa.Column('good_code', sa.Text(), nullable=False),
        sa.Column('test_hint', sa.Text(), nullable=False, server_default=''),
        sa.Column('difficulty', enum_column_type('difficulty_level_enum'), nullable=False, server_default='BEGINNER'),
        sa.Column('tags', sa.Text(), nullable=False, server_default=''),
        sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('problem', sa.Text(), nullable=True),
        sa.Column('solution', sa.Text(), nullable=True),
        sa.Column('testing', sa.Text(), nullable=True),
        sa.Column('examples', sa.Text(), nullable=True),
        sa.Column('references', sa.Text(), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_smell_id', 'smell', ['id'])
    op.create_index('ix_smell_title', 'smell', ['title'], unique=True)
    op.create_index('ix_smell_category', 'smell', ['category'])
    op.create_index('ix_smell_created_at', 'smell', ['created_at'])

    for table, extra, constraint in (
        ('user_smell', [], 'uq_user_smell_user_smell'),
        ('user_progress',
         [sa.Column('completed', sa.Boolean(), nullable=False, server_default=sa.false())],
         'uq_user_progress_user_smell'),
    ):
        op.create_table(
            table,
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
            sa.Column('smell_id', sa.Integer(), sa.ForeignKey('smell.id', ondelete='CASCADE'), nullable=False),
            *extra,
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint('user_id', 'smell_id', name=constraint),
        )
        op.create_index(f'ix_{table}_id', table, ['id'])
        op.create_index(f'ix_{table}_user_id', table, ['user_id'])
        op.create_index(f'ix_{table}_smell_id', table, ['smell_id'])

    op.create_table(
        'user_preferences',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('theme', enum_column_type('theme_enum'), nullable=False, server_default='AUTO'),
        sa.Column('default_difficulty', enum_column_type('difficulty_level_enum'), nullable=True),
        sa.Column('email_updates', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('progress_reminders', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('new_smells', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('weekly_digest', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('profile_visibility', enum_column_type('profile_visibility_enum'), nullable=False, server_default='PUBLIC'),
        sa.Column('show_progress', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('allow_analytics', sa.Boolean(), nullable=False, server_default=sa.false()),
        *timestamps(),
    )
    op.create_index('ix_user_preferences_id', 'user_preferences', ['id'])

    op.create_table(
        'user_activity',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('resource_id', sa.String(100), nullable=True),
        sa.Column('resource_type', sa.String(50), nullable=True),
        sa.Column('metadata', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_user_activity_id', 'user_activity', ['id'])
    op.create_index('ix_user_activity_user_id', 'user_activity', ['user_id'])
    op.create_index('ix_user_activity_action', 'user_activity', ['action'])
    op.create_index('ix_user_activity_created_at', 'user_activity', ['created_at'])
    op.create_index('ix_user_activity_user_created', 'user_activity', ['user_id', 'created_at'])

    op.create_table(
        'setting',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('key', sa.String(100), nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        *timestamps(),
    )
    op.create_index('ix_setting_id', 'setting', ['id'])
    op.create_index('ix_setting_key', 'setting', ['key'], unique=True)


def downgrade():
    op.drop_table('setting')
    op.drop_table('user_activity')
    op.drop_table('user_preferences')
    op.drop_table('user_progress')
    op.drop_table('user_smell')
    op.drop_table('smell')
    op.drop_table('user')

    bind = op.get_bind()
    if bind.dialect.name == 'postgresql':
        for name in ENUM_VALUES:
            postgresql.ENUM(name=name).drop(bind, checkfirst=True)
