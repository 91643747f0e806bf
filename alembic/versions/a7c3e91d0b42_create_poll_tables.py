"""create_poll_tables

Revision ID: a7c3e91d0b42
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a7c3e91d0b42'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'polls',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('question_type', sa.String(length=20), nullable=False),
        sa.Column('poll_type', sa.String(length=20), nullable=False),
        sa.Column('allow_unauthenticated_voting', sa.Boolean(), nullable=False),
        sa.Column('allow_user_add_options', sa.Boolean(), nullable=False),
        sa.Column('results_visibility', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('deadline', sa.DateTime(timezone=True), nullable=True),
        sa.Column('creator_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "question_type IN ('single-choice', 'ranked-choice', 'free-text')",
            name='ck_polls_question_type',
        ),
        sa.CheckConstraint("status IN ('active', 'closed', 'archived')", name='ck_polls_status'),
    )
    op.create_index('idx_polls_status', 'polls', ['status'])

    op.create_table(
        'poll_options',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('poll_id', sa.Integer(), sa.ForeignKey('polls.id', ondelete='CASCADE'), nullable=False),
        sa.Column('text', sa.Text(), nullable=True),
        sa.Column('answer_type', sa.String(length=20), nullable=True),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('link_url', sa.String(length=500), nullable=True),
        sa.Column('display_text', sa.String(length=500), nullable=True),
        sa.Column('created_by_id', sa.Integer(), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_poll_options_poll', 'poll_options', ['poll_id'])

    op.create_table(
        'poll_votes',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('poll_id', sa.Integer(), sa.ForeignKey('polls.id', ondelete='CASCADE'), nullable=False),
        sa.Column('option_id', sa.Integer(), sa.ForeignKey('poll_options.id', ondelete='CASCADE'), nullable=True),
        sa.Column('free_text', sa.Text(), nullable=True),
        sa.Column('rank_position', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('is_authenticated', sa.Boolean(), nullable=False),
        sa.Column('session_id', sa.String(length=128), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('rank_position >= 1', name='ck_poll_votes_rank_position'),
        sa.CheckConstraint(
            '(user_id IS NOT NULL) OR (ip_address IS NOT NULL AND user_agent IS NOT NULL)',
            name='ck_poll_votes_identity',
        ),
    )
    op.create_index('idx_poll_votes_poll', 'poll_votes', ['poll_id'])
    op.create_index('idx_poll_votes_option', 'poll_votes', ['option_id'])

    # One vote per identity and rank: users by id, anonymous voters by device
    op.create_index(
        'uq_poll_votes_user_rank', 'poll_votes', ['poll_id', 'user_id', 'rank_position'],
        unique=True,
        postgresql_where=sa.text('user_id IS NOT NULL'),
        sqlite_where=sa.text('user_id IS NOT NULL'),
    )
    op.create_index(
        'uq_poll_votes_device_rank', 'poll_votes', ['poll_id', 'ip_address', 'user_agent', 'rank_position'],
        unique=True,
        postgresql_where=sa.text('user_id IS NULL'),
        sqlite_where=sa.text('user_id IS NULL'),
    )

    op.create_table(
        'locations',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('slug', sa.String(length=220), nullable=False),
        sa.Column('wikipedia_url', sa.String(length=500), nullable=True),
        sa.Column('wikipedia_image_url', sa.String(length=500), nullable=True),
        sa.Column('population', sa.BigInteger(), nullable=True),
        sa.Column('wikipedia_data_updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_locations_slug', 'locations', ['slug'], unique=True)


def downgrade():
    op.drop_index('ix_locations_slug', table_name='locations')
    op.drop_table('locations')
    op.drop_index('uq_poll_votes_device_rank', table_name='poll_votes')
    op.drop_index('uq_poll_votes_user_rank', table_name='poll_votes')
    op.drop_index('idx_poll_votes_option', table_name='poll_votes')
    op.drop_index('idx_poll_votes_poll', table_name='poll_votes')
    op.drop_table('poll_votes')
    op.drop_index('idx_poll_options_poll', table_name='poll_options')
    op.drop_table('poll_options')
    op.drop_index('idx_polls_status', table_name='polls')
    op.drop_table('polls')
