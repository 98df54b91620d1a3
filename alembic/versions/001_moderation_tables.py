"""Add moderation settings, banned words, permits and mod log tables.

Revision ID: 001_moderation_tables
Revises:
Create Date: 2026-10-17 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_moderation_tables'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'moderation_settings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        # Link filter
        sa.Column('link_filter_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('link_filter_action', sa.String(20), nullable=False, server_default='delete'),
        sa.Column('link_timeout_duration', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('link_whitelist', sa.JSON(), nullable=True),
        sa.Column('link_permit_level', sa.String(20), nullable=False, server_default='subscriber'),
        # Caps filter
        sa.Column('caps_filter_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('caps_filter_action', sa.String(20), nullable=False, server_default='delete'),
        sa.Column('caps_timeout_duration', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('caps_threshold', sa.Integer(), nullable=False, server_default='70'),
        sa.Column('caps_min_length', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('caps_permit_level', sa.String(20), nullable=False, server_default='subscriber'),
        # Spam filter
        sa.Column('spam_filter_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('spam_filter_action', sa.String(20), nullable=False, server_default='delete'),
        sa.Column('spam_timeout_duration', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('spam_max_repeats', sa.Integer(), nullable=False, server_default='4'),
        sa.Column('spam_max_emotes', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('spam_permit_level', sa.String(20), nullable=False, server_default='subscriber'),
        # Symbol filter
        sa.Column('symbol_filter_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('symbol_filter_action', sa.String(20), nullable=False, server_default='delete'),
        sa.Column('symbol_timeout_duration', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('symbol_threshold', sa.Integer(), nullable=False, server_default='50'),
        sa.Column('symbol_min_length', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('symbol_permit_level', sa.String(20), nullable=False, server_default='subscriber'),
        # Banned words
        sa.Column('banned_words_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('banned_words_action', sa.String(20), nullable=False, server_default='timeout'),
        sa.Column('banned_words_timeout_duration', sa.Integer(), nullable=False, server_default='300'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_moderation_settings_account_id', 'moderation_settings', ['account_id'], unique=True
    )

    op.create_table(
        'banned_words',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('word', sa.Text(), nullable=False),
        sa.Column('is_regex', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('severity', sa.String(20), nullable=False, server_default='medium'),
        sa.Column('action', sa.String(20), nullable=False, server_default='timeout'),
        sa.Column('timeout_duration', sa.Integer(), nullable=False, server_default='300'),
        sa.Column('enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_banned_words_account_id', 'banned_words', ['account_id'])

    op.create_table(
        'permits',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(255), nullable=False),
        sa.Column('permit_type', sa.String(20), nullable=False, server_default='link'),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('granted_by', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'idx_permits_account_user', 'permits', ['account_id', 'user_id', 'expires_at']
    )

    op.create_table(
        'mod_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('target_user_id', sa.Integer(), nullable=False),
        sa.Column('target_username', sa.String(255), nullable=False),
        sa.Column('moderator_user_id', sa.Integer(), nullable=True),
        sa.Column('moderator_username', sa.String(255), nullable=True),
        sa.Column('action', sa.String(20), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('message_content', sa.Text(), nullable=True),
        sa.Column('message_id', sa.String(255), nullable=True),
        sa.Column('filter_type', sa.String(20), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'idx_mod_logs_account_created', 'mod_logs', ['account_id', 'created_at']
    )


def downgrade() -> None:
    op.drop_index('idx_mod_logs_account_created', table_name='mod_logs')
    op.drop_table('mod_logs')
    op.drop_index('idx_permits_account_user', table_name='permits')
    op.drop_table('permits')
    op.drop_index('ix_banned_words_account_id', table_name='banned_words')
    op.drop_table('banned_words')
    op.drop_index('ix_moderation_settings_account_id', table_name='moderation_settings')
    op.drop_table('moderation_settings')
