"""create_messaging_tables

Revision ID: 3c9e1a7f5b20
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c9e1a7f5b20'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the messaging schema.

    - conversations: one row per unordered user pair (low id, high id)
    - messages: direct messages with a per-receiver read flag
    - group_chats / group_chat_participants: membership rows with left_at
    - group_messages / group_message_reads: read receipts per user
    - user_blocks: directed block relations
    """
    op.create_table('conversations',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('user_low_id', sa.String(length=255), nullable=False),
        sa.Column('user_high_id', sa.String(length=255), nullable=False),
        sa.Column('last_message_id', sa.String(length=255), nullable=True),
        sa.Column('last_message_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('user_low_id < user_high_id', name='ck_conversations_pair_order'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_low_id', 'user_high_id', name='uq_conversations_pair')
    )
    op.create_index('idx_conversations_user_low', 'conversations', ['user_low_id'], unique=False)
    op.create_index('idx_conversations_user_high', 'conversations', ['user_high_id'], unique=False)
    op.create_index('ix_conversations_created_at', 'conversations', ['created_at'], unique=False)

    op.create_table('messages',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('conversation_id', sa.String(length=255), nullable=False),
        sa.Column('sender_id', sa.String(length=255), nullable=False),
        sa.Column('receiver_id', sa.String(length=255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_messages_conversation_created', 'messages', ['conversation_id', 'created_at'], unique=False)
    op.create_index('idx_messages_receiver_unread', 'messages', ['receiver_id', 'is_read'], unique=False)
    op.create_index('ix_messages_created_at', 'messages', ['created_at'], unique=False)

    op.create_table('group_chats',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(length=255), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_message_id', sa.String(length=255), nullable=True),
        sa.Column('last_message_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_group_chats_created_at', 'group_chats', ['created_at'], unique=False)

    op.create_table('group_chat_participants',
        sa.Column('group_chat_id', sa.String(length=255), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('left_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['group_chat_id'], ['group_chats.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('group_chat_id', 'user_id')
    )
    op.create_index('idx_group_chat_participants_user', 'group_chat_participants', ['user_id'], unique=False)

    op.create_table('group_messages',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('group_chat_id', sa.String(length=255), nullable=False),
        sa.Column('sender_id', sa.String(length=255), nullable=False),
        sa.Column('sender_username', sa.String(length=255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['group_chat_id'], ['group_chats.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_group_messages_chat_created', 'group_messages', ['group_chat_id', 'created_at'], unique=False)
    op.create_index('ix_group_messages_created_at', 'group_messages', ['created_at'], unique=False)

    op.create_table('group_message_reads',
        sa.Column('message_id', sa.String(length=255), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['message_id'], ['group_messages.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('message_id', 'user_id')
    )
    op.create_index('idx_group_message_reads_user', 'group_message_reads', ['user_id'], unique=False)

    op.create_table('user_blocks',
        sa.Column('blocker_id', sa.String(length=255), nullable=False),
        sa.Column('blocked_id', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('blocker_id', 'blocked_id')
    )
    op.create_index('idx_user_blocks_blocked', 'user_blocks', ['blocked_id'], unique=False)


def downgrade() -> None:
    """Drop the messaging schema."""
    op.drop_index('idx_user_blocks_blocked', table_name='user_blocks')
    op.drop_table('user_blocks')
    op.drop_index('idx_group_message_reads_user', table_name='group_message_reads')
    op.drop_table('group_message_reads')
    op.drop_index('ix_group_messages_created_at', table_name='group_messages')
    op.drop_index('idx_group_messages_chat_created', table_name='group_messages')
    op.drop_table('group_messages')
    op.drop_index('idx_group_chat_participants_user', table_name='group_chat_participants')
    op.drop_table('group_chat_participants')
    op.drop_index('ix_group_chats_created_at', table_name='group_chats')
    op.drop_table('group_chats')
    op.drop_index('ix_messages_created_at', table_name='messages')
    op.drop_index('idx_messages_receiver_unread', table_name='messages')
    op.drop_index('idx_messages_conversation_created', table_name='messages')
    op.drop_table('messages')
    op.drop_index('ix_conversations_created_at', table_name='conversations')
    op.drop_index('idx_conversations_user_high', table_name='conversations')
    op.drop_index('idx_conversations_user_low', table_name='conversations')
    op.drop_table('conversations')
