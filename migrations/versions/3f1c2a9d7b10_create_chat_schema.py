"""create chat schema

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-18 09:12:41.118402

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # Step 1: Profiles (owned by the identity subsystem, created here if absent)
    op.execute("""
        CREATE TABLE IF NOT EXISTS profiles (
            id UUID PRIMARY KEY,
            full_name VARCHAR(255) NOT NULL,
            avatar_url VARCHAR(2048),
            role VARCHAR(20) NOT NULL CHECK (role IN ('student', 'mentor', 'startup', 'club_leader', 'admin')),
            created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
        )
    """)

    # Step 2: Conversations, one per unordered pair of users
    op.create_table(
        'chat_conversations',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('mentor_id', sa.Uuid(), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('profiles.id'), nullable=False),
        # '<lower id>:<higher id>', so a pair is unique whichever role each holds
        sa.Column('participant_pair', sa.String(73), nullable=False),
        sa.Column('mentorship_request_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('participant_pair', name='uq_chat_conversations_pair'),
    )

    # Step 3: Messages
    op.create_table(
        'chat_messages',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'conversation_id',
            sa.Uuid(),
            sa.ForeignKey('chat_conversations.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('sender_id', sa.Uuid(), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('body', sa.Text(), nullable=False, server_default=''),
        sa.Column('file_url', sa.String(2048), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("body <> '' OR file_url IS NOT NULL", name='ck_chat_messages_content'),
    )

    # Step 4: Notifications
    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False, server_default=''),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Step 5: Indexes
    op.create_index('idx_chat_conversations_mentor', 'chat_conversations', ['mentor_id'])
    op.create_index('idx_chat_conversations_student', 'chat_conversations', ['student_id'])
    op.create_index('idx_chat_conversations_updated', 'chat_conversations', [sa.text('updated_at DESC')])
    op.create_index('idx_chat_messages_conversation_created', 'chat_messages', ['conversation_id', 'created_at'])
    op.create_index('idx_notifications_user_unread', 'notifications', ['user_id', 'is_read'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_notifications_user_unread', table_name='notifications')
    op.drop_index('idx_chat_messages_conversation_created', table_name='chat_messages')
    op.drop_index('idx_chat_conversations_updated', table_name='chat_conversations')
    op.drop_index('idx_chat_conversations_student', table_name='chat_conversations')
    op.drop_index('idx_chat_conversations_mentor', table_name='chat_conversations')
    op.drop_table('notifications')
    op.drop_table('chat_messages')
    op.drop_table('chat_conversations')
    # profiles belongs to the identity subsystem and is left in place
