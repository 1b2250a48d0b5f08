"""Create users, chat_rooms, chat_roster and chat_messages tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('fullname', sa.Text(), nullable=True),
        sa.Column('firstname', sa.Text(), nullable=True),
        sa.Column('lastname', sa.Text(), nullable=True),
        sa.Column('profile_image', sa.Text(), nullable=True),
        sa.Column('deleted', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'chat_rooms',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('chat_type', sa.Text(), server_default='User2User', nullable=False),
        sa.Column('user1', sa.BigInteger(), nullable=True),
        sa.Column('user2', sa.BigInteger(), nullable=True),
        sa.Column('latest_message', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user1'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user2'], ['users.id'], ondelete='CASCADE'),
        sa.CheckConstraint(
            "chat_type IN ('User2User', 'User2Mod', 'Mod2Mod')",
            name='ck_chat_rooms_chat_type'
        )
    )

    op.create_table(
        'chat_roster',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('chat_id', sa.BigInteger(), nullable=False),
        sa.Column('user_id', sa.BigInteger(), nullable=False),
        sa.Column('status', sa.Text(), server_default='Online', nullable=False),
        sa.Column('last_msg_seen', sa.BigInteger(), nullable=True),
        sa.Column('date', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['chat_id'], ['chat_rooms.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('chat_id', 'user_id', name='uq_chat_roster_chat_user')
    )

    op.create_table(
        'chat_messages',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('chat_id', sa.BigInteger(), nullable=False),
        sa.Column('user_id', sa.BigInteger(), nullable=False),
        sa.Column('type', sa.Text(), server_default='Default', nullable=False),
        sa.Column('message', sa.Text(), server_default='', nullable=False),
        sa.Column('date', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('review_required', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('review_rejected', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('processing_successful', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['chat_id'], ['chat_rooms.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE')
    )

    # Feed query: newest messages of one chat
    op.create_index('ix_chat_messages_chat_id_date', 'chat_messages', ['chat_id', 'date'])


def downgrade():
    op.drop_index('ix_chat_messages_chat_id_date', table_name='chat_messages')
    op.drop_table('chat_messages')
    op.drop_table('chat_roster')
    op.drop_table('chat_rooms')
    op.drop_table('users')
