"""Create email_tracking and email_tracking_clicks tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 11:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'email_tracking',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('tracking_id', sa.Text(), nullable=False),
        sa.Column('email_type', sa.Text(), nullable=False),
        sa.Column('user_id', sa.BigInteger(), nullable=True),
        sa.Column('recipient_email', sa.Text(), nullable=False),
        sa.Column('sent_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('has_amp', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('replied_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('replied_via', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('tracking_id', name='uq_email_tracking_tracking_id')
    )

    op.create_table(
        'email_tracking_clicks',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('email_tracking_id', sa.BigInteger(), nullable=False),
        sa.Column('link_url', sa.Text(), nullable=False),
        sa.Column('link_position', sa.Text(), nullable=True),
        sa.Column('action', sa.Text(), nullable=True),
        sa.Column('clicked_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['email_tracking_id'], ['email_tracking.id'], ondelete='CASCADE')
    )

    op.create_index('idx_email_tracking_clicks_tracking', 'email_tracking_clicks', ['email_tracking_id'])


def downgrade():
    op.drop_index('idx_email_tracking_clicks_tracking', table_name='email_tracking_clicks')
    op.drop_table('email_tracking_clicks')
    op.drop_table('email_tracking')
