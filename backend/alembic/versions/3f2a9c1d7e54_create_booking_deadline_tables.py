"""create_booking_deadline_tables

Revision ID: 3f2a9c1d7e54
Revises:
Create Date: 2026-10-19 09:12:40.118203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7e54'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('users',
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=50), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('id', sa.UUID(), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table('bookings',
        sa.Column('booking_number', sa.String(length=100), nullable=False),
        sa.Column('route', sa.String(length=255), nullable=True),
        sa.Column('vessel_flight', sa.String(length=100), nullable=True),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False),
        sa.Column('id', sa.UUID(), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_bookings_booking_number'), 'bookings', ['booking_number'], unique=True)

    op.create_table('booking_deadlines',
        sa.Column('booking_id', sa.UUID(), nullable=False),
        sa.Column('cut_off_si', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cut_off_vgm', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cut_off_cy', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('sales_confirmed', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('alert_sent_48h', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('alert_sent_24h', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('alert_sent_12h', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('alert_sent_6h', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('alert_sent_overdue', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('id', sa.UUID(), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_booking_deadlines_booking_id'), 'booking_deadlines', ['booking_id'], unique=True)
    op.create_index(op.f('ix_booking_deadlines_status'), 'booking_deadlines', ['status'], unique=False)
    # Sweep candidate set: PENDING and not yet confirmed by sales
    op.create_index(
        'ix_booking_deadlines_monitoring',
        'booking_deadlines',
        ['status'],
        unique=False,
        postgresql_where=sa.text('sales_confirmed = false'),
    )

    op.create_table('notifications',
        sa.Column('user_id', sa.UUID(), nullable=True),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('priority', sa.String(length=20), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('booking_id', sa.UUID(), nullable=True),
        sa.Column('action_url', sa.String(length=500), nullable=True),
        sa.Column('action_label', sa.String(length=100), nullable=True),
        sa.Column('is_read', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('id', sa.UUID(), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_notifications_booking_id'), 'notifications', ['booking_id'], unique=False)
    op.create_index(op.f('ix_notifications_type'), 'notifications', ['type'], unique=False)
    op.create_index(op.f('ix_notifications_user_id'), 'notifications', ['user_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_notifications_user_id'), table_name='notifications')
    op.drop_index(op.f('ix_notifications_type'), table_name='notifications')
    op.drop_index(op.f('ix_notifications_booking_id'), table_name='notifications')
    op.drop_table('notifications')
    op.drop_index('ix_booking_deadlines_monitoring', table_name='booking_deadlines')
    op.drop_index(op.f('ix_booking_deadlines_status'), table_name='booking_deadlines')
    op.drop_index(op.f('ix_booking_deadlines_booking_id'), table_name='booking_deadlines')
    op.drop_table('booking_deadlines')
    op.drop_index(op.f('ix_bookings_booking_number'), table_name='bookings')
    op.drop_table('bookings')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
