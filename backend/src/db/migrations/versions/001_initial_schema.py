"""Initial event lifecycle schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

Creates:
- accounts: pastors and super admins
- churches: churches owned by pastor accounts
- events: scheduled events with cancellation marker and cached interest count
- event_details: optional descriptive fields (one row per event)
- event_translations: translation languages of an event
- event_interests: device-scoped interest (unique per event/device)
- push_targets: device push endpoints (Expo tokens, Web Push subscriptions)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create all tables of the event lifecycle."""

    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('role', sa.String(length=11), nullable=False),
        sa.Column('status', sa.String(length=9), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_accounts_email', 'accounts', ['email'], unique=True)

    op.create_table(
        'churches',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('church_name', sa.String(length=255), nullable=False),
        sa.Column('admin_id', sa.Integer(), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['admin_id'], ['accounts.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_churches_admin_id', 'churches', ['admin_id'])

    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organizer_id', sa.Integer(), nullable=False),
        sa.Column('church_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('language_id', sa.Integer(), nullable=True),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('cancelled_by', sa.Integer(), nullable=True),
        sa.Column('interested_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['organizer_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['church_id'], ['churches.id'], ondelete='SET NULL'),
        sa.CheckConstraint('end_time > start_time', name='ck_events_time_window'),
        sa.CheckConstraint(
            '(cancelled_at IS NULL AND cancellation_reason IS NULL AND cancelled_by IS NULL)'
            ' OR (cancelled_at IS NOT NULL AND cancellation_reason IS NOT NULL'
            ' AND cancelled_by IS NOT NULL)',
            name='ck_events_cancellation_fields',
        ),
    )
    op.create_index('ix_events_organizer_id', 'events', ['organizer_id'])
    op.create_index('ix_events_church_id', 'events', ['church_id'])
    op.create_index('ix_events_start_time', 'events', ['start_time'])
    op.create_index('ix_events_end_time', 'events', ['end_time'])
    op.create_index('idx_events_organizer_start', 'events', ['organizer_id', 'start_time'])

    op.create_table(
        'event_details',
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('address', sa.String(length=500), nullable=True),
        sa.Column('street_number', sa.String(length=20), nullable=True),
        sa.Column('street_name', sa.String(length=255), nullable=True),
        sa.Column('postal_code', sa.String(length=20), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('speaker_name', sa.String(length=100), nullable=True),
        sa.Column('max_seats', sa.Integer(), nullable=True),
        sa.Column('image_url', sa.String(length=1024), nullable=True),
        sa.Column('is_free', sa.Boolean(), nullable=True),
        sa.Column('registration_link', sa.String(length=1024), nullable=True),
        sa.Column('youtube_live', sa.String(length=1024), nullable=True),
        sa.Column('has_parking', sa.Boolean(), nullable=True),
        sa.Column('parking_capacity', sa.Integer(), nullable=True),
        sa.Column('is_parking_free', sa.Boolean(), nullable=True),
        sa.Column('parking_details', sa.String(length=500), nullable=True),
        sa.PrimaryKeyConstraint('event_id'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
    )

    op.create_table(
        'event_translations',
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('language_id', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('event_id', 'language_id'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
    )

    op.create_table(
        'event_interests',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('device_id', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('event_id', 'device_id', name='uq_event_interests_event_device'),
    )
    op.create_index('ix_event_interests_event_id', 'event_interests', ['event_id'])
    op.create_index('ix_event_interests_device_id', 'event_interests', ['device_id'])

    op.create_table(
        'push_targets',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('device_id', sa.String(length=255), nullable=False),
        sa.Column('push_token', sa.Text(), nullable=False),
        sa.Column('platform', sa.String(length=20), nullable=False),
        sa.Column('language_code', sa.String(length=10), nullable=True),
        sa.Column('last_used_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_push_targets_device_id', 'push_targets', ['device_id'], unique=True)


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_index('ix_push_targets_device_id', table_name='push_targets')
    op.drop_table('push_targets')

    op.drop_index('ix_event_interests_device_id', table_name='event_interests')
    op.drop_index('ix_event_interests_event_id', table_name='event_interests')
    op.drop_table('event_interests')

    op.drop_table('event_translations')
    op.drop_table('event_details')

    op.drop_index('idx_events_organizer_start', table_name='events')
    op.drop_index('ix_events_end_time', table_name='events')
    op.drop_index('ix_events_start_time', table_name='events')
    op.drop_index('ix_events_church_id', table_name='events')
    op.drop_index('ix_events_organizer_id', table_name='events')
    op.drop_table('events')

    op.drop_index('ix_churches_admin_id', table_name='churches')
    op.drop_table('churches')

    op.drop_index('ix_accounts_email', table_name='accounts')
    op.drop_table('accounts')
