"""Baseline migration - clients, availability, appointments, emails, invoices

Revision ID: 0001_baseline
Revises: 
Create Date: 2024-05-01

Creates every table of the practice scheduling core. Column types are
portable (Postgres in production, SQLite in tests).
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create scheduling tables."""

    # ==========================================================================
    # Clients
    # ==========================================================================
    op.create_table(
        'clients',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('confirmed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('send_invoice_automatically', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('default_rate', sa.Numeric(10, 2), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_clients_confirmed', 'clients', ['confirmed'])

    # ==========================================================================
    # Availability
    # ==========================================================================
    op.create_table(
        'weekly_availability_blocks',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('weekday', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint('weekday >= 0 AND weekday <= 6', name='ck_valid_weekday'),
        sa.CheckConstraint('start_time < end_time', name='ck_weekly_block_order'),
    )
    op.create_index(
        'idx_weekly_availability_weekday', 'weekly_availability_blocks', ['weekday', 'is_active']
    )

    op.create_table(
        'date_availability_overrides',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('override_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=True),
        sa.Column('end_time', sa.Time(), nullable=True),
        sa.Column('reason', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            '(start_time IS NULL AND end_time IS NULL) OR '
            '(start_time IS NOT NULL AND end_time IS NOT NULL AND start_time < end_time)',
            name='ck_override_slot_or_closed',
        ),
    )
    op.create_index('idx_date_availability_date', 'date_availability_overrides', ['override_date'])

    # ==========================================================================
    # Appointments
    # ==========================================================================
    op.create_table(
        'appointments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'client_id',
            sa.Uuid(),
            sa.ForeignKey('clients.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('scheduled_start', sa.DateTime(timezone=True), nullable=False),
        sa.Column('scheduled_end', sa.DateTime(timezone=True), nullable=False),
        sa.Column('format', sa.String(30), nullable=False, server_default='face_to_face'),
        sa.Column('status', sa.String(30), nullable=False, server_default='not_yet_attended'),
        sa.Column('confirmed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_recurring', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('recurring_type', sa.String(30), nullable=True),
        sa.Column('recurrent_id', sa.Uuid(), nullable=True),
        sa.Column('host_jwt', sa.Text(), nullable=True),
        sa.Column('client_jwt', sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('scheduled_end > scheduled_start', name='ck_appointment_order'),
    )
    op.create_index('idx_appointments_schedule', 'appointments', ['scheduled_start', 'scheduled_end'])
    op.create_index('idx_appointments_series', 'appointments', ['recurrent_id'])
    op.create_index('idx_appointments_client', 'appointments', ['client_id'])

    # ==========================================================================
    # Scheduled Emails (appointment_id is a soft reference, no FK)
    # ==========================================================================
    op.create_table(
        'email_schedule_entries',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('appointment_id', sa.Uuid(), nullable=False),
        sa.Column('email_type', sa.String(30), nullable=False),
        sa.Column('scheduled_for', sa.DateTime(timezone=True), nullable=False),
        sa.Column('recipient_email', sa.String(255), nullable=False),
        sa.Column('recipient_name', sa.String(255), nullable=False),
        sa.Column('subject', sa.String(255), nullable=False),
        sa.Column('status', sa.String(30), nullable=False, server_default='pending'),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('external_message_id', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(
        'idx_email_schedule_appt', 'email_schedule_entries', ['appointment_id', 'email_type']
    )
    op.create_index('idx_email_schedule_due', 'email_schedule_entries', ['status', 'scheduled_for'])

    # ==========================================================================
    # Invoices
    # ==========================================================================
    op.create_table(
        'invoices',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'appointment_id',
            sa.Uuid(),
            sa.ForeignKey('appointments.id', ondelete='SET NULL'),
            nullable=True,
            unique=True,
        ),
        sa.Column(
            'client_id',
            sa.Uuid(),
            sa.ForeignKey('clients.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('status', sa.String(30), nullable=False, server_default='unpaid'),
        sa.Column('issued_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('idx_invoices_client', 'invoices', ['client_id', 'status'])


def downgrade() -> None:
    """Drop scheduling tables."""
    op.drop_table('invoices')
    op.drop_table('email_schedule_entries')
    op.drop_table('appointments')
    op.drop_table('date_availability_overrides')
    op.drop_table('weekly_availability_blocks')
    op.drop_table('clients')
