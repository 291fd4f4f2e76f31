"""Session notes, meeting check-in flags and client archiving

Revision ID: 0002_notes_attendance_archive
Revises: 0001_baseline
Create Date: 2024-06-10
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0002_notes_attendance_archive'
down_revision: Union[str, Sequence[str], None] = '0001_baseline'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column(
        'clients',
        sa.Column('is_archived', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.add_column('clients', sa.Column('archived_at', sa.DateTime(timezone=True), nullable=True))
    op.create_index('idx_clients_archived', 'clients', ['is_archived'])

    op.add_column(
        'appointments',
        sa.Column('host_attended', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.add_column(
        'appointments',
        sa.Column('client_attended', sa.Boolean(), nullable=False, server_default=sa.false()),
    )

    op.create_table(
        'session_notes',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False, server_default=''),
        sa.Column(
            'client_id',
            sa.Uuid(),
            sa.ForeignKey('clients.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column(
            'appointment_id',
            sa.Uuid(),
            sa.ForeignKey('appointments.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('idx_session_notes_client', 'session_notes', ['client_id', 'updated_at'])
    op.create_index('idx_session_notes_appointment', 'session_notes', ['appointment_id'])


def downgrade() -> None:
    op.drop_table('session_notes')
    op.drop_column('appointments', 'client_attended')
    op.drop_column('appointments', 'host_attended')
    op.drop_index('idx_clients_archived', table_name='clients')
    op.drop_column('clients', 'archived_at')
    op.drop_column('clients', 'is_archived')
