"""Create bookings table

Revision ID: 0001
Revises:
Create Date: 2026-10-16 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table('bookings',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('confirmation_code', sa.String(length=6), nullable=False),
        sa.Column('customer_id', sa.Uuid(), nullable=False),
        sa.Column('flight_id', sa.Uuid(), nullable=False),
        sa.Column('passengers', sa.JSON(), nullable=False),
        sa.Column('base_fare', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('taxes', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('total', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('payment_transaction_id', sa.String(length=128), nullable=False),
        sa.Column('payment_status', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('base_fare > 0', name='ck_booking_base_fare_positive'),
        sa.CheckConstraint('taxes >= 0', name='ck_booking_taxes_non_negative'),
        sa.CheckConstraint('total > 0', name='ck_booking_total_positive'),
        sa.CheckConstraint('length(confirmation_code) = 6', name='ck_booking_confirmation_code_length'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('confirmation_code')
    )
    # Secondary access paths: customer, flight (+status) and status listings
    op.create_index('ix_bookings_customer_created', 'bookings', ['customer_id', 'created_at'], unique=False)
    op.create_index('ix_bookings_flight_status', 'bookings', ['flight_id', 'status'], unique=False)
    op.create_index('ix_bookings_status_created', 'bookings', ['status', 'created_at'], unique=False)


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index('ix_bookings_status_created', table_name='bookings')
    op.drop_index('ix_bookings_flight_status', table_name='bookings')
    op.drop_index('ix_bookings_customer_created', table_name='bookings')
    op.drop_table('bookings')
