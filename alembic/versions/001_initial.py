"""Initial schema: boats, services, price tiers, bookings, unavailabilities

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

This migration adds:
- boats: vessels with seasonal base prices
- rental_services / boat_rental_services: service defaults and per-boat overrides
- passenger_price_tiers: passenger-count sub-tiers per season
- booking_statuses: status lookup with the blocks_availability flag
- bookings: with is_blocking and the partial slot uniqueness index
- unavailabilities: inclusive date windows blocking a boat
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None

STANDARD_SLOTS = "('morning', 'afternoon', 'full_day')"


def upgrade() -> None:
    bind = op.get_bind()
    is_postgres = bind.dialect.name == 'postgresql'

    # ==================
    # boats table
    # ==================
    op.create_table(
        'boats',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('boat_type', sa.String(50), nullable=True),
        sa.Column('model', sa.String(100), nullable=True),
        sa.Column('capacity', sa.Integer, nullable=True),
        sa.Column('has_rental', sa.Boolean, server_default=sa.true()),
        sa.Column('has_charter', sa.Boolean, server_default=sa.false()),
        sa.Column('requires_license', sa.Boolean, server_default=sa.false()),
        sa.Column('status', sa.String(20), server_default='active'),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('rental_price_high', sa.Numeric(10, 2), nullable=True),
        sa.Column('rental_price_mid', sa.Numeric(10, 2), nullable=True),
        sa.Column('rental_price_low', sa.Numeric(10, 2), nullable=True),
        sa.Column('charter_price_high', sa.Numeric(10, 2), nullable=True),
        sa.Column('charter_price_mid', sa.Numeric(10, 2), nullable=True),
        sa.Column('charter_price_low', sa.Numeric(10, 2), nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )

    # ==================
    # rental_services table
    # ==================
    op.create_table(
        'rental_services',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('type', sa.String(20), server_default='rental'),
        sa.Column('duration_hours', sa.Numeric(5, 2), nullable=True),
        sa.Column('is_collective_tour', sa.Boolean, server_default=sa.false()),
        sa.Column('price_per_person', sa.Numeric(10, 2), nullable=True),
        sa.Column('price_apr_may_oct', sa.Numeric(10, 2), nullable=True),
        sa.Column('price_june', sa.Numeric(10, 2), nullable=True),
        sa.Column('price_july_sept', sa.Numeric(10, 2), nullable=True),
        sa.Column('price_august', sa.Numeric(10, 2), nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )

    # ==================
    # boat_rental_services table
    # ==================
    op.create_table(
        'boat_rental_services',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('boat_id', sa.String(36), sa.ForeignKey('boats.id', ondelete='CASCADE'), nullable=False),
        sa.Column('service_id', sa.String(36), sa.ForeignKey('rental_services.id', ondelete='CASCADE'), nullable=False),
        sa.Column('is_active', sa.Boolean, server_default=sa.true()),
        sa.Column('price_apr_may_oct', sa.Numeric(10, 2), nullable=True),
        sa.Column('price_june', sa.Numeric(10, 2), nullable=True),
        sa.Column('price_july_sept', sa.Numeric(10, 2), nullable=True),
        sa.Column('price_august', sa.Numeric(10, 2), nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint('boat_id', 'service_id', name='uq_boat_rental_services_boat_service'),
    )

    # ==================
    # passenger_price_tiers table
    # ==================
    op.create_table(
        'passenger_price_tiers',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('service_id', sa.String(36), sa.ForeignKey('rental_services.id', ondelete='CASCADE'), nullable=False),
        sa.Column('boat_id', sa.String(36), sa.ForeignKey('boats.id', ondelete='CASCADE'), nullable=True),
        sa.Column('season', sa.String(20), nullable=False),
        sa.Column('min_passengers', sa.Integer, nullable=False, server_default='1'),
        sa.Column('max_passengers', sa.Integer, nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.CheckConstraint('min_passengers >= 1', name='ck_passenger_tiers_min'),
        sa.CheckConstraint(
            'max_passengers IS NULL OR max_passengers >= min_passengers',
            name='ck_passenger_tiers_range'
        ),
    )
    op.create_index('ix_passenger_tiers_lookup', 'passenger_price_tiers', ['service_id', 'boat_id', 'season'])

    # ==================
    # booking_statuses table
    # ==================
    op.create_table(
        'booking_statuses',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('code', sa.String(30), nullable=False, unique=True),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('color_code', sa.String(20), nullable=True),
        sa.Column('blocks_availability', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )

    # ==================
    # bookings table
    # ==================
    op.create_table(
        'bookings',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('booking_number', sa.String(30), nullable=True, unique=True),
        sa.Column('boat_id', sa.String(36), sa.ForeignKey('boats.id', ondelete='CASCADE'), nullable=False),
        sa.Column('service_id', sa.String(36), sa.ForeignKey('rental_services.id', ondelete='SET NULL'), nullable=True),
        sa.Column('customer_id', sa.String(36), nullable=True),
        sa.Column('booking_status_id', sa.String(36), sa.ForeignKey('booking_statuses.id', ondelete='SET NULL'), nullable=True),
        sa.Column('booking_date', sa.Date, nullable=False),
        sa.Column('time_slot', sa.String(50), nullable=False, server_default='full_day'),
        sa.Column('custom_time', sa.String(50), nullable=True),
        sa.Column('num_passengers', sa.Integer, nullable=True),
        sa.Column('is_blocking', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('base_price', sa.Numeric(10, 2), server_default='0'),
        sa.Column('final_price', sa.Numeric(10, 2), server_default='0'),
        sa.Column('deposit_amount', sa.Numeric(10, 2), server_default='0'),
        sa.Column('balance_amount', sa.Numeric(10, 2), server_default='0'),
        sa.Column('security_deposit', sa.Numeric(10, 2), server_default='0'),
        sa.Column('total_paid', sa.Numeric(10, 2), server_default='0'),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_bookings_boat_date', 'bookings', ['boat_id', 'booking_date'])

    # One blocking booking per (boat, date, standard slot)
    where = sa.text(f"is_blocking AND time_slot IN {STANDARD_SLOTS}")
    if is_postgres:
        op.create_index(
            'uq_bookings_blocking_slot', 'bookings', ['boat_id', 'booking_date', 'time_slot'],
            unique=True, postgresql_where=where
        )
    else:
        op.create_index(
            'uq_bookings_blocking_slot', 'bookings', ['boat_id', 'booking_date', 'time_slot'],
            unique=True, sqlite_where=where
        )

    # ==================
    # unavailabilities table
    # ==================
    op.create_table(
        'unavailabilities',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('boat_id', sa.String(36), sa.ForeignKey('boats.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date_from', sa.Date, nullable=False),
        sa.Column('date_to', sa.Date, nullable=False),
        sa.Column('reason', sa.String(255), nullable=True),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.CheckConstraint('date_to >= date_from', name='ck_unavailabilities_range'),
    )
    op.create_index('ix_unavailabilities_boat_range', 'unavailabilities', ['boat_id', 'date_from', 'date_to'])


def downgrade() -> None:
    op.drop_index('ix_unavailabilities_boat_range', table_name='unavailabilities')
    op.drop_table('unavailabilities')
    op.drop_index('uq_bookings_blocking_slot', table_name='bookings')
    op.drop_index('ix_bookings_boat_date', table_name='bookings')
    op.drop_table('bookings')
    op.drop_table('booking_statuses')
    op.drop_index('ix_passenger_tiers_lookup', table_name='passenger_price_tiers')
    op.drop_table('passenger_price_tiers')
    op.drop_table('boat_rental_services')
    op.drop_table('rental_services')
    op.drop_table('boats')
