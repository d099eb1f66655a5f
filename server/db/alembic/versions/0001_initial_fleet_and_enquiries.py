"""Initial fleet and enquiry schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 10:00:00.000000

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
    # Fleet
    op.create_table('cars',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('brand', sa.String(length=128), nullable=False),
        sa.Column('category', sa.String(length=32), nullable=False),
        sa.Column('category_label', sa.String(length=64), nullable=False),
        sa.Column('transmission', sa.String(length=32), nullable=False),
        sa.Column('fuel', sa.String(length=16), nullable=False),
        sa.Column('image', sa.String(length=512), nullable=True),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('price_3_days', sa.Integer(), nullable=True),
        sa.Column('price_7_days', sa.Integer(), nullable=True),
        sa.Column('price_15_days', sa.Integer(), nullable=True),
        sa.Column('km_limit', sa.Integer(), nullable=False, server_default='300'),
        sa.Column('extra_km_charge', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.CheckConstraint('price > 0', name='ck_car_price_positive'),
        sa.CheckConstraint('price_3_days IS NULL OR price_3_days > 0', name='ck_car_price_3_days_positive'),
        sa.CheckConstraint('price_7_days IS NULL OR price_7_days > 0', name='ck_car_price_7_days_positive'),
        sa.CheckConstraint('price_15_days IS NULL OR price_15_days > 0', name='ck_car_price_15_days_positive'),
        sa.CheckConstraint('km_limit >= 0', name='ck_car_km_limit_non_negative'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_cars_name'), 'cars', ['name'], unique=False)
    op.create_index(op.f('ix_cars_price'), 'cars', ['price'], unique=False)

    # Enquiries and confirmed bookings
    op.create_table('booking_enquiries',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('customer_name', sa.String(length=128), nullable=False),
        sa.Column('customer_phone', sa.String(length=10), nullable=False),
        sa.Column('pickup_at', sa.DateTime(), nullable=False),
        sa.Column('drop_at', sa.DateTime(), nullable=False),
        sa.Column('pickup_location', sa.String(length=64), nullable=True),
        sa.Column('total_days', sa.Integer(), nullable=False),
        sa.Column('total_hours', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('transmission', sa.String(length=32), nullable=True),
        sa.Column('car_name', sa.String(length=256), nullable=True),
        sa.Column('estimated_price', sa.Integer(), nullable=True),
        sa.Column('booking_id', sa.String(length=32), nullable=True),
        sa.Column('deposit_type', sa.String(length=16), nullable=True),
        sa.Column('source', sa.String(length=16), nullable=False, server_default='availability'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='Pending'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.CheckConstraint('length(customer_name) >= 2', name='ck_enquiry_customer_name_min_length'),
        sa.CheckConstraint('length(customer_phone) = 10', name='ck_enquiry_customer_phone_length'),
        sa.CheckConstraint('total_days >= 2', name='ck_enquiry_total_days_min'),
        sa.CheckConstraint('total_hours >= 0 AND total_hours <= 23', name='ck_enquiry_total_hours_range'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_booking_enquiries_customer_phone'), 'booking_enquiries', ['customer_phone'], unique=False)
    op.create_index(op.f('ix_booking_enquiries_booking_id'), 'booking_enquiries', ['booking_id'], unique=False)
    op.create_index(op.f('ix_booking_enquiries_status'), 'booking_enquiries', ['status'], unique=False)
    op.create_index(op.f('ix_booking_enquiries_created_at'), 'booking_enquiries', ['created_at'], unique=False)
    # Rate limit lookups: recent enquiries per phone
    op.create_index(
        'ix_booking_enquiries_phone_created_at',
        'booking_enquiries',
        ['customer_phone', 'created_at'],
        unique=False
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index('ix_booking_enquiries_phone_created_at', table_name='booking_enquiries')
    op.drop_index(op.f('ix_booking_enquiries_created_at'), table_name='booking_enquiries')
    op.drop_index(op.f('ix_booking_enquiries_status'), table_name='booking_enquiries')
    op.drop_index(op.f('ix_booking_enquiries_booking_id'), table_name='booking_enquiries')
    op.drop_index(op.f('ix_booking_enquiries_customer_phone'), table_name='booking_enquiries')
    op.drop_table('booking_enquiries')

    op.drop_index(op.f('ix_cars_price'), table_name='cars')
    op.drop_index(op.f('ix_cars_name'), table_name='cars')
    op.drop_table('cars')
