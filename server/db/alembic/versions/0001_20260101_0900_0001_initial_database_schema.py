"""Initial database schema

Revision ID: 0001
Revises:
Create Date: 2026-01-01 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _id_column() -> sa.Column:
    return sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade database schema."""
    # Catalogue
    op.create_table('packages',
        _id_column(),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('weekday_price', sa.Float(), nullable=False),
        sa.Column('weekend_price', sa.Float(), nullable=False),
        sa.Column('holiday_price', sa.Float(), nullable=False),
        sa.Column('duration', sa.Float(), nullable=False),
        sa.Column('max_guests', sa.Integer(), nullable=False),
        sa.Column('features', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('weekday_price >= 0', name='ck_package_weekday_price_non_negative'),
        sa.CheckConstraint('weekend_price >= 0', name='ck_package_weekend_price_non_negative'),
        sa.CheckConstraint('holiday_price >= 0', name='ck_package_holiday_price_non_negative'),
        sa.CheckConstraint('duration >= 1 AND duration <= 24', name='ck_package_duration_range'),
        sa.CheckConstraint('max_guests >= 1', name='ck_package_max_guests_positive'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_packages_name'), 'packages', ['name'], unique=False)
    op.create_index(op.f('ix_packages_is_active'), 'packages', ['is_active'], unique=False)

    op.create_table('event_themes',
        _id_column(),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('packages', sa.JSON(), nullable=False),
        sa.Column('variations', sa.JSON(), nullable=False),
        sa.Column('themes', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_event_themes_name'), 'event_themes', ['name'], unique=False)

    op.create_table('food_options',
        _id_column(),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('base_price', sa.Float(), nullable=False),
        sa.Column('category', sa.String(length=20), nullable=False),
        sa.Column('adult_dishes', sa.JSON(), nullable=False),
        sa.Column('kids_dishes', sa.JSON(), nullable=False),
        sa.Column('upgrades', sa.JSON(), nullable=False),
        sa.Column('main_image', sa.String(length=500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('base_price >= 0', name='ck_food_option_base_price_non_negative'),
        sa.CheckConstraint(
            "category IN ('main', 'appetizer', 'dessert', 'beverage')", name='ck_food_option_category_valid'
        ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_food_options_name'), 'food_options', ['name'], unique=False)

    op.create_table('extra_services',
        _id_column(),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('category', sa.String(length=20), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('price >= 0', name='ck_extra_service_price_non_negative'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_extra_services_name'), 'extra_services', ['name'], unique=False)

    op.create_table('thematics',
        _id_column(),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('slug', sa.String(length=220), nullable=False),
        sa.Column('cover_image', sa.String(length=500), nullable=True),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('order', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_thematics_slug'), 'thematics', ['slug'], unique=True)

    op.create_table('coupons',
        _id_column(),
        sa.Column('code', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('discount_type', sa.String(length=20), nullable=False),
        sa.Column('discount_value', sa.Float(), nullable=False),
        sa.Column('free_service_id', sa.String(length=64), nullable=True),
        sa.Column('applicable_to', sa.String(length=20), nullable=False),
        sa.Column('max_uses', sa.Integer(), nullable=True),
        sa.Column('used_count', sa.Integer(), nullable=False),
        sa.Column('valid_from', sa.DateTime(), nullable=False),
        sa.Column('valid_until', sa.DateTime(), nullable=False),
        sa.Column('valid_days', sa.JSON(), nullable=False),
        sa.Column('valid_time_from', sa.String(length=5), nullable=True),
        sa.Column('valid_time_to', sa.String(length=5), nullable=True),
        sa.Column('min_order_amount', sa.Float(), nullable=True),
        sa.Column('min_guests', sa.Integer(), nullable=True),
        sa.Column('new_customers_only', sa.Boolean(), nullable=False),
        sa.Column('allowed_customer_emails', sa.JSON(), nullable=False),
        sa.Column('excluded_customer_emails', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('analytics', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('discount_value >= 0', name='ck_coupon_discount_non_negative'),
        sa.CheckConstraint('used_count >= 0', name='ck_coupon_used_count_non_negative'),
        sa.CheckConstraint('length(code) >= 3', name='ck_coupon_code_min_length'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_coupons_code'), 'coupons', ['code'], unique=True)

    op.create_table('system_configs',
        _id_column(),
        sa.Column('advance_booking_days', sa.Integer(), nullable=False),
        sa.Column('min_advance_booking_days', sa.Integer(), nullable=False),
        sa.Column('max_concurrent_events', sa.Integer(), nullable=False),
        sa.Column('default_event_duration', sa.Float(), nullable=False),
        sa.Column('business_hours', sa.JSON(), nullable=False),
        sa.Column('time_blocks', sa.JSON(), nullable=False),
        sa.Column('rest_days', sa.JSON(), nullable=False),
        sa.Column('one_event_per_day', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('advance_booking_days >= 1', name='ck_system_config_advance_days_positive'),
        sa.CheckConstraint('min_advance_booking_days >= 0', name='ck_system_config_min_advance_non_negative'),
        sa.CheckConstraint('max_concurrent_events >= 1', name='ck_system_config_max_concurrent_positive'),
        sa.CheckConstraint(
            'default_event_duration >= 1 AND default_event_duration <= 24',
            name='ck_system_config_default_duration_range'
        ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_system_configs_is_active'), 'system_configs', ['is_active'], unique=False)

    # Reservations and finances
    op.create_table('reservations',
        _id_column(),
        sa.Column('package_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('package', sa.JSON(), nullable=False),
        sa.Column('event_date', sa.Date(), nullable=False),
        sa.Column('event_time', sa.String(length=5), nullable=False),
        sa.Column('event_duration', sa.Float(), nullable=True),
        sa.Column('event_block', sa.JSON(), nullable=True),
        sa.Column('is_rest_day', sa.Boolean(), nullable=False),
        sa.Column('rest_day_fee', sa.Float(), nullable=False),
        sa.Column('food_option', sa.JSON(), nullable=True),
        sa.Column('extra_services', sa.JSON(), nullable=False),
        sa.Column('event_theme', sa.JSON(), nullable=True),
        sa.Column('customer_name', sa.String(length=200), nullable=False),
        sa.Column('customer_phone', sa.String(length=40), nullable=False),
        sa.Column('customer_email', sa.String(length=255), nullable=False),
        sa.Column('child_name', sa.String(length=200), nullable=False),
        sa.Column('child_age', sa.Integer(), nullable=False),
        sa.Column('special_comments', sa.Text(), nullable=True),
        sa.Column('pricing', sa.JSON(), nullable=False),
        sa.Column('coupon_code', sa.String(length=20), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('payment_status', sa.String(length=20), nullable=False),
        sa.Column('payment_method', sa.String(length=20), nullable=True),
        sa.Column('payment_date', sa.DateTime(), nullable=True),
        sa.Column('payment_notes', sa.Text(), nullable=True),
        sa.Column('amount_paid', sa.Float(), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('child_age >= 1 AND child_age <= 18', name='ck_reservation_child_age_range'),
        sa.CheckConstraint('amount_paid >= 0', name='ck_reservation_amount_paid_non_negative'),
        sa.CheckConstraint('rest_day_fee >= 0', name='ck_reservation_rest_day_fee_non_negative'),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled', 'completed')", name='ck_reservation_status_valid'
        ),
        sa.CheckConstraint(
            "payment_status IN ('pending', 'paid', 'partial', 'overdue')",
            name='ck_reservation_payment_status_valid'
        ),
        sa.ForeignKeyConstraint(['package_id'], ['packages.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_reservations_package_id'), 'reservations', ['package_id'], unique=False)
    op.create_index(op.f('ix_reservations_event_date'), 'reservations', ['event_date'], unique=False)
    op.create_index(op.f('ix_reservations_customer_email'), 'reservations', ['customer_email'], unique=False)
    op.create_index(op.f('ix_reservations_status'), 'reservations', ['status'], unique=False)
    op.create_index(op.f('ix_reservations_user_id'), 'reservations', ['user_id'], unique=False)

    op.create_table('finances',
        _id_column(),
        sa.Column('type', sa.String(length=10), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('category', sa.String(length=20), nullable=False),
        sa.Column('subcategory', sa.String(length=100), nullable=True),
        sa.Column('reservation_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('reservation_customer_name', sa.String(length=200), nullable=True),
        sa.Column('reservation_event_date', sa.Date(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('payment_method', sa.String(length=20), nullable=True),
        sa.Column('reference', sa.String(length=100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_by', sa.String(length=255), nullable=True),
        sa.Column('parent_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('is_system_generated', sa.Boolean(), nullable=False),
        sa.Column('is_editable', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('amount >= 0', name='ck_finance_amount_non_negative'),
        sa.CheckConstraint("type IN ('income', 'expense')", name='ck_finance_type_valid'),
        sa.CheckConstraint(
            "category IN ('reservation', 'operational', 'salary', 'other')", name='ck_finance_category_valid'
        ),
        sa.CheckConstraint("status IN ('pending', 'completed', 'cancelled')", name='ck_finance_status_valid'),
        sa.ForeignKeyConstraint(['reservation_id'], ['reservations.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['parent_id'], ['finances.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_finances_reservation_id'), 'finances', ['reservation_id'], unique=False)
    op.create_index(op.f('ix_finances_parent_id'), 'finances', ['parent_id'], unique=False)
    op.create_index(op.f('ix_finances_status'), 'finances', ['status'], unique=False)
    op.create_index(op.f('ix_finances_is_system_generated'), 'finances', ['is_system_generated'], unique=False)
    op.create_index('ix_finances_type_date', 'finances', ['type', 'date'], unique=False)
    op.create_index('ix_finances_category_date', 'finances', ['category', 'date'], unique=False)

    # Suppliers and purchasing
    op.create_table('suppliers',
        _id_column(),
        sa.Column('supplier_id', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('business_name', sa.String(length=200), nullable=True),
        sa.Column('tax_id', sa.String(length=20), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('contact_info', sa.JSON(), nullable=False),
        sa.Column('address', sa.JSON(), nullable=False),
        sa.Column('payment_method', sa.String(length=20), nullable=False),
        sa.Column('credit_days', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('rating_quality', sa.Float(), nullable=False),
        sa.Column('rating_delivery', sa.Float(), nullable=False),
        sa.Column('rating_communication', sa.Float(), nullable=False),
        sa.Column('rating_pricing', sa.Float(), nullable=False),
        sa.Column('rating_overall', sa.Float(), nullable=False),
        sa.Column('review_count', sa.Integer(), nullable=False),
        sa.Column('penalty_score', sa.Float(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('credit_days >= 0 AND credit_days <= 365', name='ck_supplier_credit_days_range'),
        sa.CheckConstraint('rating_quality >= 1 AND rating_quality <= 5', name='ck_supplier_rating_quality_range'),
        sa.CheckConstraint('rating_delivery >= 1 AND rating_delivery <= 5', name='ck_supplier_rating_delivery_range'),
        sa.CheckConstraint(
            'rating_communication >= 1 AND rating_communication <= 5',
            name='ck_supplier_rating_communication_range'
        ),
        sa.CheckConstraint('rating_pricing >= 1 AND rating_pricing <= 5', name='ck_supplier_rating_pricing_range'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_suppliers_supplier_id'), 'suppliers', ['supplier_id'], unique=True)
    op.create_index(op.f('ix_suppliers_name'), 'suppliers', ['name'], unique=False)
    op.create_index(op.f('ix_suppliers_code'), 'suppliers', ['code'], unique=True)
    op.create_index(op.f('ix_suppliers_is_active'), 'suppliers', ['is_active'], unique=False)
    op.create_index(op.f('ix_suppliers_user_id'), 'suppliers', ['user_id'], unique=True)

    op.create_table('supplier_penalties',
        _id_column(),
        sa.Column('supplier_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('supplier_name', sa.String(length=200), nullable=False),
        sa.Column('concept', sa.String(length=40), nullable=False),
        sa.Column('severity', sa.String(length=20), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('penalty_value', sa.Integer(), nullable=False),
        sa.Column('monetary_penalty', sa.Float(), nullable=True),
        sa.Column('applied_by', sa.String(length=255), nullable=False),
        sa.Column('applied_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('evidence', sa.JSON(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('updated_by', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('penalty_value >= 1 AND penalty_value <= 100', name='ck_penalty_value_range'),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_supplier_penalties_supplier_id'), 'supplier_penalties', ['supplier_id'], unique=False)
    op.create_index(op.f('ix_supplier_penalties_applied_at'), 'supplier_penalties', ['applied_at'], unique=False)
    op.create_index(op.f('ix_supplier_penalties_status'), 'supplier_penalties', ['status'], unique=False)

    op.create_table('purchase_orders',
        _id_column(),
        sa.Column('purchase_order_id', sa.String(length=40), nullable=False),
        sa.Column('supplier_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('supplier_name', sa.String(length=200), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.Column('subtotal', sa.Float(), nullable=False),
        sa.Column('tax_rate', sa.Float(), nullable=False),
        sa.Column('tax', sa.Float(), nullable=False),
        sa.Column('total', sa.Float(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('expected_delivery_date', sa.Date(), nullable=True),
        sa.Column('actual_delivery_date', sa.Date(), nullable=True),
        sa.Column('delivery_location', sa.String(length=100), nullable=True),
        sa.Column('payment_method', sa.String(length=20), nullable=False),
        sa.Column('credit_days', sa.Integer(), nullable=False),
        sa.Column('payment_due_date', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status_history', sa.JSON(), nullable=False),
        sa.Column('created_by', sa.String(length=255), nullable=True),
        sa.Column('approved_by', sa.String(length=255), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('ordered_by', sa.String(length=255), nullable=True),
        sa.Column('ordered_at', sa.DateTime(), nullable=True),
        sa.Column('received_by', sa.String(length=255), nullable=True),
        sa.Column('received_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_by', sa.String(length=255), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('subtotal >= 0', name='ck_purchase_order_subtotal_non_negative'),
        sa.CheckConstraint('tax_rate >= 0 AND tax_rate <= 1', name='ck_purchase_order_tax_rate_range'),
        sa.CheckConstraint('total >= 0', name='ck_purchase_order_total_non_negative'),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_purchase_orders_purchase_order_id'), 'purchase_orders', ['purchase_order_id'], unique=True)
    op.create_index(op.f('ix_purchase_orders_supplier_id'), 'purchase_orders', ['supplier_id'], unique=False)
    op.create_index(op.f('ix_purchase_orders_status'), 'purchase_orders', ['status'], unique=False)

    # Inventory
    op.create_table('products',
        _id_column(),
        sa.Column('product_id', sa.String(length=40), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('sku', sa.String(length=100), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=False),
        sa.Column('base_unit', sa.String(length=20), nullable=False),
        sa.Column('alternative_units', sa.JSON(), nullable=False),
        sa.Column('min_stock', sa.Float(), nullable=False),
        sa.Column('reorder_point', sa.Float(), nullable=False),
        sa.Column('max_stock', sa.Float(), nullable=False),
        sa.Column('cost_price', sa.Float(), nullable=False),
        sa.Column('unit_price', sa.Float(), nullable=False),
        sa.Column('is_perishable', sa.Boolean(), nullable=False),
        sa.Column('supplier_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('created_by', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('min_stock >= 0', name='ck_product_min_stock_non_negative'),
        sa.CheckConstraint('max_stock >= 0', name='ck_product_max_stock_non_negative'),
        sa.CheckConstraint('cost_price >= 0', name='ck_product_cost_price_non_negative'),
        sa.CheckConstraint('unit_price >= 0', name='ck_product_unit_price_non_negative'),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_products_product_id'), 'products', ['product_id'], unique=True)
    op.create_index(op.f('ix_products_name'), 'products', ['name'], unique=False)
    op.create_index(op.f('ix_products_sku'), 'products', ['sku'], unique=True)
    op.create_index(op.f('ix_products_category'), 'products', ['category'], unique=False)
    op.create_index(op.f('ix_products_supplier_id'), 'products', ['supplier_id'], unique=False)
    op.create_index(op.f('ix_products_is_active'), 'products', ['is_active'], unique=False)

    op.create_table('inventories',
        _id_column(),
        sa.Column('product_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('location_id', sa.String(length=100), nullable=False),
        sa.Column('unit', sa.String(length=20), nullable=False),
        sa.Column('available', sa.Float(), nullable=False),
        sa.Column('reserved', sa.Float(), nullable=False),
        sa.Column('quarantine', sa.Float(), nullable=False),
        sa.Column('last_updated_by', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('available >= 0', name='ck_inventory_available_non_negative'),
        sa.CheckConstraint('reserved >= 0', name='ck_inventory_reserved_non_negative'),
        sa.CheckConstraint('quarantine >= 0', name='ck_inventory_quarantine_non_negative'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_id', 'location_id', name='uq_inventory_product_location')
    )
    op.create_index(op.f('ix_inventories_product_id'), 'inventories', ['product_id'], unique=False)
    op.create_index(op.f('ix_inventories_location_id'), 'inventories', ['location_id'], unique=False)

    op.create_table('inventory_batches',
        _id_column(),
        sa.Column('inventory_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('batch_id', sa.String(length=60), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('reserved_quantity', sa.Float(), nullable=False),
        sa.Column('unit', sa.String(length=20), nullable=False),
        sa.Column('cost_per_unit', sa.Float(), nullable=False),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        sa.Column('received_date', sa.DateTime(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.CheckConstraint('quantity >= 0', name='ck_batch_quantity_non_negative'),
        sa.CheckConstraint('reserved_quantity >= 0', name='ck_batch_reserved_non_negative'),
        sa.CheckConstraint('cost_per_unit >= 0', name='ck_batch_cost_non_negative'),
        sa.ForeignKeyConstraint(['inventory_id'], ['inventories.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_inventory_batches_inventory_id'), 'inventory_batches', ['inventory_id'], unique=False)
    op.create_index(op.f('ix_inventory_batches_batch_id'), 'inventory_batches', ['batch_id'], unique=False)
    op.create_index(op.f('ix_inventory_batches_expiry_date'), 'inventory_batches', ['expiry_date'], unique=False)

    op.create_table('inventory_movements',
        _id_column(),
        sa.Column('movement_id', sa.String(length=40), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('product_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('from_location', sa.String(length=100), nullable=True),
        sa.Column('to_location', sa.String(length=100), nullable=True),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('unit', sa.String(length=20), nullable=False),
        sa.Column('batch_id', sa.String(length=60), nullable=True),
        sa.Column('reason', sa.String(length=500), nullable=False),
        sa.Column('unit_cost', sa.Float(), nullable=True),
        sa.Column('total_cost', sa.Float(), nullable=True),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('performed_by', sa.String(length=255), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('quantity > 0', name='ck_movement_quantity_positive'),
        sa.CheckConstraint('length(reason) > 0', name='ck_movement_reason_not_empty'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_inventory_movements_movement_id'), 'inventory_movements', ['movement_id'], unique=True)
    op.create_index(op.f('ix_inventory_movements_type'), 'inventory_movements', ['type'], unique=False)
    op.create_index(op.f('ix_inventory_movements_product_id'), 'inventory_movements', ['product_id'], unique=False)
    op.create_index(op.f('ix_inventory_movements_from_location'), 'inventory_movements', ['from_location'], unique=False)
    op.create_index(op.f('ix_inventory_movements_to_location'), 'inventory_movements', ['to_location'], unique=False)
    op.create_index(op.f('ix_inventory_movements_performed_by'), 'inventory_movements', ['performed_by'], unique=False)

    op.create_table('inventory_alerts',
        _id_column(),
        sa.Column('alert_id', sa.String(length=40), nullable=False),
        sa.Column('type', sa.String(length=30), nullable=False),
        sa.Column('priority', sa.String(length=10), nullable=False),
        sa.Column('product_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('location_id', sa.String(length=100), nullable=False),
        sa.Column('batch_id', sa.String(length=60), nullable=True),
        sa.Column('title', sa.String(length=300), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('threshold', sa.Float(), nullable=True),
        sa.Column('current_value', sa.Float(), nullable=True),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('resolved_by', sa.String(length=255), nullable=True),
        sa.Column('resolved_at', sa.DateTime(), nullable=True),
        sa.Column('resolution', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_inventory_alerts_alert_id'), 'inventory_alerts', ['alert_id'], unique=True)
    op.create_index(op.f('ix_inventory_alerts_type'), 'inventory_alerts', ['type'], unique=False)
    op.create_index(op.f('ix_inventory_alerts_product_id'), 'inventory_alerts', ['product_id'], unique=False)
    op.create_index(op.f('ix_inventory_alerts_location_id'), 'inventory_alerts', ['location_id'], unique=False)
    op.create_index(op.f('ix_inventory_alerts_is_active'), 'inventory_alerts', ['is_active'], unique=False)

    # Site content
    op.create_table('hero_contents',
        _id_column(),
        sa.Column('main_title', sa.String(length=200), nullable=False),
        sa.Column('brand_title', sa.String(length=100), nullable=False),
        sa.Column('subtitle', sa.Text(), nullable=False),
        sa.Column('primary_button', sa.JSON(), nullable=False),
        sa.Column('secondary_button', sa.JSON(), nullable=False),
        sa.Column('background_media', sa.JSON(), nullable=False),
        sa.Column('show_glitter', sa.Boolean(), nullable=False),
        sa.Column('promotion', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_hero_contents_is_active'), 'hero_contents', ['is_active'], unique=False)

    op.create_table('gallery_items',
        _id_column(),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('type', sa.String(length=10), nullable=False),
        sa.Column('src', sa.String(length=500), nullable=False),
        sa.Column('alt', sa.String(length=300), nullable=False),
        sa.Column('category', sa.String(length=20), nullable=False),
        sa.Column('aspect_ratio', sa.String(length=20), nullable=False),
        sa.Column('featured', sa.Boolean(), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False),
        sa.Column('order', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_gallery_items_category'), 'gallery_items', ['category'], unique=False)
    op.create_index(op.f('ix_gallery_items_active'), 'gallery_items', ['active'], unique=False)

    op.create_table('carousel_cards',
        _id_column(),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('icon', sa.String(length=100), nullable=False),
        sa.Column('emoji', sa.String(length=16), nullable=False),
        sa.Column('background_media', sa.JSON(), nullable=False),
        sa.Column('gradient_colors', sa.String(length=100), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.Column('created_by', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_carousel_cards_is_active'), 'carousel_cards', ['is_active'], unique=False)

    op.create_table('contact_settings',
        _id_column(),
        sa.Column('business_name', sa.String(length=200), nullable=False),
        sa.Column('tagline', sa.String(length=300), nullable=True),
        sa.Column('phones', sa.JSON(), nullable=False),
        sa.Column('emails', sa.JSON(), nullable=False),
        sa.Column('whatsapp', sa.JSON(), nullable=False),
        sa.Column('address', sa.JSON(), nullable=False),
        sa.Column('business_hours', sa.JSON(), nullable=False),
        sa.Column('social_media', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('last_updated_by', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('contact_messages',
        _id_column(),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=40), nullable=False),
        sa.Column('event_type', sa.String(length=20), nullable=False),
        sa.Column('event_date', sa.String(length=40), nullable=True),
        sa.Column('guest_count', sa.String(length=10), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('source', sa.String(length=40), nullable=False),
        sa.Column('ip_address', sa.String(length=100), nullable=True),
        sa.Column('user_agent', sa.String(length=500), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_contact_messages_event_type'), 'contact_messages', ['event_type'], unique=False)
    op.create_index(op.f('ix_contact_messages_status'), 'contact_messages', ['status'], unique=False)

    op.create_table('scheduled_posts',
        _id_column(),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('scheduled_date', sa.DateTime(), nullable=False),
        sa.Column('published_date', sa.DateTime(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('author', sa.String(length=255), nullable=False),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('priority', sa.String(length=10), nullable=False),
        sa.Column('platform', sa.String(length=20), nullable=False),
        sa.Column('social_media_settings', sa.JSON(), nullable=False),
        sa.Column('publish_attempts', sa.Integer(), nullable=False),
        sa.Column('last_error', sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('publish_attempts >= 0', name='ck_scheduled_post_attempts_non_negative'),
        sa.CheckConstraint(
            "status IN ('scheduled', 'published', 'cancelled', 'failed')", name='ck_scheduled_post_status_valid'
        ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_scheduled_posts_scheduled_date'), 'scheduled_posts', ['scheduled_date'], unique=False)
    op.create_index(op.f('ix_scheduled_posts_status'), 'scheduled_posts', ['status'], unique=False)
    op.create_index(op.f('ix_scheduled_posts_author'), 'scheduled_posts', ['author'], unique=False)

    # Idempotency
    op.create_table('idempotency_records',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('idempotency_key', sa.String(length=255), nullable=False),
        sa.Column('method', sa.String(length=100), nullable=False),
        sa.Column('owner', sa.String(length=255), nullable=True),
        sa.Column('request_body_hash', sa.String(length=64), nullable=False),
        sa.Column('response_status_code', sa.Integer(), nullable=False),
        sa.Column('response_body', sa.Text(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('length(idempotency_key) > 0', name='ck_idempotency_key_not_empty'),
        sa.CheckConstraint('length(request_body_hash) = 64', name='ck_idempotency_hash_length'),
        sa.CheckConstraint(
            'response_status_code >= 100 AND response_status_code <= 599', name='ck_idempotency_status_code_valid'
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('idempotency_key', 'method', name='uq_idempotency_key_method')
    )
    op.create_index(op.f('ix_idempotency_records_idempotency_key'), 'idempotency_records', ['idempotency_key'], unique=False)
    op.create_index(op.f('ix_idempotency_records_method'), 'idempotency_records', ['method'], unique=False)
    op.create_index(op.f('ix_idempotency_records_expires_at'), 'idempotency_records', ['expires_at'], unique=False)


def downgrade() -> None:
    """Downgrade database schema."""
    for table in (
        'idempotency_records',
        'scheduled_posts',
        'contact_messages',
        'contact_settings',
        'carousel_cards',
        'gallery_items',
        'hero_contents',
        'inventory_alerts',
        'inventory_movements',
        'inventory_batches',
        'inventories',
        'products',
        'purchase_orders',
        'supplier_penalties',
        'suppliers',
        'finances',
        'reservations',
        'system_configs',
        'coupons',
        'thematics',
        'extra_services',
        'food_options',
        'event_themes',
        'packages',
    ):
        op.drop_table(table)
