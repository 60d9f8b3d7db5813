"""
Integration checks against a real database (skipped without DATABASE_URL)

Read-only: verifies the tables and columns the repositories query exist.
"""
import pytest

from app.repositories.menu_repository import CATALOG_TABLES

REQUIRED_COLUMNS = {
    'store_config': {'is_open', 'delivery_fee', 'delivery_fee_mode', 'min_order_value'},
    'business_hours': {'day_of_week', 'open_time', 'close_time', 'is_active'},
    'orders': {'status', 'driver_id', 'driver_name', 'total_amount', 'created_at', 'updated_at'},
    'order_items': {'order_id', 'product_name', 'quantity', 'unit_price', 'observation'},
    'tables': {'number', 'status', 'current_order_id'},
    'table_orders': {'table_id', 'status', 'service_fee_enabled', 'service_fee_percentage', 'discount_type'},
    'table_order_items': {'table_order_id', 'status', 'ordered_at', 'delivered_at'},
    'coupons': {'code', 'discount_type', 'discount_value', 'max_uses', 'current_uses', 'expires_at'},
    'delivery_zones': {'name', 'fee', 'is_active', 'sort_order'},
    'drivers': {'name', 'is_active'},
    'waiters': {'name', 'is_active'},
}


def _columns(cursor, table):
    cursor.execute("""
        SELECT column_name
        FROM information_schema.columns
        WHERE table_schema = 'public' AND table_name = %s
    """, (table,))
    return {row['column_name'] for row in cursor.fetchall()}


@pytest.mark.parametrize("table,columns", sorted(REQUIRED_COLUMNS.items()))
def test_table_has_columns(db_cursor, table, columns):
    missing = columns - _columns(db_cursor, table)
    assert not missing, f"{table} is missing {sorted(missing)}"


@pytest.mark.parametrize("catalog", sorted(CATALOG_TABLES))
def test_catalog_tables_exist(db_cursor, catalog):
    category_table, product_table = CATALOG_TABLES[catalog]
    assert _columns(db_cursor, category_table)
    assert _columns(db_cursor, product_table)
