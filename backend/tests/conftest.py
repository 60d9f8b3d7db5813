"""
Pytest fixtures and configuration for Comanda Platform Backend tests

This file provides shared fixtures that can be used across all test modules.
Unit tests mock repositories; only database_url / db_cursor connect to DATABASE_URL.
"""
import os
import pytest
import psycopg2
from psycopg2.extras import RealDictCursor
from datetime import datetime, timedelta
from decimal import Decimal
from dotenv import load_dotenv
from fastapi.testclient import TestClient

# Load environment variables for tests
load_dotenv()

from app.main import app
from app.core.auth import TokenUser, get_current_user
from app.core.cache import query_cache
from app.core.rate_limit import rate_limiter
from app.domain.order import Order, OrderItem
from app.domain.table import Table, TableOrder, TableOrderItem


@pytest.fixture(autouse=True)
def clean_state():
    """Fresh cache and rate limit windows for every test"""
    query_cache.clear()
    rate_limiter.reset()
    yield
    query_cache.clear()
    app.dependency_overrides.clear()


def _login_as(role: str, user_id: str):
    app.dependency_overrides[get_current_user] = lambda: TokenUser(
        id=user_id, email=f"{role}@comanda.test", name=role.title(), role=role
    )


@pytest.fixture
def client():
    """Anonymous API client"""
    return TestClient(app)


@pytest.fixture
def admin_client():
    _login_as("admin", "admin-1")
    return TestClient(app)


@pytest.fixture
def staff_client():
    _login_as("staff", "waiter-1")
    return TestClient(app)


@pytest.fixture
def driver_client():
    _login_as("driver", "driver-1")
    return TestClient(app)


@pytest.fixture
def base_time():
    return datetime(2025, 3, 14, 19, 30)


@pytest.fixture
def make_table_item(base_time):
    """Factory for table order items"""
    def _make(item_id="i1", order_id=1, price="10.00", quantity=1, status="pending", minutes=0):
        return TableOrderItem(
            id=item_id,
            table_order_id=order_id,
            product_id="p1",
            product_name="X-Burger",
            quantity=quantity,
            unit_price=Decimal(price),
            status=status,
            ordered_at=base_time + timedelta(minutes=minutes),
        )
    return _make


@pytest.fixture
def make_table_order(base_time):
    """Factory for table orders"""
    def _make(order_id=1, table_id="t1", status="open", items=None, **fields):
        return TableOrder(
            id=order_id,
            table_id=table_id,
            status=status,
            opened_at=base_time,
            created_at=base_time,
            table_number=fields.pop('table_number', 5),
            items=items or [],
            **fields
        )
    return _make


@pytest.fixture
def make_table(base_time):
    def _make(table_id="t1", number=5, status="available", current_order_id=None):
        return Table(id=table_id, number=number, status=status, current_order_id=current_order_id)
    return _make


@pytest.fixture
def make_order(base_time):
    """Factory for delivery orders"""
    def _make(order_id=100, status="pending", driver_id=None, total="50.00", items=None):
        return Order(
            id=order_id,
            customer_name="Ana",
            customer_phone="11999990000",
            address_street="Rua das Flores",
            address_number="120",
            address_neighborhood="Centro",
            payment_method="pix",
            status=status,
            total_amount=Decimal(total),
            driver_id=driver_id,
            created_at=base_time,
            items=items if items is not None else [
                OrderItem(id="oi1", order_id=order_id, product_name="Pizza", quantity=1, unit_price=Decimal(total))
            ],
        )
    return _make


@pytest.fixture(scope="session")
def database_url():
    """
    Provides the database URL for integration tests

    Scope: session (created once per test session)
    """
    url = os.getenv("DATABASE_URL")
    if not url:
        pytest.skip("DATABASE_URL not configured")
    return url


@pytest.fixture(scope="function")
def db_cursor(database_url):
    """
    Provides a RealDictCursor on a fresh connection, closed after the test
    """
    conn = psycopg2.connect(database_url)
    cursor = conn.cursor(cursor_factory=RealDictCursor)
    yield cursor
    cursor.close()
    conn.close()
