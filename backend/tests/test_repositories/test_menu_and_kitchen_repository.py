"""
Unit tests for MenuRepository and KitchenRepository

These tests validate repository logic without requiring a database connection.
"""
import pytest
from unittest.mock import MagicMock, patch
from datetime import datetime
from decimal import Decimal

from app.repositories.kitchen_repository import KitchenRepository
from app.repositories.menu_repository import MenuRepository


def connection(mock_get_conn):
    mock_conn = MagicMock()
    mock_cursor = MagicMock()
    mock_get_conn.return_value = mock_conn
    mock_conn.cursor.return_value = mock_cursor
    return mock_conn, mock_cursor


class TestMenuRepository:

    @patch('app.repositories.menu_repository.get_db_connection_dict')
    def test_products_grouped_under_categories(self, mock_get_conn):
        _, mock_cursor = connection(mock_get_conn)
        mock_cursor.fetchall.side_effect = [
            [
                {'id': 'c1', 'name': 'Pizzas', 'sort_order': 0, 'is_active': True},
                {'id': 'c2', 'name': 'Bebidas', 'sort_order': 1, 'is_active': True},
            ],
            [
                {'id': 'p1', 'category_id': 'c1', 'name': 'Calabresa', 'description': None,
                 'price': Decimal('45.00'), 'image_url': None, 'is_available': True, 'created_at': None},
            ],
        ]

        menu = MenuRepository().find_menu()

        assert [c.name for c in menu] == ['Pizzas', 'Bebidas']
        assert [p.name for p in menu[0].products] == ['Calabresa']
        assert menu[1].products == []

    @patch('app.repositories.menu_repository.get_db_connection_dict')
    def test_ready_catalog_reads_its_own_tables(self, mock_get_conn):
        _, mock_cursor = connection(mock_get_conn)
        mock_cursor.fetchall.return_value = []

        MenuRepository().find_menu('ready')

        sqls = [c.args[0] for c in mock_cursor.execute.call_args_list]
        assert 'FROM ready_categories' in sqls[0]
        assert 'FROM ready_products' in sqls[1]

    def test_unknown_catalog(self):
        with pytest.raises(ValueError):
            MenuRepository().find_menu('secret')


class TestKitchenRepository:

    @patch('app.repositories.kitchen_repository.get_db_connection_dict')
    def test_default_statuses(self, mock_get_conn):
        _, mock_cursor = connection(mock_get_conn)
        mock_cursor.fetchall.return_value = [{
            'id': 'i1', 'table_order_id': 3, 'order_id': None, 'product_id': 'p1',
            'product_name': 'Batata', 'quantity': 1, 'observation': 'sem sal',
            'unit_price': Decimal('18.00'), 'status': 'pending',
            'ordered_at': datetime(2025, 3, 14, 19), 'delivered_at': None,
            'table_number': 4, 'table_name': None, 'waiter_name': 'Bruno',
            'order_type': 'table', 'customer_name': None,
        }]

        items = KitchenRepository().find_items()

        sql, params = mock_cursor.execute.call_args.args
        assert 'UNION ALL' in sql
        assert params == (['pending', 'preparing', 'ready'], ['pending', 'preparing', 'ready'])
        assert items[0].order_key == 'table_3'

    @patch('app.repositories.kitchen_repository.get_db_connection_dict')
    def test_null_status_and_ordered_at_get_defaults(self, mock_get_conn):
        _, mock_cursor = connection(mock_get_conn)
        mock_cursor.fetchall.return_value = [{
            'id': 'i2', 'table_order_id': 5, 'order_id': None, 'product_id': None,
            'product_name': 'Suco', 'quantity': 2, 'observation': None,
            'unit_price': Decimal('9.00'), 'status': None,
            'ordered_at': None, 'delivered_at': None,
            'table_number': 2, 'table_name': None, 'waiter_name': None,
            'order_type': 'table', 'customer_name': None,
        }]

        items = KitchenRepository().find_items()

        sql = mock_cursor.execute.call_args.args[0]
        assert "COALESCE(i.status, 'pending')" in sql
        assert items[0].status == 'pending'
        assert isinstance(items[0].ordered_at, datetime)

    @patch('app.repositories.kitchen_repository.get_db_connection_dict')
    def test_ready_items_tolerate_null_ordered_at(self, mock_get_conn):
        _, mock_cursor = connection(mock_get_conn)
        mock_cursor.fetchall.return_value = [{
            'id': 'i3', 'table_order_id': 5, 'product_id': None,
            'product_name': 'Pastel', 'quantity': 1, 'observation': None,
            'unit_price': Decimal('12.00'), 'status': 'ready',
            'ordered_at': None, 'delivered_at': None,
            'table_number': 2, 'table_name': None, 'waiter_name': 'Ana',
            'order_type': 'table',
        }]

        items = KitchenRepository().find_ready_table_items('Ana')

        assert items[0].status == 'ready'
        assert items[0].ordered_at is not None
