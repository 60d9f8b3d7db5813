"""
API tests for the table service (PDV) endpoints
"""
import pytest
from unittest.mock import MagicMock

from app.main import app
from app.api.tables import get_table_service
from app.core.exceptions import NotFoundError, PartialUpdateError, ValidationError


@pytest.fixture
def table_service():
    service = MagicMock()
    app.dependency_overrides[get_table_service] = lambda: service
    return service


class TestTables:

    def test_list_tables(self, staff_client, table_service, make_table):
        table_service.list_tables.return_value = [make_table('t1', 1), make_table('t2', 2)]

        response = staff_client.get('/api/v1/tables/')

        assert response.status_code == 200
        assert [t['number'] for t in response.json()['data']] == [1, 2]

    def test_only_admin_creates_tables(self, staff_client, table_service):
        assert staff_client.post('/api/v1/tables/', json={'number': 9}).status_code == 403

    def test_admin_creates_table(self, admin_client, table_service, make_table):
        table_service.create_table.return_value = make_table('t9', 9)

        response = admin_client.post('/api/v1/tables/', json={'number': 9, 'name': 'Varanda'})

        assert response.status_code == 201
        table_service.create_table.assert_called_once_with(9, 'Varanda', 4)

    def test_open_table(self, staff_client, table_service, make_table_order):
        table_service.open_table.return_value = make_table_order(order_id=7)

        response = staff_client.post('/api/v1/tables/t1/open', json={'customer_count': 3, 'waiter_name': 'Bruno'})

        assert response.status_code == 201
        assert response.json()['data']['id'] == 7

    def test_unknown_table_is_404(self, staff_client, table_service):
        table_service.open_table.side_effect = NotFoundError('Table x not found')
        assert staff_client.post('/api/v1/tables/x/open', json={}).status_code == 404


class TestTableOrders:

    def test_add_item_reports_new_round(self, staff_client, table_service, make_table_item):
        table_service.add_item.return_value = (make_table_item('i9', order_id=2), 2, True)

        response = staff_client.post('/api/v1/tables/orders/1/items', json={
            'product_name': 'Suco', 'quantity': 1, 'unit_price': 8.0, 'observation': 'sem gelo'
        })

        assert response.status_code == 201
        data = response.json()['data']
        assert data['order_id'] == 2
        assert data['created_new_order'] is True
        assert data['item']['line_total'] == 10.0

    def test_add_item_to_closed_order(self, staff_client, table_service):
        table_service.add_item.side_effect = ValidationError('Table order 1 is paid')

        response = staff_client.post('/api/v1/tables/orders/1/items', json={
            'product_name': 'Suco', 'quantity': 1, 'unit_price': 8.0
        })

        assert response.status_code == 400

    def test_item_status_is_validated(self, staff_client, table_service):
        response = staff_client.patch('/api/v1/tables/items/i1/status', json={'status': 'eaten'})
        assert response.status_code == 422

    def test_close_rejects_bad_discount_type(self, staff_client, table_service):
        response = staff_client.post('/api/v1/tables/orders/1/close', json={
            'payment_method': 'pix', 'discount_type': 'coupon'
        })
        assert response.status_code == 422

    def test_close_all_partial_failure_is_409(self, staff_client, table_service):
        table_service.close_all_orders.side_effect = PartialUpdateError(
            "Close all orders failed at 'order 2 paid'", ['order 1 paid']
        )

        response = staff_client.post('/api/v1/tables/t1/close-all', json={
            'payment_method': 'card', 'order_ids': [1, 2]
        })

        assert response.status_code == 409
        assert response.json()['completed_steps'] == ['order 1 paid']

    def test_transfer(self, staff_client, table_service, make_table_order):
        table_service.transfer_order.return_value = make_table_order(order_id=1, table_id='t2')

        response = staff_client.post('/api/v1/tables/orders/1/transfer', json={'to_table_id': 't2'})

        assert response.status_code == 200
        table_service.transfer_order.assert_called_once_with(1, 't2')

    def test_closed_orders_need_dates(self, staff_client, table_service):
        assert staff_client.get('/api/v1/tables/orders/closed').status_code == 422
