"""
API tests for checkout and delivery order endpoints

Services are replaced through FastAPI dependency overrides.
"""
import pytest
from decimal import Decimal
from unittest.mock import MagicMock

from app.main import app
from app.api.orders import get_order_service
from app.core.exceptions import CouponError, NotFoundError

CHECKOUT = {
    'customer_name': 'Ana', 'customer_phone': '11999990000',
    'address_street': 'Rua das Flores', 'address_number': '120', 'address_neighborhood': 'Centro',
    'total_amount': 57.0, 'payment_method': 'pix',
    'items': [{'product_name': 'Pizza', 'quantity': 2, 'unit_price': 25.0}],
}


@pytest.fixture
def order_service():
    service = MagicMock()
    app.dependency_overrides[get_order_service] = lambda: service
    return service


class TestCheckout:

    def test_creates_order(self, client, order_service, make_order):
        order_service.create_order.return_value = make_order(42, total='57.00')

        response = client.post('/api/v1/orders/', json=CHECKOUT)

        assert response.status_code == 201
        body = response.json()
        assert body['status'] == 'success'
        assert body['data']['id'] == 42
        assert body['data']['total_amount'] == 57.0

    def test_requires_items(self, client, order_service):
        response = client.post('/api/v1/orders/', json={**CHECKOUT, 'items': []})
        assert response.status_code == 422
        order_service.create_order.assert_not_called()

    def test_rejects_unknown_payment_method(self, client, order_service):
        response = client.post('/api/v1/orders/', json={**CHECKOUT, 'payment_method': 'cheque'})
        assert response.status_code == 422

    def test_coupon_error_is_400_with_message(self, client, order_service):
        order_service.create_order.side_effect = CouponError('Cupom inválido ou expirado')

        response = client.post('/api/v1/orders/', json={**CHECKOUT, 'coupon_code': 'OLD'})

        assert response.status_code == 400
        assert response.json()['detail'] == 'Cupom inválido ou expirado'

    def test_checkout_is_rate_limited(self, client, order_service, make_order):
        order_service.create_order.return_value = make_order(1)

        codes = [client.post('/api/v1/orders/', json=CHECKOUT).status_code for _ in range(11)]

        assert codes[:10] == [201] * 10
        assert codes[10] == 429


class TestOrderManagement:

    def test_listing_requires_login(self, client, order_service):
        assert client.get('/api/v1/orders/').status_code == 401

    def test_driver_cannot_list_orders(self, driver_client, order_service):
        assert driver_client.get('/api/v1/orders/').status_code == 403

    def test_list_filtered_by_status(self, staff_client, order_service, make_order):
        order_service.list_orders.return_value = [make_order(1, status='ready')]

        response = staff_client.get('/api/v1/orders/?status=ready&status=delivery')

        assert response.status_code == 200
        assert response.json()['count'] == 1
        order_service.list_orders.assert_called_once_with(['ready', 'delivery'])

    def test_public_order_lookup_not_found(self, client, order_service):
        order_service.get_order.side_effect = NotFoundError('Order 9 not found')

        response = client.get('/api/v1/orders/9')

        assert response.status_code == 404

    def test_update_status_validates_value(self, staff_client, order_service):
        response = staff_client.patch('/api/v1/orders/1/status', json={'status': 'lost'})
        assert response.status_code == 422

    def test_assign_driver(self, staff_client, order_service, make_order):
        order_service.assign_driver.return_value = make_order(1, driver_id='d1')

        response = staff_client.patch('/api/v1/orders/1/driver', json={'driver_id': 'd1'})

        assert response.status_code == 200
        order_service.assign_driver.assert_called_once_with(1, 'd1', None)

    def test_unexpected_error_is_500(self, staff_client, order_service):
        order_service.list_all.side_effect = RuntimeError('db down')

        response = staff_client.get('/api/v1/orders/all')

        assert response.status_code == 500
        assert 'db down' in response.json()['detail']
