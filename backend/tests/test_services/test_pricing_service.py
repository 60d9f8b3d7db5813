"""
Unit tests for coupons, delivery fees and the checkout quote
"""
import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import MagicMock

from app.core.exceptions import CouponError, ValidationError
from app.domain.store import Coupon, DeliveryZone, StoreConfig
from app.services.pricing_service import PricingService, check_coupon, coupon_discount


def coupon(**fields):
    data = {
        'id': 'c1', 'code': 'BEMVINDO', 'discount_type': 'percentage',
        'discount_value': Decimal('10'), 'min_order_value': Decimal('0'),
    }
    data.update(fields)
    return Coupon(**data)


@pytest.fixture
def service():
    service = PricingService()
    service.coupon_repo = MagicMock()
    service.zone_repo = MagicMock()
    service.store_repo = MagicMock()
    service.store_repo.get_config.return_value = StoreConfig(
        id='s1', name='Cantina', is_open=True, delivery_fee=Decimal('7.00'), min_order_value=Decimal('30.00')
    )
    return service


class TestCheckCoupon:

    def test_missing(self):
        with pytest.raises(CouponError, match='Cupom não encontrado'):
            check_coupon(None, Decimal('50'))

    @pytest.mark.parametrize("fields", [
        {'is_active': False},
        {'expires_at': datetime(2020, 1, 1)},
        {'max_uses': 5, 'current_uses': 5},
    ])
    def test_unusable(self, fields):
        with pytest.raises(CouponError, match='Cupom inválido ou expirado'):
            check_coupon(coupon(**fields), Decimal('50'))

    def test_below_minimum(self):
        with pytest.raises(CouponError, match=r'Pedido mínimo de R\$ 40.00'):
            check_coupon(coupon(min_order_value=Decimal('40')), Decimal('39.99'))

    def test_valid_until_expiry(self):
        future = datetime.now(timezone.utc) + timedelta(days=1)
        assert check_coupon(coupon(expires_at=future, max_uses=5, current_uses=4), Decimal('50')).code == 'BEMVINDO'

    def test_discount_kinds(self):
        assert coupon_discount(coupon(), Decimal('80')) == Decimal('8')
        assert coupon_discount(coupon(discount_type='fixed', discount_value=Decimal('15')), Decimal('80')) == Decimal('15')


class TestCoupons:

    def test_create_upper_cases_code(self, service):
        service.coupon_repo.find_by_code.return_value = None

        service.create_coupon({'code': ' promo10 ', 'discount_type': 'fixed', 'discount_value': Decimal('10')})

        assert service.coupon_repo.create.call_args.args[0]['code'] == 'PROMO10'

    def test_duplicate_code(self, service):
        service.coupon_repo.find_by_code.return_value = coupon()
        with pytest.raises(ValidationError):
            service.create_coupon({'code': 'bemvindo'})

    def test_redeem_increments_uses(self, service):
        service.redeem_coupon(coupon())
        service.coupon_repo.increment_uses.assert_called_once_with('c1')


class TestQuote:

    def test_fixed_fee_with_coupon(self, service):
        service.coupon_repo.find_by_code.return_value = coupon()

        quote = service.quote(Decimal('50.00'), 'delivery', coupon_code='bemvindo')

        assert quote.delivery_fee == Decimal('7.00')
        assert quote.discount == Decimal('5.00')
        assert quote.total == Decimal('52.00')
        assert quote.coupon_code == 'BEMVINDO'
        assert quote.below_minimum is False

    def test_pickup_is_free_and_flags_minimum(self, service):
        quote = service.quote(Decimal('20.00'), 'pickup')

        assert quote.delivery_fee == Decimal('0')
        assert quote.below_minimum is True
        assert quote.missing_for_minimum == Decimal('10.00')

    def test_discount_capped_at_subtotal(self, service):
        service.coupon_repo.find_by_code.return_value = coupon(discount_type='fixed', discount_value=Decimal('100'))

        quote = service.quote(Decimal('40.00'), 'pickup', coupon_code='BEMVINDO')

        assert quote.total == Decimal('0')

    def test_zone_fee(self, service):
        service.store_repo.get_config.return_value = StoreConfig(id='s1', name='Cantina', delivery_fee_mode='zones')
        service.zone_repo.find_by_id.return_value = DeliveryZone(id='z1', name='Centro', fee=Decimal('4.50'))

        assert service.quote(Decimal('40'), 'delivery', zone_id='z1').delivery_fee == Decimal('4.50')

    def test_zone_required_in_zones_mode(self, service):
        service.store_repo.get_config.return_value = StoreConfig(id='s1', name='Cantina', delivery_fee_mode='zones')
        with pytest.raises(ValidationError):
            service.quote(Decimal('40'), 'delivery')

    def test_inactive_zone(self, service):
        service.store_repo.get_config.return_value = StoreConfig(id='s1', name='Cantina', delivery_fee_mode='zones')
        service.zone_repo.find_by_id.return_value = DeliveryZone(id='z1', name='Centro', fee=Decimal('4.50'), is_active=False)
        with pytest.raises(ValidationError):
            service.quote(Decimal('40'), 'delivery', zone_id='z1')
