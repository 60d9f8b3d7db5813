"""
Pricing Service
Coupons, delivery zones and the checkout quote.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from app.core.exceptions import CouponError, NotFoundError, ValidationError
from app.domain.store import Coupon, DeliveryZone, CheckoutQuote, StoreConfig
from app.repositories import CouponRepository, DeliveryZoneRepository, StoreRepository

logger = logging.getLogger(__name__)

NO_DELIVERY_FEE_TYPES = ('pickup', 'dine_in')


def coupon_discount(coupon: Coupon, order_total: Decimal) -> Decimal:
    """Percentage of the order total, or the fixed value"""
    if coupon.discount_type == 'percentage':
        return order_total * coupon.discount_value / Decimal('100')
    return coupon.discount_value


def check_coupon(coupon: Optional[Coupon], order_total: Decimal, now: Optional[datetime] = None) -> Coupon:
    """
    Raise CouponError unless the coupon can be used on this order

    Must exist, be active, not be expired, have uses left and the order
    must reach its minimum value.
    """
    if coupon is None:
        raise CouponError('Cupom não encontrado')

    now = now or datetime.now(timezone.utc)
    expires_at = coupon.expires_at
    if expires_at is not None and expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)

    exhausted = coupon.max_uses is not None and coupon.current_uses >= coupon.max_uses
    expired = expires_at is not None and expires_at < now

    if not coupon.is_active or expired or exhausted:
        raise CouponError('Cupom inválido ou expirado')

    if coupon.min_order_value and order_total < coupon.min_order_value:
        raise CouponError(
            f"Pedido mínimo de R$ {coupon.min_order_value:.2f} para usar este cupom"
        )

    return coupon


class PricingService:
    """
    Service for everything that changes what the customer pays

    Handles:
    - Coupon CRUD and validation
    - Delivery zone CRUD
    - Checkout quote (subtotal + delivery fee - coupon, minimum order)
    """

    def __init__(self):
        self.coupon_repo = CouponRepository()
        self.zone_repo = DeliveryZoneRepository()
        self.store_repo = StoreRepository()

    # ========================================
    # Coupons
    # ========================================

    def list_coupons(self) -> List[Coupon]:
        return self.coupon_repo.find_all()

    def create_coupon(self, data: dict) -> Coupon:
        data = {**data, 'code': data['code'].strip().upper()}
        if self.coupon_repo.find_by_code(data['code']):
            raise ValidationError(f"Coupon {data['code']} already exists")
        return self.coupon_repo.create(data)

    def update_coupon(self, coupon_id: str, changes: dict) -> Coupon:
        if not changes:
            raise ValidationError("Nothing to update")
        coupon = self.coupon_repo.update(coupon_id, changes)
        if coupon is None:
            raise NotFoundError(f"Coupon {coupon_id} not found")
        return coupon

    def delete_coupon(self, coupon_id: str) -> None:
        if not self.coupon_repo.delete(coupon_id):
            raise NotFoundError(f"Coupon {coupon_id} not found")

    def validate_coupon(self, code: str, order_total: Decimal) -> dict:
        """
        Returns:
            dict with the coupon and the discount it gives on order_total
        """
        coupon = check_coupon(self.coupon_repo.find_by_code(code), order_total)
        return {
            'coupon': coupon,
            'discount': coupon_discount(coupon, order_total),
        }

    def redeem_coupon(self, coupon: Coupon) -> None:
        self.coupon_repo.increment_uses(coupon.id)
        logger.info(f"Coupon {coupon.code} redeemed ({coupon.current_uses + 1} uses)")

    # ========================================
    # Delivery zones
    # ========================================

    def list_zones(self, active_only: bool = False) -> List[DeliveryZone]:
        return self.zone_repo.find_all(active_only)

    def create_zone(self, data: dict) -> DeliveryZone:
        return self.zone_repo.create(data)

    def update_zone(self, zone_id: str, changes: dict) -> DeliveryZone:
        if not changes:
            raise ValidationError("Nothing to update")
        zone = self.zone_repo.update(zone_id, changes)
        if zone is None:
            raise NotFoundError(f"Delivery zone {zone_id} not found")
        return zone

    def delete_zone(self, zone_id: str) -> None:
        if not self.zone_repo.delete(zone_id):
            raise NotFoundError(f"Delivery zone {zone_id} not found")

    # ========================================
    # Checkout
    # ========================================

    def delivery_fee(self, store: StoreConfig, delivery_type: str, zone_id: Optional[str]) -> Decimal:
        """
        Fee for this checkout

        pickup / dine-in: free. 'zones' mode: the chosen active zone's fee.
        'fixed' mode: the store's delivery fee.
        """
        if delivery_type in NO_DELIVERY_FEE_TYPES:
            return Decimal('0')

        if not store.uses_zones:
            return store.delivery_fee

        if not zone_id:
            raise ValidationError("Selecione o bairro de entrega")

        zone = self.zone_repo.find_by_id(zone_id)
        if zone is None or not zone.is_active:
            raise ValidationError("Bairro de entrega indisponível")
        return zone.fee

    def quote(
        self,
        subtotal: Decimal,
        delivery_type: str = 'delivery',
        zone_id: Optional[str] = None,
        coupon_code: Optional[str] = None
    ) -> CheckoutQuote:
        store = self.store_repo.get_config()
        if store is None:
            raise NotFoundError("Store is not configured")

        delivery_fee = self.delivery_fee(store, delivery_type, zone_id)

        discount = Decimal('0')
        if coupon_code:
            discount = self.validate_coupon(coupon_code, subtotal)['discount']
            # A coupon never makes the items cost less than zero
            discount = min(discount, subtotal)

        min_order_value = store.min_order_value or Decimal('0')
        below_minimum = subtotal < min_order_value

        return CheckoutQuote(
            subtotal=subtotal,
            delivery_fee=delivery_fee,
            discount=discount,
            total=subtotal + delivery_fee - discount,
            min_order_value=min_order_value,
            below_minimum=below_minimum,
            missing_for_minimum=(min_order_value - subtotal) if below_minimum else Decimal('0'),
            coupon_code=coupon_code.strip().upper() if coupon_code else None,
        )
