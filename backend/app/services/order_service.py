"""
Order Service
Delivery orders, the unified order list of the admin screen and the
driver's delivery flow.
"""
import logging
from decimal import Decimal
from typing import List, Optional, Sequence

from app.core.cache import query_cache
from app.core.exceptions import NotFoundError, ValidationError
from app.domain.order import (
    Order, OrderCreate, UnifiedOrder, UnifiedOrderItem,
    DELIVERY_STATUSES, DRIVER_ACTIVE_STATUSES,
)
from app.domain.table import TableOrder
from app.repositories import OrderRepository, TableOrderRepository, StaffRepository
from app.services.pricing_service import PricingService

logger = logging.getLogger(__name__)

# Statuses the unified list can push onto table order items
TABLE_ITEM_STATUSES = ('pending', 'preparing', 'ready')


def map_table_status(order_status: Optional[str], item_statuses: Sequence[Optional[str]]) -> str:
    """
    Express a table order in delivery order statuses

    paid → completed, cancelled → cancelled; otherwise derived from the
    items: any preparing → preparing, all ready/delivered → ready, else pending.
    """
    if order_status == 'paid':
        return 'completed'
    if order_status == 'cancelled':
        return 'cancelled'

    statuses = [status or 'pending' for status in item_statuses]

    if any(status == 'preparing' for status in statuses):
        return 'preparing'
    if statuses and all(status in ('ready', 'delivered') for status in statuses):
        return 'ready'
    return 'pending'


def table_customer_label(table_number: Optional[int], table_name: Optional[str]) -> str:
    number = table_number if table_number is not None else '?'
    if table_name:
        return f"Mesa {number} - {table_name}"
    return f"Mesa {number}"


def unify_delivery_order(order: Order) -> UnifiedOrder:
    return UnifiedOrder(
        **order.model_dump(exclude={'items'}),
        type='delivery',
    )


def unify_table_order(order: TableOrder) -> UnifiedOrder:
    return UnifiedOrder(
        id=order.id,
        type='table',
        customer_name=table_customer_label(order.table_number, order.table_name),
        total_amount=order.total_amount or Decimal('0'),
        status=map_table_status(order.status, [item.status for item in order.items]),
        payment_method=order.payment_method,
        created_at=order.opened_at or order.created_at,
        updated_at=order.updated_at,
        table_id=order.table_id,
        table_number=order.table_number,
        table_name=order.table_name,
        waiter_name=order.waiter_name,
        customer_count=order.customer_count,
    )


def merge_orders(delivery_orders: Sequence[Order], table_orders: Sequence[TableOrder]) -> List[UnifiedOrder]:
    """
    Both order kinds in one list, newest first

    Table orders without items are left out (a table was opened but nothing
    was ordered yet).
    """
    unified = [unify_delivery_order(order) for order in delivery_orders]
    unified.extend(unify_table_order(order) for order in table_orders if order.items)
    unified.sort(key=lambda order: order.created_at, reverse=True)
    return unified


class OrderService:
    """
    Service for delivery orders and the unified order list

    Handles:
    - Checkout (delivery order creation, coupon redemption)
    - Status changes and driver assignment
    - Unified list / items / status update across delivery and table orders
    - Driver flow (my orders, start delivery, complete delivery)
    """

    def __init__(self):
        self.order_repo = OrderRepository()
        self.table_order_repo = TableOrderRepository()
        self.driver_repo = StaffRepository('drivers')
        self.pricing = PricingService()

    def _invalidate(self) -> None:
        query_cache.invalidate('all-orders')
        query_cache.invalidate('kitchen-items')

    # ========================================
    # Delivery orders
    # ========================================

    def create_order(self, data: OrderCreate) -> Order:
        """
        Create a pending delivery order with its items

        A coupon code, when sent, is validated against the items subtotal
        and redeemed once the order exists.
        """
        coupon = None
        if data.coupon_code:
            subtotal = sum((item.unit_price * item.quantity for item in data.items), Decimal('0'))
            coupon = self.pricing.validate_coupon(data.coupon_code, subtotal)['coupon']

        order = self.order_repo.create(
            data.model_dump(exclude={'items', 'coupon_code'}),
            [item.model_dump() for item in data.items],
        )

        if coupon is not None:
            self.pricing.redeem_coupon(coupon)

        logger.info(f"Delivery order {order.id} created ({len(order.items)} items, {order.total_amount})")
        self._invalidate()
        return order

    def get_order(self, order_id: int) -> Order:
        order = self.order_repo.find_by_id(order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    def list_orders(self, statuses: Optional[Sequence[str]] = None) -> List[Order]:
        return self.order_repo.find_all(statuses)

    def update_status(self, order_id: int, status: str) -> Order:
        if status not in DELIVERY_STATUSES:
            raise ValidationError(f"Invalid status: {status}")

        order = self.order_repo.update(order_id, {'status': status})
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")

        logger.info(f"Order {order_id} -> {status}")
        self._invalidate()
        return order

    def assign_driver(self, order_id: int, driver_id: str, driver_name: Optional[str] = None) -> Order:
        if driver_name is None:
            driver = self.driver_repo.find_by_id(driver_id)
            if driver is None:
                raise NotFoundError(f"Driver {driver_id} not found")
            driver_name = driver.name

        order = self.order_repo.update(order_id, {'driver_id': driver_id, 'driver_name': driver_name})
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")

        logger.info(f"Order {order_id} assigned to driver {driver_name}")
        self._invalidate()
        return order

    # ========================================
    # Unified list (admin "Pedidos")
    # ========================================

    def list_all(self) -> List[UnifiedOrder]:
        return query_cache.get_or_load(
            ('all-orders',),
            lambda: merge_orders(self.order_repo.find_all(), self.table_order_repo.find_all())
        )

    def get_unified_items(self, order_type: str, order_id: int) -> List[UnifiedOrderItem]:
        if order_type == 'delivery':
            return [
                UnifiedOrderItem(**item.model_dump(include={'id', 'order_id', 'product_name', 'quantity', 'unit_price', 'observation'}))
                for item in self.get_order(order_id).items
            ]

        if order_type == 'table':
            return [
                UnifiedOrderItem(
                    id=item.id,
                    order_id=item.table_order_id,
                    product_name=item.product_name,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    observation=item.observation,
                )
                for item in self.table_order_repo.find_items(order_id)
            ]

        raise ValidationError(f"Invalid order type: {order_type}")

    def update_unified_status(self, order_type: str, order_id: int, status: str) -> None:
        """
        Change status from the unified list

        Delivery orders take the status as is. Table orders: completed marks
        the order paid, cancelled cancels it, anything else is applied to
        every item.
        """
        if order_type == 'delivery':
            self.update_status(order_id, status)
            return

        if order_type != 'table':
            raise ValidationError(f"Invalid order type: {order_type}")

        if status == 'completed':
            changes = {'status': 'paid'}
        elif status == 'cancelled':
            changes = {'status': 'cancelled'}
        elif status in TABLE_ITEM_STATUSES:
            changes = None
        else:
            raise ValidationError(f"Invalid status for table orders: {status}")

        if changes is not None:
            if self.table_order_repo.update(order_id, changes) is None:
                raise NotFoundError(f"Table order {order_id} not found")
        else:
            items = self.table_order_repo.find_items(order_id)
            self.table_order_repo.update_items_status([item.id for item in items], status)

        logger.info(f"Table order {order_id} -> {status} (unified list)")
        self._invalidate()

    # ========================================
    # Driver flow
    # ========================================

    def driver_orders(self, driver_id: str) -> List[Order]:
        """Orders a driver still has to deliver (ready or on the way)"""
        return self.order_repo.find_by_driver(driver_id, DRIVER_ACTIVE_STATUSES)

    def _driver_order(self, driver_id: str, order_id: int) -> Order:
        order = self.get_order(order_id)
        if order.driver_id != driver_id:
            raise NotFoundError(f"Order {order_id} is not assigned to this driver")
        return order

    def start_delivery(self, driver_id: str, order_id: int) -> Order:
        order = self._driver_order(driver_id, order_id)
        if order.status != 'ready':
            raise ValidationError(f"Order {order_id} is {order.status}, not ready")
        return self.update_status(order_id, 'delivery')

    def complete_delivery(self, driver_id: str, order_id: int) -> Order:
        order = self._driver_order(driver_id, order_id)
        if order.status not in DRIVER_ACTIVE_STATUSES:
            raise ValidationError(f"Order {order_id} is {order.status}")
        return self.update_status(order_id, 'completed')
