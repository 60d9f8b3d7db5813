"""
Table Service (PDV)
Handles the dining room: tables, table orders and their items.

Multi-step writes (open table, close table, transfer...) are applied one
after another without a transaction. When a later step fails the earlier
ones stay applied and the caller gets a PartialUpdateError saying which.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, List, Optional, Sequence, Tuple

from app.core.cache import query_cache
from app.core.exceptions import NotFoundError, ValidationError, PartialUpdateError
from app.domain.table import (
    Table, TableOrder, TableOrderItem, TableWithOrder, OrderTotals,
    CloseTableRequest, KITCHEN_STARTED_STATUSES, DEFAULT_SERVICE_FEE_PERCENTAGE,
)
from app.repositories import TableRepository, TableOrderRepository

logger = logging.getLogger(__name__)

CENTS = Decimal('0.01')


def calculate_order_totals(
    items: Sequence[TableOrderItem],
    discount: Optional[Decimal] = None,
    discount_type: Optional[str] = 'value',
    service_fee_enabled: Optional[bool] = True,
    service_fee_percentage: Optional[Decimal] = None
) -> OrderTotals:
    """
    Recompute a table order's totals

    subtotal = sum of non-cancelled items
    discount = subtotal * discount / 100 (percentage) or the discount value
    service fee = (subtotal - discount) * fee% when enabled (10% default)
    """
    subtotal = sum(
        (Decimal(item.quantity) * Decimal(item.unit_price) for item in items if item.status != 'cancelled'),
        Decimal('0')
    )

    discount = Decimal(discount or 0)
    if discount_type == 'percentage':
        discount_amount = subtotal * discount / Decimal('100')
    else:
        discount_amount = discount

    after_discount = subtotal - discount_amount

    if service_fee_enabled:
        percentage = Decimal(service_fee_percentage or DEFAULT_SERVICE_FEE_PERCENTAGE)
        service_fee = after_discount * percentage / Decimal('100')
    else:
        service_fee = Decimal('0')

    return OrderTotals(
        subtotal=subtotal.quantize(CENTS, ROUND_HALF_UP),
        discount_amount=discount_amount.quantize(CENTS, ROUND_HALF_UP),
        service_fee=service_fee.quantize(CENTS, ROUND_HALF_UP),
        total=(after_discount + service_fee).quantize(CENTS, ROUND_HALF_UP),
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TableService:
    """
    Service for table service (PDV)

    Handles:
    - Tables CRUD and the overview grid
    - Opening tables, adding items (with a new round once the kitchen started)
    - Bill request, closing, cancelling and transferring orders
    - Open rounds per table and closed order history
    """

    def __init__(self):
        self.table_repo = TableRepository()
        self.order_repo = TableOrderRepository()

    # ========================================
    # Tables
    # ========================================

    def list_tables(self) -> List[Table]:
        return self.table_repo.find_all()

    def list_tables_with_orders(self) -> List[TableWithOrder]:
        return self.table_repo.find_all_with_current_order()

    def create_table(self, number: int, name: Optional[str] = None, capacity: Optional[int] = None) -> Table:
        return self.table_repo.create(number, name, capacity or 4)

    def update_table(self, table_id: str, changes: dict) -> Table:
        if not changes:
            raise ValidationError("Nothing to update")
        table = self.table_repo.update(table_id, changes)
        if table is None:
            raise NotFoundError(f"Table {table_id} not found")
        return table

    def delete_table(self, table_id: str) -> None:
        if not self.table_repo.delete(table_id):
            raise NotFoundError(f"Table {table_id} not found")

    def _get_table(self, table_id: str) -> Table:
        table = self.table_repo.find_by_id(table_id)
        if table is None:
            raise NotFoundError(f"Table {table_id} not found")
        return table

    # ========================================
    # Orders
    # ========================================

    def get_order(self, order_id: int) -> TableOrder:
        order = self.order_repo.find_by_id(order_id)
        if order is None:
            raise NotFoundError(f"Table order {order_id} not found")
        return order

    def open_orders_by_table(self, table_id: str) -> List[TableOrder]:
        return self.order_repo.find_open_by_table(table_id)

    def closed_orders(self, start_date: str, end_date: str) -> List[TableOrder]:
        return self.order_repo.find_closed(start_date, end_date)

    def _run_steps(self, action: str, steps: Sequence[Tuple[str, Callable[[], object]]]) -> None:
        """Run dependent writes in order; report what stuck if one fails"""
        completed: List[str] = []
        for name, step in steps:
            try:
                step()
            except Exception as e:
                if not completed:
                    raise
                logger.error(f"{action} failed at '{name}' after {completed}: {e}")
                raise PartialUpdateError(f"{action} failed at '{name}': {e}", completed) from e
            completed.append(name)

    def _invalidate(self) -> None:
        query_cache.invalidate('all-orders')
        query_cache.invalidate('kitchen-items')

    def open_table(
        self,
        table_id: str,
        customer_count: int = 1,
        waiter_id: Optional[str] = None,
        waiter_name: Optional[str] = None
    ) -> TableOrder:
        """
        Open a new order on a table and mark the table occupied

        Service fee starts enabled at 10%, no discount.
        """
        self._get_table(table_id)
        created = {}

        def create_order():
            created['order'] = self.order_repo.create({
                'table_id': table_id,
                'customer_count': customer_count or 1,
                'waiter_id': waiter_id,
                'waiter_name': waiter_name,
                'discount': Decimal('0'),
                'discount_type': 'value',
                'service_fee_enabled': True,
                'service_fee_percentage': DEFAULT_SERVICE_FEE_PERCENTAGE,
            })

        self._run_steps('Open table', [
            ('order created', create_order),
            ('table occupied', lambda: self.table_repo.update(
                table_id, {'status': 'occupied', 'current_order_id': created['order'].id}
            )),
        ])

        order = created['order']
        logger.info(f"Table {table_id} opened with order {order.id}")
        self._invalidate()
        return order

    def update_order_totals(self, order_id: int) -> OrderTotals:
        """Recompute and store subtotal / total_amount of a table order"""
        order = self.get_order(order_id)
        totals = calculate_order_totals(
            order.items,
            order.discount,
            order.discount_type,
            order.service_fee_enabled,
            order.service_fee_percentage,
        )
        self.order_repo.update(order_id, {'subtotal': totals.subtotal, 'total_amount': totals.total})
        return totals

    def add_item(self, order_id: int, item: dict) -> Tuple[TableOrderItem, int, bool]:
        """
        Add an item to a table order

        If the kitchen already started on the order (any item preparing or
        ready), the item goes to a new order for the same table instead,
        carrying over customer count, waiter, discount and service fee
        settings, and the table points at the new order.

        Returns:
            Tuple of (item, order id it was added to, whether a new order was created)
        """
        order = self.get_order(order_id)
        if not order.is_open:
            raise ValidationError(f"Table order {order_id} is {order.status}")

        target_order_id = order_id
        created_new_order = False

        if any(existing.status in KITCHEN_STARTED_STATUSES for existing in order.items):
            new_order = self.order_repo.create({
                'table_id': order.table_id,
                'customer_count': order.customer_count,
                'waiter_id': order.waiter_id,
                'waiter_name': order.waiter_name,
                'discount': order.discount,
                'discount_type': order.discount_type,
                'service_fee_enabled': order.service_fee_enabled,
                'service_fee_percentage': order.service_fee_percentage,
            })
            target_order_id = new_order.id
            created_new_order = True

            if order.table_id:
                self.table_repo.update(order.table_id, {'current_order_id': new_order.id})
            logger.info(f"Order {order_id} already in the kitchen, new round {new_order.id}")

        created_item = self.order_repo.add_item(target_order_id, item)
        self.update_order_totals(target_order_id)
        self._invalidate()

        return created_item, target_order_id, created_new_order

    def update_item_status(self, item_id: str, status: str) -> TableOrderItem:
        changes = {'status': status}
        if status == 'delivered':
            changes['delivered_at'] = _utcnow()

        item = self.order_repo.update_item(item_id, changes)
        if item is None:
            raise NotFoundError(f"Item {item_id} not found")

        # Cancelling changes what the table pays
        if status == 'cancelled' and item.table_order_id is not None:
            self.update_order_totals(item.table_order_id)

        self._invalidate()
        return item

    def remove_item(self, item_id: str) -> int:
        """
        Delete an item and recompute its order's totals

        Returns:
            The order the item belonged to
        """
        order_id = self.order_repo.delete_item(item_id)
        if order_id is None:
            raise NotFoundError(f"Item {item_id} not found")

        self.update_order_totals(order_id)
        self._invalidate()
        return order_id

    def request_bill(self, order_id: int) -> TableOrder:
        order = self.get_order(order_id)

        self._run_steps('Request bill', [
            ('order requesting bill', lambda: self.order_repo.update(order_id, {'status': 'requesting_bill'})),
            ('table requesting bill', lambda: order.table_id and self.table_repo.update(
                order.table_id, {'status': 'requesting_bill'}
            )),
        ])

        self._invalidate()
        return self.get_order(order_id)

    def _paid_changes(self, order: TableOrder, payment: CloseTableRequest, total: Optional[Decimal]) -> dict:
        if total is None:
            total = calculate_order_totals(
                order.items,
                payment.discount,
                payment.discount_type,
                payment.service_fee_enabled,
                order.service_fee_percentage,
            ).total

        return {
            'status': 'paid',
            'payment_method': payment.payment_method,
            'discount': payment.discount or Decimal('0'),
            'discount_type': payment.discount_type or 'value',
            'service_fee_enabled': payment.service_fee_enabled,
            'total_amount': total,
            'closed_at': _utcnow(),
        }

    def close_table(self, order_id: int, payment: CloseTableRequest) -> TableOrder:
        """
        Mark the order paid and free its table

        total_amount from the checkout screen wins; otherwise it is
        recomputed with the payment's discount and service fee settings.
        """
        order = self.get_order(order_id)
        if not order.is_open:
            raise ValidationError(f"Table order {order_id} is already {order.status}")

        changes = self._paid_changes(order, payment, payment.total_amount)

        self._run_steps('Close table', [
            ('order paid', lambda: self.order_repo.update(order_id, changes)),
            ('table freed', lambda: order.table_id and self.table_repo.update(
                order.table_id, {'status': 'available', 'current_order_id': None}
            )),
        ])

        logger.info(f"Table order {order_id} paid ({payment.payment_method}, {changes['total_amount']})")
        self._invalidate()
        return self.get_order(order_id)

    def close_all_orders(self, table_id: str, order_ids: Sequence[int], payment: CloseTableRequest) -> List[int]:
        """
        Pay every open round of a table at once, then free the table

        Each order keeps its own total; the discount is recorded on the
        first order only so it is not counted once per round.

        Returns:
            Ids of the orders closed
        """
        self._get_table(table_id)
        orders = [self.get_order(order_id) for order_id in order_ids]

        steps = []
        for index, order in enumerate(orders):
            order_payment = payment if index == 0 else payment.model_copy(update={'discount': Decimal('0')})
            changes = self._paid_changes(order, order_payment, None)
            steps.append((
                f"order {order.id} paid",
                lambda order_id=order.id, changes=changes: self.order_repo.update(order_id, changes)
            ))
        steps.append(('table freed', lambda: self.table_repo.update(
            table_id, {'status': 'available', 'current_order_id': None}
        )))

        self._run_steps('Close all orders', steps)

        logger.info(f"Table {table_id}: closed orders {list(order_ids)}")
        self._invalidate()
        return list(order_ids)

    def cancel_order(self, order_id: int) -> TableOrder:
        order = self.get_order(order_id)

        self._run_steps('Cancel order', [
            ('order cancelled', lambda: self.order_repo.update(
                order_id, {'status': 'cancelled', 'closed_at': _utcnow()}
            )),
            ('table freed', lambda: order.table_id and self.table_repo.update(
                order.table_id, {'status': 'available', 'current_order_id': None}
            )),
        ])

        logger.info(f"Table order {order_id} cancelled")
        self._invalidate()
        return self.get_order(order_id)

    def transfer_order(self, order_id: int, to_table_id: str) -> TableOrder:
        """
        Move an open order to another (available) table

        The source table is freed only when it has no other open order;
        otherwise it points at its most recent remaining one.
        """
        order = self.get_order(order_id)
        from_table_id = order.table_id

        if from_table_id == to_table_id:
            raise ValidationError("Order is already on this table")

        target = self._get_table(to_table_id)
        if not target.is_available:
            raise ValidationError(f"Table {target.number} is not available")

        def release_source():
            if not from_table_id:
                return
            remaining = [o for o in self.order_repo.find_open_by_table(from_table_id) if o.id != order_id]
            if remaining:
                # find_open_by_table is newest first
                self.table_repo.update(from_table_id, {'current_order_id': remaining[0].id})
            else:
                self.table_repo.update(from_table_id, {'status': 'available', 'current_order_id': None})

        self._run_steps('Transfer table', [
            ('order moved', lambda: self.order_repo.update(order_id, {'table_id': to_table_id})),
            ('source table released', release_source),
            ('target table occupied', lambda: self.table_repo.update(
                to_table_id, {'status': 'occupied', 'current_order_id': order_id}
            )),
        ])

        logger.info(f"Table order {order_id} moved from {from_table_id} to {to_table_id}")
        self._invalidate()
        return self.get_order(order_id)
