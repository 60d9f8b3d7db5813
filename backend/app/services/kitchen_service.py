"""
Kitchen Service
Turns the flat kitchen item feed into tickets and moves tickets through
pending → preparing → ready.

Tickets group every item of one order: table items by table order, delivery
items by delivery order. A ticket is only as far along as its slowest item.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from app.core.cache import query_cache
from app.core.exceptions import NotFoundError, ValidationError
from app.domain.kitchen import (
    KitchenItem, KitchenTicket, KitchenSummary, TicketStatusUpdate,
    STATUS_PRIORITY, KITCHEN_STATUSES,
)
from app.repositories import KitchenRepository, OrderRepository, TableOrderRepository

logger = logging.getLogger(__name__)

# Wait time thresholds in minutes
WAIT_WARNING_MINUTES = 5
WAIT_LATE_MINUTES = 10

# Kitchen status -> delivery order status
DELIVERY_STATUS_MAP = {
    'pending': 'pending',
    'preparing': 'preparing',
    'ready': 'ready',
}

PRIORITY_STATUS = {priority: status for status, priority in STATUS_PRIORITY.items()}


# ========================================
# Grouping (pure functions)
# ========================================

def group_items_by_order(items: Sequence[KitchenItem]) -> List[KitchenTicket]:
    """
    Group kitchen items into one ticket per order

    Ticket status is the lowest status among its items
    (pending < preparing < ready, unknown counts as pending) and ticket age
    is its oldest item. Tickets come back oldest first.
    """
    groups: Dict[str, dict] = {}

    for item in items:
        key = item.order_key
        group = groups.get(key)

        if group is None:
            groups[key] = {
                'order_key': key,
                'order_type': item.order_type,
                'order_id': item.order_id,
                'table_order_id': item.table_order_id,
                'table_number': item.table_number,
                'table_name': item.table_name,
                'customer_name': item.customer_name,
                'waiter_name': item.waiter_name,
                'items': [item],
                'oldest_ordered_at': item.ordered_at,
                'priority': item.priority,
            }
            continue

        group['items'].append(item)
        if item.ordered_at < group['oldest_ordered_at']:
            group['oldest_ordered_at'] = item.ordered_at
        if item.priority < group['priority']:
            group['priority'] = item.priority

    tickets = []
    for group in groups.values():
        priority = group.pop('priority')
        tickets.append(KitchenTicket(**group, status=PRIORITY_STATUS[priority]))

    tickets.sort(key=lambda ticket: ticket.oldest_ordered_at)
    return tickets


def _now_like(moment: datetime, now: Optional[datetime]) -> datetime:
    """`now` in the same awareness as `moment` (DB timestamps may be naive)"""
    now = now or datetime.now(timezone.utc)
    if moment.tzinfo is None and now.tzinfo is not None:
        return now.astimezone(timezone.utc).replace(tzinfo=None)
    if moment.tzinfo is not None and now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def wait_minutes(ticket: KitchenTicket, now: Optional[datetime] = None) -> int:
    """Whole minutes since the ticket's oldest item was ordered"""
    now = _now_like(ticket.oldest_ordered_at, now)
    elapsed = (now - ticket.oldest_ordered_at).total_seconds()
    return max(0, int(elapsed // 60))


def wait_bucket(ticket: KitchenTicket, now: Optional[datetime] = None) -> str:
    """'ok' under 5 min, 'warning' under 10 min, otherwise 'late'"""
    minutes = wait_minutes(ticket, now)
    if minutes < WAIT_WARNING_MINUTES:
        return 'ok'
    if minutes < WAIT_LATE_MINUTES:
        return 'warning'
    return 'late'


def is_overdue(ticket: KitchenTicket, now: Optional[datetime] = None) -> bool:
    """A pending ticket nobody started for 10+ minutes"""
    return ticket.status == 'pending' and wait_minutes(ticket, now) >= WAIT_LATE_MINUTES


def summarize(tickets: Sequence[KitchenTicket]) -> KitchenSummary:
    summary = KitchenSummary()
    for ticket in tickets:
        if ticket.status == 'pending':
            summary.pending += 1
        elif ticket.status == 'preparing':
            summary.preparing += 1
        elif ticket.status == 'ready':
            summary.ready += 1
    return summary


class PendingAlertTracker:
    """
    Decides when a kitchen display should ring

    Rings when the number of pending items grows, except on the first
    observation (and whenever the previous count was zero).
    """

    def __init__(self):
        self.last_count = 0

    def observe(self, pending_count: int) -> bool:
        should_alert = pending_count > self.last_count and self.last_count != 0
        self.last_count = pending_count
        return should_alert


# ========================================
# Service
# ========================================

class KitchenService:
    """
    Service for the kitchen display and the waiter pick-up list

    Handles:
    - Cached kitchen item feed
    - Ticket board (grouping, wait buckets, counters, new-item alert)
    - Moving a whole ticket to the next status
    - Marking ready table items as served
    """

    def __init__(self):
        self.kitchen_repo = KitchenRepository()
        self.table_order_repo = TableOrderRepository()
        self.order_repo = OrderRepository()
        # One tracker per kitchen display
        self.trackers: Dict[str, PendingAlertTracker] = {}

    def get_items(self, statuses: Optional[Sequence[str]] = None) -> List[KitchenItem]:
        key = ('kitchen-items', tuple(statuses) if statuses else None)
        return query_cache.get_or_load(key, lambda: self.kitchen_repo.find_items(statuses))

    def get_tickets(self, status: Optional[str] = None) -> List[KitchenTicket]:
        tickets = group_items_by_order(self.get_items())
        if status:
            tickets = [ticket for ticket in tickets if ticket.status == status]
        return tickets

    def get_board(self, display_id: str = 'default', now: Optional[datetime] = None) -> dict:
        """
        Everything a kitchen display renders on one refresh

        Returns:
            dict with tickets (plus wait info), summary counts and whether
            the display should play the new-order sound
        """
        items = self.get_items()
        tickets = group_items_by_order(items)

        pending_items = sum(1 for item in items if item.status == 'pending')
        tracker = self.trackers.setdefault(display_id, PendingAlertTracker())
        new_pending = tracker.observe(pending_items)
        if new_pending:
            logger.info(f"Kitchen display {display_id}: new pending items ({pending_items})")

        board = []
        for ticket in tickets:
            data = ticket.model_dump()
            data['label'] = ticket.label
            data['item_count'] = ticket.item_count
            data['wait_minutes'] = wait_minutes(ticket, now)
            data['wait_bucket'] = wait_bucket(ticket, now)
            data['overdue'] = is_overdue(ticket, now)
            board.append(data)

        return {
            'tickets': board,
            'summary': summarize(tickets).model_dump(),
            'new_pending_alert': new_pending,
        }

    def advance_ticket(self, update: TicketStatusUpdate) -> int:
        """
        Apply a status to every item of a ticket

        Table tickets update each table_order_items row (delivered_at is
        stamped when delivered). Delivery tickets update the delivery order.

        Returns:
            Number of rows updated
        """
        if update.status not in KITCHEN_STATUSES:
            raise ValidationError(f"Invalid kitchen status: {update.status}")

        if update.order_type == 'table':
            if update.table_order_id is None:
                raise ValidationError("table_order_id is required for table tickets")

            items = self.table_order_repo.find_items(update.table_order_id)
            # Cancelled and already served items stay as they are
            item_ids = [item.id for item in items if item.status not in ('cancelled', 'delivered')]
            if not item_ids:
                raise NotFoundError(f"Table order {update.table_order_id} has no kitchen items")

            updated = self.table_order_repo.update_items_status(item_ids, update.status)

        elif update.order_type == 'delivery':
            if update.order_id is None:
                raise ValidationError("order_id is required for delivery tickets")

            order_status = DELIVERY_STATUS_MAP.get(update.status)
            if order_status is None:
                raise ValidationError(f"Delivery tickets cannot move to {update.status}")

            order = self.order_repo.update(update.order_id, {'status': order_status})
            if order is None:
                raise NotFoundError(f"Order {update.order_id} not found")
            updated = 1

        else:
            raise ValidationError(f"Invalid order type: {update.order_type}")

        query_cache.invalidate('kitchen-items')
        query_cache.invalidate('all-orders')
        logger.info(f"Kitchen ticket {update.order_type} moved to {update.status} ({updated} rows)")
        return updated

    def get_ready_for_waiter(self, waiter_name: Optional[str] = None) -> List[KitchenItem]:
        return self.kitchen_repo.find_ready_table_items(waiter_name)

    def mark_served(self, item_ids: Sequence[str]) -> int:
        """Waiter took ready items to the table"""
        updated = self.table_order_repo.update_items_status(item_ids, 'delivered')
        query_cache.invalidate('kitchen-items')
        query_cache.invalidate('all-orders')
        return updated
