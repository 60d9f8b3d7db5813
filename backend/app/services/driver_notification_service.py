"""
Driver Notification Service
Detects brand-new delivery orders for a driver between refreshes.

A driver's phone polls its order list. Orders the driver has already seen
are remembered in a small JSON file per driver, so a restart or a page
reload does not ring again for the same orders.
"""
import json
import logging
import os
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

import httpx

from app.core.config import settings
from app.domain.order import Order

logger = logging.getLogger(__name__)

# Delay between consecutive beeps when several orders arrive together
BEEP_STAGGER_MS = 600

PUSH_TITLE = "🚚 Novo Pedido de Entrega"
PUSH_TAG = "driver-new-order"


def build_push_body(count: int) -> str:
    if count == 1:
        return "Você recebeu um novo pedido. Toque para visualizar."
    return f"Você recebeu {count} novos pedidos. Toque para visualizar."


class SeenOrderStore:
    """
    Persisted set of order ids a driver has already been alerted about

    Stored as a JSON list in <directory>/<driver_id>.json. A missing or
    unreadable file counts as an empty set.
    """

    def __init__(self, driver_id: str, directory: Optional[str] = None):
        self.directory = directory or settings.DRIVER_SEEN_DIR
        safe_id = "".join(ch for ch in str(driver_id) if ch.isalnum() or ch in "-_") or "driver"
        self.path = os.path.join(self.directory, f"{safe_id}.json")

    def load(self) -> Set[int]:
        try:
            with open(self.path, encoding="utf-8") as f:
                return set(int(order_id) for order_id in json.load(f))
        except FileNotFoundError:
            return set()
        except (ValueError, TypeError) as e:
            logger.warning(f"Ignoring corrupt seen-orders file {self.path}: {e}")
            return set()

    def save(self, order_ids: Iterable[int]) -> None:
        os.makedirs(self.directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(sorted(order_ids), f)


class LoggingNotifier:
    """Records alerts in the log; the driver's phone plays them from the API response"""

    def beep(self, driver_id: str, order_id: int, delay_ms: int) -> None:
        logger.info(f"Driver {driver_id}: beep for order {order_id} in {delay_ms}ms")

    def push(self, driver_id: str, title: str, body: str) -> None:
        logger.info(f"Driver {driver_id}: push '{title}' - {body}")


class WebhookNotifier(LoggingNotifier):
    """Also forwards push notifications to a webhook (push gateway)"""

    def __init__(self, url: str, timeout: float = 5.0):
        self.url = url
        self.timeout = timeout

    def push(self, driver_id: str, title: str, body: str) -> None:
        super().push(driver_id, title, body)
        payload = {
            "driver_id": driver_id,
            "title": title,
            "body": body,
            "tag": PUSH_TAG,
            "renotify": True,
            "require_interaction": True,
        }
        try:
            response = httpx.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPError as e:
            # A missed push is not worth failing the driver's refresh
            logger.warning(f"Push webhook failed for driver {driver_id}: {e}")


def get_notifier() -> LoggingNotifier:
    if settings.PUSH_WEBHOOK_URL:
        return WebhookNotifier(settings.PUSH_WEBHOOK_URL)
    return LoggingNotifier()


class DriverOrderTracker:
    """
    New-order detection for one driver

    First refresh: everything currently listed is marked seen without any
    alert, and orders still 'ready' (not started) are highlighted as new.
    Later refreshes: unseen ids alert once each, then stay seen until they
    leave the list.
    """

    def __init__(self, driver_id: str, store: SeenOrderStore, notifier: LoggingNotifier):
        self.driver_id = driver_id
        self.store = store
        self.notifier = notifier
        self.seen: Set[int] = store.load()
        self.initialized = False
        self.new_order_ids: Set[int] = set()

    def process(self, orders: Optional[Sequence[Order]]) -> List[int]:
        """
        Handle one refresh of the driver's order list

        Returns:
            Ids of orders that arrived since the previous refresh (empty on
            the first refresh)
        """
        if not orders:
            return []

        current_ids = [order.id for order in orders]
        current_set = set(current_ids)

        if not self.initialized:
            self.initialized = True
            self.seen.update(current_set)
            self.store.save(self.seen)
            self.new_order_ids = {order.id for order in orders if order.status == 'ready'}
            return []

        brand_new = []
        for order_id in current_ids:
            if order_id not in self.seen:
                brand_new.append(order_id)
                self.seen.add(order_id)

        if brand_new:
            self.store.save(self.seen)
            for index, order_id in enumerate(brand_new):
                self.notifier.beep(self.driver_id, order_id, index * BEEP_STAGGER_MS)
            self.notifier.push(self.driver_id, PUSH_TITLE, build_push_body(len(brand_new)))
            self.new_order_ids.update(brand_new)

        # Forget orders that left the list (completed or reassigned)
        gone = self.seen - current_set
        if gone:
            self.seen -= gone
            self.new_order_ids -= gone
            self.store.save(self.seen)

        return brand_new

    def acknowledge(self, order_id: int) -> None:
        """Driver opened the order; stop highlighting it"""
        self.new_order_ids.discard(order_id)


class DriverNotificationService:
    """Keeps one tracker per driver for the lifetime of the process"""

    def __init__(self, seen_dir: Optional[str] = None, notifier: Optional[LoggingNotifier] = None):
        self.seen_dir = seen_dir
        self.notifier = notifier or get_notifier()
        self.trackers: Dict[str, DriverOrderTracker] = {}

    def tracker_for(self, driver_id: str) -> DriverOrderTracker:
        tracker = self.trackers.get(driver_id)
        if tracker is None:
            tracker = DriverOrderTracker(driver_id, SeenOrderStore(driver_id, self.seen_dir), self.notifier)
            self.trackers[driver_id] = tracker
        return tracker

    def refresh(self, driver_id: str, orders: Sequence[Order]) -> Tuple[List[int], Set[int]]:
        """
        Returns:
            Tuple of (ids that just arrived, ids to highlight as new)
        """
        tracker = self.tracker_for(driver_id)
        brand_new = tracker.process(orders)
        if brand_new:
            logger.info(f"Driver {driver_id}: {len(brand_new)} new order(s) {brand_new}")
        return brand_new, set(tracker.new_order_ids)

    def acknowledge(self, driver_id: str, order_id: int) -> None:
        self.tracker_for(driver_id).acknowledge(order_id)


# Shared by the drivers router
driver_notification_service = DriverNotificationService()
