"""
Report Service
Driver and waiter performance over a date range.

Durations are whole minutes (truncated); values outside a plausible
window are left out of the averages so a forgotten order does not skew them.
"""
import logging
import math
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.domain.staff import DriverReport, WaiterReport
from app.repositories import OrderRepository, TableOrderRepository, StaffRepository

logger = logging.getLogger(__name__)

# Plausible durations in minutes (exclusive bounds)
MAX_DELIVERY_MINUTES = 300
MAX_SERVICE_MINUTES = 600


def minutes_between(start: Optional[datetime], end: Optional[datetime]) -> Optional[int]:
    if start is None or end is None:
        return None
    return int((end - start).total_seconds() / 60)


def average_minutes(durations: Iterable[Optional[int]], upper_bound: int) -> int:
    """Rounded mean of the durations with 0 < t < upper_bound; 0 when none"""
    valid = [t for t in durations if t is not None and 0 < t < upper_bound]
    if not valid:
        return 0
    # Half rounds up
    return int(math.floor(sum(valid) / len(valid) + 0.5))


def build_driver_report(
    driver_id: str,
    driver_name: str,
    rows: List[dict],
    commission_rate: Optional[float] = None
) -> DriverReport:
    """
    Args:
        rows: completed/delivered orders with total_amount, created_at, updated_at
    """
    rate = Decimal(str(settings.DRIVER_COMMISSION_RATE if commission_rate is None else commission_rate))
    finished = [row for row in rows if row.get('status', 'completed') in ('completed', 'delivered')]

    total_received = sum((Decimal(row['total_amount'] or 0) for row in finished), Decimal('0'))

    return DriverReport(
        driver_id=driver_id,
        driver_name=driver_name,
        total_deliveries=len(finished),
        avg_delivery_minutes=average_minutes(
            (minutes_between(row['created_at'], row['updated_at']) for row in finished),
            MAX_DELIVERY_MINUTES
        ),
        total_received=total_received,
        commission=total_received * rate,
    )


def build_waiter_report(waiter_id: Optional[str], waiter_name: str, rows: List[dict]) -> WaiterReport:
    """
    Args:
        rows: closed/paid table orders with total_amount, opened_at, closed_at, updated_at
    """
    finished = [row for row in rows if row.get('status', 'paid') in ('closed', 'paid')]

    total_sales = sum((Decimal(row['total_amount'] or 0) for row in finished), Decimal('0'))
    avg_ticket = total_sales / len(finished) if finished else Decimal('0')

    return WaiterReport(
        waiter_id=waiter_id,
        waiter_name=waiter_name,
        total_orders=len(finished),
        total_sales=total_sales,
        avg_ticket=avg_ticket,
        avg_service_minutes=average_minutes(
            (
                minutes_between(row['opened_at'], row.get('closed_at') or row.get('updated_at'))
                for row in finished
            ),
            MAX_SERVICE_MINUTES
        ),
    )


class ReportService:

    def __init__(self):
        self.order_repo = OrderRepository()
        self.table_order_repo = TableOrderRepository()
        self.driver_repo = StaffRepository('drivers')
        self.waiter_repo = StaffRepository('waiters')

    def driver_report(self, driver_id: str, start_date: str, end_date: str) -> DriverReport:
        driver = self.driver_repo.find_by_id(driver_id)
        if driver is None:
            raise NotFoundError(f"Driver {driver_id} not found")

        rows = self.order_repo.find_finished_in_range(start_date, end_date, driver_id)
        return build_driver_report(driver.id, driver.name, rows)

    def waiter_report(self, waiter_id: str, start_date: str, end_date: str) -> WaiterReport:
        waiter = self.waiter_repo.find_by_id(waiter_id)
        if waiter is None:
            raise NotFoundError(f"Waiter {waiter_id} not found")

        rows = self.table_order_repo.find_closed_for_report(waiter_id, start_date, end_date)
        return build_waiter_report(waiter.id, waiter.name, rows)
