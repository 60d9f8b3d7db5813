"""
Store Service
Store settings, business hours and the "are we open?" decision.

The manual switch (store_config.is_open) always wins when it closes the
store. When it is on, business hours only decide whether the store is open
normally or forced open outside its hours.
"""
import logging
from datetime import datetime
from typing import List, Optional, Sequence
from zoneinfo import ZoneInfo

from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.domain.store import StoreConfig, BusinessHour, StoreStatus
from app.repositories import StoreRepository

logger = logging.getLogger(__name__)

DEFAULT_OPEN_TIME = '08:00'
DEFAULT_CLOSE_TIME = '22:00'


def store_now() -> datetime:
    """Current time in the restaurant's timezone"""
    return datetime.now(ZoneInfo(settings.STORE_TIMEZONE))


def _day_of_week(moment: datetime) -> int:
    """0 = Sunday ... 6 = Saturday (Python's weekday() starts on Monday)"""
    return (moment.weekday() + 1) % 7


def is_store_currently_open(hours: Sequence[BusinessHour], now: Optional[datetime] = None) -> bool:
    """
    Whether `now` falls inside today's business hours

    - No row for today, or an inactive one: closed
    - close '00:00': open from open_time until midnight
    - close earlier than open: overnight span (18:00-02:00)
    - otherwise inclusive range
    """
    now = now or store_now()
    today = _day_of_week(now)
    current_time = now.strftime('%H:%M')

    today_hours = next((hour for hour in hours if hour.day_of_week == today), None)
    if today_hours is None or not today_hours.is_active:
        return False

    open_time = today_hours.open_time
    close_time = today_hours.close_time

    if close_time == '00:00':
        return current_time >= open_time

    if close_time < open_time:
        return current_time >= open_time or current_time <= close_time

    return open_time <= current_time <= close_time


def compute_store_status(
    store: Optional[StoreConfig],
    hours: Optional[Sequence[BusinessHour]],
    now: Optional[datetime] = None
) -> StoreStatus:
    if store is None:
        return StoreStatus(is_open=False, reason='manual_closed', message='Loja não configurada')

    if not store.is_open:
        return StoreStatus(is_open=False, reason='manual_closed', message='Loja fechada temporariamente')

    # Hours not loaded: the manual switch alone decides. An empty list means
    # no day is open, so the switch forces the store open.
    within_hours = is_store_currently_open(hours, now) if hours is not None else True

    if within_hours:
        return StoreStatus(is_open=True, reason='open', message='Recebendo pedidos')

    return StoreStatus(is_open=True, reason='forced_open', message='Forçando abertura')


def default_business_hours() -> List[dict]:
    """All seven days, 08:00-22:00, active"""
    return [
        {
            'day_of_week': day,
            'open_time': DEFAULT_OPEN_TIME,
            'close_time': DEFAULT_CLOSE_TIME,
            'is_active': True,
        }
        for day in range(7)
    ]


class StoreService:

    def __init__(self):
        self.store_repo = StoreRepository()

    def get_config(self) -> StoreConfig:
        store = self.store_repo.get_config()
        if store is None:
            raise NotFoundError("Store is not configured")
        return store

    def update_config(self, changes: dict) -> StoreConfig:
        store = self.get_config()
        updated = self.store_repo.update_config(store.id, changes)
        if 'is_open' in changes:
            logger.info(f"Store manually {'opened' if changes['is_open'] else 'closed'}")
        return updated

    def get_business_hours(self) -> List[BusinessHour]:
        """Stored hours; seeds the defaults the first time"""
        hours = self.store_repo.find_business_hours()
        if not hours:
            logger.info("No business hours configured, creating defaults")
            hours = self.store_repo.insert_business_hours(default_business_hours())
        return hours

    def update_business_hour(self, hour_id: str, changes: dict) -> BusinessHour:
        if not changes:
            raise ValidationError("Nothing to update")
        hour = self.store_repo.update_business_hour(hour_id, changes)
        if hour is None:
            raise NotFoundError(f"Business hour {hour_id} not found")
        return hour

    def get_status(self, now: Optional[datetime] = None) -> StoreStatus:
        store = self.store_repo.get_config()
        hours = self.get_business_hours()
        return compute_store_status(store, hours, now)
