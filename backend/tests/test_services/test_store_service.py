"""
Unit tests for business hours and the store open/closed status
"""
import pytest
from datetime import datetime
from unittest.mock import MagicMock

from app.domain.store import BusinessHour, StoreConfig
from app.services.store_service import (
    StoreService, compute_store_status, default_business_hours, is_store_currently_open,
)

# 2025-03-14 is a Friday (day_of_week 5)
FRIDAY = 5


def at(hour, minute=0):
    return datetime(2025, 3, 14, hour, minute)


def hours_for(day, open_time, close_time, is_active=True):
    return [BusinessHour(id=f'h{day}', day_of_week=day, open_time=open_time, close_time=close_time, is_active=is_active)]


def store(is_open=True):
    return StoreConfig(id='s1', name='Cantina', is_open=is_open)


class TestIsStoreCurrentlyOpen:

    @pytest.mark.parametrize("moment,expected", [
        (at(7, 59), False),
        (at(8, 0), True),
        (at(15, 30), True),
        (at(22, 0), True),
        (at(22, 1), False),
    ])
    def test_regular_day(self, moment, expected):
        assert is_store_currently_open(hours_for(FRIDAY, '08:00', '22:00'), moment) is expected

    @pytest.mark.parametrize("moment,expected", [(at(1, 30), True), (at(2, 1), False), (at(17, 0), False), (at(23, 0), True)])
    def test_overnight_span(self, moment, expected):
        assert is_store_currently_open(hours_for(FRIDAY, '18:00', '02:00'), moment) is expected

    def test_close_at_midnight(self):
        hours = hours_for(FRIDAY, '18:00', '00:00')
        assert is_store_currently_open(hours, at(23, 59))
        assert not is_store_currently_open(hours, at(17, 0))

    def test_inactive_or_missing_day_is_closed(self):
        assert not is_store_currently_open(hours_for(FRIDAY, '08:00', '22:00', is_active=False), at(12))
        assert not is_store_currently_open(hours_for(FRIDAY - 1, '08:00', '22:00'), at(12))

    def test_database_time_values_are_normalized(self):
        hour = BusinessHour(id='h', day_of_week=FRIDAY, open_time='08:00:00', close_time='22:00:00')
        assert (hour.open_time, hour.close_time, hour.day_name) == ('08:00', '22:00', 'Sexta')


class TestComputeStoreStatus:

    def test_manual_switch_off_wins(self):
        status = compute_store_status(store(is_open=False), hours_for(FRIDAY, '08:00', '22:00'), at(12))
        assert (status.is_open, status.reason) == (False, 'manual_closed')

    def test_open_within_hours(self):
        status = compute_store_status(store(), hours_for(FRIDAY, '08:00', '22:00'), at(12))
        assert (status.is_open, status.reason) == (True, 'open')

    def test_forced_open_outside_hours(self):
        status = compute_store_status(store(), hours_for(FRIDAY, '08:00', '22:00'), at(23))
        assert (status.is_open, status.reason) == (True, 'forced_open')

    def test_hours_unknown_follow_manual_switch(self):
        assert compute_store_status(store(), None, at(3)).reason == 'open'

    def test_empty_hours_list_is_forced_open(self):
        status = compute_store_status(store(), [], at(12))
        assert (status.is_open, status.reason) == (True, 'forced_open')

    def test_missing_store(self):
        assert compute_store_status(None, [], at(12)).is_open is False


class TestStoreService:

    def test_business_hours_seeded_once(self):
        service = StoreService()
        service.store_repo = MagicMock()
        service.store_repo.find_business_hours.return_value = []
        service.store_repo.insert_business_hours.return_value = ['seeded']

        assert service.get_business_hours() == ['seeded']
        rows = service.store_repo.insert_business_hours.call_args.args[0]
        assert [row['day_of_week'] for row in rows] == list(range(7))

    def test_status_uses_seeded_hours(self):
        service = StoreService()
        service.store_repo = MagicMock()
        service.store_repo.get_config.return_value = store()
        service.store_repo.find_business_hours.return_value = []
        service.store_repo.insert_business_hours.return_value = hours_for(FRIDAY, '08:00', '22:00')

        status = service.get_status(at(12))

        service.store_repo.insert_business_hours.assert_called_once()
        assert (status.is_open, status.reason) == (True, 'open')

    def test_defaults(self):
        defaults = default_business_hours()
        assert all(row['open_time'] == '08:00' and row['close_time'] == '22:00' for row in defaults)
