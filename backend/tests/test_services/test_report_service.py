"""
Unit tests for driver and waiter reports
"""
import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import MagicMock

from app.core.exceptions import NotFoundError
from app.domain.staff import Driver
from app.services.report_service import (
    ReportService, average_minutes, build_driver_report, build_waiter_report,
)

T0 = datetime(2025, 3, 14, 19, 0)


def delivery_row(total, minutes, status='completed'):
    return {'total_amount': Decimal(total), 'created_at': T0, 'updated_at': T0 + timedelta(minutes=minutes), 'status': status}


class TestAverageMinutes:

    def test_ignores_implausible_values(self):
        assert average_minutes([0, 20, 30, 300, None, -5], 300) == 25

    def test_half_rounds_up(self):
        assert average_minutes([20, 21], 300) == 21

    def test_empty(self):
        assert average_minutes([], 300) == 0


class TestDriverReport:

    def test_totals_and_commission(self):
        rows = [delivery_row('40.00', 30), delivery_row('60.00', 40, status='delivered'), delivery_row('99.00', 10, status='cancelled')]

        report = build_driver_report('d1', 'Carlos', rows, commission_rate=0.05)

        assert report.total_deliveries == 2
        assert report.total_received == Decimal('100.00')
        assert report.commission == Decimal('5.0000')
        assert report.avg_delivery_minutes == 35

    def test_forgotten_order_does_not_skew_average(self):
        report = build_driver_report('d1', 'Carlos', [delivery_row('10', 25), delivery_row('10', 600)])
        assert report.avg_delivery_minutes == 25


class TestWaiterReport:

    def test_average_ticket_and_service_time(self):
        rows = [
            {'total_amount': Decimal('120.00'), 'opened_at': T0, 'closed_at': T0 + timedelta(minutes=90), 'status': 'paid'},
            {'total_amount': Decimal('80.00'), 'opened_at': T0, 'closed_at': None, 'updated_at': T0 + timedelta(minutes=60), 'status': 'closed'},
        ]

        report = build_waiter_report('w1', 'Bruno', rows)

        assert report.total_orders == 2
        assert report.total_sales == Decimal('200.00')
        assert report.avg_ticket == Decimal('100.00')
        assert report.avg_service_minutes == 75

    def test_no_orders(self):
        report = build_waiter_report('w1', 'Bruno', [])
        assert (report.total_orders, report.avg_ticket) == (0, Decimal('0'))


class TestReportService:

    def test_unknown_driver(self):
        service = ReportService()
        service.driver_repo = MagicMock()
        service.driver_repo.find_by_id.return_value = None

        with pytest.raises(NotFoundError):
            service.driver_report('ghost', '2025-03-01', '2025-03-31')

    def test_driver_report_uses_date_range(self):
        service = ReportService()
        service.driver_repo = MagicMock()
        service.order_repo = MagicMock()
        service.driver_repo.find_by_id.return_value = Driver(id='d1', name='Carlos')
        service.order_repo.find_finished_in_range.return_value = [delivery_row('50.00', 20)]

        report = service.driver_report('d1', '2025-03-01', '2025-03-31')

        service.order_repo.find_finished_in_range.assert_called_once_with('2025-03-01', '2025-03-31', 'd1')
        assert report.driver_name == 'Carlos'
