"""
Staff Domain Models

Drivers (delivery) and waiters (table service), plus their performance reports.
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime
from decimal import Decimal


class Driver(BaseModel):
    id: str
    name: str
    phone: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class Waiter(BaseModel):
    id: str
    name: str
    phone: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class StaffCreate(BaseModel):
    name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    is_active: bool = True


class DriverReport(BaseModel):
    """
    Delivery performance of one driver in a period

    Fields:
        total_deliveries: Completed or delivered orders
        avg_delivery_minutes: Mean of created→updated, counting only 0 < t < 300
        total_received: Sum of order totals
        commission: total_received * commission rate
    """
    driver_id: str
    driver_name: str
    total_deliveries: int = 0
    avg_delivery_minutes: int = 0
    total_received: Decimal = Decimal('0')
    commission: Decimal = Decimal('0')

    def to_dict(self) -> dict:
        data = self.model_dump()
        data['total_received'] = float(self.total_received)
        data['commission'] = float(self.commission)
        return data


class WaiterReport(BaseModel):
    """
    Table service performance of one waiter in a period

    avg_service_minutes counts only 0 < t < 600 (opened→closed).
    """
    waiter_id: Optional[str] = None
    waiter_name: str
    total_orders: int = 0
    total_sales: Decimal = Decimal('0')
    avg_ticket: Decimal = Decimal('0')
    avg_service_minutes: int = 0

    def to_dict(self) -> dict:
        data = self.model_dump()
        data['total_sales'] = float(self.total_sales)
        data['avg_ticket'] = float(self.avg_ticket)
        return data
