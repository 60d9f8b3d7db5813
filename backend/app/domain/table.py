"""
Table Service (PDV) Domain Models

A table can hold several open table orders ("rounds"): once the kitchen
starts on a round, new items go to a fresh order for the same table.
"""
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


TABLE_STATUSES = ('available', 'occupied', 'requesting_bill')

TABLE_ORDER_STATUSES = ('open', 'requesting_bill', 'paid', 'cancelled')

# Table orders still being served
OPEN_TABLE_ORDER_STATUSES = ('open', 'requesting_bill')

ITEM_STATUSES = ('pending', 'preparing', 'ready', 'delivered', 'cancelled')

# Once the kitchen accepted an item, the order can no longer take new items
KITCHEN_STARTED_STATUSES = ('preparing', 'ready')

DISCOUNT_TYPES = ('value', 'percentage')

DEFAULT_SERVICE_FEE_PERCENTAGE = Decimal('10')


class Table(BaseModel):
    """Physical table in the dining room"""

    id: str = Field(..., description="Table id (uuid)")
    number: int = Field(..., description="Number shown to staff and on the QR code")
    name: Optional[str] = Field(None, description="Optional label (Varanda, VIP...)")
    capacity: Optional[int] = Field(4, description="Seats")
    status: str = Field('available', description="available, occupied, requesting_bill")
    current_order_id: Optional[int] = Field(None, description="Most recent open table order")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_available(self) -> bool:
        return self.status == 'available'


class TableOrderItem(BaseModel):
    """One line of a table order, tracked individually by the kitchen"""

    id: str
    table_order_id: Optional[int] = None
    product_id: Optional[str] = None
    product_name: str
    quantity: int = Field(..., ge=1)
    unit_price: Decimal = Field(..., ge=0)
    observation: Optional[str] = None
    status: Optional[str] = 'pending'
    ordered_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_dict(self) -> dict:
        data = self.model_dump()
        data['unit_price'] = float(self.unit_price)
        data['line_total'] = float(self.line_total)
        return data


class TableOrder(BaseModel):
    """
    Table order ("comanda")

    Fields:
        subtotal: Sum of non-cancelled items
        discount / discount_type: 'value' (money) or 'percentage'
        service_fee_enabled / service_fee_percentage: waiter fee, 10% default
        total_amount: subtotal - discount + service fee
    """

    id: int
    table_id: Optional[str] = None
    status: Optional[str] = 'open'
    customer_count: Optional[int] = 1
    waiter_id: Optional[str] = None
    waiter_name: Optional[str] = None
    subtotal: Optional[Decimal] = Decimal('0')
    discount: Optional[Decimal] = Decimal('0')
    discount_type: Optional[str] = 'value'
    service_fee_enabled: Optional[bool] = True
    service_fee_percentage: Optional[Decimal] = DEFAULT_SERVICE_FEE_PERCENTAGE
    total_amount: Optional[Decimal] = Decimal('0')
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    opened_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Joined from tables when listing across tables
    table_number: Optional[int] = None
    table_name: Optional[str] = None

    items: List[TableOrderItem] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_TABLE_ORDER_STATUSES

    def to_dict(self) -> dict:
        data = self.model_dump()
        for field in ['subtotal', 'discount', 'service_fee_percentage', 'total_amount']:
            if data.get(field) is not None:
                data[field] = float(data[field])
        data['items'] = [item.to_dict() for item in self.items]
        return data


class TableWithOrder(Table):
    """Table plus its current open order (PDV overview grid)"""
    current_order: Optional[TableOrder] = None

    def to_dict(self) -> dict:
        data = self.model_dump(exclude={'current_order'})
        data['current_order'] = self.current_order.to_dict() if self.current_order else None
        return data


class OrderTotals(BaseModel):
    """Result of recomputing a table order's totals"""
    subtotal: Decimal
    discount_amount: Decimal
    service_fee: Decimal
    total: Decimal


# ============================================================================
# Request schemas
# ============================================================================

class TableCreate(BaseModel):
    number: int = Field(..., ge=1)
    name: Optional[str] = None
    capacity: Optional[int] = Field(4, ge=1)


class TableUpdate(BaseModel):
    number: Optional[int] = Field(None, ge=1)
    name: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=1)
    status: Optional[str] = None

    @field_validator('status')
    @classmethod
    def check_status(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in TABLE_STATUSES:
            raise ValueError(f"status must be one of {', '.join(TABLE_STATUSES)}")
        return value


class OpenTableRequest(BaseModel):
    customer_count: int = Field(1, ge=1)
    waiter_id: Optional[str] = None
    waiter_name: Optional[str] = None


class AddItemRequest(BaseModel):
    product_id: Optional[str] = None
    product_name: str
    quantity: int = Field(..., ge=1)
    unit_price: Decimal = Field(..., ge=0)
    observation: Optional[str] = None


class ItemStatusUpdate(BaseModel):
    status: str

    @field_validator('status')
    @classmethod
    def check_status(cls, value: str) -> str:
        if value not in ITEM_STATUSES:
            raise ValueError(f"status must be one of {', '.join(ITEM_STATUSES)}")
        return value


class CloseTableRequest(BaseModel):
    payment_method: str
    discount: Decimal = Field(Decimal('0'), ge=0)
    discount_type: str = 'value'
    service_fee_enabled: bool = True
    total_amount: Optional[Decimal] = None

    @field_validator('discount_type')
    @classmethod
    def check_discount_type(cls, value: str) -> str:
        if value not in DISCOUNT_TYPES:
            raise ValueError(f"discount_type must be one of {', '.join(DISCOUNT_TYPES)}")
        return value


class CloseAllRequest(CloseTableRequest):
    order_ids: List[int] = Field(..., min_length=1)


class TransferRequest(BaseModel):
    to_table_id: str
