"""
Kitchen Domain Models

A kitchen item is one line of either a table order (PDV) or a delivery
order. The kitchen display groups items into tickets, one per order.
"""
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import datetime, timezone
from decimal import Decimal


# Ticket status priority: the "worst" (lowest) item status wins
STATUS_PRIORITY = {
    'pending': 0,
    'preparing': 1,
    'ready': 2,
}

KITCHEN_STATUSES = ('pending', 'preparing', 'ready', 'delivered')

ORDER_TYPES = ('table', 'delivery')


class KitchenItem(BaseModel):
    """
    One order line as seen by the kitchen

    Fields:
        id: Line id (table_order_items.id or order_items.id)
        table_order_id: Parent table order (table items only)
        order_id: Parent delivery order (delivery items only)
        order_type: 'table' or 'delivery'
        status: pending, preparing, ready or delivered
        ordered_at: When the line was sent to the kitchen

        # Context shown on the ticket
        table_number / table_name / waiter_name: table items
        customer_name: delivery items
    """

    id: str = Field(..., description="Line item id")
    table_order_id: Optional[int] = Field(None, description="Table order id")
    order_id: Optional[int] = Field(None, description="Delivery order id")
    product_id: Optional[str] = Field(None, description="Product id")
    product_name: str = Field(..., description="Product name at order time")
    quantity: int = Field(..., description="Quantity", ge=1)
    observation: Optional[str] = Field(None, description="Customer note for the kitchen")
    unit_price: Decimal = Field(Decimal('0'), description="Price per unit", ge=0)
    status: str = Field('pending', description="Item status")
    ordered_at: datetime = Field(..., description="When the item was ordered")
    delivered_at: Optional[datetime] = Field(None, description="When the item reached the table")
    table_number: Optional[int] = Field(None, description="Table number")
    table_name: Optional[str] = Field(None, description="Table name")
    waiter_name: Optional[str] = Field(None, description="Waiter who took the order")
    order_type: str = Field(..., description="'table' or 'delivery'")
    customer_name: Optional[str] = Field(None, description="Customer name (delivery)")

    model_config = ConfigDict(from_attributes=True)

    @field_validator('status', mode='before')
    @classmethod
    def default_status(cls, value):
        # Legacy rows may have a NULL status
        return value or 'pending'

    @field_validator('ordered_at', mode='before')
    @classmethod
    def default_ordered_at(cls, value):
        return value or datetime.now(timezone.utc)

    @property
    def order_key(self) -> str:
        """Identity of the order this item belongs to"""
        if self.order_type == 'table':
            return f"table_{self.table_order_id}"
        return f"delivery_{self.order_id}"

    @property
    def priority(self) -> int:
        """Status priority; unknown statuses count as pending"""
        return STATUS_PRIORITY.get(self.status, 0)


class KitchenTicket(BaseModel):
    """
    All items of one order, as displayed on a kitchen card

    status is the worst status among the items (pending < preparing < ready);
    oldest_ordered_at is the earliest item timestamp.
    """

    order_key: str
    order_type: str
    order_id: Optional[int] = None
    table_order_id: Optional[int] = None
    table_number: Optional[int] = None
    table_name: Optional[str] = None
    customer_name: Optional[str] = None
    waiter_name: Optional[str] = None
    items: List[KitchenItem] = Field(default_factory=list)
    oldest_ordered_at: datetime
    status: str

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def label(self) -> str:
        """'Mesa 4' for tables, 'Delivery #123' for deliveries"""
        if self.order_type == 'table':
            return f"Mesa {self.table_number}"
        return f"Delivery #{self.order_id}"


class KitchenSummary(BaseModel):
    """Ticket counts per kitchen tab"""
    pending: int = 0
    preparing: int = 0
    ready: int = 0


class TicketStatusUpdate(BaseModel):
    """Schema for moving a whole ticket to a new status"""
    order_type: str
    order_id: Optional[int] = None
    table_order_id: Optional[int] = None
    status: str
