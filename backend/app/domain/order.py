"""
Order Domain Models

Delivery orders (customer checkout) and the unified view the admin
"Pedidos" screen uses to list delivery and table orders together.
"""
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


DELIVERY_STATUSES = ('pending', 'preparing', 'ready', 'delivery', 'completed', 'cancelled')

PAYMENT_METHODS = ('money', 'card', 'pix')

# Statuses a driver still has to act on
DRIVER_ACTIVE_STATUSES = ('ready', 'delivery')


class OrderItem(BaseModel):
    """
    Delivery order line

    Fields:
        id: Line id
        order_id: Parent order id
        product_name: Product name at order time
        quantity: Units ordered
        unit_price: Price per unit (addons already included)
        observation: Note for the kitchen
    """

    id: str = Field(..., description="Order item ID")
    order_id: Optional[int] = Field(None, description="Parent order ID")
    product_name: str = Field(..., description="Product name at order time")
    quantity: int = Field(..., description="Quantity ordered", ge=1)
    unit_price: Decimal = Field(..., description="Price per unit", ge=0)
    observation: Optional[str] = Field(None, description="Note for the kitchen")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")

    model_config = ConfigDict(from_attributes=True)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_dict(self) -> dict:
        """Convert to dictionary with Decimal to float conversion"""
        data = self.model_dump()
        data['unit_price'] = float(self.unit_price)
        data['line_total'] = float(self.line_total)
        return data


class Order(BaseModel):
    """
    Delivery order domain model

    Fields:
        id: Order id (sequential number shown to customer and driver)
        customer_name / customer_phone: Who ordered
        address_*: Delivery address
        total_amount: Amount charged (items + delivery fee - coupon)
        status: pending, preparing, ready, delivery, completed, cancelled
        payment_method: money, card or pix
        change_for: Bill the customer pays with (money only)
        driver_id / driver_name: Assigned driver
        latitude / longitude: Optional geolocation from checkout
    """

    id: int = Field(..., description="Order ID")
    customer_name: str = Field(..., description="Customer name")
    customer_phone: str = Field(..., description="Customer phone")
    address_street: str = Field(..., description="Street")
    address_number: str = Field(..., description="Number")
    address_neighborhood: str = Field(..., description="Neighborhood")
    address_complement: Optional[str] = Field(None, description="Complement")
    address_reference: Optional[str] = Field(None, description="Reference point")
    total_amount: Decimal = Field(..., description="Order total", ge=0)
    status: str = Field('pending', description="Order status")
    payment_method: str = Field(..., description="Payment method")
    change_for: Optional[Decimal] = Field(None, description="Change for (money)")
    driver_id: Optional[str] = Field(None, description="Assigned driver")
    driver_name: Optional[str] = Field(None, description="Assigned driver name")
    latitude: Optional[float] = Field(None, description="Latitude")
    longitude: Optional[float] = Field(None, description="Longitude")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    items: List[OrderItem] = Field(default_factory=list, description="Order items")

    model_config = ConfigDict(from_attributes=True)

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def is_active_for_driver(self) -> bool:
        return self.status in DRIVER_ACTIVE_STATUSES

    def to_dict(self) -> dict:
        """Convert to dictionary with computed fields and floats for money"""
        data = self.model_dump()
        data['total_amount'] = float(self.total_amount)
        if self.change_for is not None:
            data['change_for'] = float(self.change_for)
        data['item_count'] = self.item_count
        data['items'] = [item.to_dict() for item in self.items]
        return data


class OrderItemCreate(BaseModel):
    """Schema for one line of a new delivery order"""
    product_name: str
    quantity: int = Field(..., ge=1)
    unit_price: Decimal = Field(..., ge=0)
    observation: Optional[str] = None


class OrderCreate(BaseModel):
    """Schema for creating a delivery order at checkout"""
    customer_name: str
    customer_phone: str
    address_street: str
    address_number: str
    address_neighborhood: str
    address_complement: Optional[str] = None
    address_reference: Optional[str] = None
    total_amount: Decimal = Field(..., ge=0)
    payment_method: str
    change_for: Optional[Decimal] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    items: List[OrderItemCreate] = Field(..., min_length=1)
    coupon_code: Optional[str] = None

    @field_validator('payment_method')
    @classmethod
    def check_payment_method(cls, value: str) -> str:
        if value not in PAYMENT_METHODS:
            raise ValueError(f"payment_method must be one of {', '.join(PAYMENT_METHODS)}")
        return value


class OrderStatusUpdate(BaseModel):
    status: str

    @field_validator('status')
    @classmethod
    def check_status(cls, value: str) -> str:
        if value not in DELIVERY_STATUSES:
            raise ValueError(f"status must be one of {', '.join(DELIVERY_STATUSES)}")
        return value


class DriverAssignment(BaseModel):
    driver_id: str
    driver_name: Optional[str] = None


class UnifiedOrder(BaseModel):
    """
    Delivery and table orders in one list

    Table orders get customer_name "Mesa <n> - <name>" and a status derived
    from their items.
    """

    id: int
    type: str  # 'delivery' | 'table'
    customer_name: str
    customer_phone: Optional[str] = None
    address_street: Optional[str] = None
    address_number: Optional[str] = None
    address_neighborhood: Optional[str] = None
    address_complement: Optional[str] = None
    address_reference: Optional[str] = None
    total_amount: Decimal = Decimal('0')
    status: str
    payment_method: Optional[str] = None
    change_for: Optional[Decimal] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    # Table order specific
    table_id: Optional[str] = None
    table_number: Optional[int] = None
    table_name: Optional[str] = None
    waiter_name: Optional[str] = None
    customer_count: Optional[int] = None

    # Driver info
    driver_id: Optional[str] = None
    driver_name: Optional[str] = None

    def to_dict(self) -> dict:
        data = self.model_dump()
        data['total_amount'] = float(self.total_amount)
        if self.change_for is not None:
            data['change_for'] = float(self.change_for)
        return data


class UnifiedOrderItem(BaseModel):
    id: str
    order_id: Optional[int] = None
    product_name: str
    quantity: int
    unit_price: Decimal
    observation: Optional[str] = None

    def to_dict(self) -> dict:
        data = self.model_dump()
        data['unit_price'] = float(self.unit_price)
        return data


class UnifiedStatusUpdate(BaseModel):
    order_type: str  # 'delivery' | 'table'
    status: str
