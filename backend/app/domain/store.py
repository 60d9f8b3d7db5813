"""
Store Domain Models

Store configuration, business hours, coupons and delivery zones.
"""
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal


DELIVERY_FEE_MODES = ('fixed', 'zones')

COUPON_DISCOUNT_TYPES = ('percentage', 'fixed')

DAY_NAMES = ['Domingo', 'Segunda', 'Terça', 'Quarta', 'Quinta', 'Sexta', 'Sábado']


class StoreConfig(BaseModel):
    """Single-row store configuration"""

    id: str
    name: str
    is_open: bool = False
    address: Optional[str] = None
    phone_whatsapp: Optional[str] = None
    delivery_fee: Decimal = Decimal('0')
    delivery_fee_mode: Optional[str] = 'fixed'
    min_order_value: Decimal = Decimal('0')
    delivery_time_min: Optional[int] = None
    delivery_time_max: Optional[int] = None
    pix_key: Optional[str] = None
    pix_key_type: Optional[str] = None
    logo_url: Optional[str] = None
    cover_url: Optional[str] = None
    primary_color: Optional[str] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def uses_zones(self) -> bool:
        return self.delivery_fee_mode == 'zones'

    def to_dict(self) -> dict:
        data = self.model_dump()
        data['delivery_fee'] = float(self.delivery_fee)
        data['min_order_value'] = float(self.min_order_value)
        return data


class StoreConfigUpdate(BaseModel):
    name: Optional[str] = None
    is_open: Optional[bool] = None
    address: Optional[str] = None
    phone_whatsapp: Optional[str] = None
    delivery_fee: Optional[Decimal] = Field(None, ge=0)
    delivery_fee_mode: Optional[str] = None
    min_order_value: Optional[Decimal] = Field(None, ge=0)
    delivery_time_min: Optional[int] = Field(None, ge=0)
    delivery_time_max: Optional[int] = Field(None, ge=0)

    @field_validator('delivery_fee_mode')
    @classmethod
    def check_mode(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in DELIVERY_FEE_MODES:
            raise ValueError(f"delivery_fee_mode must be one of {', '.join(DELIVERY_FEE_MODES)}")
        return value


class BusinessHour(BaseModel):
    """
    Opening hours for one weekday

    day_of_week: 0 = Sunday ... 6 = Saturday
    open_time / close_time: 'HH:MM'; close '00:00' means midnight
    """

    id: str
    day_of_week: int = Field(..., ge=0, le=6)
    open_time: str
    close_time: str
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True)

    @field_validator('open_time', 'close_time', mode='before')
    @classmethod
    def normalize_time(cls, value):
        # Postgres `time` columns come back as datetime.time or 'HH:MM:SS'
        if hasattr(value, 'strftime'):
            return value.strftime('%H:%M')
        return str(value)[:5]

    @property
    def day_name(self) -> str:
        return DAY_NAMES[self.day_of_week]


class BusinessHourUpdate(BaseModel):
    open_time: Optional[str] = Field(None, pattern=r'^\d{2}:\d{2}$')
    close_time: Optional[str] = Field(None, pattern=r'^\d{2}:\d{2}$')
    is_active: Optional[bool] = None


class StoreStatus(BaseModel):
    """
    Combined manual switch + business hours

    reason: open, forced_open, manual_closed or hours_closed
    """
    is_open: bool
    reason: str
    message: str


class Coupon(BaseModel):
    id: str
    code: str
    discount_type: str  # 'percentage' | 'fixed'
    discount_value: Decimal
    min_order_value: Optional[Decimal] = Decimal('0')
    max_uses: Optional[int] = None
    current_uses: int = 0
    is_active: bool = True
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        data = self.model_dump()
        data['discount_value'] = float(self.discount_value)
        data['min_order_value'] = float(self.min_order_value or 0)
        return data


class CouponCreate(BaseModel):
    code: str = Field(..., min_length=1)
    discount_type: str
    discount_value: Decimal = Field(..., gt=0)
    min_order_value: Decimal = Field(Decimal('0'), ge=0)
    max_uses: Optional[int] = Field(None, ge=1)
    is_active: bool = True
    expires_at: Optional[datetime] = None

    @field_validator('discount_type')
    @classmethod
    def check_type(cls, value: str) -> str:
        if value not in COUPON_DISCOUNT_TYPES:
            raise ValueError(f"discount_type must be one of {', '.join(COUPON_DISCOUNT_TYPES)}")
        return value


class CouponUpdate(BaseModel):
    discount_value: Optional[Decimal] = Field(None, gt=0)
    min_order_value: Optional[Decimal] = Field(None, ge=0)
    max_uses: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None
    expires_at: Optional[datetime] = None


class CouponValidationRequest(BaseModel):
    code: str
    order_total: Decimal = Field(..., ge=0)


class DeliveryZone(BaseModel):
    id: str
    name: str
    fee: Decimal
    min_order_value: Optional[Decimal] = None
    is_active: bool = True
    sort_order: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        data = self.model_dump()
        data['fee'] = float(self.fee)
        if self.min_order_value is not None:
            data['min_order_value'] = float(self.min_order_value)
        return data


class DeliveryZoneCreate(BaseModel):
    name: str = Field(..., min_length=1)
    fee: Decimal = Field(..., ge=0)
    min_order_value: Optional[Decimal] = Field(None, ge=0)
    is_active: bool = True
    sort_order: int = 0


class DeliveryZoneUpdate(BaseModel):
    name: Optional[str] = None
    fee: Optional[Decimal] = Field(None, ge=0)
    min_order_value: Optional[Decimal] = Field(None, ge=0)
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None


class CheckoutQuoteRequest(BaseModel):
    """What the checkout screen sends to price the cart"""
    subtotal: Decimal = Field(..., ge=0)
    delivery_type: str = 'delivery'  # 'delivery' | 'pickup' | 'dine_in'
    zone_id: Optional[str] = None
    coupon_code: Optional[str] = None


class CheckoutQuote(BaseModel):
    subtotal: Decimal
    delivery_fee: Decimal
    discount: Decimal
    total: Decimal
    min_order_value: Decimal
    below_minimum: bool
    missing_for_minimum: Decimal
    coupon_code: Optional[str] = None

    def to_dict(self) -> dict:
        data = self.model_dump()
        for field in ['subtotal', 'delivery_fee', 'discount', 'total', 'min_order_value', 'missing_for_minimum']:
            data[field] = float(data[field])
        return data
