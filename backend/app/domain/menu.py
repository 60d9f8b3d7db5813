"""
Menu Domain Models

Categories and products shown on the customer menu. The "ready products"
catalog (ready_categories / ready_products) uses the same shape.
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class Product(BaseModel):
    """
    Menu product

    Fields:
        id: Product id (uuid)
        category_id: Parent category
        price: Base price (BRL)
        is_available: Hidden from the menu when False
    """

    id: str = Field(..., description="Product ID")
    category_id: Optional[str] = Field(None, description="Category ID")
    name: str = Field(..., description="Product name")
    description: Optional[str] = Field(None, description="Description shown on the menu")
    price: Decimal = Field(..., description="Price", ge=0)
    image_url: Optional[str] = Field(None, description="Photo")
    is_available: bool = Field(True, description="Shown on the menu")
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        data = self.model_dump()
        data['price'] = float(self.price)
        return data


class Category(BaseModel):
    id: str
    name: str
    sort_order: int = 0
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True)


class MenuCategory(Category):
    """Category with its available products"""
    products: List[Product] = Field(default_factory=list)

    def to_dict(self) -> dict:
        data = self.model_dump(exclude={'products'})
        data['products'] = [product.to_dict() for product in self.products]
        return data
