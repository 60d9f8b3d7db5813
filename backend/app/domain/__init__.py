"""
Domain Layer - Business Entities

Pydantic models for the restaurant: menu, store settings, delivery orders,
table service (PDV), kitchen tickets and staff.
"""
from app.domain.menu import Category, Product, MenuCategory
from app.domain.store import StoreConfig, BusinessHour, StoreStatus, Coupon, DeliveryZone, CheckoutQuote
from app.domain.order import Order, OrderItem, UnifiedOrder, UnifiedOrderItem
from app.domain.table import Table, TableOrder, TableOrderItem, TableWithOrder, OrderTotals
from app.domain.kitchen import KitchenItem, KitchenTicket, KitchenSummary
from app.domain.staff import Driver, Waiter, DriverReport, WaiterReport

__all__ = [
    'Category', 'Product', 'MenuCategory',
    'StoreConfig', 'BusinessHour', 'StoreStatus', 'Coupon', 'DeliveryZone', 'CheckoutQuote',
    'Order', 'OrderItem', 'UnifiedOrder', 'UnifiedOrderItem',
    'Table', 'TableOrder', 'TableOrderItem', 'TableWithOrder', 'OrderTotals',
    'KitchenItem', 'KitchenTicket', 'KitchenSummary',
    'Driver', 'Waiter', 'DriverReport', 'WaiterReport',
]
