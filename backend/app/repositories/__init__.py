"""
Repository Layer - Data Access

This layer handles all database queries and returns domain models.
Repositories abstract away SQL details from business logic.
"""
from app.repositories.menu_repository import MenuRepository
from app.repositories.store_repository import StoreRepository
from app.repositories.coupon_repository import CouponRepository
from app.repositories.delivery_zone_repository import DeliveryZoneRepository
from app.repositories.order_repository import OrderRepository
from app.repositories.table_repository import TableRepository
from app.repositories.table_order_repository import TableOrderRepository
from app.repositories.kitchen_repository import KitchenRepository
from app.repositories.staff_repository import StaffRepository

__all__ = [
    'MenuRepository',
    'StoreRepository',
    'CouponRepository',
    'DeliveryZoneRepository',
    'OrderRepository',
    'TableRepository',
    'TableOrderRepository',
    'KitchenRepository',
    'StaffRepository',
]
