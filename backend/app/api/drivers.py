"""
Drivers & Waiters API Endpoints

- /api/v1/drivers: driver registry (admin) and the driver's own dashboard
- /api/v1/waiters: waiter registry
"""
from fastapi import APIRouter, Depends, HTTPException

from app.core.auth import TokenUser, require_admin, require_driver, require_staff
from app.core.exceptions import ComandaError
from app.domain.staff import StaffCreate
from app.repositories import StaffRepository
from app.services.order_service import OrderService
from app.services.driver_notification_service import (
    BEEP_STAGGER_MS, DriverNotificationService, driver_notification_service,
)


# ============================================================================
# ROUTERS
# ============================================================================

drivers_router = APIRouter(prefix="/api/v1/drivers", tags=["Drivers"])

waiters_router = APIRouter(prefix="/api/v1/waiters", tags=["Waiters"])


def get_order_service() -> OrderService:
    return OrderService()


def get_notification_service() -> DriverNotificationService:
    return driver_notification_service


# ============================================================================
# Driver dashboard (the logged in driver)
# ============================================================================

@drivers_router.get("/me/orders")
async def get_my_orders(
    user: TokenUser = Depends(require_driver),
    orders_service: OrderService = Depends(get_order_service),
    notifications: DriverNotificationService = Depends(get_notification_service)
):
    """
    Orders to deliver (ready or on the way)

    new_order_ids: orders to highlight; arrived_order_ids: orders that
    arrived since the previous call, one beep each, staggered by beep_delays_ms.
    """
    try:
        orders = orders_service.driver_orders(user.id)
        arrived, highlighted = notifications.refresh(user.id, orders)

        return {
            "status": "success",
            "count": len(orders),
            "data": [order.to_dict() for order in orders],
            "new_order_ids": sorted(highlighted),
            "arrived_order_ids": arrived,
            "beep_delays_ms": [index * BEEP_STAGGER_MS for index in range(len(arrived))]
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching driver orders: {str(e)}")


@drivers_router.post("/me/orders/{order_id}/acknowledge")
async def acknowledge_order(
    order_id: int,
    user: TokenUser = Depends(require_driver),
    notifications: DriverNotificationService = Depends(get_notification_service)
):
    notifications.acknowledge(user.id, order_id)
    return {"status": "success", "data": {"order_id": order_id}}


@drivers_router.post("/me/orders/{order_id}/start")
async def start_delivery(
    order_id: int,
    user: TokenUser = Depends(require_driver),
    orders_service: OrderService = Depends(get_order_service),
    notifications: DriverNotificationService = Depends(get_notification_service)
):
    """Driver leaves with the order (ready → delivery)"""
    try:
        order = orders_service.start_delivery(user.id, order_id)
        notifications.acknowledge(user.id, order_id)
        return {"status": "success", "data": order.to_dict()}

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error starting delivery: {str(e)}")


@drivers_router.post("/me/orders/{order_id}/complete")
async def complete_delivery(
    order_id: int,
    user: TokenUser = Depends(require_driver),
    orders_service: OrderService = Depends(get_order_service)
):
    try:
        order = orders_service.complete_delivery(user.id, order_id)
        return {"status": "success", "data": order.to_dict()}

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error completing delivery: {str(e)}")


# ============================================================================
# Registry
# ============================================================================

@drivers_router.get("/")
async def get_drivers(user: TokenUser = Depends(require_staff)):
    try:
        drivers = StaffRepository('drivers').find_all()
        return {
            "status": "success",
            "data": [driver.model_dump() for driver in drivers]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching drivers: {str(e)}")


@drivers_router.post("/", status_code=201)
async def create_driver(payload: StaffCreate, user: TokenUser = Depends(require_admin)):
    try:
        driver = StaffRepository('drivers').create(payload.model_dump())
        return {"status": "success", "data": driver.model_dump()}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating driver: {str(e)}")


@drivers_router.get("/{driver_id}/orders")
async def get_driver_orders(
    driver_id: str,
    user: TokenUser = Depends(require_staff),
    orders_service: OrderService = Depends(get_order_service)
):
    """A driver's active orders, as seen from the admin"""
    try:
        orders = orders_service.driver_orders(driver_id)
        return {
            "status": "success",
            "count": len(orders),
            "data": [order.to_dict() for order in orders]
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching driver orders: {str(e)}")


@waiters_router.get("/")
async def get_waiters(user: TokenUser = Depends(require_staff)):
    try:
        waiters = StaffRepository('waiters').find_all()
        return {
            "status": "success",
            "data": [waiter.model_dump() for waiter in waiters]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching waiters: {str(e)}")


@waiters_router.post("/", status_code=201)
async def create_waiter(payload: StaffCreate, user: TokenUser = Depends(require_admin)):
    try:
        waiter = StaffRepository('waiters').create(payload.model_dump())
        return {"status": "success", "data": waiter.model_dump()}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating waiter: {str(e)}")
