"""
Orders API Endpoints
Delivery checkout, delivery order management and the unified order list
(delivery + table orders) of the admin "Pedidos" screen.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List, Optional

from app.core.auth import TokenUser, require_staff
from app.core.exceptions import ComandaError
from app.core.rate_limit import limit_endpoint
from app.domain.order import OrderCreate, OrderStatusUpdate, DriverAssignment, UnifiedStatusUpdate
from app.services.order_service import OrderService

router = APIRouter()


def get_order_service() -> OrderService:
    return OrderService()


@router.post("/", status_code=201, dependencies=[Depends(limit_endpoint(10))])
async def create_order(
    payload: OrderCreate,
    service: OrderService = Depends(get_order_service)
):
    """
    Customer checkout: create a pending delivery order

    Public endpoint, limited to 10 orders per minute per client.
    """
    try:
        order = service.create_order(payload)
        return {
            "status": "success",
            "data": order.to_dict()
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating order: {str(e)}")


@router.get("/")
async def get_orders(
    status: Optional[List[str]] = Query(None, description="Filter by status (repeatable)"),
    user: TokenUser = Depends(require_staff),
    service: OrderService = Depends(get_order_service)
):
    """Delivery orders with items, newest first"""
    try:
        orders = service.list_orders(status)
        return {
            "status": "success",
            "count": len(orders),
            "data": [order.to_dict() for order in orders]
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching orders: {str(e)}")


@router.get("/all")
async def get_all_orders(
    user: TokenUser = Depends(require_staff),
    service: OrderService = Depends(get_order_service)
):
    """
    Delivery and table orders in one list, newest first

    Table orders are named "Mesa N - name" and get a status derived from
    their items; tables with no items yet are left out.
    """
    try:
        orders = service.list_all()
        return {
            "status": "success",
            "count": len(orders),
            "data": [order.to_dict() for order in orders]
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching orders: {str(e)}")


@router.get("/{order_type}/{order_id}/items")
async def get_unified_items(
    order_type: str,
    order_id: int,
    user: TokenUser = Depends(require_staff),
    service: OrderService = Depends(get_order_service)
):
    try:
        items = service.get_unified_items(order_type, order_id)
        return {
            "status": "success",
            "data": [item.to_dict() for item in items]
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching order items: {str(e)}")


@router.patch("/{order_id}/unified-status")
async def update_unified_status(
    order_id: int,
    payload: UnifiedStatusUpdate,
    user: TokenUser = Depends(require_staff),
    service: OrderService = Depends(get_order_service)
):
    """Status change from the unified list (delivery or table order)"""
    try:
        service.update_unified_status(payload.order_type, order_id, payload.status)
        return {
            "status": "success",
            "data": {"order_id": order_id, "order_type": payload.order_type, "new_status": payload.status}
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating order: {str(e)}")


@router.get("/{order_id}")
async def get_order(
    order_id: int,
    service: OrderService = Depends(get_order_service)
):
    """
    Single delivery order with items

    Public so the customer's tracking page can poll it.
    """
    try:
        return {
            "status": "success",
            "data": service.get_order(order_id).to_dict()
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching order: {str(e)}")


@router.patch("/{order_id}/status")
async def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    user: TokenUser = Depends(require_staff),
    service: OrderService = Depends(get_order_service)
):
    try:
        order = service.update_status(order_id, payload.status)
        return {
            "status": "success",
            "data": order.to_dict()
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating order: {str(e)}")


@router.patch("/{order_id}/driver")
async def assign_driver(
    order_id: int,
    payload: DriverAssignment,
    user: TokenUser = Depends(require_staff),
    service: OrderService = Depends(get_order_service)
):
    try:
        order = service.assign_driver(order_id, payload.driver_id, payload.driver_name)
        return {
            "status": "success",
            "data": order.to_dict()
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error assigning driver: {str(e)}")
