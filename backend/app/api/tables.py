"""
Tables API Endpoints (PDV)
Dining room tables, table orders and their items.

Waiters and the cashier (staff) run the service; creating, editing and
deleting tables is for admins.
"""
from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.auth import TokenUser, require_admin, require_staff
from app.core.exceptions import ComandaError
from app.domain.table import (
    TableCreate, TableUpdate, OpenTableRequest, AddItemRequest, ItemStatusUpdate,
    CloseTableRequest, CloseAllRequest, TransferRequest,
)
from app.services.table_service import TableService

router = APIRouter()


def get_table_service() -> TableService:
    return TableService()


# ============================================================================
# Tables
# ============================================================================

@router.get("/")
async def get_tables(
    user: TokenUser = Depends(require_staff),
    service: TableService = Depends(get_table_service)
):
    try:
        tables = service.list_tables()
        return {
            "status": "success",
            "count": len(tables),
            "data": [table.model_dump() for table in tables]
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching tables: {str(e)}")


@router.get("/overview")
async def get_tables_overview(
    user: TokenUser = Depends(require_staff),
    service: TableService = Depends(get_table_service)
):
    """Every table with its current open order and items (PDV grid)"""
    try:
        tables = service.list_tables_with_orders()
        return {
            "status": "success",
            "count": len(tables),
            "data": [table.to_dict() for table in tables]
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching tables: {str(e)}")


@router.post("/", status_code=201)
async def create_table(
    payload: TableCreate,
    user: TokenUser = Depends(require_admin),
    service: TableService = Depends(get_table_service)
):
    try:
        table = service.create_table(payload.number, payload.name, payload.capacity)
        return {
            "status": "success",
            "data": table.model_dump()
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating table: {str(e)}")


@router.patch("/{table_id}")
async def update_table(
    table_id: str,
    payload: TableUpdate,
    user: TokenUser = Depends(require_admin),
    service: TableService = Depends(get_table_service)
):
    try:
        table = service.update_table(table_id, payload.model_dump(exclude_unset=True))
        return {
            "status": "success",
            "data": table.model_dump()
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating table: {str(e)}")


@router.delete("/{table_id}")
async def delete_table(
    table_id: str,
    user: TokenUser = Depends(require_admin),
    service: TableService = Depends(get_table_service)
):
    try:
        service.delete_table(table_id)
        return {"status": "success", "data": {"id": table_id}}

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting table: {str(e)}")


@router.post("/{table_id}/open", status_code=201)
async def open_table(
    table_id: str,
    payload: OpenTableRequest,
    user: TokenUser = Depends(require_staff),
    service: TableService = Depends(get_table_service)
):
    """Open a new order on the table and mark it occupied"""
    try:
        order = service.open_table(
            table_id,
            customer_count=payload.customer_count,
            waiter_id=payload.waiter_id,
            waiter_name=payload.waiter_name
        )
        return {
            "status": "success",
            "data": order.to_dict()
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error opening table: {str(e)}")


@router.get("/{table_id}/orders")
async def get_table_open_orders(
    table_id: str,
    user: TokenUser = Depends(require_staff),
    service: TableService = Depends(get_table_service)
):
    """Open rounds of a table, newest first"""
    try:
        orders = service.open_orders_by_table(table_id)
        return {
            "status": "success",
            "count": len(orders),
            "data": [order.to_dict() for order in orders]
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching table orders: {str(e)}")


@router.post("/{table_id}/close-all")
async def close_all_orders(
    table_id: str,
    payload: CloseAllRequest,
    user: TokenUser = Depends(require_staff),
    service: TableService = Depends(get_table_service)
):
    """
    Pay every listed round of the table and free it

    Orders are closed one by one; if one fails the earlier ones stay paid
    and the response (409) lists what was applied.
    """
    try:
        closed = service.close_all_orders(table_id, payload.order_ids, payload)
        return {
            "status": "success",
            "data": {"table_id": table_id, "closed_order_ids": closed}
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error closing table: {str(e)}")


# ============================================================================
# Table orders
# ============================================================================

@router.get("/orders/closed")
async def get_closed_orders(
    start_date: str = Query(..., description="Closed from (ISO date/time)"),
    end_date: str = Query(..., description="Closed until (ISO date/time)"),
    user: TokenUser = Depends(require_staff),
    service: TableService = Depends(get_table_service)
):
    """Paid and cancelled table orders, newest first"""
    try:
        orders = service.closed_orders(start_date, end_date)
        return {
            "status": "success",
            "count": len(orders),
            "data": [order.to_dict() for order in orders]
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching closed orders: {str(e)}")


@router.get("/orders/{order_id}")
async def get_table_order(
    order_id: int,
    user: TokenUser = Depends(require_staff),
    service: TableService = Depends(get_table_service)
):
    try:
        return {
            "status": "success",
            "data": service.get_order(order_id).to_dict()
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching table order: {str(e)}")


@router.post("/orders/{order_id}/items", status_code=201)
async def add_item(
    order_id: int,
    payload: AddItemRequest,
    user: TokenUser = Depends(require_staff),
    service: TableService = Depends(get_table_service)
):
    """
    Add an item to a table order

    If the kitchen already started on the order, the item goes to a new
    order for the same table (created_new_order = true).
    """
    try:
        item, target_order_id, created_new_order = service.add_item(order_id, payload.model_dump())
        return {
            "status": "success",
            "data": {
                "item": item.to_dict(),
                "order_id": target_order_id,
                "created_new_order": created_new_order
            }
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error adding item: {str(e)}")


@router.patch("/items/{item_id}/status")
async def update_item_status(
    item_id: str,
    payload: ItemStatusUpdate,
    user: TokenUser = Depends(require_staff),
    service: TableService = Depends(get_table_service)
):
    try:
        item = service.update_item_status(item_id, payload.status)
        return {
            "status": "success",
            "data": item.to_dict()
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating item: {str(e)}")


@router.delete("/items/{item_id}")
async def remove_item(
    item_id: str,
    user: TokenUser = Depends(require_staff),
    service: TableService = Depends(get_table_service)
):
    try:
        order_id = service.remove_item(item_id)
        return {"status": "success", "data": {"id": item_id, "order_id": order_id}}

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error removing item: {str(e)}")


@router.post("/orders/{order_id}/request-bill")
async def request_bill(
    order_id: int,
    user: TokenUser = Depends(require_staff),
    service: TableService = Depends(get_table_service)
):
    try:
        return {
            "status": "success",
            "data": service.request_bill(order_id).to_dict()
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error requesting bill: {str(e)}")


@router.post("/orders/{order_id}/close")
async def close_table(
    order_id: int,
    payload: CloseTableRequest,
    user: TokenUser = Depends(require_staff),
    service: TableService = Depends(get_table_service)
):
    try:
        return {
            "status": "success",
            "data": service.close_table(order_id, payload).to_dict()
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error closing table: {str(e)}")


@router.post("/orders/{order_id}/cancel")
async def cancel_order(
    order_id: int,
    user: TokenUser = Depends(require_staff),
    service: TableService = Depends(get_table_service)
):
    try:
        return {
            "status": "success",
            "data": service.cancel_order(order_id).to_dict()
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error cancelling order: {str(e)}")


@router.post("/orders/{order_id}/transfer")
async def transfer_order(
    order_id: int,
    payload: TransferRequest,
    user: TokenUser = Depends(require_staff),
    service: TableService = Depends(get_table_service)
):
    """Move an open order to another available table"""
    try:
        return {
            "status": "success",
            "data": service.transfer_order(order_id, payload.to_table_id).to_dict()
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error transferring table: {str(e)}")
