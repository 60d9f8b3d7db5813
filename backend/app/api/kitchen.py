"""
Kitchen API Endpoints
Kitchen display board and the waiters' pick-up list.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from typing import List, Optional

from app.core.auth import TokenUser, require_staff
from app.core.exceptions import ComandaError
from app.domain.kitchen import TicketStatusUpdate
from app.services.kitchen_service import KitchenService

router = APIRouter()

# One service per process so each display keeps its new-item alert state
_kitchen_service = KitchenService()


def get_kitchen_service() -> KitchenService:
    return _kitchen_service


class ServedItemsRequest(BaseModel):
    item_ids: List[str] = Field(..., min_length=1)


@router.get("/items")
async def get_kitchen_items(
    status: Optional[List[str]] = Query(None, description="Item statuses (default pending, preparing, ready)"),
    user: TokenUser = Depends(require_staff),
    service: KitchenService = Depends(get_kitchen_service)
):
    """Flat list of kitchen items, table and delivery, oldest first"""
    try:
        items = service.get_items(status)
        return {
            "status": "success",
            "count": len(items),
            "data": [item.model_dump() for item in items]
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching kitchen items: {str(e)}")


@router.get("/tickets")
async def get_kitchen_tickets(
    status: Optional[str] = Query(None, description="pending, preparing or ready"),
    user: TokenUser = Depends(require_staff),
    service: KitchenService = Depends(get_kitchen_service)
):
    try:
        tickets = service.get_tickets(status)
        return {
            "status": "success",
            "count": len(tickets),
            "data": [ticket.model_dump() for ticket in tickets]
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching kitchen tickets: {str(e)}")


@router.get("/board")
async def get_kitchen_board(
    display_id: str = Query('default', description="Kitchen display identifier"),
    user: TokenUser = Depends(require_staff),
    service: KitchenService = Depends(get_kitchen_service)
):
    """
    Tickets with wait time (ok / warning / late), tab counters and whether
    this display should ring for new pending items
    """
    try:
        return {
            "status": "success",
            "data": service.get_board(display_id)
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching kitchen board: {str(e)}")


@router.post("/tickets/status")
async def update_ticket_status(
    payload: TicketStatusUpdate,
    user: TokenUser = Depends(require_staff),
    service: KitchenService = Depends(get_kitchen_service)
):
    """Move every item of a ticket to a new status"""
    try:
        updated = service.advance_ticket(payload)
        return {
            "status": "success",
            "data": {"updated": updated, "new_status": payload.status}
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating ticket: {str(e)}")


@router.get("/ready")
async def get_ready_items(
    waiter_name: Optional[str] = Query(None, description="Only this waiter's tables"),
    user: TokenUser = Depends(require_staff),
    service: KitchenService = Depends(get_kitchen_service)
):
    """Table items ready to be taken to the table"""
    try:
        items = service.get_ready_for_waiter(waiter_name)
        return {
            "status": "success",
            "count": len(items),
            "data": [item.model_dump() for item in items]
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching ready items: {str(e)}")


@router.post("/served")
async def mark_items_served(
    payload: ServedItemsRequest,
    user: TokenUser = Depends(require_staff),
    service: KitchenService = Depends(get_kitchen_service)
):
    try:
        updated = service.mark_served(payload.item_ids)
        return {"status": "success", "data": {"updated": updated}}

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error marking items served: {str(e)}")
