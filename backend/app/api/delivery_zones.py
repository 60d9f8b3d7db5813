"""
Delivery Zones API Endpoints
Neighbourhood-based delivery fees (used when the store runs in zones mode).
"""
from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.auth import TokenUser, require_admin
from app.core.exceptions import ComandaError
from app.domain.store import DeliveryZoneCreate, DeliveryZoneUpdate
from app.services.pricing_service import PricingService

router = APIRouter()


def get_pricing_service() -> PricingService:
    return PricingService()


@router.get("/")
async def get_delivery_zones(
    active_only: bool = Query(False, description="Only zones offered at checkout"),
    service: PricingService = Depends(get_pricing_service)
):
    try:
        zones = service.list_zones(active_only)
        return {
            "status": "success",
            "count": len(zones),
            "data": [zone.to_dict() for zone in zones]
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching delivery zones: {str(e)}")


@router.post("/", status_code=201)
async def create_delivery_zone(
    payload: DeliveryZoneCreate,
    user: TokenUser = Depends(require_admin),
    service: PricingService = Depends(get_pricing_service)
):
    try:
        zone = service.create_zone(payload.model_dump())
        return {"status": "success", "data": zone.to_dict()}

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating delivery zone: {str(e)}")


@router.patch("/{zone_id}")
async def update_delivery_zone(
    zone_id: str,
    payload: DeliveryZoneUpdate,
    user: TokenUser = Depends(require_admin),
    service: PricingService = Depends(get_pricing_service)
):
    try:
        zone = service.update_zone(zone_id, payload.model_dump(exclude_unset=True))
        return {"status": "success", "data": zone.to_dict()}

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating delivery zone: {str(e)}")


@router.delete("/{zone_id}")
async def delete_delivery_zone(
    zone_id: str,
    user: TokenUser = Depends(require_admin),
    service: PricingService = Depends(get_pricing_service)
):
    try:
        service.delete_zone(zone_id)
        return {"status": "success", "data": {"id": zone_id}}

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting delivery zone: {str(e)}")
