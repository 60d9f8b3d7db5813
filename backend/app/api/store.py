"""
Store API Endpoints
Store settings, business hours, open/closed status and the checkout quote.

Status, hours, settings and quote are public (the customer menu needs them);
changing anything requires an admin.
"""
from fastapi import APIRouter, Depends, HTTPException

from app.core.auth import TokenUser, require_admin
from app.core.exceptions import ComandaError
from app.core.rate_limit import limit_endpoint
from app.domain.store import StoreConfigUpdate, BusinessHourUpdate, CheckoutQuoteRequest
from app.services.store_service import StoreService
from app.services.pricing_service import PricingService

router = APIRouter()


def get_store_service() -> StoreService:
    return StoreService()


def get_pricing_service() -> PricingService:
    return PricingService()


@router.get("/status")
async def get_store_status(service: StoreService = Depends(get_store_service)):
    """
    Whether the store takes orders right now

    reason: open, forced_open (switch on outside business hours) or manual_closed
    """
    try:
        return {
            "status": "success",
            "data": service.get_status().model_dump()
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching store status: {str(e)}")


@router.get("/")
async def get_store_config(service: StoreService = Depends(get_store_service)):
    try:
        return {
            "status": "success",
            "data": service.get_config().to_dict()
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching store: {str(e)}")


@router.patch("/")
async def update_store_config(
    payload: StoreConfigUpdate,
    user: TokenUser = Depends(require_admin),
    service: StoreService = Depends(get_store_service)
):
    try:
        store = service.update_config(payload.model_dump(exclude_unset=True))
        return {
            "status": "success",
            "data": store.to_dict()
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating store: {str(e)}")


@router.get("/hours")
async def get_business_hours(service: StoreService = Depends(get_store_service)):
    """Business hours, Sunday (0) to Saturday (6)"""
    try:
        hours = service.get_business_hours()
        return {
            "status": "success",
            "data": [{**hour.model_dump(), "day_name": hour.day_name} for hour in hours]
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching business hours: {str(e)}")


@router.patch("/hours/{hour_id}")
async def update_business_hour(
    hour_id: str,
    payload: BusinessHourUpdate,
    user: TokenUser = Depends(require_admin),
    service: StoreService = Depends(get_store_service)
):
    try:
        hour = service.update_business_hour(hour_id, payload.model_dump(exclude_unset=True))
        return {
            "status": "success",
            "data": hour.model_dump()
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating business hour: {str(e)}")


@router.post("/checkout-quote", dependencies=[Depends(limit_endpoint(30))])
async def checkout_quote(
    payload: CheckoutQuoteRequest,
    service: PricingService = Depends(get_pricing_service)
):
    """
    Price a cart: subtotal + delivery fee - coupon

    Also reports whether the store's minimum order is met.
    """
    try:
        quote = service.quote(
            subtotal=payload.subtotal,
            delivery_type=payload.delivery_type,
            zone_id=payload.zone_id,
            coupon_code=payload.coupon_code
        )
        return {
            "status": "success",
            "data": quote.to_dict()
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error calculating quote: {str(e)}")
