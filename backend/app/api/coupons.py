"""
Coupons API Endpoints
Admin manages discount coupons; the checkout validates them.
"""
from fastapi import APIRouter, Depends, HTTPException

from app.core.auth import TokenUser, require_admin
from app.core.exceptions import ComandaError
from app.core.rate_limit import limit_endpoint
from app.domain.store import CouponCreate, CouponUpdate, CouponValidationRequest
from app.services.pricing_service import PricingService

router = APIRouter()


def get_pricing_service() -> PricingService:
    return PricingService()


@router.get("/")
async def get_coupons(
    user: TokenUser = Depends(require_admin),
    service: PricingService = Depends(get_pricing_service)
):
    try:
        coupons = service.list_coupons()
        return {
            "status": "success",
            "count": len(coupons),
            "data": [coupon.to_dict() for coupon in coupons]
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching coupons: {str(e)}")


@router.post("/", status_code=201)
async def create_coupon(
    payload: CouponCreate,
    user: TokenUser = Depends(require_admin),
    service: PricingService = Depends(get_pricing_service)
):
    try:
        coupon = service.create_coupon(payload.model_dump())
        return {"status": "success", "data": coupon.to_dict()}

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating coupon: {str(e)}")


@router.post("/validate", dependencies=[Depends(limit_endpoint(30))])
async def validate_coupon(
    payload: CouponValidationRequest,
    service: PricingService = Depends(get_pricing_service)
):
    """
    Check a code against the order total

    Invalid, expired, exhausted or below-minimum coupons answer 400 with
    the message to show the customer.
    """
    try:
        result = service.validate_coupon(payload.code, payload.order_total)
        return {
            "status": "success",
            "data": {
                "coupon": result['coupon'].to_dict(),
                "discount": float(result['discount'])
            }
        }

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error validating coupon: {str(e)}")


@router.patch("/{coupon_id}")
async def update_coupon(
    coupon_id: str,
    payload: CouponUpdate,
    user: TokenUser = Depends(require_admin),
    service: PricingService = Depends(get_pricing_service)
):
    try:
        coupon = service.update_coupon(coupon_id, payload.model_dump(exclude_unset=True))
        return {"status": "success", "data": coupon.to_dict()}

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating coupon: {str(e)}")


@router.delete("/{coupon_id}")
async def delete_coupon(
    coupon_id: str,
    user: TokenUser = Depends(require_admin),
    service: PricingService = Depends(get_pricing_service)
):
    try:
        service.delete_coupon(coupon_id)
        return {"status": "success", "data": {"id": coupon_id}}

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting coupon: {str(e)}")
