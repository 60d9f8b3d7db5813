"""
Reports API Endpoints
Per-driver and per-waiter performance over a date range (admin only).
"""
from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.auth import TokenUser, require_admin
from app.core.exceptions import ComandaError
from app.services.report_service import ReportService

router = APIRouter()


def get_report_service() -> ReportService:
    return ReportService()


@router.get("/drivers/{driver_id}")
async def get_driver_report(
    driver_id: str,
    start_date: str = Query(..., description="YYYY-MM-DD, inclusive"),
    end_date: str = Query(..., description="YYYY-MM-DD, inclusive"),
    user: TokenUser = Depends(require_admin),
    service: ReportService = Depends(get_report_service)
):
    """Deliveries, revenue, commission and average delivery time"""
    try:
        report = service.driver_report(driver_id, start_date, end_date)
        return {"status": "success", "data": report.to_dict()}

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error building driver report: {str(e)}")


@router.get("/waiters/{waiter_id}")
async def get_waiter_report(
    waiter_id: str,
    start_date: str = Query(..., description="YYYY-MM-DD, inclusive"),
    end_date: str = Query(..., description="YYYY-MM-DD, inclusive"),
    user: TokenUser = Depends(require_admin),
    service: ReportService = Depends(get_report_service)
):
    """Tables served, revenue, service fees and average service time"""
    try:
        report = service.waiter_report(waiter_id, start_date, end_date)
        return {"status": "success", "data": report.to_dict()}

    except ComandaError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error building waiter report: {str(e)}")
