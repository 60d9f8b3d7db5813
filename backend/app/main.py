"""
Comanda Platform - Backend API
Cardápio digital, delivery, PDV de mesas, cozinha e entregadores
"""
import logging
import time
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Import API routers
from app.api import store, menu, orders, tables, kitchen, drivers, coupons, delivery_zones, reports

from app.core.config import settings
from app.core.database import get_db_connection_dict_with_retry, CONNECTION_TIMEOUT
from app.core.exceptions import ComandaError, NotFoundError, ValidationError, PartialUpdateError
from app.core.rate_limit import RateLimitMiddleware
from app.services.realtime_service import realtime_listener

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# Crear aplicación FastAPI
app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description="Pedidos online, mesas (PDV), cozinha e entregas de um restaurante"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

app.add_middleware(RateLimitMiddleware)


# ============================================================================
# Domain errors -> HTTP
# ============================================================================

@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def validation_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(PartialUpdateError)
async def partial_update_handler(request: Request, exc: PartialUpdateError):
    logger.error(f"Partial update on {request.url.path}: {exc} (completed: {exc.completed_steps})")
    return JSONResponse(
        status_code=409,
        content={"detail": str(exc), "completed_steps": exc.completed_steps}
    )


@app.exception_handler(ComandaError)
async def comanda_error_handler(request: Request, exc: ComandaError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


# Include API routers
app.include_router(store.router, prefix="/api/v1/store", tags=["Store"])
app.include_router(menu.router, prefix="/api/v1/menu", tags=["Menu"])
app.include_router(orders.router, prefix="/api/v1/orders", tags=["Orders"])
app.include_router(tables.router, prefix="/api/v1/tables", tags=["Tables"])
app.include_router(kitchen.router, prefix="/api/v1/kitchen", tags=["Kitchen"])
app.include_router(coupons.router, prefix="/api/v1/coupons", tags=["Coupons"])
app.include_router(delivery_zones.router, prefix="/api/v1/delivery-zones", tags=["Delivery Zones"])
app.include_router(reports.router, prefix="/api/v1/reports", tags=["Reports"])

# Staff routers carry their own prefix
app.include_router(drivers.drivers_router)
app.include_router(drivers.waiters_router)


@app.on_event("startup")
async def start_realtime():
    if settings.REALTIME_ENABLED:
        await realtime_listener.start()


@app.on_event("shutdown")
async def stop_realtime():
    await realtime_listener.stop()


@app.get("/")
async def root():
    """Endpoint raiz - verificação de estado da API"""
    return {
        "message": "Comanda API",
        "status": "online",
        "version": settings.API_VERSION
    }


@app.get("/health")
async def health():
    """Health check endpoint para monitoreo - tests database connectivity"""
    start_time = time.time()

    db_status = "unknown"
    db_latency_ms = None
    db_error = None

    try:
        # Test database connection with minimal retry (fast check)
        conn = get_db_connection_dict_with_retry(max_retries=1, retry_delay=0.5)
        cursor = conn.cursor()
        db_start = time.time()
        cursor.execute("SELECT 1")
        cursor.fetchone()
        db_latency_ms = round((time.time() - db_start) * 1000, 2)

        cursor.close()
        conn.close()
        db_status = "connected"
    except Exception as e:
        db_status = "disconnected"
        db_error = str(e)

    total_latency_ms = round((time.time() - start_time) * 1000, 2)

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "service": "comanda-api",
        "version": settings.API_VERSION,
        "database": {
            "status": db_status,
            "latency_ms": db_latency_ms,
            "error": db_error,
            "connection_timeout_s": CONNECTION_TIMEOUT
        },
        "total_latency_ms": total_latency_ms
    }
