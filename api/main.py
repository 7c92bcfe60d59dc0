"""
Fleet Simulation — FastAPI Backend
Driver / route / order records and what-if delivery allocation
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from db.database import engine, init_models
from errors import FleetError
from routers import drivers, delivery_routes, orders, simulations

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    await init_models()
    logger.info("Fleet Simulation API starting...")
    yield
    # Shutdown
    await engine.dispose()
    logger.info("Fleet Simulation API shut down.")


app = FastAPI(
    title="Fleet Simulation API",
    description="Delivery fleet management with what-if order allocation",
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS ───────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Errors ─────────────────────────────────────────────────
@app.exception_handler(FleetError)
async def fleet_error_handler(request: Request, exc: FleetError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    body = {"detail": exc.message, "error": exc.kind}
    if exc.details:
        body["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=body)


# ── Routers ────────────────────────────────────────────────
app.include_router(simulations.router, prefix="/api/simulations", tags=["Simulations"])
app.include_router(drivers.router, prefix="/api/drivers", tags=["Drivers"])
app.include_router(delivery_routes.router, prefix="/api/routes", tags=["Routes"])
app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "Fleet Simulation API"}


@app.get("/health/db")
async def health_db():
    """Verify the database answers."""
    from sqlalchemy import text
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"status": "ok"}
    except Exception as e:
        return {"status": "error", "detail": str(e)}
