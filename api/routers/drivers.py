"""Driver management API endpoints — CRUD, fatigue tier, shift end, day start."""

import logging
import uuid
from datetime import datetime
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db.database import get_db
from errors import StateConflictError
from models.driver import Driver
from schemas import DriverCreate, DriverResponse, DriverFatigueUpdate, DriverStatus
from services import dispatch
from services.fatigue import is_fatigued_after
from services.store import EntityStore

logger = logging.getLogger(__name__)

router = APIRouter()


# ── CRUD ───────────────────────────────────────────────────

@router.post("/", response_model=DriverResponse, status_code=201)
async def create_driver(data: DriverCreate, db: AsyncSession = Depends(get_db)):
    """Operator adds a driver; the fatigue flag defaults to the last closed day."""
    if data.license_number:
        existing = await db.execute(select(Driver).where(Driver.license_number == data.license_number))
        if existing.scalar_one_or_none():
            raise StateConflictError("Driver with this license number already exists")

    is_fatigued = data.is_fatigued
    if is_fatigued is None:
        is_fatigued = is_fatigued_after(data.past_week_work_hours[0])

    driver = Driver(
        name=data.name,
        phone=data.phone,
        email=data.email.lower() if data.email else None,
        license_number=data.license_number,
        current_shift_hours=data.current_shift_hours,
        past_week_work_hours=[float(h) for h in data.past_week_work_hours],
        is_fatigued=is_fatigued,
        fatigue_level="normal",
        fatigue_updated_at=datetime.utcnow(),
        status=data.status.value,
    )
    db.add(driver)
    await db.commit()
    await db.refresh(driver)
    logger.info("Driver created: %s (%s)", driver.name, driver.id)
    return driver


@router.get("/", response_model=list[DriverResponse])
async def list_drivers(
    status: DriverStatus | None = None,
    name: str | None = None,
    skip: int = 0,
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
):
    """List drivers with optional status and name filters."""
    query = select(Driver)
    if status:
        query = query.where(Driver.status == status.value)
    if name:
        query = query.where(Driver.name.ilike(f"%{name}%"))
    query = query.order_by(Driver.name.asc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/{driver_id}", response_model=DriverResponse)
async def get_driver(driver_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await EntityStore(db).get_driver(driver_id)


@router.delete("/{driver_id}")
async def delete_driver(driver_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    """Remove a driver. Outstanding orders are not checked."""
    driver = await EntityStore(db).get_driver(driver_id)
    await db.delete(driver)
    await db.commit()
    logger.info("Driver deleted: %s", driver_id)
    return {"driver_id": str(driver_id), "deleted": True}


# ── Fatigue & shifts ───────────────────────────────────────

@router.put("/{driver_id}/fatigue", response_model=DriverResponse)
async def update_fatigue_level(
    driver_id: uuid.UUID,
    data: DriverFatigueUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Set the manual fatigue tier (normal / moderate / high)."""
    return await dispatch.set_fatigue_level(db, driver_id, data.level.value)


@router.put("/{driver_id}/end-shift", response_model=DriverResponse)
async def end_shift(driver_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    """Book the shift into today's history and go off duty."""
    return await dispatch.end_shift(db, driver_id)


@router.put("/{driver_id}/start-day", response_model=DriverResponse)
async def start_day(driver_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    """Roll the work history over and make the driver available again."""
    return await dispatch.start_day(db, driver_id)
