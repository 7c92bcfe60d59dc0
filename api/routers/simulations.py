"""Simulation endpoints — run, inspect and apply what-if allocations."""

import uuid
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from db.database import get_db
from schemas import SimulationRunRequest, SimulationResponse, SimulationApplyResponse
from services import simulation as simulation_service

router = APIRouter()


@router.post("/", response_model=SimulationResponse)
async def run_simulation(data: SimulationRunRequest, db: AsyncSession = Depends(get_db)):
    """Allocate pending orders to available drivers and store the result."""
    sim = await simulation_service.run_simulation(
        db,
        available_drivers=data.available_drivers,
        route_start_time=data.route_start_time,
        max_hours_per_driver=data.max_hours_per_driver,
        service_date=data.service_date,
    )
    return SimulationResponse.from_record(sim)


@router.get("/", response_model=list[SimulationResponse])
async def list_simulations(skip: int = 0, limit: int = 50, db: AsyncSession = Depends(get_db)):
    """Past simulations, newest first."""
    sims = await simulation_service.list_simulations(db, skip=skip, limit=limit)
    return [SimulationResponse.from_record(s) for s in sims]


@router.get("/{simulation_id}", response_model=SimulationResponse)
async def get_simulation(simulation_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    sim = await simulation_service.get_simulation(db, simulation_id)
    return SimulationResponse.from_record(sim)


@router.post("/{simulation_id}/apply", response_model=SimulationApplyResponse)
async def apply_simulation(simulation_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    """Commit the simulated assignments to live drivers and orders."""
    return await simulation_service.apply_simulation(db, simulation_id)
