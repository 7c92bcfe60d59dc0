"""Route management API endpoints — fixed routes and their fuel cost."""

import uuid
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db.database import get_db
from errors import StateConflictError
from models.route import Route
from schemas import RouteCreate, RouteResponse, RouteTrafficUpdate, FuelCostResponse
from services.finance import TrafficLevel, calculate_fuel_cost
from services.store import EntityStore

router = APIRouter()


@router.post("/", response_model=RouteResponse, status_code=201)
async def create_route(data: RouteCreate, db: AsyncSession = Depends(get_db)):
    existing = await db.execute(select(Route).where(Route.route_code == data.route_code))
    if existing.scalar_one_or_none():
        raise StateConflictError("Route with this route code already exists")

    route = Route(
        route_code=data.route_code,
        distance_km=data.distance_km,
        traffic_level=data.traffic_level.value,
        base_time_minutes=data.base_time_minutes,
        start_location=data.start_location,
        end_location=data.end_location,
        description=data.description,
        is_active=data.is_active,
    )
    db.add(route)
    await db.commit()
    await db.refresh(route)
    return route


@router.get("/", response_model=list[RouteResponse])
async def list_routes(
    is_active: bool | None = None,
    traffic_level: TrafficLevel | None = None,
    skip: int = 0,
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
):
    query = select(Route)
    if is_active is not None:
        query = query.where(Route.is_active == is_active)
    if traffic_level:
        query = query.where(Route.traffic_level == traffic_level.value)
    query = query.order_by(Route.route_code.asc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/{route_id}", response_model=RouteResponse)
async def get_route(route_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await EntityStore(db).get_route(route_id)


@router.put("/{route_id}/traffic", response_model=RouteResponse)
async def update_traffic_level(
    route_id: uuid.UUID,
    data: RouteTrafficUpdate,
    db: AsyncSession = Depends(get_db),
):
    route = await EntityStore(db).get_route(route_id)
    route.traffic_level = data.traffic_level.value
    await db.commit()
    await db.refresh(route)
    return route


@router.get("/{route_id}/fuel-cost", response_model=FuelCostResponse)
async def route_fuel_cost(route_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    route = await EntityStore(db).get_route(route_id)
    return FuelCostResponse(
        route_id=route.id,
        distance_km=route.distance_km,
        traffic_level=route.traffic_level,
        fuel_cost=calculate_fuel_cost(route.distance_km, route.traffic_level),
    )
