"""
Entity Store — the only place the core reads or writes records.

Reads for a simulation run come back as frozen snapshots; routes are
resolved with one batched lookup instead of per-order joins.
"""

from __future__ import annotations
import logging
import uuid

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from errors import NotFoundError
from models.driver import Driver
from models.order import Order
from models.route import Route
from models.simulation import Simulation
from services.allocation import DriverSnapshot, OrderSnapshot, RouteSnapshot
from services.status_machine import OPEN_ORDER_STATUSES

logger = logging.getLogger(__name__)


class EntityStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ── Snapshots for a run ────────────────────────────────

    async def available_driver_snapshots(self, limit: int | None = None) -> list[DriverSnapshot]:
        """Available drivers, fewest shift hours first."""
        query = (
            select(Driver)
            .where(Driver.status == "available")
            .order_by(Driver.current_shift_hours.asc(), Driver.created_at.asc())
        )
        if limit is not None:
            query = query.limit(limit)
        drivers = (await self.db.execute(query)).scalars().all()
        return [
            DriverSnapshot(
                id=d.id,
                name=d.name,
                current_shift_hours=float(d.current_shift_hours or 0.0),
                is_fatigued=bool(d.is_fatigued),
            )
            for d in drivers
        ]

    async def pending_order_snapshots(self) -> tuple[list[OrderSnapshot], list[uuid.UUID]]:
        """
        Pending orders on active routes, earliest requested delivery first.

        Returns (snapshots, ids of pending orders whose route is inactive).
        """
        orders = (await self.db.execute(
            select(Order)
            .where(Order.status == "pending")
            .order_by(Order.delivery_timestamp.asc(), Order.created_at.asc())
        )).scalars().all()
        if not orders:
            return [], []

        route_ids = list({o.route_id for o in orders})
        routes = (await self.db.execute(
            select(Route).where(Route.id.in_(route_ids))
        )).scalars().all()
        by_id = {
            r.id: RouteSnapshot(
                id=r.id,
                distance_km=float(r.distance_km),
                traffic_level=r.traffic_level,
                base_time_minutes=int(r.base_time_minutes),
            )
            for r in routes
            if r.is_active
        }

        snapshots = []
        skipped = []
        for o in orders:
            route = by_id.get(o.route_id)
            if route is None:
                skipped.append(o.id)
                continue
            snapshots.append(OrderSnapshot(
                id=o.id,
                value_rs=float(o.value_rs),
                requested_at=o.delivery_timestamp,
                route=route,
            ))
        if skipped:
            logger.info("Snapshot: %d pending orders on inactive routes left unassigned", len(skipped))
        return snapshots, skipped

    # ── Lookups by id ──────────────────────────────────────

    async def _get(self, model, record_id: uuid.UUID, label: str):
        record = (await self.db.execute(
            select(model).where(model.id == record_id)
        )).scalar_one_or_none()
        if record is None:
            raise NotFoundError(f"{label} not found")
        return record

    async def get_driver(self, driver_id: uuid.UUID) -> Driver:
        return await self._get(Driver, driver_id, "Driver")

    async def get_route(self, route_id: uuid.UUID) -> Route:
        return await self._get(Route, route_id, "Route")

    async def get_order(self, order_id: uuid.UUID) -> Order:
        return await self._get(Order, order_id, "Order")

    async def get_simulation(self, simulation_id: uuid.UUID) -> Simulation:
        return await self._get(Simulation, simulation_id, "Simulation")

    async def get_orders(self, order_ids: list[uuid.UUID]) -> dict[uuid.UUID, Order]:
        if not order_ids:
            return {}
        orders = (await self.db.execute(
            select(Order).where(Order.id.in_(order_ids))
        )).scalars().all()
        return {o.id: o for o in orders}

    async def count_open_orders(self, driver_id: uuid.UUID, exclude_order_id: uuid.UUID | None = None) -> int:
        """Orders still holding this driver (assigned or in transit)."""
        query = select(func.count(Order.id)).where(
            Order.driver_id == driver_id,
            Order.status.in_(OPEN_ORDER_STATUSES),
        )
        if exclude_order_id is not None:
            query = query.where(Order.id != exclude_order_id)
        return (await self.db.execute(query)).scalar() or 0

    # ── Writes ─────────────────────────────────────────────

    async def save_simulation(self, simulation: Simulation) -> Simulation:
        self.db.add(simulation)
        await self.db.commit()
        await self.db.refresh(simulation)
        return simulation
