"""Order management API endpoints — CRUD, manual assignment, status, stats."""

import logging
import uuid
from fastapi import APIRouter, Depends
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from db.database import get_db
from errors import StateConflictError
from models.order import Order
from schemas import (
    OrderCreate, OrderResponse, OrderStatusUpdate, OrderStatus,
    AssignDriverRequest, OrderStats,
)
from services import dispatch
from services.store import EntityStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", response_model=OrderResponse, status_code=201)
async def create_order(data: OrderCreate, db: AsyncSession = Depends(get_db)):
    """Create a pending order on an existing route."""
    existing = await db.execute(select(Order).where(Order.order_code == data.order_code))
    if existing.scalar_one_or_none():
        raise StateConflictError("Order with this order code already exists")

    await EntityStore(db).get_route(data.route_id)

    order = Order(
        order_code=data.order_code,
        value_rs=data.value_rs,
        route_id=data.route_id,
        delivery_timestamp=data.delivery_timestamp,
        status="pending",
        customer_name=data.customer_name,
        customer_contact=data.customer_contact,
        delivery_address=data.delivery_address,
        notes=data.notes,
    )
    db.add(order)
    await db.commit()
    await db.refresh(order)
    logger.info("Order created: %s", order.order_code)
    return order


@router.get("/", response_model=list[OrderResponse])
async def list_orders(
    status: OrderStatus | None = None,
    route_id: uuid.UUID | None = None,
    driver_id: uuid.UUID | None = None,
    min_value: float | None = None,
    max_value: float | None = None,
    skip: int = 0,
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
):
    """List orders, earliest requested delivery first."""
    query = select(Order)
    if status:
        query = query.where(Order.status == status.value)
    if route_id:
        query = query.where(Order.route_id == route_id)
    if driver_id:
        query = query.where(Order.driver_id == driver_id)
    if min_value is not None:
        query = query.where(Order.value_rs >= min_value)
    if max_value is not None:
        query = query.where(Order.value_rs <= max_value)
    query = query.order_by(Order.delivery_timestamp.asc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/stats", response_model=OrderStats)
async def order_stats(db: AsyncSession = Depends(get_db)):
    """Counts by status, on-time vs late, and delivered order financials."""
    status_rows = await db.execute(
        select(Order.status, func.count(Order.id)).group_by(Order.status)
    )
    status_counts = {row[0]: row[1] for row in status_rows}

    timing_rows = await db.execute(
        select(Order.is_delivered_on_time, func.count(Order.id))
        .where(Order.status == "delivered", Order.is_delivered_on_time.is_not(None))
        .group_by(Order.is_delivered_on_time)
    )
    timing = {bool(row[0]): row[1] for row in timing_rows}

    money = (await db.execute(
        select(func.sum(Order.value_rs), func.sum(Order.profit), func.count(Order.id))
        .where(Order.status == "delivered")
    )).first()
    total_value = float(money[0] or 0)
    total_profit = float(money[1] or 0)
    delivered = money[2] or 0

    return OrderStats(
        status_counts=status_counts,
        on_time=timing.get(True, 0),
        late=timing.get(False, 0),
        total_value=total_value,
        total_profit=total_profit,
        average_profit=total_profit / delivered if delivered else 0.0,
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await EntityStore(db).get_order(order_id)


@router.delete("/{order_id}")
async def delete_order(order_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    """Only pending orders can be deleted."""
    order = await EntityStore(db).get_order(order_id)
    if order.status != "pending":
        raise StateConflictError(f"Cannot delete order with status: {order.status}")
    await db.delete(order)
    await db.commit()
    return {"order_id": str(order_id), "deleted": True}


@router.put("/{order_id}/assign-driver", response_model=OrderResponse)
async def assign_driver(
    order_id: uuid.UUID,
    data: AssignDriverRequest,
    db: AsyncSession = Depends(get_db),
):
    """Manually assign a pending order to an available driver."""
    return await dispatch.assign_driver(db, order_id, data.driver_id)


@router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: uuid.UUID,
    data: OrderStatusUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Move an order along its lifecycle."""
    return await dispatch.update_order_status(db, order_id, data.status.value, data.delivered_at)
