"""
Simulation run lock — one run or apply at a time across all API workers.

Backed by a Redis lock with an expiry so a crashed worker cannot wedge
the fleet. Disabled with SIMULATION_LOCK_ENABLED=false (single worker).
"""

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from redis.exceptions import LockNotOwnedError

from config import settings
from errors import StateConflictError

logger = logging.getLogger(__name__)

LOCK_KEY = "fleet:simulation-lock"

_redis: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Singleton Redis connection."""
    global _redis
    if _redis is None:
        _redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis


@asynccontextmanager
async def simulation_lock(purpose: str = "run"):
    """Hold the fleet-wide lock for the duration of the block."""
    if not settings.SIMULATION_LOCK_ENABLED:
        yield
        return

    r = await get_redis()
    lock = r.lock(
        LOCK_KEY,
        timeout=settings.SIMULATION_LOCK_TIMEOUT_S,
        blocking_timeout=settings.SIMULATION_LOCK_WAIT_S,
    )
    if not await lock.acquire():
        logger.warning("Simulation lock busy, rejecting %s", purpose)
        raise StateConflictError("Another simulation run or apply is in progress. Try again shortly.")

    logger.debug("Simulation lock acquired for %s", purpose)
    try:
        yield
    finally:
        try:
            await lock.release()
        except LockNotOwnedError:
            # Expired while the block ran; its work has already landed
            logger.warning("Simulation lock expired before %s finished", purpose)
