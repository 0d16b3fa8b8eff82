"""
Per-employee serialisation of attendance transitions.

Every transition is a read-check-write sequence; two requests for the same
employee must not interleave. Single-process deployments use an in-process
``asyncio.Lock`` per employee, multi-process deployments a Redis lock
(``USE_REDIS_LOCKS=true``).
"""
from __future__ import annotations

import asyncio
import logging
import uuid
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as aioredis
from redis.exceptions import LockError

from shiftkeeper.core.config import settings
from shiftkeeper.core.errors import StateConflict

logger = logging.getLogger(__name__)

redis_client: aioredis.Redis | None = None

# Locks disappear once no coroutine holds or waits on them
_local_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()


async def get_redis() -> aioredis.Redis:
    global redis_client
    if redis_client is None:
        redis_client = aioredis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
        )
    return redis_client


async def close_redis() -> None:
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None


def _lock_key(employee_id: uuid.UUID | str) -> str:
    return f"shiftkeeper:attendance:{employee_id}"


def _local_lock(key: str) -> asyncio.Lock:
    lock = _local_locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _local_locks[key] = lock
    return lock


@asynccontextmanager
async def employee_lock(employee_id: uuid.UUID | str) -> AsyncIterator[None]:
    """Hold the attendance lock of one employee for the duration of the block."""
    key = _lock_key(employee_id)

    if not settings.USE_REDIS_LOCKS:
        lock = _local_lock(key)
        async with lock:
            yield
        return

    client = await get_redis()
    lock = client.lock(
        key,
        timeout=settings.LOCK_TIMEOUT_SECONDS,
        blocking_timeout=settings.LOCK_TIMEOUT_SECONDS,
    )
    acquired = await lock.acquire()
    if not acquired:
        logger.warning("Attendance lock for employee %s not acquired in time", employee_id)
        raise StateConflict("Another action for this employee is in progress")
    try:
        yield
    finally:
        try:
            await lock.release()
        except LockError:
            # lock expired while the transition was still running
            logger.warning("Attendance lock for employee %s expired before release", employee_id)
