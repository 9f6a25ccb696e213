"""
Redis caching service for dashboard read models.

CACHING STRATEGY
================

What we cache:
  - The dashboard summary (status counts, hotel inbox size, teams with
    incomplete bookings), JSON-serialized
  - Cache key pattern: "dashboard:{view}"

Why:
  - Every dashboard page load asks for the badge counts
  - Counting over accommodation_requests grows with the tournament size
  - The counts only change when a workflow transition happens

Invalidation strategy:
  - Every workflow transition (assign, respond, cancel, check-in,
    check-out, team approval) deletes all "dashboard:*" keys
  - TTL-based expiry as safety net (REDIS_CACHE_TTL)

Why NOT cache accommodation requests themselves:
  - Assignment needs real-time availability (stale data = overbooking)
  - Hotel managers act on individual rows and need their current state

Redis is advisory: when it is disabled or unreachable every call degrades
to a miss / no-op and the database answers.
"""

import json
from typing import Optional

import redis.asyncio as redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

DASHBOARD_PREFIX = "dashboard:"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            await _redis_client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except Exception as e:
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def _make_dashboard_key(view: str) -> str:
    return f"{DASHBOARD_PREFIX}{view}"


async def get_cached_view(view: str) -> Optional[dict]:
    """Retrieve a cached dashboard view."""
    client = await get_redis()
    if not client:
        return None

    key = _make_dashboard_key(view)
    try:
        data = await client.get(key)
        record_cache_operation("get", hit=bool(data))
        if data:
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_view(view: str, data: dict) -> None:
    """Cache a dashboard view with TTL."""
    client = await get_redis()
    if not client:
        return

    key = _make_dashboard_key(view)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_dashboard_cache() -> None:
    """
    Invalidate all cached dashboard views.
    Uses SCAN to find and delete all keys matching the prefix.
    """
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{DASHBOARD_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", error=str(e))


async def invalidate_after_commit(db: AsyncSession) -> None:
    """
    Commit the request's transition, then drop cached dashboard views.
    Views are only dropped once the new state is visible to other sessions.
    """
    await db.commit()
    await invalidate_dashboard_cache()


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
