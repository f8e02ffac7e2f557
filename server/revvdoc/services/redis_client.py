"""Redis client for caching external vehicle data."""

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

import redis.asyncio as redis
from revvdoc.config import settings

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None

# Key prefixes for namespace organization
VIN_PREFIX = "vin:"
RECALLS_PREFIX = "recalls:"

# Timeout for Redis operations (2 seconds)
REDIS_TIMEOUT = 2.0


async def init_redis():
    """Initialize Redis connection with connection pooling.

    Failure is logged and leaves the client unset; every cache call then
    degrades to a miss.
    """
    global redis_client
    try:
        redis_client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            max_connections=50,
            socket_connect_timeout=5,
            socket_keepalive=True,
        )

        await redis_client.ping()
        logger.info("Redis connection initialized and validated with connection pooling")

    except Exception as e:
        logger.error(f"Failed to initialize Redis connection: {e}")
        if redis_client:
            try:
                await redis_client.aclose()
            except Exception as close_error:
                logger.debug(f"Error closing Redis client after failed init: {close_error}")
        redis_client = None


async def close_redis():
    """Close Redis connection."""
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
        logger.info("Redis connection closed")


def get_redis() -> Optional[redis.Redis]:
    """Get Redis client instance, or None if not initialized."""
    return redis_client


# ============================================================================
# JSON Cache Functions
# ============================================================================


async def cache_json(key: str, data: Any, ttl: int) -> bool:
    """Store a JSON-serialisable value with a TTL.

    Args:
        key: Fully prefixed cache key
        data: Value to cache
        ttl: Time-to-live in seconds

    Returns:
        True if stored, False otherwise
    """
    client = get_redis()
    if not client:
        return False

    try:
        payload = {"cached_at": datetime.now(timezone.utc).isoformat(), "data": data}
        await asyncio.wait_for(client.setex(key, ttl, json.dumps(payload)), timeout=REDIS_TIMEOUT)
        logger.info(f"Cached {key} (TTL: {ttl}s)")
        return True
    except asyncio.TimeoutError:
        logger.error(f"Timeout caching {key}")
        return False
    except Exception as e:
        logger.error(f"Error caching {key}: {e}")
        return False


async def get_cached_json(key: str) -> Optional[Any]:
    """Retrieve a cached value.

    Returns:
        The cached value, or None on a miss or any Redis failure
    """
    client = get_redis()
    if not client:
        return None

    try:
        value = await asyncio.wait_for(client.get(key), timeout=REDIS_TIMEOUT)
        if value:
            logger.info(f"Cache hit: {key}")
            return json.loads(value)["data"]
        logger.info(f"Cache miss: {key}")
        return None
    except asyncio.TimeoutError:
        logger.error(f"Timeout retrieving {key}")
        return None
    except Exception as e:
        logger.error(f"Error retrieving {key}: {e}")
        return None


# ============================================================================
# Health Check
# ============================================================================


async def check_redis_health() -> bool:
    """Test Redis connectivity."""
    client = get_redis()
    if not client:
        logger.error("Redis client not initialized")
        return False

    try:
        await asyncio.wait_for(client.ping(), timeout=REDIS_TIMEOUT)
        logger.debug("Redis health check: OK")
        return True
    except asyncio.TimeoutError:
        logger.error("Redis health check timed out")
        return False
    except Exception as e:
        logger.error(f"Redis health check failed: {e}")
        return False
