"""Redis client for wallet locks, balance caching and rate limiting."""

from redis.asyncio import ConnectionPool, Redis

from arena.config import get_settings

settings = get_settings()

redis_pool: ConnectionPool | None = None
redis_client: Redis | None = None


async def init_redis() -> Redis:
    """Initialize Redis connection pool and verify connectivity."""
    global redis_pool, redis_client

    redis_pool = ConnectionPool.from_url(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        socket_timeout=settings.redis_socket_timeout,
        retry_on_timeout=True,
        encoding="utf-8",
        decode_responses=True,
    )
    redis_client = Redis(connection_pool=redis_pool)

    await redis_client.ping()
    return redis_client


async def close_redis() -> None:
    """Close Redis connection and pool."""
    global redis_pool, redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
    if redis_pool:
        await redis_pool.disconnect()
        redis_pool = None


def get_redis() -> Redis:
    """Return the initialized Redis client.

    Raises:
        RuntimeError: If ``init_redis`` has not run yet.
    """
    if redis_client is None:
        raise RuntimeError("Redis is not initialized")
    return redis_client


def get_redis_optional() -> Redis | None:
    """Return the Redis client, or None before startup."""
    return redis_client
