"""
AW3 Pricing Async Redis Client Module

This module provides the async Redis client used to hold issued fee quotes
until they are redeemed at campaign-creation time. It includes:

- Connection management with automatic retry logic (3 attempts, exponential backoff)
- Core key operations (delete, ttl)
- Atomic take (GETDEL) so a quote can be redeemed only once
- JSON serialization operations for quote payloads

Quotes are stored with a TTL equal to the time left on them, at most the quote
validity window (15 minutes by default).

Usage:
    ```python
    from aw3_pricing.core.redis_client import init_redis, get_redis_client

    # Initialize on application startup
    await init_redis()

    client = get_redis_client()
    await client.set_json("feeEstimates:est-1a2b3c4d", quote_dict, ttl=900)
    quote = await client.get_json("feeEstimates:est-1a2b3c4d")
    ```
"""

import asyncio
import json
import logging

from typing import Any

import redis.asyncio as redis

from redis.exceptions import ConnectionError as RedisConnectionError, RedisError

from aw3_pricing.config import Settings, get_settings


# Configure module logger
logger = logging.getLogger(__name__)


# Module-level singleton instance
class _RedisClientContainer:
    """Container for Redis client singleton to avoid global statements."""

    client: "RedisClient | None" = None


_container = _RedisClientContainer()


class RedisClient:
    """
    Async Redis client wrapper for the quote cache.

    Encapsulates the redis-py async client with retry-on-connect, JSON
    serialization and logging. Read and write failures are logged and reported
    through return values so that a cache outage never breaks fee estimation.

    Attributes:
        settings: Application settings containing Redis configuration
        _client: Underlying redis async client instance
        _connected: Connection state flag
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._client: redis.Redis | None = None
        self._connected: bool = False

        logger.info(
            "RedisClient initialized with URL: %s",
            self._mask_url(self.settings.redis_url),
        )

    def _mask_url(self, url: str) -> str:
        """Mask sensitive parts of Redis URL for safe logging."""
        if "@" in url:
            parts = url.split("@")
            return f"redis://***@{parts[-1]}"
        return url

    async def connect(self) -> bool:
        """
        Establish connection to Redis with retry logic.

        Implements exponential backoff with 3 connection attempts:
        - Attempt 1: immediate
        - Attempt 2: after 1 second
        - Attempt 3: after 2 seconds

        Returns:
            bool: True if connection successful, False otherwise.
        """
        max_retries = 3
        base_delay = 1.0  # seconds

        for attempt in range(1, max_retries + 1):
            try:
                logger.info(
                    "Attempting Redis connection (attempt %d/%d)",
                    attempt,
                    max_retries,
                )

                self._client = redis.from_url(  # type: ignore[no-untyped-call]
                    self.settings.redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                    socket_connect_timeout=5.0,
                    socket_timeout=5.0,
                    retry_on_timeout=True,
                )

                await self._client.ping()  # type: ignore[misc]
                self._connected = True

                logger.info("Successfully connected to Redis")
                return True

            except RedisConnectionError as e:
                logger.warning(
                    "Redis connection failed (attempt %d/%d): %s",
                    attempt,
                    max_retries,
                    str(e),
                )
                if attempt < max_retries:
                    delay = base_delay * (2 ** (attempt - 1))
                    logger.info("Retrying in %.1f seconds...", delay)
                    await asyncio.sleep(delay)
                else:
                    logger.exception("Failed to connect to Redis after %d attempts", max_retries)

            except RedisError:
                logger.exception("Redis error during connection")
                if attempt < max_retries:
                    delay = base_delay * (2 ** (attempt - 1))
                    await asyncio.sleep(delay)

        self._connected = False
        return False

    async def close(self) -> None:
        """Close Redis connection gracefully. Safe to call multiple times."""
        if self._client:
            try:
                await self._client.aclose()
                logger.info("Redis connection closed")
            except RedisError:
                logger.exception("Error closing Redis connection")
            finally:
                self._client = None
                self._connected = False

    async def ping(self) -> bool:
        """Return True if Redis answers PING."""
        if not self._client:
            return False

        try:
            result = await self._client.ping()  # type: ignore[misc]
            return result is True or result == "PONG"
        except RedisError as e:
            logger.warning("Redis ping failed: %s", str(e))
            self._connected = False
            return False

    # =========================================================================
    # Core Operations
    # =========================================================================

    async def delete(self, key: str) -> bool:
        """
        Delete key from Redis.

        Returns:
            bool: True if key was deleted, False if key didn't exist or on error.
        """
        if not self._client:
            logger.error("Redis client not connected")
            return False

        try:
            result: int = await self._client.delete(key)
            deleted: bool = result > 0
            if deleted:
                logger.debug("Deleted key '%s'", key)
            return deleted
        except RedisError:
            logger.exception("Failed to delete key '%s'", key)
            return False

    async def ttl(self, key: str) -> int:
        """
        Remaining time-to-live of a key in seconds.

        Returns:
            int: TTL in seconds, -1 if the key has no expiry, -2 if it does not
            exist or on error.
        """
        if not self._client:
            logger.error("Redis client not connected")
            return -2

        try:
            result: int = await self._client.ttl(key)
            return result
        except RedisError:
            logger.exception("Failed to read TTL for key '%s'", key)
            return -2

    # =========================================================================
    # JSON Operations
    # =========================================================================

    async def get_json(self, key: str) -> Any | None:
        """
        Get and deserialize JSON value from Redis.

        Returns:
            Optional[Any]: Deserialized Python object if found, None otherwise.
        """
        if not self._client:
            logger.error("Redis client not connected")
            return None

        try:
            value = await self._client.get(key)
            if value is None:
                return None

            return json.loads(value)
        except json.JSONDecodeError:
            logger.exception("Failed to decode JSON for key '%s'", key)
            return None
        except RedisError:
            logger.exception("Failed to get JSON key '%s'", key)
            return None

    async def getdel_json(self, key: str) -> Any | None:
        """
        Atomically read, delete and deserialize a JSON value (Redis GETDEL).

        Only one caller can take a given key; every later caller gets None.

        Returns:
            Optional[Any]: Deserialized Python object if this call removed the
            key, None otherwise.
        """
        if not self._client:
            logger.error("Redis client not connected")
            return None

        try:
            value = await self._client.getdel(key)
            if value is None:
                return None

            return json.loads(value)
        except json.JSONDecodeError:
            logger.exception("Failed to decode JSON for key '%s'", key)
            return None
        except RedisError:
            logger.exception("Failed to take JSON key '%s'", key)
            return None

    async def set_json(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """
        Serialize and set JSON value in Redis.

        Args:
            key: The key to set.
            value: The Python object to serialize and store.
            ttl: Optional time-to-live in seconds.

        Returns:
            bool: True if set successfully, False on error.
        """
        if not self._client:
            logger.error("Redis client not connected")
            return False

        try:
            json_value = json.dumps(value, default=str)

            if ttl is not None and ttl > 0:
                await self._client.setex(key, ttl, json_value)
            else:
                await self._client.set(key, json_value)

            logger.debug("Set JSON key '%s' with TTL=%s", key, ttl)
            return True

        except (TypeError, ValueError):
            logger.exception("Failed to serialize JSON for key '%s'", key)
            return False
        except RedisError:
            logger.exception("Failed to set JSON key '%s'", key)
            return False


# =============================================================================
# Module-Level Initialization Functions
# =============================================================================


async def init_redis(settings: Settings | None = None) -> RedisClient:
    """
    Initialize and connect the global Redis client singleton.

    Called once during application startup from the FastAPI lifespan.

    Raises:
        RuntimeError: If Redis connection fails after retry attempts.
    """
    if _container.client is not None:
        logger.warning("Redis client already initialized")
        return _container.client

    logger.info("Initializing Redis client...")
    client = RedisClient(settings)

    connected = await client.connect()
    if not connected:
        logger.error("Failed to initialize Redis client")
        raise RuntimeError("Failed to connect to Redis after multiple attempts")

    _container.client = client
    logger.info("Redis client initialized successfully")
    return client


async def close_redis() -> None:
    """Close the global Redis client connection. Safe to call multiple times."""
    if _container.client is not None:
        logger.info("Closing Redis client...")
        await _container.client.close()
        _container.client = None
        logger.info("Redis client closed")
    else:
        logger.debug("Redis client already closed or not initialized")


def get_redis_client() -> RedisClient | None:
    """Return the global Redis client, or None before ``init_redis`` succeeded."""
    return _container.client


# =============================================================================
# Cache Key Constants
# =============================================================================


class CacheKeys:
    """Cache key prefixes."""

    FEE_ESTIMATE = "feeEstimates"
