"""
Redis Backend

KeyValueBackend implementation over an async redis-py client, and the
factory that builds that client from Settings.

Every redis-py failure is re-raised as BackendError with the client
exception chained. Connection-level failures (refused, reset, timeout) also
flip the backend's connection status to DISCONNECTED; the next successful
command flips it back to CONNECTED.
"""

from typing import Any, Awaitable, Optional, TypeVar

from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from kvsession.backends.base import KeyValueBackend
from kvsession.backends.events import ConnectionEvents
from kvsession.core.config import Settings
from kvsession.core.exceptions import BackendError, SerializationError
from kvsession.observability.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_DISCONNECT_ERRORS = (RedisConnectionError, RedisTimeoutError, OSError)


# =============================================================================
# Client Factory
# =============================================================================


def create_redis_client(settings: Settings) -> Redis:
    """
    Build an async Redis client from settings.

    A unix socket path takes precedence over the URL. Password and database
    from settings apply unless the URL carries its own.

    Args:
        settings: Store settings.

    Returns:
        Redis client with decode_responses=True.
    """
    kwargs: dict[str, Any] = {"encoding": "utf-8", "decode_responses": True}

    if settings.redis_password is not None:
        kwargs["password"] = settings.redis_password.get_secret_value()
    if settings.redis_db is not None:
        kwargs["db"] = settings.redis_db
    if settings.redis_socket_timeout_seconds is not None:
        kwargs["socket_timeout"] = settings.redis_socket_timeout_seconds

    if settings.redis_socket_path:
        logger.debug("redis_client_socket", path=settings.redis_socket_path)
        return Redis(unix_socket_path=settings.redis_socket_path, **kwargs)

    return Redis.from_url(settings.redis_url, **kwargs)


# =============================================================================
# RedisBackend
# =============================================================================


class RedisBackend(KeyValueBackend):
    """
    Redis implementation of KeyValueBackend.

    Attributes:
        _redis: The async Redis client instance (shared, not owned).
        events: Connection status and callbacks.

    Example:
        >>> backend = RedisBackend(Redis.from_url("redis://localhost:6379"))
        >>> await backend.setex("sess:abc", 60, "{}")
    """

    def __init__(self, redis_client: Redis) -> None:
        self._redis: Redis = redis_client
        self.events = ConnectionEvents()

    async def _execute(self, command: str, key: Optional[str], call: Awaitable[T]) -> T:
        try:
            result = await call
        except _DISCONNECT_ERRORS as e:
            error = BackendError(f"Redis {command} failed: {e}", command=command, key=key)
            error.__cause__ = e
            self.events.mark_disconnected(error)
            raise error from e
        except RedisError as e:
            logger.warning("redis_command_failed", command=command, key=key, error=str(e))
            raise BackendError(
                f"Redis {command} failed: {e}", command=command, key=key
            ) from e

        self.events.mark_connected()
        return result

    async def get(self, key: str) -> Optional[str]:
        value = await self._execute("GET", key, self._redis.get(key))
        if isinstance(value, bytes):
            try:
                return value.decode("utf-8")
            except UnicodeDecodeError as e:
                raise SerializationError(f"Stored value at {key} is not UTF-8: {e}") from e
        return value

    async def set(self, key: str, value: str) -> None:
        await self._execute("SET", key, self._redis.set(key, value))

    async def setex(self, key: str, ttl_seconds: int, value: str) -> None:
        await self._execute("SETEX", key, self._redis.set(key, value, ex=ttl_seconds))

    async def delete(self, key: str) -> bool:
        deleted = await self._execute("DEL", key, self._redis.delete(key))
        return deleted > 0

    async def expire(self, key: str, ttl_seconds: int) -> bool:
        return bool(await self._execute("EXPIRE", key, self._redis.expire(key, ttl_seconds)))

    async def ping(self) -> bool:
        """
        Check Redis connectivity.

        Returns:
            True if Redis answered, False if it is unreachable. Non-connection
            errors still raise BackendError.
        """
        try:
            return bool(await self._execute("PING", None, self._redis.ping()))
        except BackendError as e:
            if isinstance(e.__cause__, _DISCONNECT_ERRORS):
                return False
            raise

    async def close(self) -> None:
        await self._redis.aclose()
