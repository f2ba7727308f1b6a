"""
Backends Package

The abstract key-value contract the session store runs against, its Redis
implementation, and connection status events.
"""

from kvsession.backends.base import KeyValueBackend
from kvsession.backends.events import ConnectionEvents, ConnectionStatus
from kvsession.backends.redis_backend import RedisBackend, create_redis_client

__all__ = [
    "KeyValueBackend",
    "ConnectionEvents",
    "ConnectionStatus",
    "RedisBackend",
    "create_redis_client",
]
