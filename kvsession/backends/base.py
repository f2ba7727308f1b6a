"""Abstract key-value backend the session store issues its commands against."""

from abc import ABC, abstractmethod
from typing import Optional

from kvsession.backends.events import ConnectionEvents


class KeyValueBackend(ABC):
    """
    Minimal async key-value contract.

    Every method issues exactly one command and raises BackendError on
    failure. Implementations do not retry.

    Attributes:
        events: Connection status and callbacks for this backend.
    """

    events: ConnectionEvents

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the key does not exist."""
        ...

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store a value without expiration."""
        ...

    @abstractmethod
    async def setex(self, key: str, ttl_seconds: int, value: str) -> None:
        """Store a value that expires after ttl_seconds."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove a key. Returns True if it existed."""
        ...

    @abstractmethod
    async def expire(self, key: str, ttl_seconds: int) -> bool:
        """Set the expiration of an existing key. Returns True if it existed."""
        ...

    @abstractmethod
    async def ping(self) -> bool:
        """Probe connectivity. Returns True when the backend answers."""
        ...

    @abstractmethod
    async def close(self) -> None:
        ...
