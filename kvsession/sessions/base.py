"""Abstract session store contract consumed by host frameworks."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Optional

from kvsession.sessions.codec import SessionRecord


class SessionStore(ABC):
    """Contract for persisting session records by session id."""

    @abstractmethod
    async def fetch(self, session_id: str) -> Optional[SessionRecord]:
        """
        Load a session.

        Returns:
            The record, or None if no session is stored under the id.
        """
        ...

    @abstractmethod
    async def commit(self, session_id: str, record: Mapping[str, Any]) -> None:
        """Persist a session, replacing any previous value."""
        ...

    @abstractmethod
    async def destroy(self, session_id: str) -> bool:
        """
        Remove a session. Succeeds whether or not it existed.

        Returns:
            True if a session was removed.
        """
        ...

    @abstractmethod
    async def touch(self, session_id: str, record: Mapping[str, Any]) -> bool:
        """
        Refresh a session's expiration without rewriting it.

        Returns:
            True if the session existed.
        """
        ...
