"""
Connection Events

Tracks whether the backend is reachable and notifies callbacks registered
by the host when that changes. Callbacks are informational: a failing
callback is logged and never affects the store operation that observed the
transition.
"""

from enum import Enum
from typing import Callable, Optional

from kvsession.core.exceptions import BackendError
from kvsession.observability.logging import get_logger

logger = get_logger(__name__)

ConnectCallback = Callable[[], None]
DisconnectCallback = Callable[[BackendError], None]


class ConnectionStatus(str, Enum):
    """Last observed backend reachability."""

    UNKNOWN = "unknown"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class ConnectionEvents:
    """
    Connection status plus connect/disconnect callbacks.

    Events fire on transitions only: repeated successes after the first do
    not re-fire "connected", repeated failures do not re-fire
    "disconnected".

    Example:
        >>> events = ConnectionEvents()
        >>> events.on_disconnect(lambda err: print("lost redis", err))
        >>> events.status
        <ConnectionStatus.UNKNOWN: 'unknown'>
    """

    def __init__(self) -> None:
        self._status: ConnectionStatus = ConnectionStatus.UNKNOWN
        self._last_error: Optional[BackendError] = None
        self._on_connect: list[ConnectCallback] = []
        self._on_disconnect: list[DisconnectCallback] = []

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def last_error(self) -> Optional[BackendError]:
        """Error carried by the most recent disconnect, if any."""
        return self._last_error

    def on_connect(self, callback: ConnectCallback) -> None:
        self._on_connect.append(callback)

    def on_disconnect(self, callback: DisconnectCallback) -> None:
        self._on_disconnect.append(callback)

    def mark_connected(self) -> None:
        if self._status is ConnectionStatus.CONNECTED:
            return

        self._status = ConnectionStatus.CONNECTED
        self._last_error = None
        logger.info("backend_connected")

        for callback in list(self._on_connect):
            self._notify(callback)

    def mark_disconnected(self, error: BackendError) -> None:
        self._last_error = error
        if self._status is ConnectionStatus.DISCONNECTED:
            return

        self._status = ConnectionStatus.DISCONNECTED
        logger.warning("backend_disconnected", error=str(error))

        for callback in list(self._on_disconnect):
            self._notify(callback, error)

    def _notify(self, callback: Callable[..., None], *args: BackendError) -> None:
        try:
            callback(*args)
        except Exception as e:
            logger.error(
                "connection_callback_failed",
                callback=getattr(callback, "__qualname__", repr(callback)),
                error=str(e),
            )
