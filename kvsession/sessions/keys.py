"""Storage key construction for session ids."""

from typing import Optional

from kvsession.core.config import DEFAULT_PREFIX


class KeyCodec:
    """
    Maps a session id to its storage key.

    The prefix is fixed at construction so every operation on a session id
    derives the identical key. Two stores with different prefixes on the
    same backend never see each other's sessions.

    Example:
        >>> KeyCodec().to_storage_key("abc")
        'sess:abc'
    """

    def __init__(self, prefix: Optional[str] = None) -> None:
        self._prefix: str = DEFAULT_PREFIX if prefix is None else prefix

    @property
    def prefix(self) -> str:
        return self._prefix

    def to_storage_key(self, session_id: str) -> str:
        return f"{self._prefix}{session_id}"
