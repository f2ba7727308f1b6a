"""
Session Store

Persists host-framework session records in a key-value backend.

Write path: encode record -> seal (if a secret is set) -> one SETEX with
the effective TTL, or one SET when TTL is disabled.
Read path: one GET -> open (if a secret is set) -> decode.

Each operation issues exactly one backend command and never retries.
Errors propagate to the caller as SessionStoreException subclasses; a
missing session is None, not an error.

Pattern: Repository pattern over an injected backend
"""

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, Optional

from redis.asyncio import Redis

from kvsession.backends.base import KeyValueBackend
from kvsession.backends.events import (
    ConnectCallback,
    ConnectionStatus,
    DisconnectCallback,
)
from kvsession.backends.redis_backend import RedisBackend, create_redis_client
from kvsession.core.config import Settings, get_settings
from kvsession.core.exceptions import (
    ConfigurationError,
    SerializationError,
    SessionStoreException,
)
from kvsession.observability.logging import configure_logging, get_logger
from kvsession.observability.metrics import record_operation, time_operation
from kvsession.sessions import codec
from kvsession.sessions.base import SessionStore
from kvsession.sessions.codec import SessionRecord
from kvsession.sessions.crypto import DEFAULT_ALGORITHM, CryptoBox, EncryptedEnvelope
from kvsession.sessions.keys import KeyCodec
from kvsession.sessions.ttl import ttl_for_record

logger = get_logger(__name__)


def _redact(session_id: str) -> str:
    return session_id[:8] + "..."


class KeyValueSessionStore(SessionStore):
    """
    Session store over a KeyValueBackend.

    Attributes:
        _backend: Backend commands are issued against (shared, not owned).
        _keys: Storage key construction.
        _ttl: Expiration override in seconds, or None.
        _disable_ttl: Write without expiration.
        _crypto: Envelope encryption, or None when no secret is set.

    Example:
        >>> store = KeyValueSessionStore.from_settings()
        >>> await store.commit("abc", {"cookie": {"maxAge": 60000}, "user": 1})
        >>> await store.fetch("abc")
        {'cookie': {'maxAge': 60000}, 'user': 1}
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        prefix: Optional[str] = None,
        ttl: Optional[int] = None,
        disable_ttl: bool = False,
        secret: Optional[str] = None,
        algorithm: str = DEFAULT_ALGORITHM,
    ) -> None:
        """
        Initialize the store.

        Args:
            backend: Key-value backend.
            prefix: Storage key prefix; None means "sess:".
            ttl: Expiration override in seconds; wins over cookie maxAge.
            disable_ttl: Write sessions without expiration.
            secret: Enables envelope encryption when non-empty.
            algorithm: Cipher used with the secret.

        Raises:
            ConfigurationError: If ttl is not positive or the algorithm is
                unknown.
        """
        if ttl is not None and ttl < 1:
            raise ConfigurationError(
                f"ttl must be a positive number of seconds, got {ttl}", option="ttl"
            )

        self._backend: KeyValueBackend = backend
        self._keys = KeyCodec(prefix)
        self._ttl: Optional[int] = ttl
        self._disable_ttl: bool = disable_ttl
        self._crypto: Optional[CryptoBox] = CryptoBox(secret, algorithm) if secret else None

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        redis_client: Optional[Redis] = None,
    ) -> "KeyValueSessionStore":
        """
        Build a Redis-backed store from settings.

        Installs a stdout log handler when settings.log_level is set.

        Args:
            settings: Store settings; defaults to get_settings().
            redis_client: Existing client to reuse; built from settings
                when omitted.
        """
        settings = settings or get_settings()
        if settings.log_level is not None:
            configure_logging(settings.log_level)

        client = redis_client if redis_client is not None else create_redis_client(settings)
        secret = settings.secret.get_secret_value() if settings.encryption_enabled else None

        return cls(
            RedisBackend(client),
            prefix=settings.prefix,
            ttl=settings.ttl,
            disable_ttl=settings.disable_ttl,
            secret=secret,
            algorithm=settings.algorithm,
        )

    # =========================================================================
    # Introspection
    # =========================================================================

    @property
    def prefix(self) -> str:
        return self._keys.prefix

    @property
    def encrypted(self) -> bool:
        return self._crypto is not None

    def make_key(self, session_id: str) -> str:
        """Storage key for a session id."""
        return self._keys.to_storage_key(session_id)

    # =========================================================================
    # Connection Events
    # =========================================================================

    @property
    def connection_status(self) -> ConnectionStatus:
        return self._backend.events.status

    def on_connect(self, callback: ConnectCallback) -> None:
        """Register a callback fired when the backend becomes reachable."""
        self._backend.events.on_connect(callback)

    def on_disconnect(self, callback: DisconnectCallback) -> None:
        """Register a callback fired with the BackendError when the backend becomes unreachable."""
        self._backend.events.on_disconnect(callback)

    async def ping(self) -> bool:
        return await self._backend.ping()

    async def close(self) -> None:
        await self._backend.close()

    # =========================================================================
    # Store Operations
    # =========================================================================

    @contextmanager
    def _observe(self, operation: str, session_id: str) -> Iterator[None]:
        with time_operation(operation):
            try:
                yield
            except SessionStoreException as e:
                record_operation(operation, "error")
                logger.warning(
                    "session_operation_failed",
                    operation=operation,
                    session_id=_redact(session_id),
                    error_code=e.error_code,
                    error=e.message,
                )
                raise

    async def fetch(self, session_id: str) -> Optional[SessionRecord]:
        """
        Load a session.

        Returns:
            The stored record, or None if the session does not exist.

        Raises:
            BackendError: The backend read failed.
            IntegrityError: The encrypted envelope failed verification.
            SerializationError: The stored value is not session data.
        """
        key = self.make_key(session_id)
        logger.debug("session_get", session_id=_redact(session_id))

        with self._observe("fetch", session_id):
            data = await self._backend.get(key)
            if data is None:
                record_operation("fetch", "miss")
                return None

            if self._crypto is not None:
                envelope = EncryptedEnvelope.from_json(data, session_id=session_id)
                data = self._crypto.open(envelope)

            record = codec.decode(data, session_id=session_id)

        record_operation("fetch", "hit")
        return record

    async def commit(self, session_id: str, record: Mapping[str, Any]) -> None:
        """
        Persist a session.

        Writes with SETEX using the effective TTL, or with SET when TTL is
        disabled.

        Raises:
            SerializationError: The record cannot be serialized.
            BackendError: The backend write failed.
        """
        key = self.make_key(session_id)

        with self._observe("commit", session_id):
            if not isinstance(record, Mapping):
                raise SerializationError(
                    f"Session record must be a mapping, got {type(record).__name__}",
                    session_id=session_id,
                )

            value = codec.encode(record, session_id=session_id)
            if self._crypto is not None:
                value = self._crypto.seal(value).to_json()

            if self._disable_ttl:
                logger.debug("session_set", session_id=_redact(session_id))
                await self._backend.set(key, value)
            else:
                ttl = ttl_for_record(self._ttl, record)
                logger.debug("session_setex", session_id=_redact(session_id), ttl=ttl)
                await self._backend.setex(key, ttl, value)

        record_operation("commit", "ok")

    async def destroy(self, session_id: str) -> bool:
        """
        Remove a session. Destroying a missing session succeeds.

        Returns:
            True if a session was removed.

        Raises:
            BackendError: The backend delete failed.
        """
        key = self.make_key(session_id)
        logger.debug("session_del", session_id=_redact(session_id))

        with self._observe("destroy", session_id):
            deleted = await self._backend.delete(key)

        record_operation("destroy", "ok")
        return deleted

    async def touch(self, session_id: str, record: Mapping[str, Any]) -> bool:
        """
        Refresh a session's expiration without rewriting its value.

        The TTL is recomputed from the record and applied even when the
        store writes with TTL disabled.

        Returns:
            True if the session existed.

        Raises:
            BackendError: The backend command failed.
        """
        key = self.make_key(session_id)
        ttl = ttl_for_record(self._ttl, record)
        logger.debug("session_expire", session_id=_redact(session_id), ttl=ttl)

        with self._observe("touch", session_id):
            existed = await self._backend.expire(key, ttl)

        record_operation("touch", "ok")
        return existed
