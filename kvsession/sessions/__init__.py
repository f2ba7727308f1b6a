"""
Sessions Package

Session persistence over a key-value backend: key construction, TTL policy,
payload serialization, envelope encryption and the store itself.
"""

from kvsession.sessions.base import SessionStore
from kvsession.sessions.crypto import CryptoBox, EncryptedEnvelope
from kvsession.sessions.keys import KeyCodec
from kvsession.sessions.store import KeyValueSessionStore
from kvsession.sessions.ttl import ONE_DAY_SECONDS, effective_ttl, ttl_for_record

__all__ = [
    "SessionStore",
    "KeyValueSessionStore",
    "KeyCodec",
    "CryptoBox",
    "EncryptedEnvelope",
    "ONE_DAY_SECONDS",
    "effective_ttl",
    "ttl_for_record",
]
