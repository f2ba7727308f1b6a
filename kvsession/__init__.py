"""kvsession - key-value session store with TTL and envelope encryption.

Import the store from `kvsession.sessions`, settings and exceptions from
`kvsession.core`.
"""

__version__ = "0.1.0"

__all__ = ["backends", "core", "observability", "sessions"]
