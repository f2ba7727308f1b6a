"""
Core module for kvsession.

This module contains configuration and the exception taxonomy.
"""

from kvsession.core.config import Settings, get_settings
from kvsession.core.exceptions import (
    BackendError,
    ConfigurationError,
    ConfigurationWarning,
    ErrorCode,
    IntegrityError,
    SerializationError,
    SessionStoreException,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Exceptions
    "ErrorCode",
    "SessionStoreException",
    "BackendError",
    "SerializationError",
    "IntegrityError",
    "ConfigurationError",
    "ConfigurationWarning",
]
