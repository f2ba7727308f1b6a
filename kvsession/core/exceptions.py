"""
Custom exceptions for kvsession.

This module provides the error taxonomy of the session store. All raised
exceptions inherit from SessionStoreException and include an error code for
consistent handling and logging by the host framework.

Taxonomy:
- BackendError: the key-value client failed (connectivity, protocol)
- SerializationError: stored data is not well-formed session data
- IntegrityError: an encrypted envelope failed verification or decryption
- ConfigurationError: the store cannot be constructed as configured
- ConfigurationWarning: non-fatal misconfiguration, logged and warned

A missing session is not an error: fetch() returns None.
"""

from enum import Enum
from typing import Any


# =============================================================================
# Error Codes Enum
# =============================================================================


class ErrorCode(str, Enum):
    """
    Error codes for kvsession exceptions.

    These codes provide a consistent way to identify error types
    in the host framework and in logging.
    """

    SESSION_STORE_ERROR = "SESSION_STORE_ERROR"
    BACKEND_ERROR = "BACKEND_ERROR"
    SERIALIZATION_ERROR = "SERIALIZATION_ERROR"
    INTEGRITY_ERROR = "INTEGRITY_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


# =============================================================================
# Base Exception
# =============================================================================


class SessionStoreException(Exception):
    """
    Base exception for all kvsession errors.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code from ErrorCode enum.
    """

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.SESSION_STORE_ERROR,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            error_code: Machine-readable error code.
            **kwargs: Additional attributes to set on the exception.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code

        for key, value in kwargs.items():
            setattr(self, key, value)


# =============================================================================
# BackendError
# =============================================================================


class BackendError(SessionStoreException):
    """
    Exception for key-value backend failures.

    Raised when the backend client reports an error: connection refused,
    timeout, protocol or command errors. The original client exception is
    chained as __cause__. Never retried by the store.

    Attributes:
        command: Backend command that failed (GET, SET, SETEX, DEL, EXPIRE).
        key: Storage key the command targeted (if any).
    """

    def __init__(
        self,
        message: str,
        command: str | None = None,
        key: str | None = None,
        error_code: str = ErrorCode.BACKEND_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.command = command
        self.key = key


# =============================================================================
# SerializationError
# =============================================================================


class SerializationError(SessionStoreException):
    """
    Exception for malformed session payloads.

    Raised when a stored value is not well-formed serialized session data,
    or when a record cannot be serialized. A session that fails to decode
    is unreadable, never absent.

    Attributes:
        session_id: ID of the affected session (if known).
    """

    def __init__(
        self,
        message: str,
        session_id: str | None = None,
        error_code: str = ErrorCode.SERIALIZATION_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.session_id = session_id


# =============================================================================
# IntegrityError
# =============================================================================


class IntegrityError(SessionStoreException):
    """
    Exception for encrypted envelopes that fail verification.

    Raised when the MAC recomputed over the ciphertext does not match the
    stored MAC (tampered data or wrong secret), or when decryption of a
    verified ciphertext fails. No fallback decryption is attempted.
    """

    def __init__(
        self,
        message: str = "Encrypted session was tampered with or the key is wrong",
        error_code: str = ErrorCode.INTEGRITY_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)


# =============================================================================
# ConfigurationError / ConfigurationWarning
# =============================================================================


class ConfigurationError(SessionStoreException):
    """
    Exception for configuration the store cannot run with.

    Attributes:
        option: Name of the offending option.
    """

    def __init__(
        self,
        message: str,
        option: str | None = None,
        error_code: str = ErrorCode.CONFIGURATION_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.option = option


class ConfigurationWarning(UserWarning):
    """Non-fatal misconfiguration detected during setup."""
