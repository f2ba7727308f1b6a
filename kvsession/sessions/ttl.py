"""
TTL Policy

Computes the expiration, in whole seconds, applied to a session record.

Priority:
1. Configured override (seconds), regardless of the cookie
2. Cookie maxAge (milliseconds), truncated toward zero
3. One day
"""

import math
from collections.abc import Mapping
from typing import Any, Optional

ONE_DAY_SECONDS = 86400

# Expiry commands reject zero and treat negatives as immediate deletion
MIN_TTL_SECONDS = 1


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def effective_ttl(
    override_seconds: Optional[int] = None,
    cookie_max_age_ms: Any = None,
) -> int:
    """
    Compute the effective TTL in seconds.

    Args:
        override_seconds: Configured TTL override; wins when set.
        cookie_max_age_ms: The session cookie's maxAge in milliseconds.
            Anything that is not an int or float (None, strings, bools)
            counts as absent.

    Returns:
        A positive number of seconds.

    Example:
        >>> effective_ttl(None, 2500)
        2
    """
    if override_seconds:
        return override_seconds

    if _is_number(cookie_max_age_ms) and math.isfinite(cookie_max_age_ms):
        return max(int(cookie_max_age_ms / 1000), MIN_TTL_SECONDS)

    return ONE_DAY_SECONDS


def cookie_max_age(record: Mapping[str, Any]) -> Any:
    """Return record["cookie"]["maxAge"], or None when any level is missing."""
    if not isinstance(record, Mapping):
        return None
    cookie = record.get("cookie")
    if not isinstance(cookie, Mapping):
        return None
    return cookie.get("maxAge")


def ttl_for_record(
    override_seconds: Optional[int], record: Mapping[str, Any]
) -> int:
    """effective_ttl() for a session record's cookie."""
    return effective_ttl(override_seconds, cookie_max_age(record))
