"""Hosts, header names and timing defaults shared by the spapi modules."""

from __future__ import annotations

from enum import Enum

__all__ = [
    "ACCESS_TOKEN_HEADER",
    "AUTHORIZATION_HEADER",
    "DEFAULT_EXPIRY_DELTA",
    "DEFAULT_TIMEOUT",
    "Endpoint",
    "TOKEN_URL",
    "base_url",
]

TOKEN_URL = "https://api.amazon.com/auth/o2/token"

# Restricted data tokens travel here; the regular bearer credential uses Authorization.
ACCESS_TOKEN_HEADER = "x-amz-access-token"
AUTHORIZATION_HEADER = "Authorization"

# Seconds before the real expiry at which a token is renewed.
DEFAULT_EXPIRY_DELTA = 60.0
DEFAULT_TIMEOUT = 60.0


class Endpoint(str, Enum):
    """Regional Selling Partner API hosts."""

    NORTH_AMERICA = "https://sellingpartnerapi-na.amazon.com"
    EUROPE = "https://sellingpartnerapi-eu.amazon.com"
    FAR_EAST = "https://sellingpartnerapi-fe.amazon.com"
    SANDBOX_NORTH_AMERICA = "https://sandbox.sellingpartnerapi-na.amazon.com"
    SANDBOX_EUROPE = "https://sandbox.sellingpartnerapi-eu.amazon.com"
    SANDBOX_FAR_EAST = "https://sandbox.sellingpartnerapi-fe.amazon.com"


def base_url(endpoint: Endpoint | str) -> str:
    """Return the base URL for ``endpoint`` without a trailing slash."""

    raw = endpoint.value if isinstance(endpoint, Endpoint) else str(endpoint)
    return raw.rstrip("/")
