"""Re-export typed models for the spapi SDK."""

from __future__ import annotations

from .errors import Error, ErrorList
from .token import AccessTokenRequest, AccessTokenResponse

__all__ = [
    "AccessTokenRequest",
    "AccessTokenResponse",
    "Error",
    "ErrorList",
]
