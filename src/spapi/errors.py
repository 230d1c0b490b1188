from __future__ import annotations
from typing import Any, Optional

class SpapiError(Exception):
    """Base error for spapi."""

class ConfigError(SpapiError):
    pass

class AuthError(SpapiError):
    pass

class TokenFetchError(AuthError):
    def __init__(
        self,
        message: str,
        *,
        error: Optional[str] = None,
        error_description: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.error = error
        self.error_description = error_description

class HttpError(SpapiError):
    def __init__(self, status_code: int, message: str, *, details: Optional[Any] = None) -> None:
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.details = details

class TransportError(HttpError):
    """Network-level failure before any HTTP status was received."""

    def __init__(self, message: str) -> None:
        super().__init__(0, f"Transport error: {message}")

class DecodeError(SpapiError):
    """Response body could not be decoded into the expected shape."""

    def __init__(self, message: str, *, body: bytes = b"") -> None:
        super().__init__(message)
        self.body = body
