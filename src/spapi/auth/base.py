from __future__ import annotations
from abc import ABC, abstractmethod

class TokenProvider(ABC):
    @abstractmethod
    def get_token(self) -> str:
        """Return the access token to send as ``Authorization: Bearer``."""

class StaticTokenProvider(TokenProvider):
    """Fixed token, for sandbox calls and tests."""

    def __init__(self, token: str) -> None:
        self._token = token
    def get_token(self) -> str:
        return self._token
