from __future__ import annotations

import logging
from collections.abc import Callable
from types import TracebackType

import httpx

from .constants import AUTHORIZATION_HEADER, DEFAULT_TIMEOUT, Endpoint
from .errors import TransportError

logger = logging.getLogger(__name__)


class HttpxTransport:
    """httpx-backed :class:`~spapi.call.Transport` that injects the bearer credential.

    The token getter is consulted on every request, so a refreshed token is
    picked up without rebuilding the transport.
    """

    def __init__(
        self,
        endpoint: Endpoint | str,
        token_getter: Callable[[], str] | None = None,
        default_headers: dict[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.Client | None = None,
    ) -> None:
        self.endpoint = endpoint
        self._token_getter = token_getter
        self._default_headers = default_headers or {}
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)

    def get_endpoint(self) -> Endpoint | str:
        return self.endpoint

    def _auth_header(self) -> dict[str, str]:
        if not self._token_getter:
            return {}
        token = self._token_getter()
        return {AUTHORIZATION_HEADER: f"Bearer {token}"} if token else {}

    def do(self, request: httpx.Request) -> httpx.Response:
        for name, value in {**self._default_headers, **self._auth_header()}.items():
            request.headers.setdefault(name, value)
        try:
            return self._client.send(request)
        except httpx.TransportError as e:
            logger.debug("Transport failure for %s %s: %s", request.method, request.url, e)
            raise TransportError(str(e)) from e

    def close(self) -> None:
        """Close the underlying :class:`httpx.Client` unless it was passed in."""

        if self._owns_client:
            self._client.close()

    def __enter__(self) -> HttpxTransport:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
