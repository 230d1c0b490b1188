"""Background renewal of Login with Amazon access tokens.

The current token and its expiry live in one immutable
:class:`AccessTokenState`. The refresh thread publishes a new state with a
single attribute assignment, so readers on other threads always see a token
together with the expiry it was issued with.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from types import TracebackType

import httpx
from pydantic import ValidationError

from ..constants import DEFAULT_EXPIRY_DELTA, DEFAULT_TIMEOUT, TOKEN_URL
from ..errors import TokenFetchError
from ..models.token import AccessTokenRequest, AccessTokenResponse
from ..utils.scheduler import start_periodic
from .base import TokenProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessTokenState:
    token: str
    expires_at: int  # unix seconds, UTC

    def seconds_until_expiry(self, now: float | None = None) -> float:
        current = time.time() if now is None else now
        return self.expires_at - current


class RefresherState(str, Enum):
    ACTIVE = "active"
    STOPPED = "stopped"


@dataclass
class RefresherConfig:
    refresh_token: str
    client_id: str
    client_secret: str
    logger: logging.Logger | None = None
    token_url: str = TOKEN_URL
    expiry_delta: float = DEFAULT_EXPIRY_DELTA
    # 0 keeps retrying a failed refresh on the very next wake.
    retry_delay: float = 0.0
    timeout: float = DEFAULT_TIMEOUT


class CredentialRefresher(TokenProvider):
    """Owns the access token and renews it ``expiry_delta`` seconds before it expires.

    Construction blocks on the first token fetch and raises
    :class:`TokenFetchError` when it fails. Call :meth:`run_in_background`
    once to start automatic renewal and :meth:`stop` to end it; the last
    token stays readable after stopping.
    """

    def __init__(
        self,
        config: RefresherConfig,
        *,
        http_client: httpx.Client | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        self._log = config.logger or logger
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=config.timeout)
        self._clock = clock
        self._cancel = threading.Event()
        self._thread: threading.Thread | None = None
        self._retry_at = 0.0
        self._token_state: AccessTokenState
        try:
            self.fetch_new_token()
        except TokenFetchError as exc:
            self._close_client()
            raise TokenFetchError(
                f"access token could not be fetched: {exc}",
                error=exc.error,
                error_description=exc.error_description,
            ) from exc
        self._state = RefresherState.ACTIVE

    @property
    def state(self) -> RefresherState:
        return self._state

    @property
    def access_token_state(self) -> AccessTokenState:
        return self._token_state

    def get_access_token(self) -> str:
        return self.access_token_state.token

    def get_token(self) -> str:
        return self.get_access_token()

    def seconds_until_refresh(self) -> float:
        now = self._clock()
        due = self.access_token_state.expires_at - self.config.expiry_delta - now
        return max(due, self._retry_at - now)

    def fetch_new_token(self) -> AccessTokenState:
        """Exchange the refresh token for a new access token and publish it.

        The previous state is left untouched when the endpoint does not
        return an access token.
        """

        grant = AccessTokenRequest(
            refresh_token=self.config.refresh_token,
            client_id=self.config.client_id,
            client_secret=self.config.client_secret,
        )
        try:
            resp = self._http.post(self.config.token_url, json=grant.model_dump())
        except httpx.HTTPError as exc:
            raise TokenFetchError(f"Token request failed: {exc}") from exc

        try:
            parsed = AccessTokenResponse.model_validate_json(resp.content)
        except ValidationError as exc:
            raise TokenFetchError(f"RefreshToken response parse failed. Body: {resp.text}") from exc

        if not parsed.access_token:
            detail = parsed.error_description or parsed.error or f"HTTP {resp.status_code}"
            raise TokenFetchError(
                f"Token endpoint returned no access token: {detail}",
                error=parsed.error,
                error_description=parsed.error_description,
            )
        if not parsed.expires_in or parsed.expires_in <= 0:
            raise TokenFetchError(
                f"Token endpoint returned no usable expires_in: {parsed.expires_in!r}"
            )

        state = AccessTokenState(
            token=parsed.access_token,
            expires_at=int(self._clock() + parsed.expires_in),
        )
        self._token_state = state
        self._log.debug("Access token refreshed; valid for %s seconds", parsed.expires_in)
        return state

    def run_in_background(self) -> None:
        if self._state is RefresherState.STOPPED:
            raise RuntimeError("Credential refresher has been stopped")
        if self._thread is not None:
            raise RuntimeError("Credential refresher is already running")
        self._thread = start_periodic(
            self._refresh,
            self.seconds_until_refresh,
            self._cancel,
            self._on_refresh_error,
            name="spapi-token-refresher",
            on_exit=self._close_client,
        )
        self._log.info("Started background access token refresh")

    def stop(self, timeout: float | None = None) -> None:
        """Signal the refresh loop to exit and wait up to ``timeout`` seconds for it.

        A fetch already in flight completes first. The owned HTTP client is
        closed by the loop thread as it exits.
        """

        if self._state is RefresherState.STOPPED:
            return
        self._state = RefresherState.STOPPED
        self._cancel.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        if thread is None:
            self._close_client()
        self._log.info("Received signal to stop token updates.")

    def _refresh(self) -> None:
        self.fetch_new_token()
        self._retry_at = 0.0

    def _on_refresh_error(self, exc: Exception) -> None:
        self._retry_at = self._clock() + self.config.retry_delay
        self._log.error("Access token refresh failed: %s", exc)

    def _close_client(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> CredentialRefresher:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()


__all__ = [
    "AccessTokenState",
    "CredentialRefresher",
    "RefresherConfig",
    "RefresherState",
]
