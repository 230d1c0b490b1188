from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx

from .auth.base import TokenProvider
from .auth.refresher import CredentialRefresher
from .call import Call, CallResponse
from .config import ClientConfig
from .http_client import HttpxTransport

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SellingPartnerClient:
    """Executes calls against one regional endpoint with a self-renewing token.

    Unless a ``token_provider`` is supplied, construction fetches the first
    access token and starts the background refresher; :meth:`close` stops it.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        token_provider: TokenProvider | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.config = config
        self.refresher: CredentialRefresher | None = None
        if token_provider is None:
            self.refresher = CredentialRefresher(config.refresher_config())
            self.refresher.run_in_background()
            token_provider = self.refresher
        self.token_provider = token_provider
        self.transport = HttpxTransport(
            config.endpoint,
            token_getter=token_provider.get_token,
            timeout=config.timeout,
            client=http_client,
        )

    @classmethod
    def from_env(cls, **kwargs: Any) -> SellingPartnerClient:
        return cls(ClientConfig.from_env(), **kwargs)

    def execute(self, call: Call[T]) -> CallResponse[T]:
        return call.execute(self.transport)

    def close(self) -> None:
        """Stop token renewal and close the HTTP session."""

        logger.debug("Closing Selling Partner client for %s", self.config.endpoint)
        if self.refresher is not None:
            self.refresher.stop()
        self.transport.close()

    def __enter__(self) -> SellingPartnerClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: Any,
    ) -> None:
        self.close()
