from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from .auth.refresher import RefresherConfig
from .constants import DEFAULT_EXPIRY_DELTA, DEFAULT_TIMEOUT, TOKEN_URL, Endpoint
from .errors import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "SPAPI_"

_ENDPOINT_ALIASES: dict[str, Endpoint] = {
    "na": Endpoint.NORTH_AMERICA,
    "eu": Endpoint.EUROPE,
    "fe": Endpoint.FAR_EAST,
    "sandbox_na": Endpoint.SANDBOX_NORTH_AMERICA,
    "sandbox_eu": Endpoint.SANDBOX_EUROPE,
    "sandbox_fe": Endpoint.SANDBOX_FAR_EAST,
}


def resolve_endpoint(value: str | Endpoint) -> Endpoint | str:
    """Resolve a region alias, :class:`Endpoint` member name or literal URL."""

    if isinstance(value, Endpoint):
        return value
    raw = value.strip()
    if raw.startswith(("http://", "https://")):
        for member in Endpoint:
            if member.value == raw.rstrip("/"):
                return member
        return raw
    key = raw.lower().replace("-", "_")
    if key in _ENDPOINT_ALIASES:
        return _ENDPOINT_ALIASES[key]
    try:
        return Endpoint[key.upper()]
    except KeyError:
        raise ConfigError(f"Unknown endpoint '{value}'") from None


def _float_setting(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(f"{ENV_PREFIX}{name}")
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{ENV_PREFIX}{name} must be a number, got '{raw}'") from None


@dataclass
class ClientConfig:
    client_id: str
    client_secret: str
    refresh_token: str
    endpoint: Endpoint | str = Endpoint.NORTH_AMERICA
    token_url: str = TOKEN_URL
    expiry_delta: float = DEFAULT_EXPIRY_DELTA
    refresh_retry_delay: float = 0.0
    timeout: float = DEFAULT_TIMEOUT
    log: logging.Logger | None = None

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> ClientConfig:
        """Build a config from ``SPAPI_*`` variables.

        ``SPAPI_CLIENT_ID``, ``SPAPI_CLIENT_SECRET`` and ``SPAPI_REFRESH_TOKEN``
        are required; ``SPAPI_ENDPOINT``, ``SPAPI_TOKEN_URL``,
        ``SPAPI_EXPIRY_DELTA``, ``SPAPI_REFRESH_RETRY_DELAY`` and
        ``SPAPI_TIMEOUT`` are optional.
        """

        source = os.environ if env is None else env
        missing = [
            f"{ENV_PREFIX}{name}"
            for name in ("CLIENT_ID", "CLIENT_SECRET", "REFRESH_TOKEN")
            if not source.get(f"{ENV_PREFIX}{name}")
        ]
        if missing:
            raise ConfigError(f"Missing required settings: {', '.join(missing)}")

        endpoint_raw = source.get(f"{ENV_PREFIX}ENDPOINT")
        endpoint = resolve_endpoint(endpoint_raw) if endpoint_raw else Endpoint.NORTH_AMERICA
        logger.debug("Loaded spapi configuration for endpoint %s", endpoint)
        return cls(
            client_id=source[f"{ENV_PREFIX}CLIENT_ID"],
            client_secret=source[f"{ENV_PREFIX}CLIENT_SECRET"],
            refresh_token=source[f"{ENV_PREFIX}REFRESH_TOKEN"],
            endpoint=endpoint,
            token_url=source.get(f"{ENV_PREFIX}TOKEN_URL") or TOKEN_URL,
            expiry_delta=_float_setting(source, "EXPIRY_DELTA", DEFAULT_EXPIRY_DELTA),
            refresh_retry_delay=_float_setting(source, "REFRESH_RETRY_DELAY", 0.0),
            timeout=_float_setting(source, "TIMEOUT", DEFAULT_TIMEOUT),
        )

    def refresher_config(self) -> RefresherConfig:
        return RefresherConfig(
            refresh_token=self.refresh_token,
            client_id=self.client_id,
            client_secret=self.client_secret,
            logger=self.log,
            token_url=self.token_url,
            expiry_delta=self.expiry_delta,
            retry_delay=self.refresh_retry_delay,
            timeout=self.timeout,
        )
