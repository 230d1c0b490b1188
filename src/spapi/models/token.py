from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class AccessTokenRequest(BaseModel):
    grant_type: str = "refresh_token"
    refresh_token: str
    client_id: str
    client_secret: str


class AccessTokenResponse(BaseModel):
    """Reply of the Login with Amazon token endpoint.

    Every field is optional because failed grants only carry ``error`` and
    ``error_description``.
    """

    access_token: str | None = None
    refresh_token: str | None = None
    expires_in: int | None = None
    token_type: str | None = None
    error: str | None = None
    error_description: str | None = None

    model_config = ConfigDict(extra="ignore")
