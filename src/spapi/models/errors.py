from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Error(BaseModel):
    """Single entry of the API's error envelope."""

    code: str
    message: str
    details: str | None = None

    model_config = ConfigDict(extra="allow")


class ErrorList(BaseModel):
    """Structured failure payload: ``{"errors": [...]}``.

    ``errors`` is required so that other JSON bodies fail to decode instead of
    becoming an empty list.
    """

    errors: list[Error]
