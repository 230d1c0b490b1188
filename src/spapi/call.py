from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Generic, Protocol, TypeVar, Union
from urllib.parse import quote, urlencode

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from .constants import ACCESS_TOKEN_HEADER, Endpoint, base_url
from .errors import DecodeError, HttpError
from .models.errors import ErrorList

logger = logging.getLogger(__name__)

T = TypeVar("T")

QueryParams = Union[Mapping[str, Any], Iterable[tuple[str, Any]]]

_ERROR_LIST = TypeAdapter(ErrorList)
_ANY: TypeAdapter[Any] = TypeAdapter(Any)


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


class Transport(Protocol):
    """Sends a prepared request; the only way a :class:`Call` reaches the network."""

    def do(self, request: httpx.Request) -> httpx.Response: ...

    def get_endpoint(self) -> Endpoint | str: ...


class _CallResult:
    status_code: int

    @property
    def response_body(self) -> Any | None:
        return None

    @property
    def error_list(self) -> ErrorList | None:
        return None


@dataclass(frozen=True)
class Success(_CallResult, Generic[T]):
    """2xx response whose body decoded into the call's response type."""

    payload: T
    status_code: int = 200

    @property
    def response_body(self) -> T:
        return self.payload


@dataclass(frozen=True)
class Failure(_CallResult):
    """Error status whose body decoded into the API error envelope."""

    errors: ErrorList
    status_code: int = 500

    @property
    def error_list(self) -> ErrorList:
        return self.errors


@dataclass(frozen=True)
class Empty(_CallResult):
    """2xx response without a body."""

    status_code: int = 204


CallResponse = Union[Success[T], Failure, Empty]


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def _normalize_query(params: QueryParams) -> tuple[tuple[str, str], ...]:
    items = params.items() if isinstance(params, Mapping) else params
    pairs: list[tuple[str, str]] = []
    for key, value in items:
        # None means the parameter is absent.
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            pairs.extend((str(key), _query_value(item)) for item in value if item is not None)
        else:
            pairs.append((str(key), _query_value(value)))
    return tuple(pairs)


def _decode(adapter: TypeAdapter[Any], content: bytes, shape: str) -> Any:
    try:
        return adapter.validate_json(content)
    except ValidationError as exc:
        raise DecodeError(f"Response body is not a valid {shape}: {exc}", body=content) from exc


def _error_details(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


@dataclass(frozen=True)
class Call(Generic[T]):
    """Declarative description of one request.

    Builder methods never mutate; each returns a new call, so a partially
    configured call can be shared and specialized.
    """

    method: HttpMethod
    path: str
    response_type: Any = Any
    query: tuple[tuple[str, str], ...] = ()
    body: bytes | None = None
    restricted_data_token: str | None = None
    parse_error_list: bool = False

    def with_query_params(self, params: QueryParams | None) -> Call[T]:
        if not params:
            return self
        pairs = _normalize_query(params)
        if not pairs:
            return self
        return replace(self, query=self.query + pairs)

    def with_body(self, data: bytes | None) -> Call[T]:
        return replace(self, body=bytes(data) if data else None)

    def with_json(self, obj: Any) -> Call[T]:
        """Serialize ``obj`` (pydantic model, dataclass or JSON value) as the body."""

        if obj is None:
            return self.with_body(None)
        if isinstance(obj, BaseModel):
            return self.with_body(obj.model_dump_json(by_alias=True).encode("utf-8"))
        return self.with_body(_ANY.dump_json(obj, by_alias=True))

    def with_restricted_data_token(self, token: str | None) -> Call[T]:
        return replace(self, restricted_data_token=token or None)

    def with_parse_error_list_on_error(self, enabled: bool = True) -> Call[T]:
        return replace(self, parse_error_list=enabled)

    def url(self, endpoint: Endpoint | str) -> str:
        url = f"{base_url(endpoint)}/{self.path.lstrip('/')}"
        if self.query:
            url = f"{url}?{urlencode(self.query, quote_via=quote)}"
        return url

    def headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.body:
            headers["Content-Type"] = "application/json"
        if self.restricted_data_token:
            headers[ACCESS_TOKEN_HEADER] = self.restricted_data_token
        return headers

    def build_request(self, endpoint: Endpoint | str) -> httpx.Request:
        if self.body:
            return httpx.Request(
                self.method.value, self.url(endpoint), headers=self.headers(), content=self.body
            )
        return httpx.Request(self.method.value, self.url(endpoint), headers=self.headers())

    def decode(self, response: httpx.Response) -> CallResponse[T]:
        """Map a raw response onto :class:`Success`, :class:`Failure` or :class:`Empty`.

        Raises:
            DecodeError: a body was present but did not match the expected shape.
            HttpError: error status and error-list parsing is disabled (or the
                error response carried no body).
        """

        content = response.content
        status = response.status_code
        if response.is_success:
            if not content.strip():
                return Empty(status_code=status)
            payload = _decode(TypeAdapter(self.response_type), content, "response payload")
            return Success(payload, status_code=status)
        if self.parse_error_list and content.strip():
            return Failure(_decode(_ERROR_LIST, content, "error list"), status_code=status)
        raise HttpError(status, response.reason_phrase, details=_error_details(response))

    def execute(self, transport: Transport) -> CallResponse[T]:
        request = self.build_request(transport.get_endpoint())
        logger.debug("Executing %s %s", request.method, request.url)
        response = transport.do(request)
        logger.debug("%s %s returned %s", request.method, request.url, response.status_code)
        return self.decode(response)


def new_call(method: HttpMethod | str, path: str, response_type: Any = Any) -> Call[Any]:
    """Return a call without query, body or restricted data token."""

    if not isinstance(method, HttpMethod):
        method = HttpMethod(method.upper())
    return Call(method=method, path=path, response_type=response_type)


def execute(call: Call[T], transport: Transport) -> CallResponse[T]:
    return call.execute(transport)


__all__ = [
    "Call",
    "CallResponse",
    "Empty",
    "Failure",
    "HttpMethod",
    "QueryParams",
    "Success",
    "Transport",
    "execute",
    "new_call",
]
