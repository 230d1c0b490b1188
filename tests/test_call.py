from __future__ import annotations

import json

import httpx
import pytest
from pydantic import BaseModel

from spapi.call import Empty, Failure, HttpMethod, Success, execute, new_call
from spapi.constants import ACCESS_TOKEN_HEADER, Endpoint
from spapi.errors import DecodeError, HttpError, TransportError
from spapi.models.errors import Error, ErrorList

NA = "https://sellingpartnerapi-na.amazon.com"


class DummyBody(BaseModel):
    message: str
    number: float


class RecordingTransport:
    def __init__(
        self,
        response: httpx.Response | Exception,
        endpoint: Endpoint | str = Endpoint.NORTH_AMERICA,
    ) -> None:
        self._response = response
        self._endpoint = endpoint
        self.requests: list[httpx.Request] = []

    def get_endpoint(self) -> Endpoint | str:
        return self._endpoint

    def do(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self._response, Exception):
            raise self._response
        return self._response


def ok_response() -> httpx.Response:
    return httpx.Response(200, json={"message": "All ok", "number": 4711.0815})


def test_simple_get() -> None:
    transport = RecordingTransport(ok_response())

    got = new_call(HttpMethod.GET, "/message", DummyBody).execute(transport)

    request = transport.requests[0]
    assert str(request.url) == f"{NA}/message"
    assert request.method == "GET"
    assert ACCESS_TOKEN_HEADER not in request.headers
    assert "Content-Type" not in request.headers
    assert request.content == b""
    assert isinstance(got, Success)
    assert got.response_body == DummyBody(message="All ok", number=4711.0815)
    assert got.error_list is None


def test_get_with_restricted_data_token() -> None:
    transport = RecordingTransport(ok_response())

    call = new_call(HttpMethod.GET, "/message", DummyBody).with_restricted_data_token("ABCDED")
    call.execute(transport)

    assert transport.requests[0].headers[ACCESS_TOKEN_HEADER] == "ABCDED"


def test_empty_restricted_data_token_leaves_header_absent() -> None:
    transport = RecordingTransport(ok_response())

    new_call("GET", "/message", DummyBody).with_restricted_data_token("").execute(transport)

    assert ACCESS_TOKEN_HEADER not in transport.requests[0].headers


def test_post_body_with_query_param() -> None:
    transport = RecordingTransport(ok_response())
    body = DummyBody(message="Hello there...", number=47.0).model_dump_json().encode()

    got = (
        new_call(HttpMethod.POST, "/message", DummyBody)
        .with_query_params({"final": "true"})
        .with_body(body)
        .execute(transport)
    )

    request = transport.requests[0]
    assert str(request.url) == f"{NA}/message?final=true"
    assert request.method == "POST"
    assert request.headers["Content-Type"] == "application/json"
    assert request.content == body
    assert got.response_body == DummyBody(message="All ok", number=4711.0815)


def test_delete_without_body_returns_empty() -> None:
    transport = RecordingTransport(httpx.Response(200))

    got = new_call(HttpMethod.DELETE, "/message/4711", DummyBody).execute(transport)

    request = transport.requests[0]
    assert str(request.url) == f"{NA}/message/4711"
    assert request.method == "DELETE"
    assert request.content == b""
    assert isinstance(got, Empty)
    assert got.response_body is None
    assert got.error_list is None


def test_error_list_is_parsed_when_enabled() -> None:
    transport = RecordingTransport(
        httpx.Response(500, json={"errors": [{"code": "4711", "message": "Oooops"}]})
    )

    got = (
        new_call(HttpMethod.DELETE, "/message/4711", DummyBody)
        .with_parse_error_list_on_error(True)
        .execute(transport)
    )

    assert isinstance(got, Failure)
    assert got.status_code == 500
    assert got.error_list.errors[0] == Error(code="4711", message="Oooops")
    assert got.error_list.errors[0].details is None
    assert got.response_body is None


def test_error_without_parsing_raises_http_error() -> None:
    transport = RecordingTransport(httpx.Response(404, json={"errors": []}))

    with pytest.raises(HttpError) as exc_info:
        new_call(HttpMethod.GET, "/missing").execute(transport)

    assert exc_info.value.status_code == 404
    assert exc_info.value.details == {"errors": []}


def test_error_with_empty_body_raises_even_when_parsing() -> None:
    transport = RecordingTransport(httpx.Response(503))

    call = new_call(HttpMethod.GET, "/busy").with_parse_error_list_on_error()
    with pytest.raises(HttpError) as exc_info:
        call.execute(transport)

    assert exc_info.value.status_code == 503


@pytest.mark.parametrize("method", list(HttpMethod))
def test_wire_method_matches_call(method: HttpMethod) -> None:
    transport = RecordingTransport(httpx.Response(204))

    got = new_call(method, "/things").execute(transport)

    assert transport.requests[0].method == method.value
    assert isinstance(got, Empty)
    assert got.status_code == 204


def test_method_strings_are_normalised() -> None:
    assert new_call("patch", "/x").method is HttpMethod.PATCH
    with pytest.raises(ValueError):
        new_call("TRACE", "/x")


def test_query_params_keep_insertion_order_and_encode() -> None:
    call = new_call(HttpMethod.GET, "/reports/2021-06-30/reports").with_query_params(
        [
            ("reportTypes", "GET_FLAT_FILE_OPEN_LISTINGS_DATA"),
            ("marketplaceIds", "ATVPDKIKX0DER,A2EUQ1WTGCTBG2"),
            ("nextToken", "a b/c"),
        ]
    )

    assert call.url(Endpoint.EUROPE) == (
        "https://sellingpartnerapi-eu.amazon.com/reports/2021-06-30/reports"
        "?reportTypes=GET_FLAT_FILE_OPEN_LISTINGS_DATA"
        "&marketplaceIds=ATVPDKIKX0DER%2CA2EUQ1WTGCTBG2"
        "&nextToken=a%20b%2Fc"
    )


def test_query_multimap_values_repeat_keys() -> None:
    call = (
        new_call(HttpMethod.GET, "/items")
        .with_query_params({"status": ["DONE", "FATAL"], "includeDetails": True})
        .with_query_params({"pageSize": 10})
    )

    assert call.url(NA) == f"{NA}/items?status=DONE&status=FATAL&includeDetails=true&pageSize=10"


def test_none_query_values_are_omitted() -> None:
    call = new_call(HttpMethod.GET, "/a").with_query_params(
        {"nextToken": None, "x": "1", "status": ["DONE", None]}
    )

    assert call.url("https://x.test") == "https://x.test/a?x=1&status=DONE"


def test_only_none_query_values_add_no_question_mark() -> None:
    call = new_call(HttpMethod.GET, "/a").with_query_params({"nextToken": None})

    assert call.query == ()
    assert call.url("https://x.test") == "https://x.test/a"


@pytest.mark.parametrize("params", [None, {}, []])
def test_empty_query_params_add_no_question_mark(params) -> None:
    call = new_call(HttpMethod.GET, "/message").with_query_params(params)

    assert call.query == ()
    assert "?" not in call.url(Endpoint.FAR_EAST)


def test_string_endpoint_is_joined_without_double_slash() -> None:
    transport = RecordingTransport(httpx.Response(204), endpoint="https://api.example.test/")

    new_call(HttpMethod.GET, "message").execute(transport)

    assert str(transport.requests[0].url) == "https://api.example.test/message"


def test_builders_do_not_mutate_original() -> None:
    base = new_call(HttpMethod.POST, "/message")

    configured = (
        base.with_query_params({"final": "true"})
        .with_body(b"{}")
        .with_restricted_data_token("rdt")
        .with_parse_error_list_on_error()
    )

    assert base.query == ()
    assert base.body is None
    assert base.restricted_data_token is None
    assert base.parse_error_list is False
    assert configured.body == b"{}"
    assert configured.parse_error_list is True


def test_empty_body_means_no_body() -> None:
    transport = RecordingTransport(httpx.Response(204))

    new_call(HttpMethod.POST, "/message").with_body(b"").execute(transport)

    request = transport.requests[0]
    assert request.content == b""
    assert "Content-Type" not in request.headers


def test_with_json_serializes_models_and_plain_values() -> None:
    model = DummyBody(message="Hello", number=1.5)

    from_model = new_call(HttpMethod.POST, "/message").with_json(model)
    from_dict = new_call(HttpMethod.POST, "/message").with_json({"reportType": "X", "ids": [1, 2]})

    assert from_model.body == model.model_dump_json().encode()
    assert json.loads(from_dict.body or b"") == {"reportType": "X", "ids": [1, 2]}


def test_list_response_type() -> None:
    transport = RecordingTransport(
        httpx.Response(200, json=[{"message": "a", "number": 1}, {"message": "b", "number": 2}])
    )

    got = new_call(HttpMethod.GET, "/messages", list[DummyBody]).execute(transport)

    assert [item.message for item in got.response_body] == ["a", "b"]


def test_untyped_call_returns_raw_json() -> None:
    transport = RecordingTransport(httpx.Response(200, json={"payload": {"reportId": "42"}}))

    got = execute(new_call(HttpMethod.GET, "/reports/42"), transport)

    assert got.response_body == {"payload": {"reportId": "42"}}


def test_malformed_success_body_is_decode_error() -> None:
    transport = RecordingTransport(httpx.Response(200, content=b"{not json"))

    with pytest.raises(DecodeError) as exc_info:
        new_call(HttpMethod.GET, "/message", DummyBody).execute(transport)

    assert exc_info.value.body == b"{not json"


def test_mismatched_success_body_is_decode_error() -> None:
    transport = RecordingTransport(httpx.Response(200, json={"message": "no number"}))

    with pytest.raises(DecodeError):
        new_call(HttpMethod.GET, "/message", DummyBody).execute(transport)


def test_malformed_error_list_is_decode_error() -> None:
    transport = RecordingTransport(httpx.Response(400, text="<html>bad gateway</html>"))

    call = new_call(HttpMethod.GET, "/message").with_parse_error_list_on_error()
    with pytest.raises(DecodeError):
        call.execute(transport)


def test_error_body_without_errors_key_is_decode_error() -> None:
    body = b'{"message": "Access to requested resource is denied."}'
    transport = RecordingTransport(httpx.Response(403, content=body))

    call = new_call(HttpMethod.GET, "/orders/v0/orders").with_parse_error_list_on_error()
    with pytest.raises(DecodeError) as exc_info:
        call.execute(transport)

    assert exc_info.value.body == body


def test_empty_errors_array_is_still_a_failure() -> None:
    transport = RecordingTransport(httpx.Response(400, json={"errors": []}))

    got = new_call(HttpMethod.GET, "/x").with_parse_error_list_on_error().execute(transport)

    assert isinstance(got, Failure)
    assert got.error_list == ErrorList(errors=[])


def test_transport_error_propagates_unmodified() -> None:
    failure = TransportError("connection reset")
    transport = RecordingTransport(failure)

    with pytest.raises(TransportError) as exc_info:
        new_call(HttpMethod.GET, "/message").execute(transport)

    assert exc_info.value is failure


def test_error_list_round_trips_from_model() -> None:
    envelope = ErrorList(errors=[Error(code="InvalidInput", message="bad", details="marketplaceIds")])
    transport = RecordingTransport(httpx.Response(400, content=envelope.model_dump_json().encode()))

    got = new_call(HttpMethod.GET, "/x").with_parse_error_list_on_error().execute(transport)

    assert got.error_list == envelope
