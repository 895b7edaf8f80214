from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any

import pytest
import requests

from catalog_client.api.errors import ApiFailure, NetworkFailure
from catalog_client.core.config import ApiConfig
from catalog_client.catalog.models import Category, ListResult
from catalog_client.core.http_client import ApiClient, unwrap_meta


@dataclass
class _FakeResponse:
    status_code: int
    text: str


class _FakeSession:
    def __init__(self, response: _FakeResponse | Exception) -> None:
        self._response = response
        self.sent: list[dict[str, Any]] = []
        self.closed = False

    def request(self, method: str, url: str, **kwargs: Any) -> _FakeResponse:
        self.sent.append({"method": method, "url": url, **kwargs})
        if isinstance(self._response, Exception):
            raise self._response
        return self._response

    def close(self) -> None:
        self.closed = True


def _client(response: _FakeResponse | Exception) -> tuple[ApiClient, _FakeSession]:
    session = _FakeSession(response)
    config = ApiConfig(base_url="http://api.test/", timeout_seconds=5, http_workers=1)
    return ApiClient(config, session=session), session  # type: ignore[arg-type]


def test_request_sends_json_body_and_bearer_token() -> None:
    client, session = _client(_FakeResponse(201, '{"data": {"id": "c1"}}'))

    payload = asyncio.run(
        client.request("/categories", method="post", body={"name": "Audio"}, token="tok")
    )
    client.close()

    sent = session.sent[0]
    assert payload == {"data": {"id": "c1"}}
    assert sent["method"] == "POST"
    assert sent["url"] == "http://api.test/categories"
    assert json.loads(sent["data"]) == {"name": "Audio"}
    assert sent["headers"]["Authorization"] == "Bearer tok"
    assert sent["headers"]["Content-Type"] == "application/json"
    assert sent["headers"]["X-Request-ID"]
    assert sent["timeout"] == 5
    assert session.closed is True


def test_request_without_token_omits_authorization_and_passes_params() -> None:
    client, session = _client(_FakeResponse(200, '{"data": []}'))

    asyncio.run(client.request("/products", params=[("page", "1"), ("limit", "6")]))

    sent = session.sent[0]
    assert "Authorization" not in sent["headers"]
    assert sent["data"] is None
    assert sent["params"] == [("page", "1"), ("limit", "6")]


def test_empty_body_maps_to_none() -> None:
    client, _ = _client(_FakeResponse(204, ""))

    assert asyncio.run(client.request("/products/p1", method="DELETE", token="t")) is None


def test_error_envelope_becomes_api_failure() -> None:
    body = json.dumps({"error": {"message": "validation error", "details": "Name required"}})
    client, _ = _client(_FakeResponse(400, body))

    with pytest.raises(ApiFailure) as exc:
        asyncio.run(client.request("/categories", method="POST", body={}))

    assert exc.value.status == 400
    assert exc.value.message == "validation error"
    assert exc.value.details == "Name required"


def test_unparsable_error_body_uses_status_message() -> None:
    client, _ = _client(_FakeResponse(502, "<html>Bad Gateway</html>"))

    with pytest.raises(ApiFailure) as exc:
        asyncio.run(client.request("/products"))

    assert exc.value.message == "Request failed with status 502"


def test_transport_error_becomes_network_failure() -> None:
    client, _ = _client(requests.ConnectionError("Connection refused"))

    with pytest.raises(NetworkFailure) as exc:
        asyncio.run(client.request("/health"))

    assert "Connection refused" in exc.value.message


def test_health_unwraps_data() -> None:
    client, _ = _client(_FakeResponse(200, '{"data": {"status": "ok"}}'))

    assert asyncio.run(client.health()) == {"status": "ok"}


def test_list_result_reads_envelope_meta() -> None:
    payload = {"data": [{"id": "c1", "name": "Audio"}], "meta": {"total": 9, "page": 2, "limit": 1}}

    paged = ListResult[Category].from_envelope(payload, Category)
    bare = ListResult[Category].from_envelope({"data": payload["data"]}, Category, page=1)

    assert unwrap_meta(payload) == {"total": 9, "page": 2, "limit": 1}
    assert (paged.total, paged.page, paged.page_count) == (9, 2, 9)
    assert unwrap_meta({"data": []}) == {}
    assert (bare.total, bare.limit) == (1, 1)
