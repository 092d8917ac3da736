"""PinataClient request shapes against a mocked HTTP transport."""

from __future__ import annotations

import json

import httpx
import pytest

from pin_substrate.errors import ConfigurationError
from pin_substrate.pinata.client import PinataClient
from pin_substrate.query import Op, Predicate, equals


class PinataStub:
    """Records requests and answers like the Pinata API."""

    def __init__(self, status: int = 200) -> None:
        self.requests: list[httpx.Request] = []
        self.status = status

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status != 200:
            return httpx.Response(self.status, json={"error": "nope"})
        path = request.url.path
        if path == "/pinning/pinJSONToIPFS":
            return httpx.Response(200, json={
                "IpfsHash": "bafkreipinned", "PinSize": 87,
                "Timestamp": "2026-01-01T00:00:00.000Z", "isDuplicate": True,
            })
        if path == "/data/pinList":
            return httpx.Response(200, json={
                "count": 7,
                "rows": [{
                    "ipfs_pin_hash": "bafkreirow",
                    "size": 87,
                    "date_pinned": "2026-01-01T00:00:00.000Z",
                    "metadata": {"name": "track:abc", "keyvalues": {"sub_item": "track:abc"}},
                }],
            })
        return httpx.Response(200, text="OK")

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def _client(stub: PinataStub, **kwargs) -> PinataClient:
    kwargs.setdefault("api_key", "key123")
    kwargs.setdefault("api_secret", "secret456")
    return PinataClient(transport=httpx.MockTransport(stub), **kwargs)


# ── Test: credentials ─────────────────────────────────────────────


def test_credentials_required():
    with pytest.raises(ConfigurationError):
        PinataClient()
    with pytest.raises(ConfigurationError):
        PinataClient(api_key="key123")


async def test_key_and_secret_headers():
    stub = PinataStub()
    await _client(stub).unpin("bafyabc")

    assert stub.last.headers["pinata_api_key"] == "key123"
    assert stub.last.headers["pinata_secret_api_key"] == "secret456"


async def test_jwt_header():
    stub = PinataStub()
    await _client(stub, api_key="", api_secret="", jwt="eyJtoken").unpin("bafyabc")

    assert stub.last.headers["authorization"] == "Bearer eyJtoken"
    assert "pinata_api_key" not in stub.last.headers


# ── Test: endpoints ───────────────────────────────────────────────


async def test_pin_json():
    stub = PinataStub()

    receipt = await _client(stub).pin_json(
        {"title": "Night Drive"}, name="track:abc", keyvalues={"sub_item": "track:abc"},
    )

    request = stub.last
    assert request.method == "POST"
    assert request.url.path == "/pinning/pinJSONToIPFS"
    assert json.loads(request.content) == {
        "pinataContent": {"title": "Night Drive"},
        "pinataMetadata": {"name": "track:abc", "keyvalues": {"sub_item": "track:abc"}},
    }
    assert receipt.content_hash == "bafkreipinned"
    assert receipt.pin_size == 87
    assert receipt.is_duplicate is True


async def test_unpin():
    stub = PinataStub()
    await _client(stub).unpin("bafyabc")

    assert stub.last.method == "DELETE"
    assert stub.last.url.path == "/pinning/unpin/bafyabc"


async def test_pin_list_query_params():
    stub = PinataStub()

    result = await _client(stub).pin_list(
        hash_contains="bafk",
        keyvalues={
            "sub_client": equals("tracks.example.org"),
            "year": Predicate(1980, Op.BETWEEN, 1989),
        },
        page_limit=5000,
        page_offset=20,
    )

    params = stub.last.url.params
    assert stub.last.method == "GET"
    assert stub.last.url.path == "/data/pinList"
    assert params["status"] == "pinned"
    assert params["pageLimit"] == "1000"
    assert params["pageOffset"] == "20"
    assert params["hashContains"] == "bafk"
    assert json.loads(params["metadata[keyvalues]"]) == {
        "sub_client": {"value": "tracks.example.org", "op": "eq"},
        "year": {"value": 1980, "op": "between", "secondValue": 1989},
    }

    assert result.count == 7
    (row,) = result.rows
    assert row.content_hash == "bafkreirow"
    assert row.name == "track:abc"
    assert row.keyvalues == {"sub_item": "track:abc"}
    assert row.size == 87


async def test_pin_list_without_filters_omits_metadata():
    stub = PinataStub()
    await _client(stub).pin_list()

    params = stub.last.url.params
    assert "metadata[keyvalues]" not in params
    assert "hashContains" not in params


async def test_hash_metadata():
    stub = PinataStub()
    await _client(stub).hash_metadata("bafyabc", {"genre": "synthwave", "bpm": None})

    assert stub.last.method == "PUT"
    assert stub.last.url.path == "/pinning/hashMetadata"
    assert json.loads(stub.last.content) == {
        "ipfsPinHash": "bafyabc",
        "keyvalues": {"genre": "synthwave", "bpm": None},
    }


async def test_custom_base_url():
    stub = PinataStub()
    await _client(stub, base_url="https://pinata.internal/").unpin("bafyabc")
    assert str(stub.last.url) == "https://pinata.internal/pinning/unpin/bafyabc"


async def test_http_errors_propagate():
    stub = PinataStub(status=401)

    with pytest.raises(httpx.HTTPStatusError) as exc_info:
        await _client(stub).pin_json({"a": 1})
    assert exc_info.value.response.status_code == 401
