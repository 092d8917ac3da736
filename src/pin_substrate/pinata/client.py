"""Pinata pinning client - pins, lists and patches pins via the Pinata HTTP API."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

import httpx

from pin_substrate.errors import ConfigurationError
from pin_substrate.models.records import PinList, PinReceipt, PinRow
from pin_substrate.query import Predicate, to_wire

log = logging.getLogger(__name__)

MAX_PAGE_LIMIT = 1000


class PinataClient:
    """Implements the PinningBackend protocol against api.pinata.cloud.

    Endpoints used:
    - pinning/pinJSONToIPFS: pin a JSON document with metadata
    - pinning/unpin/{cid}: remove a pin
    - data/pinList: metadata-filtered, paginated pin listing
    - pinning/hashMetadata: patch name/keyvalues of an existing pin
    """

    def __init__(
        self,
        api_key: str = "",
        api_secret: str = "",
        jwt: str = "",
        base_url: str = "https://api.pinata.cloud",
        timeout: int = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if jwt:
            self._headers = {"Authorization": f"Bearer {jwt}"}
        elif api_key and api_secret:
            self._headers = {
                "pinata_api_key": api_key,
                "pinata_secret_api_key": api_secret,
            }
        else:
            raise ConfigurationError("Pinata key and secret are required")
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._headers,
            timeout=httpx.Timeout(self._timeout, connect=10),
            transport=self._transport,
        )

    async def pin_json(
        self,
        content: Mapping[str, Any],
        name: str | None = None,
        keyvalues: Mapping[str, Any] | None = None,
    ) -> PinReceipt:
        metadata: dict[str, Any] = {"keyvalues": dict(keyvalues or {})}
        if name:
            metadata["name"] = name
        async with self._client() as client:
            resp = await client.post(
                "/pinning/pinJSONToIPFS",
                json={"pinataContent": dict(content), "pinataMetadata": metadata},
            )
            resp.raise_for_status()
            data = resp.json()
        log.debug("Pinned %s (%s)", data.get("IpfsHash"), name)
        return PinReceipt(
            content_hash=data["IpfsHash"],
            pin_size=int(data.get("PinSize") or 0),
            timestamp=data.get("Timestamp"),
            is_duplicate=bool(data.get("isDuplicate", False)),
        )

    async def unpin(self, cid: str) -> None:
        async with self._client() as client:
            resp = await client.delete(f"/pinning/unpin/{cid}")
            resp.raise_for_status()
        log.debug("Unpinned %s", cid)

    async def pin_list(
        self,
        hash_contains: str | None = None,
        keyvalues: Mapping[str, Predicate] | None = None,
        name: str | None = None,
        page_limit: int = 10,
        page_offset: int = 0,
        status: str = "pinned",
    ) -> PinList:
        params: dict[str, Any] = {
            "status": status,
            "pageLimit": min(page_limit, MAX_PAGE_LIMIT),
            "pageOffset": page_offset,
        }
        if hash_contains:
            params["hashContains"] = hash_contains
        if name:
            params["metadata[name]"] = name
        if keyvalues:
            params["metadata[keyvalues]"] = json.dumps(to_wire(keyvalues))

        async with self._client() as client:
            resp = await client.get("/data/pinList", params=params)
            resp.raise_for_status()
            data = resp.json()

        rows = [_parse_row(row) for row in data.get("rows") or []]
        return PinList(count=int(data.get("count") or len(rows)), rows=rows)

    async def hash_metadata(
        self,
        cid: str,
        keyvalues: Mapping[str, Any],
        name: str | None = None,
    ) -> None:
        body: dict[str, Any] = {"ipfsPinHash": cid, "keyvalues": dict(keyvalues)}
        if name:
            body["name"] = name
        async with self._client() as client:
            resp = await client.put("/pinning/hashMetadata", json=body)
            resp.raise_for_status()

    async def close(self) -> None:
        """No pooled connections are held between calls."""


def _parse_row(row: Mapping[str, Any]) -> PinRow:
    metadata = row.get("metadata") or {}
    return PinRow(
        content_hash=row["ipfs_pin_hash"],
        name=metadata.get("name"),
        keyvalues=dict(metadata.get("keyvalues") or {}),
        size=int(row.get("size") or 0),
        date_pinned=row.get("date_pinned"),
    )
