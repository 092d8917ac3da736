"""HTTP gateway resolution - fetches pinned JSON through a URL template."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from pin_substrate.errors import ValidationError

log = logging.getLogger(__name__)

IPFS_SCHEME = "ipfs://"


def clean_cid(cid: str) -> str:
    """Strip an optional ``ipfs://`` scheme prefix."""
    if cid.startswith(IPFS_SCHEME):
        return cid[len(IPFS_SCHEME):]
    return cid


def gateway_url(template: str | None, cid: str) -> str:
    """Substitute the cleaned CID into a ``{cid}`` URL template."""
    if not template:
        raise ValidationError("Gateway URL template is not configured")
    return template.replace("{cid}", clean_cid(cid))


class HttpGateway:
    """Resolves CIDs over HTTP(S).

    Non-2xx responses raise ``httpx.HTTPStatusError``; nothing is retried.
    """

    def __init__(
        self,
        timeout: int = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport

    async def fetch_json(self, cid: str, template: str | None) -> Any:
        url = gateway_url(template, cid)
        log.debug("Resolving %s via %s", cid, url)
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout, connect=10),
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            resp = await client.get(url)
            resp.raise_for_status()
            return resp.json()
