"""PinningBackend protocol - the pin service a strategy talks to."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from pin_substrate.models.records import PinList, PinReceipt
from pin_substrate.query import Predicate


class PinningBackend(Protocol):
    """Append-mostly content store with per-pin key/value metadata."""

    async def pin_json(
        self,
        content: Mapping[str, Any],
        name: str | None = None,
        keyvalues: Mapping[str, Any] | None = None,
    ) -> PinReceipt:
        """Pin a JSON document with metadata. Returns its content hash."""
        ...

    async def unpin(self, cid: str) -> None:
        """Remove a pin."""
        ...

    async def pin_list(
        self,
        hash_contains: str | None = None,
        keyvalues: Mapping[str, Predicate] | None = None,
        name: str | None = None,
        page_limit: int = 10,
        page_offset: int = 0,
        status: str = "pinned",
    ) -> PinList:
        """List pins matching every predicate, newest first."""
        ...

    async def hash_metadata(
        self,
        cid: str,
        keyvalues: Mapping[str, Any],
        name: str | None = None,
    ) -> None:
        """Patch pin metadata. Supplied keys are merged; ``None`` values delete keys."""
        ...

    async def close(self) -> None:
        ...
