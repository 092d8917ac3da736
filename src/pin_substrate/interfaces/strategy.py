"""StorageStrategy protocol - the contract every backend adapter satisfies."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Protocol

from pin_substrate.models.records import DataRecord, Item, PinList, PinReceipt, PinRow

if TYPE_CHECKING:
    from pin_substrate.substrate import Substrate


class StorageStrategy(Protocol):
    """Item/data operations over a content-addressed pin store.

    Not-found outcomes are ``None``/``False``/``[]``; validation problems raise
    ``ValidationError``; backend failures propagate unwrapped.
    """

    def bind(self, substrate: Substrate) -> None:
        """Attach the facade providing client id, id generation and gateways."""
        ...

    async def close(self) -> None:
        """Release backend resources."""
        ...

    # ── Items ──────────────────────────────────────────────

    async def create_item(self, type: str = "generic", owner: str | None = None) -> str:
        """Pin a new root record and return its content hash."""
        ...

    async def get_item(
        self, item_hash: str, type: str | None = None, resolve: bool = True
    ) -> Item | PinRow | None:
        """Look up one item of this client by content hash."""
        ...

    async def get_items(
        self,
        type: str,
        page: int = 1,
        limit: int = 10,
        keyvalues: Mapping[str, Any] | None = None,
        owner: str | None = None,
    ) -> list[Item]:
        """Page through this client's items of ``type``."""
        ...

    async def remove_item(
        self, item_hash: str, data_types: Sequence[str] | None = None
    ) -> bool:
        """Unpin an item, then its data records (all, or only ``data_types``)."""
        ...

    async def update_item_metadata(
        self, item_hash: str, keyvalues: Mapping[str, Any], overwrite: bool = False
    ) -> dict[str, Any] | None:
        """Merge or replace the item's caller metadata."""
        ...

    # ── Data records ───────────────────────────────────────

    async def add_item_data(
        self,
        item_hash: str,
        data_type: str,
        data: Mapping[str, Any],
        keep: bool = False,
        keyvalues: Mapping[str, Any] | None = None,
        search: str | None = None,
    ) -> PinReceipt:
        """Attach a data record; replaces the previous one unless ``keep``."""
        ...

    async def get_item_data(
        self, item_hash: str, data_type: str, resolve: bool = True
    ) -> DataRecord | PinRow | None:
        """Newest live record of ``data_type`` for the item."""
        ...

    async def list_item_data(
        self,
        item_hash: str,
        data_type: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> PinList:
        """Page through the item's raw data records."""
        ...

    async def remove_item_data(self, item_hash: str, data_type: str) -> bool:
        """Unpin the live record(s) of ``data_type``. False if none existed."""
        ...

    async def index_item(
        self, item_hash: str, data_types: Sequence[str], search: str | None = None
    ) -> DataRecord | None:
        """Store a type → content hash manifest of the item's data records."""
        ...

    # ── Parsing ────────────────────────────────────────────

    async def parse_item(self, row: PinRow) -> Item | None:
        ...

    async def parse_item_data(self, row: PinRow) -> DataRecord:
        ...
