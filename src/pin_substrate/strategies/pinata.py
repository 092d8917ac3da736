"""Pinata storage strategy - maps items and data records onto pin metadata.

Every pin carries ``sub_*`` key/values that turn a flat pin list into
something queryable:

- items: ``sub_item`` (``"{type}:{random hex}"``), ``sub_owner``,
  ``sub_client``, ``sub_date``
- data records: ``sub_id`` (``"{item hash}/{data type}"``), ``sub_client``,
  ``sub_date`` and an optional ``search`` tag

Every lookup is conjoined with ``sub_client == <client>``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from pin_substrate.errors import ItemNotFoundError, ValidationError
from pin_substrate.indexing import build_index
from pin_substrate.interfaces.backend import PinningBackend
from pin_substrate.models.records import (
    CLIENT_KEY,
    DATA_KEYS,
    DATE_KEY,
    ITEM_ID_KEY,
    ITEM_KEYS,
    OWNER_KEY,
    RESERVED_KEYS,
    SEARCH_KEY,
    SUB_ID_KEY,
    DataRecord,
    Item,
    PinList,
    PinReceipt,
    PinRow,
    make_sub_id,
    split_sub_id,
)
from pin_substrate.query import Predicate, equals, normalize_keyvalues, pattern, starts_with

if TYPE_CHECKING:
    from pin_substrate.substrate import Substrate

log = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
SCAN_PAGE_SIZE = 1000

# Any item id: lowercase type, colon, token
ANY_ITEM_PATTERN = r"^[a-z0-9_]+:"

# Linkage fields stamped onto every data body
_STAMP_KEYS = (SUB_ID_KEY, DATE_KEY, CLIENT_KEY)


def _reject_reserved(keyvalues: Mapping[str, Any] | None) -> None:
    reserved = RESERVED_KEYS.intersection(keyvalues or {})
    if reserved:
        raise ValidationError(f"Reserved metadata keys cannot be set: {sorted(reserved)}")


def _now_ms() -> int:
    return int(time.time() * 1000)


def _clamp_page(page: int, limit: int) -> tuple[int, int]:
    if page < 1:
        page = DEFAULT_PAGE
    if limit < 1:
        limit = DEFAULT_LIMIT
    return page, limit


class PinataStrategy:
    """Implements the StorageStrategy protocol on any Pinata-compatible backend."""

    def __init__(self, backend: PinningBackend) -> None:
        self._backend = backend
        self._substrate: Substrate | None = None

    def bind(self, substrate: Substrate) -> None:
        self._substrate = substrate

    @property
    def substrate(self) -> Substrate:
        assert self._substrate is not None, "Strategy not bound. Pass it to a Substrate first."
        return self._substrate

    @property
    def backend(self) -> PinningBackend:
        return self._backend

    async def close(self) -> None:
        await self._backend.close()

    # ── Filters ────────────────────────────────────────────

    def _client_filter(self) -> dict[str, Predicate]:
        return {CLIENT_KEY: equals(self.substrate.client)}

    def _item_filter(self, type: str | None = None) -> dict[str, Predicate]:
        id_pred = starts_with(f"{type}:") if type else pattern(ANY_ITEM_PATTERN)
        return {ITEM_ID_KEY: id_pred, **self._client_filter()}

    def _data_filter(self, item_hash: str, data_type: str | None = None) -> dict[str, Predicate]:
        if data_type:
            sub_pred = equals(make_sub_id(item_hash, data_type))
        else:
            sub_pred = starts_with(f"{item_hash}/")
        return {SUB_ID_KEY: sub_pred, **self._client_filter()}

    async def _list_all(self, keyvalues: Mapping[str, Predicate]) -> list[PinRow]:
        """Collect every matching pin across pages."""
        rows: list[PinRow] = []
        offset = 0
        while True:
            page = await self._backend.pin_list(
                keyvalues=keyvalues, page_limit=SCAN_PAGE_SIZE, page_offset=offset,
            )
            rows.extend(page.rows)
            offset += len(page.rows)
            if not page.rows or offset >= page.count:
                return rows

    async def _unpin_all(self, rows: Sequence[PinRow]) -> None:
        """Unpin concurrently; the first failure propagates, nothing is restored."""
        await asyncio.gather(*(self._backend.unpin(row.content_hash) for row in rows))

    # ── Items ──────────────────────────────────────────────

    async def create_item(self, type: str = "generic", owner: str | None = None) -> str:
        item_id = f"{type}:{self.substrate.generate_secure_unique_id(type)}"
        sub = {
            ITEM_ID_KEY: item_id,
            DATE_KEY: _now_ms(),
            CLIENT_KEY: self.substrate.client,
        }
        keyvalues: dict[str, Any] = dict(sub)
        if owner is not None:
            keyvalues[OWNER_KEY] = owner

        receipt = await self._backend.pin_json(sub, name=item_id, keyvalues=keyvalues)
        log.info("Created item %s (%s)", receipt.content_hash, item_id)
        return receipt.content_hash

    async def get_item(
        self, item_hash: str, type: str | None = None, resolve: bool = True
    ) -> Item | PinRow | None:
        if not item_hash:
            raise ValidationError("item_hash is required in get_item")

        result = await self._backend.pin_list(
            hash_contains=item_hash, keyvalues=self._item_filter(type),
        )
        row = next((r for r in result.rows if r.content_hash == item_hash), None)
        if row is None:
            return None
        return await self.parse_item(row) if resolve else row

    async def get_items(
        self,
        type: str,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
        keyvalues: Mapping[str, Any] | None = None,
        owner: str | None = None,
    ) -> list[Item]:
        page, limit = _clamp_page(page, limit)

        predicates = normalize_keyvalues(keyvalues)
        if owner:
            predicates[OWNER_KEY] = equals(owner)
        predicates.update(self._item_filter(type))

        result = await self._backend.pin_list(
            keyvalues=predicates, page_limit=limit, page_offset=(page - 1) * limit,
        )
        items = [await self.parse_item(row) for row in result.rows]
        return [item for item in items if item is not None]

    async def remove_item(
        self, item_hash: str, data_types: Sequence[str] | None = None
    ) -> bool:
        item = await self.get_item(item_hash, resolve=False)
        if item is None:
            log.debug("remove_item: %s not found", item_hash)
            return False

        await self._backend.unpin(item_hash)
        if data_types is None:
            rows = await self._list_all(self._data_filter(item_hash))
            await self._unpin_all(rows)
            log.info("Removed item %s and %d data records", item_hash, len(rows))
        else:
            await asyncio.gather(
                *(self.remove_item_data(item_hash, data_type) for data_type in data_types)
            )
            log.info("Removed item %s and data types %s", item_hash, list(data_types))
        return True

    async def update_item_metadata(
        self, item_hash: str, keyvalues: Mapping[str, Any], overwrite: bool = False
    ) -> dict[str, Any] | None:
        _reject_reserved(keyvalues)

        row = await self.get_item(item_hash, resolve=False)
        if row is None:
            return None

        current = {k: v for k, v in row.keyvalues.items() if k not in ITEM_KEYS}
        if overwrite:
            patch = dict(keyvalues)
            # The pin API merges; dropped keys are deleted by sending None
            patch.update({k: None for k in current if k not in keyvalues})
            updated = dict(keyvalues)
        else:
            patch = dict(keyvalues)
            updated = {**current, **keyvalues}

        await self._backend.hash_metadata(item_hash, patch)
        log.info("Updated metadata of %s (overwrite=%s)", item_hash, overwrite)
        return {k: v for k, v in updated.items() if v is not None}

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
        """Pin ``data`` as the item's ``data_type`` record.

        The body may not carry the linkage keys it is stamped with, and
        ``keyvalues`` may not carry any reserved ``sub_*`` key or ``search``.
        """
        if not isinstance(data, Mapping):
            raise ValidationError("Data must be an object")
        stamped = sorted(set(_STAMP_KEYS).intersection(data))
        if stamped:
            raise ValidationError(f"Data may not contain linkage keys: {stamped}")
        _reject_reserved(keyvalues)

        item = await self.get_item(item_hash, resolve=False)
        if item is None:
            raise ItemNotFoundError(item_hash)

        sub_id = make_sub_id(item_hash, data_type)
        sub = {
            SUB_ID_KEY: sub_id,
            DATE_KEY: _now_ms(),
            CLIENT_KEY: self.substrate.client,
        }
        metadata = {**(keyvalues or {}), **sub}
        if search:
            metadata[SEARCH_KEY] = search

        if not keep:
            replaced = await self.remove_item_data(item_hash, data_type)
            if replaced:
                log.debug("Replacing %s", sub_id)

        receipt = await self._backend.pin_json({**data, **sub}, name=sub_id, keyvalues=metadata)
        log.info("Stored %s -> %s", sub_id, receipt.content_hash)
        return receipt

    async def get_item_data(
        self, item_hash: str, data_type: str, resolve: bool = True
    ) -> DataRecord | PinRow | None:
        result = await self._backend.pin_list(
            keyvalues=self._data_filter(item_hash, data_type), page_limit=1,
        )
        if not result.rows:
            return None
        row = result.rows[0]
        return await self.parse_item_data(row) if resolve else row

    async def list_item_data(
        self,
        item_hash: str,
        data_type: str | None = None,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> PinList:
        page, limit = _clamp_page(page, limit)
        return await self._backend.pin_list(
            keyvalues=self._data_filter(item_hash, data_type),
            page_limit=limit,
            page_offset=(page - 1) * limit,
        )

    async def remove_item_data(self, item_hash: str, data_type: str) -> bool:
        rows = await self._list_all(self._data_filter(item_hash, data_type))
        if not rows:
            return False
        await self._unpin_all(rows)
        log.info("Removed %d record(s) of %s", len(rows), make_sub_id(item_hash, data_type))
        return True

    async def index_item(
        self, item_hash: str, data_types: Sequence[str], search: str | None = None
    ) -> DataRecord | None:
        return await build_index(self, item_hash, data_types, search=search)

    # ── Parsing ────────────────────────────────────────────

    async def parse_item(self, row: PinRow) -> Item | None:
        kv = row.keyvalues
        item_id = kv.get(ITEM_ID_KEY)
        if not item_id:
            return None
        return Item(
            content_hash=row.content_hash,
            item_id=item_id,
            type=item_id.split(":", 1)[0],
            client=kv.get(CLIENT_KEY, ""),
            owner=kv.get(OWNER_KEY),
            created_at=kv.get(DATE_KEY),
            metadata={k: v for k, v in kv.items() if k not in ITEM_KEYS},
        )

    async def parse_item_data(self, row: PinRow) -> DataRecord:
        resolved = await self.substrate.private_resolve(row.content_hash)
        kv = row.keyvalues
        sub_id = kv.get(SUB_ID_KEY) or row.name or ""
        item_hash, data_type = split_sub_id(sub_id)
        return DataRecord(
            content_hash=row.content_hash,
            sub_id=sub_id,
            item_hash=item_hash,
            data_type=data_type,
            client=kv.get(CLIENT_KEY) or resolved.get(CLIENT_KEY, ""),
            created_at=kv.get(DATE_KEY, resolved.get(DATE_KEY)),
            search=kv.get(SEARCH_KEY),
            metadata={k: v for k, v in kv.items() if k not in DATA_KEYS},
            body={k: v for k, v in resolved.items() if k not in _STAMP_KEYS},
        )
