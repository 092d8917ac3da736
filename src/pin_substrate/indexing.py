"""Item indexing - fans out data lookups and stores the manifest as a data record."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from pin_substrate.interfaces.strategy import StorageStrategy
from pin_substrate.models.records import (
    INDEX_TYPE,
    SEARCH_KEY,
    SUB_ID_KEY,
    DataRecord,
    PinRow,
    make_sub_id,
)

log = logging.getLogger(__name__)


async def collect_index(
    strategy: StorageStrategy, item_hash: str, data_types: Sequence[str]
) -> dict[str, str]:
    """Map each data type with a live record to that record's content hash.

    All lookups run concurrently and are joined before returning. Types with
    no record are left out. The first lookup to raise propagates; lookups
    still in flight are neither cancelled nor awaited further.
    """
    types = list(dict.fromkeys(data_types))
    rows = await asyncio.gather(
        *(strategy.get_item_data(item_hash, data_type, resolve=False) for data_type in types)
    )
    return {
        data_type: row.content_hash
        for data_type, row in zip(types, rows)
        if row is not None
    }


async def build_index(
    strategy: StorageStrategy,
    item_hash: str,
    data_types: Sequence[str],
    search: str | None = None,
) -> DataRecord | None:
    """Collect the index, replace the item's ``index`` record, return it resolved.

    Nothing is written if any lookup fails. The returned record is built from the pin
    receipt, not from a fresh listing.
    """
    index = await collect_index(strategy, item_hash, data_types)
    receipt = await strategy.add_item_data(item_hash, INDEX_TYPE, index, search=search)
    log.info(
        "Indexed %s: %d of %d types -> %s",
        item_hash, len(index), len(set(data_types)), receipt.content_hash,
    )
    sub_id = make_sub_id(item_hash, INDEX_TYPE)
    keyvalues = {SUB_ID_KEY: sub_id}
    if search:
        keyvalues[SEARCH_KEY] = search
    row = PinRow(
        content_hash=receipt.content_hash,
        name=sub_id,
        keyvalues=keyvalues,
        size=receipt.pin_size,
        date_pinned=receipt.timestamp,
    )
    return await strategy.parse_item_data(row)
