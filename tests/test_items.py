"""Item lifecycle: creation, lookup, listing and metadata updates."""

from __future__ import annotations

import pytest

from pin_substrate.errors import ValidationError
from pin_substrate.models.records import (
    CLIENT_KEY,
    DATE_KEY,
    ITEM_ID_KEY,
    OWNER_KEY,
    SEARCH_KEY,
    SUB_ID_KEY,
    Item,
    PinRow,
)

from tests.conftest import CLIENT, make_substrate
from tests.factories import make_pin_row
from tests.mocks import RecordingBackend


# ── Test: create_item ─────────────────────────────────────────────


async def test_create_item_returns_hash_of_resolvable_item(substrate, item_hash):
    item = await substrate.get_item(item_hash)

    assert isinstance(item, Item)
    assert item.content_hash == item_hash
    assert item.type == "track"
    assert item.item_id.startswith("track:")
    assert item.owner == "alice"
    assert item.client == CLIENT
    assert isinstance(item.created_at, int)
    assert item.metadata == {}


async def test_create_item_pins_identity_body_and_metadata(store):
    backend = RecordingBackend(store)
    substrate = make_substrate(store, backend=backend)

    await substrate.create_item(type="Album", owner="bob")

    (content, name, keyvalues), = backend.pin_calls
    assert set(content) == {ITEM_ID_KEY, DATE_KEY, CLIENT_KEY}
    assert content[ITEM_ID_KEY].startswith("album:")
    assert name == content[ITEM_ID_KEY]
    assert keyvalues == {**content, OWNER_KEY: "bob"}


async def test_create_item_without_owner(substrate):
    item = await substrate.get_item(await substrate.create_item())
    assert item.type == "generic"
    assert item.owner is None


async def test_items_are_unique(substrate):
    first = await substrate.create_item(type="track")
    second = await substrate.create_item(type="track")
    assert first != second


# ── Test: get_item ────────────────────────────────────────────────


async def test_get_item_raw_row(substrate, item_hash):
    row = await substrate.get_item(item_hash, resolve=False)
    assert isinstance(row, PinRow)
    assert row.content_hash == item_hash
    assert row.keyvalues[OWNER_KEY] == "alice"


async def test_get_item_accepts_ipfs_uri(substrate, item_hash):
    item = await substrate.get_item(f"ipfs://{item_hash}")
    assert item.content_hash == item_hash


async def test_get_item_with_type_filter(substrate, item_hash):
    assert await substrate.get_item(item_hash, type="track") is not None
    assert await substrate.get_item(item_hash, type="TRACK") is not None
    assert await substrate.get_item(item_hash, type="album") is None


async def test_get_item_missing_returns_none(substrate):
    assert await substrate.get_item("bafkreidoesnotexist") is None


async def test_get_item_partial_hash_does_not_match(substrate, item_hash):
    assert await substrate.get_item(item_hash[:-4]) is None


async def test_data_record_is_not_an_item(substrate, item_hash):
    receipt = await substrate.add_item_data(item_hash, "notes", {"text": "hello"})
    assert await substrate.get_item(receipt.content_hash) is None


async def test_get_item_is_tenant_scoped(substrate, other_tenant, item_hash):
    assert await other_tenant.get_item(item_hash) is None
    assert await substrate.get_item(item_hash) is not None


# ── Test: get_items ───────────────────────────────────────────────


async def test_get_items_by_type_newest_first(substrate):
    hashes = [await substrate.create_item(type="track") for _ in range(3)]
    await substrate.create_item(type="album")

    items = await substrate.get_items("track")

    assert [i.content_hash for i in items] == list(reversed(hashes))
    assert all(i.type == "track" for i in items)


async def test_get_items_pagination(substrate):
    hashes = [await substrate.create_item(type="track") for _ in range(5)]
    newest_first = list(reversed(hashes))

    page1 = await substrate.get_items("track", page=1, limit=2)
    page3 = await substrate.get_items("track", page=3, limit=2)

    assert [i.content_hash for i in page1] == newest_first[:2]
    assert [i.content_hash for i in page3] == newest_first[4:]


async def test_get_items_clamps_bad_paging(substrate):
    for _ in range(12):
        await substrate.create_item(type="track")

    items = await substrate.get_items("track", page=0, limit=0)

    assert len(items) == 10


async def test_get_items_by_owner(substrate):
    mine = await substrate.create_item(type="track", owner="alice")
    await substrate.create_item(type="track", owner="bob")

    items = await substrate.get_items("track", owner="alice")

    assert [i.content_hash for i in items] == [mine]


async def test_get_items_metadata_predicates(substrate):
    quiet = await substrate.create_item(type="track")
    loud = await substrate.create_item(type="track")
    await substrate.update_item_metadata(quiet, {"bpm": 80, "genre": "ambient"})
    await substrate.update_item_metadata(loud, {"bpm": 140, "genre": "techno"})

    fast = await substrate.get_items("track", keyvalues={"bpm": {"value": 100, "op": "gt"}})
    ambient = await substrate.get_items("track", keyvalues={"genre": "ambient"})

    assert [i.content_hash for i in fast] == [loud]
    assert [i.content_hash for i in ambient] == [quiet]


async def test_get_items_cannot_escape_tenant(substrate, other_tenant):
    await other_tenant.create_item(type="track")

    items = await substrate.get_items(
        "track", keyvalues={CLIENT_KEY: "radio.example.net"},
    )

    assert items == []


async def test_get_items_does_not_mutate_filters(substrate):
    filters = {"genre": "ambient"}
    await substrate.get_items("track", keyvalues=filters)
    assert filters == {"genre": "ambient"}


# ── Test: update_item_metadata ────────────────────────────────────


async def test_update_metadata_merges(substrate, item_hash):
    await substrate.update_item_metadata(item_hash, {"genre": "synthwave"})
    result = await substrate.update_item_metadata(item_hash, {"bpm": 110})

    assert result == {"genre": "synthwave", "bpm": 110}
    item = await substrate.get_item(item_hash)
    assert item.metadata == {"genre": "synthwave", "bpm": 110}
    assert item.owner == "alice"


async def test_update_metadata_overwrite_drops_other_user_keys(substrate, item_hash):
    await substrate.update_item_metadata(item_hash, {"genre": "synthwave", "bpm": 110})

    result = await substrate.update_item_metadata(item_hash, {"mood": "calm"}, overwrite=True)

    assert result == {"mood": "calm"}
    item = await substrate.get_item(item_hash)
    assert item.metadata == {"mood": "calm"}
    # identity survives an overwrite
    assert item.item_id.startswith("track:")
    assert item.owner == "alice"
    assert item.client == CLIENT


@pytest.mark.parametrize("key", [OWNER_KEY, ITEM_ID_KEY, SUB_ID_KEY, SEARCH_KEY])
async def test_update_metadata_rejects_reserved_keys(store, item_hash, key):
    backend = RecordingBackend(store)
    substrate = make_substrate(store, backend=backend)

    with pytest.raises(ValidationError, match="Reserved"):
        await substrate.update_item_metadata(item_hash, {key: "mallory"})

    assert backend.call_count == 0


async def test_item_cannot_be_tagged_as_another_items_data(substrate, item_hash):
    victim = await substrate.create_item(type="track")

    with pytest.raises(ValidationError):
        await substrate.update_item_metadata(victim, {SUB_ID_KEY: f"{item_hash}/cover"})

    assert await substrate.remove_item_data(item_hash, "cover") is False
    await substrate.remove_item(item_hash)
    assert await substrate.get_item(victim) is not None


async def test_update_metadata_missing_item(substrate):
    assert await substrate.update_item_metadata("bafkreimissing", {"a": 1}) is None


async def test_update_metadata_other_tenant_is_missing(other_tenant, item_hash):
    assert await other_tenant.update_item_metadata(item_hash, {"a": 1}) is None


# ── Test: parse_item ──────────────────────────────────────────────


async def test_parse_item_splits_reserved_and_user_keys(strategy):
    row = make_pin_row(
        "bafkreiparsed",
        name="album:f00d",
        sub_item="album:f00d",
        sub_client=CLIENT,
        sub_owner="carol",
        sub_date=1700000000000,
        label="Night Records",
    )

    item = await strategy.parse_item(row)

    assert item == Item(
        content_hash="bafkreiparsed",
        item_id="album:f00d",
        type="album",
        client=CLIENT,
        owner="carol",
        created_at=1700000000000,
        metadata={"label": "Night Records"},
    )


async def test_parse_item_rejects_non_item_rows(strategy):
    assert await strategy.parse_item(make_pin_row(sub_id="bafk/details")) is None
