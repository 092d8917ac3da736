"""Domain records and raw pinning-backend shapes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Reserved metadata keys written on every pin. Existing pins use these exact
# names, so they must not change.
ITEM_ID_KEY = "sub_item"
OWNER_KEY = "sub_owner"
CLIENT_KEY = "sub_client"
DATE_KEY = "sub_date"
SUB_ID_KEY = "sub_id"
SEARCH_KEY = "search"

ITEM_KEYS = frozenset({ITEM_ID_KEY, OWNER_KEY, CLIENT_KEY, DATE_KEY})
DATA_KEYS = frozenset({SUB_ID_KEY, CLIENT_KEY, DATE_KEY, SEARCH_KEY})
RESERVED_KEYS = ITEM_KEYS | DATA_KEYS

INDEX_TYPE = "index"


@dataclass
class PinRow:
    """A pin as returned by the backend's list endpoint."""

    content_hash: str
    name: str | None = None
    keyvalues: dict[str, Any] = field(default_factory=dict)
    size: int = 0
    date_pinned: str | None = None


@dataclass
class PinList:
    """One page of a pin listing. ``count`` is the total across all pages."""

    count: int
    rows: list[PinRow] = field(default_factory=list)


@dataclass
class PinReceipt:
    """Result of pinning a JSON document."""

    content_hash: str
    pin_size: int = 0
    timestamp: str | None = None
    is_duplicate: bool = False


@dataclass
class Item:
    """Immutable root record. ``metadata`` holds only caller key/values."""

    content_hash: str
    item_id: str
    type: str
    client: str
    owner: str | None = None
    created_at: int | None = None  # epoch ms
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class DataRecord:
    """A typed attachment to an item, with its resolved body."""

    content_hash: str
    sub_id: str
    item_hash: str
    data_type: str
    client: str
    created_at: int | None = None  # epoch ms
    search: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    body: dict[str, Any] = field(default_factory=dict)


def make_sub_id(item_hash: str, data_type: str) -> str:
    return f"{item_hash}/{data_type}"


def split_sub_id(sub_id: str) -> tuple[str, str]:
    item_hash, _, data_type = sub_id.rpartition("/")
    return item_hash, data_type
