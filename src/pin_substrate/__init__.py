"""pin_substrate - content-addressed items and typed data records over pinning services."""

from pin_substrate.errors import (
    ConfigurationError,
    ItemNotFoundError,
    PreconditionError,
    SubstrateError,
    ValidationError,
)
from pin_substrate.gateway import HttpGateway
from pin_substrate.models.records import INDEX_TYPE, DataRecord, Item
from pin_substrate.pinata.client import PinataClient
from pin_substrate.storage.sqlite import SQLitePinStore
from pin_substrate.strategies.pinata import PinataStrategy
from pin_substrate.substrate import Substrate

__all__ = [
    "Substrate", "PinataStrategy", "PinataClient", "SQLitePinStore", "HttpGateway",
    "Item", "DataRecord", "INDEX_TYPE",
    "SubstrateError", "ConfigurationError", "ValidationError",
    "PreconditionError", "ItemNotFoundError",
]
