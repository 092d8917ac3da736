"""Data models for pin_substrate."""

from pin_substrate.models.config import BackendKind, SubstrateConfig
from pin_substrate.models.records import (
    INDEX_TYPE,
    DataRecord,
    Item,
    PinList,
    PinReceipt,
    PinRow,
)

__all__ = [
    "BackendKind", "SubstrateConfig",
    "INDEX_TYPE", "DataRecord", "Item", "PinList", "PinReceipt", "PinRow",
]
