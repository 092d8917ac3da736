"""Local pin storage."""

from pin_substrate.storage.sqlite import SQLitePinStore

__all__ = ["SQLitePinStore"]
