"""Storage strategies implementing the StorageStrategy protocol."""

from pin_substrate.strategies.pinata import PinataStrategy

__all__ = ["PinataStrategy"]
