"""Protocol interfaces for pin_substrate components."""

from pin_substrate.interfaces.backend import PinningBackend
from pin_substrate.interfaces.gateway import ContentGateway
from pin_substrate.interfaces.strategy import StorageStrategy

__all__ = ["ContentGateway", "PinningBackend", "StorageStrategy"]
