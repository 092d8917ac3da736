"""Pinata cloud pinning backend."""

from pin_substrate.pinata.client import PinataClient

__all__ = ["PinataClient"]
