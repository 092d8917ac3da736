"""Exception hierarchy for pin_substrate.

Not-found outcomes are never raised: lookups return ``None``, ``False`` or an
empty list. Failures from httpx or a backend propagate unwrapped.
"""

from __future__ import annotations


class SubstrateError(Exception):
    """Base class for errors raised by pin_substrate itself."""


class ConfigurationError(SubstrateError):
    """A required setting (client id, strategy, credentials) is missing."""


class ValidationError(SubstrateError, ValueError):
    """Input rejected before any backend call was made."""


class PreconditionError(SubstrateError):
    """The operation depends on a record that does not exist."""


class ItemNotFoundError(PreconditionError):
    """Data was written against an item that is not pinned for this client."""

    def __init__(self, item_hash: str) -> None:
        super().__init__(f"Item not found: {item_hash}")
        self.item_hash = item_hash


class BackendError(SubstrateError):
    """Raised by the local pin store for conditions the remote API reports as errors."""


class PinNotFoundError(BackendError):
    """Unpin or metadata patch against a CID that is not pinned."""

    def __init__(self, cid: str) -> None:
        super().__init__(f"CID is not pinned: {cid}")
        self.cid = cid


class GatewayError(SubstrateError):
    """Content could not be retrieved through a gateway."""
