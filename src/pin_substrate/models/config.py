"""Configuration model for a Substrate instance."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class BackendKind(str, Enum):
    """Pinning backend selected at configuration time."""

    PINATA = "pinata"  # Pinata cloud HTTP API
    SQLITE = "sqlite"  # local emulation, for development and tests


@dataclass
class SubstrateConfig:
    """Complete Substrate configuration."""

    # Tenant
    client: str = ""
    log_level: str = "info"

    # Backend
    backend: BackendKind = BackendKind.PINATA

    # Gateways ({cid} placeholder)
    public_gateway: str = "https://gateway.pinata.cloud/ipfs/{cid}"
    private_gateway: str = ""

    # Pinata
    pinata_api_url: str = "https://api.pinata.cloud"
    pinata_key: str = ""  # loaded from env var PIN_SUBSTRATE_PINATA_KEY
    pinata_secret: str = ""  # loaded from env var PIN_SUBSTRATE_PINATA_SECRET
    pinata_jwt: str = ""
    request_timeout: int = 30  # seconds

    # Local storage
    db_path: str = "~/.pin_substrate/pins.db"
