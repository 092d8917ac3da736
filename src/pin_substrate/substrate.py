"""Substrate facade - the client-facing entry point.

Holds tenant configuration and gateway templates, validates input, owns
identifier generation and gateway resolution, and delegates every data
operation to the configured storage strategy::

    store = SQLitePinStore("pins.db")
    await store.initialize()
    substrate = Substrate(
        client="example.org",
        storage_strategy=PinataStrategy(store),
        gateway=store,
    )
    item_hash = await substrate.create_item(type="track", owner="user123")
"""

from __future__ import annotations

import hashlib
import logging
import re
import secrets
import time
from collections.abc import Mapping, Sequence
from typing import Any

from pin_substrate.errors import ConfigurationError, ValidationError
from pin_substrate.gateway import HttpGateway, clean_cid
from pin_substrate.interfaces.gateway import ContentGateway
from pin_substrate.interfaces.strategy import StorageStrategy
from pin_substrate.models.config import BackendKind, SubstrateConfig
from pin_substrate.models.records import DataRecord, Item, PinList, PinReceipt, PinRow
from pin_substrate.pinata.client import PinataClient
from pin_substrate.storage.sqlite import SQLitePinStore
from pin_substrate.strategies.pinata import PinataStrategy

log = logging.getLogger(__name__)

TYPE_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")


class Substrate:
    """Item/data store for one tenant (``client``) over a pluggable strategy."""

    def __init__(
        self,
        client: str,
        storage_strategy: StorageStrategy,
        public_gateway: str | None = None,
        private_gateway: str | None = None,
        gateway: ContentGateway | None = None,
    ) -> None:
        if not client:
            raise ConfigurationError("Client identifier is required")
        if storage_strategy is None:
            raise ConfigurationError("Storage strategy is required")

        self.client = client
        self.storage_strategy = storage_strategy
        self.public_gateway = public_gateway
        self.private_gateway = private_gateway
        self.gateway: ContentGateway = gateway or HttpGateway()

        storage_strategy.bind(self)

    @classmethod
    async def from_config(cls, cfg: SubstrateConfig) -> Substrate:
        """Build the configured backend, strategy and gateway."""
        gateway: ContentGateway
        if cfg.backend == BackendKind.SQLITE:
            store = SQLitePinStore(cfg.db_path)
            await store.initialize()
            backend: Any = store
            gateway = store
        else:
            backend = PinataClient(
                api_key=cfg.pinata_key,
                api_secret=cfg.pinata_secret,
                jwt=cfg.pinata_jwt,
                base_url=cfg.pinata_api_url,
                timeout=cfg.request_timeout,
            )
            gateway = HttpGateway(timeout=cfg.request_timeout)

        log.debug("Substrate for %s on %s backend", cfg.client, cfg.backend.value)
        return cls(
            client=cfg.client,
            storage_strategy=PinataStrategy(backend),
            public_gateway=cfg.public_gateway,
            private_gateway=cfg.private_gateway or None,
            gateway=gateway,
        )

    async def close(self) -> None:
        await self.storage_strategy.close()

    async def __aenter__(self) -> Substrate:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ── Helpers ────────────────────────────────────────────

    @staticmethod
    def generate_secure_unique_id(type: str) -> str:
        """Hex SHA-256 over millisecond time, 16 random bytes and the type."""
        now_ms = int(time.time() * 1000)
        random_hex = secrets.token_bytes(16).hex()
        return hashlib.sha256(f"{now_ms}{random_hex}{type}".encode("utf-8")).hexdigest()

    @staticmethod
    def parse_type(type: Any) -> str:
        if not type or not isinstance(type, str):
            raise ValidationError("Type is required and must be a string")
        if not TYPE_PATTERN.match(type):
            raise ValidationError(
                "Type contains invalid characters - please only use alphanumeric characters and _"
            )
        return type.lower()

    @staticmethod
    def clean_cid(cid: str) -> str:
        return clean_cid(cid)

    @staticmethod
    def _require_hash(item_hash: Any) -> str:
        if not item_hash or not isinstance(item_hash, str):
            raise ValidationError("item_hash is required")
        return clean_cid(item_hash)

    def _parse_types(self, data_types: Sequence[str]) -> list[str]:
        if isinstance(data_types, str):
            raise ValidationError("data_types must be a list of types, not a string")
        return [self.parse_type(t) for t in data_types]

    # ── Items ──────────────────────────────────────────────

    async def create_item(self, type: str = "generic", owner: str | None = None) -> str:
        return await self.storage_strategy.create_item(self.parse_type(type), owner)

    async def get_item(
        self, item_hash: str, type: str | None = None, resolve: bool = True
    ) -> Item | PinRow | None:
        item_hash = self._require_hash(item_hash)
        type = self.parse_type(type) if type is not None else None
        return await self.storage_strategy.get_item(item_hash, type, resolve)

    async def get_items(
        self,
        type: str,
        page: int = 1,
        limit: int = 10,
        keyvalues: Mapping[str, Any] | None = None,
        owner: str | None = None,
    ) -> list[Item]:
        return await self.storage_strategy.get_items(
            self.parse_type(type), page, limit, keyvalues, owner,
        )

    async def remove_item(
        self, item_hash: str, data_types: Sequence[str] | None = None
    ) -> bool:
        item_hash = self._require_hash(item_hash)
        types = self._parse_types(data_types) if data_types is not None else None
        return await self.storage_strategy.remove_item(item_hash, types)

    async def update_item_metadata(
        self, item_hash: str, keyvalues: Mapping[str, Any], overwrite: bool = False
    ) -> dict[str, Any] | None:
        item_hash = self._require_hash(item_hash)
        if not isinstance(keyvalues, Mapping):
            raise ValidationError("keyvalues must be a mapping")
        return await self.storage_strategy.update_item_metadata(item_hash, keyvalues, overwrite)

    # ── Data records ───────────────────────────────────────

    async def add_item_data(
        self,
        item_hash: str,
        data_type: str,
        data: Mapping[str, Any],
        keep: bool = False,
        keyvalues: Mapping[str, Any] | None = None,
        search: str | None = None,
    ) -> PinReceipt:
        item_hash = self._require_hash(item_hash)
        data_type = self.parse_type(data_type)
        if not isinstance(data, Mapping):
            raise ValidationError("Data must be an object")
        return await self.storage_strategy.add_item_data(
            item_hash, data_type, data, keep, keyvalues, search,
        )

    async def get_item_data(
        self, item_hash: str, data_type: str, resolve: bool = True
    ) -> DataRecord | PinRow | None:
        item_hash = self._require_hash(item_hash)
        return await self.storage_strategy.get_item_data(
            item_hash, self.parse_type(data_type), resolve,
        )

    async def list_item_data(
        self,
        item_hash: str,
        data_type: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> PinList:
        item_hash = self._require_hash(item_hash)
        data_type = self.parse_type(data_type) if data_type is not None else None
        return await self.storage_strategy.list_item_data(item_hash, data_type, page, limit)

    async def remove_item_data(self, item_hash: str, data_type: str) -> bool:
        item_hash = self._require_hash(item_hash)
        return await self.storage_strategy.remove_item_data(item_hash, self.parse_type(data_type))

    async def index_item(
        self, item_hash: str, data_types: Sequence[str], search: str | None = None
    ) -> DataRecord | None:
        item_hash = self._require_hash(item_hash)
        return await self.storage_strategy.index_item(
            item_hash, self._parse_types(data_types), search,
        )

    # ── Gateways ───────────────────────────────────────────

    async def resolve(self, cid: str) -> Any:
        """Fetch and parse ``cid`` through the public gateway."""
        return await self.gateway.fetch_json(clean_cid(cid), self.public_gateway)

    async def private_resolve(self, cid: str) -> Any:
        """Fetch and parse ``cid`` through the private gateway (public if unset)."""
        template = self.private_gateway or self.public_gateway
        return await self.gateway.fetch_json(clean_cid(cid), template)
