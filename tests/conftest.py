"""Shared fixtures for pin_substrate tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key

from pin_substrate.interfaces.backend import PinningBackend
from pin_substrate.storage.sqlite import SQLitePinStore
from pin_substrate.strategies.pinata import PinataStrategy
from pin_substrate.substrate import Substrate

CLIENT = "tracks.example.org"
OTHER_CLIENT = "radio.example.net"

PUBLIC_GATEWAY = "https://gateway.example.com/ipfs/{cid}"
PRIVATE_GATEWAY = "https://private.example.com/ipfs/{cid}"


# ── Report metadata ──────────────────────────────────────────────


def pytest_configure(config):
    """Add backend info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Backend"] = "SQLitePinStore (:memory:)"
    meta["Client"] = CLIENT
    meta["Other Client"] = OTHER_CLIENT


def make_substrate(
    store: SQLitePinStore,
    client: str = CLIENT,
    backend: PinningBackend | None = None,
) -> Substrate:
    """Build a Substrate over ``backend`` (default: the store itself).

    The store doubles as the gateway, so resolution never leaves the process.
    """
    return Substrate(
        client=client,
        storage_strategy=PinataStrategy(backend or store),
        public_gateway=PUBLIC_GATEWAY,
        private_gateway=PRIVATE_GATEWAY,
        gateway=store,
    )


@pytest.fixture
async def store():
    """Initialized in-memory SQLitePinStore."""
    s = SQLitePinStore(":memory:")
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def substrate(store):
    """Substrate for CLIENT on the shared store."""
    return make_substrate(store)


@pytest.fixture
def strategy(substrate):
    """The PinataStrategy bound to the CLIENT substrate."""
    return substrate.storage_strategy


@pytest.fixture
def other_tenant(store):
    """Substrate for OTHER_CLIENT on the same store."""
    return make_substrate(store, client=OTHER_CLIENT)


@pytest.fixture
async def item_hash(substrate):
    """A freshly created 'track' item owned by alice."""
    return await substrate.create_item(type="track", owner="alice")
