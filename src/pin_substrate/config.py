"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from pin_substrate.errors import ConfigurationError
from pin_substrate.models.config import BackendKind, SubstrateConfig


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "PIN_SUBSTRATE_",
) -> SubstrateConfig:
    """Load configuration from a TOML file and environment variables.

    Priority (highest wins):
        1. Environment variables (PIN_SUBSTRATE_CLIENT, PIN_SUBSTRATE_PINATA_KEY, ...)
        2. TOML config file
        3. Defaults from SubstrateConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = SubstrateConfig()

    # ── Substrate section ──────────────────────────────────
    substrate = raw.get("substrate", {})
    if v := substrate.get("client"):
        cfg.client = str(v)
    if v := substrate.get("backend"):
        cfg.backend = _backend(v)
    if v := substrate.get("log_level"):
        cfg.log_level = str(v)

    # ── Gateways section ───────────────────────────────────
    gateways = raw.get("gateways", {})
    if v := gateways.get("public"):
        cfg.public_gateway = str(v)
    if v := gateways.get("private"):
        cfg.private_gateway = str(v)

    # ── Pinata section ─────────────────────────────────────
    pinata = raw.get("pinata", {})
    if v := pinata.get("api_url"):
        cfg.pinata_api_url = str(v)
    if v := pinata.get("api_key"):
        cfg.pinata_key = str(v)
    if v := pinata.get("api_secret"):
        cfg.pinata_secret = str(v)
    if v := pinata.get("jwt"):
        cfg.pinata_jwt = str(v)
    if v := pinata.get("request_timeout"):
        cfg.request_timeout = int(v)

    # ── Storage section ────────────────────────────────────
    storage = raw.get("storage", {})
    if v := storage.get("db_path"):
        cfg.db_path = str(v)

    # ── Environment variable overrides (highest priority) ──
    if client := os.environ.get(f"{env_prefix}CLIENT"):
        cfg.client = client
    if backend := os.environ.get(f"{env_prefix}BACKEND"):
        cfg.backend = _backend(backend)
    if key := os.environ.get(f"{env_prefix}PINATA_KEY"):
        cfg.pinata_key = key
    if secret := os.environ.get(f"{env_prefix}PINATA_SECRET"):
        cfg.pinata_secret = secret
    if jwt := os.environ.get(f"{env_prefix}PINATA_JWT"):
        cfg.pinata_jwt = jwt
    if public := os.environ.get(f"{env_prefix}PUBLIC_GATEWAY"):
        cfg.public_gateway = public
    if private := os.environ.get(f"{env_prefix}PRIVATE_GATEWAY"):
        cfg.private_gateway = private
    if db_path := os.environ.get(f"{env_prefix}DB_PATH"):
        cfg.db_path = db_path

    # Expand ~ in paths
    if cfg.db_path != ":memory:":
        cfg.db_path = str(Path(cfg.db_path).expanduser())

    return cfg


def _backend(value: str) -> BackendKind:
    try:
        return BackendKind(str(value).lower())
    except ValueError as exc:
        choices = ", ".join(b.value for b in BackendKind)
        raise ConfigurationError(f"Unknown backend {value!r} (expected one of: {choices})") from exc
