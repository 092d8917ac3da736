"""CLI entry point for pin_substrate."""

from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import Any

import click

from pin_substrate.config import load_config
from pin_substrate.errors import ConfigurationError, SubstrateError
from pin_substrate.models.config import SubstrateConfig
from pin_substrate.substrate import Substrate


def _require_client(cfg: SubstrateConfig) -> None:
    """Exit with error if no client identifier is configured."""
    if not cfg.client:
        click.echo("Error: No client identifier configured.", err=True)
        click.echo("Set PIN_SUBSTRATE_CLIENT or [substrate] client in config.", err=True)
        sys.exit(1)


def _echo_json(value: Any) -> None:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = dataclasses.asdict(value)
    elif isinstance(value, list):
        value = [
            dataclasses.asdict(v) if dataclasses.is_dataclass(v) else v for v in value
        ]
    click.echo(json.dumps(value, indent=2, default=str))


def _parse_kv(pairs: tuple[str, ...]) -> dict[str, Any]:
    """``key=value`` pairs; values that parse as JSON keep their JSON type."""
    result: dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {pair!r}", param_hint="--kv")
        try:
            result[key] = json.loads(raw)
        except json.JSONDecodeError:
            result[key] = raw
    return result


def _run(ctx: click.Context, op: Callable[[Substrate], Awaitable[Any]]) -> None:
    """Open the configured Substrate, run ``op`` and print its result as JSON."""
    cfg = load_config(ctx.obj["config_path"])
    _require_client(cfg)

    async def _main() -> Any:
        substrate = await Substrate.from_config(cfg)
        async with substrate:
            return await op(substrate)

    try:
        result = asyncio.run(_main())
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    except SubstrateError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)
    _echo_json(result)


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """pin-substrate - items and typed data records on a pinning service."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show configuration."""
    cfg = load_config(ctx.obj["config_path"])
    click.echo(f"Client:          {cfg.client or '(not set)'}")
    click.echo(f"Backend:         {cfg.backend.value}")
    click.echo(f"Public gateway:  {cfg.public_gateway or '(not set)'}")
    click.echo(f"Private gateway: {cfg.private_gateway or '(not set)'}")
    click.echo(f"Pinata API:      {cfg.pinata_api_url}")
    click.echo(f"Pinata auth:     {'***configured***' if (cfg.pinata_jwt or cfg.pinata_key) else '(not set)'}")
    click.echo(f"DB path:         {cfg.db_path}")


# ── Items ──────────────────────────────────────────────


@cli.command("create-item")
@click.argument("type", default="generic")
@click.option("--owner", default=None, help="Identifier of the owning principal")
@click.pass_context
def create_item(ctx: click.Context, type: str, owner: str | None) -> None:
    """Create an item and print its content hash."""
    _run(ctx, lambda s: s.create_item(type, owner))


@cli.command("get-item")
@click.argument("item_hash")
@click.option("--type", "type_", default=None, help="Require this item type")
@click.option("--raw", is_flag=True, help="Print the raw pin record")
@click.pass_context
def get_item(ctx: click.Context, item_hash: str, type_: str | None, raw: bool) -> None:
    """Look up an item by content hash."""
    _run(ctx, lambda s: s.get_item(item_hash, type_, resolve=not raw))


@cli.command()
@click.argument("type")
@click.option("--page", type=int, default=1)
@click.option("--limit", type=int, default=10)
@click.option("--owner", default=None)
@click.option("--kv", multiple=True, help="Metadata filter key=value (repeatable)")
@click.pass_context
def items(
    ctx: click.Context, type: str, page: int, limit: int, owner: str | None, kv: tuple[str, ...]
) -> None:
    """List items of a type."""
    keyvalues = _parse_kv(kv)
    _run(ctx, lambda s: s.get_items(type, page, limit, keyvalues, owner))


@cli.command("update-metadata")
@click.argument("item_hash")
@click.option("--kv", multiple=True, required=True, help="Metadata key=value (repeatable)")
@click.option("--overwrite", is_flag=True, help="Replace metadata instead of merging")
@click.pass_context
def update_metadata(
    ctx: click.Context, item_hash: str, kv: tuple[str, ...], overwrite: bool
) -> None:
    """Merge or replace an item's metadata."""
    keyvalues = _parse_kv(kv)
    _run(ctx, lambda s: s.update_item_metadata(item_hash, keyvalues, overwrite))


@cli.command("remove-item")
@click.argument("item_hash")
@click.option("--type", "types", multiple=True, help="Only remove these data types (repeatable)")
@click.pass_context
def remove_item(ctx: click.Context, item_hash: str, types: tuple[str, ...]) -> None:
    """Remove an item and its data records."""
    _run(ctx, lambda s: s.remove_item(item_hash, list(types) or None))


# ── Data ───────────────────────────────────────────────


@cli.command("add-data")
@click.argument("item_hash")
@click.argument("data_type")
@click.argument("data")
@click.option("--keep", is_flag=True, help="Keep previous records of this type")
@click.option("--search", default=None, help="Search tag")
@click.option("--kv", multiple=True, help="Extra metadata key=value (repeatable)")
@click.pass_context
def add_data(
    ctx: click.Context,
    item_hash: str,
    data_type: str,
    data: str,
    keep: bool,
    search: str | None,
    kv: tuple[str, ...],
) -> None:
    """Attach a JSON object (inline, or @path to a file) to an item."""
    if data.startswith("@"):
        with open(data[1:], encoding="utf-8") as f:
            data = f.read()
    try:
        body = json.loads(data)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"invalid JSON: {exc}", param_hint="DATA") from exc
    keyvalues = _parse_kv(kv)
    _run(ctx, lambda s: s.add_item_data(item_hash, data_type, body, keep, keyvalues, search))


@cli.command("get-data")
@click.argument("item_hash")
@click.argument("data_type")
@click.option("--raw", is_flag=True, help="Print the raw pin record")
@click.pass_context
def get_data(ctx: click.Context, item_hash: str, data_type: str, raw: bool) -> None:
    """Fetch the live data record of a type."""
    _run(ctx, lambda s: s.get_item_data(item_hash, data_type, resolve=not raw))


@cli.command("list-data")
@click.argument("item_hash")
@click.option("--type", "type_", default=None)
@click.option("--page", type=int, default=1)
@click.option("--limit", type=int, default=10)
@click.pass_context
def list_data(
    ctx: click.Context, item_hash: str, type_: str | None, page: int, limit: int
) -> None:
    """List an item's data records."""
    _run(ctx, lambda s: s.list_item_data(item_hash, type_, page, limit))


@cli.command("remove-data")
@click.argument("item_hash")
@click.argument("data_type")
@click.pass_context
def remove_data(ctx: click.Context, item_hash: str, data_type: str) -> None:
    """Remove the data record of a type."""
    _run(ctx, lambda s: s.remove_item_data(item_hash, data_type))


@cli.command()
@click.argument("item_hash")
@click.argument("data_types", nargs=-1, required=True)
@click.option("--search", default=None, help="Search tag for the index record")
@click.pass_context
def index(ctx: click.Context, item_hash: str, data_types: tuple[str, ...], search: str | None) -> None:
    """Build the index record of an item from the given data types."""
    _run(ctx, lambda s: s.index_item(item_hash, list(data_types), search))


@cli.command()
@click.argument("cid")
@click.option("--private", "private", is_flag=True, help="Use the private gateway")
@click.pass_context
def resolve(ctx: click.Context, cid: str, private: bool) -> None:
    """Fetch a CID through a gateway and print its JSON."""
    _run(ctx, lambda s: s.private_resolve(cid) if private else s.resolve(cid))
