"""SQLite implementation of the PinningBackend and ContentGateway protocols.

Emulates the Pinata pin API locally: JSON documents are content-addressed,
pins carry name + key/value metadata, and listings are filtered with the same
predicate model the remote service understands.
"""

from __future__ import annotations

import base64
import hashlib
import json
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite

from pin_substrate.errors import GatewayError, PinNotFoundError
from pin_substrate.gateway import clean_cid
from pin_substrate.models.records import PinList, PinReceipt, PinRow
from pin_substrate.query import Predicate, matches_all

log = logging.getLogger(__name__)

SCHEMA = """
-- One row per content hash; unpinned rows are kept for history
CREATE TABLE IF NOT EXISTS pins (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    cid TEXT NOT NULL UNIQUE,
    name TEXT,
    keyvalues TEXT NOT NULL DEFAULT '{}',
    content TEXT NOT NULL,
    size INTEGER NOT NULL,
    status TEXT NOT NULL DEFAULT 'pinned',
    seq INTEGER NOT NULL,
    date_pinned TEXT NOT NULL,
    date_unpinned TEXT
);
CREATE INDEX IF NOT EXISTS idx_pins_status ON pins(status);
CREATE INDEX IF NOT EXISTS idx_pins_seq ON pins(seq);
"""

# CIDv1 header: version 1, raw codec, sha2-256 multihash of 32 bytes
_CID_PREFIX = bytes([0x01, 0x55, 0x12, 0x20])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def canonical_json(content: Mapping[str, Any]) -> bytes:
    return json.dumps(content, sort_keys=True, separators=(",", ":")).encode("utf-8")


def compute_cid(payload: bytes) -> str:
    """Base32 CIDv1 (raw, sha2-256) of ``payload``."""
    digest = hashlib.sha256(payload).digest()
    encoded = base64.b32encode(_CID_PREFIX + digest).decode("ascii").lower().rstrip("=")
    return f"b{encoded}"


class SQLitePinStore:
    """SQLite-backed pin store for development, offline use and tests."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        assert self._db is not None, "Store not initialized. Call initialize() first."
        return self._db

    async def _next_seq(self) -> int:
        async with self.db.execute("SELECT COALESCE(MAX(seq), 0) + 1 AS seq FROM pins") as cur:
            row = await cur.fetchone()
            return row["seq"]

    # ── PinningBackend ─────────────────────────────────────

    async def pin_json(
        self,
        content: Mapping[str, Any],
        name: str | None = None,
        keyvalues: Mapping[str, Any] | None = None,
    ) -> PinReceipt:
        payload = canonical_json(content)
        cid = compute_cid(payload)
        now = _now()

        async with self.db.execute("SELECT status FROM pins WHERE cid=?", (cid,)) as cur:
            existing = await cur.fetchone()
        duplicate = existing is not None and existing["status"] == "pinned"

        await self.db.execute(
            "INSERT INTO pins (cid, name, keyvalues, content, size, status, seq, date_pinned)"
            " VALUES (?, ?, ?, ?, ?, 'pinned', ?, ?)"
            " ON CONFLICT(cid) DO UPDATE SET"
            " name=excluded.name, keyvalues=excluded.keyvalues, status='pinned',"
            " seq=excluded.seq, date_pinned=excluded.date_pinned, date_unpinned=NULL",
            (
                cid, name, json.dumps(dict(keyvalues or {})), payload.decode("utf-8"),
                len(payload), await self._next_seq(), now,
            ),
        )
        await self.db.commit()
        log.debug("Pinned %s (%s, %d bytes)", cid, name, len(payload))
        return PinReceipt(
            content_hash=cid, pin_size=len(payload), timestamp=now, is_duplicate=duplicate,
        )

    async def unpin(self, cid: str) -> None:
        cursor = await self.db.execute(
            "UPDATE pins SET status='unpinned', date_unpinned=?"
            " WHERE cid=? AND status='pinned'",
            (_now(), cid),
        )
        await self.db.commit()
        if cursor.rowcount == 0:
            raise PinNotFoundError(cid)
        log.debug("Unpinned %s", cid)

    async def pin_list(
        self,
        hash_contains: str | None = None,
        keyvalues: Mapping[str, Predicate] | None = None,
        name: str | None = None,
        page_limit: int = 10,
        page_offset: int = 0,
        status: str = "pinned",
    ) -> PinList:
        clauses: list[str] = []
        params: list[Any] = []
        if status != "all":
            clauses.append("status=?")
            params.append(status)
        if hash_contains:
            clauses.append("instr(cid, ?) > 0")
            params.append(hash_contains)
        if name:
            clauses.append("instr(name, ?) > 0")
            params.append(name)

        sql = "SELECT cid, name, keyvalues, size, date_pinned FROM pins"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY seq DESC, id DESC"

        async with self.db.execute(sql, params) as cur:
            rows = [_row_to_pin(row) async for row in cur]

        if keyvalues:
            rows = [row for row in rows if matches_all(keyvalues, row.keyvalues)]

        page = rows[page_offset:page_offset + page_limit]
        return PinList(count=len(rows), rows=page)

    async def hash_metadata(
        self,
        cid: str,
        keyvalues: Mapping[str, Any],
        name: str | None = None,
    ) -> None:
        async with self.db.execute(
            "SELECT name, keyvalues FROM pins WHERE cid=? AND status='pinned'", (cid,)
        ) as cur:
            row = await cur.fetchone()
        if row is None:
            raise PinNotFoundError(cid)

        merged = json.loads(row["keyvalues"])
        for key, value in keyvalues.items():
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = value

        await self.db.execute(
            "UPDATE pins SET name=?, keyvalues=? WHERE cid=?",
            (name or row["name"], json.dumps(merged), cid),
        )
        await self.db.commit()

    # ── ContentGateway ─────────────────────────────────────

    async def fetch_json(self, cid: str, template: str | None = None) -> Any:
        """Serve pinned content directly; ``template`` is not needed locally."""
        cid = clean_cid(cid)
        async with self.db.execute(
            "SELECT content FROM pins WHERE cid=? AND status='pinned'", (cid,)
        ) as cur:
            row = await cur.fetchone()
        if row is None:
            raise GatewayError(f"Content not available: {cid}")
        return json.loads(row["content"])


def _row_to_pin(row: aiosqlite.Row) -> PinRow:
    return PinRow(
        content_hash=row["cid"],
        name=row["name"],
        keyvalues=json.loads(row["keyvalues"]),
        size=row["size"],
        date_pinned=row["date_pinned"],
    )
