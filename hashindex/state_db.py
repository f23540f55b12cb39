from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

import aiosqlite

from hashindex.errors import CacheStoreUnavailable

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS hash_cache (
    fingerprint TEXT PRIMARY KEY,
    payload TEXT NOT NULL,
    created_at INTEGER NOT NULL
);
"""

# Seconds to wait on a locked database before giving up.
BUSY_TIMEOUT = 30.0


async def ensure_db(db_path: Path) -> None:
    try:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(db_path, timeout=BUSY_TIMEOUT) as db:
            await db.execute(SCHEMA_SQL)
            await db.commit()
    except (OSError, sqlite3.Error) as exc:
        raise CacheStoreUnavailable(f"Cannot create hash cache at {db_path}: {exc}") from exc
    logger.debug("Hash cache ready at %s", db_path)


async def load_payload(db_path: Path, fingerprint: str) -> str | None:
    async with aiosqlite.connect(db_path, timeout=BUSY_TIMEOUT) as db:
        cursor = await db.execute(
            "SELECT payload FROM hash_cache WHERE fingerprint = ?",
            (fingerprint,),
        )
        row = await cursor.fetchone()
        await cursor.close()
    if row is None:
        return None
    return str(row[0])


async def store_payload(db_path: Path, fingerprint: str, payload: str) -> None:
    # Payloads are deterministic per fingerprint, so a racing writer replacing
    # the row stores identical content.
    async with aiosqlite.connect(db_path, timeout=BUSY_TIMEOUT) as db:
        await db.execute(
            """
            INSERT OR REPLACE INTO hash_cache (fingerprint, payload, created_at)
            VALUES (?, ?, strftime('%s','now'))
            """,
            (fingerprint, payload),
        )
        await db.commit()


async def count_records(db_path: Path) -> int:
    async with aiosqlite.connect(db_path, timeout=BUSY_TIMEOUT) as db:
        cursor = await db.execute("SELECT COUNT(*) FROM hash_cache")
        row = await cursor.fetchone()
        await cursor.close()
    return int(row[0]) if row else 0
