"""CRC32/MD5/SHA-1 digests with a persistent cache keyed by file identity.

A record is addressed by a fingerprint of the file's canonical path and its
modification time in whole seconds. Touching a file changes the fingerprint,
so old records are never consulted again; they are also never deleted.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import os
import sqlite3
import zlib
from pathlib import Path
from typing import Callable

from hashindex.errors import ErrorKind, HashComputeError
from hashindex.models import HashRecord, ResolvedPath
from hashindex.state_db import ensure_db, load_payload, store_payload

logger = logging.getLogger(__name__)

LARGE_FILE_THRESHOLD_BYTES = 1024 * 1024 * 1024
LARGE_CHUNK_SIZE = 1024 * 1024
SMALL_CHUNK_SIZE = 32 * 1024


def fingerprint(path: Path, mtime_seconds: float) -> str:
    # Raw filesystem bytes, so names that are not valid UTF-8 still hash.
    data = os.fsencode(path) + str(int(mtime_seconds)).encode("ascii")
    return hashlib.sha256(data).hexdigest()


def chunk_size_for(size: int) -> int:
    return LARGE_CHUNK_SIZE if size > LARGE_FILE_THRESHOLD_BYTES else SMALL_CHUNK_SIZE


def compute_digests(
    path: Path,
    chunk_size: int = SMALL_CHUNK_SIZE,
    *,
    on_chunk: Callable[[int], None] | None = None,
) -> HashRecord:
    crc = 0
    md5 = hashlib.md5()
    sha1 = hashlib.sha1()

    try:
        fh = path.open("rb")
    except OSError as exc:
        raise HashComputeError(ErrorKind.OPEN_FAILED, path, exc.strerror or str(exc)) from exc

    with fh:
        while True:
            try:
                chunk = fh.read(chunk_size)
            except OSError as exc:
                raise HashComputeError(ErrorKind.READ_FAILED, path, exc.strerror or str(exc)) from exc
            if not chunk:
                break
            crc = zlib.crc32(chunk, crc)
            md5.update(chunk)
            sha1.update(chunk)
            if on_chunk is not None:
                on_chunk(len(chunk))

    return HashRecord(crc32=f"{crc & 0xFFFFFFFF:08x}", md5=md5.hexdigest(), sha1=sha1.hexdigest())


def encode_record(record: HashRecord) -> str:
    return json.dumps({"crc32": record.crc32, "md5": record.md5, "sha1": record.sha1})


def decode_record(payload: str) -> HashRecord | None:
    """Parse a stored payload, returning ``None`` when it is unusable."""
    try:
        data = json.loads(payload)
    except (TypeError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    values = [data.get(key) for key in ("crc32", "md5", "sha1")]
    if not all(isinstance(value, str) and value for value in values):
        return None
    return HashRecord(crc32=values[0], md5=values[1], sha1=values[2])


class HashCache:
    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)

    @property
    def db_path(self) -> Path:
        return self._db_path

    async def open(self) -> "HashCache":
        """Create the backing store; raises ``CacheStoreUnavailable``."""
        await ensure_db(self._db_path)
        return self

    async def lookup(self, key: str) -> HashRecord | None:
        """Return the stored record, or ``None`` on a miss.

        An unreadable store or an unparseable record counts as a miss.
        """
        try:
            payload = await load_payload(self._db_path, key)
        except sqlite3.Error as exc:
            logger.warning("Hash cache lookup failed for %s: %s", key, exc)
            return None
        if payload is None:
            return None
        record = decode_record(payload)
        if record is None:
            logger.warning("Discarding unparseable hash cache record %s", key)
        return record

    async def get_or_compute(
        self,
        file: ResolvedPath | Path,
        *,
        stat: os.stat_result | None = None,
        on_chunk: Callable[[int], None] | None = None,
    ) -> tuple[HashRecord, bool]:
        """Return ``(record, cached)`` for ``file``.

        ``stat`` may be passed when the caller already has it. Raises
        ``HashComputeError`` when the file cannot be opened or read; in that
        case nothing is written to the cache. A failed cache write is logged
        and the computed record is still returned.
        """
        path = file.path if isinstance(file, ResolvedPath) else Path(file)
        if stat is None:
            try:
                stat = path.stat()
            except OSError as exc:
                raise HashComputeError(ErrorKind.OPEN_FAILED, path, exc.strerror or str(exc)) from exc

        key = fingerprint(path, stat.st_mtime)
        cached = await self.lookup(key)
        if cached is not None:
            logger.debug("Hash cache hit for %s", path)
            return cached, True

        logger.debug("Hash cache miss for %s, hashing %d bytes", path, stat.st_size)
        record = await asyncio.to_thread(
            compute_digests, path, chunk_size_for(stat.st_size), on_chunk=on_chunk
        )
        try:
            await store_payload(self._db_path, key, encode_record(record))
        except sqlite3.Error as exc:
            logger.warning("Hash cache write failed for %s: %s", path, exc)
        return record, False
