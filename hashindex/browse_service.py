from __future__ import annotations

import logging
from typing import Callable

from hashindex.config import HashIndexConfig
from hashindex.errors import ErrorKind, HashComputeError, Rejection
from hashindex.filters import EntryFilter, build_entry_filter, file_extension
from hashindex.hash_cache import HashCache
from hashindex.lister import creation_time, list_directory, listing_totals, safe_stat
from hashindex.models import (
    HashCheckResult,
    ListingResult,
    PathMode,
    SortKey,
    SortOrder,
)
from hashindex.resolver import PathResolver

logger = logging.getLogger(__name__)


def parent_folder(folder: str) -> str | None:
    if not folder:
        return None
    return folder.rpartition("/")[0]


class BrowseService:
    """Entry point for listing and hash-check requests."""

    def __init__(
        self,
        config: HashIndexConfig,
        *,
        resolver: PathResolver | None = None,
        cache: HashCache | None = None,
        entry_filter: EntryFilter | None = None,
    ) -> None:
        self._config = config
        self._resolver = resolver or PathResolver.from_config(config)
        self._cache = cache or HashCache(config.cache_db_path)
        self._filter = entry_filter or build_entry_filter(config)

    @classmethod
    async def create(cls, config: HashIndexConfig) -> "BrowseService":
        """Build a service with its cache store ready for use."""
        cache = await HashCache(config.cache_db_path).open()
        return cls(config, cache=cache)

    @property
    def config(self) -> HashIndexConfig:
        return self._config

    @property
    def cache(self) -> HashCache:
        return self._cache

    @property
    def resolver(self) -> PathResolver:
        return self._resolver

    def browse(
        self,
        folder: str | None = None,
        sort: str | SortKey | None = None,
        order: str | SortOrder | None = None,
    ) -> ListingResult | Rejection:
        config = self._config
        requested = folder if config.browse_directories and folder else config.browse_default
        sort_key = sort if isinstance(sort, SortKey) else SortKey.parse(sort)
        sort_order = order if isinstance(order, SortOrder) else SortOrder.parse(order)

        resolved = self._resolver.resolve(requested, PathMode.DIRECTORY)
        if isinstance(resolved, Rejection):
            return resolved

        try:
            entries = list_directory(
                resolved,
                self._filter,
                key=sort_key,
                order=sort_order,
                directories_first=config.directories_first,
                show_directories=config.show_directories,
            )
        except OSError as exc:
            logger.warning("Cannot scan %s: %s", resolved.path, exc)
            return Rejection(ErrorKind.READ_FAILED, f"Cannot read directory /{resolved.relative}")

        file_count, total_size = listing_totals(entries)
        stat = safe_stat(resolved.path)
        return ListingResult(
            entries=entries,
            total_file_count=file_count,
            total_size_bytes=total_size,
            folder=resolved.relative,
            display_path="/" + resolved.relative,
            parent=parent_folder(resolved.relative) if config.show_parent else None,
            sort=sort_key,
            order=sort_order,
            directory_modified_at=float(stat.st_mtime) if stat else None,
            directory_created_at=creation_time(stat) if stat else None,
        )

    async def check_hash(
        self,
        file_param: str | None,
        *,
        on_chunk: Callable[[int], None] | None = None,
    ) -> HashCheckResult | Rejection:
        resolved = self._resolver.resolve(file_param, PathMode.FILE)
        if isinstance(resolved, Rejection):
            return resolved

        if self._config.block_hash_of_blocked_extensions and self._filter.is_blocked(resolved.name):
            logger.debug("Refusing hash check of blocked extension %r", file_extension(resolved.name))
            return Rejection(ErrorKind.NOT_FOUND, f"Not a file: /{resolved.relative}")

        try:
            stat = resolved.path.stat()
        except FileNotFoundError:
            # Removed between resolution and hashing.
            return Rejection(ErrorKind.NOT_FOUND, f"Not a file: /{resolved.relative}")
        except OSError as exc:
            return HashComputeError(ErrorKind.OPEN_FAILED, resolved.path, str(exc)).to_rejection()

        try:
            record, cached = await self._cache.get_or_compute(
                resolved, stat=stat, on_chunk=on_chunk
            )
        except HashComputeError as exc:
            if isinstance(exc.__cause__, FileNotFoundError):
                return Rejection(ErrorKind.NOT_FOUND, f"Not a file: /{resolved.relative}")
            logger.warning("%s", exc)
            return exc.to_rejection()

        return HashCheckResult(
            file_name=resolved.name,
            relative_path=resolved.relative,
            file_size_bytes=int(stat.st_size),
            crc32=record.crc32,
            md5=record.md5,
            sha1=record.sha1,
            cached=cached,
        )
