"""Directory scanning, metadata collection and ordering for listings."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from hashindex.filters import EntryFilter
from hashindex.models import DirEntryMeta, ResolvedPath, SortKey, SortOrder

logger = logging.getLogger(__name__)


def creation_time(stat: os.stat_result) -> float:
    """Birth time when the platform exposes it, otherwise modification time."""
    birthtime = getattr(stat, "st_birthtime", None)
    if birthtime is not None and birthtime > 0:
        return float(birthtime)
    return float(stat.st_mtime)


def safe_stat(path: Path) -> os.stat_result | None:
    try:
        return path.stat()
    except OSError:
        return None


def _entry_meta(entry: os.DirEntry) -> DirEntryMeta:
    is_directory = entry.is_dir()
    is_symlink = entry.is_symlink()
    stat = entry.stat()
    return DirEntryMeta(
        name=entry.name,
        is_directory=is_directory,
        is_symlink=is_symlink,
        size_bytes=0 if is_directory else int(stat.st_size),
        modified_at=float(stat.st_mtime),
        created_at=creation_time(stat),
    )


def scan_directory(
    directory: ResolvedPath | Path,
    entry_filter: EntryFilter,
    *,
    show_directories: bool = True,
) -> list[DirEntryMeta]:
    """Collect metadata for the visible direct children of ``directory``.

    Entries are returned in name order, which is the scan order later sorts
    fall back on for ties. Children that fail to stat (dangling symlinks,
    entries removed mid-scan) are skipped.
    """
    path = directory.path if isinstance(directory, ResolvedPath) else Path(directory)
    entries: list[DirEntryMeta] = []

    with os.scandir(path) as iterator:
        for child in sorted(iterator, key=lambda item: item.name):
            if entry_filter.is_hidden_name(child.name):
                continue
            try:
                meta = _entry_meta(child)
            except OSError as exc:
                logger.debug("Skipping %s: %s", child.path, exc)
                continue
            if meta.is_directory and not show_directories:
                continue
            if not entry_filter.matches(meta.name, meta.is_directory):
                continue
            entries.append(meta)

    return entries


def _sort_value(entry: DirEntryMeta, key: SortKey):
    if key is SortKey.MODIFIED:
        return entry.modified_at
    if key is SortKey.SIZE:
        return entry.size_bytes
    return entry.name.lower()


def sort_entries(
    entries: list[DirEntryMeta],
    key: SortKey = SortKey.NAME,
    order: SortOrder = SortOrder.ASC,
    *,
    directories_first: bool = True,
) -> list[DirEntryMeta]:
    # Both passes are stable, so ties keep scan order and the directory
    # grouping survives a descending sort.
    ordered = sorted(
        entries,
        key=lambda entry: _sort_value(entry, key),
        reverse=order is SortOrder.DESC,
    )
    if directories_first:
        ordered.sort(key=lambda entry: not entry.is_directory)
    return ordered


def list_directory(
    directory: ResolvedPath | Path,
    entry_filter: EntryFilter,
    *,
    key: SortKey = SortKey.NAME,
    order: SortOrder = SortOrder.ASC,
    directories_first: bool = True,
    show_directories: bool = True,
) -> list[DirEntryMeta]:
    entries = scan_directory(directory, entry_filter, show_directories=show_directories)
    return sort_entries(entries, key, order, directories_first=directories_first)


def listing_totals(entries: list[DirEntryMeta]) -> tuple[int, int]:
    """Return ``(file_count, total_size_bytes)``; directories do not count."""
    files = [entry for entry in entries if not entry.is_directory]
    return len(files), sum(entry.size_bytes for entry in files)
