from __future__ import annotations

import os
from pathlib import Path
from types import SimpleNamespace

from hypothesis import given
from hypothesis import strategies as st

from hashindex.config import HashIndexConfig
from hashindex.filters import EntryFilter, build_entry_filter, file_extension
from hashindex.lister import (
    creation_time,
    list_directory,
    listing_totals,
    scan_directory,
    sort_entries,
)
from hashindex.models import DirEntryMeta, SortKey, SortOrder
from tests.conftest import BASE_MTIME, write_file


def _names(entries: list[DirEntryMeta]) -> list[str]:
    return [entry.name for entry in entries]


def test_default_listing_puts_directories_first(base_dir: Path) -> None:
    entries = list_directory(base_dir, EntryFilter())

    assert _names(entries) == ["sub", "a.txt"]
    assert entries[0].is_directory and entries[0].size_bytes == 0
    assert entries[1].size_bytes == 10
    assert entries[1].modified_at == BASE_MTIME


def test_hidden_names_and_dotfiles(base_dir: Path) -> None:
    write_file(base_dir / ".env", b"SECRET=1")
    write_file(base_dir / "robots.txt", b"User-agent: *")
    (base_dir / ".git").mkdir()

    hidden = EntryFilter(hidden_names=frozenset({"robots.txt"}))
    visible = EntryFilter(show_hidden=True, hidden_names=frozenset({"robots.txt"}))

    assert _names(list_directory(base_dir, hidden)) == ["sub", "a.txt"]
    shown = _names(list_directory(base_dir, visible))
    assert shown == [".git", "sub", ".env", "a.txt"]
    assert "." not in shown and ".." not in shown
    assert "robots.txt" not in shown


def test_blocked_extensions_only_apply_to_files(base_dir: Path) -> None:
    write_file(base_dir / "index.PHP", b"<?php")
    write_file(base_dir / "run.sh", b"#!/bin/sh")
    (base_dir / "scripts.js").mkdir()

    entries = list_directory(base_dir, EntryFilter(blocked_extensions=frozenset({"php", "sh", "js"})))

    assert _names(entries) == ["scripts.js", "sub", "a.txt"]


def test_config_filter_hides_own_files(config: HashIndexConfig, base_dir: Path) -> None:
    write_file(base_dir / ".hashindex.json", b"{}")
    write_file(base_dir / "logo.png", b"png")
    write_file(base_dir / "favicon.ico", b"ico")
    shown = HashIndexConfig(base_dir=config.base_dir, show_hidden=True)

    names = _names(list_directory(base_dir, build_entry_filter(shown)))

    assert ".hashindex.json" not in names
    assert "logo.png" not in names
    assert "favicon.ico" not in names
    assert names == ["sub", "a.txt"]


def test_directories_can_be_omitted(base_dir: Path) -> None:
    entries = list_directory(base_dir, EntryFilter(), show_directories=False)

    assert _names(entries) == ["a.txt"]


def test_dangling_symlink_is_skipped(base_dir: Path) -> None:
    os.symlink(base_dir / "gone.txt", base_dir / "broken.txt")
    os.symlink(base_dir / "sub", base_dir / "alias")

    entries = scan_directory(base_dir, EntryFilter())

    assert _names(entries) == ["a.txt", "alias", "sub"]
    alias = entries[1]
    assert alias.is_symlink and alias.is_directory


def test_creation_time_falls_back_to_mtime() -> None:
    assert creation_time(SimpleNamespace(st_mtime=5.0)) == 5.0
    assert creation_time(SimpleNamespace(st_mtime=5.0, st_birthtime=0)) == 5.0
    assert creation_time(SimpleNamespace(st_mtime=5.0, st_birthtime=3.0)) == 3.0


def test_sort_by_size_and_modified(base_dir: Path) -> None:
    write_file(base_dir / "big.bin", b"x" * 100, BASE_MTIME - 100)
    write_file(base_dir / "Zero.txt", b"", BASE_MTIME + 100)

    by_size = list_directory(base_dir, EntryFilter(), key=SortKey.SIZE)
    by_size_desc = list_directory(base_dir, EntryFilter(), key=SortKey.SIZE, order=SortOrder.DESC)
    by_mtime = list_directory(base_dir, EntryFilter(), key=SortKey.MODIFIED)
    by_name_flat = list_directory(base_dir, EntryFilter(), directories_first=False)

    assert _names(by_size) == ["sub", "Zero.txt", "a.txt", "big.bin"]
    assert _names(by_size_desc) == ["sub", "big.bin", "a.txt", "Zero.txt"]
    assert _names(by_mtime) == ["sub", "big.bin", "a.txt", "Zero.txt"]
    assert _names(by_name_flat) == ["a.txt", "big.bin", "sub", "Zero.txt"]


def test_listing_totals_ignore_directories(base_dir: Path) -> None:
    write_file(base_dir / "more.txt", b"12345")

    assert listing_totals(list_directory(base_dir, EntryFilter())) == (2, 15)


def test_file_extension() -> None:
    assert file_extension("a.TAR.GZ") == "gz"
    assert file_extension("README") == ""
    assert file_extension(".bashrc") == "bashrc"
    assert file_extension("trailing.") == ""


# =============================================================================
# Property: ordering invariants
# =============================================================================

_entries = st.lists(
    st.builds(
        DirEntryMeta,
        name=st.text(alphabet="abcXYZ", min_size=1, max_size=4),
        is_directory=st.booleans(),
        is_symlink=st.just(False),
        size_bytes=st.integers(min_value=0, max_value=5),
        modified_at=st.integers(min_value=0, max_value=3).map(float),
        created_at=st.just(0.0),
    ),
    max_size=12,
)


@given(entries=_entries, key=st.sampled_from(list(SortKey)), order=st.sampled_from(list(SortOrder)))
def test_directories_always_precede_files(entries, key, order) -> None:
    ordered = sort_entries(entries, key, order, directories_first=True)

    flags = [entry.is_directory for entry in ordered]
    assert flags == sorted(flags, reverse=True)
    assert sorted(map(id, ordered)) == sorted(map(id, entries))


@given(entries=_entries, key=st.sampled_from([SortKey.SIZE, SortKey.MODIFIED]))
def test_sorts_are_stable_and_reversible(entries, key) -> None:
    attr = "size_bytes" if key is SortKey.SIZE else "modified_at"
    asc = sort_entries(entries, key, SortOrder.ASC, directories_first=False)
    desc = sort_entries(entries, key, SortOrder.DESC, directories_first=False)

    assert [getattr(e, attr) for e in desc] == [getattr(e, attr) for e in reversed(asc)]
    for ordered in (asc, desc):
        for value in {getattr(e, attr) for e in entries}:
            same = [e for e in ordered if getattr(e, attr) == value]
            original = [e for e in entries if getattr(e, attr) == value]
            assert [id(e) for e in same] == [id(e) for e in original]
