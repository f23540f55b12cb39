from __future__ import annotations

import os
from pathlib import Path

import pytest

from hashindex.config import HashIndexConfig

# Fixed timestamps keep name/modified/size orderings predictable.
BASE_MTIME = 1_700_000_000


def write_file(path: Path, content: bytes, mtime: int | None = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def base_dir(tmp_path: Path) -> Path:
    """Base directory holding ``a.txt`` (10 bytes) and ``sub/b.txt``."""
    base = tmp_path / "base"
    base.mkdir()
    write_file(base / "a.txt", b"0123456789", BASE_MTIME)
    write_file(base / "sub" / "b.txt", b"hello world", BASE_MTIME + 60)
    return base


@pytest.fixture
def outside_dir(tmp_path: Path) -> Path:
    outside = tmp_path / "outside"
    outside.mkdir()
    write_file(outside / "secret.txt", b"outside the base", BASE_MTIME)
    return outside


@pytest.fixture
def config(base_dir: Path, tmp_path: Path) -> HashIndexConfig:
    return HashIndexConfig(
        base_dir=str(base_dir),
        cache_db=str(tmp_path / "cache" / "hashindex.db"),
    )
