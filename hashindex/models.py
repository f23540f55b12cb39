from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class PathMode(str, Enum):
    DIRECTORY = "directory"
    FILE = "file"


class SortKey(str, Enum):
    NAME = "name"
    MODIFIED = "modified"
    SIZE = "size"

    @classmethod
    def parse(cls, value: str | None) -> "SortKey":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.NAME


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: str | None) -> "SortOrder":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.ASC


@dataclass(frozen=True, slots=True)
class ResolvedPath:
    """An existing, typed location accepted by the resolver.

    ``path`` is canonical (symlinks resolved). ``relative`` is the sanitized
    request relative to the base directory and resolves back to ``path``.
    """

    path: Path
    relative: str
    is_directory: bool
    is_symlink: bool
    via_root_symlink: bool = False

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True, slots=True)
class DirEntryMeta:
    name: str
    is_directory: bool
    is_symlink: bool
    size_bytes: int
    modified_at: float
    created_at: float


@dataclass(frozen=True, slots=True)
class HashRecord:
    crc32: str
    md5: str
    sha1: str


@dataclass(slots=True)
class ListingResult:
    entries: list[DirEntryMeta]
    total_file_count: int
    total_size_bytes: int
    folder: str
    display_path: str
    parent: str | None
    sort: SortKey
    order: SortOrder
    directory_modified_at: float | None = None
    directory_created_at: float | None = None


@dataclass(slots=True)
class HashCheckResult:
    file_name: str
    relative_path: str
    file_size_bytes: int
    crc32: str
    md5: str
    sha1: str
    cached: bool = False
