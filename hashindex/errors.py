from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    TRAVERSAL = "traversal"
    NOT_FOUND = "not_found"
    OPEN_FAILED = "open_failed"
    READ_FAILED = "read_failed"
    CACHE_CORRUPT = "cache_corrupt"


# Traversal is reported as not-found, the same as a missing path.
_STATUS_BY_KIND = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.TRAVERSAL: 404,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.OPEN_FAILED: 500,
    ErrorKind.READ_FAILED: 500,
    ErrorKind.CACHE_CORRUPT: 500,
}


@dataclass(frozen=True, slots=True)
class Rejection:
    kind: ErrorKind
    message: str

    @property
    def status(self) -> int:
        return _STATUS_BY_KIND[self.kind]


class HashIndexError(Exception):
    """Base class for hashindex failures."""


class HashComputeError(HashIndexError):
    def __init__(self, kind: ErrorKind, path: Path, detail: str = "") -> None:
        self.kind = kind
        self.path = path
        self.detail = detail
        verb = "open" if kind is ErrorKind.OPEN_FAILED else "read"
        message = f"Failed to {verb} file: {path}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)

    def to_rejection(self) -> Rejection:
        return Rejection(self.kind, str(self))


class CacheStoreUnavailable(HashIndexError):
    """Raised at startup when the hash cache store cannot be created."""
