"""Turn user-supplied relative paths into traversal-safe filesystem locations."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from hashindex.config import HashIndexConfig
from hashindex.errors import ErrorKind, Rejection
from hashindex.models import PathMode, ResolvedPath

logger = logging.getLogger(__name__)

_DOT_RUN = re.compile(r"\.\.+")


class InvalidPathInput(ValueError):
    pass


def sanitize_path(raw: str) -> str:
    """Normalize a raw request path to ``a/b/c`` form relative to the base.

    Runs of two or more dots are removed so ``..`` can never climb, while
    single dots inside file names survive. Backslashes count as separators.
    """
    if "\0" in raw:
        raise InvalidPathInput("Path contains a NUL byte.")
    value = raw.replace("\\", "/").strip("/")
    value = _DOT_RUN.sub("", value)
    parts = [part for part in value.split("/") if part and part != "."]
    return "/".join(parts)


class PathResolver:
    def __init__(self, base_dir: Path, *, follow_root_symlinks: bool = True) -> None:
        self._base = Path(base_dir).resolve()
        self._follow_root_symlinks = follow_root_symlinks

    @classmethod
    def from_config(cls, config: HashIndexConfig) -> "PathResolver":
        return cls(config.base_path, follow_root_symlinks=config.follow_root_symlinks)

    @property
    def base_dir(self) -> Path:
        return self._base

    def _reject(self, kind: ErrorKind, raw: str, message: str) -> Rejection:
        logger.debug("Rejected %r (%s): %s", raw, kind.value, message)
        return Rejection(kind, message)

    def resolve(self, raw: str | None, mode: PathMode) -> ResolvedPath | Rejection:
        try:
            relative = sanitize_path(raw or "")
        except InvalidPathInput as exc:
            return self._reject(ErrorKind.INVALID_INPUT, raw or "", str(exc))

        requested = self._base / relative if relative else self._base

        via_root_symlink = False
        if relative and self._follow_root_symlinks:
            first_segment = self._base / relative.split("/", 1)[0]
            via_root_symlink = first_segment.is_symlink()

        try:
            canonical = requested.resolve(strict=True)
        except (FileNotFoundError, NotADirectoryError):
            return self._reject(ErrorKind.NOT_FOUND, raw or "", f"Not found: /{relative}")
        except (OSError, RuntimeError) as exc:
            # RuntimeError covers symlink loops on older interpreters.
            return self._reject(ErrorKind.NOT_FOUND, raw or "", f"Cannot resolve /{relative}: {exc}")

        if not via_root_symlink and not canonical.is_relative_to(self._base):
            return self._reject(
                ErrorKind.TRAVERSAL, raw or "", f"Path escapes base directory: /{relative}"
            )

        if mode is PathMode.DIRECTORY and not canonical.is_dir():
            return self._reject(ErrorKind.NOT_FOUND, raw or "", f"Not a directory: /{relative}")
        if mode is PathMode.FILE and not canonical.is_file():
            return self._reject(ErrorKind.NOT_FOUND, raw or "", f"Not a file: /{relative}")

        return ResolvedPath(
            path=canonical,
            relative=relative,
            is_directory=mode is PathMode.DIRECTORY,
            is_symlink=requested.is_symlink(),
            via_root_symlink=via_root_symlink,
        )
