from __future__ import annotations

import threading

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

PROGRESS_THRESHOLD_BYTES = 64 * 1024 * 1024


def shorten_path(path: str, max_len: int = 64) -> str:
    if len(path) <= max_len:
        return path
    keep = max_len - 3
    if keep <= 0:
        return path[:max_len]
    head = keep // 2
    tail = keep - head
    return f"{path[:head]}...{path[-tail:]}"


class HashProgressUI:
    """Rich progress bar fed by the hash computation's chunk callback.

    The callback fires on a worker thread, hence the lock.
    """

    def __init__(self, path: str, total_bytes: int, console: Console | None = None) -> None:
        self._lock = threading.Lock()
        self._total = total_bytes
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold]Hashing"),
            TextColumn("{task.fields[path]}"),
            BarColumn(),
            DownloadColumn(binary_units=True),
            TransferSpeedColumn(),
            TimeRemainingColumn(),
            console=console,
            transient=True,
            expand=True,
        )
        self._task_id: TaskID = self._progress.add_task(
            "hash", total=total_bytes, path=shorten_path(path)
        )

    def __enter__(self) -> "HashProgressUI":
        self._progress.__enter__()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._progress.__exit__(exc_type, exc, tb)

    def advance(self, delta: int) -> None:
        with self._lock:
            self._progress.update(self._task_id, advance=max(0, delta))

    def complete(self) -> None:
        with self._lock:
            self._progress.update(self._task_id, completed=self._total)
