from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from hashindex.browse_service import BrowseService
from hashindex.config import HashIndexConfig, config_path, load_config, save_config
from hashindex.errors import CacheStoreUnavailable, Rejection
from hashindex.hash_ui import PROGRESS_THRESHOLD_BYTES, HashProgressUI
from hashindex.models import HashCheckResult, ListingResult, PathMode, SortKey, SortOrder
from hashindex.state_db import ensure_db


app = typer.Typer(help="hashindex CLI")
console = Console()

SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def humanize_filesize(size: float, decimals: int = 0) -> str:
    factor = 0
    while size >= 1024 and factor < len(SIZE_UNITS) - 1:
        size /= 1024
        factor += 1
    return f"{size:.{decimals}f} {SIZE_UNITS[factor]}"


def render_template(template: str, **values: object) -> str:
    result = template
    for key, value in values.items():
        result = result.replace("{{" + key + "}}", str(value))
    return result


def format_timestamp(timestamp: float | None, fmt: str) -> str:
    if timestamp is None:
        return "-"
    return datetime.fromtimestamp(timestamp).strftime(fmt)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    _configure_logging(verbose)


def _render_rejection(rejection: Rejection) -> None:
    if rejection.status == 400:
        label = "Invalid request"
    elif rejection.status >= 500:
        label = "Server error"
    else:
        label = "Not found"
    console.print(f"[red]{label}:[/red] {rejection.message}")


def _render_listing(config: HashIndexConfig, result: ListingResult) -> None:
    title = render_template(config.title_template, path=result.display_path)
    subtitle = render_template(
        config.subtitle_template,
        files=result.total_file_count,
        size=humanize_filesize(result.total_size_bytes, config.size_decimals),
    )

    table = Table(title=title, caption=subtitle)
    table.add_column("Name")
    table.add_column("Last Modified")
    table.add_column("Size", justify="right")
    table.add_column("Created")

    if result.parent is not None:
        table.add_row(Text("..", style="bold"), "-", "-", "-")

    for entry in result.entries:
        name = Text(entry.name + ("/" if entry.is_directory else ""))
        if entry.is_directory:
            name.stylize("bold blue")
        if entry.is_symlink:
            name.stylize("italic")
        table.add_row(
            name,
            format_timestamp(entry.modified_at, config.date_format),
            "-" if entry.is_directory else humanize_filesize(entry.size_bytes, config.size_decimals),
            format_timestamp(entry.created_at, config.date_format),
        )

    console.print(table)
    console.print(
        f"Created: {format_timestamp(result.directory_created_at, config.date_format)}"
        f" | Last Modified: {format_timestamp(result.directory_modified_at, config.date_format)}",
        style="dim",
    )


def _render_hash(result: HashCheckResult, config: HashIndexConfig) -> None:
    table = Table(title=f"Hash Check for {result.file_name}", show_header=False)
    table.add_column("Algorithm", style="bold")
    table.add_column("Digest")
    table.add_row("CRC32", result.crc32)
    table.add_row("MD5", result.md5)
    table.add_row("SHA-1", result.sha1)
    console.print(table)
    source = "cache" if result.cached else "computed"
    console.print(
        f"{humanize_filesize(result.file_size_bytes, config.size_decimals)} ({source})", style="dim"
    )


def _load_config_or_none() -> HashIndexConfig | None:
    try:
        return load_config()
    except FileNotFoundError as exc:
        console.print(f"[red]{exc}[/red]")
    except ValueError as exc:
        console.print(f"[red]Invalid config:[/red] {exc}")
    return None


async def _init_async(base_dir: Path) -> int:
    root = base_dir.expanduser().resolve()
    if not root.is_dir():
        console.print(f"[red]Base directory does not exist: {root}[/red]")
        return 1

    config = HashIndexConfig(base_dir=str(root))
    try:
        await ensure_db(config.cache_db_path)
    except CacheStoreUnavailable as exc:
        console.print(f"[red]{exc}[/red]")
        return 1

    path = save_config(config)
    console.print(f"[green]Initialized hashindex[/green] for {root}")
    console.print(f"Config: {path}")
    console.print(f"Hash cache: {config.cache_db_path}")
    return 0


@app.command()
def init(
    base_dir: str | None = typer.Argument(
        None,
        help="Directory to serve. Defaults to the current directory.",
    ),
) -> None:
    """Write a hashindex config in the current directory."""
    target = Path(base_dir) if base_dir else Path.cwd()
    raise typer.Exit(code=asyncio.run(_init_async(target)))


@app.command("ls")
def list_folder(
    folder: str = typer.Argument("", help="Folder relative to the base directory."),
    sort: str = typer.Option("name", "--sort", help="Sort key: name, modified or size."),
    order: str = typer.Option("asc", "--order", help="Sort order: asc or desc."),
) -> None:
    """List a folder under the base directory."""
    if sort.lower().strip() not in {key.value for key in SortKey}:
        console.print("[red]Invalid --sort value. Use 'name', 'modified' or 'size'.[/red]")
        raise typer.Exit(code=1)
    if order.lower().strip() not in {value.value for value in SortOrder}:
        console.print("[red]Invalid --order value. Use 'asc' or 'desc'.[/red]")
        raise typer.Exit(code=1)

    config = _load_config_or_none()
    if config is None:
        raise typer.Exit(code=1)

    result = BrowseService(config).browse(folder, sort, order)
    if isinstance(result, Rejection):
        _render_rejection(result)
        raise typer.Exit(code=1)
    _render_listing(config, result)


async def _hash_async(config: HashIndexConfig, file_param: str) -> int:
    try:
        service = await BrowseService.create(config)
    except CacheStoreUnavailable as exc:
        console.print(f"[red]{exc}[/red]")
        return 1

    resolved = service.resolver.resolve(file_param, PathMode.FILE)
    size = 0
    if not isinstance(resolved, Rejection):
        try:
            size = resolved.path.stat().st_size
        except OSError:
            size = 0

    if size > PROGRESS_THRESHOLD_BYTES:
        with HashProgressUI(file_param, size, console=console) as progress:
            result = await service.check_hash(file_param, on_chunk=progress.advance)
            if not isinstance(result, Rejection):
                progress.complete()
    else:
        result = await service.check_hash(file_param)

    if isinstance(result, Rejection):
        _render_rejection(result)
        return 1
    _render_hash(result, config)
    return 0


@app.command("hash")
def hash_file(
    path: str = typer.Argument(..., help="File relative to the base directory."),
) -> None:
    """Show CRC32, MD5 and SHA-1 digests for a file, using the hash cache."""
    config = _load_config_or_none()
    if config is None:
        raise typer.Exit(code=1)
    raise typer.Exit(code=asyncio.run(_hash_async(config, path)))


@app.command("config")
def show_config() -> None:
    """Print the active configuration."""
    config = _load_config_or_none()
    if config is None:
        raise typer.Exit(code=1)
    table = Table(title=str(config_path()))
    table.add_column("Key", style="bold")
    table.add_column("Value")
    table.add_row("base_dir", str(config.base_path))
    table.add_row("cache_db", str(config.cache_db_path))
    table.add_row("show_hidden", str(config.show_hidden))
    table.add_row("follow_root_symlinks", str(config.follow_root_symlinks))
    table.add_row("hidden_names", ", ".join(sorted(config.hidden_names)))
    table.add_row("blocked_extensions", ", ".join(sorted(config.blocked_extensions)))
    console.print(table)
