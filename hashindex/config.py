from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, replace
from pathlib import Path


CONFIG_FILENAME = ".hashindex.json"
CACHE_DIRNAME = ".cache"
CACHE_DB_FILENAME = "hashindex.db"
BASE_DIR_ENV = "HASHINDEX_BASE_DIR"

DEFAULT_HIDDEN_NAMES = frozenset({"robots.txt", "favicon.ico"})
DEFAULT_BLOCKED_EXTENSIONS = frozenset(
    {"php", "php3", "php4", "php5", "html", "htm", "sh", "bat", "js", "css", "cmd", "png"}
)


@dataclass(frozen=True, slots=True)
class HashIndexConfig:
    base_dir: str
    cache_db: str = ""
    browse_directories: bool = True
    browse_default: str = ""
    show_hidden: bool = False
    show_directories: bool = True
    directories_first: bool = True
    show_parent: bool = True
    hidden_names: frozenset[str] = DEFAULT_HIDDEN_NAMES
    blocked_extensions: frozenset[str] = DEFAULT_BLOCKED_EXTENSIONS
    follow_root_symlinks: bool = True
    block_hash_of_blocked_extensions: bool = False
    title_template: str = "Index of {{path}}"
    subtitle_template: str = "{{files}} files, {{size}} total"
    date_format: str = "%d-%b-%Y %H:%M"
    size_decimals: int = 1

    @property
    def base_path(self) -> Path:
        return Path(self.base_dir).resolve()

    @property
    def cache_db_path(self) -> Path:
        if self.cache_db:
            return Path(self.cache_db).expanduser().resolve()
        return self.base_path / CACHE_DIRNAME / CACHE_DB_FILENAME

    @property
    def excluded_names(self) -> frozenset[str]:
        """Names never listed: our own config file and cache store."""
        names = {CONFIG_FILENAME}
        cache_db = self.cache_db_path
        if cache_db.parent.parent == self.base_path:
            names.add(cache_db.parent.name)
        elif cache_db.parent == self.base_path:
            names.add(cache_db.name)
        return frozenset(names)


def config_path(base_dir: Path | None = None) -> Path:
    return (base_dir or Path.cwd()).resolve() / CONFIG_FILENAME


def _lowered(values) -> frozenset[str]:
    return frozenset(str(value).strip().lower().lstrip(".") for value in values if str(value).strip())


def config_from_dict(data: dict) -> HashIndexConfig:
    if "base_dir" not in data:
        raise ValueError("Config is missing required key 'base_dir'.")

    defaults = HashIndexConfig(base_dir=str(data["base_dir"]))
    return replace(
        defaults,
        cache_db=str(data.get("cache_db", defaults.cache_db) or ""),
        browse_directories=bool(data.get("browse_directories", defaults.browse_directories)),
        browse_default=str(data.get("browse_default", defaults.browse_default) or ""),
        show_hidden=bool(data.get("show_hidden", defaults.show_hidden)),
        show_directories=bool(data.get("show_directories", defaults.show_directories)),
        directories_first=bool(data.get("directories_first", defaults.directories_first)),
        show_parent=bool(data.get("show_parent", defaults.show_parent)),
        hidden_names=frozenset(data.get("hidden_names", defaults.hidden_names)),
        blocked_extensions=_lowered(data.get("blocked_extensions", defaults.blocked_extensions)),
        follow_root_symlinks=bool(data.get("follow_root_symlinks", defaults.follow_root_symlinks)),
        block_hash_of_blocked_extensions=bool(
            data.get("block_hash_of_blocked_extensions", defaults.block_hash_of_blocked_extensions)
        ),
        title_template=str(data.get("title_template", defaults.title_template)),
        subtitle_template=str(data.get("subtitle_template", defaults.subtitle_template)),
        date_format=str(data.get("date_format", defaults.date_format)),
        size_decimals=int(data.get("size_decimals", defaults.size_decimals)),
    )


def load_config(base_dir: Path | None = None) -> HashIndexConfig:
    path = config_path(base_dir)
    if not path.exists():
        raise FileNotFoundError(
            f"Config file not found: {path}. Run `hx init` first."
        )

    with path.open("r", encoding="utf-8") as fh:
        data = json.load(fh)

    override = os.getenv(BASE_DIR_ENV, "").strip()
    if override:
        data["base_dir"] = override

    return config_from_dict(data)


def config_to_dict(config: HashIndexConfig) -> dict:
    payload = asdict(config)
    payload["hidden_names"] = sorted(config.hidden_names)
    payload["blocked_extensions"] = sorted(config.blocked_extensions)
    return payload


def save_config(config: HashIndexConfig, base_dir: Path | None = None) -> Path:
    path = config_path(base_dir)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(config_to_dict(config), fh, indent=2)
        fh.write("\n")
    return path
