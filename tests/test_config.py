from __future__ import annotations

import json
from pathlib import Path

import pytest

from hashindex.config import (
    BASE_DIR_ENV,
    CONFIG_FILENAME,
    DEFAULT_BLOCKED_EXTENSIONS,
    HashIndexConfig,
    config_from_dict,
    load_config,
    save_config,
)


def test_defaults_match_browser_settings(tmp_path: Path) -> None:
    config = HashIndexConfig(base_dir=str(tmp_path))

    assert config.base_path == tmp_path.resolve()
    assert config.cache_db_path == tmp_path.resolve() / ".cache" / "hashindex.db"
    assert config.hidden_names == frozenset({"robots.txt", "favicon.ico"})
    assert "php" in config.blocked_extensions
    assert config.directories_first and not config.show_hidden
    assert config.follow_root_symlinks
    assert not config.block_hash_of_blocked_extensions
    assert config.excluded_names == frozenset({CONFIG_FILENAME, ".cache"})


def test_save_then_load(tmp_path: Path) -> None:
    config = HashIndexConfig(
        base_dir=str(tmp_path),
        show_hidden=True,
        hidden_names=frozenset({"secret.txt"}),
        blocked_extensions=frozenset({"exe"}),
    )

    path = save_config(config, tmp_path)
    loaded = load_config(tmp_path)

    assert path == tmp_path.resolve() / CONFIG_FILENAME
    assert json.loads(path.read_text(encoding="utf-8"))["hidden_names"] == ["secret.txt"]
    assert loaded == config


def test_load_missing_config(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="hx init"):
        load_config(tmp_path)


def test_env_overrides_base_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    save_config(HashIndexConfig(base_dir=str(tmp_path)), tmp_path)
    other = tmp_path / "other"
    other.mkdir()
    monkeypatch.setenv(BASE_DIR_ENV, str(other))

    assert load_config(tmp_path).base_path == other.resolve()


def test_blocked_extensions_are_normalized() -> None:
    config = config_from_dict({"base_dir": "/srv", "blocked_extensions": [".EXE", " Bat ", ""]})

    assert config.blocked_extensions == frozenset({"exe", "bat"})
    assert config_from_dict({"base_dir": "/srv"}).blocked_extensions == DEFAULT_BLOCKED_EXTENSIONS


def test_missing_base_dir_is_rejected() -> None:
    with pytest.raises(ValueError, match="base_dir"):
        config_from_dict({"show_hidden": True})


def test_external_cache_is_not_excluded(tmp_path: Path) -> None:
    config = HashIndexConfig(base_dir=str(tmp_path / "base"), cache_db=str(tmp_path / "c" / "h.db"))

    assert config.excluded_names == frozenset({CONFIG_FILENAME})
