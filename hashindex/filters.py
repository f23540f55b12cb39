from __future__ import annotations

from dataclasses import dataclass

from hashindex.config import HashIndexConfig


def file_extension(name: str) -> str:
    """Lowercased text after the last dot, or ``""`` when there is none."""
    if "." not in name:
        return ""
    return name.rpartition(".")[2].lower()


@dataclass(frozen=True, slots=True)
class EntryFilter:
    show_hidden: bool = False
    hidden_names: frozenset[str] = frozenset()
    blocked_extensions: frozenset[str] = frozenset()

    def is_hidden_name(self, name: str) -> bool:
        if name in (".", ".."):
            return True
        if name in self.hidden_names:
            return True
        return not self.show_hidden and name.startswith(".")

    def is_blocked(self, name: str) -> bool:
        # Display-layer safety net only; the resolver does not consult it.
        return file_extension(name) in self.blocked_extensions

    def matches(self, name: str, is_directory: bool) -> bool:
        if self.is_hidden_name(name):
            return False
        if not is_directory and self.is_blocked(name):
            return False
        return True


def build_entry_filter(config: HashIndexConfig) -> EntryFilter:
    return EntryFilter(
        show_hidden=config.show_hidden,
        hidden_names=frozenset(config.hidden_names) | config.excluded_names,
        blocked_extensions=frozenset(ext.lower().lstrip(".") for ext in config.blocked_extensions),
    )
