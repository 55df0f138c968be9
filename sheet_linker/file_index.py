"""Document folder listing and the key -> file index built from it."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from sheet_linker.errors import DiscoveryError, DuplicateKeyError
from sheet_linker.keys import is_valid_key, normalize_key

LOCK_FILE_PREFIX = "~$"


@dataclass(frozen=True)
class FileEntry:
    name: str
    stem: str

    @classmethod
    def from_name(cls, name: str) -> "FileEntry":
        return cls(name=name, stem=Path(name).stem)

    @property
    def key(self) -> str:
        return normalize_key(self.stem)


def is_document_file(path: Path) -> bool:
    if not path.is_file():
        return False
    return not path.name.startswith(".") and not path.name.startswith(LOCK_FILE_PREFIX)


def list_folder(folder: Path) -> list[FileEntry]:
    """Flat listing of the documents directly inside ``folder``, sorted by name."""
    if not folder.is_dir():
        raise DiscoveryError(f"Document folder not found: {folder}")
    return [FileEntry.from_name(path.name) for path in sorted(folder.iterdir()) if is_document_file(path)]


class FileIndex:
    def __init__(self, entries: dict[str, FileEntry]) -> None:
        self._entries = entries

    @classmethod
    def build(cls, entries: Iterable[FileEntry]) -> "FileIndex":
        index: dict[str, FileEntry] = {}
        for entry in entries:
            key = entry.key
            if not is_valid_key(key):
                continue
            existing = index.get(key)
            if existing is not None:
                raise DuplicateKeyError(key, existing.name, entry.name)
            index[key] = entry
        return cls(index)

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, key: str) -> FileEntry | None:
        return self._entries.get(key)

    def keys(self) -> set[str]:
        return set(self._entries)

    def extraneous(self, referenced: Iterable[str]) -> list[FileEntry]:
        unused = self.keys() - set(referenced)
        return sorted((self._entries[key] for key in unused), key=lambda entry: entry.name)
