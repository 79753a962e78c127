"""
Persistent key-value storage for snapshots and raw pages.

This module manages two folders below the data directory:

    data/snapshots/   subject_<courseId>.json   (previous run, diff baseline)
    data/pages/       <timestamp>_<suffix>.html (audit trail, write-only)

Every key maps to exactly one file. Values are plain strings; the
callers decide what they contain (serialized Subject or raw HTML).
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import List, Optional, Protocol
from urllib.parse import quote, unquote


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def put(self, key: str, value: str) -> None: ...

    def list(self, prefix: str = "") -> List[str]: ...


def default_data_dir() -> Path:
    """
    Return the default data directory inside the package.

    Using a function instead of a constant makes testing easier,
    because tests can pass their own directory.
    """
    base_dir = Path(__file__).resolve().parent
    return base_dir / "data"


class FileStore:
    """
    One file per key inside `directory`.

    Missing keys read as None. Any other read or write problem is raised
    to the caller, who decides how to report it.
    """

    def __init__(self, directory: str | Path, suffix: str = ".json") -> None:
        self.directory = Path(directory)
        self.suffix = suffix

    def _path(self, key: str) -> Path:
        # keys end up as file names: separators are percent-encoded
        if key in ("", ".", ".."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{quote(key, safe='')}{self.suffix}"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def put(self, key: str, value: str) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)

        # write next to the target first so a crash never leaves half a snapshot;
        # each writer gets its own temp file, the last replace wins
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def list(self, prefix: str = "") -> List[str]:
        if not self.directory.exists():
            return []
        keys = [
            unquote(p.name[: -len(self.suffix)] if self.suffix else p.name)
            for p in self.directory.glob(f"*{self.suffix}")
            if p.is_file() and not p.name.endswith(".tmp")
        ]
        return sorted(k for k in keys if k.startswith(prefix))


def snapshot_store(data_dir: str | Path | None = None) -> FileStore:
    base = Path(data_dir) if data_dir is not None else default_data_dir()
    return FileStore(base / "snapshots", suffix=".json")


def page_store(data_dir: str | Path | None = None) -> FileStore:
    base = Path(data_dir) if data_dir is not None else default_data_dir()
    return FileStore(base / "pages", suffix=".html")
