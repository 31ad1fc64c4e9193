"""Storage capability used by the plan store, plus a local-disk implementation."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from specdriven.io_utils import read_text, write_text


class Storage(Protocol):
    """Minimal read/write capability; paths are relative to the workspace root."""

    def exists(self, path: str) -> bool: ...

    def read_text(self, path: str) -> str: ...

    def write_text(self, path: str, content: str) -> None: ...

    def create_directory(self, path: str) -> None: ...


class LocalStorage:
    """:class:`Storage` backed by the local filesystem under *root*."""

    def __init__(self, root: Path | str = ".") -> None:
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        return self.root / path

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def read_text(self, path: str) -> str:
        return read_text(self._resolve(path))

    def write_text(self, path: str, content: str) -> None:
        write_text(self._resolve(path), content)

    def create_directory(self, path: str) -> None:
        self._resolve(path).mkdir(parents=True, exist_ok=True)
