"""Filesystem access for the scaffolder.

Every directory and file the generators produce goes through ``FileWriter``.
Any ``OSError``, and any file that is not valid UTF-8, is fatal: it is
re-raised as ``ScaffoldError`` and whatever was already written stays on disk.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from create_go_app.errors import ScaffoldError


class FileWriter:
    """Creates directories and reads/writes text files.

    Calls are awaited one at a time by the generators; the blocking work is
    pushed to a thread so the event loop stays free for subprocess I/O.
    The writer remembers every file it wrote, in order, in ``written``.
    """

    def __init__(self) -> None:
        self.written: list[Path] = []

    async def ensure_dir(self, path: str | Path) -> Path:
        """Create *path* and its parents.  Existing directories are fine."""
        dir_path = Path(path)
        try:
            await asyncio.to_thread(dir_path.mkdir, parents=True, exist_ok=True)
        except OSError as exc:
            raise ScaffoldError("mkdir", f"cannot create directory {dir_path}: {exc}") from exc
        return dir_path

    async def write_file(self, path: str | Path, content: str) -> Path:
        """Replace the contents of *path* with *content*, creating parents."""
        file_path = Path(path)
        try:
            await asyncio.to_thread(_write_file, file_path, content)
        except OSError as exc:
            raise ScaffoldError("write", f"cannot write {file_path}: {exc}") from exc
        self.written.append(file_path)
        return file_path

    async def read_file(self, path: str | Path) -> str:
        file_path = Path(path)
        try:
            return await asyncio.to_thread(file_path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ScaffoldError("read", f"cannot read {file_path}: {exc}") from exc


def _write_file(path: Path, content: str) -> None:
    """Synchronous helper: create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
