"""
Virtual file system — in-memory overlay for one blueprint execution.

Writes, deletes and mkdirs only touch the pending map and the change log.
Reads consult the pending map first and fall back to disk, so later
actions see earlier actions' output before anything is flushed.

``commit()`` applies the last change of every path, in change-log order.
The on-disk state of each path is snapshotted first; if any write fails,
the paths already flushed are restored and ``IoError`` is raised, leaving
the tree as it was.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from architech.adapters.shell.filesystem import DiskFilesystem
from architech.core.errors import ErrorCode, IoError

logger = logging.getLogger(__name__)


class EntryKind(StrEnum):
    FILE = "file"
    DELETE = "delete"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class Entry:
    kind: EntryKind
    content: str | None = None


@dataclass(frozen=True)
class Change:
    """One change-log record. ``previous`` is None when the path was untouched."""

    path: str
    previous: Entry | None
    new: Entry


class VirtualFileSystem:
    """Pending-write overlay over a DiskFilesystem."""

    def __init__(self, filesystem: DiskFilesystem | None = None):
        self._fs = filesystem or DiskFilesystem()
        self._pending: dict[str, Entry] = {}
        self._log: list[Change] = []

    # ── Queries ──────────────────────────────────────────────────

    def read(self, path: str | Path) -> str | None:
        """Pending content, else disk content, else None."""
        key = _key(path)
        entry = self._pending.get(key)
        if entry is not None:
            return entry.content if entry.kind == EntryKind.FILE else None
        return self._fs.read_text(Path(key))

    def exists(self, path: str | Path) -> bool:
        key = _key(path)
        entry = self._pending.get(key)
        if entry is not None:
            return entry.kind != EntryKind.DELETE
        return self._fs.exists(Path(key))

    def is_dir(self, path: str | Path) -> bool:
        key = _key(path)
        entry = self._pending.get(key)
        if entry is not None:
            return entry.kind == EntryKind.DIRECTORY
        return self._fs.is_dir(Path(key))

    @property
    def changes(self) -> list[Change]:
        return list(self._log)

    @property
    def pending_paths(self) -> list[str]:
        """Paths with a pending entry, in order of their last change."""
        return list(self._final_entries().keys())

    @property
    def written_paths(self) -> list[str]:
        return [p for p, e in self._final_entries().items() if e.kind == EntryKind.FILE]

    @property
    def is_dirty(self) -> bool:
        return bool(self._log)

    # ── Mutations ────────────────────────────────────────────────

    def write(self, path: str | Path, content: str) -> None:
        self._record(_key(path), Entry(EntryKind.FILE, content))

    def delete(self, path: str | Path) -> bool:
        """Stage a deletion. Returns whether the path existed."""
        key = _key(path)
        existed = self.exists(key)
        self._record(key, Entry(EntryKind.DELETE))
        return existed

    def mkdir(self, path: str | Path) -> None:
        self._record(_key(path), Entry(EntryKind.DIRECTORY))

    def _record(self, key: str, new: Entry) -> None:
        previous = self._pending.get(key)
        self._pending[key] = new
        self._log.append(Change(path=key, previous=previous, new=new))
        logger.debug("vfs %s %s", new.kind, key)

    # ── Session end ──────────────────────────────────────────────

    def commit(self) -> list[str]:
        """Flush pending entries to disk and clear the session.

        Returns:
            Paths that were written, deleted or created, in flush order.

        Raises:
            IoError: If a write fails. Already-flushed paths are restored.
        """
        final = self._final_entries()
        snapshots = {path: self._snapshot(Path(path)) for path in final}
        applied: list[str] = []

        for path, entry in final.items():
            try:
                self._apply(Path(path), entry)
            except IoError as e:
                logger.error("Commit failed at %s: %s; restoring %d path(s)", path, e, len(applied))
                self._restore(applied, snapshots)
                raise IoError(
                    f"Commit failed writing {path}: {e.message}",
                    code=ErrorCode.COMMIT_FAILED,
                    path=path,
                ) from e
            applied.append(path)

        logger.debug("vfs committed %d path(s)", len(applied))
        self._clear()
        return applied

    def rollback(self) -> int:
        """Discard every pending change. Returns how many were dropped."""
        dropped = len(self._log)
        self._clear()
        if dropped:
            logger.debug("vfs rolled back %d change(s)", dropped)
        return dropped

    def _final_entries(self) -> dict[str, Entry]:
        """Last entry per path, ordered by the position of that last change."""
        last_index = {change.path: i for i, change in enumerate(self._log)}
        ordered = sorted(last_index.items(), key=lambda item: item[1])
        return {path: self._log[i].new for path, i in ordered}

    def _apply(self, path: Path, entry: Entry) -> None:
        if entry.kind == EntryKind.FILE:
            self._fs.write_text(path, entry.content or "")
        elif entry.kind == EntryKind.DIRECTORY:
            self._fs.mkdir(path)
        elif self._fs.exists(path):
            self._fs.delete(path)

    def _snapshot(self, path: Path) -> Entry | None:
        if self._fs.is_dir(path):
            return Entry(EntryKind.DIRECTORY)
        content = self._fs.read_text(path)
        if content is None:
            return None
        return Entry(EntryKind.FILE, content)

    def _restore(self, applied: list[str], snapshots: dict[str, Entry | None]) -> None:
        for path in reversed(applied):
            snapshot = snapshots[path]
            try:
                if snapshot is None:
                    self._fs.delete(Path(path))
                elif snapshot.kind == EntryKind.FILE:
                    self._fs.write_text(Path(path), snapshot.content or "")
                else:
                    self._fs.mkdir(Path(path))
            except IoError as e:
                logger.error("Could not restore %s after failed commit: %s", path, e)

    def _clear(self) -> None:
        self._pending.clear()
        self._log.clear()


def _key(path: str | Path) -> str:
    return str(Path(path))
