"""
Disk filesystem — the only code that touches the real project tree.

The VFS session reads through this adapter and flushes into it at commit
time. OS errors are translated into ``IoError`` with the offending path.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tempfile
from pathlib import Path

from architech.core.errors import ErrorCode, IoError

logger = logging.getLogger(__name__)


class DiskFilesystem:
    """Read, write and delete files on the real filesystem."""

    name = "filesystem"

    def exists(self, path: Path) -> bool:
        return path.exists()

    def is_dir(self, path: Path) -> bool:
        return path.is_dir()

    def read_text(self, path: Path) -> str | None:
        """Return file content, or None when the file does not exist."""
        if not path.is_file():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise IoError(
                f"Cannot read {path}: {e}", code=ErrorCode.READ_FAILED, path=str(path)
            ) from e

    def write_text(self, path: Path, content: str) -> None:
        """Write atomically: temp file in the same directory, then rename.

        An existing file keeps its permission bits; a new file gets
        ``0o666`` less the process umask, as ``open()`` would give it.
        """
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            mode = _target_mode(path)
            fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                    f.write(content)
                os.chmod(tmp, mode)
                os.replace(tmp, path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise IoError(
                f"Cannot write {path}: {e}", code=ErrorCode.WRITE_FAILED, path=str(path)
            ) from e
        logger.debug("Wrote %s (%d bytes, mode %o)", path, len(content), mode)

    def mkdir(self, path: Path) -> None:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IoError(
                f"Cannot create directory {path}: {e}",
                code=ErrorCode.WRITE_FAILED,
                path=str(path),
            ) from e

    def delete(self, path: Path) -> None:
        try:
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink(missing_ok=True)
        except OSError as e:
            raise IoError(
                f"Cannot delete {path}: {e}", code=ErrorCode.WRITE_FAILED, path=str(path)
            ) from e
        logger.debug("Deleted %s", path)


def _umask() -> int:
    current = os.umask(0)
    os.umask(current)
    return current


def _target_mode(path: Path) -> int:
    """Permission bits the written file should end up with."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        return 0o666 & ~_umask()
