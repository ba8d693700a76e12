"""File system utilities: atomic writes and durable backups."""

from __future__ import annotations

import contextlib
import logging
import os
import stat
import tempfile
from pathlib import Path

log = logging.getLogger(__name__)

DEFAULT_BACKUP_SUFFIX = ".backup"


def backup_path_for(path: Path, suffix: str = DEFAULT_BACKUP_SUFFIX) -> Path:
    """Return the sibling backup path: ``<path><suffix>``."""
    return path.with_name(path.name + suffix)


def write_backup(path: Path, content: str, suffix: str = DEFAULT_BACKUP_SUFFIX,
                 encoding: str = "utf-8") -> Path:
    """Write ``content`` to the backup sibling of ``path`` and fsync it.

    Returns the backup path. The data is on disk when this returns.
    """
    target = backup_path_for(path, suffix)
    with open(target, "w", encoding=encoding, newline="") as f:
        f.write(content)
        f.flush()
        os.fsync(f.fileno())
    log.debug("Backup written: %s (%d chars)", target, len(content))
    return target


def atomic_write(path: Path, content: str, encoding: str = "utf-8") -> None:
    """Write content to file atomically via temp file + rename.

    Ensures the file is never partially written on crash. Permission bits of
    an existing file are carried over to the replacement. A symlink is
    followed and its target is replaced, so the link itself stays intact.
    """
    path = Path(path).resolve()
    mode = None
    if path.exists():
        mode = stat.S_IMODE(path.stat().st_mode)

    # Write to temp file in the same directory (so rename is atomic on same FS)
    fd, tmp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=".tmp_",
        suffix=path.suffix,
    )
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if mode is not None:
            os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up temp file on failure
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise
