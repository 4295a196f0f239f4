"""Voice Notes Pipeline - Recordings archive.

Diagnostic copies of raw uploads and converted WAVs, written under a fixed
base directory. Writes follow the atomic publish rule:
1. Write to a unique temp file in the same directory
2. Flush + best-effort fsync
3. Rename temp -> final

so an archived file is either complete or absent.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from app.config import RECORDINGS_DIR

logger = logging.getLogger(__name__)

TEMP_SUFFIX = ".tmp"


class ArchivePathError(ValueError):
    """Relative name would resolve outside the archive directory."""


def _write_all(fd: int, data: bytes) -> None:
    """Write all bytes to a file descriptor, retrying short writes and EINTR."""
    view = memoryview(data)
    while view:
        try:
            written = os.write(fd, view)
        except InterruptedError:
            continue
        if written == 0:
            raise OSError("os.write() returned 0 bytes unexpectedly")
        view = view[written:]


class Archive:
    """Write-only-by-convention directory of audio artifacts."""

    def __init__(self, base_dir: str | Path = RECORDINGS_DIR):
        self.base_dir = Path(base_dir)

    def path_for(self, relative_name: str) -> Path:
        """Resolve a name inside the archive.

        Raises:
            ArchivePathError: If the name escapes the base directory.
        """
        base = self.base_dir.resolve()
        path = (base / relative_name).resolve()
        if path == base or base not in path.parents:
            raise ArchivePathError(f"Invalid archive name: {relative_name!r}")
        return path

    def write(self, relative_name: str, data: bytes) -> Path:
        """Atomically write data under the archive directory.

        Args:
            relative_name: File name relative to the base directory.
            data: Bytes to write.

        Returns:
            The final path.

        Raises:
            ArchivePathError: If the name escapes the base directory.
            OSError: If directory creation, write, or rename fails.
        """
        final_path = self.path_for(relative_name)
        final_path.parent.mkdir(parents=True, exist_ok=True)

        # One temp file per write; concurrent writers never share it
        fd, temp_path = tempfile.mkstemp(
            dir=final_path.parent, prefix=f"{final_path.name}.", suffix=TEMP_SUFFIX
        )
        try:
            os.fchmod(fd, 0o644)
            _write_all(fd, data)
            os.fsync(fd)
        except OSError:
            os.close(fd)
            try:
                os.remove(temp_path)
            except OSError:
                pass
            raise
        else:
            os.close(fd)

        os.replace(temp_path, final_path)
        logger.debug("Archived %d bytes to %s", len(data), final_path)
        return final_path

    def cleanup_orphan_temp_files(self) -> int:
        """Remove leftover temp files from interrupted writes.

        Returns:
            Number of files removed.
        """
        if not self.base_dir.is_dir():
            return 0

        removed = 0
        for path in self.base_dir.glob(f"*{TEMP_SUFFIX}"):
            if not path.is_file():
                continue
            try:
                path.unlink()
                removed += 1
            except OSError as e:
                logger.warning("Failed to remove orphan temp file %s: %s", path, e)
        return removed


__all__ = ["Archive", "ArchivePathError"]
