"""
File management utilities for the task executors.
"""

import os
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Iterator, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


class FileManager:
    """Utilities for file and directory management."""

    @staticmethod
    def ensure_directory(path: Path) -> Path:
        """Ensure directory exists, create if necessary."""
        path = Path(path)
        path.mkdir(parents=True, exist_ok=True)
        return path

    @staticmethod
    def copy_file(source: Path, destination: Path) -> Path:
        """Copy bytes and permission bits, overwriting ``destination``."""
        source = Path(source)
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        if destination.is_symlink():
            destination.unlink()
        shutil.copyfile(source, destination)
        shutil.copymode(source, destination)
        return destination

    @staticmethod
    def walk_sorted(root: Path, keep: Optional[Callable[[Path, bool], bool]] = None) -> Iterator[Tuple[Path, bool]]:
        """Yield ``(path, is_dir)`` depth-first, siblings in name order.

        Entries rejected by ``keep`` are not yielded and rejected directories
        are not descended into. Symlinked directories are yielded as
        non-directories and never followed.
        """
        root = Path(root)
        with os.scandir(root) as it:
            entries = sorted(it, key=lambda e: e.name)
        for entry in entries:
            path = root / entry.name
            is_dir = entry.is_dir(follow_symlinks=False)
            if keep is not None and not keep(path, is_dir):
                continue
            yield path, is_dir
            if is_dir:
                yield from FileManager.walk_sorted(path, keep)

    @staticmethod
    def atomic_write_text(path: Path, text: str, encoding: str = "utf-8", mode: Optional[int] = None) -> None:
        """Write text through a temp file in the same directory, then replace."""
        path = Path(path)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
        tmp = Path(tmp_name)
        try:
            # newline="" keeps the original line endings untouched
            with os.fdopen(fd, "w", encoding=encoding, newline="") as fh:
                fh.write(text)
            if mode is not None:
                os.chmod(tmp, mode)
            os.replace(tmp, path)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
