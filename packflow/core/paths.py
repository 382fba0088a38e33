"""
Relative path resolution against the run's base directory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from .errors import InvalidPathError


@dataclass(frozen=True)
class ResolvedContext:
    """Base directory shared read-only by every task of a run."""
    base_dir: Path
    config_path: Optional[Path] = None

    @classmethod
    def create(
        cls,
        config_path: Optional[Union[str, Path]] = None,
        workdir: Optional[Union[str, Path]] = None,
    ) -> "ResolvedContext":
        """Explicit workdir wins; otherwise the directory holding the config file."""
        cfg = Path(config_path).absolute() if config_path is not None else None
        if workdir is not None:
            base = Path(workdir).absolute()
        elif cfg is not None:
            base = cfg.parent
        else:
            base = Path.cwd()
        return cls(base_dir=Path(os.path.normpath(base)), config_path=cfg)


def resolve(declared: Any, context: ResolvedContext) -> Path:
    """Turn a declared path into an absolute one.

    Absolute paths come back unchanged; relative ones are joined to
    ``context.base_dir``. ``..`` is allowed to leave the base directory.
    """
    if isinstance(declared, Path):
        declared = str(declared)
    if not isinstance(declared, str):
        raise InvalidPathError(f"Path must be a string, got {type(declared).__name__}", detail=declared)
    if not declared.strip():
        raise InvalidPathError("Path must not be empty", detail=declared)
    if "\x00" in declared:
        raise InvalidPathError(f"Path contains a NUL byte: {declared!r}", detail=declared)

    p = Path(declared)
    if p.is_absolute():
        return p
    return Path(os.path.normpath(context.base_dir / p))
