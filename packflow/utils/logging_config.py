"""
Logging configuration for packflow runs.
"""

import logging
import sys
import os
from pathlib import Path
from typing import Optional, Set

LOG_PATH = Path("packflow_data") / "packflow.log"
LOGGER_NAME = "packflow"


class _FastFileHandler(logging.FileHandler):
    """File handler that can fsync on flush.

    Note: fsync makes the log visible to tailing tools immediately at the
    cost of extra I/O per record.
    """

    def __init__(self, filename, mode="a", encoding=None, delay=False, *, fsync=False):
        super().__init__(filename, mode=mode, encoding=encoding, delay=delay)
        self._fsync = bool(fsync)

    def flush(self):
        super().flush()
        if self._fsync and self.stream and hasattr(self.stream, "fileno"):
            try:
                os.fsync(self.stream.fileno())
            except OSError:
                # Never let logging flush raise
                pass


def active_log_files() -> Set[Path]:
    """Files written by the file handlers currently attached to the root logger."""
    return {Path(h.baseFilename) for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)}


def env_flag(name: str) -> bool:
    v = os.environ.get(name)
    if v is None:
        return False
    return v not in ("0", "false", "False", "no", "NO", "")


def default_level() -> str:
    level = os.environ.get("PACKFLOW_LOG_LEVEL", "INFO").upper()
    return level if level in ("DEBUG", "INFO", "WARNING", "ERROR") else "INFO"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
    console_level: Optional[str] = None,
    file_logging: bool = True,
) -> logging.Logger:
    """
    Setup logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path (default packflow_data/packflow.log)
        format_string: Custom format string
        console_level: Level of the stdout handler (defaults to ``level``)
        file_logging: Disable to log to the console only

    Returns:
        The ``packflow`` logger
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper()))
    # Clear existing handlers
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    if file_logging:
        log_path = LOG_PATH if log_file is None else Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = _FastFileHandler(log_path, encoding="utf-8", fsync=env_flag("PACKFLOW_LOG_FSYNC"))
        fh.setFormatter(logging.Formatter(format_string))
        fh.setLevel(getattr(logging, level.upper()))
        root.addHandler(fh)

    ch = logging.StreamHandler(sys.stdout)
    ch_level = console_level or level
    ch.setLevel(getattr(logging, ch_level.upper()))
    ch.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    root.addHandler(ch)

    return logging.getLogger(LOGGER_NAME)
