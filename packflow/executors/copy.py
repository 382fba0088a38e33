"""
Copy executor: mirror the included subset of a source tree into a destination.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Tuple

from packflow.core.errors import IoError, SourceNotFoundError
from packflow.core.ignore import EMPTY_RULE_SET, IGNORE_FILE_NAME, IgnoreRuleSet, load_rules
from packflow.core.models import CopyTask, ExecutionResult
from packflow.core.paths import ResolvedContext, resolve
from packflow.utils.file_management import FileManager
from packflow.utils.logging_config import active_log_files

from .base import run_guarded

logger = logging.getLogger(__name__)


def _load_rule_set(task: CopyTask, source: Path, context: ResolvedContext) -> Tuple[IgnoreRuleSet, Optional[Path]]:
    if not task.use_gitignore:
        return EMPTY_RULE_SET, None
    if task.gitignore:
        ignore_file = resolve(task.gitignore, context)
        # only the implicit <source>/.gitignore is optional
        if not ignore_file.is_file():
            raise SourceNotFoundError(f"Declared ignore file does not exist: {ignore_file}", detail=str(ignore_file))
    else:
        ignore_file = source / IGNORE_FILE_NAME
    try:
        return load_rules(ignore_file), ignore_file
    except OSError as e:
        raise IoError.from_os_error(e, ignore_file) from e


def _copy_single(source: Path, destination: Path) -> str:
    target = destination / source.name if destination.is_dir() else destination
    try:
        FileManager.copy_file(source, target)
    except OSError as e:
        raise IoError.from_os_error(e, target) from e
    return f"copied 1 file to {target}"


def copy_tree(task: CopyTask, context: ResolvedContext) -> str:
    source = resolve(task.source, context)
    destination = resolve(task.destination, context)
    logger.info(f"Copying files from {source} to {destination}")

    if not source.exists():
        raise SourceNotFoundError(f"Copy source does not exist: {source}", detail=str(source))
    if source.is_file():
        return _copy_single(source, destination)

    rule_set, ignore_file = _load_rule_set(task, source, context)
    if rule_set:
        logger.debug(f"Using {len(rule_set)} ignore rules for {source}")

    log_files = active_log_files()

    def keep(path: Path, is_dir: bool) -> bool:
        # a destination nested in the source must not be copied into itself
        if is_dir and path == destination:
            return False
        # the ignore file steering this copy is not part of the payload
        if not is_dir and path == ignore_file:
            return False
        # nor is a log file this process is writing
        if not is_dir and log_files and Path(os.path.abspath(path)) in log_files:
            logger.debug(f"Skipping active log file {path}")
            return False
        return rule_set.included(path.relative_to(source).as_posix(), is_dir)

    copied = 0
    current = source
    try:
        FileManager.ensure_directory(destination)
        for path, is_dir in FileManager.walk_sorted(source, keep):
            current = path
            if is_dir:
                continue
            if not path.is_file():
                logger.debug(f"Skipping non-regular file {path}")
                continue
            FileManager.copy_file(path, destination / path.relative_to(source))
            copied += 1
    except OSError as e:
        raise IoError.from_os_error(e, e.filename or current) from e

    logger.info(f"Copied {copied} file(s) into {destination}")
    return f"copied {copied} file(s) to {destination}"


def execute_copy(task: CopyTask, context: ResolvedContext, index: int = 0) -> ExecutionResult:
    return run_guarded("copy", copy_tree, task, context, index)
