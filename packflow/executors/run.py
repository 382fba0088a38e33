"""
Run executor: invoke a command through the host's native command interpreter.

Windows hosts use ``cmd /C <command>``, everything else ``sh -c <command>``.
Extra ``args`` are appended to the spawned argv as-is (with ``sh -c`` the
first of them becomes ``$0``). Output is not captured and no timeout is
applied: a hung command blocks the run.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

from packflow.core.errors import ProcessError
from packflow.core.models import ExecutionResult, RunTask
from packflow.core.paths import ResolvedContext

from .base import run_guarded

logger = logging.getLogger(__name__)


def is_windows() -> bool:
    return os.name == "nt"


def build_platform_argv(command: str, args: Sequence[str] = (), windows: Optional[bool] = None) -> List[str]:
    if windows is None:
        windows = is_windows()
    if windows:
        return ["cmd", "/C", command, *args]
    return ["sh", "-c", command, *args]


def spawn_platform_command(command: str, args: Sequence[str] = (), cwd: Optional[Path] = None) -> int:
    """Run ``command`` with inherited stdio and return its exit code.

    Raises ProcessError when the interpreter cannot be started.
    """
    argv = build_platform_argv(command, args)
    logger.debug(f"spawn argv={' '.join(shlex.quote(a) for a in argv)} cwd={cwd}")
    try:
        proc = subprocess.run(argv, cwd=str(cwd) if cwd else None, check=False)
    except OSError as e:
        raise ProcessError(f"Failed to start {argv[0]!r} for {command!r}: {e}", detail=str(e)) from e
    return proc.returncode


def run_command(task: RunTask, context: ResolvedContext) -> str:
    logger.info(f"Running command: {task.command}")
    rc = spawn_platform_command(task.command, task.args, cwd=context.base_dir)
    if rc != 0:
        raise ProcessError(f"Command {task.command!r} failed with exit code {rc}", detail=rc)
    return f"exit code {rc}"


def execute_run(task: RunTask, context: ResolvedContext, index: int = 0) -> ExecutionResult:
    return run_guarded("run", run_command, task, context, index)
