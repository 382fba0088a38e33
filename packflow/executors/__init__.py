"""
Task executors (copy, replace, run).

Each executor is a plain function ``(task, context, index) -> ExecutionResult``
that keeps no state between calls.
"""

from typing import Callable

from packflow.core.models import ExecutionResult

from .copy import execute_copy
from .replace import execute_replace
from .run import execute_run, spawn_platform_command

Executor = Callable[..., ExecutionResult]

_EXECUTORS = {
    "copy": execute_copy,
    "replace": execute_replace,
    "run": execute_run,
}


def get_executor(kind: str) -> Executor:
    try:
        return _EXECUTORS[kind]
    except KeyError:
        raise ValueError(f"Unsupported task kind: {kind}") from None


__all__ = [
    "execute_copy",
    "execute_replace",
    "execute_run",
    "spawn_platform_command",
    "get_executor",
]
